"""Tests for slug derivation."""

from newshub.content.slugs import MAX_SLUG_LENGTH, generate_slug


class TestGenerateSlug:
    def test_punctuation_is_dropped(self):
        assert generate_slug("Hello, World! 2025") == "hello-world-2025"

    def test_surrounding_and_repeated_whitespace(self):
        assert generate_slug("  multiple   spaces ") == "multiple-spaces"

    def test_hyphen_runs_collapse(self):
        assert generate_slug("Breaking -- News - Today") == "breaking-news-today"

    def test_tabs_and_newlines_count_as_whitespace(self):
        assert generate_slug("line\none\ttwo") == "line-one-two"

    def test_non_ascii_letters_are_removed(self):
        assert generate_slug("Café Olé 24") == "caf-ol-24"

    def test_is_deterministic(self):
        assert generate_slug("Same Title") == generate_slug("Same Title")

    def test_long_title_truncates_to_limit(self):
        """A 200-character title yields exactly 100 characters."""
        title = "a" * 200
        slug = generate_slug(title)
        assert len(slug) == MAX_SLUG_LENGTH == 100
        assert slug == "a" * 100

    def test_truncation_is_a_plain_cut(self):
        """The cut can land on a hyphen, which is kept."""
        title = "x" * 99 + " more words"
        slug = generate_slug(title)
        assert len(slug) == 100
        assert slug.endswith("-")

    def test_empty_title(self):
        assert generate_slug("!!!") == ""
