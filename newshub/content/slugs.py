"""URL slug derivation for posts and categories."""

import re

MAX_SLUG_LENGTH = 100

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def generate_slug(text: str) -> str:
    """Derive a URL slug from a title.

    Lowercases, drops everything outside [a-z0-9], whitespace and hyphens,
    turns whitespace runs into single hyphens, collapses hyphen runs and cuts
    the result at 100 characters. Slugs already published by the website were
    produced by this exact rule, so it must not change.

    The cut is a plain truncation: a hyphen landing on the 100th character
    stays. Two different titles can produce the same slug; uniqueness is
    checked by the mutators.

    Examples:
        >>> generate_slug("Hello, World! 2025")
        'hello-world-2025'
        >>> generate_slug("  multiple   spaces ")
        'multiple-spaces'
    """
    slug = _DISALLOWED.sub("", text.lower()).strip()
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug[:MAX_SLUG_LENGTH]
