"""Tests for the session document cache."""

import pytest

from newshub.content.cache import DocumentCache
from newshub.content.documents import CATEGORIES_PATH, POSTS_PATH, Document


class TestDocumentCache:
    def test_set_get_invalidate(self):
        cache = DocumentCache()
        document = Document(path=POSTS_PATH, version="abc", body={"posts": []})

        cache.set(document)
        assert cache.get(POSTS_PATH) is document

        cache.invalidate(POSTS_PATH)
        assert cache.get(POSTS_PATH) is None

    def test_invalidate_unknown_path_is_noop(self):
        DocumentCache().invalidate("data/nothing.json")

    def test_clear(self):
        cache = DocumentCache()
        cache.set(Document(POSTS_PATH, "a", {}))
        cache.set(Document(CATEGORIES_PATH, "b", {}))

        cache.clear()

        assert POSTS_PATH not in cache
        assert CATEGORIES_PATH not in cache

    def test_caches_are_independent(self):
        first, second = DocumentCache(), DocumentCache()
        first.set(Document(POSTS_PATH, "a", {}))

        assert POSTS_PATH not in second

    @pytest.mark.asyncio
    async def test_load_reads_once(self, client, store):
        store.put_json(POSTS_PATH, {"posts": [{"slug": "one"}]})
        cache = DocumentCache()

        first = await cache.load(client, POSTS_PATH)
        second = await cache.load(client, POSTS_PATH)

        assert first is second
        assert store.count("GET") == 1
