"""Tests for loading all content documents together."""

import pytest

from newshub.content.cache import DocumentCache
from newshub.content.documents import CATEGORIES_PATH, POSTS_PATH, SITE_PATH
from newshub.content.sync import sync_all


class TestSyncAll:
    @pytest.mark.asyncio
    async def test_loads_all_documents(self, client, store):
        store.put_json(POSTS_PATH, {"posts": [{"slug": "a"}], "lastUpdated": "x"})
        store.put_json(CATEGORIES_PATH, {"categories": [{"slug": "tech"}]})
        store.put_json(SITE_PATH, {"name": "NewsHub"})

        snapshot = await sync_all(client)

        assert snapshot.posts == [{"slug": "a"}]
        assert snapshot.categories == [{"slug": "tech"}]
        assert snapshot.site == {"name": "NewsHub"}

    @pytest.mark.asyncio
    async def test_empty_repository(self, client, store):
        snapshot = await sync_all(client)

        assert snapshot.posts == []
        assert snapshot.categories == []
        assert snapshot.site == {}

    @pytest.mark.asyncio
    async def test_fills_cache(self, client, store):
        store.put_json(SITE_PATH, {"name": "NewsHub"})
        cache = DocumentCache()

        await sync_all(client, cache=cache)

        assert cache.get(SITE_PATH).body == {"name": "NewsHub"}
        assert POSTS_PATH in cache and CATEGORIES_PATH in cache
