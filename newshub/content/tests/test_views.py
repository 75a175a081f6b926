"""Tests for view count composition and the live counter client."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from newshub.content.views import (
    ViewCount,
    ViewCounterClient,
    combine_views,
    format_views,
    seed_views_of,
)


def _counter_response(value):
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = {"value": value}
    return response


def _patched_client(response=None, side_effect=None):
    mock_client = AsyncMock()
    mock_client.__aenter__.return_value = mock_client
    mock_client.__aexit__.return_value = None
    if side_effect is not None:
        mock_client.get.side_effect = side_effect
    else:
        mock_client.get.return_value = response
    return mock_client


class TestComposition:
    def test_combine(self):
        assert combine_views(100, 23) == 123

    def test_unavailable_live_count(self):
        assert combine_views(100, None) == 100

    def test_view_count_total_and_display(self):
        count = ViewCount(seed_views=12_000, live_views=500)
        assert count.total == 12_500
        assert count.display == "12.5K"

    def test_seed_views_of_ignores_bad_values(self):
        assert seed_views_of({"views": 5}) == 5
        assert seed_views_of({"views": -3}) == 0
        assert seed_views_of({"views": "many"}) == 0
        assert seed_views_of({}) == 0


class TestFormatViews:
    def test_small_numbers(self):
        assert format_views(0) == "0"
        assert format_views(999) == "999"

    def test_thousands_and_millions(self):
        assert format_views(1000) == "1.0K"
        assert format_views(1234) == "1.2K"
        assert format_views(3_500_000) == "3.5M"


class TestViewCounterClient:
    @pytest.mark.asyncio
    async def test_get_live_views(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = _patched_client(_counter_response(41))
            mock_client_class.return_value = mock_client

            counter = ViewCounterClient(namespace="newshub", base_url="https://counter.test")
            assert await counter.get_live_views("my-post") == 41

            url = mock_client.get.call_args[0][0]
            assert url == "https://counter.test/get/newshub/my-post"

    @pytest.mark.asyncio
    async def test_hit_counts_once_per_session(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = _patched_client(_counter_response(7))
            mock_client_class.return_value = mock_client

            counter = ViewCounterClient(namespace="ns", base_url="https://counter.test")
            await counter.hit("post")
            await counter.hit("post")

            urls = [c[0][0] for c in mock_client.get.call_args_list]
            assert urls == [
                "https://counter.test/hit/ns/post",
                "https://counter.test/get/ns/post",
            ]

    @pytest.mark.asyncio
    async def test_failed_hit_is_retried(self):
        """A hit that never reached the counter is sent again next time."""
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = _patched_client(
                side_effect=[httpx.ConnectError("down"), _counter_response(8)]
            )
            mock_client_class.return_value = mock_client

            counter = ViewCounterClient(namespace="ns", base_url="https://counter.test")
            assert await counter.hit("post") is None
            assert await counter.hit("post") == 8

            urls = [c[0][0] for c in mock_client.get.call_args_list]
            assert urls == [
                "https://counter.test/hit/ns/post",
                "https://counter.test/hit/ns/post",
            ]

    @pytest.mark.asyncio
    async def test_counter_failure_yields_none(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = _patched_client(
                side_effect=httpx.ConnectError("down")
            )

            counter = ViewCounterClient(namespace="ns", base_url="https://counter.test")
            count = await counter.view_count({"slug": "p", "views": 10})

            assert count.live_views is None
            assert count.total == 10

    def test_from_env_disabled_without_namespace(self, monkeypatch):
        monkeypatch.delenv("NEWSHUB_COUNTER_NAMESPACE", raising=False)
        assert ViewCounterClient.from_env() is None
