"""Tests for the Redis-backed result cache."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from pageqa.services.cache import RedisResultCache, build_cache, cache_key


def _client() -> MagicMock:
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    client.aclose = AsyncMock()
    return client


class TestCacheKey:
    def test_prefix(self) -> None:
        assert cache_key("abc") == "summary:abc"


class TestRedisResultCache:
    @pytest.mark.asyncio
    async def test_set_serializes_with_ttl(self) -> None:
        client = _client()
        cache = RedisResultCache(client=client)

        assert await cache.set("summary:x", {"title": "标题"}, 3600) is True

        args, kwargs = client.set.call_args
        assert args[0] == "summary:x"
        assert json.loads(args[1]) == {"title": "标题"}
        assert kwargs["ex"] == 3600

    @pytest.mark.asyncio
    async def test_get_decodes_json(self) -> None:
        client = _client()
        client.get.return_value = '{"task_id": "t1"}'
        cache = RedisResultCache(client=client)

        assert await cache.get("summary:x") == {"task_id": "t1"}

    @pytest.mark.asyncio
    async def test_get_miss(self) -> None:
        cache = RedisResultCache(client=_client())

        assert await cache.get("summary:missing") is None

    @pytest.mark.asyncio
    async def test_undecodable_entry_is_a_miss(self) -> None:
        client = _client()
        client.get.return_value = "{not json"
        cache = RedisResultCache(client=client)

        assert await cache.get("summary:x") is None

    @pytest.mark.asyncio
    async def test_redis_errors_are_swallowed(self) -> None:
        client = _client()
        client.get.side_effect = RedisConnectionError("down")
        client.set.side_effect = RedisConnectionError("down")
        client.delete.side_effect = RedisConnectionError("down")
        cache = RedisResultCache(client=client)

        assert await cache.get("k") is None
        assert await cache.set("k", {"a": 1}, 10) is False
        assert await cache.delete("k") is False

    @pytest.mark.asyncio
    async def test_slow_server_reads_as_miss(self) -> None:
        async def hang(*args, **kwargs):
            await asyncio.sleep(10)

        client = _client()
        client.get.side_effect = hang
        client.set.side_effect = hang
        cache = RedisResultCache(client=client, timeout_seconds=0.05)

        assert await cache.get("k") is None
        assert await cache.set("k", {"a": 1}, 10) is False

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        client = _client()

        await RedisResultCache(client=client).close()

        client.aclose.assert_awaited_once()

    def test_requires_url_or_client(self) -> None:
        with pytest.raises(ValueError):
            RedisResultCache()


class TestBuildCache:
    def test_disabled_by_default(self) -> None:
        from pageqa.core.config import settings

        with patch.object(settings, "enable_caching", False):
            assert build_cache() is None

    def test_enabled_builds_redis_cache(self) -> None:
        from pageqa.core.config import settings

        with patch.object(settings, "enable_caching", True), patch(
            "pageqa.services.cache.aioredis.from_url"
        ) as from_url:
            cache = build_cache()

        assert isinstance(cache, RedisResultCache)
        from_url.assert_called_once_with(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=settings.cache_timeout_seconds,
            socket_timeout=settings.cache_timeout_seconds,
        )
        assert cache.timeout_seconds == settings.cache_timeout_seconds
