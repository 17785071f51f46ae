"""Best-effort result cache keyed by URL fingerprint.

Cache failures are logged and swallowed: an unreachable Redis must never
fail a pipeline run or an API call.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

KEY_PREFIX = "summary:"
DEFAULT_TIMEOUT_SECONDS = 2.0

# redis.exceptions.TimeoutError is a RedisError
_CACHE_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


def cache_key(url_hash: str) -> str:
    """Cache key for the completed result of a URL."""
    return f"{KEY_PREFIX}{url_hash}"


class ResultCache(Protocol):
    """Interface the pipeline and service use to cache completed results."""

    async def get(self, key: str) -> Any | None:
        ...

    async def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        ...

    async def delete(self, key: str) -> bool:
        ...


class RedisResultCache:
    """JSON values stored in Redis with a TTL.

    Every call is bounded by ``timeout_seconds``; a slow or unreachable
    server reads as a miss.
    """

    def __init__(
        self,
        url: str | None = None,
        client: Any | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if client is None and url is None:
            raise ValueError("RedisResultCache needs a url or a client")
        self.timeout_seconds = timeout_seconds
        self._client = client if client is not None else aioredis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=timeout_seconds,
            socket_timeout=timeout_seconds,
        )

    async def _call(self, coro: Awaitable[Any]) -> Any:
        return await asyncio.wait_for(coro, timeout=self.timeout_seconds)

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._call(self._client.get(key))
        except _CACHE_ERRORS as e:
            logger.warning("Cache get failed for %s: %r", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        try:
            payload = json.dumps(value, ensure_ascii=False, default=str)
            await self._call(self._client.set(key, payload, ex=ttl_seconds))
            return True
        except (*_CACHE_ERRORS, TypeError, ValueError) as e:
            logger.warning("Cache set failed for %s: %r", key, e)
            return False

    async def delete(self, key: str) -> bool:
        try:
            await self._call(self._client.delete(key))
            return True
        except _CACHE_ERRORS as e:
            logger.warning("Cache delete failed for %s: %r", key, e)
            return False

    async def close(self) -> None:
        try:
            await self._client.aclose()
        except (RedisError, OSError, AttributeError) as e:
            logger.debug("Ignoring error while closing cache client: %s", e)


def build_cache() -> RedisResultCache | None:
    """Return a Redis cache when caching is enabled in settings."""
    from pageqa.core.config import settings

    if not settings.enable_caching:
        return None
    logger.info("Result cache enabled (%s)", settings.redis_url)
    return RedisResultCache(
        url=settings.redis_url, timeout_seconds=settings.cache_timeout_seconds
    )
