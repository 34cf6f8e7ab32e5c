"""Redis-backed template cache adapter shared across worker processes."""

from __future__ import annotations

import logging
import math

import redis.asyncio as redis

from prompt_store.application.ports.template_cache_port import TemplateCachePort

logger = logging.getLogger(__name__)


def create_redis_client(redis_url: str) -> redis.Redis:
    """Create an async Redis client that returns decoded strings."""

    logger.info("redis_client_created url=%s", redis_url)
    return redis.from_url(redis_url, encoding="utf-8", decode_responses=True)


class RedisTemplateCache(TemplateCachePort):
    """Template cache adapter over an async Redis client.

    Errors from the client propagate; the cache service decides how to degrade.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    async def get(self, key: str) -> str | None:
        value = await self._client.get(key)
        if value is None:
            return None
        return value if isinstance(value, str) else value.decode("utf-8")

    async def set(self, key: str, value: str, *, ttl_seconds: float | None = None) -> None:
        if ttl_seconds is None:
            await self._client.set(key, value)
            return
        await self._client.set(key, value, ex=max(1, math.ceil(ttl_seconds)))

    async def exists(self, key: str) -> bool:
        return bool(await self._client.exists(key))

    async def delete(self, key: str) -> bool:
        return bool(await self._client.delete(key))

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("redis_client_closed")
