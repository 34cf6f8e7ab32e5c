"""Best-effort hit/miss counters kept in the template cache itself."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from prompt_store.application.ports.template_cache_port import TemplateCachePort

DEFAULT_STATS_TTL_SECONDS = 86_400
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheStats:
    """Hit/miss counters for one template name."""

    name: str
    hits: int
    misses: int
    total: int
    hit_rate: float


class TemplateCacheStatistics:
    """Track cache hits and misses per template name.

    Counters are incremented with read-then-write against the cache, not an
    atomic increment, so concurrent requests can lose increments.
    """

    def __init__(
        self,
        *,
        cache: TemplateCachePort,
        namespace: str,
        ttl_seconds: float = DEFAULT_STATS_TTL_SECONDS,
    ) -> None:
        self._cache = cache
        self._namespace = namespace
        self._ttl_seconds = ttl_seconds

    def hits_key(self, name: str) -> str:
        return f"{self._namespace}:stats:{name}:hits"

    def misses_key(self, name: str) -> str:
        return f"{self._namespace}:stats:{name}:misses"

    async def record_hit(self, name: str) -> None:
        try:
            await self._increment(self.hits_key(name))
        except Exception as error:  # noqa: BLE001
            logger.error("cache_stats_hit_tracking_failed name=%s error=%s", name, error)

    async def record_miss(self, name: str) -> None:
        try:
            await self._increment(self.misses_key(name))
        except Exception as error:  # noqa: BLE001
            logger.error("cache_stats_miss_tracking_failed name=%s error=%s", name, error)

    async def stats(self, name: str) -> CacheStats:
        """Return counters and hit rate (percent, two decimals) for name."""

        try:
            hits = await self._read_counter(self.hits_key(name))
            misses = await self._read_counter(self.misses_key(name))
        except Exception as error:  # noqa: BLE001
            logger.error("cache_stats_read_failed name=%s error=%s", name, error)
            return CacheStats(name=name, hits=0, misses=0, total=0, hit_rate=0.0)
        total = hits + misses
        hit_rate = round(hits / total * 100, 2) if total > 0 else 0.0
        return CacheStats(name=name, hits=hits, misses=misses, total=total, hit_rate=hit_rate)

    async def clear(self, names: Iterable[str]) -> bool:
        """Delete counters for every name; False when the cache rejects a delete."""

        try:
            for name in names:
                await self._cache.delete(self.hits_key(name))
                await self._cache.delete(self.misses_key(name))
        except Exception as error:  # noqa: BLE001
            logger.error("cache_stats_clear_failed error=%s", error)
            return False
        logger.info("cache_stats_cleared")
        return True

    async def _increment(self, key: str) -> None:
        current = await self._read_counter(key)
        await self._cache.set(key, str(current + 1), ttl_seconds=self._ttl_seconds)

    async def _read_counter(self, key: str) -> int:
        raw = await self._cache.get(key)
        if raw is None:
            return 0
        try:
            return int(raw)
        except ValueError:
            return 0
