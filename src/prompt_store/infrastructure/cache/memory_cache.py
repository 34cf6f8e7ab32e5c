"""In-process TTL cache adapter used when no Redis URL is configured."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from prompt_store.application.ports.template_cache_port import TemplateCachePort

ClockCallable = Callable[[], float]


@dataclass(frozen=True)
class _CacheEntry:
    value: str
    expires_at: float | None


class InMemoryTemplateCache(TemplateCachePort):
    """Dict-backed cache with lazy expiry on read."""

    def __init__(self, *, clock: ClockCallable = time.monotonic) -> None:
        self._entries: dict[str, _CacheEntry] = {}
        self._clock = clock

    async def get(self, key: str) -> str | None:
        entry = self._live_entry(key)
        return None if entry is None else entry.value

    async def set(self, key: str, value: str, *, ttl_seconds: float | None = None) -> None:
        expires_at = None if ttl_seconds is None else self._clock() + ttl_seconds
        self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)

    async def exists(self, key: str) -> bool:
        return self._live_entry(key) is not None

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def _live_entry(self, key: str) -> _CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry
