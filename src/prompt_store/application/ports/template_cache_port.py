"""Port for the key/value cache that fronts template reads."""

from __future__ import annotations

from typing import Protocol


class TemplateCachePort(Protocol):
    """Key/value cache with per-entry TTL."""

    async def get(self, key: str) -> str | None:
        """Return cached payload for key, or None when absent/expired."""

    async def set(self, key: str, value: str, *, ttl_seconds: float | None = None) -> None:
        """Store payload under key, expiring after ttl_seconds when given."""

    async def exists(self, key: str) -> bool:
        """Return whether a live entry is stored under key."""

    async def delete(self, key: str) -> bool:
        """Remove key, returning whether an entry was removed."""
