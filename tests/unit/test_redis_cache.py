from __future__ import annotations

import pytest

from prompt_store.infrastructure.cache.redis_cache import RedisTemplateCache


class FakeRedisClient:
    def __init__(self) -> None:
        self.values: dict[str, str | bytes] = {}
        self.set_calls: list[tuple[str, str, int | None]] = []
        self.closed = False

    async def get(self, key: str) -> str | bytes | None:
        return self.values.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.values[key] = value
        self.set_calls.append((key, value, ex))
        return True

    async def exists(self, key: str) -> int:
        return 1 if key in self.values else 0

    async def delete(self, key: str) -> int:
        return 1 if self.values.pop(key, None) is not None else 0

    async def aclose(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_set_passes_whole_second_expiry_to_redis() -> None:
    client = FakeRedisClient()
    cache = RedisTemplateCache(client)  # type: ignore[arg-type]

    await cache.set("a", "1", ttl_seconds=300)
    await cache.set("b", "2", ttl_seconds=0.2)
    await cache.set("c", "3")

    assert client.set_calls == [("a", "1", 300), ("b", "2", 1), ("c", "3", None)]


@pytest.mark.asyncio
async def test_reads_decode_bytes_and_report_existence() -> None:
    client = FakeRedisClient()
    client.values["raw"] = b"payload"
    cache = RedisTemplateCache(client)  # type: ignore[arg-type]

    assert await cache.get("raw") == "payload"
    assert await cache.get("missing") is None
    assert await cache.exists("raw") is True
    assert await cache.delete("raw") is True
    assert await cache.exists("raw") is False


@pytest.mark.asyncio
async def test_close_releases_client() -> None:
    client = FakeRedisClient()
    cache = RedisTemplateCache(client)  # type: ignore[arg-type]

    await cache.close()

    assert client.closed is True
