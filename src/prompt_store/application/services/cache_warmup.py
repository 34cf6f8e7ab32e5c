"""Background cache warm-up scheduled once at process startup."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from prompt_store.application.services.template_cache_service import CacheWarmupResult
from prompt_store.application.services.template_store import TemplateStore

DEFAULT_WARMUP_DELAY_SECONDS = 2.0
SleepCallable = Callable[[float], Awaitable[None]]
logger = logging.getLogger(__name__)


async def run_cache_warmup(
    store: TemplateStore,
    *,
    names: Sequence[str] | None = None,
    delay_seconds: float = DEFAULT_WARMUP_DELAY_SECONDS,
    sleep: SleepCallable = asyncio.sleep,
) -> CacheWarmupResult | None:
    """Wait for startup to settle, then warm the cache; failures are only logged."""

    if delay_seconds > 0:
        await sleep(delay_seconds)

    try:
        result = await store.warm_cache(names)
    except Exception as error:  # noqa: BLE001
        logger.error("cache_warmup_failed error=%s", error)
        return None

    logger.info(
        "cache_warmup_finished success=%s failed=%s",
        len(result.success),
        len(result.failed),
    )
    return result


def schedule_cache_warmup(
    store: TemplateStore,
    *,
    names: Sequence[str] | None = None,
    delay_seconds: float = DEFAULT_WARMUP_DELAY_SECONDS,
    sleep: SleepCallable = asyncio.sleep,
) -> asyncio.Task[CacheWarmupResult | None]:
    """Start warm-up off the request path and return its task handle."""

    logger.info("cache_warmup_scheduled delay_seconds=%s", delay_seconds)
    return asyncio.create_task(
        run_cache_warmup(store, names=names, delay_seconds=delay_seconds, sleep=sleep),
        name="prompt-cache-warmup",
    )
