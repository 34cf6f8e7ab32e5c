"""FastAPI router for template cache maintenance endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from prompt_store.application.dto.cache_api_models import (
    CacheInvalidateResponse,
    CacheStampResponse,
    CacheStatsClearedResponse,
    CacheStatsResponse,
    CacheWarmupFailureItem,
    CacheWarmupRequest,
    CacheWarmupResponse,
)
from prompt_store.application.services.template_store import TemplateStore

logger = logging.getLogger(__name__)


def build_template_cache_router(*, store: TemplateStore) -> APIRouter:
    """Build router exposing cache statistics, stamps, invalidation and warm-up."""

    router = APIRouter(tags=["prompt-cache"])

    @router.get("/prompts/{name}/cache/stats", response_model=CacheStatsResponse)
    async def get_cache_stats(name: str) -> CacheStatsResponse:
        stats = await store.cache_stats(name)
        return CacheStatsResponse(
            name=stats.name,
            hits=stats.hits,
            misses=stats.misses,
            total=stats.total,
            hit_rate=stats.hit_rate,
        )

    @router.get("/prompts/{name}/cache/stamp", response_model=CacheStampResponse)
    async def get_cache_stamp(name: str) -> CacheStampResponse:
        return CacheStampResponse(name=name, stamp=await store.cache_stamp(name))

    @router.post("/prompts/{name}/cache/invalidate", response_model=CacheInvalidateResponse)
    async def invalidate_cache(name: str, version: int | None = None) -> CacheInvalidateResponse:
        invalidated = await store.invalidate(name, version=version)
        logger.info(
            "cache_invalidate_requested name=%s version=%s invalidated=%s",
            name,
            version,
            invalidated,
        )
        return CacheInvalidateResponse(name=name, version=version, invalidated=invalidated)

    @router.post("/prompts/cache/warm", response_model=CacheWarmupResponse)
    async def warm_cache(payload: CacheWarmupRequest | None = None) -> CacheWarmupResponse:
        names = payload.names if payload is not None else None
        result = await store.warm_cache(names)
        return CacheWarmupResponse(
            success=list(result.success),
            failed=[
                CacheWarmupFailureItem(name=failure.name, error=failure.error)
                for failure in result.failed
            ],
        )

    @router.delete("/prompts/cache/stats", response_model=CacheStatsClearedResponse)
    async def clear_cache_stats() -> CacheStatsClearedResponse:
        return CacheStatsClearedResponse(ok=await store.clear_stats())

    return router
