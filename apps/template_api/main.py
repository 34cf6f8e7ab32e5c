"""template-api entrypoint and HTTP route wiring."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from prompt_store.application.ports.template_cache_port import TemplateCachePort
from prompt_store.application.services.cache_warmup import schedule_cache_warmup
from prompt_store.application.services.prompt_rendering_service import PromptRenderingService
from prompt_store.application.services.template_store import TemplateStore
from prompt_store.config.settings import Settings, load_settings
from prompt_store.infrastructure.cache.memory_cache import InMemoryTemplateCache
from prompt_store.infrastructure.cache.redis_cache import RedisTemplateCache, create_redis_client
from prompt_store.infrastructure.db.session import (
    create_session_factory,
    dispose_session_factory,
)
from prompt_store.infrastructure.db.template_repository import SqlAlchemyTemplateRepository
from prompt_store.infrastructure.http.template_cache_router import build_template_cache_router
from prompt_store.infrastructure.logging import configure_logging

TEMPLATE_API_HOST = "0.0.0.0"
TEMPLATE_API_PORT = 8000
logger = logging.getLogger(__name__)


def build_template_cache(settings: Settings) -> TemplateCachePort:
    """Build the shared Redis cache when configured, else an in-process cache."""

    if settings.redis_url is None:
        logger.info("template_cache_backend backend=memory")
        return InMemoryTemplateCache()
    logger.info("template_cache_backend backend=redis")
    return RedisTemplateCache(create_redis_client(settings.redis_url))


def build_template_store(
    settings: Settings,
    *,
    cache: TemplateCachePort | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> TemplateStore:
    """Build template store with SQLAlchemy-backed persistence and configured cache."""

    if session_factory is None:
        session_factory = create_session_factory(
            settings.database_url,
            echo=settings.database_echo,
        )
    return TemplateStore(
        templates=SqlAlchemyTemplateRepository(session_factory),
        cache=cache if cache is not None else build_template_cache(settings),
        namespace=settings.prompt_cache_namespace,
        cache_ttl_seconds=settings.prompt_cache_ttl_seconds,
        stats_ttl_seconds=settings.prompt_stats_ttl_seconds,
        monitoring_enabled=settings.prompt_cache_monitoring_enabled,
        critical_names=settings.prompt_cache_critical_prompts,
        config_schema_strict=settings.prompt_config_schema_strict,
        allow_production_deletion=settings.prompt_allow_production_deletion,
    )


def build_rendering_service(settings: Settings, *, store: TemplateStore) -> PromptRenderingService:
    """Build the LLM-facing rendering service over an existing store."""

    return PromptRenderingService(store=store, enabled=settings.prompt_management_enabled)


def create_app(
    *,
    settings: Settings | None = None,
    store: TemplateStore | None = None,
    warm_on_startup: bool | None = None,
) -> FastAPI:
    """Create FastAPI app for template cache maintenance routes."""

    if settings is None:
        settings = load_settings()
        configure_logging(level=settings.log_level)
    owned_cache: TemplateCachePort | None = None
    owned_session_factory: async_sessionmaker[AsyncSession] | None = None
    if store is None:
        owned_cache = build_template_cache(settings)
        owned_session_factory = create_session_factory(
            settings.database_url,
            echo=settings.database_echo,
        )
        store = build_template_store(
            settings,
            cache=owned_cache,
            session_factory=owned_session_factory,
        )
    if warm_on_startup is None:
        warm_on_startup = settings.prompt_cache_warming_enabled

    warmup_delay_seconds = settings.prompt_cache_warmup_delay_seconds

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        warmup_task: asyncio.Task[object] | None = None
        if warm_on_startup:
            warmup_task = schedule_cache_warmup(store, delay_seconds=warmup_delay_seconds)
        app.state.warmup_task = warmup_task
        try:
            yield
        finally:
            if warmup_task is not None and not warmup_task.done():
                warmup_task.cancel()
            if isinstance(owned_cache, RedisTemplateCache):
                await owned_cache.close()
            if owned_session_factory is not None:
                await dispose_session_factory(owned_session_factory)

    app = FastAPI(lifespan=lifespan)
    app.state.template_store = store
    app.state.rendering_service = build_rendering_service(settings, store=store)
    app.include_router(build_template_cache_router(store=store))

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


def run_asgi_server(*, host: str = TEMPLATE_API_HOST, port: int = TEMPLATE_API_PORT) -> None:
    """Run template-api as a long-lived ASGI process using application factory mode."""

    uvicorn.run(
        "apps.template_api.main:create_app",
        host=host,
        port=port,
        factory=True,
    )


def main() -> None:
    """Run template-api runtime process."""

    run_asgi_server()


if __name__ == "__main__":
    main()
