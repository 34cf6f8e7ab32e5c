"""Single entry point over template reads, versioning, comparison and cache upkeep."""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from typing import Any

from prompt_store.application.ports.template_cache_port import TemplateCachePort
from prompt_store.application.ports.template_repository_port import TemplateRepositoryPort
from prompt_store.application.services.template_cache_service import (
    DEFAULT_CACHE_NAMESPACE,
    DEFAULT_CACHE_TTL_SECONDS,
    CacheWarmupResult,
    NowCallable,
    TemplateCacheService,
)
from prompt_store.application.services.template_cache_statistics import (
    DEFAULT_STATS_TTL_SECONDS,
    CacheStats,
    TemplateCacheStatistics,
)
from prompt_store.application.services.template_comparison_service import (
    TemplateComparison,
    TemplateComparisonService,
)
from prompt_store.application.services.template_version_service import TemplateVersionService
from prompt_store.domain.config_schema import (
    ConfigSchema,
    ConfigValidationResult,
    validate_config,
)
from prompt_store.domain.template_state import TemplateState
from prompt_store.domain.templates import FetchedTemplate, TemplateRecord


class TemplateStore:
    """Facade wiring the cache, version and comparison services to one store."""

    def __init__(
        self,
        *,
        templates: TemplateRepositoryPort,
        cache: TemplateCachePort,
        namespace: str = DEFAULT_CACHE_NAMESPACE,
        cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        stats_ttl_seconds: float = DEFAULT_STATS_TTL_SECONDS,
        monitoring_enabled: bool = True,
        critical_names: Sequence[str] = (),
        config_schema: ConfigSchema | None = None,
        config_schema_strict: bool = False,
        allow_production_deletion: bool = False,
        now: NowCallable = time.time,
    ) -> None:
        self._config_schema = config_schema
        self._config_schema_strict = config_schema_strict
        self.cache_service = TemplateCacheService(
            templates=templates,
            cache=cache,
            statistics=TemplateCacheStatistics(
                cache=cache,
                namespace=namespace,
                ttl_seconds=stats_ttl_seconds,
            ),
            namespace=namespace,
            ttl_seconds=cache_ttl_seconds,
            monitoring_enabled=monitoring_enabled,
            critical_names=critical_names,
            now=now,
        )
        self.version_service = TemplateVersionService(
            templates=templates,
            on_change=self._invalidate_changed,
            config_schema=config_schema,
            config_schema_strict=config_schema_strict,
            allow_production_deletion=allow_production_deletion,
        )
        self.comparison_service = TemplateComparisonService(templates=templates)

    async def fetch(
        self,
        name: str,
        *,
        state: TemplateState | None = TemplateState.PRODUCTION,
        version: int | None = None,
        fallback: str | None = None,
        bypass_cache: bool = False,
    ) -> FetchedTemplate:
        return await self.cache_service.fetch(
            name=name,
            state=state,
            version=version,
            fallback=fallback,
            bypass_cache=bypass_cache,
        )

    async def fetch_all(
        self,
        names: Sequence[str],
        *,
        state: TemplateState = TemplateState.PRODUCTION,
    ) -> dict[str, TemplateRecord]:
        return await self.cache_service.fetch_all(names=names, state=state)

    async def create(
        self,
        name: str,
        content: str,
        *,
        config: Mapping[str, Any] | str | None = None,
        commit_message: str | None = None,
        created_by: str | None = None,
        promote_to_production: bool = False,
    ) -> TemplateRecord:
        return await self.version_service.create(
            name=name,
            content=content,
            config=config,
            commit_message=commit_message,
            created_by=created_by,
            promote_to_production=promote_to_production,
        )

    async def update_draft(
        self,
        name: str,
        version: int,
        *,
        content: str | None = None,
        config: Mapping[str, Any] | str | None = None,
    ) -> TemplateRecord:
        return await self.version_service.update_draft(
            name=name,
            version=version,
            content=content,
            config=config,
        )

    async def promote(self, name: str, version: int) -> TemplateRecord:
        return await self.version_service.promote(name=name, version=version)

    async def demote(self, name: str, version: int) -> TemplateRecord:
        return await self.version_service.demote(name=name, version=version)

    async def restore(self, name: str, version: int) -> TemplateRecord:
        return await self.version_service.restore(name=name, version=version)

    async def rollback(self, name: str, to_version: int) -> TemplateRecord:
        return await self.version_service.rollback(name=name, to_version=to_version)

    async def versions(self, name: str) -> list[TemplateRecord]:
        return await self.version_service.versions(name=name)

    async def get_version(self, name: str, version: int) -> TemplateRecord:
        return await self.version_service.get_version(name=name, version=version)

    async def latest_version(self, name: str) -> TemplateRecord | None:
        return await self.version_service.latest_version(name=name)

    async def previous_version(self, name: str, version: int) -> TemplateRecord | None:
        return await self.version_service.previous_version(name=name, version=version)

    async def next_version(self, name: str, version: int) -> TemplateRecord | None:
        return await self.version_service.next_version(name=name, version=version)

    async def clone_to_draft(
        self,
        name: str,
        version: int,
        *,
        created_by: str | None = None,
    ) -> TemplateRecord:
        return await self.version_service.clone_to_draft(
            name=name,
            version=version,
            created_by=created_by,
        )

    async def delete_version(self, name: str, version: int) -> bool:
        return await self.version_service.delete_version(name=name, version=version)

    async def compare_versions(
        self,
        name: str,
        version_a: int,
        version_b: int,
    ) -> TemplateComparison:
        return await self.comparison_service.compare_versions(
            name=name,
            version_a=version_a,
            version_b=version_b,
        )

    async def invalidate(self, name: str, *, version: int | None = None) -> bool:
        return await self.cache_service.invalidate(name=name, version=version)

    async def cache_stamp(self, name: str) -> float | None:
        return await self.cache_service.cache_stamp(name=name)

    async def warm_cache(self, names: Sequence[str] | None = None) -> CacheWarmupResult:
        return await self.cache_service.warm_cache(names)

    async def cache_stats(self, name: str) -> CacheStats:
        return await self.cache_service.cache_stats(name=name)

    async def clear_stats(self) -> bool:
        return await self.cache_service.clear_stats()

    def validate_config(
        self,
        config: object,
        schema: ConfigSchema | None = None,
        *,
        strict: bool | None = None,
    ) -> ConfigValidationResult:
        """Validate config against schema, defaulting to the store's schema and strictness."""

        return validate_config(
            config,
            self._config_schema if schema is None else schema,
            strict=self._config_schema_strict if strict is None else strict,
        )

    async def _invalidate_changed(self, record: TemplateRecord) -> None:
        await self.cache_service.invalidate(name=record.name)
        await self.cache_service.invalidate(name=record.name, version=record.version)
