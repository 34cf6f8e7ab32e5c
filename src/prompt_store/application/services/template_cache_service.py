"""Cache-aside reads, invalidation and warm-up for prompt templates."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from prompt_store.application.dto.template_cache_models import (
    decode_cached_template,
    encode_cached_template,
)
from prompt_store.application.ports.template_cache_port import TemplateCachePort
from prompt_store.application.ports.template_repository_port import TemplateRepositoryPort
from prompt_store.application.services.template_cache_statistics import (
    CacheStats,
    TemplateCacheStatistics,
)
from prompt_store.domain.template_state import TemplateState
from prompt_store.domain.templates import (
    FallbackTemplate,
    FetchedTemplate,
    TemplateNotFoundError,
    TemplateRecord,
)

DEFAULT_CACHE_NAMESPACE = "prompt_store:prompt"
DEFAULT_CACHE_TTL_SECONDS = 300
NowCallable = Callable[[], float]
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheWarmupFailure:
    """One template name that could not be warmed."""

    name: str
    error: str


@dataclass(frozen=True)
class CacheWarmupResult:
    """Names warmed successfully and names that failed, collected independently."""

    success: list[str] = field(default_factory=list)
    failed: list[CacheWarmupFailure] = field(default_factory=list)


class TemplateCacheService:
    """Serve template reads through a TTL cache keyed by name and state/version.

    The cache is a transparent optimization: any cache-layer failure is logged
    and the read is answered straight from the repository.
    """

    def __init__(
        self,
        *,
        templates: TemplateRepositoryPort,
        cache: TemplateCachePort,
        statistics: TemplateCacheStatistics,
        namespace: str = DEFAULT_CACHE_NAMESPACE,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        monitoring_enabled: bool = True,
        critical_names: Sequence[str] = (),
        now: NowCallable = time.time,
    ) -> None:
        self._templates = templates
        self._cache = cache
        self._statistics = statistics
        self._namespace = namespace
        self._ttl_seconds = ttl_seconds
        self._monitoring_enabled = monitoring_enabled
        self._critical_names = list(critical_names)
        self._now = now

    @property
    def caching_enabled(self) -> bool:
        return self._ttl_seconds > 0

    def cache_key(
        self,
        *,
        name: str,
        state: TemplateState | None = None,
        version: int | None = None,
    ) -> str:
        """Derive the cache slot for a lookup; version wins over state."""

        if version is not None:
            return f"{self._namespace}:{name}:version:{version}"
        if state is not None:
            return f"{self._namespace}:{name}:state:{TemplateState(state).value}"
        return f"{self._namespace}:{name}:production"

    def cache_stamp_key(self, *, name: str) -> str:
        return f"{self._namespace}:{name}:stamp"

    async def fetch(
        self,
        *,
        name: str,
        state: TemplateState | None = TemplateState.PRODUCTION,
        version: int | None = None,
        fallback: str | None = None,
        bypass_cache: bool = False,
    ) -> FetchedTemplate:
        """Return the matching version, a fallback wrapper, or raise not-found."""

        if bypass_cache or not self.caching_enabled:
            return await self._fetch_from_store(
                name=name, state=state, version=version, fallback=fallback
            )

        key = self.cache_key(name=name, state=state, version=version)
        try:
            cached = await self._read_cached(key)
        except Exception as error:  # noqa: BLE001
            logger.error("template_cache_read_failed name=%s key=%s error=%s", name, key, error)
            return await self._fetch_from_store(
                name=name, state=state, version=version, fallback=fallback
            )

        if cached is not None:
            if self._monitoring_enabled and isinstance(cached, TemplateRecord):
                await self._statistics.record_hit(name)
            return cached

        template = await self._fetch_from_store(
            name=name, state=state, version=version, fallback=fallback
        )
        try:
            await self._cache.set(
                key,
                encode_cached_template(template),
                ttl_seconds=self._ttl_seconds,
            )
        except Exception as error:  # noqa: BLE001
            logger.error("template_cache_write_failed name=%s key=%s error=%s", name, key, error)

        if self._monitoring_enabled and isinstance(template, TemplateRecord):
            await self._statistics.record_miss(name)
        return template

    async def fetch_all(
        self,
        *,
        names: Sequence[str],
        state: TemplateState = TemplateState.PRODUCTION,
    ) -> dict[str, TemplateRecord]:
        """Return one record per name found in state, straight from the repository."""

        records = await self._templates.list_by_names_and_state(names=names, state=state)
        templates: dict[str, TemplateRecord] = {}
        for record in records:
            templates.setdefault(record.name, record)
        return templates

    async def invalidate(self, *, name: str, version: int | None = None) -> bool:
        """Drop cached entries for name (or one version of it) and bump its stamp."""

        if version is not None:
            keys = [self.cache_key(name=name, version=version)]
        else:
            keys = [self.cache_key(name=name, state=state) for state in TemplateState]
            keys.append(self.cache_key(name=name))

        try:
            for key in keys:
                await self._cache.delete(key)
            await self._cache.set(self.cache_stamp_key(name=name), repr(self._now()))
        except Exception as error:  # noqa: BLE001
            logger.error("template_cache_invalidate_failed name=%s error=%s", name, error)
            return False

        if version is None:
            logger.info("template_cache_invalidated name=%s", name)
        else:
            logger.info("template_cache_invalidated name=%s version=%s", name, version)
        return True

    async def cache_stamp(self, *, name: str) -> float | None:
        """Return the last invalidation time for name, or None if never invalidated."""

        try:
            raw = await self._cache.get(self.cache_stamp_key(name=name))
        except Exception as error:  # noqa: BLE001
            logger.error("template_cache_stamp_read_failed name=%s error=%s", name, error)
            return None
        if raw is None:
            return None
        return float(raw)

    async def critical_template_names(self) -> list[str]:
        """Return configured critical names, else every name with a production version."""

        if self._critical_names:
            return list(self._critical_names)
        return await self._templates.list_names(state=TemplateState.PRODUCTION)

    async def warm_cache(self, names: Sequence[str] | None = None) -> CacheWarmupResult:
        """Fetch the production version of each name so later reads hit the cache."""

        target_names = list(names) if names is not None else await self.critical_template_names()
        result = CacheWarmupResult()

        for name in target_names:
            try:
                await self.fetch(name=name, state=TemplateState.PRODUCTION)
            except Exception as error:  # noqa: BLE001
                result.failed.append(CacheWarmupFailure(name=name, error=str(error)))
                logger.error("template_cache_warm_failed name=%s error=%s", name, error)
                continue
            result.success.append(name)

        logger.info(
            "template_cache_warm_completed success=%s failed=%s",
            len(result.success),
            len(result.failed),
        )
        return result

    async def cache_stats(self, *, name: str) -> CacheStats:
        return await self._statistics.stats(name)

    async def clear_stats(self) -> bool:
        """Reset hit/miss counters for every name known to the repository.

        Returns False when the cache rejects the reset.
        """

        names = await self._templates.list_names()
        return await self._statistics.clear(names)

    async def _read_cached(self, key: str) -> FetchedTemplate | None:
        if not await self._cache.exists(key):
            return None
        raw = await self._cache.get(key)
        if raw is None:
            return None
        return decode_cached_template(raw)

    async def _fetch_from_store(
        self,
        *,
        name: str,
        state: TemplateState | None,
        version: int | None,
        fallback: str | None,
    ) -> FetchedTemplate:
        if version is not None:
            record = await self._templates.get_by_version(name=name, version=version)
        else:
            record = await self._templates.get_latest_by_state(
                name=name,
                state=TemplateState(state) if state is not None else TemplateState.PRODUCTION,
            )

        if record is not None:
            return record
        if fallback:
            return FallbackTemplate(name=name, content=fallback)
        raise TemplateNotFoundError(name=name, version=version)
