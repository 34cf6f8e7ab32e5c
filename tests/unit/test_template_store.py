from __future__ import annotations

import pytest

from prompt_store.application.services.template_store import TemplateStore
from prompt_store.domain.config_schema import ConfigFieldRule, ConfigValueType
from prompt_store.domain.template_state import TemplateState
from prompt_store.domain.templates import FallbackTemplate
from prompt_store.infrastructure.cache.memory_cache import InMemoryTemplateCache
from prompt_store.infrastructure.memory.template_repository import InMemoryTemplateRepository


def _store(**overrides: object) -> TemplateStore:
    return TemplateStore(
        templates=InMemoryTemplateRepository(),
        cache=InMemoryTemplateCache(),
        namespace="test:prompt",
        **overrides,  # type: ignore[arg-type]
    )


@pytest.mark.asyncio
async def test_writes_invalidate_cached_reads() -> None:
    store = _store()
    await store.create("p", "one", promote_to_production=True)
    assert (await store.fetch("p")).content == "one"

    await store.create("p", "two", promote_to_production=True)

    assert (await store.fetch("p")).content == "two"
    assert await store.cache_stamp("p") is not None


@pytest.mark.asyncio
async def test_version_keyed_reads_see_state_changes() -> None:
    store = _store()
    await store.create("p", "one", promote_to_production=True)
    cached = await store.fetch("p", version=1)

    await store.demote("p", 1)
    refreshed = await store.fetch("p", version=1)

    assert cached.state is TemplateState.PRODUCTION
    assert refreshed.state is TemplateState.ARCHIVED


@pytest.mark.asyncio
async def test_promoting_new_version_refreshes_cached_copy_of_archived_sibling() -> None:
    store = _store()
    await store.create("p", "one", promote_to_production=True)
    cached = await store.fetch("p", version=1)

    await store.create("p", "two", promote_to_production=True)
    sibling = await store.fetch("p", version=1)
    await store.fetch("p", version=2)
    rolled_back = await store.rollback("p", 1)
    displaced = await store.fetch("p", version=2)

    assert cached.state is TemplateState.PRODUCTION
    assert sibling.state is TemplateState.ARCHIVED
    assert rolled_back.state is TemplateState.PRODUCTION
    assert displaced.state is TemplateState.ARCHIVED


@pytest.mark.asyncio
async def test_fetch_missing_with_fallback_returns_fallback_variant() -> None:
    store = _store()

    template = await store.fetch("missing", fallback="default text")

    assert isinstance(template, FallbackTemplate)
    assert template.version is None
    assert template.content == "default text"


@pytest.mark.asyncio
async def test_facade_exposes_comparison_and_navigation() -> None:
    store = _store()
    await store.create("p", "line1\nline2")
    await store.create("p", "line1\nline3")

    comparison = await store.compare_versions("p", 1, 2)
    versions = await store.versions("p")

    assert comparison.diff.added_lines == ["line3"]
    assert [record.version for record in versions] == [2, 1]
    assert (await store.latest_version("p")).version == 2  # type: ignore[union-attr]


def test_validate_config_uses_store_defaults_unless_overridden() -> None:
    strict_store = _store(config_schema_strict=True)
    schema = {"mode": ConfigFieldRule(type=ConfigValueType.STRING, required=True)}

    assert strict_store.validate_config({"foo": 1}).errors == ["Unknown configuration keys: foo"]
    assert strict_store.validate_config({"foo": 1}, strict=False).valid is True
    assert strict_store.validate_config({"x": 1}, schema, strict=False).errors == [
        "mode is required"
    ]
