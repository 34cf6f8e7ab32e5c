from __future__ import annotations

from pathlib import Path

import pytest
from alembic.config import Config

from alembic import command
from prompt_store.application.services.template_store import TemplateStore
from prompt_store.domain.template_state import TemplateState
from prompt_store.domain.templates import FallbackTemplate, TemplateRecord
from prompt_store.infrastructure.cache.memory_cache import InMemoryTemplateCache
from prompt_store.infrastructure.db.session import create_session_factory
from prompt_store.infrastructure.db.template_repository import SqlAlchemyTemplateRepository


def _upgrade_head(tmp_path: Path, filename: str) -> tuple[str, str]:
    db_path = tmp_path / filename
    sync_url = f"sqlite+pysqlite:///{db_path}"
    async_url = f"sqlite+aiosqlite:///{db_path}"

    alembic_config = Config("alembic.ini")
    alembic_config.set_main_option("sqlalchemy.url", sync_url)
    command.upgrade(alembic_config, "head")

    return sync_url, async_url


def _store(async_url: str) -> TemplateStore:
    return TemplateStore(
        templates=SqlAlchemyTemplateRepository(create_session_factory(async_url)),
        cache=InMemoryTemplateCache(),
        namespace="it:prompt",
    )


@pytest.mark.asyncio
async def test_cached_reads_hit_after_first_fetch_and_miss_after_invalidate(
    tmp_path: Path,
) -> None:
    _, async_url = _upgrade_head(tmp_path, "store_cache.db")
    store = _store(async_url)
    await store.create(
        "p",
        "Hello {{name}}",
        config={"temperature": 0.2},
        promote_to_production=True,
    )

    first = await store.fetch("p")
    second = await store.fetch("p")
    stats_after_repeat = await store.cache_stats("p")
    await store.invalidate("p")
    await store.fetch("p")
    stats_after_invalidate = await store.cache_stats("p")

    assert isinstance(second, TemplateRecord)
    assert second.content == first.content
    assert (second.version, second.config) == (first.version, {"temperature": 0.2})
    assert (stats_after_repeat.hits, stats_after_repeat.misses) == (1, 1)
    assert (stats_after_invalidate.hits, stats_after_invalidate.misses) == (1, 2)


@pytest.mark.asyncio
async def test_fetch_missing_name_with_fallback_uses_default_text(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "store_fallback.db")
    store = _store(async_url)

    template = await store.fetch("missing", fallback="default text")

    assert isinstance(template, FallbackTemplate)
    assert template.version is None
    assert template.content == "default text"


@pytest.mark.asyncio
async def test_lifecycle_keeps_single_production_and_supports_rollback(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "store_lifecycle.db")
    store = _store(async_url)
    await store.create("p", "one", promote_to_production=True)
    await store.create("p", "two", promote_to_production=True)

    assert (await store.fetch("p")).content == "two"

    rolled_back = await store.rollback("p", 1)
    versions = await store.versions("p")

    assert rolled_back.state is TemplateState.PRODUCTION
    assert [(record.version, record.state) for record in versions] == [
        (2, TemplateState.ARCHIVED),
        (1, TemplateState.PRODUCTION),
    ]
    assert (await store.fetch("p")).content == "one"


@pytest.mark.asyncio
async def test_clone_edit_and_compare_against_sqlite(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "store_clone.db")
    store = _store(async_url)
    await store.create("p", "line1\nline2", promote_to_production=True)

    clone = await store.clone_to_draft("p", 1, created_by="bob")
    await store.update_draft("p", clone.version, content="line1\nline3")
    comparison = await store.compare_versions("p", 1, clone.version)

    assert clone.state is TemplateState.DRAFT
    assert comparison.diff.added_lines == ["line3"]
    assert comparison.diff.removed_lines == ["line2"]
    assert comparison.diff.changed is True
