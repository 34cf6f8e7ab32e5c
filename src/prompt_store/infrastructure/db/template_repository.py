"""SQLAlchemy adapter for prompt template version persistence."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any, cast
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from prompt_store.application.ports.template_repository_port import (
    DuplicateProductionTemplateError,
    DuplicateTemplateVersionError,
    TemplateCreateInput,
    TemplateRepositoryPort,
    TemplateStateUpdateInput,
)
from prompt_store.domain.template_state import TemplateState
from prompt_store.domain.templates import (
    TemplateNotFoundError,
    TemplateRecord,
    normalize_template_config,
)
from prompt_store.infrastructure.db.metadata import (
    prompt_template_version_counters,
    prompt_templates,
)

_RECORD_COLUMNS = (
    prompt_templates.c.id,
    prompt_templates.c.name,
    prompt_templates.c.version,
    prompt_templates.c.state,
    prompt_templates.c.content,
    prompt_templates.c.config,
    prompt_templates.c.commit_message,
    prompt_templates.c.created_by,
    prompt_templates.c.created_at,
    prompt_templates.c.updated_at,
)


def _is_duplicate_production_error(error: IntegrityError) -> bool:
    message = str(error.orig).lower()
    if "ux_prompt_templates_name_production" in message:
        return True
    return "prompt_templates.name" in message and "version" not in message


def _is_duplicate_version_error(error: IntegrityError) -> bool:
    message = str(error.orig).lower()
    return "version" in message


def _to_template_record(row: RowMapping) -> TemplateRecord:
    raw_id = row["id"]
    template_id = raw_id if isinstance(raw_id, UUID) else UUID(str(raw_id))
    return TemplateRecord(
        template_id=template_id,
        name=cast(str, row["name"]),
        version=int(row["version"]),
        state=TemplateState(cast(str, row["state"])),
        content=cast(str, row["content"]),
        config=normalize_template_config(row["config"]),
        commit_message=cast("str | None", row["commit_message"]),
        created_by=cast("str | None", row["created_by"]),
        created_at=cast("datetime | None", row["created_at"]),
        updated_at=cast("datetime | None", row["updated_at"]),
    )


class SqlAlchemyTemplateRepository(TemplateRepositoryPort):
    """Prompt template repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_version(self, *, name: str, version: int) -> TemplateRecord | None:
        statement = (
            sa.select(*_RECORD_COLUMNS)
            .where(
                prompt_templates.c.name == name,
                prompt_templates.c.version == version,
            )
            .limit(1)
        )

        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_template_record(row)

    async def get_latest_by_state(
        self,
        *,
        name: str,
        state: TemplateState,
    ) -> TemplateRecord | None:
        """Return highest version of name in state."""

        statement = (
            sa.select(*_RECORD_COLUMNS)
            .where(
                prompt_templates.c.name == name,
                prompt_templates.c.state == state.value,
            )
            .order_by(prompt_templates.c.version.desc())
            .limit(1)
        )

        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_template_record(row)

    async def list_versions(self, *, name: str) -> list[TemplateRecord]:
        statement = (
            sa.select(*_RECORD_COLUMNS)
            .where(prompt_templates.c.name == name)
            .order_by(prompt_templates.c.version.desc())
        )

        async with self._session_factory() as session:
            result = await session.execute(statement)

        return [_to_template_record(row) for row in result.mappings().all()]

    async def list_by_names_and_state(
        self,
        *,
        names: Sequence[str],
        state: TemplateState,
    ) -> list[TemplateRecord]:
        if not names:
            return []

        statement = (
            sa.select(*_RECORD_COLUMNS)
            .where(
                prompt_templates.c.name.in_(list(names)),
                prompt_templates.c.state == state.value,
            )
            .order_by(prompt_templates.c.name.asc(), prompt_templates.c.version.desc())
        )

        async with self._session_factory() as session:
            result = await session.execute(statement)

        return [_to_template_record(row) for row in result.mappings().all()]

    async def list_names(self, *, state: TemplateState | None = None) -> list[str]:
        statement = sa.select(prompt_templates.c.name).distinct()
        if state is not None:
            statement = statement.where(prompt_templates.c.state == state.value)
        statement = statement.order_by(prompt_templates.c.name.asc())

        async with self._session_factory() as session:
            result = await session.execute(statement)

        return [cast(str, name) for name in result.scalars().all()]

    async def create_next_version(self, payload: TemplateCreateInput) -> TemplateRecord:
        """Insert a draft numbered above both the counter and any existing row."""

        counter_statement = (
            sa.select(prompt_template_version_counters.c.last_version)
            .where(prompt_template_version_counters.c.name == payload.name)
            .with_for_update()
        )
        max_version_statement = sa.select(sa.func.max(prompt_templates.c.version)).where(
            prompt_templates.c.name == payload.name
        )

        async with self._session_factory() as session:
            try:
                counter = (await session.execute(counter_statement)).scalar_one_or_none()
                max_existing = (await session.execute(max_version_statement)).scalar_one_or_none()
                version = max(int(counter or 0), int(max_existing or 0)) + 1

                if counter is None:
                    await session.execute(
                        sa.insert(prompt_template_version_counters).values(
                            name=payload.name,
                            last_version=version,
                        )
                    )
                else:
                    await session.execute(
                        sa.update(prompt_template_version_counters)
                        .where(prompt_template_version_counters.c.name == payload.name)
                        .values(last_version=version)
                    )

                result = await session.execute(
                    sa.insert(prompt_templates)
                    .values(
                        id=uuid4(),
                        name=payload.name,
                        version=version,
                        state=TemplateState.DRAFT.value,
                        content=payload.content,
                        config=dict(payload.config),
                        commit_message=payload.commit_message,
                        created_by=payload.created_by,
                    )
                    .returning(*_RECORD_COLUMNS)
                )
                row = result.mappings().one()
                await session.commit()
            except IntegrityError as error:
                await session.rollback()
                if _is_duplicate_version_error(error):
                    raise DuplicateTemplateVersionError(
                        name=payload.name,
                        version=version,
                    ) from error
                raise

        return _to_template_record(row)

    async def update_content(
        self,
        *,
        template_id: UUID,
        content: str,
        config: dict[str, Any],
    ) -> TemplateRecord | None:
        statement = (
            sa.update(prompt_templates)
            .where(
                prompt_templates.c.id == template_id,
                prompt_templates.c.state == TemplateState.DRAFT.value,
            )
            .values(
                content=content,
                config=dict(config),
                updated_at=sa.func.current_timestamp(),
            )
            .returning(*_RECORD_COLUMNS)
        )

        async with self._session_factory() as session:
            result = await session.execute(statement)
            row = result.mappings().first()
            await session.commit()

        if row is None:
            return None
        return _to_template_record(row)

    async def apply_state(self, payload: TemplateStateUpdateInput) -> TemplateRecord:
        """Apply one state change and any sibling archiving in a single transaction."""

        async with self._session_factory() as session:
            try:
                if payload.archive_other_production:
                    await session.execute(
                        sa.update(prompt_templates)
                        .where(
                            prompt_templates.c.name == payload.name,
                            prompt_templates.c.state == TemplateState.PRODUCTION.value,
                            prompt_templates.c.id != payload.template_id,
                        )
                        .values(
                            state=TemplateState.ARCHIVED.value,
                            updated_at=sa.func.current_timestamp(),
                        )
                    )

                if payload.to_state is TemplateState.PRODUCTION:
                    other_production = await session.execute(
                        sa.select(prompt_templates.c.id)
                        .where(
                            prompt_templates.c.name == payload.name,
                            prompt_templates.c.state == TemplateState.PRODUCTION.value,
                            prompt_templates.c.id != payload.template_id,
                        )
                        .limit(1)
                    )
                    if other_production.first() is not None:
                        raise DuplicateProductionTemplateError(name=payload.name)

                result = await session.execute(
                    sa.update(prompt_templates)
                    .where(prompt_templates.c.id == payload.template_id)
                    .values(
                        state=payload.to_state.value,
                        updated_at=sa.func.current_timestamp(),
                    )
                    .returning(*_RECORD_COLUMNS)
                )
                row = result.mappings().first()
                if row is None:
                    raise TemplateNotFoundError(name=payload.name)
                await session.commit()
            except IntegrityError as error:
                await session.rollback()
                if _is_duplicate_production_error(error):
                    raise DuplicateProductionTemplateError(name=payload.name) from error
                raise

        return _to_template_record(row)

    async def delete(self, *, template_id: UUID) -> bool:
        statement = sa.delete(prompt_templates).where(prompt_templates.c.id == template_id)

        async with self._session_factory() as session:
            result = await session.execute(statement)
            await session.commit()

        return bool(result.rowcount)
