"""In-process template repository for tests and single-process deployments."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from copy import deepcopy
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from prompt_store.application.ports.template_repository_port import (
    DuplicateProductionTemplateError,
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

NowCallable = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def _copy(record: TemplateRecord) -> TemplateRecord:
    return replace(record, config=deepcopy(record.config))


class InMemoryTemplateRepository(TemplateRepositoryPort):
    """Dict-backed repository honouring the same invariants as the SQL adapter."""

    def __init__(self, *, now: NowCallable = _utc_now) -> None:
        self._records: dict[UUID, TemplateRecord] = {}
        self._version_counters: dict[str, int] = {}
        self._now = now

    async def get_by_version(self, *, name: str, version: int) -> TemplateRecord | None:
        for record in self._records.values():
            if record.name == name and record.version == version:
                return _copy(record)
        return None

    async def get_latest_by_state(
        self,
        *,
        name: str,
        state: TemplateState,
    ) -> TemplateRecord | None:
        matches = [record for record in self._sorted(name) if record.state is state]
        return _copy(matches[0]) if matches else None

    async def list_versions(self, *, name: str) -> list[TemplateRecord]:
        return [_copy(record) for record in self._sorted(name)]

    async def list_by_names_and_state(
        self,
        *,
        names: Sequence[str],
        state: TemplateState,
    ) -> list[TemplateRecord]:
        records: list[TemplateRecord] = []
        for name in sorted(set(names)):
            records.extend(
                _copy(record) for record in self._sorted(name) if record.state is state
            )
        return records

    async def list_names(self, *, state: TemplateState | None = None) -> list[str]:
        return sorted(
            {
                record.name
                for record in self._records.values()
                if state is None or record.state is state
            }
        )

    async def create_next_version(self, payload: TemplateCreateInput) -> TemplateRecord:
        existing = [
            record.version for record in self._records.values() if record.name == payload.name
        ]
        version = max(self._version_counters.get(payload.name, 0), max(existing, default=0)) + 1
        self._version_counters[payload.name] = version

        created_at = self._now()
        record = TemplateRecord(
            template_id=uuid4(),
            name=payload.name,
            version=version,
            state=TemplateState.DRAFT,
            content=payload.content,
            config=normalize_template_config(deepcopy(payload.config)),
            commit_message=payload.commit_message,
            created_by=payload.created_by,
            created_at=created_at,
            updated_at=created_at,
        )
        self._records[record.template_id] = record
        return _copy(record)

    async def update_content(
        self,
        *,
        template_id: UUID,
        content: str,
        config: dict[str, Any],
    ) -> TemplateRecord | None:
        record = self._records.get(template_id)
        if record is None or not record.is_draft:
            return None

        updated = replace(
            record,
            content=content,
            config=normalize_template_config(deepcopy(config)),
            updated_at=self._now(),
        )
        self._records[template_id] = updated
        return _copy(updated)

    async def apply_state(self, payload: TemplateStateUpdateInput) -> TemplateRecord:
        record = self._records.get(payload.template_id)
        if record is None:
            raise TemplateNotFoundError(name=payload.name)

        others = [
            other
            for other in self._records.values()
            if other.name == payload.name
            and other.is_production
            and other.template_id != payload.template_id
        ]
        if (
            payload.to_state is TemplateState.PRODUCTION
            and others
            and not payload.archive_other_production
        ):
            raise DuplicateProductionTemplateError(name=payload.name)

        now = self._now()
        if payload.archive_other_production:
            for other in others:
                self._records[other.template_id] = replace(
                    other,
                    state=TemplateState.ARCHIVED,
                    updated_at=now,
                )

        updated = replace(record, state=payload.to_state, updated_at=now)
        self._records[payload.template_id] = updated
        return _copy(updated)

    async def delete(self, *, template_id: UUID) -> bool:
        return self._records.pop(template_id, None) is not None

    def _sorted(self, name: str) -> list[TemplateRecord]:
        return sorted(
            (record for record in self._records.values() if record.name == name),
            key=lambda record: record.version,
            reverse=True,
        )
