"""Version lifecycle management for named prompt templates."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from prompt_store.application.ports.template_repository_port import (
    TemplateCreateInput,
    TemplateRepositoryPort,
    TemplateStateUpdateInput,
)
from prompt_store.domain.config_schema import (
    ConfigSchema,
    ConfigSchemaViolationError,
    validate_config,
)
from prompt_store.domain.template_state import TemplateEvent, TemplateState
from prompt_store.domain.templates import (
    TemplateNotFoundError,
    TemplateRecord,
    normalize_template_config,
)
from prompt_store.domain.transitions import (
    InvalidTemplateTransitionError,
    can_transition,
    resolve_transition,
)

TemplateChangeHook = Callable[[TemplateRecord], Awaitable[object]]
logger = logging.getLogger(__name__)


class TemplateDeletionNotAllowedError(PermissionError):
    """Raised when a version may not be removed in its current state."""

    def __init__(self, *, name: str, version: int, state: TemplateState) -> None:
        self.name = name
        self.version = version
        self.state = state
        super().__init__(f"Cannot delete {state.value} prompt '{name}' v{version}")


class TemplateVersionService:
    """Create, edit, and move template versions through their lifecycle.

    Every state change goes through `_transition`, which resolves the event
    against the transition table before anything is written. After each
    committed write the optional change hook receives the written record.
    """

    def __init__(
        self,
        *,
        templates: TemplateRepositoryPort,
        on_change: TemplateChangeHook | None = None,
        config_schema: ConfigSchema | None = None,
        config_schema_strict: bool = False,
        allow_production_deletion: bool = False,
    ) -> None:
        self._templates = templates
        self._on_change = on_change
        self._config_schema = config_schema
        self._config_schema_strict = config_schema_strict
        self._allow_production_deletion = allow_production_deletion

    async def create(
        self,
        *,
        name: str,
        content: str,
        config: Mapping[str, Any] | str | None = None,
        commit_message: str | None = None,
        created_by: str | None = None,
        promote_to_production: bool = False,
    ) -> TemplateRecord:
        """Insert the next draft version of name, optionally promoting it."""

        normalized_config = self._validated_config(config)
        record = await self._templates.create_next_version(
            TemplateCreateInput(
                name=name,
                content=content,
                config=normalized_config,
                commit_message=commit_message,
                created_by=created_by,
            )
        )
        logger.info("template_version_created name=%s version=%s", record.name, record.version)
        await self._notify_changed(record)

        if promote_to_production:
            return await self._transition(record, TemplateEvent.PROMOTE)
        return record

    async def update_draft(
        self,
        *,
        name: str,
        version: int,
        content: str | None = None,
        config: Mapping[str, Any] | str | None = None,
    ) -> TemplateRecord:
        """Replace content and/or config of a draft version."""

        record = await self.get_version(name=name, version=version)
        record.ensure_editable()

        new_config = dict(record.config) if config is None else self._validated_config(config)
        updated = await self._templates.update_content(
            template_id=record.template_id,
            content=record.content if content is None else content,
            config=new_config,
        )
        if updated is None:
            # Released between the read above and the draft-only update.
            current = await self.get_version(name=name, version=version)
            current.ensure_editable()
            raise TemplateNotFoundError(name=name, version=version)

        logger.info("template_version_updated name=%s version=%s", name, version)
        await self._notify_changed(updated)
        return updated

    async def promote(self, *, name: str, version: int) -> TemplateRecord:
        """Make a draft the production version; already-production is a no-op."""

        record = await self.get_version(name=name, version=version)
        if record.is_production:
            return record
        return await self._transition(record, TemplateEvent.PROMOTE)

    async def demote(self, *, name: str, version: int) -> TemplateRecord:
        record = await self.get_version(name=name, version=version)
        return await self._transition(record, TemplateEvent.DEMOTE)

    async def restore(self, *, name: str, version: int) -> TemplateRecord:
        record = await self.get_version(name=name, version=version)
        return await self._transition(record, TemplateEvent.RESTORE)

    async def rollback(self, *, name: str, to_version: int) -> TemplateRecord:
        """Return an earlier released version to production."""

        record = await self.get_version(name=name, version=to_version)
        if record.is_production:
            return record
        if not can_transition(record.state, TemplateEvent.RESTORE):
            raise InvalidTemplateTransitionError("Cannot rollback to draft version")
        return await self._transition(record, TemplateEvent.RESTORE)

    async def versions(self, *, name: str) -> list[TemplateRecord]:
        return await self._templates.list_versions(name=name)

    async def get_version(self, *, name: str, version: int) -> TemplateRecord:
        record = await self._templates.get_by_version(name=name, version=version)
        if record is None:
            raise TemplateNotFoundError(name=name, version=version)
        return record

    async def latest_version(self, *, name: str) -> TemplateRecord | None:
        versions = await self.versions(name=name)
        return versions[0] if versions else None

    async def previous_version(self, *, name: str, version: int) -> TemplateRecord | None:
        """Return the closest lower version of name, if any."""

        lower = [record for record in await self.versions(name=name) if record.version < version]
        return lower[0] if lower else None

    async def next_version(self, *, name: str, version: int) -> TemplateRecord | None:
        """Return the closest higher version of name, if any."""

        higher = [record for record in await self.versions(name=name) if record.version > version]
        return higher[-1] if higher else None

    async def clone_to_draft(
        self,
        *,
        name: str,
        version: int,
        created_by: str | None = None,
    ) -> TemplateRecord:
        """Copy any version into a new editable draft."""

        source = await self.get_version(name=name, version=version)
        return await self.create(
            name=name,
            content=source.content,
            config=dict(source.config),
            commit_message=f"Cloned from v{source.version} ({source.state.value})",
            created_by=created_by,
        )

    async def delete_version(self, *, name: str, version: int) -> bool:
        record = await self.get_version(name=name, version=version)
        if not record.can_delete(allow_production_deletion=self._allow_production_deletion):
            raise TemplateDeletionNotAllowedError(
                name=name,
                version=version,
                state=record.state,
            )

        deleted = await self._templates.delete(template_id=record.template_id)
        if not deleted:
            raise TemplateNotFoundError(name=name, version=version)

        logger.info("template_version_deleted name=%s version=%s", name, version)
        await self._notify_changed(record)
        return True

    async def _transition(self, record: TemplateRecord, event: TemplateEvent) -> TemplateRecord:
        transition = resolve_transition(record.state, event)
        displaced: TemplateRecord | None = None
        if transition.archives_other_production:
            displaced = await self._templates.get_latest_by_state(
                name=record.name,
                state=TemplateState.PRODUCTION,
            )
        updated = await self._templates.apply_state(
            TemplateStateUpdateInput(
                template_id=record.template_id,
                name=record.name,
                to_state=transition.to_state,
                archive_other_production=transition.archives_other_production,
            )
        )
        logger.info(
            "template_state_changed name=%s version=%s event=%s from_state=%s to_state=%s",
            record.name,
            record.version,
            event.value,
            record.state.value,
            updated.state.value,
        )
        await self._notify_changed(updated)
        if displaced is not None and displaced.template_id != updated.template_id:
            archived = await self._templates.get_by_version(
                name=displaced.name,
                version=displaced.version,
            )
            if archived is not None:
                await self._notify_changed(archived)
        return updated

    def _validated_config(self, config: Mapping[str, Any] | str | None) -> dict[str, Any]:
        normalized = normalize_template_config(config)
        result = validate_config(
            normalized,
            self._config_schema,
            strict=self._config_schema_strict,
        )
        if not result.valid:
            raise ConfigSchemaViolationError(errors=result.errors)
        return normalized

    async def _notify_changed(self, record: TemplateRecord) -> None:
        if self._on_change is not None:
            await self._on_change(record)
