"""Port for durable storage of prompt template versions."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol
from uuid import UUID

from prompt_store.domain.template_state import TemplateState
from prompt_store.domain.templates import TemplateRecord


class DuplicateProductionTemplateError(ValueError):
    """Raised when a write would leave two production versions for one name."""

    def __init__(self, *, name: str) -> None:
        self.name = name
        super().__init__(f"Only one production version allowed per prompt name: '{name}'")


class DuplicateTemplateVersionError(ValueError):
    """Raised when a concurrent writer already took the same (name, version)."""

    def __init__(self, *, name: str, version: int) -> None:
        self.name = name
        self.version = version
        super().__init__(f"Prompt '{name}' version {version} already exists")


@dataclass(frozen=True)
class TemplateCreateInput:
    """Payload required to insert a new draft template version."""

    name: str
    content: str
    config: dict[str, Any] = field(default_factory=dict)
    commit_message: str | None = None
    created_by: str | None = None


@dataclass(frozen=True)
class TemplateStateUpdateInput:
    """Payload for one lifecycle state change of a stored version."""

    template_id: UUID
    name: str
    to_state: TemplateState
    archive_other_production: bool = False


class TemplateRepositoryPort(Protocol):
    """Prompt template persistence contract."""

    async def get_by_version(self, *, name: str, version: int) -> TemplateRecord | None:
        """Return one version of a template, or None when absent."""

    async def get_latest_by_state(
        self,
        *,
        name: str,
        state: TemplateState,
    ) -> TemplateRecord | None:
        """Return highest version of name in state, or None when absent."""

    async def list_versions(self, *, name: str) -> list[TemplateRecord]:
        """Return every version of name, newest first."""

    async def list_by_names_and_state(
        self,
        *,
        names: Sequence[str],
        state: TemplateState,
    ) -> list[TemplateRecord]:
        """Return versions of the given names that are in state, newest first per name."""

    async def list_names(self, *, state: TemplateState | None = None) -> list[str]:
        """Return distinct template names, optionally restricted to one state."""

    async def create_next_version(self, payload: TemplateCreateInput) -> TemplateRecord:
        """Insert a draft with the next never-used version number for its name."""

    async def update_content(
        self,
        *,
        template_id: UUID,
        content: str,
        config: dict[str, Any],
    ) -> TemplateRecord | None:
        """Persist new content/config for a draft, returning the updated row."""

    async def apply_state(self, payload: TemplateStateUpdateInput) -> TemplateRecord:
        """Persist a state change, archiving sibling production rows when requested."""

    async def delete(self, *, template_id: UUID) -> bool:
        """Delete one version row, returning whether a row was removed."""
