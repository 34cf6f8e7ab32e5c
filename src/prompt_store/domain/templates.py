"""Prompt template version entity and its fallback stand-in."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from prompt_store.domain.template_state import TemplateState
from prompt_store.domain.template_variables import (
    MissingTemplateVariablesError,
    extract_top_level_variables,
    find_unresolved_variables,
    strip_sections,
    substitute_variables,
)
from prompt_store.domain.template_variables import (
    compile_with_validation as _compile_with_validation,
)

FALLBACK_STATE = "fallback"


class TemplateNotFoundError(LookupError):
    """Raised when no template matches a name/state/version lookup."""

    def __init__(self, *, name: str, version: int | None = None) -> None:
        self.name = name
        self.version = version
        if version is None:
            super().__init__(f"Prompt '{name}' not found")
        else:
            super().__init__(f"Prompt '{name}' version {version} not found")


class ImmutableTemplateError(PermissionError):
    """Raised when content/config edits target a released template version."""

    def __init__(self, *, name: str, version: int, state: TemplateState) -> None:
        self.name = name
        self.version = version
        self.state = state
        super().__init__(
            f"Cannot edit {state.value} prompt '{name}' v{version}. Clone to draft first."
        )


def normalize_template_config(raw_config: object) -> dict[str, Any]:
    """Return config as a dict, parsing serialized JSON and discarding bad shapes."""

    if raw_config is None:
        return {}
    if isinstance(raw_config, (str, bytes)):
        try:
            raw_config = json.loads(raw_config)
        except ValueError:
            return {}
    if not isinstance(raw_config, Mapping):
        return {}
    return dict(raw_config)


@dataclass(frozen=True)
class TemplateRecord:
    """Persisted prompt template version."""

    template_id: UUID
    name: str
    version: int
    state: TemplateState
    content: str
    config: dict[str, Any] = field(default_factory=dict)
    commit_message: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_draft(self) -> bool:
        return self.state is TemplateState.DRAFT

    @property
    def is_production(self) -> bool:
        return self.state is TemplateState.PRODUCTION

    @property
    def is_archived(self) -> bool:
        return self.state is TemplateState.ARCHIVED

    @property
    def is_persisted(self) -> bool:
        return True

    @property
    def is_editable(self) -> bool:
        """Only drafts accept content/config edits."""

        return self.is_draft

    @property
    def is_immutable(self) -> bool:
        return self.is_production or self.is_archived

    def can_delete(self, *, allow_production_deletion: bool = False) -> bool:
        """Return whether this version may be removed from the store."""

        if self.is_production:
            return allow_production_deletion
        return True

    def ensure_editable(self) -> None:
        """Raise before persisting an edit to a released version."""

        if self.is_immutable:
            raise ImmutableTemplateError(name=self.name, version=self.version, state=self.state)

    def compile(self, variables: Mapping[str, Any] | None = None) -> str:
        """Substitute `{{key}}` placeholders, leaving unknown ones verbatim."""

        return substitute_variables(self.content, variables)

    def compile_with_validation(self, variables: Mapping[str, Any] | None = None) -> str:
        """Substitute placeholders and raise when any remain unresolved."""

        return _compile_with_validation(self.content, variables)

    def extract_variables(self) -> list[str]:
        return extract_top_level_variables(self.content)

    def to_export_dict(self) -> dict[str, Any]:
        """Return a portable representation without storage identifiers."""

        return {
            "name": self.name,
            "version": self.version,
            "state": self.state.value,
            "prompt": self.content,
            "config": dict(self.config),
            "commit_message": self.commit_message,
            "created_by": self.created_by,
        }

    def __str__(self) -> str:
        return f"Prompt({self.name} v{self.version} {self.state.value})"


@dataclass(frozen=True)
class FallbackTemplate:
    """Non-persisted stand-in returned when no template matches a lookup.

    It answers the same read surface as `TemplateRecord`: `version` is `None`,
    `config` is empty and every lifecycle predicate is false. Variable
    extraction and validated compilation only consider top-level placeholders,
    so variables used inside `{{#section}}` / `{{^section}}` blocks are never
    demanded.
    """

    name: str
    content: str
    config: dict[str, Any] = field(default_factory=dict)

    @property
    def version(self) -> None:
        return None

    @property
    def template_id(self) -> None:
        return None

    @property
    def state(self) -> Literal["fallback"]:
        return FALLBACK_STATE

    @property
    def is_draft(self) -> bool:
        return False

    @property
    def is_production(self) -> bool:
        return False

    @property
    def is_archived(self) -> bool:
        return False

    @property
    def is_persisted(self) -> bool:
        return False

    def compile(self, variables: Mapping[str, Any] | None = None) -> str:
        return substitute_variables(self.content, variables)

    def extract_variables(self) -> list[str]:
        return extract_top_level_variables(self.content)

    def compile_with_validation(self, variables: Mapping[str, Any] | None = None) -> str:
        compiled = substitute_variables(self.content, variables)
        remaining = find_unresolved_variables(strip_sections(compiled))
        if remaining:
            raise MissingTemplateVariablesError(variables=remaining)
        return compiled

    def __str__(self) -> str:
        return f"FallbackPrompt({self.name})"


FetchedTemplate = TemplateRecord | FallbackTemplate
