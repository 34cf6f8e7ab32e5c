"""Lifecycle states for prompt template versions."""

from __future__ import annotations

from enum import StrEnum


class TemplateState(StrEnum):
    """Lifecycle stage of one template version."""

    DRAFT = "draft"
    PRODUCTION = "production"
    ARCHIVED = "archived"


class TemplateEvent(StrEnum):
    """Lifecycle events that move a template version between states."""

    PROMOTE = "promote"
    DEMOTE = "demote"
    RESTORE = "restore"
