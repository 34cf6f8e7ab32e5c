"""Deterministic transition table for template version lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from prompt_store.domain.template_state import TemplateEvent, TemplateState


class InvalidTemplateTransitionError(ValueError):
    """Raised when a lifecycle event is not allowed from the current state."""


@dataclass(frozen=True)
class TemplateTransition:
    """Resolved target state plus its side effect on sibling versions."""

    from_state: TemplateState
    event: TemplateEvent
    to_state: TemplateState
    archives_other_production: bool


_TRANSITIONS: Final[dict[tuple[TemplateState, TemplateEvent], TemplateTransition]] = {
    (TemplateState.DRAFT, TemplateEvent.PROMOTE): TemplateTransition(
        from_state=TemplateState.DRAFT,
        event=TemplateEvent.PROMOTE,
        to_state=TemplateState.PRODUCTION,
        archives_other_production=True,
    ),
    (TemplateState.PRODUCTION, TemplateEvent.DEMOTE): TemplateTransition(
        from_state=TemplateState.PRODUCTION,
        event=TemplateEvent.DEMOTE,
        to_state=TemplateState.ARCHIVED,
        archives_other_production=False,
    ),
    (TemplateState.ARCHIVED, TemplateEvent.RESTORE): TemplateTransition(
        from_state=TemplateState.ARCHIVED,
        event=TemplateEvent.RESTORE,
        to_state=TemplateState.PRODUCTION,
        archives_other_production=True,
    ),
}


def can_transition(from_state: TemplateState, event: TemplateEvent) -> bool:
    """Return whether the event is valid for the template state machine."""

    return (from_state, event) in _TRANSITIONS


def resolve_transition(from_state: TemplateState, event: TemplateEvent) -> TemplateTransition:
    """Return the transition for one event, else raise deterministic domain error."""

    if not can_transition(from_state, event):
        raise InvalidTemplateTransitionError(
            f"Invalid template transition: cannot {event.value} from {from_state.value}"
        )
    return _TRANSITIONS[(from_state, event)]
