"""Pydantic payloads for templates stored in the read cache."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from prompt_store.domain.template_state import TemplateState
from prompt_store.domain.templates import FallbackTemplate, FetchedTemplate, TemplateRecord


class StrictModel(BaseModel):
    """Base model with strict unknown-field rejection."""

    model_config = ConfigDict(extra="forbid")


class CachedTemplateRecord(StrictModel):
    """Cached copy of a persisted template version."""

    kind: Literal["record"] = "record"
    template_id: UUID
    name: str
    version: int = Field(gt=0)
    state: TemplateState
    content: str
    config: dict[str, Any]
    commit_message: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CachedFallbackTemplate(StrictModel):
    """Cached fallback value served when no version matched."""

    kind: Literal["fallback"] = "fallback"
    name: str
    content: str


CachedTemplatePayload = Annotated[
    CachedTemplateRecord | CachedFallbackTemplate,
    Field(discriminator="kind"),
]

_payload_adapter: TypeAdapter[CachedTemplateRecord | CachedFallbackTemplate] = TypeAdapter(
    CachedTemplatePayload
)


def encode_cached_template(template: FetchedTemplate) -> str:
    """Serialize a fetched template into its cache payload."""

    if isinstance(template, FallbackTemplate):
        fallback = CachedFallbackTemplate(name=template.name, content=template.content)
        return fallback.model_dump_json()

    return CachedTemplateRecord(
        template_id=template.template_id,
        name=template.name,
        version=template.version,
        state=template.state,
        content=template.content,
        config=template.config,
        commit_message=template.commit_message,
        created_by=template.created_by,
        created_at=template.created_at,
        updated_at=template.updated_at,
    ).model_dump_json()


def decode_cached_template(raw: str) -> FetchedTemplate:
    """Rebuild a fetched template from its cache payload."""

    payload = _payload_adapter.validate_json(raw)
    if isinstance(payload, CachedFallbackTemplate):
        return FallbackTemplate(name=payload.name, content=payload.content)

    return TemplateRecord(
        template_id=payload.template_id,
        name=payload.name,
        version=payload.version,
        state=payload.state,
        content=payload.content,
        config=payload.config,
        commit_message=payload.commit_message,
        created_by=payload.created_by,
        created_at=payload.created_at,
        updated_at=payload.updated_at,
    )
