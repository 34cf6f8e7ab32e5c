"""Pydantic models for template cache maintenance endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class StrictModel(BaseModel):
    """Base model with strict unknown-field rejection."""

    model_config = ConfigDict(extra="forbid")


class CacheStatsResponse(StrictModel):
    """Hit/miss counters for one template name."""

    name: str
    hits: int = Field(ge=0)
    misses: int = Field(ge=0)
    total: int = Field(ge=0)
    hit_rate: float = Field(ge=0.0, le=100.0)


class CacheStampResponse(StrictModel):
    """Last invalidation timestamp for one template name."""

    name: str
    stamp: float | None


class CacheInvalidateResponse(StrictModel):
    """Result of one invalidation request."""

    name: str
    version: int | None
    invalidated: bool


class CacheWarmupRequest(StrictModel):
    """Optional explicit list of names to warm."""

    names: list[str] | None = None


class CacheWarmupFailureItem(StrictModel):
    """One name that failed to warm, with the error message."""

    name: str
    error: str


class CacheWarmupResponse(StrictModel):
    """Per-name outcome of a warm-up batch."""

    success: list[str]
    failed: list[CacheWarmupFailureItem]


class CacheStatsClearedResponse(StrictModel):
    """Acknowledgement of a statistics reset."""

    ok: bool
