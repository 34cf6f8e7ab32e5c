"""Render production prompts and read model parameters for LLM callers."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final

from prompt_store.application.services.template_store import TemplateStore
from prompt_store.domain.template_state import TemplateState
from prompt_store.domain.templates import FetchedTemplate, TemplateRecord

MODEL_PARAMETER_KEYS: Final[tuple[str, ...]] = (
    "temperature",
    "max_tokens",
    "top_p",
    "frequency_penalty",
    "presence_penalty",
    "stop",
    "response_format",
    "seed",
)
_FLOAT_STRING: Final[re.Pattern[str]] = re.compile(r"-?\d+\.\d+")
_INTEGER_STRING: Final[re.Pattern[str]] = re.compile(r"-?\d+")
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedPrompt:
    """Prompt text ready for an LLM call plus where it came from."""

    name: str
    version: int | None
    content: str
    is_fallback: bool


def extract_model_parameters(config: Mapping[str, Any]) -> dict[str, Any]:
    """Pick LLM call parameters from a template config, converting numeric strings."""

    parameters: dict[str, Any] = {}
    for key in MODEL_PARAMETER_KEYS:
        value = config.get(key)
        if value is None:
            continue
        parameters[key] = _convert_numeric_string(value)
    return parameters


def _convert_numeric_string(value: object) -> object:
    if not isinstance(value, str):
        return value
    if _FLOAT_STRING.fullmatch(value):
        return float(value)
    if _INTEGER_STRING.fullmatch(value):
        return int(value)
    return value


class PromptRenderingService:
    """Resolve a named prompt for an LLM caller, never failing the caller.

    Any fetch or compile failure is logged and answered with the caller's
    fallback text, so a broken store degrades to built-in prompts.
    """

    def __init__(self, *, store: TemplateStore, enabled: bool = True) -> None:
        self._store = store
        self._enabled = enabled

    async def render(
        self,
        *,
        name: str,
        fallback: str,
        variables: Mapping[str, Any] | None = None,
        version: int | None = None,
    ) -> RenderedPrompt:
        if not self._enabled:
            return RenderedPrompt(name=name, version=None, content=fallback, is_fallback=True)

        started = time.perf_counter()
        try:
            template = await self._fetch(name=name, fallback=fallback, version=version)
            content = template.compile(variables) if variables else template.content
        except Exception as error:  # noqa: BLE001
            logger.error("prompt_render_failed name=%s error=%s", name, error)
            return RenderedPrompt(name=name, version=None, content=fallback, is_fallback=True)

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        if isinstance(template, TemplateRecord):
            logger.info(
                "prompt_rendered name=%s version=%s duration_ms=%s",
                name,
                template.version,
                duration_ms,
            )
            return RenderedPrompt(
                name=name,
                version=template.version,
                content=content,
                is_fallback=False,
            )

        logger.info("prompt_render_fallback name=%s duration_ms=%s", name, duration_ms)
        return RenderedPrompt(name=name, version=None, content=content, is_fallback=True)

    async def model_parameters(self, *, name: str, version: int | None = None) -> dict[str, Any]:
        """Return LLM parameters stored on the resolved version, or `{}`."""

        record = await self._resolve_record(name=name, version=version)
        if record is None:
            return {}
        return extract_model_parameters(record.config)

    async def model_name(self, *, name: str, version: int | None = None) -> str | None:
        record = await self._resolve_record(name=name, version=version)
        if record is None:
            return None
        model = record.config.get("model")
        return model if isinstance(model, str) and model else None

    async def _resolve_record(self, *, name: str, version: int | None) -> TemplateRecord | None:
        if not self._enabled:
            return None
        try:
            template = await self._fetch(name=name, fallback=None, version=version)
        except Exception as error:  # noqa: BLE001
            logger.debug("prompt_config_unavailable name=%s error=%s", name, error)
            return None
        return template if isinstance(template, TemplateRecord) else None

    async def _fetch(
        self,
        *,
        name: str,
        fallback: str | None,
        version: int | None,
    ) -> FetchedTemplate:
        if version is not None:
            return await self._store.fetch(name, version=version, fallback=fallback)
        return await self._store.fetch(name, state=TemplateState.PRODUCTION, fallback=fallback)
