"""Flat `{{variable}}` substitution and extraction for prompt templates."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Final

_VARIABLE_PATTERN: Final[re.Pattern[str]] = re.compile(r"\{\{(\w+)\}\}")
_SECTION_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"\{\{([#^])(\w+)\}\}.*?\{\{/\2\}\}",
    re.DOTALL,
)


class MissingTemplateVariablesError(ValueError):
    """Raised when placeholders remain unresolved after substitution."""

    def __init__(self, *, variables: list[str]) -> None:
        self.variables = variables
        super().__init__(f"Missing variables: {', '.join(variables)}")


def substitute_variables(content: str, variables: Mapping[str, Any] | None = None) -> str:
    """Replace every literal `{{key}}` with the string form of its value.

    Placeholders without a matching key are left verbatim.
    """

    compiled = content
    for key, value in (variables or {}).items():
        compiled = compiled.replace(f"{{{{{key}}}}}", "" if value is None else str(value))
    return compiled


def find_unresolved_variables(text: str) -> list[str]:
    """Return unique placeholder names still present in text, in order of appearance."""

    return list(dict.fromkeys(_VARIABLE_PATTERN.findall(text)))


def strip_sections(content: str) -> str:
    """Remove loop/conditional section blocks, including their bodies."""

    stripped = content
    while True:
        reduced = _SECTION_PATTERN.sub("", stripped)
        if reduced == stripped:
            return reduced
        stripped = reduced


def extract_top_level_variables(content: str) -> list[str]:
    """Return unique top-level variable names, skipping section-scoped ones."""

    return find_unresolved_variables(strip_sections(content))


def compile_with_validation(content: str, variables: Mapping[str, Any] | None = None) -> str:
    """Substitute variables and reject output that still contains placeholders."""

    compiled = substitute_variables(content, variables)
    remaining = find_unresolved_variables(compiled)
    if remaining:
        raise MissingTemplateVariablesError(variables=remaining)
    return compiled
