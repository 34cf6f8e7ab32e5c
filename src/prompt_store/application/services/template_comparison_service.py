"""Line-level comparison between two versions of one template."""

from __future__ import annotations

from dataclasses import dataclass

from prompt_store.application.ports.template_repository_port import TemplateRepositoryPort
from prompt_store.domain.templates import TemplateNotFoundError, TemplateRecord


@dataclass(frozen=True)
class TemplateDiff:
    """Set-style line difference; not a minimal edit script."""

    added_lines: list[str]
    removed_lines: list[str]
    changed: bool


@dataclass(frozen=True)
class TemplateComparison:
    from_template: TemplateRecord
    to_template: TemplateRecord
    diff: TemplateDiff


def diff_template_content(from_content: str, to_content: str) -> TemplateDiff:
    """Return lines only in `to_content` and lines only in `from_content`, in order."""

    from_lines = from_content.splitlines()
    to_lines = to_content.splitlines()
    from_set = set(from_lines)
    to_set = set(to_lines)
    return TemplateDiff(
        added_lines=[line for line in to_lines if line not in from_set],
        removed_lines=[line for line in from_lines if line not in to_set],
        changed=from_content != to_content,
    )


class TemplateComparisonService:
    """Compare two stored versions of a template without persisting anything."""

    def __init__(self, *, templates: TemplateRepositoryPort) -> None:
        self._templates = templates

    async def compare_versions(
        self,
        *,
        name: str,
        version_a: int,
        version_b: int,
    ) -> TemplateComparison:
        from_template = await self._require(name=name, version=version_a)
        to_template = await self._require(name=name, version=version_b)
        return TemplateComparison(
            from_template=from_template,
            to_template=to_template,
            diff=diff_template_content(from_template.content, to_template.content),
        )

    async def _require(self, *, name: str, version: int) -> TemplateRecord:
        record = await self._templates.get_by_version(name=name, version=version)
        if record is None:
            raise TemplateNotFoundError(name=name, version=version)
        return record
