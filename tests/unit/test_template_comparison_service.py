from __future__ import annotations

import pytest

from prompt_store.application.ports.template_repository_port import TemplateCreateInput
from prompt_store.application.services.template_comparison_service import (
    TemplateComparisonService,
    diff_template_content,
)
from prompt_store.domain.templates import TemplateNotFoundError
from prompt_store.infrastructure.memory.template_repository import InMemoryTemplateRepository


@pytest.mark.asyncio
async def test_compare_versions_reports_added_and_removed_lines() -> None:
    repository = InMemoryTemplateRepository()
    await repository.create_next_version(TemplateCreateInput(name="p", content="line1\nline2"))
    await repository.create_next_version(TemplateCreateInput(name="p", content="line1\nline3"))
    service = TemplateComparisonService(templates=repository)

    comparison = await service.compare_versions(name="p", version_a=1, version_b=2)

    assert comparison.from_template.version == 1
    assert comparison.to_template.version == 2
    assert comparison.diff.added_lines == ["line3"]
    assert comparison.diff.removed_lines == ["line2"]
    assert comparison.diff.changed is True


def test_identical_content_is_unchanged() -> None:
    diff = diff_template_content("a\nb", "a\nb")

    assert diff.added_lines == []
    assert diff.removed_lines == []
    assert diff.changed is False


def test_reordered_lines_are_changed_without_added_or_removed_lines() -> None:
    diff = diff_template_content("a\nb", "b\na")

    assert (diff.added_lines, diff.removed_lines, diff.changed) == ([], [], True)


@pytest.mark.asyncio
async def test_compare_versions_requires_both_versions() -> None:
    repository = InMemoryTemplateRepository()
    await repository.create_next_version(TemplateCreateInput(name="p", content="x"))
    service = TemplateComparisonService(templates=repository)

    with pytest.raises(TemplateNotFoundError):
        await service.compare_versions(name="p", version_a=1, version_b=5)
