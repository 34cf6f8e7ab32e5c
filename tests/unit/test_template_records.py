from __future__ import annotations

from uuid import uuid4

import pytest

from prompt_store.domain.template_state import TemplateState
from prompt_store.domain.template_variables import MissingTemplateVariablesError
from prompt_store.domain.templates import (
    FallbackTemplate,
    ImmutableTemplateError,
    TemplateRecord,
    normalize_template_config,
)


def _record(state: TemplateState, *, content: str = "hi {{x}}") -> TemplateRecord:
    return TemplateRecord(
        template_id=uuid4(),
        name="greeting",
        version=3,
        state=state,
        content=content,
        config={"temperature": 0.2},
        commit_message="initial",
        created_by="alice",
    )


def test_compile_round_trip_and_validation_failure_names_variable() -> None:
    record = _record(TemplateState.DRAFT)

    assert record.compile({"x": "A"}) == "hi A"
    with pytest.raises(MissingTemplateVariablesError) as error_info:
        record.compile_with_validation({})

    assert "x" in str(error_info.value)


@pytest.mark.parametrize(
    ("state", "editable"),
    [
        (TemplateState.DRAFT, True),
        (TemplateState.PRODUCTION, False),
        (TemplateState.ARCHIVED, False),
    ],
)
def test_only_drafts_are_editable(state: TemplateState, editable: bool) -> None:
    record = _record(state)

    assert record.is_editable is editable
    assert record.is_immutable is not editable


@pytest.mark.parametrize("state", [TemplateState.PRODUCTION, TemplateState.ARCHIVED])
def test_ensure_editable_rejects_released_versions(state: TemplateState) -> None:
    record = _record(state)

    with pytest.raises(ImmutableTemplateError) as error_info:
        record.ensure_editable()

    assert str(error_info.value) == (
        f"Cannot edit {state.value} prompt 'greeting' v3. Clone to draft first."
    )


def test_production_deletion_follows_configuration() -> None:
    production = _record(TemplateState.PRODUCTION)

    assert production.can_delete() is False
    assert production.can_delete(allow_production_deletion=True) is True
    assert _record(TemplateState.ARCHIVED).can_delete() is True
    assert _record(TemplateState.DRAFT).can_delete() is True


def test_export_dict_omits_storage_identifiers() -> None:
    exported = _record(TemplateState.PRODUCTION).to_export_dict()

    assert exported == {
        "name": "greeting",
        "version": 3,
        "state": "production",
        "prompt": "hi {{x}}",
        "config": {"temperature": 0.2},
        "commit_message": "initial",
        "created_by": "alice",
    }
    assert str(_record(TemplateState.DRAFT)) == "Prompt(greeting v3 draft)"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, {}),
        ('{"temperature": 0.5}', {"temperature": 0.5}),
        (b'{"seed": 1}', {"seed": 1}),
        ("not json", {}),
        ("[1, 2]", {}),
        (["a"], {}),
        ({"model": "gpt"}, {"model": "gpt"}),
    ],
)
def test_normalize_config_parses_strings_and_discards_bad_shapes(
    raw: object,
    expected: dict[str, object],
) -> None:
    assert normalize_template_config(raw) == expected


def test_fallback_exposes_null_record_surface() -> None:
    fallback = FallbackTemplate(name="missing", content="default text")

    assert fallback.version is None
    assert fallback.template_id is None
    assert fallback.state == "fallback"
    assert fallback.config == {}
    assert fallback.content == "default text"
    assert not fallback.is_draft
    assert not fallback.is_production
    assert not fallback.is_archived
    assert not fallback.is_persisted


def test_fallback_compiles_flat_variables_and_ignores_section_scoped_ones() -> None:
    fallback = FallbackTemplate(
        name="agent",
        content="Hello {{name}}{{#items}} - {{label}}{{/items}}",
    )

    assert fallback.extract_variables() == ["name"]
    assert fallback.compile({"name": "Ada"}) == "Hello Ada{{#items}} - {{label}}{{/items}}"
    assert fallback.compile_with_validation({"name": "Ada"}).startswith("Hello Ada")
    with pytest.raises(MissingTemplateVariablesError) as error_info:
        fallback.compile_with_validation({})

    assert error_info.value.variables == ["name"]
