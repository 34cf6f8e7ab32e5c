from __future__ import annotations

import pytest

from prompt_store.domain.template_variables import (
    MissingTemplateVariablesError,
    compile_with_validation,
    extract_top_level_variables,
    strip_sections,
    substitute_variables,
)


def test_substitution_replaces_known_keys_and_leaves_unknown_verbatim() -> None:
    compiled = substitute_variables("hi {{x}}, meet {{y}}", {"x": "A"})

    assert compiled == "hi A, meet {{y}}"


def test_substitution_uses_string_form_and_blanks_none() -> None:
    compiled = substitute_variables("{{count}} items{{suffix}}", {"count": 3, "suffix": None})

    assert compiled == "3 items"


def test_validated_compile_names_every_missing_variable_once() -> None:
    with pytest.raises(MissingTemplateVariablesError) as error_info:
        compile_with_validation("{{a}} {{b}} {{a}}", {})

    assert error_info.value.variables == ["a", "b"]
    assert str(error_info.value) == "Missing variables: a, b"


def test_strip_sections_removes_nested_blocks() -> None:
    content = "top {{#items}}{{name}} {{^empty}}{{flag}}{{/empty}}{{/items}} end"

    assert strip_sections(content) == "top  end"


def test_extract_top_level_variables_skips_section_scoped_names() -> None:
    content = "{{user}} {{#items}}{{name}}{{/items}} {{^missing}}none{{/missing}} {{user}} {{date}}"

    assert extract_top_level_variables(content) == ["user", "date"]
