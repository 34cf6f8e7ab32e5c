"""Schema-driven validation and coercion of template configuration maps."""

from __future__ import annotations

import re
from collections.abc import Mapping, MutableMapping, Sized
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Final


class ConfigValueType(StrEnum):
    """Value types a configuration key can declare."""

    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True)
class ConfigFieldRule:
    """Validation rules for one configuration key."""

    type: ConfigValueType
    required: bool = False
    value_range: tuple[float, float] | None = None
    allowed: tuple[Any, ...] | None = None
    item_type: ConfigValueType | None = None
    default: Any = None


ConfigSchema = Mapping[str, ConfigFieldRule]

DEFAULT_CONFIG_SCHEMA: Final[dict[str, ConfigFieldRule]] = {
    "temperature": ConfigFieldRule(
        type=ConfigValueType.FLOAT,
        value_range=(0.0, 2.0),
        default=0.7,
    ),
    "max_tokens": ConfigFieldRule(type=ConfigValueType.INTEGER, value_range=(1, 100000)),
    "top_p": ConfigFieldRule(type=ConfigValueType.FLOAT, value_range=(0.0, 1.0)),
    "frequency_penalty": ConfigFieldRule(type=ConfigValueType.FLOAT, value_range=(-2.0, 2.0)),
    "presence_penalty": ConfigFieldRule(type=ConfigValueType.FLOAT, value_range=(-2.0, 2.0)),
    "stop_sequences": ConfigFieldRule(
        type=ConfigValueType.ARRAY,
        item_type=ConfigValueType.STRING,
    ),
    "model": ConfigFieldRule(type=ConfigValueType.STRING),
    "response_format": ConfigFieldRule(type=ConfigValueType.OBJECT),
    "seed": ConfigFieldRule(type=ConfigValueType.INTEGER),
    "stream": ConfigFieldRule(type=ConfigValueType.BOOLEAN),
}

_INTEGER_STRING: Final[re.Pattern[str]] = re.compile(r"-?\d+")
_NUMERIC_STRING: Final[re.Pattern[str]] = re.compile(r"-?\d+(?:\.\d+)?")

_TYPE_MESSAGES: Final[dict[ConfigValueType, str]] = {
    ConfigValueType.INTEGER: "must be an integer",
    ConfigValueType.FLOAT: "must be a number",
    ConfigValueType.STRING: "must be a string",
    ConfigValueType.BOOLEAN: "must be a boolean",
    ConfigValueType.ARRAY: "must be an array",
    ConfigValueType.OBJECT: "must be an object",
}


class ConfigSchemaViolationError(ValueError):
    """Raised when a configuration map fails schema validation."""

    def __init__(self, *, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(f"Invalid prompt config: {'; '.join(errors)}")


@dataclass(frozen=True)
class ConfigValidationResult:
    """Accumulated outcome of one configuration validation run."""

    valid: bool
    errors: list[str]


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _matches_type(value: object, expected: ConfigValueType) -> bool:
    if expected is ConfigValueType.INTEGER:
        return isinstance(value, int) and not isinstance(value, bool)
    if expected is ConfigValueType.FLOAT:
        return _is_number(value)
    if expected is ConfigValueType.STRING:
        return isinstance(value, str)
    if expected is ConfigValueType.BOOLEAN:
        return isinstance(value, bool)
    if expected is ConfigValueType.ARRAY:
        return isinstance(value, list)
    return isinstance(value, Mapping)


def _coerce(value: object, expected: ConfigValueType) -> object:
    if not isinstance(value, str):
        return value
    if expected is ConfigValueType.INTEGER and _INTEGER_STRING.fullmatch(value):
        return int(value)
    if expected is ConfigValueType.FLOAT and _NUMERIC_STRING.fullmatch(value):
        return float(value)
    return value


class ConfigValidator:
    """Validate one config map against a schema, accumulating every error.

    Numeric-looking strings under integer/float keys are coerced in place,
    so a caller that persists the config after validation stores the
    coerced values.
    """

    def __init__(
        self,
        config: object,
        *,
        schema: ConfigSchema | None = None,
        strict: bool = False,
    ) -> None:
        self.config = config
        self.schema: ConfigSchema = DEFAULT_CONFIG_SCHEMA if schema is None else schema
        self.strict = strict
        self.errors: list[str] = []

    def is_valid(self) -> bool:
        self.errors = []

        if self.config is None or (isinstance(self.config, Sized) and not self.config):
            return True

        if not isinstance(self.config, MutableMapping):
            self.errors.append("Config must be a mapping")
            return False

        self._validate_against_schema(self.config)
        return not self.errors

    def _validate_against_schema(self, config: MutableMapping[Any, Any]) -> None:
        for key, rule in self.schema.items():
            raw_key = self._resolve_key(config, key)
            value = None if raw_key is None else config[raw_key]

            if value is None:
                if rule.required:
                    self.errors.append(f"{key} is required")
                continue

            coerced = _coerce(value, rule.type)
            if coerced is not value:
                config[raw_key] = coerced
                value = coerced

            if not _matches_type(value, rule.type):
                self.errors.append(f"{key} {_TYPE_MESSAGES[rule.type]}")

            if rule.value_range is not None and _is_number(value):
                minimum, maximum = rule.value_range
                if not minimum <= value <= maximum:
                    self.errors.append(f"{key} must be between {minimum} and {maximum}")

            if rule.allowed is not None and value not in rule.allowed:
                allowed = ", ".join(str(option) for option in rule.allowed)
                self.errors.append(f"{key} must be one of: {allowed}")

            if rule.item_type is not None and isinstance(value, list):
                for index, item in enumerate(value):
                    if not _matches_type(item, rule.item_type):
                        self.errors.append(f"{key}[{index}] {_TYPE_MESSAGES[rule.item_type]}")

        if self.strict:
            self._validate_unknown_keys(config)

    def _validate_unknown_keys(self, config: Mapping[Any, Any]) -> None:
        unknown = [str(key) for key in config if str(key) not in self.schema]
        if unknown:
            self.errors.append(f"Unknown configuration keys: {', '.join(unknown)}")

    @staticmethod
    def _resolve_key(config: Mapping[Any, Any], key: str) -> Any | None:
        if key in config:
            return key
        for candidate in config:
            if str(candidate) == key:
                return candidate
        return None


def validate_config(
    config: object,
    schema: ConfigSchema | None = None,
    *,
    strict: bool = False,
) -> ConfigValidationResult:
    """Validate config and return every accumulated error at once."""

    validator = ConfigValidator(config, schema=schema, strict=strict)
    valid = validator.is_valid()
    return ConfigValidationResult(valid=valid, errors=list(validator.errors))
