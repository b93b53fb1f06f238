"""Schema helpers for the user settings file."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from ..config import SETTINGS_SCHEMA_ID
from ..engine.options import TOOL_DEFAULTS

_OPTION_VALUE: dict[str, Any] = {
    "anyOf": [
        {"type": ["string", "number"]},
        {"type": "array", "items": {"type": "string"}},
    ],
}

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "mediathumb/settings.schema.json",
    "type": "object",
    "required": ["schema", "tools"],
    "properties": {
        "schema": {"const": SETTINGS_SCHEMA_ID},
        "log_level": {
            "type": "string",
            "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        },
        "tools": {
            "type": "object",
            "properties": {
                name: {"type": "object", "additionalProperties": _OPTION_VALUE}
                for name in TOOL_DEFAULTS
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": SETTINGS_SCHEMA_ID,
    "log_level": "WARNING",
    "tools": {name: {} for name in TOOL_DEFAULTS},
}

_validator = Draft202012Validator(SETTINGS_SCHEMA)


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result."""

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key == "tools" and isinstance(value, dict):
                tools = merged["tools"]
                for tool, overrides in value.items():
                    if isinstance(overrides, dict):
                        tools.setdefault(tool, {}).update(overrides)
                    else:
                        tools[tool] = overrides
                continue
            merged[key] = value
    _validator.validate(merged)
    return merged


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults"]
