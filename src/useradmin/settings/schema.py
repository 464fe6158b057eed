"""Schema helpers for the user-admin settings file."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from ..config import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_TIMEOUT_SECONDS,
    DEFAULT_PAGE_SIZE,
    PAGE_SIZE_OPTIONS,
    SEARCH_DEBOUNCE_MS,
)

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "useradmin/settings.schema.json",
    "type": "object",
    "required": ["schema", "api", "ui"],
    "properties": {
        "schema": {"const": "useradmin/settings@1"},
        "api": {
            "type": "object",
            "properties": {
                "base_url": {"type": "string", "minLength": 1},
                "timeout_seconds": {"type": "number", "exclusiveMinimum": 0},
                "token": {"type": ["string", "null"]},
            },
            "additionalProperties": True,
        },
        "ui": {
            "type": "object",
            "properties": {
                "page_size": {"type": "integer", "enum": list(PAGE_SIZE_OPTIONS)},
                "search_debounce_ms": {"type": "integer", "minimum": 0},
            },
            "additionalProperties": True,
        },
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": "useradmin/settings@1",
    "api": {
        "base_url": DEFAULT_API_BASE_URL,
        "timeout_seconds": DEFAULT_API_TIMEOUT_SECONDS,
        "token": None,
    },
    "ui": {
        "page_size": DEFAULT_PAGE_SIZE,
        "search_debounce_ms": SEARCH_DEBOUNCE_MS,
    },
}

_validator = Draft202012Validator(SETTINGS_SCHEMA)

_SECTIONS = ("api", "ui")


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result."""

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key in _SECTIONS and isinstance(value, dict):
                merged.setdefault(key, {}).update(value)
                continue
            merged[key] = value
    _validator.validate(merged)
    return merged


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults"]
