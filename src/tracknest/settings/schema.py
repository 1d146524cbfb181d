"""Schema helpers for the application settings file."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from tracknest.config import DEFAULT_BASE_URL, DEFAULT_PAGE_SIZE, REQUEST_TIMEOUT_SEC, UNDO_DELAY_MS

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "tracknest/settings.schema.json",
    "type": "object",
    "required": ["schema", "api", "lists"],
    "properties": {
        "schema": {"const": "tracknest/settings@1"},
        "api": {
            "type": "object",
            "properties": {
                "base_url": {"type": "string", "minLength": 1},
                "timeout": {"type": "number", "exclusiveMinimum": 0},
            },
            "additionalProperties": True,
        },
        "lists": {
            "type": "object",
            "properties": {
                "page_size": {"type": "integer", "minimum": 1},
                "undo_delay_ms": {"type": "integer", "minimum": 0},
                "reset_page_on_sort": {"type": "boolean"},
                "pending_removal_policy": {
                    "type": "string",
                    "enum": ["reject", "fold"],
                },
            },
            "additionalProperties": True,
        },
        "session": {
            "type": "object",
            "properties": {
                "token": {"type": ["string", "null"]},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": "tracknest/settings@1",
    "api": {
        "base_url": DEFAULT_BASE_URL,
        "timeout": REQUEST_TIMEOUT_SEC,
    },
    "lists": {
        "page_size": DEFAULT_PAGE_SIZE,
        "undo_delay_ms": UNDO_DELAY_MS,
        "reset_page_on_sort": False,
        "pending_removal_policy": "reject",
    },
    "session": {
        "token": None,
    },
}

_validator = Draft202012Validator(SETTINGS_SCHEMA)
_SECTIONS = ("api", "lists", "session")


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result."""

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key in _SECTIONS and isinstance(value, dict):
                target = merged.setdefault(key, {})
                for sub_key, sub_value in value.items():
                    target[sub_key] = sub_value
                continue
            merged[key] = value
    _validator.validate(merged)
    return merged


def validate_settings(data: dict[str, Any]) -> None:
    """Validate *data* against the settings schema."""

    _validator.validate(data)


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults", "validate_settings"]
