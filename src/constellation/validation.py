"""Shared validation functions for all entry points.

Pure functions with no MCP or Click dependencies.
"""

from __future__ import annotations

import unicodedata
from typing import Any

_MAX_ID_LENGTH = 128


def sanitize_id(value: Any, name: str = "id") -> tuple[str, str | None]:
    """Validate and clean a resource id supplied by a caller.

    Returns (cleaned_id, None) on success or ("", error_message) on failure.
    Strips whitespace, then checks: non-empty, max length, no control/format chars.
    """
    if not isinstance(value, str):
        return ("", f"{name} must be a string")
    # Control/format chars are checked before stripping: "\nbad" is rejected rather
    # than silently absorbing the newline via strip().
    for ch in value:
        cat = unicodedata.category(ch)
        if cat.startswith("C"):  # Cc (control) and Cf (format)
            return ("", f"{name} must not contain control characters (found U+{ord(ch):04X})")
    cleaned = value.strip()
    if not cleaned:
        return ("", f"{name} must not be empty")
    if len(cleaned) > _MAX_ID_LENGTH:
        return ("", f"{name} must be at most {_MAX_ID_LENGTH} characters")
    return (cleaned, None)


def json_kind(value: Any) -> str:
    """Name the JSON Schema kind of a decoded JSON value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def matches_kind(value: Any, kind: str) -> bool:
    """Return True if *value* satisfies JSON Schema type *kind*.

    ``bool`` never satisfies ``number``/``integer`` even though it subclasses int.
    """
    if kind == "any":
        return True
    actual = json_kind(value)
    if kind == "number":
        return actual in ("number", "integer")
    return actual == kind
