"""Pure helpers shared across MCP tool modules.

This module has NO dependency on ``mcp_server`` module globals, so it can
be imported freely without triggering circular-import issues.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar, cast

from mcp.types import TextContent

from constellation.errors import ConstellationError
from constellation.types.api import ErrorResponse

_T = TypeVar("_T")


def _parse_args(arguments: dict[str, Any], cls: type[_T]) -> _T:
    """Cast MCP arguments to a typed dict for static analysis.

    The session validates payloads authoritatively; this only narrows types.
    """
    return cast(_T, arguments)


def _text(content: object) -> list[TextContent]:
    if isinstance(content, str):
        return [TextContent(type="text", text=content)]
    return [TextContent(type="text", text=json.dumps(content, indent=2, default=str))]


def _error(exc: ConstellationError) -> list[TextContent]:
    data: ErrorResponse = exc.to_dict()  # type: ignore[assignment]
    return _text(data)


def _not_found(exc: KeyError) -> list[TextContent]:
    detail = exc.args[0] if exc.args else str(exc)
    return _text({"error": str(detail), "code": "not_found"})


def _validate_str(value: Any, name: str) -> list[TextContent] | None:
    """Return a validation error if *value* is not ``None`` and not a ``str``."""
    if value is not None and not isinstance(value, str):
        return _text({"error": f"{name} must be a string", "code": "validation_error"})
    return None


def _validate_int_range(
    value: Any,
    name: str,
    min_val: int | None = None,
    max_val: int | None = None,
) -> list[TextContent] | None:
    """Return a validation error if *value* is not ``None`` and outside range."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        return _text({"error": f"{name} must be an integer", "code": "validation_error"})
    if min_val is not None and value < min_val:
        return _text({"error": f"{name} must be >= {min_val}", "code": "validation_error"})
    if max_val is not None and value > max_val:
        return _text({"error": f"{name} must be <= {max_val}", "code": "validation_error"})
    return None


def _validate_object(value: Any, name: str) -> list[TextContent] | None:
    """Return a validation error if *value* is not ``None`` and not an object."""
    if value is not None and not isinstance(value, dict):
        return _text({"error": f"{name} must be an object", "code": "validation_error"})
    return None
