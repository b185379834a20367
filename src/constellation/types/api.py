"""TypedDicts for MCP tool and CLI JSON responses."""

from __future__ import annotations

from typing import Any, NotRequired, TypedDict


class ErrorResponse(TypedDict):
    """Standard error envelope returned by MCP tools and ``--json`` CLI errors."""

    error: str
    code: str
    path: NotRequired[str]
    expected: NotRequired[str]


class UpdateResponse(TypedDict):
    """<resource>_update_one result; warnings appear only for unread replace-mode updates."""

    resource: dict[str, Any]
    warnings: NotRequired[list[str]]
    lost_paths: NotRequired[list[str]]


class UpdatePreview(TypedDict):
    resource: str
    id: str
    replace: bool
    current: dict[str, Any]
    result: dict[str, Any]
    lost_paths: list[str]


class PageResponse(TypedDict):
    """<resource>_get_page result; pass ``next_last_id`` as ``lastId`` for the next page."""

    items: list[dict[str, Any]]
    count: int
    next_last_id: str | None


class FormReport(TypedDict):
    form_id: str
    fields: int
    root: str | None
    order: list[str]


class JourneyReport(TypedDict):
    journey_id: str
    steps: int
    entry_steps: list[str]
    warnings: list[str]
