"""MCP tools for completion checks, update previews, archiving and build plans."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from mcp.types import TextContent, Tool

from constellation.errors import ConstellationError
from constellation.mcp_tools.common import _error, _not_found, _parse_args, _text, _validate_object
from constellation.plans import PLAN_OPS, run_plan
from constellation.schema import REPLACE_OBJECT_FIELDS_DESCRIPTION
from constellation.triggers import classify_action, validate_trigger
from constellation.types.inputs import (
    ArchiveResourceArgs,
    PreviewUpdateArgs,
    RunPlanArgs,
    ValidateFormArgs,
    ValidateJourneyArgs,
    ValidateTriggerArgs,
)

_RESOURCE_ID_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "resource": {"type": "string", "description": "Resource type (see list_resource_types)"},
        "id": {"type": "string", "description": "Resource id"},
    },
    "required": ["resource", "id"],
}


def register() -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    """Return (tool_definitions, handler_map) for check-domain tools."""
    tools = [
        Tool(
            name="validate_form",
            description=(
                "Check a whole form: exactly one root field, every previousFields link resolves, "
                "scoring rules name real fields. Returns the field count and display order."
            ),
            inputSchema={
                "type": "object",
                "properties": {"form_id": {"type": "string", "description": "Form id"}},
                "required": ["form_id"],
            },
        ),
        Tool(
            name="validate_journey",
            description=(
                "Check a whole journey: at least one onJourneyStart step, every step reference resolves, "
                "no afterAction/waitForTrigger cycles. Unreachable steps come back as warnings."
            ),
            inputSchema={
                "type": "object",
                "properties": {"journey_id": {"type": "string", "description": "Journey id"}},
                "required": ["journey_id"],
            },
        ),
        Tool(
            name="validate_trigger",
            description="Check an automation trigger's event, action and journeyId placement without creating it",
            inputSchema={
                "type": "object",
                "properties": {
                    "trigger": {"type": "object", "description": "Trigger payload ({event, action, journeyId?, ...})"},
                },
                "required": ["trigger"],
            },
        ),
        Tool(
            name="preview_update",
            description="Show the record an update would produce, and what replace mode would discard, without applying it",
            inputSchema={
                "type": "object",
                "properties": {
                    "resource": {"type": "string", "description": "Resource type"},
                    "id": {"type": "string", "description": "Resource id"},
                    "updates": {"type": "object", "description": "Fields to change"},
                    "options": {
                        "type": "object",
                        "properties": {
                            "replaceObjectFields": {"type": "boolean", "description": REPLACE_OBJECT_FIELDS_DESCRIPTION},
                        },
                    },
                },
                "required": ["resource", "id", "updates"],
            },
        ),
        Tool(
            name="archive_resource",
            description="Archive a resource by stamping archivedAt. Nothing is ever deleted.",
            inputSchema=_RESOURCE_ID_SCHEMA,
        ),
        Tool(
            name="unarchive_resource",
            description="Unarchive a resource by clearing archivedAt",
            inputSchema=_RESOURCE_ID_SCHEMA,
        ),
        Tool(
            name="run_plan",
            description=(
                "Run an ordered build plan. Each operation may carry a 'ref'; later operations use "
                '{"$ref": name} or "$ref:name" to insert the id it produced. Stops at the first error.'
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "plan": {
                        "type": "object",
                        "description": f"{{operations: [{{op: {' | '.join(sorted(PLAN_OPS))}, ...}}]}}",
                        "properties": {"operations": {"type": "array", "items": {"type": "object"}}},
                        "required": ["operations"],
                    },
                },
                "required": ["plan"],
            },
        ),
    ]

    handlers: dict[str, Callable[..., Any]] = {
        "validate_form": _handle_validate_form,
        "validate_journey": _handle_validate_journey,
        "validate_trigger": _handle_validate_trigger,
        "preview_update": _handle_preview_update,
        "archive_resource": _handle_archive_resource,
        "unarchive_resource": _handle_unarchive_resource,
        "run_plan": _handle_run_plan,
    }
    return tools, handlers


async def _handle_validate_form(arguments: dict[str, Any]) -> list[TextContent]:
    from constellation.mcp_server import _get_session

    args = _parse_args(arguments, ValidateFormArgs)
    try:
        report = _get_session().validate_form(args.get("form_id"))
    except ConstellationError as e:
        return _error(e)
    except KeyError as e:
        return _not_found(e)
    return _text({"valid": True, **report})


async def _handle_validate_journey(arguments: dict[str, Any]) -> list[TextContent]:
    from constellation.mcp_server import _get_session

    args = _parse_args(arguments, ValidateJourneyArgs)
    try:
        report = _get_session().validate_journey(args.get("journey_id"))
    except ConstellationError as e:
        return _error(e)
    except KeyError as e:
        return _not_found(e)
    return _text({"valid": True, **report})


async def _handle_validate_trigger(arguments: dict[str, Any]) -> list[TextContent]:
    args = _parse_args(arguments, ValidateTriggerArgs)
    if err := _validate_object(args.get("trigger"), "trigger"):
        return err
    try:
        event, action = validate_trigger(args.get("trigger"))
    except ConstellationError as e:
        return _error(e)
    return _text(
        {
            "valid": True,
            "event": event.type,
            "action": action.type,
            "action_class": classify_action(action.type),
        }
    )


async def _handle_preview_update(arguments: dict[str, Any]) -> list[TextContent]:
    from constellation.mcp_server import _get_session

    args = _parse_args(arguments, PreviewUpdateArgs)
    if err := _validate_object(args.get("options"), "options"):
        return err
    try:
        preview = _get_session().preview_update(
            args.get("resource", ""), args.get("id"), args.get("updates"), args.get("options")
        )
    except ConstellationError as e:
        return _error(e)
    except KeyError as e:
        return _not_found(e)
    return _text(preview)


async def _handle_archive_resource(arguments: dict[str, Any]) -> list[TextContent]:
    from constellation.mcp_server import _get_session

    args = _parse_args(arguments, ArchiveResourceArgs)
    try:
        record = _get_session().archive(args.get("resource", ""), args.get("id"))
    except ConstellationError as e:
        return _error(e)
    except KeyError as e:
        return _not_found(e)
    return _text(record)


async def _handle_unarchive_resource(arguments: dict[str, Any]) -> list[TextContent]:
    from constellation.mcp_server import _get_session

    args = _parse_args(arguments, ArchiveResourceArgs)
    try:
        record = _get_session().unarchive(args.get("resource", ""), args.get("id"))
    except ConstellationError as e:
        return _error(e)
    except KeyError as e:
        return _not_found(e)
    return _text(record)


async def _handle_run_plan(arguments: dict[str, Any]) -> list[TextContent]:
    from constellation.mcp_server import _get_session

    args = _parse_args(arguments, RunPlanArgs)
    try:
        result = run_plan(_get_session(), args.get("plan"))
    except ConstellationError as e:
        return _error(e)
    return _text(result.to_dict())
