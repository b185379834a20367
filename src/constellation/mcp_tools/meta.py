"""MCP tools for discovering resource types, variant shapes and concepts."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from mcp.types import TextContent, Tool

from constellation.concepts import CONCEPTS, explain
from constellation.errors import ConstellationError
from constellation.mcp_tools.common import _error, _parse_args, _text
from constellation.types.inputs import DescribeResourceArgs, ExplainConceptArgs, ExplainVariantArgs
from constellation.variants import FAMILIES, family_dict


def register() -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    """Return (tool_definitions, handler_map) for discovery tools."""
    tools = [
        Tool(
            name="list_resource_types",
            description="List every resource type in creation-dependency order (create earlier types first)",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="describe_resource",
            description="Full field schema for one resource type: required fields, variants, updatable fields",
            inputSchema={
                "type": "object",
                "properties": {"resource": {"type": "string", "description": "Resource type, e.g. form_fields"}},
                "required": ["resource"],
            },
        ),
        Tool(
            name="explain_variant",
            description="Show the exact info shape of each variant type in a family (events, actions, links, ...)",
            inputSchema={
                "type": "object",
                "properties": {
                    "family": {"type": "string", "enum": list(FAMILIES), "description": "Variant family"},
                    "type": {"type": "string", "description": "One variant type (omit for all)"},
                },
                "required": ["family"],
            },
        ),
        Tool(
            name="explain_concept",
            description="Explain a rule that is easy to get wrong: " + ", ".join(CONCEPTS),
            inputSchema={
                "type": "object",
                "properties": {"concept": {"type": "string", "enum": list(CONCEPTS)}},
                "required": ["concept"],
            },
        ),
    ]

    handlers: dict[str, Callable[..., Any]] = {
        "list_resource_types": _handle_list_resource_types,
        "describe_resource": _handle_describe_resource,
        "explain_variant": _handle_explain_variant,
        "explain_concept": _handle_explain_concept,
    }
    return tools, handlers


async def _handle_list_resource_types(arguments: dict[str, Any]) -> list[TextContent]:
    from constellation.mcp_server import _get_session

    registry = _get_session().registry
    return _text(
        [
            {
                "resource": schema.name,
                "display_name": schema.display_name,
                "description": schema.description,
                "depends_on": list(schema.depends_on),
                "creatable": schema.creatable,
            }
            for schema in (registry.get(name) for name in registry.resources_in_dependency_order())
        ]
    )


async def _handle_describe_resource(arguments: dict[str, Any]) -> list[TextContent]:
    from constellation.mcp_server import _get_session

    args = _parse_args(arguments, DescribeResourceArgs)
    try:
        schema = _get_session().registry.get(args.get("resource", ""))
    except ConstellationError as e:
        return _error(e)
    return _text(schema.to_dict())


async def _handle_explain_variant(arguments: dict[str, Any]) -> list[TextContent]:
    args = _parse_args(arguments, ExplainVariantArgs)
    try:
        return _text(family_dict(args.get("family", ""), args.get("type")))
    except ConstellationError as e:
        return _error(e)


async def _handle_explain_concept(arguments: dict[str, Any]) -> list[TextContent]:
    args = _parse_args(arguments, ExplainConceptArgs)
    try:
        return _text(explain(args.get("concept", "")))
    except ConstellationError as e:
        return _error(e)
