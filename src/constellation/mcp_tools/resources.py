"""Per-resource MCP tools: ``<resource>_create_one`` / ``_update_one`` / ``_get_one`` / ``_get_page``.

Tool definitions are generated from the schema registry so each tool's
``inputSchema`` is the resource's own field schema.
Update-only resources (``creatable: false`` in the catalog) get just the
``_update_one`` and ``_get_one`` tools.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from mcp.types import TextContent, Tool

from constellation.errors import ConstellationError
from constellation.mcp_tools.common import (
    _error,
    _not_found,
    _parse_args,
    _text,
    _validate_int_range,
    _validate_object,
    _validate_str,
)
from constellation.platform import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from constellation.schema import SchemaRegistry
from constellation.types.api import PageResponse
from constellation.types.inputs import CreateOneArgs, GetOneArgs, GetPageArgs, UpdateOneArgs

Handler = Callable[[dict[str, Any]], Any]

# Tools generated for resources whose records can only be updated.
UPDATE_ONLY_SUFFIXES: tuple[str, ...] = ("_update_one", "_get_one")


def _resource_tools(registry: SchemaRegistry, resource: str) -> list[Tool]:
    schema = registry.get(resource)
    label = schema.display_name
    tools = [
        Tool(
            name=f"{resource}_create_one",
            description=(
                f"Create one {label}. {schema.description} "
                f"Returns the created record including its platform-assigned id."
            ),
            inputSchema=registry.create_input_schema(resource),
        ),
        Tool(
            name=f"{resource}_update_one",
            description=(
                f"Update one {label} by id. Object-valued fields are merged by default; "
                f"set options.replaceObjectFields=true to replace them wholesale."
            ),
            inputSchema=registry.update_input_schema(resource),
        ),
        Tool(
            name=f"{resource}_get_one",
            description=f"Get one {label} by id",
            inputSchema={
                "type": "object",
                "properties": {"id": {"type": "string", "description": f"{label} id"}},
                "required": ["id"],
            },
        ),
        Tool(
            name=f"{resource}_get_page",
            description=f"List {label} records in creation order. Pass next_last_id back as lastId for the next page.",
            inputSchema={
                "type": "object",
                "properties": {
                    "filter": {"type": "object", "description": "Equality filter on top-level fields"},
                    "limit": {
                        "type": "integer",
                        "default": DEFAULT_PAGE_LIMIT,
                        "minimum": 1,
                        "maximum": MAX_PAGE_LIMIT,
                        "description": "Page size",
                    },
                    "lastId": {"type": "string", "description": "Id of the last record of the previous page"},
                },
                "required": [],
            },
        ),
    ]
    if not schema.creatable:
        return [t for t in tools if t.name.endswith(UPDATE_ONLY_SUFFIXES)]
    return tools


def _create_handler(resource: str) -> Handler:
    async def _handle(arguments: dict[str, Any]) -> list[TextContent]:
        from constellation.mcp_server import _get_session

        args = _parse_args(arguments, CreateOneArgs)
        try:
            record = _get_session().create(resource, args.get("data"))
        except ConstellationError as e:
            return _error(e)
        except KeyError as e:
            return _not_found(e)
        return _text(record)

    return _handle


def _update_handler(resource: str) -> Handler:
    async def _handle(arguments: dict[str, Any]) -> list[TextContent]:
        from constellation.mcp_server import _get_session

        args = _parse_args(arguments, UpdateOneArgs)
        if err := _validate_object(args.get("options"), "options"):
            return err
        try:
            result = _get_session().update(resource, args.get("id"), args.get("updates"), args.get("options"))
        except ConstellationError as e:
            return _error(e)
        except KeyError as e:
            return _not_found(e)
        return _text(result.to_dict())

    return _handle


def _get_handler(resource: str) -> Handler:
    async def _handle(arguments: dict[str, Any]) -> list[TextContent]:
        from constellation.mcp_server import _get_session

        args = _parse_args(arguments, GetOneArgs)
        try:
            record = _get_session().get(resource, args.get("id"))
        except ConstellationError as e:
            return _error(e)
        except KeyError as e:
            return _not_found(e)
        return _text(record)

    return _handle


def _page_handler(resource: str) -> Handler:
    async def _handle(arguments: dict[str, Any]) -> list[TextContent]:
        from constellation.mcp_server import _get_session

        args = _parse_args(arguments, GetPageArgs)
        limit = args.get("limit", DEFAULT_PAGE_LIMIT)
        if err := _validate_int_range(limit, "limit", 1, MAX_PAGE_LIMIT):
            return err
        if err := _validate_object(args.get("filter"), "filter"):
            return err
        last_id = args.get("lastId")
        if err := _validate_str(last_id, "lastId"):
            return err
        try:
            items = _get_session().list(resource, args.get("filter"), limit, last_id)
        except ConstellationError as e:
            return _error(e)
        except KeyError as e:
            return _not_found(e)
        response: PageResponse = {
            "items": items,
            "count": len(items),
            "next_last_id": items[-1]["id"] if len(items) == limit else None,
        }
        return _text(response)

    return _handle


def register(registry: SchemaRegistry | None = None) -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    """Return (tool_definitions, handler_map) for every registered resource type."""
    registry = registry if registry is not None else SchemaRegistry()
    tools: list[Tool] = []
    handlers: dict[str, Callable[..., Any]] = {}
    for schema in registry.list_resources():
        resource = schema.name
        resource_tools = _resource_tools(registry, resource)
        tools.extend(resource_tools)
        factories = {
            f"{resource}_create_one": _create_handler,
            f"{resource}_update_one": _update_handler,
            f"{resource}_get_one": _get_handler,
            f"{resource}_get_page": _page_handler,
        }
        for tool in resource_tools:
            handlers[tool.name] = factories[tool.name](resource)
    return tools, handlers
