"""MCP server for constellation builds.

Primary interface for agents. Every create/update is validated locally
before it is dispatched to the platform.

Usage:
    constellation-mcp                              # Auto-discover .constellation/ from cwd
    constellation-mcp --project /path/to/project   # Explicit project root
    constellation-mcp --http --port 8765           # Streamable HTTP on /mcp
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import sys
import time
from collections.abc import AsyncIterator, Callable
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import (
    GetPromptResult,
    Prompt,
    PromptMessage,
    Resource,
    TextContent,
    Tool,
)

from constellation.core import PROJECT_DIR_NAME, BuildSession, find_project_root
from constellation.mcp_tools import checks, meta, resources
from constellation.mcp_tools.common import _text

DEFAULT_HTTP_PORT = 8765

# ---------------------------------------------------------------------------
# Server setup
# ---------------------------------------------------------------------------

server = Server("constellation")
session: BuildSession | None = None
_project_dir: Path | None = None
_logger: logging.Logger | None = None
_request_session: ContextVar[BuildSession | None] = ContextVar("constellation_request_session", default=None)


def _collect() -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    tools: list[Tool] = []
    handlers: dict[str, Callable[..., Any]] = {}
    for module in (resources, checks, meta):
        module_tools, module_handlers = module.register()
        tools.extend(module_tools)
        handlers.update(module_handlers)
    return tools, handlers


_TOOLS, _HANDLERS = _collect()


def _get_session() -> BuildSession:
    active = _request_session.get() or session
    if active is None:
        msg = "Build session not initialized"
        raise RuntimeError(msg)
    return active


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------

CATALOG_URI = "constellation://catalog"


def _catalog_text() -> str:
    registry = _get_session().registry
    lines = ["# Resource types (create in this order)", ""]
    for name in registry.resources_in_dependency_order():
        schema = registry.get(name)
        required = ", ".join(schema.required) or "none"
        if schema.creatable:
            lines.append(f"- **{name}** ({schema.display_name}): required {required}")
        else:
            lines.append(f"- **{name}** ({schema.display_name}): update only, records already exist")
    return "\n".join(lines) + "\n"


@server.list_resources()  # type: ignore[untyped-decorator,no-untyped-call]
async def list_resources() -> list[Resource]:
    return [
        Resource(
            uri=CATALOG_URI,  # type: ignore[arg-type]
            name="Resource Catalog",
            description="Resource types in creation-dependency order with their required fields",
            mimeType="text/markdown",
        ),
    ]


@server.read_resource()  # type: ignore[untyped-decorator,no-untyped-call]
async def read_catalog(uri: Any) -> str:
    if str(uri) == CATALOG_URI:
        return _catalog_text()
    msg = f"Unknown resource: {uri}"
    raise ValueError(msg)


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

_BUILD_GUIDE = """\
# Building with constellation

Every request is checked locally before it reaches the platform. A failed
check returns `{error, code, path, expected}` and nothing is created.

## Order of work
1. `list_resource_types` shows what depends on what; create earlier types first.
2. Ids come back from `<resource>_create_one`. Never invent an id.
3. Forms: create the form, then the root field, then each field after the
   fields its `previousFields` name. Finish with `validate_form`.
4. Journeys: create the journey, any `Move To Step` triggers, then the
   `onJourneyStart` step and the steps that follow it. Finish with `validate_journey`.
5. `run_plan` runs a whole ordered build with `$ref` id substitution.

## Updates
Updates merge by default. `options.replaceObjectFields=true` replaces object
and array fields wholesale; read the resource first or use `preview_update`.

## When unsure
`describe_resource`, `explain_variant` and `explain_concept` (replaceObjectFields,
previousFields, journeyEntry, triggerPlacement).
"""


@server.list_prompts()  # type: ignore[untyped-decorator,no-untyped-call]
async def list_prompts() -> list[Prompt]:
    return [
        Prompt(
            name="constellation-build",
            description="How to build forms, journeys and triggers in dependency order. Use at session start.",
        ),
    ]


@server.get_prompt()  # type: ignore[untyped-decorator,no-untyped-call]
async def get_build_prompt(name: str, arguments: dict[str, str] | None = None) -> GetPromptResult:
    if name != "constellation-build":
        msg = f"Unknown prompt: {name}"
        raise ValueError(msg)
    text = _BUILD_GUIDE
    if (_request_session.get() or session) is not None:
        text = _BUILD_GUIDE + "\n" + _catalog_text()
    return GetPromptResult(
        description="constellation build guide",
        messages=[PromptMessage(role="user", content=TextContent(type="text", text=text))],
    )


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@server.list_tools()  # type: ignore[untyped-decorator,no-untyped-call]
async def list_tools() -> list[Tool]:
    return list(_TOOLS)


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    t0 = time.monotonic()
    try:
        result = await _dispatch(name, arguments or {})
    except Exception:
        if _logger:
            _logger.error("tool_error", extra={"tool": name, "args_data": arguments}, exc_info=True)
        raise
    duration_ms = round((time.monotonic() - t0) * 1000, 1)
    if _logger:
        _logger.info("tool_call", extra={"tool": name, "args_data": arguments, "duration_ms": duration_ms})
    return result


async def _dispatch(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    handler = _HANDLERS.get(name)
    if handler is None:
        return _text({"error": f"Unknown tool: {name}", "code": "unknown_tool"})
    result: list[TextContent] = await handler(arguments)
    return result


# ---------------------------------------------------------------------------
# HTTP transport factory
# ---------------------------------------------------------------------------


def create_mcp_app(session_resolver: Callable[[], BuildSession | None] | None = None) -> Any:
    """Create an ASGI app + lifespan hook for MCP streamable-HTTP.

    Returns ``(asgi_app, lifespan_context_manager)``.  The lifespan must be
    entered by the parent application so the ``StreamableHTTPSessionManager``
    task group is running before the first request arrives.

    ``session_resolver`` optionally returns the :class:`BuildSession` each
    request should use.
    """
    from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
    from starlette.responses import JSONResponse

    session_manager = StreamableHTTPSessionManager(app=server, json_response=False, stateless=True)

    async def _handle_mcp(scope: Any, receive: Any, send: Any) -> None:
        token: Any = None
        if session_resolver is not None:
            resolved = session_resolver()
            if resolved is None:
                resp = JSONResponse(
                    {"error": "Unable to resolve build session", "code": "session_unavailable"},
                    status_code=503,
                )
                await resp(scope, receive, send)
                return
            token = _request_session.set(resolved)
        try:
            await session_manager.handle_request(scope, receive, send)
        except RuntimeError:
            # Session manager not started (lifespan not entered).
            resp = JSONResponse({"error": "MCP session manager not initialized"}, status_code=503)
            await resp(scope, receive, send)
        finally:
            if token is not None:
                _request_session.reset(token)

    return _handle_mcp, session_manager.run


def create_http_app() -> Any:
    """Starlette app serving the MCP endpoint at ``/mcp``."""
    from starlette.applications import Starlette
    from starlette.routing import Mount

    handler, lifespan_factory = create_mcp_app(session_resolver=lambda: session)

    @contextlib.asynccontextmanager
    async def _lifespan(app: Starlette) -> AsyncIterator[None]:
        async with lifespan_factory():
            yield

    return Starlette(routes=[Mount("/mcp", app=handler)], lifespan=_lifespan)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def _open(project_path: Path | None) -> None:
    global session, _project_dir, _logger

    if project_path:
        project_dir = project_path / PROJECT_DIR_NAME
        if not project_dir.is_dir():
            print(f"Error: {project_dir} not found. Run 'constellation init' first.", file=sys.stderr)
            sys.exit(1)
    else:
        try:
            project_dir = find_project_root()
        except FileNotFoundError:
            print(f"Error: No {PROJECT_DIR_NAME}/ found. Run 'constellation init' first.", file=sys.stderr)
            sys.exit(1)

    _project_dir = project_dir
    session = BuildSession.from_project(project_dir.parent)

    from constellation.logging import setup_logging

    _logger = setup_logging(project_dir)
    _logger.info("mcp_server_start", extra={"tool": "server", "args_data": {"project": str(project_dir.parent)}})


async def _run(project_path: Path | None) -> None:
    _open(project_path)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    import asyncio

    parser = argparse.ArgumentParser(description="Constellation MCP server")
    parser.add_argument(
        "--project", type=Path, default=None, help="Project root (auto-discovers .constellation/ if omitted)"
    )
    parser.add_argument("--http", action="store_true", help="Serve streamable HTTP instead of stdio")
    parser.add_argument("--port", type=int, default=DEFAULT_HTTP_PORT, help="HTTP port (with --http)")
    args = parser.parse_args()

    if args.http:
        import uvicorn

        _open(args.project)
        uvicorn.run(create_http_app(), host="127.0.0.1", port=args.port, log_level="warning")
        return

    asyncio.run(_run(args.project))


if __name__ == "__main__":
    main()
