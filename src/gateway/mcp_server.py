"""Binds the tool registry to a low-level MCP server.

The server object is built once and shared; each HTTP request connects its
own transport to it (see session.py). Tool failures are shaped here into
`CallToolResult(isError=True)` so the transport still answers 200.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import unquote

import mcp.types as types
import structlog
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from pydantic import AnyUrl

from src.constants import MCP_SERVER_NAME, MCP_SERVER_VERSION
from src.infra.errors import ToolError
from src.tools.base import BaseTool, render_json
from src.tools.registry import ToolRegistry

logger = structlog.get_logger()

GREETING_SCHEME = "greeting://"
GREETING_TEMPLATE = types.ResourceTemplate(
    uriTemplate="greeting://{name}",
    name="greeting",
    title="Greeting Resource",
    description="Dynamic greeting generator",
    mimeType="text/plain",
)


def tool_definition(tool: BaseTool) -> types.Tool:
    return types.Tool(
        name=tool.name,
        title=tool.title,
        description=tool.description,
        inputSchema=tool.parameters,
    )


def success_result(result: Any) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=render_json(result))],
        isError=False,
    )


def error_result(payload: dict[str, Any]) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=render_json(payload))],
        isError=True,
    )


async def execute_tool_call(
    registry: ToolRegistry, name: str, arguments: dict[str, Any] | None
) -> types.CallToolResult:
    """Run one tool call and shape the outcome into a protocol tool result.

    ToolError subclasses (InvalidInput, ToolNotFound, BackendError) are forwarded
    with their payload; anything else is logged and reported generically.
    """
    log = logger.bind(tool_name=name)
    try:
        result = await registry.call(name, arguments)
    except ToolError as e:
        log.warning("tool_call_failed", code=e.code, error=str(e))
        return error_result(e.to_payload())
    except Exception:
        log.exception("tool_call_crashed")
        return error_result(
            {"error": "InternalError", "message": "An internal error occurred"}
        )
    log.info("tool_call_ok")
    return success_result(result)


def render_greeting(uri: str) -> str:
    """Resolve `greeting://{name}` to its greeting text."""
    if not uri.startswith(GREETING_SCHEME):
        raise ValueError(f"Unknown resource: {uri}")
    name = unquote(uri[len(GREETING_SCHEME):].rstrip("/"))
    if not name:
        raise ValueError(f"Missing name in resource URI: {uri}")
    return f"Hello, {name}!"


def build_mcp_server(registry: ToolRegistry) -> Server:
    """Create the shared MCP server exposing the registry's tools and the greeting template."""
    server: Server = Server(MCP_SERVER_NAME, version=MCP_SERVER_VERSION)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return [tool_definition(tool) for tool in registry.list_tools()]

    # Arguments are validated by each tool's pydantic model so that schema
    # violations surface as InvalidInput payloads.
    @server.call_tool(validate_input=False)
    async def handle_call_tool(
        name: str, arguments: dict[str, Any] | None
    ) -> types.CallToolResult:
        return await execute_tool_call(registry, name, arguments)

    @server.list_resource_templates()
    async def handle_list_resource_templates() -> list[types.ResourceTemplate]:
        return [GREETING_TEMPLATE]

    @server.read_resource()
    async def handle_read_resource(uri: AnyUrl) -> list[ReadResourceContents]:
        return [ReadResourceContents(content=render_greeting(str(uri)), mime_type="text/plain")]

    return server
