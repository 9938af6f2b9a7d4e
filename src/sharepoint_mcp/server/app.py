"""MCP server wiring: binds the tool, resource and prompt tables to a SharePointClient."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from pydantic import AnyUrl

from sharepoint_mcp import __version__
from sharepoint_mcp.server import prompts
from sharepoint_mcp.server.dispatch import ToolRegistry
from sharepoint_mcp.server.resources import ResourceRouter
from sharepoint_mcp.server.resources import router as default_router
from sharepoint_mcp.server.tools import registry as default_registry

if TYPE_CHECKING:
    from sharepoint_mcp.graph.sharepoint import SharePointClient

logger = logging.getLogger(__name__)

SERVER_NAME = "sharepoint-mcp"


def build_server(
    client: SharePointClient,
    registry: ToolRegistry = default_registry,
    router: ResourceRouter = default_router,
) -> Server:
    """Create the low-level MCP server for a SharePoint client.

    Args:
        client: SharePointClient shared by every invocation.
        registry: Tool table; defaults to the SharePoint tools.
        router: Resource table; defaults to the ``sharepoint://`` resources.

    Returns:
        Configured, not yet running, MCP Server.
    """
    server: Server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return registry.list_tools()

    # Arguments are validated by the tool's pydantic model so that failures
    # come back as error envelopes.
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
        envelope = await registry.dispatch(client, name, arguments)
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=envelope.text)],
            isError=envelope.is_error,
        )

    @server.list_resources()
    async def list_resources() -> list[types.Resource]:
        return router.list_resources()

    @server.list_resource_templates()
    async def list_resource_templates() -> list[types.ResourceTemplate]:
        return router.list_resource_templates()

    @server.read_resource()
    async def read_resource(uri: AnyUrl) -> list[ReadResourceContents]:
        result = await router.read(client, str(uri))
        return [ReadResourceContents(content=result.envelope.text, mime_type=result.mime_type)]

    @server.list_prompts()
    async def list_prompts() -> list[types.Prompt]:
        return prompts.list_prompts()

    @server.get_prompt()
    async def get_prompt(name: str, arguments: dict[str, str] | None) -> types.GetPromptResult:
        return prompts.get_prompt(name, arguments)

    return server


async def serve(client: SharePointClient) -> None:
    """Run the MCP server over stdio until the client disconnects."""
    server = build_server(client)
    logger.info("[serve] starting MCP server; name:%s;version:%s", SERVER_NAME, __version__)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
    logger.info("[serve] MCP server stopped")
