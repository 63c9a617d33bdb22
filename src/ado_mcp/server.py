"""ado-mcp stdio server implementation."""

import asyncio
import json
import logging
from typing import Any

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from .config import get_config, setup_logging
from .consts import PACKAGE_VERSION, SERVER_NAME
from .exceptions import ToolCallError
from .models import DispatchOutcome, Failure, ToolDescriptor
from .router import DispatchRouter
from .runtime import create_runtime

logger = logging.getLogger("ado-mcp.server")


def to_mcp_tool(descriptor: ToolDescriptor) -> types.Tool:
    return types.Tool(
        name=descriptor.name,
        description=descriptor.description,
        inputSchema=descriptor.input_schema,
    )


def render_value(value: Any) -> str:
    """Text rendering of a tool result; strings (file and page content) pass through."""
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2)


def encode_outcome(outcome: DispatchOutcome) -> list[types.TextContent]:
    """Encode an outcome as MCP tool content.

    Raises:
        ToolCallError: For failures; the MCP library turns it into a tool
            result with isError set.
    """
    if isinstance(outcome, Failure):
        raise ToolCallError(
            f"{outcome.kind}: {outcome.message}", context={"kind": outcome.kind}
        )
    return [types.TextContent(type="text", text=render_value(outcome.value))]


def create_server(router: DispatchRouter) -> Server:
    """Create the stdio MCP server bound to a router."""
    server = Server(SERVER_NAME, version=PACKAGE_VERSION)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [to_mcp_tool(descriptor) for descriptor in router.list_tools()]

    # Input validation stays with the remote API, as for every other transport
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict | None) -> list[types.TextContent]:
        logger.info(f"Tool call: {name}")
        outcome = await router.dispatch(name, arguments)
        return encode_outcome(outcome)

    return server


async def serve(router: DispatchRouter) -> None:
    server = create_server(router)
    async with stdio_server() as (read_stream, write_stream):
        logger.info(f"{SERVER_NAME} running on stdio")
        await server.run(
            read_stream, write_stream, server.create_initialization_options()
        )


async def _run() -> None:
    runtime = create_runtime()
    try:
        await serve(runtime.router)
    finally:
        await runtime.aclose()


def main() -> None:
    """Run the MCP server on stdio."""
    setup_logging(get_config().log_level)
    logger.info(f"Starting {SERVER_NAME} {PACKAGE_VERSION}")
    try:
        asyncio.run(_run())
    except Exception as e:
        logger.error(f"Server failed: {e}")
        raise


if __name__ == "__main__":
    main()
