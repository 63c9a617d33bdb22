"""stdio-to-HTTP bridge.

Exposes the remote /api/mcp endpoint as a local stdio MCP server, for
clients that only speak stdio. Tool listings and calls are forwarded as
JSON-RPC requests; nothing is executed locally.
"""

import asyncio
import logging
from itertools import count
from typing import Any

import httpx
import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from pydantic import TypeAdapter

from .config import ServerConfig, get_server_config, setup_logging
from .consts import BRIDGE_NAME, JSONRPC_VERSION, PACKAGE_VERSION, USER_AGENT
from .exceptions import AdoMCPError, ConfigError, ToolCallError

logger = logging.getLogger("ado-mcp.bridge")

CONTENT_ADAPTER = TypeAdapter(list[types.ContentBlock])


class RemoteMCPError(AdoMCPError):
    """The remote endpoint answered with a JSON-RPC error."""

    def __init__(self, message: str, *, code: int | None = None, data: Any = None):
        super().__init__(
            message, context={"code": code, "data": data} if code is not None else None
        )
        self.code = code
        self.data = data


class RemoteMCPClient:
    """Minimal JSON-RPC client for a remote /api/mcp endpoint."""

    def __init__(
        self,
        remote_url: str,
        function_key: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 120,
    ):
        self.remote_url = remote_url
        self.function_key = function_key
        self._ids = count(1)
        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT}, timeout=timeout
        )

    async def call(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Send one JSON-RPC request and return its result.

        Raises:
            RemoteMCPError: If the remote answers with a JSON-RPC error.
            httpx.HTTPStatusError: For HTTP errors without a JSON-RPC body.
            httpx.RequestError: For network errors.
        """
        payload = {
            "jsonrpc": JSONRPC_VERSION,
            "method": method,
            "params": params or {},
            "id": next(self._ids),
        }
        query = {"code": self.function_key} if self.function_key else None

        logger.debug(f"Forwarding {method} to {self.remote_url}")
        response = await self.http_client.post(
            self.remote_url, json=payload, params=query
        )

        data = None
        if "json" in response.headers.get("content-type", ""):
            data = response.json()
        if isinstance(data, dict) and data.get("error"):
            error = data["error"]
            raise RemoteMCPError(
                error.get("message", "Remote error"),
                code=error.get("code"),
                data=error.get("data"),
            )
        response.raise_for_status()
        return data.get("result") if isinstance(data, dict) else None

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self.http_client.aclose()


def create_bridge_server(remote: RemoteMCPClient) -> Server:
    """Create a stdio MCP server that forwards to ``remote``."""
    server = Server(BRIDGE_NAME, version=PACKAGE_VERSION)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        result = await remote.call("tools/list") or {}
        return [types.Tool.model_validate(tool) for tool in result.get("tools", [])]

    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict | None) -> list[types.ContentBlock]:
        logger.info(f"Forwarding tool call: {name}")
        try:
            result = await remote.call(
                "tools/call", {"name": name, "arguments": arguments or {}}
            )
        except RemoteMCPError as e:
            kind = e.data.get("kind") if isinstance(e.data, dict) else None
            message = f"{kind}: {e.message}" if kind else e.message
            raise ToolCallError(message, context={"kind": kind, "code": e.code}) from e
        result = result or {}
        content = CONTENT_ADAPTER.validate_python(result.get("content", []))
        if result.get("isError"):
            text = " ".join(c.text for c in content if isinstance(c, types.TextContent))
            raise ToolCallError(text or f"Remote tool {name} failed")
        return content

    return server


def create_remote_client(server_config: ServerConfig) -> RemoteMCPClient:
    """Build the remote client from settings.

    Raises:
        ConfigError: If MCP_REMOTE_URL is not set.
    """
    if not server_config.remote_url:
        raise ConfigError(
            "MCP_REMOTE_URL is not configured",
            suggestions=["Set MCP_REMOTE_URL to the remote /api/mcp endpoint"],
        )
    function_key = (
        server_config.function_key.get_secret_value()
        if server_config.function_key
        else None
    )
    return RemoteMCPClient(
        server_config.remote_url,
        function_key,
        timeout=server_config.timeout_seconds,
    )


async def _run(server_config: ServerConfig) -> None:
    remote = create_remote_client(server_config)
    server = create_bridge_server(remote)
    try:
        async with stdio_server() as (read_stream, write_stream):
            logger.info(f"{BRIDGE_NAME} forwarding stdio to {remote.remote_url}")
            await server.run(
                read_stream, write_stream, server.create_initialization_options()
            )
    finally:
        await remote.aclose()


def main() -> None:
    """Run the bridge on stdio."""
    server_config = get_server_config()
    setup_logging(server_config.log_level)
    try:
        asyncio.run(_run(server_config))
    except Exception as e:
        logger.error(f"Bridge failed: {e}")
        raise


if __name__ == "__main__":
    main()
