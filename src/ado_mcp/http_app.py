"""HTTP function endpoints - FastAPI application.

Routes:
- GET  /api/health             liveness, no key required
- GET  /api/tools              tool listing
- POST /api/tools/{tool_name}  REST-style tool call, JSON body = arguments
- POST /api/mcp                MCP over JSON-RPC 2.0
"""

import json
import logging
import secrets
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from .config import ServerConfig, get_config, get_server_config, setup_logging
from .consts import JSONRPC_VERSION, MCP_PROTOCOL_VERSION, PACKAGE_VERSION, SERVER_NAME
from .models import Failure, FailureKind
from .router import DispatchRouter
from .runtime import Runtime, create_runtime
from .server import render_value

logger = logging.getLogger("ado-mcp.http")

# JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
UNAUTHORIZED = -32000

FAILURE_STATUS = {
    FailureKind.UNKNOWN_TOOL: status.HTTP_404_NOT_FOUND,
    FailureKind.AUTH_ERROR: status.HTTP_502_BAD_GATEWAY,
    FailureKind.REMOTE_ERROR: status.HTTP_502_BAD_GATEWAY,
    FailureKind.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class JsonRpcRequest(BaseModel):
    """Incoming JSON-RPC 2.0 request or notification."""

    jsonrpc: str = Field(JSONRPC_VERSION, pattern=r"^2\.0$")
    method: str
    params: dict[str, Any] | None = None
    id: int | str | None = None


def rpc_result(request_id, result: Any) -> dict:
    return {"jsonrpc": JSONRPC_VERSION, "result": result, "id": request_id}


def rpc_error(request_id, code: int, message: str, data: Any = None) -> dict:
    error = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "error": error, "id": request_id}


def failure_to_rpc_error(request_id, failure: Failure) -> dict:
    code = INVALID_PARAMS if failure.kind is FailureKind.UNKNOWN_TOOL else INTERNAL_ERROR
    data = {"kind": failure.kind}
    if failure.status_code is not None:
        data["statusCode"] = failure.status_code
    return rpc_error(request_id, code, failure.message, data)


def has_valid_api_key(request: Request, expected: str | None) -> bool:
    """Check the API key from header, bearer token, or query parameter.

    With no key configured every request is allowed.
    """
    if not expected:
        return True

    authorization = request.headers.get("authorization", "")
    candidates = [
        request.headers.get("x-api-key"),
        authorization.removeprefix("Bearer ") if authorization else None,
        request.query_params.get("code"),
        request.query_params.get("key"),
    ]
    return any(
        candidate
        and secrets.compare_digest(candidate.encode(), expected.encode())
        for candidate in candidates
    )


def create_app(
    router: DispatchRouter,
    server_config: ServerConfig | None = None,
    runtime: Runtime | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        router: Dispatch router serving the tools.
        server_config: API key and server settings. If None, uses get_server_config().
        runtime: Closed on shutdown when given.
    """
    server_config = server_config or get_server_config()
    api_key = (
        server_config.api_key.get_secret_value() if server_config.api_key else None
    )
    if not api_key:
        logger.warning("MCP_API_KEY is not set - HTTP endpoints accept all requests")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"{SERVER_NAME} HTTP endpoints started")
        yield
        if runtime is not None:
            await runtime.aclose()
        logger.info(f"{SERVER_NAME} HTTP endpoints stopped")

    app = FastAPI(
        title=SERVER_NAME,
        description="Azure DevOps tools over HTTP and MCP",
        version=PACKAGE_VERSION,
        lifespan=lifespan,
    )
    app.state.router = router

    async def require_api_key(request: Request) -> None:
        if not has_valid_api_key(request, api_key):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized: Invalid or missing API key",
            )

    @app.get("/api/health", tags=["System"])
    async def health() -> dict:
        return {"status": "ok", "service": SERVER_NAME, "version": PACKAGE_VERSION}

    @app.get("/api/tools", tags=["Tools"], dependencies=[Depends(require_api_key)])
    async def list_tools() -> dict:
        tools = [d.model_dump(by_alias=True) for d in router.list_tools()]
        return {"tools": tools}

    @app.post(
        "/api/tools/{tool_name}",
        tags=["Tools"],
        dependencies=[Depends(require_api_key)],
    )
    async def execute_tool(
        tool_name: str, arguments: dict[str, Any] | None = Body(default=None)
    ) -> JSONResponse:
        outcome = await router.dispatch(tool_name, arguments)
        if isinstance(outcome, Failure):
            logger.error(f"Error executing tool {tool_name}: {outcome.message}")
            return JSONResponse(
                status_code=FAILURE_STATUS[outcome.kind],
                content={
                    "success": False,
                    "kind": outcome.kind,
                    "error": outcome.message,
                },
            )
        return JSONResponse(content={"success": True, "result": outcome.value})

    @app.post("/api/mcp", tags=["MCP"])
    async def mcp_endpoint(request: Request) -> JSONResponse:
        if not has_valid_api_key(request, api_key):
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content=rpc_error(
                    None, UNAUTHORIZED, "Unauthorized: Invalid or missing API key"
                ),
            )

        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=rpc_error(None, PARSE_ERROR, f"Parse error: {e}"),
            )

        try:
            rpc = JsonRpcRequest.model_validate(body)
        except ValidationError as e:
            request_id = body.get("id") if isinstance(body, dict) else None
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=rpc_error(request_id, INVALID_REQUEST, "Invalid Request", str(e)),
            )

        return JSONResponse(content=await handle_rpc(router, rpc))

    return app


async def handle_rpc(router: DispatchRouter, rpc: JsonRpcRequest) -> dict:
    """Answer one MCP JSON-RPC request."""
    logger.debug(f"MCP request: {rpc.method}")

    if rpc.method == "initialize":
        return rpc_result(
            rpc.id,
            {
                "protocolVersion": MCP_PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": SERVER_NAME, "version": PACKAGE_VERSION},
            },
        )

    if rpc.method in ("notifications/initialized", "ping"):
        return rpc_result(rpc.id, {})

    if rpc.method == "tools/list":
        tools = [d.model_dump(by_alias=True) for d in router.list_tools()]
        return rpc_result(rpc.id, {"tools": tools})

    if rpc.method == "tools/call":
        params = rpc.params or {}
        name = params.get("name")
        if not isinstance(name, str):
            return rpc_error(rpc.id, INVALID_PARAMS, "tools/call requires a tool name")

        outcome = await router.dispatch(name, params.get("arguments"))
        if isinstance(outcome, Failure):
            return failure_to_rpc_error(rpc.id, outcome)
        return rpc_result(
            rpc.id,
            {"content": [{"type": "text", "text": render_value(outcome.value)}]},
        )

    return rpc_error(rpc.id, METHOD_NOT_FOUND, f"Method not found: {rpc.method}")


def main() -> None:
    """Run the HTTP endpoints with uvicorn."""
    import uvicorn

    server_config = get_server_config()
    setup_logging(get_config().log_level)

    runtime = create_runtime()
    app = create_app(runtime.router, server_config, runtime)
    uvicorn.run(app, host=server_config.host, port=server_config.port)


if __name__ == "__main__":
    main()
