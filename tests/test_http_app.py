"""Tests for the HTTP function endpoints"""

import json
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from ado_mcp.config import ServerConfig
from ado_mcp.consts import MCP_PROTOCOL_VERSION, PACKAGE_VERSION, SERVER_NAME
from ado_mcp.exceptions import AuthError
from ado_mcp.http_app import create_app
from ado_mcp.router import DispatchRouter
from ado_mcp.tools import PROJECT, ToolRegistry

API_KEY = "function-key"


def http_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://dev.azure.com/contoso/_apis/x")
    response = httpx.Response(status_code, text="remote says no", request=request)
    return httpx.HTTPStatusError("error", request=request, response=response)


@pytest.fixture
def handler():
    return AsyncMock(return_value=[{"id": 1, "name": "Web"}])


@pytest.fixture
def router(handler):
    registry = ToolRegistry()
    registry.register(
        "list_projects_in", "List things in a project", handler, {"project": PROJECT}
    )
    registry.freeze()
    return DispatchRouter(registry)


@pytest.fixture
def server_config(clean_env):
    return ServerConfig(_env_file=None, api_key=API_KEY)


@pytest.fixture
def app_client(router, server_config):
    return TestClient(create_app(router, server_config))


@pytest.fixture
def auth_headers():
    return {"x-api-key": API_KEY}


def rpc(method: str, params: dict | None = None, request_id=1) -> dict:
    payload = {"jsonrpc": "2.0", "method": method, "id": request_id}
    if params is not None:
        payload["params"] = params
    return payload


class TestApiKey:
    """Endpoint protection"""

    def test_health_needs_no_key(self, app_client):
        response = app_client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "service": SERVER_NAME,
            "version": PACKAGE_VERSION,
        }

    @pytest.mark.parametrize(
        "headers,params",
        [
            ({"x-api-key": API_KEY}, {}),
            ({"Authorization": f"Bearer {API_KEY}"}, {}),
            ({}, {"code": API_KEY}),
            ({}, {"key": API_KEY}),
        ],
    )
    def test_accepted_key_locations(self, app_client, headers, params):
        response = app_client.get("/api/tools", headers=headers, params=params)
        assert response.status_code == 200

    @pytest.mark.parametrize(
        "headers",
        [{}, {"x-api-key": "wrong"}, {"Authorization": "Bearer wrong"}],
    )
    def test_rejected_keys(self, app_client, headers):
        response = app_client.get("/api/tools", headers=headers)
        assert response.status_code == 401

    @pytest.mark.parametrize("params", [{"code": "é"}, {"key": "ключ"}])
    def test_non_ascii_key_rejected(self, app_client, params):
        response = app_client.get("/api/tools", params=params)
        assert response.status_code == 401

    def test_mcp_endpoint_rejects_with_rpc_error(self, app_client):
        response = app_client.post("/api/mcp", json=rpc("tools/list"))

        assert response.status_code == 401
        assert response.json()["error"]["code"] == -32000

    def test_mcp_endpoint_rejects_non_ascii_key(self, app_client):
        response = app_client.post("/api/mcp", params={"key": "é"}, json=rpc("ping"))

        assert response.status_code == 401
        assert response.json()["error"]["code"] == -32000

    def test_no_key_configured_allows_all(self, router, clean_env):
        client = TestClient(create_app(router, ServerConfig(_env_file=None)))
        assert client.get("/api/tools").status_code == 200


class TestRestEndpoints:
    """GET /api/tools and POST /api/tools/{tool_name}"""

    def test_list_tools(self, app_client, auth_headers):
        tools = app_client.get("/api/tools", headers=auth_headers).json()["tools"]

        assert tools == [
            {
                "name": "list_projects_in",
                "description": "List things in a project",
                "inputSchema": {
                    "type": "object",
                    "properties": {"project": PROJECT},
                },
            }
        ]

    def test_execute_tool_success(self, app_client, auth_headers, handler):
        response = app_client.post(
            "/api/tools/list_projects_in", headers=auth_headers, json={"project": "Web"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "result": [{"id": 1, "name": "Web"}],
        }
        handler.assert_awaited_once_with("Web")

    def test_execute_tool_without_body(self, app_client, auth_headers, handler):
        response = app_client.post("/api/tools/list_projects_in", headers=auth_headers)

        assert response.status_code == 200
        handler.assert_awaited_once_with(None)

    @pytest.mark.parametrize(
        "error,status_code,kind",
        [
            (AuthError("sign-in rejected"), 502, "AuthError"),
            (http_error(404), 502, "RemoteError"),
            (RuntimeError("bug"), 500, "InternalError"),
        ],
    )
    def test_execute_tool_failure(
        self, app_client, auth_headers, handler, error, status_code, kind
    ):
        handler.side_effect = error

        response = app_client.post(
            "/api/tools/list_projects_in", headers=auth_headers, json={}
        )

        assert response.status_code == status_code
        body = response.json()
        assert body["success"] is False
        assert body["kind"] == kind
        assert body["error"]

    def test_execute_unknown_tool(self, app_client, auth_headers):
        response = app_client.post("/api/tools/nope", headers=auth_headers, json={})

        assert response.status_code == 404
        assert response.json()["kind"] == "UnknownTool"


class TestMcpEndpoint:
    """POST /api/mcp JSON-RPC handling"""

    def test_initialize(self, app_client, auth_headers):
        body = app_client.post(
            "/api/mcp", headers=auth_headers, json=rpc("initialize", {})
        ).json()

        assert body["id"] == 1
        assert body["result"]["protocolVersion"] == MCP_PROTOCOL_VERSION
        assert body["result"]["capabilities"] == {"tools": {}}
        assert body["result"]["serverInfo"]["name"] == SERVER_NAME

    def test_initialized_notification(self, app_client, auth_headers):
        response = app_client.post(
            "/api/mcp",
            headers=auth_headers,
            json={"jsonrpc": "2.0", "method": "notifications/initialized"},
        )

        assert response.status_code == 200
        assert response.json()["result"] == {}

    def test_tools_list(self, app_client, auth_headers):
        body = app_client.post(
            "/api/mcp", headers=auth_headers, json=rpc("tools/list")
        ).json()

        assert [t["name"] for t in body["result"]["tools"]] == ["list_projects_in"]
        assert "inputSchema" in body["result"]["tools"][0]

    def test_tools_call_success(self, app_client, auth_headers, handler):
        body = app_client.post(
            "/api/mcp",
            headers=auth_headers,
            json=rpc(
                "tools/call",
                {"name": "list_projects_in", "arguments": {"project": "Web"}},
                request_id="abc",
            ),
        ).json()

        assert body["id"] == "abc"
        content = body["result"]["content"]
        assert content[0]["type"] == "text"
        assert json.loads(content[0]["text"]) == [{"id": 1, "name": "Web"}]

    def test_tools_call_unknown_tool(self, app_client, auth_headers):
        body = app_client.post(
            "/api/mcp",
            headers=auth_headers,
            json=rpc("tools/call", {"name": "nope", "arguments": {}}),
        ).json()

        assert body["error"]["code"] == -32602
        assert body["error"]["data"]["kind"] == "UnknownTool"

    def test_tools_call_remote_failure(self, app_client, auth_headers, handler):
        handler.side_effect = http_error(403)

        body = app_client.post(
            "/api/mcp",
            headers=auth_headers,
            json=rpc("tools/call", {"name": "list_projects_in"}),
        ).json()

        assert body["error"]["code"] == -32603
        assert body["error"]["data"] == {"kind": "RemoteError", "statusCode": 403}
        assert "remote says no" in body["error"]["message"]

    def test_tools_call_without_name(self, app_client, auth_headers):
        body = app_client.post(
            "/api/mcp", headers=auth_headers, json=rpc("tools/call", {})
        ).json()
        assert body["error"]["code"] == -32602

    def test_unknown_method(self, app_client, auth_headers):
        body = app_client.post(
            "/api/mcp", headers=auth_headers, json=rpc("resources/list")
        ).json()

        assert body["error"]["code"] == -32601
        assert "resources/list" in body["error"]["message"]

    def test_parse_error(self, app_client, auth_headers):
        response = app_client.post(
            "/api/mcp",
            headers={**auth_headers, "Content-Type": "application/json"},
            content=b"{not json",
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == -32700

    @pytest.mark.parametrize(
        "payload",
        [
            {"jsonrpc": "2.0", "id": 3},
            {"jsonrpc": "1.0", "method": "tools/list", "id": 3},
            [rpc("tools/list")],
        ],
    )
    def test_invalid_request(self, app_client, auth_headers, payload):
        response = app_client.post("/api/mcp", headers=auth_headers, json=payload)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == -32600
