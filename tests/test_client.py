"""Tests for DevOpsClient"""

from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from ado_mcp.client import DevOpsClient, parse_organization
from ado_mcp.consts import API_VERSION, USER_AGENT
from ado_mcp.exceptions import AuthError, ConfigError


class TestParseOrganization:
    """Organization extraction from the configured URL"""

    @pytest.mark.parametrize(
        "org_url,expected",
        [
            ("https://dev.azure.com/contoso", "contoso"),
            ("https://dev.azure.com/contoso/", "contoso"),
            ("https://dev.azure.com/contoso/Fabrikam%20Web", "contoso"),
            ("https://dev.azure.com/contoso?x=1", "contoso"),
            ("dev.azure.com/my-org", "my-org"),
        ],
    )
    def test_valid_urls(self, org_url, expected):
        assert parse_organization(org_url) == expected

    @pytest.mark.parametrize(
        "org_url",
        [
            None,
            "",
            "https://contoso.visualstudio.com",
            "https://dev.azure.com/",
            "https://example.com/contoso",
        ],
    )
    def test_invalid_urls(self, org_url):
        with pytest.raises(ConfigError) as exc_info:
            parse_organization(org_url)
        assert exc_info.value.suggestions

    def test_client_construction_fails_without_org(self, clean_config):
        with pytest.raises(ConfigError):
            DevOpsClient(clean_config, credential_provider=Mock())


class TestDevOpsClient:
    """DevOpsClient HTTP operations

    This class is the authoritative source for HTTP error handling tests.
    Service tests focus on paths, payloads and absence policies.
    """

    def test_urls(self, client):
        assert client.organization == "contoso"
        assert client.base_url == "https://dev.azure.com/contoso"
        assert client.search_url == "https://almsearch.dev.azure.com/contoso"
        assert client.identity_url == "https://vssps.dev.azure.com/contoso"
        assert client.url("/_apis/projects") == (
            "https://dev.azure.com/contoso/_apis/projects"
        )
        assert client.url("https://almsearch.dev.azure.com/contoso/x") == (
            "https://almsearch.dev.azure.com/contoso/x"
        )

    @pytest.mark.asyncio
    async def test_get_json_adds_api_version_and_auth(self, client, transport):
        transport.handler = lambda request: {"value": [1, 2]}

        result = await client.get_json("/_apis/projects", params={"$top": 5})

        assert result == {"value": [1, 2]}
        request = transport.requests[0]
        assert request.url.params["api-version"] == API_VERSION
        assert request.url.params["$top"] == "5"
        assert request.headers["Authorization"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_none_params_dropped(self, client, transport):
        await client.get_json("/_apis/projects", params={"$top": None, "$skip": 2})

        params = transport.requests[0].url.params
        assert "$top" not in params
        assert params["$skip"] == "2"

    @pytest.mark.asyncio
    async def test_api_version_override(self, client, transport):
        await client.get_json("/_apis/x", api_version="7.1-preview.1")
        assert transport.requests[0].url.params["api-version"] == "7.1-preview.1"

    @pytest.mark.asyncio
    async def test_authorization_fetched_per_request(self, config, transport):
        provider = Mock()
        provider.get_authorization_header = AsyncMock(
            side_effect=["Bearer first", "Bearer second"]
        )
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(transport)
        ) as http_client:
            client = DevOpsClient(config, provider, http_client)
            await client.get_json("/_apis/a")
            await client.get_json("/_apis/b")

        assert [r.headers["Authorization"] for r in transport.requests] == [
            "Bearer first",
            "Bearer second",
        ]

    @pytest.mark.asyncio
    async def test_patch_content_type(self, client, transport):
        await client.request(
            "PATCH",
            "/_apis/wit/workitems/1",
            json=[{"op": "add"}],
            content_type="application/json-patch+json",
        )

        request = transport.requests[0]
        assert request.method == "PATCH"
        assert request.headers["Content-Type"] == "application/json-patch+json"
        assert transport.body() == [{"op": "add"}]

    @pytest.mark.parametrize(
        "response,expected",
        [
            (httpx.Response(200, json={"a": 1}), {"a": 1}),
            (httpx.Response(200, text="plain log line"), "plain log line"),
            (httpx.Response(204), None),
        ],
    )
    @pytest.mark.asyncio
    async def test_response_decoding(self, client, transport, response, expected):
        transport.handler = lambda request: response
        assert await client.get_json("/_apis/x") == expected

    @pytest.mark.parametrize("status_code", [400, 401, 404, 500, 503])
    @pytest.mark.asyncio
    async def test_http_errors_raise(self, client, transport, status_code):
        transport.handler = lambda request: status_code

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await client.post_json("/_apis/x", json={})
        assert exc_info.value.response.status_code == status_code

    @pytest.mark.asyncio
    async def test_network_error_raises(self, client, transport):
        def fail(request):
            raise httpx.ConnectError("Connection failed", request=request)

        transport.handler = fail
        with pytest.raises(httpx.ConnectError):
            await client.get_json("/_apis/x")

    @pytest.mark.asyncio
    async def test_auth_error_stops_request(self, config, transport):
        provider = Mock()
        provider.get_authorization_header = AsyncMock(side_effect=AuthError("no"))
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(transport)
        ) as http_client:
            client = DevOpsClient(config, provider, http_client)
            with pytest.raises(AuthError):
                await client.get_json("/_apis/x")

        assert transport.requests == []


class TestGetList:
    """Collection unwrapping and the 404 absence policy"""

    @pytest.mark.asyncio
    async def test_unwraps_value(self, client, transport):
        transport.handler = lambda request: {"count": 2, "value": ["a", "b"]}
        assert await client.get_list("/_apis/x") == ["a", "b"]

    @pytest.mark.asyncio
    async def test_custom_key(self, client, transport):
        transport.handler = lambda request: {"children": [{"name": "Sprint 1"}]}
        assert await client.get_list("/_apis/x", key="children") == [
            {"name": "Sprint 1"}
        ]

    @pytest.mark.asyncio
    async def test_missing_key_is_empty(self, client, transport):
        transport.handler = lambda request: {"count": 0}
        assert await client.get_list("/_apis/x") == []

    @pytest.mark.asyncio
    async def test_missing_ok_404_is_empty(self, client, transport):
        transport.handler = lambda request: 404
        assert await client.get_list("/_apis/x", missing_ok=True) == []

    @pytest.mark.parametrize("status_code", [401, 403, 500])
    @pytest.mark.asyncio
    async def test_missing_ok_other_errors_propagate(
        self, client, transport, status_code
    ):
        transport.handler = lambda request: status_code
        with pytest.raises(httpx.HTTPStatusError):
            await client.get_list("/_apis/x", missing_ok=True)

    @pytest.mark.asyncio
    async def test_404_propagates_by_default(self, client, transport):
        transport.handler = lambda request: 404
        with pytest.raises(httpx.HTTPStatusError):
            await client.get_list("/_apis/x")


class TestClientLifecycle:
    """Ownership of the underlying HTTP client"""

    @pytest.mark.asyncio
    async def test_owned_client_has_user_agent_and_closes(self, config):
        client = DevOpsClient(config, credential_provider=Mock())
        assert client.http_client.headers["User-Agent"] == USER_AGENT

        await client.aclose()
        assert client.http_client.is_closed

    @pytest.mark.asyncio
    async def test_injected_client_left_open(self, config):
        http_client = httpx.AsyncClient()
        async with DevOpsClient(config, Mock(), http_client):
            pass

        assert not http_client.is_closed
        await http_client.aclose()
