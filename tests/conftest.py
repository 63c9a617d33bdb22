"""Pytest configuration and shared fixtures"""

import asyncio
import json
import os
from datetime import UTC, datetime, timedelta

import httpx
import pytest

from ado_mcp.auth import StaticTokenAuth
from ado_mcp.client import DevOpsClient
from ado_mcp.config import Config
from ado_mcp.models import AccessToken

# Configure pytest-asyncio
pytest_plugins = ("pytest_asyncio",)

ORG_URL = "https://dev.azure.com/contoso"
ENV_PREFIXES = ("AZURE_DEVOPS_", "MCP_")


class FakeTokenSource:
    """Token source that counts exchanges and can be held open or made to fail.

    ``gate`` is set by default; clear it to keep exchanges in flight until
    the test sets it again.
    """

    def __init__(self, ttl_seconds: float = 3600):
        self.ttl_seconds = ttl_seconds
        self.calls = 0
        self.fail_with: Exception | None = None
        self.gate = asyncio.Event()
        self.gate.set()

    async def acquire(self) -> AccessToken:
        self.calls += 1
        await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        return AccessToken(
            token=f"token-{self.calls}",
            expires_at=datetime.now(UTC) + timedelta(seconds=self.ttl_seconds),
        )


class RecordingTransport:
    """httpx mock transport that records requests and answers from a handler.

    The handler receives the request and returns an httpx.Response, a
    JSON-serializable value (sent as 200 JSON), or an int status code.
    """

    def __init__(self, handler=None):
        self.handler = handler or (lambda request: {})
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        result = self.handler(request)
        if isinstance(result, httpx.Response):
            return result
        if isinstance(result, int):
            return httpx.Response(result, json={"message": f"status {result}"})
        return httpx.Response(200, json=result)

    def body(self, index: int = -1):
        return json.loads(self.requests[index].content)


@pytest.fixture
def clean_env():
    """Fixture that temporarily clears AZURE_DEVOPS_* and MCP_* environment variables.

    This ensures Config tests see the true defaults without interference
    from environment variables that might be set in the user's shell.
    """
    saved = {
        key: value for key, value in os.environ.items() if key.startswith(ENV_PREFIXES)
    }
    for key in saved:
        del os.environ[key]

    try:
        yield
    finally:
        for key in [k for k in os.environ if k.startswith(ENV_PREFIXES)]:
            del os.environ[key]
        os.environ.update(saved)


@pytest.fixture
def clean_config(clean_env):
    """Config built from defaults only (no environment, no .env file)."""
    return Config(_env_file=None)


@pytest.fixture
def config(clean_env):
    """Config for a PAT-authenticated test organization"""
    return Config(_env_file=None, org_url=ORG_URL, pat="test-pat", log_level="DEBUG")


@pytest.fixture
def token_source():
    return FakeTokenSource()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
async def client(config, transport):
    """DevOpsClient talking to the recording transport"""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(transport))
    devops = DevOpsClient(config, StaticTokenAuth("test-pat"), http_client)
    yield devops
    await http_client.aclose()
