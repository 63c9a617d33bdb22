"""Azure DevOps client - handles low-level API calls."""

import logging
import re
from typing import Any

import httpx

from .auth import create_credential_provider
from .config import Config, get_config
from .consts import DEVOPS_HOST, IDENTITY_HOST, SEARCH_HOST, USER_AGENT
from .exceptions import ConfigError
from .protocols import CredentialProvider

logger = logging.getLogger("ado-mcp.client")

ORG_URL_PATTERN = re.compile(r"dev\.azure\.com/([^/?#]+)")


def parse_organization(org_url: str | None) -> str:
    """Extract the organization name from an organization URL.

    Raises:
        ConfigError: If the URL is missing or does not name an organization.
    """
    if not org_url:
        raise ConfigError(
            "AZURE_DEVOPS_ORG_URL is not configured",
            suggestions=["Set AZURE_DEVOPS_ORG_URL=https://dev.azure.com/{organization}"],
        )
    match = ORG_URL_PATTERN.search(org_url)
    if not match:
        raise ConfigError(
            f"Invalid organization URL: {org_url}",
            suggestions=["Expected https://dev.azure.com/{organization}"],
            context={"org_url": org_url},
        )
    return match.group(1)


class DevOpsClient:
    """Azure DevOps API client with authentication.

    Responsibilities:
    - Resolve the organization once, at construction
    - Attach fresh authorization material to every request
    - Raise httpx errors for HTTP 4xx/5xx responses
    """

    def __init__(
        self,
        config: Config | None = None,
        credential_provider: CredentialProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize DevOpsClient.

        Args:
            config: Config instance. If None, uses get_config().
            credential_provider: Authorization provider. If None, one is
                created for the configured auth mode.
            http_client: HTTP client. If None, creates a new one.

        Raises:
            ConfigError: If the organization URL is missing or malformed.
        """
        self.config = config or get_config()
        self.organization = parse_organization(self.config.org_url)

        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=self.config.timeout_seconds,
            follow_redirects=True,
        )
        self.credential_provider = credential_provider or create_credential_provider(
            self.config
        )

        logger.info(f"Azure DevOps client created for organization: {self.organization}")

    @property
    def base_url(self) -> str:
        return f"https://{DEVOPS_HOST}/{self.organization}"

    @property
    def search_url(self) -> str:
        return f"https://{SEARCH_HOST}/{self.organization}"

    @property
    def identity_url(self) -> str:
        return f"https://{IDENTITY_HOST}/{self.organization}"

    def url(self, path: str) -> str:
        """Resolve a path against the organization base URL.

        Absolute URLs (search and identity hosts) pass through unchanged.
        """
        if path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        content_type: str | None = None,
        api_version: str | None = None,
    ) -> Any:
        """Issue one authenticated request.

        Args:
            method: HTTP method.
            path: Path below the organization, or an absolute URL.
            params: Query parameters; None values are dropped.
            json: JSON body.
            content_type: Overrides the JSON content type (e.g. JSON patch).
            api_version: Overrides the configured api-version.

        Returns:
            Parsed JSON data, or text for non-JSON responses.

        Raises:
            AuthError: From the credential provider.
            httpx.HTTPStatusError: For HTTP 4xx/5xx responses.
            httpx.RequestError: For network errors, timeouts, DNS failures.
        """
        query = {"api-version": api_version or self.config.api_version}
        query.update({k: v for k, v in (params or {}).items() if v is not None})

        headers = {
            "Authorization": await self.credential_provider.get_authorization_header()
        }
        if content_type:
            headers["Content-Type"] = content_type

        url = self.url(path)
        logger.debug(f"{method} {url}")
        response = await self.http_client.request(
            method, url, params=query, json=json, headers=headers
        )
        response.raise_for_status()
        logger.debug(f"{method} {url} successful")

        if not response.content:
            return None
        if "json" in response.headers.get("content-type", ""):
            return response.json()
        return response.text

    async def get_json(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post_json(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def patch_json(self, path: str, **kwargs) -> Any:
        return await self.request("PATCH", path, **kwargs)

    async def put_json(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def get_list(
        self, path: str, *, key: str = "value", missing_ok: bool = False, **kwargs
    ) -> list:
        """GET a collection and return the list stored under ``key``.

        Args:
            path: Path below the organization, or an absolute URL.
            key: Response field holding the items.
            missing_ok: Treat HTTP 404 as an empty collection. Used where
                absence is a normal state (feature not enabled, nothing
                provisioned); every other error status propagates.

        Raises:
            httpx.HTTPStatusError: For HTTP errors not covered by missing_ok.
        """
        try:
            data = await self.get_json(path, **kwargs)
        except httpx.HTTPStatusError as e:
            if missing_ok and e.response.status_code == 404:
                logger.info(f"{path} not found, returning empty list")
                return []
            raise
        return (data or {}).get(key) or []

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> "DevOpsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
