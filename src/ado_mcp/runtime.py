"""Process composition: config -> credentials -> client -> registry -> router."""

import logging
from dataclasses import dataclass

import httpx

from .auth import create_credential_provider
from .client import DevOpsClient
from .config import Config, get_config
from .protocols import CredentialProvider, TokenSource
from .router import DispatchRouter
from .services import Services
from .tools import ToolRegistry, build_registry

logger = logging.getLogger("ado-mcp.runtime")


@dataclass
class Runtime:
    """Everything one server process needs, explicitly owned.

    The credential provider (and its token cache) lives exactly as long as
    this object.
    """

    config: Config
    credential_provider: CredentialProvider
    client: DevOpsClient
    registry: ToolRegistry
    router: DispatchRouter

    async def aclose(self) -> None:
        await self.client.aclose()
        logger.debug("Runtime closed")


def create_runtime(
    config: Config | None = None,
    *,
    credential_provider: CredentialProvider | None = None,
    token_source: TokenSource | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> Runtime:
    """Build the runtime for one process.

    Raises:
        ConfigError: If the organization URL is missing or malformed.
    """
    config = config or get_config()
    credential_provider = credential_provider or create_credential_provider(
        config, token_source
    )
    client = DevOpsClient(config, credential_provider, http_client)
    registry = build_registry(Services.from_client(client))
    logger.info(
        f"Runtime ready for {client.organization} ({credential_provider.mode} auth)"
    )
    return Runtime(
        config=config,
        credential_provider=credential_provider,
        client=client,
        registry=registry,
        router=DispatchRouter(registry),
    )
