"""Configuration management."""

import logging
from functools import cache

from pydantic import ConfigDict, Field, SecretStr, computed_field
from pydantic_settings import BaseSettings

from .consts import API_VERSION
from .models import AuthMode

LOG_LEVEL_PATTERN = r"^(DEBUG|INFO|WARNING|ERROR)$"


class Config(BaseSettings):
    """Azure DevOps connection settings.

    The presence of ``pat`` selects static-token authentication for the
    lifetime of the process; without it the interactive browser sign-in is used.
    """

    model_config = ConfigDict(
        env_prefix="AZURE_DEVOPS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )
    org_url: str | None = Field(
        default=None,
        description="Organization URL, e.g. https://dev.azure.com/{organization}",
    )
    pat: SecretStr | None = Field(
        default=None, description="Personal access token (selects static-token mode)"
    )
    login_hint: str | None = Field(
        default=None, description="Account to pre-fill in the interactive sign-in"
    )
    api_version: str = Field(default=API_VERSION, description="REST API version")
    log_level: str = Field(
        default="INFO",
        pattern=LOG_LEVEL_PATTERN,
        description="Logging level",
    )
    timeout_seconds: int = Field(
        default=30, gt=0, le=300, description="HTTP request timeout in seconds"
    )

    @computed_field
    @property
    def auth_mode(self) -> AuthMode:
        """Authentication mode selected by the presence of a PAT."""
        if self.pat is not None and self.pat.get_secret_value():
            return AuthMode.STATIC_TOKEN
        return AuthMode.INTERACTIVE


class ServerConfig(BaseSettings):
    """Settings for the HTTP endpoints and the stdio-to-HTTP bridge."""

    model_config = ConfigDict(
        env_prefix="MCP_", env_file=".env", case_sensitive=False, extra="ignore"
    )
    api_key: SecretStr | None = Field(
        default=None, description="Key required by the HTTP endpoints (if set)"
    )
    host: str = Field(default="0.0.0.0", description="HTTP bind address")
    port: int = Field(default=3000, gt=0, lt=65536, description="HTTP port")
    remote_url: str | None = Field(
        default=None, description="Remote /api/mcp endpoint used by the bridge"
    )
    function_key: SecretStr | None = Field(
        default=None, description="Function key appended to remote_url as ?code="
    )
    log_level: str = Field(
        default="INFO",
        pattern=LOG_LEVEL_PATTERN,
        description="Logging level",
    )
    timeout_seconds: int = Field(
        default=120, gt=0, le=600, description="Bridge HTTP timeout in seconds"
    )


@cache
def get_config() -> Config:
    """Get a cached Config instance."""
    return Config()


@cache
def get_server_config() -> ServerConfig:
    """Get a cached ServerConfig instance."""
    return ServerConfig()


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """Configure logging for the entire application.

    Logs go to stderr; stdout carries the MCP stdio channel.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,  # Override any existing configuration
    )
    return logging.getLogger("ado-mcp")
