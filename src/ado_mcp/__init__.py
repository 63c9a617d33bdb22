"""Azure DevOps MCP Server Package

A Model Context Protocol (MCP) server exposing Azure DevOps work items,
repositories, pipelines, wikis and test plans as tools, over stdio or HTTP.
"""

from .auth import InteractiveAuth, StaticTokenAuth, create_credential_provider
from .client import DevOpsClient
from .config import Config, ServerConfig, get_config, get_server_config
from .consts import PACKAGE_VERSION
from .exceptions import (
    AdoMCPError,
    AuthError,
    ConfigError,
    NotFoundError,
    ToolCallError,
)
from .models import Failure, FailureKind, Success, ToolDescriptor
from .router import DispatchRouter
from .runtime import Runtime, create_runtime
from .tools import ToolRegistry, build_registry

__version__ = PACKAGE_VERSION

__all__ = [
    "__version__",
    "get_config",
    "get_server_config",
    "create_credential_provider",
    "create_runtime",
    "build_registry",
    "Config",
    "ServerConfig",
    "StaticTokenAuth",
    "InteractiveAuth",
    "DevOpsClient",
    "ToolRegistry",
    "DispatchRouter",
    "Runtime",
    "ToolDescriptor",
    "Success",
    "Failure",
    "FailureKind",
    "AdoMCPError",
    "ConfigError",
    "AuthError",
    "NotFoundError",
    "ToolCallError",
]
