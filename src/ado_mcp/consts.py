"""High-value constants for the ado-mcp package."""

# Package metadata
PACKAGE_VERSION = "1.0.0"
SERVER_NAME = "ado-mcp"
BRIDGE_NAME = "ado-mcp-bridge"
USER_AGENT = f"{SERVER_NAME}/{PACKAGE_VERSION}"

# External API contract consts
DEVOPS_HOST = "dev.azure.com"
SEARCH_HOST = "almsearch.dev.azure.com"
IDENTITY_HOST = "vssps.dev.azure.com"
API_VERSION = "7.1"
COMMENTS_API_VERSION = "7.1-preview.4"
ALERTS_API_VERSION = "7.1-preview.1"
DEVOPS_SCOPE = "499b84ac-1321-427f-aa17-267ca6975798/.default"
INTERACTIVE_REDIRECT_URI = "http://localhost:8400"
JSON_PATCH_CONTENT_TYPE = "application/json-patch+json"
EMPTY_OBJECT_ID = "0" * 40

# MCP protocol consts
MCP_PROTOCOL_VERSION = "2024-11-05"
JSONRPC_VERSION = "2.0"

# Business logic consts
TOKEN_REFRESH_BUFFER_SECONDS = 60  # reuse only if more than 60s remain
DEFAULT_TOKEN_EXPIRY_SECONDS = 3600  # 1 hour
