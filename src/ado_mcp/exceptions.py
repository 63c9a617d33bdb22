"""ado-mcp custom exceptions.

Exception Design Principles:
1. Use these custom exceptions only when additional useful context can be provided
2. Handle exceptions as late as possible (the dispatch router is the only
   place that turns them into failure outcomes)
3. Split on domain of actionable information:
   - Recoverable by user reconfiguration outside session (ConfigError)
   - Recoverable by signing in again or fixing credentials (AuthError)
   - Tool failures re-raised for a transport library (ToolCallError)

Remote HTTP errors (401, 404, 5xx) are NOT wrapped here: they remain httpx
exceptions until the router classifies them.
"""


class AdoMCPError(Exception):
    """Base exception for all ado-mcp errors.

    Provides rich context and actionable suggestions beyond standard exceptions.
    """

    def __init__(
        self,
        message: str,  # the error message
        *,
        errors: list[str] = None,  # detailed list of errors (if available)
        suggestions: list[str] = None,  # remedial actions
        context: dict = None,  # additional detailed context
    ):
        """Initialize AdoMCPError.

        Args:
            message: Primary error message for users
            errors: List of specific error details
            suggestions: List of actionable suggestions for resolution
            context: Additional context information as key-value pairs
        """
        super().__init__(message)
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        self.context = context or {}


class ConfigError(AdoMCPError):
    """Application configuration errors - recoverable by user reconfiguration.

    Covers setup issues that prevent initialization:
    - Missing or malformed organization URL
    - Missing remote URL for the bridge

    Raised at construction time, never per call.
    """

    pass


class AuthError(AdoMCPError):
    """Credential exchange failed.

    Raised by the interactive credential provider when the sign-in exchange
    is rejected or cannot complete. Every caller that joined the same
    in-flight acquisition receives the same instance. Not retried
    automatically; the next call starts a fresh acquisition.
    """

    pass


class ToolCallError(AdoMCPError):
    """A tool call failed; raised by transports whose MCP library reports
    tool errors through exceptions. Carries the failure kind in ``context``.
    """

    pass


class NotFoundError(AdoMCPError):
    """The remote API answered, but the requested resource does not exist.

    Used where the API signals absence with an empty result instead of a
    404 (e.g. a branch filter matching no refs).
    """

    pass
