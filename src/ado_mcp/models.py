from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field

from .exceptions import AdoMCPError, AuthError, NotFoundError

MAX_ERROR_BODY_CHARS = 2000

# =============================================================================
# AUTHENTICATION MODELS
# =============================================================================


class AuthMode(StrEnum):
    """Authentication mode, fixed for the lifetime of the process."""

    STATIC_TOKEN = "static-token"
    INTERACTIVE = "interactive"


class AccessToken(BaseModel):
    """Bearer token obtained from an interactive exchange."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(..., description="Opaque bearer token")
    expires_at: datetime = Field(..., description="Timezone-aware expiry instant")


# =============================================================================
# TOOL DESCRIPTORS
# =============================================================================


class ToolDescriptor(BaseModel):
    """Immutable description of one tool, as exposed to tool listings."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., description="Unique tool name")
    description: str = Field(..., description="Human-readable purpose of the tool")
    input_schema: dict[str, Any] = Field(
        ..., alias="inputSchema", description="JSON Schema of accepted arguments"
    )


# =============================================================================
# DISPATCH OUTCOMES
# =============================================================================
# Produced fresh for every dispatch. Transports only ever see these, never
# raw exceptions.


class FailureKind(StrEnum):
    """Classification of dispatch failures."""

    UNKNOWN_TOOL = "UnknownTool"
    AUTH_ERROR = "AuthError"
    REMOTE_ERROR = "RemoteError"
    INTERNAL_ERROR = "InternalError"


class Success(BaseModel):
    """Successful dispatch carrying the operation's result."""

    ok: Literal[True] = True
    value: Any = Field(None, description="Result of the operation")


class Failure(BaseModel):
    """Failed dispatch."""

    ok: Literal[False] = False
    kind: FailureKind = Field(..., description="Failure classification")
    message: str = Field(..., description="Human-readable failure description")
    status_code: int | None = Field(
        None, description="Remote HTTP status, when the remote API answered"
    )

    @classmethod
    def from_error(cls, error: Exception) -> "Failure":
        """Classify any exception raised while executing a tool.

        Args:
            error: Any Exception instance

        Returns:
            Failure describing the error
        """
        if isinstance(error, AuthError):
            return cls(kind=FailureKind.AUTH_ERROR, message=error.message)
        if isinstance(error, NotFoundError):
            return cls(kind=FailureKind.REMOTE_ERROR, message=error.message)
        if isinstance(error, httpx.HTTPStatusError):
            response = error.response
            body = response.text[:MAX_ERROR_BODY_CHARS]
            return cls(
                kind=FailureKind.REMOTE_ERROR,
                message=(
                    f"Azure DevOps request failed ({response.status_code}): "
                    f"{error.request.method} {error.request.url}: {body}"
                ),
                status_code=response.status_code,
            )
        if isinstance(error, httpx.RequestError):
            return cls(
                kind=FailureKind.REMOTE_ERROR,
                message=f"Network error: {type(error).__name__}: {error}",
            )
        if isinstance(error, AdoMCPError):
            return cls(kind=FailureKind.INTERNAL_ERROR, message=error.message)
        return cls(
            kind=FailureKind.INTERNAL_ERROR,
            message=f"Unexpected error: {type(error).__name__}: {error}",
        )


DispatchOutcome = Success | Failure
