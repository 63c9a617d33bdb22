"""Protocol definitions for dependency injection and interface contracts."""

from typing import Protocol

from .models import AccessToken, AuthMode


class CredentialProvider(Protocol):
    """Protocol for authorization header providers."""

    @property
    def mode(self) -> AuthMode: ...

    async def get_authorization_header(self) -> str:
        """Get the value for the Authorization header.

        Returns:
            Header value, e.g. ``Bearer <token>`` or ``Basic <encoded>``.

        Raises:
            AuthError: If a token cannot be obtained.
        """
        ...


class TokenSource(Protocol):
    """Protocol for interactive token exchanges."""

    async def acquire(self) -> AccessToken:
        """Run one token exchange.

        Returns:
            Fresh access token with its expiry.

        Raises:
            AuthError: If the exchange is rejected or cannot complete.
        """
        ...
