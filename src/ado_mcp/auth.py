"""Authentication management with single-flight token refresh."""

import asyncio
import base64
import logging
from datetime import UTC, datetime, timedelta

from azure.core.exceptions import AzureError
from azure.identity import InteractiveBrowserCredential

from .config import Config
from .consts import (
    DEFAULT_TOKEN_EXPIRY_SECONDS,
    DEVOPS_SCOPE,
    INTERACTIVE_REDIRECT_URI,
    TOKEN_REFRESH_BUFFER_SECONDS,
)
from .exceptions import AuthError
from .models import AccessToken, AuthMode
from .protocols import CredentialProvider, TokenSource

logger = logging.getLogger("ado-mcp.auth")


class StaticTokenAuth:
    """Credential provider for a personal access token.

    The token never expires from our point of view: no cache, no network.
    """

    mode = AuthMode.STATIC_TOKEN

    def __init__(self, pat: str):
        encoded = base64.b64encode(f":{pat}".encode()).decode("ascii")
        self._header = f"Basic {encoded}"

    async def get_authorization_header(self) -> str:
        return self._header


class InteractiveAuth:
    """Credential provider for interactive sign-in tokens.

    Responsibilities:
    - Cache the current token and reuse it while it has more than
      TOKEN_REFRESH_BUFFER_SECONDS left
    - Run at most one token exchange at a time: callers that miss the cache
      while an exchange is running wait for that exchange instead of
      starting another one
    - Surface exchange failures as AuthError to every waiting caller
    """

    mode = AuthMode.INTERACTIVE

    def __init__(self, token_source: TokenSource):
        """Initialize InteractiveAuth.

        Args:
            token_source: Performs the actual token exchange.
        """
        self.token_source = token_source
        self._cached: AccessToken | None = None
        self._inflight: asyncio.Task[str] | None = None

    async def get_authorization_header(self) -> str:
        """Get a Bearer header with a valid token.

        Raises:
            AuthError: If the token exchange fails.
        """
        return f"Bearer {await self.get_valid_token()}"

    async def get_valid_token(self) -> str:
        """Get a valid access token, acquiring one if needed.

        Returns:
            Bearer token string.

        Raises:
            AuthError: If the token exchange fails.
        """
        if not self._needs_refresh():
            return self._cached.token

        if self._inflight is None:
            logger.debug("Token cache miss, starting acquisition")
            self._inflight = asyncio.ensure_future(self._acquire())
        else:
            logger.debug("Token acquisition already in flight, waiting for it")

        # shield: a cancelled waiter must not cancel the shared acquisition
        return await asyncio.shield(self._inflight)

    def _needs_refresh(self) -> bool:
        """Check if the cached token is missing or too close to expiry."""
        if self._cached is None:
            return True
        remaining = self._cached.expires_at - datetime.now(UTC)
        return remaining <= timedelta(seconds=TOKEN_REFRESH_BUFFER_SECONDS)

    async def _acquire(self) -> str:
        try:
            try:
                token = await self.token_source.acquire()
            except AuthError:
                raise
            except Exception as e:
                raise AuthError(
                    f"Token acquisition failed: {e}",
                    suggestions=["Complete the sign-in in the browser and retry"],
                ) from e

            self._cached = token
            logger.info("Token refreshed successfully")
            return token.token
        finally:
            self._inflight = None


class BrowserTokenSource:
    """Token source backed by azure-identity's interactive browser sign-in.

    The credential is created on first use. ``get_token`` blocks until the
    user finishes signing in, so it runs in a worker thread.
    """

    def __init__(self, login_hint: str | None = None, scope: str = DEVOPS_SCOPE):
        self.login_hint = login_hint
        self.scope = scope
        self._credential: InteractiveBrowserCredential | None = None

    async def acquire(self) -> AccessToken:
        if self._credential is None:
            logger.warning("Initializing interactive browser authentication")
            logger.warning("A browser window will open for you to sign in")
            self._credential = InteractiveBrowserCredential(
                redirect_uri=INTERACTIVE_REDIRECT_URI,
                login_hint=self.login_hint,
            )

        logger.info("Acquiring access token")
        try:
            result = await asyncio.to_thread(self._credential.get_token, self.scope)
        except AzureError as e:
            raise AuthError(
                "Interactive sign-in failed",
                errors=[str(e)],
                suggestions=[
                    "Complete the sign-in in the browser window",
                    "Or set AZURE_DEVOPS_PAT to use a personal access token",
                ],
                context={"scope": self.scope},
            ) from e

        if result.expires_on:
            expires_at = datetime.fromtimestamp(result.expires_on, UTC)
        else:
            expires_at = datetime.now(UTC) + timedelta(
                seconds=DEFAULT_TOKEN_EXPIRY_SECONDS
            )
        logger.info("Authentication successful")
        return AccessToken(token=result.token, expires_at=expires_at)


def create_credential_provider(
    config: Config, token_source: TokenSource | None = None
) -> CredentialProvider:
    """Build the credential provider for the configured auth mode.

    Args:
        config: Config instance; a PAT selects static-token mode.
        token_source: Interactive exchange to use. Defaults to browser sign-in.
    """
    if config.auth_mode is AuthMode.STATIC_TOKEN:
        logger.info("Using personal access token authentication")
        return StaticTokenAuth(config.pat.get_secret_value())

    logger.info("Using interactive browser authentication")
    return InteractiveAuth(token_source or BrowserTokenSource(config.login_hint))
