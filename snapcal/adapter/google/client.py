"""Google OAuth 2.0 client implementation.

Implements the authorization code flow used to verify which Google account
a chat user owns. Only the profile and email scopes are requested; offline
access with forced consent keeps a refresh token available for the calendar
integration.
"""

from urllib.parse import urlencode

import httpx
import logfire

from snapcal.adapter.error import ProviderError
from snapcal.domain.service.oauth import OAuthClient
from snapcal.domain.value import HandshakeState, ProviderIdentity
from snapcal.util.error import ConfigurationError

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

GOOGLE_SCOPES = [
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]

REQUEST_TIMEOUT = 30.0  # seconds


class GoogleOAuthError(ProviderError):
    """Google OAuth error."""

    pass


class GoogleOAuthClient(OAuthClient):
    """Base class for Google OAuth clients.

    Provides type distinction for dependency injection.
    """

    pass


class RealGoogleOAuthClient(GoogleOAuthClient):
    """Google OAuth 2.0 client backed by Google's token and userinfo endpoints."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
    ) -> None:
        """Initialize Google OAuth client.

        Args:
            client_id: Google OAuth client ID
            client_secret: Google OAuth client secret
            redirect_uri: Callback URL registered with Google
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

    def is_configured(self) -> bool:
        """Check that all three credentials are present."""
        return bool(self.client_id and self.client_secret and self.redirect_uri)

    def ensure_configured(self) -> None:
        """Raise if credentials are missing.

        Raises:
            ConfigurationError: If client ID, secret or redirect URI is empty
        """
        if not self.client_id:
            raise ConfigurationError("GOOGLE__CLIENT_ID not configured")
        if not self.client_secret:
            raise ConfigurationError("GOOGLE__CLIENT_SECRET not configured")
        if not self.redirect_uri:
            raise ConfigurationError("GOOGLE__REDIRECT_URI not configured")

    def build_authorization_url(self, state: HandshakeState) -> str:
        """Build the Google consent URL.

        Args:
            state: State parameter for CSRF protection

        Returns:
            Authorization URL to send to the user
        """
        self.ensure_configured()

        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(GOOGLE_SCOPES),
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }

        return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> ProviderIdentity:
        """Exchange the callback code and look up the Google profile.

        Args:
            code: Authorization code from the callback

        Returns:
            Google identity with email verification status

        Raises:
            GoogleOAuthError: If any request fails
        """
        access_token = await self._exchange_code_for_token(code)
        user_info = await self._get_user_info(access_token)

        if "id" not in user_info:
            raise GoogleOAuthError("Userinfo response missing account id")

        logfire.info(
            "Google OAuth completed",
            google_user_id=user_info["id"],
            verified_email=bool(user_info.get("verified_email")),
        )

        return ProviderIdentity(
            subject=str(user_info["id"]),
            email=user_info.get("email"),
            email_verified=bool(user_info.get("verified_email", False)),
            display_name=user_info.get("name"),
        )

    async def _exchange_code_for_token(self, code: str) -> str:
        """Exchange authorization code for access token.

        Args:
            code: Authorization code from callback

        Returns:
            Access token

        Raises:
            GoogleOAuthError: If token exchange fails
        """
        data = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    GOOGLE_TOKEN_URL,
                    data=data,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                    timeout=REQUEST_TIMEOUT,
                )

                if response.status_code != 200:
                    logfire.error(
                        "Google token exchange failed",
                        status_code=response.status_code,
                        error=response.text,
                    )
                    raise GoogleOAuthError(
                        f"Token exchange failed: {response.status_code}"
                    )

                result = response.json()
                if "access_token" not in result:
                    raise GoogleOAuthError("Token response missing access_token")
                return result["access_token"]

        except httpx.HTTPError as e:
            logfire.error("Google token exchange HTTP error", error=str(e))
            raise GoogleOAuthError(f"HTTP error during token exchange: {e}") from e

    async def _get_user_info(self, access_token: str) -> dict:
        """Get the user's Google profile.

        Args:
            access_token: OAuth access token

        Returns:
            Userinfo dictionary (id, email, verified_email, name, ...)

        Raises:
            GoogleOAuthError: If the request fails
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                    timeout=REQUEST_TIMEOUT,
                )

                if response.status_code != 200:
                    logfire.error(
                        "Google userinfo request failed",
                        status_code=response.status_code,
                        error=response.text,
                    )
                    raise GoogleOAuthError(
                        f"Userinfo request failed: {response.status_code}"
                    )

                return response.json()

        except httpx.HTTPError as e:
            logfire.error("Google userinfo HTTP error", error=str(e))
            raise GoogleOAuthError(f"HTTP error fetching userinfo: {e}") from e


class MockGoogleOAuthClient(GoogleOAuthClient):
    """Mock Google OAuth client for testing.

    Codes registered with ``register_code`` resolve to the given identity
    (or raise the given error); any other code resolves to a default
    verified mock account.
    """

    DEFAULT_EMAIL = "mock.user@gmail.com"

    def __init__(self, configured: bool = True):
        """Initialize mock client without real OAuth configuration."""
        self.configured = configured
        self._responses: dict[str, ProviderIdentity | Exception] = {}
        self.exchanged_codes: list[str] = []

    def register_code(
        self,
        code: str,
        email: str | None,
        verified: bool = True,
        error: Exception | None = None,
    ) -> None:
        """Decide what ``exchange_code`` returns for a code."""
        if error is not None:
            self._responses[code] = error
            return
        self._responses[code] = ProviderIdentity(
            subject=f"google-{code}",
            email=email,
            email_verified=verified,
            display_name="Mock Google User",
        )

    def is_configured(self) -> bool:
        """Return the configured flag."""
        return self.configured

    def ensure_configured(self) -> None:
        """Raise when constructed as unconfigured."""
        if not self.configured:
            raise ConfigurationError("Google OAuth not configured")

    def build_authorization_url(self, state: HandshakeState) -> str:
        """Return mock authorization URL."""
        self.ensure_configured()
        return f"{GOOGLE_AUTHORIZE_URL}?state={state}&mock=true"

    async def exchange_code(self, code: str) -> ProviderIdentity:
        """Return the registered identity for ``code``."""
        self.exchanged_codes.append(code)
        response = self._responses.get(code)
        if isinstance(response, Exception):
            raise response
        if response is not None:
            return response
        return ProviderIdentity(
            subject="google-mock-123",
            email=self.DEFAULT_EMAIL,
            email_verified=True,
            display_name="Mock Google User",
        )
