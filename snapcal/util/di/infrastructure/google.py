"""Google infrastructure providers."""

from dishka import Scope, provide

from snapcal.adapter.google import GoogleOAuthClient, RealGoogleOAuthClient
from snapcal.config import Settings
from snapcal.util.di.base import ProviderBase


class GoogleProvider(ProviderBase):
    """Google component base."""

    __mock_component__ = "google"


class ProdGoogleProvider(GoogleProvider):
    """Production Google provider."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_google_oauth_client(self, settings: Settings) -> GoogleOAuthClient:
        """Provide Google OAuth client.

        Missing credentials are not an error here: the client reports them
        through ``ensure_configured`` when a link is started, and the health
        endpoint shows them as unconfigured.
        """
        return RealGoogleOAuthClient(
            client_id=settings.google.client_id,
            client_secret=settings.google.client_secret,
            redirect_uri=settings.google.redirect_uri,
        )
