"""Mock Google providers for testing."""

from dishka import Scope, provide

from snapcal.adapter.google import GoogleOAuthClient, MockGoogleOAuthClient
from snapcal.util.di.infrastructure.google import GoogleProvider


class MockGoogleProvider(GoogleProvider):
    """Mock Google provider using mock OAuth client."""

    __is_mock__ = True

    @provide(scope=Scope.APP)
    def get_google_oauth_client(self) -> GoogleOAuthClient:
        """Provide mock Google OAuth client."""
        return MockGoogleOAuthClient()
