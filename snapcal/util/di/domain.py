"""Domain layer DI providers."""

from datetime import timedelta

from dishka import Scope, provide

from snapcal.adapter.discord import DiscordNotifier
from snapcal.adapter.google import GoogleOAuthClient
from snapcal.config import RegistrationSettings
from snapcal.domain.repository import (
    ExternalIdentityRepository,
    HandshakeSessionRepository,
)
from snapcal.domain.service import (
    HandshakeService,
    IdentityDirectoryService,
    Notifier,
    OAuthClient,
)
from snapcal.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped to align with repository/session lifecycle.
    Each HTTP request gets fresh service instances with their own transaction.
    """

    scope = Scope.REQUEST

    @provide
    def get_oauth_client(self, google_client: GoogleOAuthClient) -> OAuthClient:
        """Provide the OAuth client used for account linking (Google)."""
        return google_client

    @provide
    def get_notifier(self, discord_notifier: DiscordNotifier) -> Notifier:
        """Provide the chat notifier (Discord direct messages)."""
        return discord_notifier

    @provide
    def get_handshake_service(
        self,
        handshake_session_repository: HandshakeSessionRepository,
        registration_settings: RegistrationSettings,
    ) -> HandshakeService:
        """Provide handshake session domain service."""
        return HandshakeService(
            handshake_session_repository=handshake_session_repository,
            session_ttl=timedelta(minutes=registration_settings.session_ttl_minutes),
        )

    @provide
    def get_identity_service(
        self,
        identity_repository: ExternalIdentityRepository,
        registration_settings: RegistrationSettings,
    ) -> IdentityDirectoryService:
        """Provide identity directory domain service."""
        return IdentityDirectoryService(
            identity_repository=identity_repository,
            max_retries=registration_settings.merge_max_retries,
        )
