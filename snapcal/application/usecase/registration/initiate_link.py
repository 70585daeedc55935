"""Initiate account link use case."""

import logfire
from pydantic import BaseModel

from snapcal.application.usecase.base import BaseUseCase
from snapcal.domain.error import ValidationError
from snapcal.domain.service import HandshakeService, OAuthClient
from snapcal.domain.service.handshake_service import state_preview
from snapcal.domain.value import ExternalId


class InitiateLinkRequest(BaseModel):
    """Initiate link request from a chat command."""

    external_id: str  # Chat platform user id
    display_name: str | None = None  # Chat display name, carried to the record


class InitiateLinkResponse(BaseModel):
    """Initiate link response."""

    authorization_url: str
    state: str


class InitiateLinkUseCase(BaseUseCase):
    """Use case for starting the OAuth handshake that links a provider account."""

    def __init__(
        self,
        handshake_service: HandshakeService,
        oauth_client: OAuthClient,
    ) -> None:
        """Initialize initiate link use case.

        Args:
            handshake_service: Handshake session domain service
            oauth_client: Provider OAuth client
        """
        self.handshake_service = handshake_service
        self.oauth_client = oauth_client

    async def execute(self, request: InitiateLinkRequest) -> InitiateLinkResponse:
        """Execute initiate link flow.

        Steps:
        1. Validate the chat identity
        2. Check provider credentials (before anything is written)
        3. Sweep expired sessions and open a new one
        4. Build the provider consent URL around the session state

        Args:
            request: Request with chat identity

        Returns:
            Authorization URL and state

        Raises:
            ValidationError: If external_id is empty
            ConfigurationError: If provider credentials are missing
        """
        external_id = request.external_id.strip()
        if not external_id:
            raise ValidationError("external_id is required")

        self.oauth_client.ensure_configured()

        with logfire.span("initiate_link", external_id=external_id):
            session = await self.handshake_service.open_session(
                ExternalId(external_id), request.display_name
            )
            authorization_url = self.oauth_client.build_authorization_url(session.state)

            logfire.info(
                "Account link initiated",
                external_id=external_id,
                state_preview=state_preview(session.state),
            )

            return InitiateLinkResponse(
                authorization_url=authorization_url,
                state=session.state,
            )
