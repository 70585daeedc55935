"""Handshake session domain service."""

import secrets
from datetime import datetime, timedelta, timezone

import logfire

from snapcal.domain.error import StateAllocationError
from snapcal.domain.model.handshake_session import HandshakeSession
from snapcal.domain.repository.handshake_session import HandshakeSessionRepository
from snapcal.domain.value import ExternalId, HandshakeState

from .base import Service

STATE_BYTES = 32  # bytes of entropy behind each state token
STATE_ATTEMPTS = 3


def state_preview(state: str) -> str:
    """Shorten a state token for logs."""
    return state[:8] + "..."


class HandshakeService(Service):
    """Domain service for OAuth handshake sessions."""

    def __init__(
        self,
        handshake_session_repository: HandshakeSessionRepository,
        session_ttl: timedelta,
    ) -> None:
        """Initialize handshake service.

        Args:
            handshake_session_repository: Handshake session repository
            session_ttl: Lifetime of a new session
        """
        self.handshake_session_repository = handshake_session_repository
        self.session_ttl = session_ttl

    async def sweep_expired(self) -> int:
        """Delete sessions past their expiry.

        Returns:
            Number of sessions removed
        """
        with logfire.span("handshake_service.sweep_expired"):
            removed = await self.handshake_session_repository.delete_expired(
                datetime.now(timezone.utc)
            )
            if removed:
                logfire.info("Expired handshake sessions swept", removed=removed)
            return removed

    async def open_session(
        self, external_id: ExternalId, external_display_name: str | None
    ) -> HandshakeSession:
        """Sweep expired sessions, then open a new one with a fresh state.

        Args:
            external_id: Chat identity starting the link
            external_display_name: Optional label carried to the final record

        Returns:
            The stored session

        Raises:
            StateAllocationError: If no unique state could be stored
        """
        with logfire.span(
            "handshake_service.open_session", external_id=str(external_id)
        ):
            await self.sweep_expired()

            for _ in range(STATE_ATTEMPTS):
                session = HandshakeSession.open(
                    state=HandshakeState(secrets.token_urlsafe(STATE_BYTES)),
                    external_id=external_id,
                    external_display_name=external_display_name,
                    ttl=self.session_ttl,
                )
                try:
                    saved = await self.handshake_session_repository.create(session)
                except ValueError:
                    logfire.warn(
                        "Handshake state collision, regenerating",
                        state_preview=state_preview(session.state),
                    )
                    continue

                logfire.info(
                    "Handshake session opened",
                    external_id=str(external_id),
                    state_preview=state_preview(saved.state),
                    expires_at=saved.expires_at.isoformat(),
                )
                return saved

            raise StateAllocationError("Could not allocate a unique handshake state")

    async def consume(self, state: HandshakeState) -> HandshakeSession | None:
        """Take a live session out of the store, exactly once.

        Args:
            state: State token from the callback

        Returns:
            The session if it was live, None if unknown, expired or already used
        """
        with logfire.span(
            "handshake_service.consume", state_preview=state_preview(state)
        ):
            session = await self.handshake_session_repository.consume(
                state, datetime.now(timezone.utc)
            )
            if session:
                logfire.info(
                    "Handshake session consumed",
                    external_id=str(session.external_id),
                    state_preview=state_preview(state),
                )
            else:
                logfire.warn(
                    "No live handshake session for state",
                    state_preview=state_preview(state),
                )
            return session
