"""Handshake session repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from snapcal.domain.model.handshake_session import HandshakeSession
from snapcal.domain.value import HandshakeState


class HandshakeSessionRepository(ABC):
    """Repository for short-lived OAuth handshake sessions.

    Sessions are write-once / delete-once. Implementations must make
    ``consume`` atomic: two concurrent callers for the same state may not
    both receive the session.
    """

    @abstractmethod
    async def create(self, session: HandshakeSession) -> HandshakeSession:
        """Persist a new session.

        Args:
            session: The session to store

        Returns:
            The stored session

        Raises:
            ValueError: If a session with the same state already exists
        """
        pass

    @abstractmethod
    async def find_live_by_state(
        self, state: HandshakeState, now: datetime
    ) -> Optional[HandshakeSession]:
        """Find a non-expired session by state.

        Args:
            state: The state token from the callback
            now: Reference time for the expiry check

        Returns:
            The session if present and ``expires_at > now``, None otherwise
        """
        pass

    @abstractmethod
    async def consume(
        self, state: HandshakeState, now: datetime
    ) -> Optional[HandshakeSession]:
        """Atomically delete and return a live session.

        Args:
            state: The state token from the callback
            now: Reference time for the expiry check

        Returns:
            The deleted session, or None if no live session existed
        """
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Delete every session with ``expires_at`` before ``now``.

        Idempotent; safe to run alongside a datastore TTL mechanism.

        Args:
            now: Reference time

        Returns:
            Number of sessions deleted
        """
        pass
