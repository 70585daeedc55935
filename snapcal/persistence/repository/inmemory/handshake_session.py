"""In-memory handshake session repository for testing."""

import asyncio
from datetime import datetime
from typing import Optional

from snapcal.domain.model.handshake_session import HandshakeSession
from snapcal.domain.repository.handshake_session import HandshakeSessionRepository
from snapcal.domain.value import HandshakeState


class InMemoryHandshakeSessionRepository(HandshakeSessionRepository):
    """In-memory implementation of HandshakeSessionRepository for testing."""

    def __init__(self) -> None:
        self._sessions: dict[str, HandshakeSession] = {}
        self._lock = asyncio.Lock()

    async def create(self, session: HandshakeSession) -> HandshakeSession:
        """Store a new session, rejecting a duplicate state."""
        async with self._lock:
            if session.state in self._sessions:
                raise ValueError(f"Handshake state already in use: {session.state}")
            self._sessions[session.state] = session
        return session

    async def find_live_by_state(
        self, state: HandshakeState, now: datetime
    ) -> Optional[HandshakeSession]:
        """Find a non-expired session by state."""
        await asyncio.sleep(0)
        session = self._sessions.get(state)
        if session is None or session.is_expired(now):
            return None
        return session

    async def consume(
        self, state: HandshakeState, now: datetime
    ) -> Optional[HandshakeSession]:
        """Pop a live session under the lock."""
        await asyncio.sleep(0)
        async with self._lock:
            session = self._sessions.get(state)
            if session is None or session.is_expired(now):
                return None
            return self._sessions.pop(state)

    async def delete_expired(self, now: datetime) -> int:
        """Remove every expired session."""
        async with self._lock:
            expired = [s for s, session in self._sessions.items() if session.is_expired(now)]
            for state in expired:
                del self._sessions[state]
            return len(expired)
