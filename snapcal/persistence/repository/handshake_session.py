"""PostgreSQL implementation of HandshakeSession repository."""

from datetime import datetime
from typing import Optional

from sqlalchemy import and_, delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from snapcal.domain.model import HandshakeSession
from snapcal.domain.repository import HandshakeSessionRepository
from snapcal.domain.value import HandshakeState
from snapcal.persistence.mappers import (
    handshake_session_to_dict,
    row_to_handshake_session,
)
from snapcal.persistence.tables import handshake_sessions_table


class PostgresHandshakeSessionRepository(HandshakeSessionRepository):
    """PostgreSQL implementation of HandshakeSessionRepository.

    Every operation runs in its own transaction and is committed before it
    returns. A consumed state stays deleted even if the request that
    consumed it later rolls back.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize repository with a session factory.

        Args:
            session_factory: SQLAlchemy async session factory
        """
        self.session_factory = session_factory

    async def create(self, session: HandshakeSession) -> HandshakeSession:
        """Insert a new session.

        Raises:
            ValueError: If the state already exists
        """
        stmt = insert(handshake_sessions_table).values(
            **handshake_session_to_dict(session)
        )
        try:
            async with self.session_factory.begin() as db:
                await db.execute(stmt)
        except IntegrityError as e:
            raise ValueError(f"Handshake state already in use: {e}") from e
        return session

    async def find_live_by_state(
        self, state: HandshakeState, now: datetime
    ) -> Optional[HandshakeSession]:
        """Find a non-expired session by state."""
        stmt = select(handshake_sessions_table).where(
            and_(
                handshake_sessions_table.c.state == state,
                handshake_sessions_table.c.expires_at > now,
            )
        )
        async with self.session_factory() as db:
            result = await db.execute(stmt)
            row = result.mappings().first()
        return row_to_handshake_session(dict(row)) if row else None

    async def consume(
        self, state: HandshakeState, now: datetime
    ) -> Optional[HandshakeSession]:
        """Delete and return a live session in one committed statement.

        A concurrent consumer of the same state blocks on the row lock and
        then deletes nothing.
        """
        stmt = (
            delete(handshake_sessions_table)
            .where(
                and_(
                    handshake_sessions_table.c.state == state,
                    handshake_sessions_table.c.expires_at > now,
                )
            )
            .returning(handshake_sessions_table)
        )
        async with self.session_factory.begin() as db:
            result = await db.execute(stmt)
            row = result.mappings().first()
        return row_to_handshake_session(dict(row)) if row else None

    async def delete_expired(self, now: datetime) -> int:
        """Delete every session whose expiry has passed."""
        stmt = delete(handshake_sessions_table).where(
            handshake_sessions_table.c.expires_at <= now
        )
        async with self.session_factory.begin() as db:
            result = await db.execute(stmt)
        return result.rowcount or 0
