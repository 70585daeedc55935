"""Persistence infrastructure providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide
import logfire
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from snapcal.config import Settings
from snapcal.domain.repository import (
    ExternalIdentityRepository,
    HandshakeSessionRepository,
)
from snapcal.persistence.database import create_engine, create_session_factory
from snapcal.persistence.repository import (
    PostgresExternalIdentityRepository,
    PostgresHandshakeSessionRepository,
)
from snapcal.util.di.base import ProviderBase
from snapcal.util.observability import instrument_sqlalchemy


class PersistenceProvider(ProviderBase):
    """Persistence component base."""

    __mock_component__ = "persistence"


class ProdPersistenceProvider(PersistenceProvider):
    """Production persistence provider using PostgreSQL."""

    __is_mock__ = False

    scope = Scope.APP

    @provide(scope=Scope.APP)
    def get_engine(self, settings: Settings) -> AsyncEngine:
        """Provide database engine."""
        engine = create_engine(settings)
        instrument_sqlalchemy(engine)
        return engine

    @provide(scope=Scope.APP)
    def get_session_factory(
        self, engine: AsyncEngine
    ) -> async_sessionmaker[AsyncSession]:
        """Provide session factory."""
        return create_session_factory(engine)

    @provide(scope=Scope.REQUEST)
    async def get_session(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> AsyncIterator[AsyncSession]:
        """Provide database session for request scope.

        The session is committed at the end of the request if no exception
        occurred, or rolled back if one was raised. Repository writes that
        must fail independently run in savepoints.
        """
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                logfire.warn("Session rollback", error=str(e))
                await session.rollback()
                raise

    @provide(scope=Scope.REQUEST)
    def get_handshake_session_repository(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> HandshakeSessionRepository:
        """Provide HandshakeSession repository.

        Uses its own committed transactions rather than the request session.
        """
        return PostgresHandshakeSessionRepository(session_factory)

    @provide(scope=Scope.REQUEST)
    def get_identity_repository(
        self, session: AsyncSession
    ) -> ExternalIdentityRepository:
        """Provide ExternalIdentity repository."""
        return PostgresExternalIdentityRepository(session)
