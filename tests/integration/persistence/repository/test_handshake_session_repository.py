"""Integration tests for PostgresHandshakeSessionRepository."""

import asyncio
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from snapcal.domain.model import ExternalIdentityRecord
from snapcal.domain.repository import (
    ExternalIdentityRepository,
    HandshakeSessionRepository,
)
from snapcal.domain.value import ExternalId
from tests.conftest import make_session
from tests.harness import create_env_fixture

integration_env = create_env_fixture(unmock={"persistence"})


def unique_state() -> str:
    return f"state-{uuid4().hex}"


class TestHandshakeSessionRepositoryIntegration:
    """Integration tests for the handshake session table."""

    @pytest.mark.asyncio
    async def test_create_and_find_live(self, integration_env):
        """Should store a session and find it while it is live."""
        repo = await integration_env.get(HandshakeSessionRepository)
        session = await repo.create(make_session(unique_state()))

        found = await repo.find_live_by_state(
            session.state, datetime.now(timezone.utc)
        )

        assert found is not None
        assert found.external_id == session.external_id
        assert found.external_display_name == "alice"

    @pytest.mark.asyncio
    async def test_duplicate_state_rejected(self, integration_env):
        """Should map the primary key violation to ValueError."""
        repo = await integration_env.get(HandshakeSessionRepository)
        state = unique_state()
        await repo.create(make_session(state))

        with pytest.raises(ValueError):
            await repo.create(make_session(state, external_id="other"))

    @pytest.mark.asyncio
    async def test_consume_used_state_returns_none(self, integration_env):
        """Should hand out a session only once."""
        repo = await integration_env.get(HandshakeSessionRepository)
        session = await repo.create(make_session(unique_state()))
        now = datetime.now(timezone.utc)

        first = await repo.consume(session.state, now)
        second = await repo.consume(session.state, now)

        assert first is not None
        assert first.state == session.state
        assert second is None

    @pytest.mark.asyncio
    async def test_consume_expired_state_returns_none(self, integration_env):
        """Should not hand out a session past its expiry."""
        repo = await integration_env.get(HandshakeSessionRepository)
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        session = await repo.create(
            make_session(unique_state(), ttl=timedelta(minutes=10), now=past)
        )

        assert await repo.consume(session.state, datetime.now(timezone.utc)) is None

    @pytest.mark.asyncio
    async def test_concurrent_consume_has_single_winner(self, integration_env):
        """Should let only one of several callers delete the row."""
        repo = await integration_env.get(HandshakeSessionRepository)
        session = await repo.create(make_session(unique_state()))
        now = datetime.now(timezone.utc)

        results = await asyncio.gather(
            *(repo.consume(session.state, now) for _ in range(5))
        )

        assert sum(r is not None for r in results) == 1

    @pytest.mark.asyncio
    async def test_consume_survives_request_rollback(self, integration_env):
        """A consumed state stays consumed when the request transaction fails."""
        repo = await integration_env.get(HandshakeSessionRepository)
        request_session = await integration_env.get(AsyncSession)
        session = await repo.create(make_session(unique_state()))
        now = datetime.now(timezone.utc)

        identity_repo = await integration_env.get(ExternalIdentityRepository)
        external_id = ExternalId(f"rollback-{uuid4().hex[:12]}")

        assert await repo.consume(session.state, now) is not None
        await identity_repo.save(
            ExternalIdentityRecord(external_id=external_id), expected_version=0
        )
        await request_session.rollback()

        assert await identity_repo.find_by_external_id(external_id) is None

        assert await repo.find_live_by_state(session.state, now) is None
        assert await repo.consume(session.state, now) is None

    @pytest.mark.asyncio
    async def test_delete_expired_keeps_live_sessions(self, integration_env):
        """Should remove expired sessions and leave live ones."""
        repo = await integration_env.get(HandshakeSessionRepository)
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        expired = await repo.create(make_session(unique_state(), now=past))
        live = await repo.create(make_session(unique_state()))
        now = datetime.now(timezone.utc)

        removed = await repo.delete_expired(now)

        assert removed >= 1
        assert await repo.find_live_by_state(live.state, now)
        assert await repo.consume(expired.state, now) is None
