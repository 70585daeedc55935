"""Tests for complete link use case."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from snapcal.adapter.discord import DiscordNotifier, MockDiscordNotifier
from snapcal.adapter.google import (
    GoogleOAuthClient,
    GoogleOAuthError,
    MockGoogleOAuthClient,
)
from snapcal.application.usecase.registration.complete_link import (
    CompleteLinkRequest,
    CompleteLinkUseCase,
)
from snapcal.application.usecase.registration.initiate_link import (
    InitiateLinkRequest,
    InitiateLinkUseCase,
)
from snapcal.domain.repository import HandshakeSessionRepository
from snapcal.domain.service import HandshakeService, IdentityDirectoryService
from snapcal.domain.value import ExternalId, LinkOutcome, MergeResult
from tests.conftest import make_session
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()

USER = "123456789012345678"


async def start_link(env, external_id: str = USER, display_name: str = "alice") -> str:
    """Run initiate and return the issued state."""
    initiate = await env.get(InitiateLinkUseCase)
    response = await initiate.execute(
        InitiateLinkRequest(external_id=external_id, display_name=display_name)
    )
    return response.state


class SlowGoogleClient(MockGoogleOAuthClient):
    """Exchange that never finishes within the test timeout."""

    async def exchange_code(self, code):
        await asyncio.sleep(5)
        return await super().exchange_code(code)


class BrokenNotifier(MockDiscordNotifier):
    """Notifier whose delivery raises."""

    async def notify_success(self, external_id, provider_email):
        raise RuntimeError("gateway down")

    async def notify_failure(self, external_id, reason_code):
        raise RuntimeError("gateway down")


class TestCompleteLinkSuccess:
    """Successful callbacks."""

    @pytest.mark.asyncio
    async def test_first_link_creates_identity_and_notifies(self, unit_env):
        """Should link the verified email and DM the user."""
        google = await unit_env.get(GoogleOAuthClient)
        notifier = await unit_env.get(DiscordNotifier)
        identity_service = await unit_env.get(IdentityDirectoryService)
        use_case = await unit_env.get(CompleteLinkUseCase)
        google.register_code("code-1", "a@example.com")
        state = await start_link(unit_env)

        result = await use_case.execute(CompleteLinkRequest(code="code-1", state=state))

        assert result.outcome == LinkOutcome.SUCCESS
        assert result.merge_result == MergeResult.CREATED
        assert result.provider_email == "a@example.com"
        assert result.display_name == "alice"
        assert result.notified is True
        assert notifier.sent[0][:2] == (USER, "success")
        assert "a@example.com" in notifier.sent[0][2]

        record = await identity_service.get_record(ExternalId(USER))
        assert record.active_account.provider_email == "a@example.com"

    @pytest.mark.asyncio
    async def test_link_add_then_refresh(self, unit_env):
        """Should walk through created, added and refreshed merges."""
        google = await unit_env.get(GoogleOAuthClient)
        identity_service = await unit_env.get(IdentityDirectoryService)
        use_case = await unit_env.get(CompleteLinkUseCase)
        google.register_code("first", "a@example.com")
        google.register_code("second", "b@example.com")
        google.register_code("third", "c@example.com")
        google.register_code("again", "a@example.com")

        outcomes = []
        for code in ("first", "second", "third"):
            state = await start_link(unit_env)
            result = await use_case.execute(CompleteLinkRequest(code=code, state=state))
            outcomes.append(result.merge_result)

        await identity_service.set_active_account(ExternalId(USER), 2)
        state = await start_link(unit_env)
        refreshed = await use_case.execute(CompleteLinkRequest(code="again", state=state))

        record = await identity_service.get_record(ExternalId(USER))
        assert outcomes == [MergeResult.CREATED, MergeResult.ADDED, MergeResult.ADDED]
        assert refreshed.merge_result == MergeResult.REFRESHED
        assert [a.provider_email for a in record.accounts] == [
            "a@example.com",
            "b@example.com",
            "c@example.com",
        ]
        assert record.active_account.provider_email == "a@example.com"

    @pytest.mark.asyncio
    async def test_notifier_failure_keeps_success(self, unit_env):
        """Should report success even when the DM cannot be delivered."""
        use_case = CompleteLinkUseCase(
            handshake_service=await unit_env.get(HandshakeService),
            identity_service=await unit_env.get(IdentityDirectoryService),
            oauth_client=await unit_env.get(GoogleOAuthClient),
            notifier=BrokenNotifier(),
        )
        state = await start_link(unit_env)

        result = await use_case.execute(CompleteLinkRequest(code="any", state=state))

        assert result.outcome == LinkOutcome.SUCCESS
        assert result.notified is False


class TestCompleteLinkFailures:
    """Every failure path ends in its own outcome code."""

    @pytest.mark.asyncio
    async def test_replayed_callback_is_invalid_state(self, unit_env):
        """Should process a state once and reject the replay without exchanging."""
        google = await unit_env.get(GoogleOAuthClient)
        use_case = await unit_env.get(CompleteLinkUseCase)
        state = await start_link(unit_env)

        first = await use_case.execute(CompleteLinkRequest(code="c", state=state))
        replay = await use_case.execute(CompleteLinkRequest(code="c", state=state))

        assert first.outcome == LinkOutcome.SUCCESS
        assert replay.outcome == LinkOutcome.INVALID_STATE
        assert google.exchanged_codes == ["c"]

    @pytest.mark.asyncio
    async def test_concurrent_callbacks_merge_once(self, unit_env):
        """Should let only one of two simultaneous callbacks through."""
        google = await unit_env.get(GoogleOAuthClient)
        use_case = await unit_env.get(CompleteLinkUseCase)
        state = await start_link(unit_env)

        results = await asyncio.gather(
            use_case.execute(CompleteLinkRequest(code="c", state=state)),
            use_case.execute(CompleteLinkRequest(code="c", state=state)),
        )

        outcomes = sorted(r.outcome.value for r in results)
        assert outcomes == [LinkOutcome.INVALID_STATE.value, LinkOutcome.SUCCESS.value]
        assert len(google.exchanged_codes) == 1

    @pytest.mark.asyncio
    async def test_unknown_state(self, unit_env):
        """Should reject a state that was never issued."""
        notifier = await unit_env.get(DiscordNotifier)
        use_case = await unit_env.get(CompleteLinkUseCase)

        result = await use_case.execute(
            CompleteLinkRequest(code="c", state="forged-state")
        )

        assert result.outcome == LinkOutcome.INVALID_STATE
        # Unattributable failures go to "unknown", which is unreachable
        assert result.notified is False
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_expired_state(self, unit_env):
        """Should reject a state whose session has expired."""
        repo = await unit_env.get(HandshakeSessionRepository)
        use_case = await unit_env.get(CompleteLinkUseCase)
        past = datetime.now(timezone.utc) - timedelta(minutes=11)
        await repo.create(make_session("expired-state", now=past))

        result = await use_case.execute(
            CompleteLinkRequest(code="c", state="expired-state")
        )

        assert result.outcome == LinkOutcome.INVALID_STATE

    @pytest.mark.asyncio
    async def test_missing_code(self, unit_env):
        """Should reject a callback without a code."""
        use_case = await unit_env.get(CompleteLinkUseCase)
        state = await start_link(unit_env)

        result = await use_case.execute(CompleteLinkRequest(state=state))

        assert result.outcome == LinkOutcome.MISSING_PARAMETERS

    @pytest.mark.asyncio
    async def test_missing_state(self, unit_env):
        """Should reject a callback without a state."""
        use_case = await unit_env.get(CompleteLinkUseCase)

        result = await use_case.execute(CompleteLinkRequest(code="c"))

        assert result.outcome == LinkOutcome.MISSING_PARAMETERS

    @pytest.mark.asyncio
    async def test_access_denied_consumes_and_notifies_owner(self, unit_env):
        """Should attribute a denial to the session owner and burn the state."""
        notifier = await unit_env.get(DiscordNotifier)
        use_case = await unit_env.get(CompleteLinkUseCase)
        state = await start_link(unit_env)

        denied = await use_case.execute(
            CompleteLinkRequest(error="access_denied", state=state)
        )
        retry = await use_case.execute(CompleteLinkRequest(code="c", state=state))

        assert denied.outcome == LinkOutcome.ACCESS_DENIED
        assert denied.external_id == USER
        assert denied.notified is True
        assert notifier.sent[0][:2] == (USER, "access_denied")
        assert retry.outcome == LinkOutcome.INVALID_STATE

    @pytest.mark.asyncio
    async def test_access_denied_without_state(self, unit_env):
        """Should still report the denial when no state came back."""
        use_case = await unit_env.get(CompleteLinkUseCase)

        result = await use_case.execute(CompleteLinkRequest(error="access_denied"))

        assert result.outcome == LinkOutcome.ACCESS_DENIED
        assert result.external_id is None
        assert result.notified is False

    @pytest.mark.asyncio
    async def test_other_provider_error_leaves_session(self, unit_env):
        """Should report provider_error without touching the session."""
        use_case = await unit_env.get(CompleteLinkUseCase)
        state = await start_link(unit_env)

        result = await use_case.execute(
            CompleteLinkRequest(error="server_error", state=state)
        )
        later = await use_case.execute(CompleteLinkRequest(code="c", state=state))

        assert result.outcome == LinkOutcome.PROVIDER_ERROR
        assert result.provider_error == "server_error"
        assert later.outcome == LinkOutcome.SUCCESS

    @pytest.mark.asyncio
    async def test_unverified_email(self, unit_env):
        """Should refuse to link an unverified email."""
        google = await unit_env.get(GoogleOAuthClient)
        notifier = await unit_env.get(DiscordNotifier)
        identity_service = await unit_env.get(IdentityDirectoryService)
        use_case = await unit_env.get(CompleteLinkUseCase)
        google.register_code("unverified", "a@example.com", verified=False)
        state = await start_link(unit_env)

        result = await use_case.execute(
            CompleteLinkRequest(code="unverified", state=state)
        )

        assert result.outcome == LinkOutcome.EMAIL_NOT_VERIFIED
        assert notifier.sent[0][:2] == (USER, "email_not_verified")
        assert await identity_service.get_record(ExternalId(USER)) is None

    @pytest.mark.asyncio
    async def test_missing_email(self, unit_env):
        """Should treat an identity without email as unverified."""
        google = await unit_env.get(GoogleOAuthClient)
        use_case = await unit_env.get(CompleteLinkUseCase)
        google.register_code("no-email", None)
        state = await start_link(unit_env)

        result = await use_case.execute(CompleteLinkRequest(code="no-email", state=state))

        assert result.outcome == LinkOutcome.EMAIL_NOT_VERIFIED

    @pytest.mark.asyncio
    async def test_exchange_failure(self, unit_env):
        """Should map a provider exchange error to processing_failed."""
        google = await unit_env.get(GoogleOAuthClient)
        notifier = await unit_env.get(DiscordNotifier)
        use_case = await unit_env.get(CompleteLinkUseCase)
        google.register_code("bad", None, error=GoogleOAuthError("invalid_grant"))
        state = await start_link(unit_env)

        result = await use_case.execute(CompleteLinkRequest(code="bad", state=state))

        assert result.outcome == LinkOutcome.PROCESSING_FAILED
        assert notifier.sent[0][:2] == (USER, "processing_failed")

    @pytest.mark.asyncio
    async def test_timeout_is_processing_failed(self, unit_env):
        """Should give up after the timeout without linking anything."""
        identity_service = await unit_env.get(IdentityDirectoryService)
        use_case = CompleteLinkUseCase(
            handshake_service=await unit_env.get(HandshakeService),
            identity_service=identity_service,
            oauth_client=SlowGoogleClient(),
            notifier=await unit_env.get(DiscordNotifier),
            timeout_seconds=0.05,
        )
        state = await start_link(unit_env)

        result = await use_case.execute(CompleteLinkRequest(code="slow", state=state))

        assert result.outcome == LinkOutcome.PROCESSING_FAILED
        assert await identity_service.get_record(ExternalId(USER)) is None
