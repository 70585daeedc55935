"""Unit tests for the Discord notifier."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from snapcal.adapter.discord import MockDiscordNotifier, RealDiscordNotifier
from snapcal.adapter.discord.notifier import render_failure, render_success
from snapcal.domain.value import ExternalId, LinkOutcome

USER = ExternalId("123456789012345678")


def make_response(status_code: int, payload: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json = MagicMock(return_value=payload or {})
    response.text = str(payload)
    return response


class TestMessages:
    """Tests for notification texts."""

    def test_success_mentions_email(self):
        """Should name the linked email."""
        assert "a@example.com" in render_success("a@example.com")

    @pytest.mark.parametrize(
        "outcome, phrase",
        [
            (LinkOutcome.INVALID_STATE, "expired or is invalid"),
            (LinkOutcome.ACCESS_DENIED, "cancelled"),
            (LinkOutcome.EMAIL_NOT_VERIFIED, "not verified"),
            (LinkOutcome.PROCESSING_FAILED, "technical error"),
        ],
    )
    def test_failure_text_per_outcome(self, outcome, phrase):
        """Should explain each failure differently."""
        message = render_failure(outcome.value)

        assert message.startswith("❌ **Authentication Failed**")
        assert phrase in message

    def test_unknown_reason_uses_default(self):
        """Should fall back to a generic message."""
        assert "unexpected error" in render_failure("something_else")


class TestRealDiscordNotifier:
    """Tests for RealDiscordNotifier."""

    @pytest.mark.asyncio
    async def test_sends_direct_message(self):
        """Should open a DM channel and post the message as the bot."""
        notifier = RealDiscordNotifier(bot_token="bot-token")

        with patch("httpx.AsyncClient") as mock_client:
            http = mock_client.return_value.__aenter__.return_value
            http.post = AsyncMock(
                side_effect=[
                    make_response(200, {"id": "channel-1"}),
                    make_response(200, {"id": "message-1"}),
                ]
            )

            delivered = await notifier.notify_success(USER, "a@example.com")

        assert delivered is True
        channel_call, message_call = http.post.call_args_list
        assert channel_call.args[0].endswith("/users/@me/channels")
        assert channel_call.kwargs["json"] == {"recipient_id": USER}
        assert channel_call.kwargs["headers"]["Authorization"] == "Bot bot-token"
        assert message_call.args[0].endswith("/channels/channel-1/messages")
        assert "a@example.com" in message_call.kwargs["json"]["content"]

    @pytest.mark.asyncio
    async def test_missing_token_skips_delivery(self):
        """Should not call Discord without a bot token."""
        notifier = RealDiscordNotifier(bot_token="")

        with patch("httpx.AsyncClient") as mock_client:
            delivered = await notifier.notify_failure(USER, "invalid_state")

        assert delivered is False
        mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_identity_is_unreachable(self):
        """Should not try to DM a non-snowflake identity."""
        notifier = RealDiscordNotifier(bot_token="bot-token")

        with patch("httpx.AsyncClient") as mock_client:
            delivered = await notifier.notify_failure(
                ExternalId("unknown"), "invalid_state"
            )

        assert delivered is False
        mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_channel_refused(self):
        """Should report failure when the user cannot be messaged."""
        notifier = RealDiscordNotifier(bot_token="bot-token")

        with patch("httpx.AsyncClient") as mock_client:
            http = mock_client.return_value.__aenter__.return_value
            http.post = AsyncMock(return_value=make_response(403, {"code": 50007}))

            delivered = await notifier.notify_success(USER, "a@example.com")

        assert delivered is False
        assert http.post.call_count == 1

    @pytest.mark.asyncio
    async def test_transport_error_is_swallowed(self):
        """Should log and return False instead of raising."""
        notifier = RealDiscordNotifier(bot_token="bot-token")

        with patch("httpx.AsyncClient") as mock_client:
            mock_client.return_value.__aenter__.return_value.post = AsyncMock(
                side_effect=httpx.ReadTimeout("timed out")
            )

            delivered = await notifier.notify_success(USER, "a@example.com")

        assert delivered is False


class TestMockDiscordNotifier:
    """Tests for MockDiscordNotifier."""

    @pytest.mark.asyncio
    async def test_records_messages(self):
        """Should record deliveries and refuse unreachable identities."""
        notifier = MockDiscordNotifier()

        assert await notifier.notify_success(USER, "a@example.com") is True
        assert await notifier.notify_failure(ExternalId("unknown"), "x") is False
        assert [kind for _, kind, _ in notifier.sent] == ["success"]
