"""Discord direct-message notifier.

Delivers link outcomes to the Discord user who ran ``!register`` by opening
a DM channel through the Discord REST API and posting a message as the bot.
Delivery is best effort: every failure is logged and reported as False.
"""

import httpx
import logfire

from snapcal.domain.service.notifier import Notifier
from snapcal.domain.value import ExternalId, LinkOutcome

SUCCESS_MESSAGE = (
    "🎉 **Authentication Successful!**\n\n"
    "✅ Your Discord account has been successfully linked to **{email}**\n\n"
    "🖼️ You can now upload images in any server where I'm present, and they'll "
    "be automatically saved to your calendar account.\n\n"
    "Use `!accounts` to see all linked accounts and `!switch [number]` to "
    "change the active one."
)

FAILURE_HEADER = "❌ **Authentication Failed**\n\n"

FAILURE_MESSAGES = {
    LinkOutcome.INVALID_STATE.value: (
        "🔒 The authentication link has expired or is invalid.\n\n"
        "Please use the `!register` command again to get a new authentication link."
    ),
    LinkOutcome.ACCESS_DENIED.value: (
        "🚫 You cancelled the Google authentication process.\n\n"
        "To complete registration, use `!register` again and approve the "
        "Google authentication."
    ),
    LinkOutcome.EMAIL_NOT_VERIFIED.value: (
        "📧 Your Google account email is not verified.\n\n"
        "Verify your email with Google, then use `!register` again."
    ),
    LinkOutcome.PROCESSING_FAILED.value: (
        "⚠️ A technical error occurred during authentication.\n\n"
        "Please try using `!register` again. If the problem persists, contact support."
    ),
}

DEFAULT_FAILURE_MESSAGE = (
    "⚠️ An unexpected error occurred.\n\nPlease try using `!register` again."
)


def render_success(provider_email: str) -> str:
    """Message sent after a successful link."""
    return SUCCESS_MESSAGE.format(email=provider_email)


def render_failure(reason_code: str) -> str:
    """Message sent after a failed link, tailored to the outcome code."""
    return FAILURE_HEADER + FAILURE_MESSAGES.get(reason_code, DEFAULT_FAILURE_MESSAGE)


class DiscordNotifier(Notifier):
    """Base class for Discord notifiers.

    Provides type distinction for dependency injection.
    """

    pass


class RealDiscordNotifier(DiscordNotifier):
    """Discord REST API notifier authenticated as the bot."""

    def __init__(
        self,
        bot_token: str,
        api_base_url: str = "https://discord.com/api/v10",
        timeout: float = 10.0,
    ) -> None:
        """Initialize Discord notifier.

        Args:
            bot_token: Discord bot token
            api_base_url: Discord REST API base URL
            timeout: Per-request timeout in seconds
        """
        self.bot_token = bot_token
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout

    async def notify_success(self, external_id: ExternalId, provider_email: str) -> bool:
        """Send the link success message."""
        return await self._send(external_id, render_success(provider_email), "success")

    async def notify_failure(self, external_id: ExternalId, reason_code: str) -> bool:
        """Send the link failure message for ``reason_code``."""
        return await self._send(external_id, render_failure(reason_code), reason_code)

    async def _send(self, external_id: ExternalId, content: str, kind: str) -> bool:
        """Open a DM channel with the user and post ``content``.

        Returns:
            True if Discord accepted the message
        """
        if not self.bot_token:
            logfire.warn(
                "Discord bot token not configured, notification skipped",
                external_id=str(external_id),
                kind=kind,
            )
            return False

        # Discord user ids are numeric snowflakes; anything else is unreachable
        if not str(external_id).isdigit():
            logfire.warn(
                "Notification target is not a Discord user id",
                external_id=str(external_id),
                kind=kind,
            )
            return False

        headers = {"Authorization": f"Bot {self.bot_token}"}

        try:
            async with httpx.AsyncClient() as client:
                channel_response = await client.post(
                    f"{self.api_base_url}/users/@me/channels",
                    json={"recipient_id": str(external_id)},
                    headers=headers,
                    timeout=self.timeout,
                )
                if channel_response.status_code != 200:
                    logfire.error(
                        "Discord DM channel creation failed",
                        external_id=str(external_id),
                        status_code=channel_response.status_code,
                        error=channel_response.text,
                    )
                    return False

                channel_id = channel_response.json()["id"]

                message_response = await client.post(
                    f"{self.api_base_url}/channels/{channel_id}/messages",
                    json={"content": content},
                    headers=headers,
                    timeout=self.timeout,
                )
                if message_response.status_code not in (200, 201):
                    logfire.error(
                        "Discord message delivery failed",
                        external_id=str(external_id),
                        status_code=message_response.status_code,
                        error=message_response.text,
                    )
                    return False

        except (httpx.HTTPError, KeyError, ValueError) as e:
            logfire.error(
                "Discord notification error",
                external_id=str(external_id),
                kind=kind,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        logfire.info("Discord notification sent", external_id=str(external_id), kind=kind)
        return True


class MockDiscordNotifier(DiscordNotifier):
    """Mock notifier for testing.

    Records every message instead of sending it. Identities listed in
    ``unreachable`` behave like users who blocked the bot.
    """

    def __init__(self) -> None:
        """Initialize empty outbox."""
        self.sent: list[tuple[str, str, str]] = []
        self.unreachable: set[str] = {"unknown"}

    async def notify_success(self, external_id: ExternalId, provider_email: str) -> bool:
        """Record a success message."""
        return self._record(external_id, "success", render_success(provider_email))

    async def notify_failure(self, external_id: ExternalId, reason_code: str) -> bool:
        """Record a failure message."""
        return self._record(external_id, reason_code, render_failure(reason_code))

    def _record(self, external_id: ExternalId, kind: str, content: str) -> bool:
        if str(external_id) in self.unreachable:
            return False
        self.sent.append((str(external_id), kind, content))
        return True
