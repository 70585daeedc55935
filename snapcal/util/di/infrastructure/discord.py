"""Discord infrastructure providers."""

from dishka import Scope, provide

from snapcal.adapter.discord import DiscordNotifier, RealDiscordNotifier
from snapcal.config import Settings
from snapcal.util.di.base import ProviderBase


class DiscordProvider(ProviderBase):
    """Discord component base."""

    __mock_component__ = "discord"


class ProdDiscordProvider(DiscordProvider):
    """Production Discord provider."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    def get_discord_notifier(self, settings: Settings) -> DiscordNotifier:
        """Provide Discord DM notifier authenticated as the bot."""
        return RealDiscordNotifier(
            bot_token=settings.discord.bot_token,
            api_base_url=settings.discord.api_base_url,
            timeout=settings.discord.request_timeout_seconds,
        )
