"""Discord gateway client.

Receives chat messages over the Discord gateway and answers account linking
commands through ``CommandHandler``. Each message is handled in its own
REQUEST scope, the same way the API handles an HTTP request.
"""

import discord
import logfire
from dishka import AsyncContainer

from snapcal.config import Settings
from snapcal.interface.bot.commands import COMMAND_PREFIX, CommandHandler

PROCESSING_FAILED_MESSAGE = "❌ Failed to process your request. Please try again."


def build_intents() -> discord.Intents:
    """Intents for guild and DM messages, including their text."""
    intents = discord.Intents.default()
    intents.message_content = True
    return intents


class RegistrationBot(discord.Client):
    """Discord client that routes ``!`` commands to the command handler."""

    def __init__(self, container: AsyncContainer, settings: Settings) -> None:
        """Initialize bot.

        Args:
            container: DI container providing ``CommandHandler`` per request
            settings: Application settings
        """
        super().__init__(intents=build_intents())
        self.container = container
        self.allowed_channel_ids = set(settings.discord.allowed_channel_ids)

    async def on_ready(self) -> None:
        logfire.info("Discord bot connected", bot_user=str(self.user))

    def should_answer(self, message: discord.Message) -> bool:
        """Skip bots, non-commands and guild channels outside the allow list."""
        if message.author.bot:
            return False
        if not message.content.strip().startswith(COMMAND_PREFIX):
            return False
        if message.guild is not None and self.allowed_channel_ids:
            return message.channel.id in self.allowed_channel_ids
        return True

    async def on_message(self, message: discord.Message) -> None:
        """Answer a command message with a reply, if it is one."""
        if not self.should_answer(message):
            return

        external_id = str(message.author.id)
        try:
            async with self.container() as request_container:
                handler = await request_container.get(CommandHandler)
                reply = await handler.handle(
                    external_id, message.author.name, message.content
                )
        except Exception as e:
            logfire.exception(
                "Command handling failed",
                external_id=external_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            reply = PROCESSING_FAILED_MESSAGE

        if reply is not None:
            await message.reply(reply)

    async def close(self) -> None:
        """Disconnect from Discord and release the container."""
        await super().close()
        await self.container.close()
