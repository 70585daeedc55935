#!/usr/bin/env python3
"""Start the Discord bot with Logfire tracking for startup errors."""

import sys
import logfire

from snapcal.config import Settings
from snapcal.interface.bot.gateway import RegistrationBot
from snapcal.util.di.container import create_container
from snapcal.util.logging import setup_logging
from snapcal.util.observability import configure_logfire, instrument_httpx


def main() -> int:
    """Connect the bot to the Discord gateway and serve commands."""
    settings = Settings()

    configure_logfire(settings)
    setup_logging(settings)
    instrument_httpx()

    if not settings.discord.bot_token:
        logfire.error("DISCORD__BOT_TOKEN not configured, bot not started")
        return 1

    try:
        logfire.info(
            "Starting Discord bot",
            allowed_channels=len(settings.discord.allowed_channel_ids),
        )

        bot = RegistrationBot(create_container(), settings)
        # Logging is already configured by setup_logging
        bot.run(settings.discord.bot_token, log_handler=None)

        return 0

    except Exception as e:
        logfire.error(
            "Bot startup failed",
            error=str(e),
            error_type=type(e).__name__,
            _exc_info=sys.exc_info(),
        )
        raise


if __name__ == "__main__":
    sys.exit(main())
