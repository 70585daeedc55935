"""Logging configuration for the application."""

import logging
import sys

from snapcal.config import Settings

# Third-party loggers that would echo OAuth codes or tokens in request URLs
NOISY_LOGGERS = ("httpx", "httpcore", "discord.gateway")


def setup_logging(settings: Settings) -> None:
    """Configure root logging for the API process.

    Route modules log through the standard library; services use Logfire.

    Args:
        settings: Application settings
    """
    level = logging.DEBUG if settings.debug else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,  # Override any existing configuration
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("snapcal").setLevel(level)

    logging.getLogger(__name__).info(
        "Logging configured: environment=%s, level=%s",
        settings.environment,
        logging.getLevelName(level),
    )
