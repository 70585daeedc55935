"""Discord notification adapter."""

from .notifier import (
    DiscordNotifier,
    MockDiscordNotifier,
    RealDiscordNotifier,
)

__all__ = ["DiscordNotifier", "MockDiscordNotifier", "RealDiscordNotifier"]
