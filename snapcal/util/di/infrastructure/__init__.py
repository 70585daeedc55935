"""Infrastructure providers."""

# Import bases
from .discord import DiscordProvider
from .google import GoogleProvider
from .persistence import PersistenceProvider

# Import implementations (needed for __subclasses__())
from .discord import ProdDiscordProvider  # noqa: F401
from .google import ProdGoogleProvider  # noqa: F401
from .persistence import ProdPersistenceProvider  # noqa: F401

__all__ = [
    "DiscordProvider",
    "GoogleProvider",
    "PersistenceProvider",
    "ProdDiscordProvider",
    "ProdGoogleProvider",
    "ProdPersistenceProvider",
]
