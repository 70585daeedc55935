"""In-memory repository implementations for testing."""

from .handshake_session import InMemoryHandshakeSessionRepository
from .identity import InMemoryExternalIdentityRepository

__all__ = [
    "InMemoryExternalIdentityRepository",
    "InMemoryHandshakeSessionRepository",
]
