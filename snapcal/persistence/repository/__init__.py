"""PostgreSQL repository implementations."""

from snapcal.persistence.repository.handshake_session import (
    PostgresHandshakeSessionRepository,
)
from snapcal.persistence.repository.identity import PostgresExternalIdentityRepository

__all__ = [
    "PostgresExternalIdentityRepository",
    "PostgresHandshakeSessionRepository",
]
