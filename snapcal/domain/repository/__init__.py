"""Repository interfaces for the account linking domain.

Repository interfaces are defined in the domain layer (dependency inversion).
Implementations live in the persistence layer.
"""

from snapcal.domain.repository.handshake_session import HandshakeSessionRepository
from snapcal.domain.repository.identity import ExternalIdentityRepository

__all__ = [
    "ExternalIdentityRepository",
    "HandshakeSessionRepository",
]
