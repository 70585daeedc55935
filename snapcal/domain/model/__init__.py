"""Domain model entities for account linking."""

from snapcal.domain.model.handshake_session import HandshakeSession
from snapcal.domain.model.identity import ExternalIdentityRecord, LinkedAccount

__all__ = [
    "ExternalIdentityRecord",
    "HandshakeSession",
    "LinkedAccount",
]
