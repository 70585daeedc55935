"""Domain value objects for account linking."""

from snapcal.domain.value.identifiers import (
    UNKNOWN_EXTERNAL_ID,
    AccountId,
    ExternalId,
    HandshakeState,
)
from snapcal.domain.value.types import (
    LinkOutcome,
    MergeResult,
    ProviderEmail,
    ProviderIdentity,
)

__all__ = [
    # Identifiers
    "AccountId",
    "ExternalId",
    "HandshakeState",
    "UNKNOWN_EXTERNAL_ID",
    # Types
    "LinkOutcome",
    "MergeResult",
    "ProviderEmail",
    "ProviderIdentity",
]
