"""Strongly typed identifiers for account linking entities.

NewType keeps chat identities, handshake states and linked account IDs
from being mixed up at call sites.
"""

from typing import NewType
from uuid import UUID

# Chat platform user id (Discord snowflake as a string)
ExternalId = NewType("ExternalId", str)

# Opaque, unguessable OAuth state token
HandshakeState = NewType("HandshakeState", str)

# Per-link id, generated once when a provider account is linked
AccountId = NewType("AccountId", UUID)

# Placeholder identity used for failure notices that cannot be attributed
UNKNOWN_EXTERNAL_ID = ExternalId("unknown")
