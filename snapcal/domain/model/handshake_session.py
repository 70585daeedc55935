"""Handshake session entity.

Tracks one in-flight OAuth linking attempt between the chat command that
started it and the provider callback that finishes it.
"""

from datetime import datetime, timedelta, timezone

from snapcal.domain.model.common import DomainModel
from snapcal.domain.value import ExternalId, HandshakeState


class HandshakeSession(DomainModel):
    """Short-lived, single-use OAuth handshake record.

    Keyed by the unguessable ``state`` token that round-trips through the
    provider. A session is consumed exactly once by the callback, or swept
    after ``expires_at``.
    """

    state: HandshakeState
    external_id: ExternalId
    external_display_name: str | None = None
    created_at: datetime
    expires_at: datetime

    @classmethod
    def open(
        cls,
        state: HandshakeState,
        external_id: ExternalId,
        external_display_name: str | None,
        ttl: timedelta,
        now: datetime | None = None,
    ) -> "HandshakeSession":
        """Create a session that expires ``ttl`` after ``now``."""
        created_at = now or datetime.now(timezone.utc)
        return cls(
            state=state,
            external_id=external_id,
            external_display_name=external_display_name,
            created_at=created_at,
            expires_at=created_at + ttl,
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        """Whether the session is past its expiry."""
        return self.expires_at <= (now or datetime.now(timezone.utc))
