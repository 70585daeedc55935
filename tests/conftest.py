"""Test configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import logfire

from snapcal.domain.model import HandshakeSession
from snapcal.domain.value import ExternalId, HandshakeState

# Console-only, quiet Logfire: services log through it unconditionally
logfire.configure(send_to_logfire=False, console=False)


def make_session(
    state: str = "state-token",
    external_id: str = "123456789012345678",
    display_name: str | None = "alice",
    ttl: timedelta = timedelta(minutes=10),
    now: datetime | None = None,
) -> HandshakeSession:
    """Build a handshake session for repository and service tests."""
    return HandshakeSession.open(
        state=HandshakeState(state),
        external_id=ExternalId(external_id),
        external_display_name=display_name,
        ttl=ttl,
        now=now or datetime.now(timezone.utc),
    )
