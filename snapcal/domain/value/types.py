"""Domain value objects for account linking.

Value objects are immutable and defined by their values, not identity.
"""

from enum import Enum

from pydantic import field_validator

from snapcal.domain.value.common import RootValueObject, ValueObject


class MergeResult(str, Enum):
    """How a verified provider email was merged into an identity record."""

    CREATED = "created"  # First link for a previously unseen identity
    REFRESHED = "refreshed"  # Known email re-authenticated
    ADDED = "added"  # New email appended to an existing identity


class LinkOutcome(str, Enum):
    """Terminal outcome of an OAuth callback.

    Values are stable wire codes rendered by the chat bot and the web
    error page; they must never be collapsed into a generic error.
    """

    SUCCESS = "success"
    ACCESS_DENIED = "access_denied"
    PROVIDER_ERROR = "provider_error"
    MISSING_PARAMETERS = "missing_parameters"
    INVALID_STATE = "invalid_state"
    EMAIL_NOT_VERIFIED = "email_not_verified"
    PROCESSING_FAILED = "processing_failed"


class ProviderEmail(RootValueObject[str]):
    """Verified email returned by the OAuth provider.

    Compared case-sensitively, exactly as the provider reported it.
    """

    @field_validator("root")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate email is non-empty and plausibly shaped."""
        if not v or "@" not in v or len(v) > 320:
            raise ValueError("Provider email must be a non-empty address")
        return v


class ProviderIdentity(ValueObject):
    """Identity information returned by the OAuth provider after code exchange."""

    subject: str  # Permanent provider user id
    email: str | None = None
    email_verified: bool = False
    display_name: str | None = None

    @property
    def has_verified_email(self) -> bool:
        """True when the provider vouches for the email address."""
        return bool(self.email) and self.email_verified
