"""External identity aggregate.

One chat identity (e.g. a Discord user) owns an ordered list of linked
provider accounts and points at exactly one of them as "active".
"""

from datetime import datetime, timezone

from pydantic import Field, model_validator

from snapcal.domain.error import InvariantViolationError
from snapcal.domain.model.common import DomainModel
from snapcal.domain.value import AccountId, ExternalId


def _now() -> datetime:
    return datetime.now(timezone.utc)


class LinkedAccount(DomainModel):
    """Provider account linked to one external identity."""

    account_id: AccountId
    provider_email: str
    linked_at: datetime = Field(default_factory=_now)
    refreshed_at: datetime = Field(default_factory=_now)


class ExternalIdentityRecord(DomainModel):
    """Aggregate root for account linking.

    Invariants (checked on every construction, so every ``model_copy``
    that goes through ``with_changes`` is re-validated):
    - no two accounts share a ``provider_email``
    - ``active_account_id`` is None iff ``accounts`` is empty, and otherwise
      references one of ``accounts``

    ``accounts`` order is insertion order and drives 1-based positions in
    the chat UI. ``version`` is the optimistic concurrency counter; it is 0
    for a record that has never been saved.
    """

    external_id: ExternalId
    display_name: str | None = None
    accounts: tuple[LinkedAccount, ...] = ()
    active_account_id: AccountId | None = None
    version: int = 0
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @model_validator(mode="after")
    def check_invariants(self) -> "ExternalIdentityRecord":
        """Reject records with duplicate emails or a dangling active pointer."""
        emails = [account.provider_email for account in self.accounts]
        if len(emails) != len(set(emails)):
            raise InvariantViolationError(
                f"Duplicate provider email for identity {self.external_id}"
            )

        if not self.accounts:
            if self.active_account_id is not None:
                raise InvariantViolationError(
                    f"Identity {self.external_id} has an active account but no accounts"
                )
        elif self.find_account(self.active_account_id) is None:
            raise InvariantViolationError(
                f"Active account {self.active_account_id} is not linked "
                f"to identity {self.external_id}"
            )
        return self

    def find_account(self, account_id: AccountId | None) -> LinkedAccount | None:
        """Return the account with the given id, if linked."""
        if account_id is None:
            return None
        for account in self.accounts:
            if account.account_id == account_id:
                return account
        return None

    def find_by_email(self, provider_email: str) -> LinkedAccount | None:
        """Return the account linked with exactly this email, if any."""
        for account in self.accounts:
            if account.provider_email == provider_email:
                return account
        return None

    @property
    def active_account(self) -> LinkedAccount | None:
        """Currently active account, None when nothing is linked."""
        return self.find_account(self.active_account_id)

    def with_changes(self, **changes) -> "ExternalIdentityRecord":
        """Copy the record with changes applied and invariants re-checked.

        ``model_copy`` skips validation, so the copy is rebuilt through the
        constructor instead.
        """
        data = {**dict(self), **changes, "updated_at": _now()}
        return ExternalIdentityRecord(**data)
