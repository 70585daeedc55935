"""Identity directory domain service.

Owns the merge rules that link verified provider emails to chat identities
and the active-account pointer. All writes are read-modify-write cycles
guarded by the repository's compare-and-swap; on conflict the cycle is
re-run against the fresh record.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from uuid import uuid4

import logfire
from pydantic import ValidationError as PydanticValidationError

from snapcal.domain.error import (
    ConcurrencyConflictError,
    NotFoundError,
    ValidationError,
)
from snapcal.domain.model.identity import ExternalIdentityRecord, LinkedAccount
from snapcal.domain.repository.identity import ExternalIdentityRepository
from snapcal.domain.value import AccountId, ExternalId, MergeResult, ProviderEmail

from .base import Service

# A mutation returns the new record plus a value handed back to the caller
Mutation = Callable[[ExternalIdentityRecord | None], tuple[ExternalIdentityRecord, object]]


class IdentityDirectoryService(Service):
    """Domain service for external identities and their linked accounts."""

    def __init__(
        self,
        identity_repository: ExternalIdentityRepository,
        max_retries: int = 5,
    ) -> None:
        """Initialize identity directory service.

        Args:
            identity_repository: External identity repository
            max_retries: Compare-and-swap attempts per write
        """
        self.identity_repository = identity_repository
        self.max_retries = max_retries

    async def get_record(self, external_id: ExternalId) -> ExternalIdentityRecord | None:
        """Get the identity record for a chat user.

        Args:
            external_id: Chat platform user id

        Returns:
            Record if found, None otherwise
        """
        with logfire.span(
            "identity_service.get_record", external_id=str(external_id)
        ):
            return await self.identity_repository.find_by_external_id(external_id)

    async def link_account(
        self,
        external_id: ExternalId,
        provider_email: str,
        display_name: str | None = None,
    ) -> tuple[MergeResult, ExternalIdentityRecord]:
        """Merge a verified provider email into the identity's accounts.

        - unseen identity: create it with this account active (``created``)
        - email already linked: bump ``refreshed_at`` and make it active
          (``refreshed``)
        - otherwise: append it, activating it only if nothing is active
          (``added``)

        ``display_name`` overwrites the stored one when given.

        Args:
            external_id: Chat platform user id
            provider_email: Verified provider email, compared case-sensitively
            display_name: Optional chat display name

        Returns:
            Merge result and the saved record

        Raises:
            ValidationError: If the email is malformed
            ConcurrencyConflictError: If retries are exhausted
        """
        try:
            email = ProviderEmail(provider_email).root
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid provider email: {provider_email!r}") from e

        def merge(
            record: ExternalIdentityRecord | None,
        ) -> tuple[ExternalIdentityRecord, MergeResult]:
            now = datetime.now(timezone.utc)

            if record is None:
                account = LinkedAccount(
                    account_id=AccountId(uuid4()),
                    provider_email=email,
                    linked_at=now,
                    refreshed_at=now,
                )
                created = ExternalIdentityRecord(
                    external_id=external_id,
                    display_name=display_name,
                    accounts=(account,),
                    active_account_id=account.account_id,
                    created_at=now,
                    updated_at=now,
                )
                return created, MergeResult.CREATED

            name = display_name if display_name is not None else record.display_name
            existing = record.find_by_email(email)

            if existing is not None:
                refreshed = existing.model_copy(update={"refreshed_at": now})
                accounts = tuple(
                    refreshed if a.account_id == existing.account_id else a
                    for a in record.accounts
                )
                return (
                    record.with_changes(
                        accounts=accounts,
                        active_account_id=existing.account_id,
                        display_name=name,
                    ),
                    MergeResult.REFRESHED,
                )

            account = LinkedAccount(
                account_id=AccountId(uuid4()),
                provider_email=email,
                linked_at=now,
                refreshed_at=now,
            )
            active = record.active_account_id
            if not record.accounts or active is None:
                active = account.account_id
            return (
                record.with_changes(
                    accounts=record.accounts + (account,),
                    active_account_id=active,
                    display_name=name,
                ),
                MergeResult.ADDED,
            )

        with logfire.span(
            "identity_service.link_account", external_id=str(external_id)
        ):
            saved, result = await self._mutate(external_id, merge)
            logfire.info(
                "Provider account linked",
                external_id=str(external_id),
                merge_result=result.value,
                total_accounts=len(saved.accounts),
            )
            return result, saved

    async def set_active_account(
        self, external_id: ExternalId, index: int
    ) -> LinkedAccount:
        """Make the account at a 0-based index active.

        Args:
            external_id: Chat platform user id
            index: 0-based position in the account list

        Returns:
            The newly active account

        Raises:
            NotFoundError: If the identity has no accounts
            IndexError: If the index is outside the account list
        """

        def switch(
            record: ExternalIdentityRecord | None,
        ) -> tuple[ExternalIdentityRecord, LinkedAccount]:
            if record is None or not record.accounts:
                raise NotFoundError("Linked accounts", str(external_id))
            if index < 0 or index >= len(record.accounts):
                raise IndexError(index)
            selected = record.accounts[index]
            return record.with_changes(active_account_id=selected.account_id), selected

        with logfire.span(
            "identity_service.set_active_account",
            external_id=str(external_id),
            index=index,
        ):
            _, selected = await self._mutate(external_id, switch)
            logfire.info(
                "Active account switched",
                external_id=str(external_id),
                account_id=str(selected.account_id),
            )
            return selected

    async def _mutate(self, external_id: ExternalId, mutation: Mutation):
        """Run a read-modify-write cycle with compare-and-swap retries."""
        expected_version = 0
        for attempt in range(1, self.max_retries + 1):
            current = await self.identity_repository.find_by_external_id(external_id)
            expected_version = current.version if current else 0
            updated, value = mutation(current)
            try:
                saved = await self.identity_repository.save(updated, expected_version)
            except ConcurrencyConflictError:
                logfire.warn(
                    "Identity write conflict, retrying",
                    external_id=str(external_id),
                    attempt=attempt,
                    expected_version=expected_version,
                )
                continue
            return saved, value

        raise ConcurrencyConflictError(
            "ExternalIdentityRecord", str(external_id), expected_version
        )
