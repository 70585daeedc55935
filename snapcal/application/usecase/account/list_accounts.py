"""List linked accounts use case."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from snapcal.application.usecase.base import BaseUseCase
from snapcal.domain.model.identity import ExternalIdentityRecord, LinkedAccount
from snapcal.domain.service import IdentityDirectoryService
from snapcal.domain.value import ExternalId


class ListAccountsRequest(BaseModel):
    """List accounts request."""

    external_id: str


class AccountSummary(BaseModel):
    """One linked account as shown to the user."""

    position: int  # 1-based, derived from link order
    account_id: UUID
    provider_email: str
    linked_at: datetime
    refreshed_at: datetime
    is_active: bool

    @classmethod
    def from_account(
        cls, record: ExternalIdentityRecord, account: LinkedAccount, position: int
    ) -> "AccountSummary":
        """Build a summary for ``account`` at a 1-based ``position``."""
        return cls(
            position=position,
            account_id=account.account_id,
            provider_email=account.provider_email,
            linked_at=account.linked_at,
            refreshed_at=account.refreshed_at,
            is_active=account.account_id == record.active_account_id,
        )


class ListAccountsResponse(BaseModel):
    """List accounts response."""

    accounts: list[AccountSummary]
    active_account_id: UUID | None = None
    total_accounts: int = 0


class ListAccountsUseCase(BaseUseCase):
    """Use case for listing the accounts linked to a chat identity."""

    def __init__(self, identity_service: IdentityDirectoryService) -> None:
        """Initialize list accounts use case.

        Args:
            identity_service: Identity directory domain service
        """
        self.identity_service = identity_service

    async def execute(self, request: ListAccountsRequest) -> ListAccountsResponse:
        """Execute list accounts flow.

        Args:
            request: Request with chat identity

        Returns:
            Accounts in link order; empty when nothing is linked
        """
        record = await self.identity_service.get_record(ExternalId(request.external_id))

        if record is None:
            return ListAccountsResponse(accounts=[])

        return ListAccountsResponse(
            accounts=[
                AccountSummary.from_account(record, account, position)
                for position, account in enumerate(record.accounts, start=1)
            ],
            active_account_id=record.active_account_id,
            total_accounts=len(record.accounts),
        )
