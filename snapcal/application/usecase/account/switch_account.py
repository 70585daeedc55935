"""Switch active account use case."""

import logfire
from pydantic import BaseModel

from snapcal.application.usecase.account.list_accounts import AccountSummary
from snapcal.application.usecase.base import BaseUseCase
from snapcal.domain.error import NotFoundError, OutOfRangeError
from snapcal.domain.service import IdentityDirectoryService
from snapcal.domain.value import ExternalId


class SwitchAccountRequest(BaseModel):
    """Switch account request."""

    external_id: str
    position: int  # 1-based, as displayed by the account list


class SwitchAccountResponse(BaseModel):
    """Switch account response."""

    message: str
    active_account: AccountSummary


class SwitchAccountUseCase(BaseUseCase):
    """Use case for choosing which linked account is active."""

    def __init__(self, identity_service: IdentityDirectoryService) -> None:
        """Initialize switch account use case.

        Args:
            identity_service: Identity directory domain service
        """
        self.identity_service = identity_service

    async def execute(self, request: SwitchAccountRequest) -> SwitchAccountResponse:
        """Execute switch account flow.

        Steps:
        1. Load the identity and check the position against its accounts
        2. Translate the 1-based position to a list index
        3. Save the new active pointer

        Args:
            request: Request with chat identity and 1-based position

        Returns:
            The newly active account

        Raises:
            NotFoundError: If the identity has no linked accounts
            OutOfRangeError: If the position is outside 1..N
        """
        external_id = ExternalId(request.external_id)
        record = await self.identity_service.get_record(external_id)

        if record is None or not record.accounts:
            raise NotFoundError("Linked accounts", request.external_id)

        total = len(record.accounts)
        if request.position < 1 or request.position > total:
            raise OutOfRangeError(request.position, 1, total)

        try:
            selected = await self.identity_service.set_active_account(
                external_id, request.position - 1
            )
        except IndexError:
            # Accounts never shrink, so this only happens on a racing rewrite
            raise OutOfRangeError(request.position, 1, total) from None

        summary = AccountSummary(
            position=request.position,
            account_id=selected.account_id,
            provider_email=selected.provider_email,
            linked_at=selected.linked_at,
            refreshed_at=selected.refreshed_at,
            is_active=True,
        )

        logfire.info(
            "Active account selected",
            external_id=request.external_id,
            position=request.position,
        )

        return SwitchAccountResponse(
            message=f"Switched to account {request.position}: {selected.provider_email}",
            active_account=summary,
        )
