"""Get registration status use case."""

from datetime import datetime

from pydantic import BaseModel

from snapcal.application.usecase.base import BaseUseCase
from snapcal.domain.service import IdentityDirectoryService
from snapcal.domain.value import ExternalId


class GetRegistrationStatusRequest(BaseModel):
    """Get registration status request."""

    external_id: str


class GetRegistrationStatusResponse(BaseModel):
    """Registration status of a chat identity."""

    registered: bool
    external_id: str
    display_name: str | None = None
    active_email: str | None = None
    total_accounts: int = 0
    registered_at: datetime | None = None


class GetRegistrationStatusUseCase(BaseUseCase):
    """Use case for checking whether a chat user has linked any account."""

    def __init__(self, identity_service: IdentityDirectoryService) -> None:
        """Initialize get registration status use case.

        Args:
            identity_service: Identity directory domain service
        """
        self.identity_service = identity_service

    async def execute(
        self, request: GetRegistrationStatusRequest
    ) -> GetRegistrationStatusResponse:
        """Execute get registration status flow.

        An identity counts as registered once it has at least one linked
        account; ``registered_at`` is when the first one was linked.

        Args:
            request: Request with chat identity

        Returns:
            Registration status
        """
        record = await self.identity_service.get_record(ExternalId(request.external_id))

        if record is None or not record.accounts:
            return GetRegistrationStatusResponse(
                registered=False,
                external_id=request.external_id,
                display_name=record.display_name if record else None,
            )

        active = record.active_account
        return GetRegistrationStatusResponse(
            registered=True,
            external_id=request.external_id,
            display_name=record.display_name,
            active_email=active.provider_email if active else None,
            total_accounts=len(record.accounts),
            registered_at=record.accounts[0].linked_at,
        )
