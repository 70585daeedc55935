"""Chat identity routes used by the Discord bot."""

import logging

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from snapcal.application.usecase.account import (
    ListAccountsUseCase,
    SwitchAccountUseCase,
)
from snapcal.application.usecase.account.list_accounts import (
    ListAccountsRequest,
    ListAccountsResponse,
)
from snapcal.application.usecase.account.switch_account import (
    SwitchAccountRequest,
    SwitchAccountResponse,
)
from snapcal.application.usecase.registration import GetRegistrationStatusUseCase
from snapcal.application.usecase.registration.get_registration_status import (
    GetRegistrationStatusRequest,
    GetRegistrationStatusResponse,
)
from snapcal.domain.error import NotFoundError, OutOfRangeError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/discord", tags=["discord"], route_class=DishkaRoute)


class SwitchAccountBody(BaseModel):
    """Switch request; position is 1-based as shown by ``!accounts``."""

    external_id: str
    position: int


@router.get("/register", response_model=GetRegistrationStatusResponse)
async def get_registration_status(
    external_id: str,
    use_case: FromDishka[GetRegistrationStatusUseCase],
) -> GetRegistrationStatusResponse:
    """Report whether a chat user has linked any Google account."""
    return await use_case.execute(GetRegistrationStatusRequest(external_id=external_id))


@router.get("/accounts", response_model=ListAccountsResponse)
async def list_accounts(
    external_id: str,
    use_case: FromDishka[ListAccountsUseCase],
) -> ListAccountsResponse:
    """List linked accounts in link order with 1-based positions."""
    return await use_case.execute(ListAccountsRequest(external_id=external_id))


@router.post("/accounts", response_model=SwitchAccountResponse)
async def switch_account(
    body: SwitchAccountBody,
    use_case: FromDishka[SwitchAccountUseCase],
) -> SwitchAccountResponse:
    """Make the account at a 1-based position active.

    Raises:
        HTTPException: 400 when the position is out of range, 404 when the
            user has no linked accounts
    """
    try:
        return await use_case.execute(
            SwitchAccountRequest(external_id=body.external_id, position=body.position)
        )
    except OutOfRangeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except NotFoundError as e:
        logger.info("Switch requested without linked accounts: %s", body.external_id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
