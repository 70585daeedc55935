"""Tests for switch account use case."""

import pytest

from snapcal.application.usecase.account.switch_account import (
    SwitchAccountRequest,
    SwitchAccountUseCase,
)
from snapcal.domain.error import NotFoundError, OutOfRangeError
from snapcal.domain.service import IdentityDirectoryService
from snapcal.domain.value import ExternalId
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()


async def link_three(identity_service: IdentityDirectoryService) -> None:
    for email in ("a@example.com", "b@example.com", "c@example.com"):
        await identity_service.link_account(ExternalId("42"), email)


class TestSwitchAccountUseCase:
    """Tests for SwitchAccountUseCase."""

    @pytest.mark.asyncio
    async def test_switch_by_position(self, unit_env):
        """Should activate the account shown at the 1-based position."""
        identity_service = await unit_env.get(IdentityDirectoryService)
        use_case = await unit_env.get(SwitchAccountUseCase)
        await link_three(identity_service)

        response = await use_case.execute(
            SwitchAccountRequest(external_id="42", position=3)
        )

        record = await identity_service.get_record(ExternalId("42"))
        assert response.active_account.provider_email == "c@example.com"
        assert response.active_account.position == 3
        assert response.active_account.is_active is True
        assert record.active_account.provider_email == "c@example.com"
        assert "c@example.com" in response.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("position", [0, 4, -1])
    async def test_out_of_range(self, unit_env, position):
        """Should reject positions outside 1..N with the valid range."""
        identity_service = await unit_env.get(IdentityDirectoryService)
        use_case = await unit_env.get(SwitchAccountUseCase)
        await link_three(identity_service)

        with pytest.raises(OutOfRangeError) as exc_info:
            await use_case.execute(
                SwitchAccountRequest(external_id="42", position=position)
            )

        assert str(exc_info.value) == (
            "Invalid account number. Please choose between 1 and 3"
        )
        record = await identity_service.get_record(ExternalId("42"))
        assert record.active_account.provider_email == "a@example.com"

    @pytest.mark.asyncio
    async def test_no_accounts(self, unit_env):
        """Should raise NotFoundError when nothing is linked."""
        use_case = await unit_env.get(SwitchAccountUseCase)

        with pytest.raises(NotFoundError):
            await use_case.execute(SwitchAccountRequest(external_id="42", position=1))
