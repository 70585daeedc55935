"""Tests for list accounts use case."""

import pytest

from snapcal.application.usecase.account.list_accounts import (
    ListAccountsRequest,
    ListAccountsUseCase,
)
from snapcal.domain.service import IdentityDirectoryService
from snapcal.domain.value import ExternalId
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()


class TestListAccountsUseCase:
    """Tests for ListAccountsUseCase."""

    @pytest.mark.asyncio
    async def test_no_record(self, unit_env):
        """Should return an empty list for an unknown identity."""
        use_case = await unit_env.get(ListAccountsUseCase)

        response = await use_case.execute(ListAccountsRequest(external_id="42"))

        assert response.accounts == []
        assert response.total_accounts == 0
        assert response.active_account_id is None

    @pytest.mark.asyncio
    async def test_positions_follow_link_order(self, unit_env):
        """Should number accounts from 1 in link order and flag the active one."""
        identity_service = await unit_env.get(IdentityDirectoryService)
        use_case = await unit_env.get(ListAccountsUseCase)
        for email in ("a@example.com", "b@example.com", "c@example.com"):
            await identity_service.link_account(ExternalId("42"), email)
        await identity_service.set_active_account(ExternalId("42"), 1)

        response = await use_case.execute(ListAccountsRequest(external_id="42"))

        assert [a.position for a in response.accounts] == [1, 2, 3]
        assert [a.provider_email for a in response.accounts] == [
            "a@example.com",
            "b@example.com",
            "c@example.com",
        ]
        assert [a.is_active for a in response.accounts] == [False, True, False]
        assert response.active_account_id == response.accounts[1].account_id
        assert response.total_accounts == 3
