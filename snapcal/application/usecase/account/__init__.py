"""Account selection use cases."""

from .list_accounts import ListAccountsUseCase
from .switch_account import SwitchAccountUseCase

__all__ = ["ListAccountsUseCase", "SwitchAccountUseCase"]
