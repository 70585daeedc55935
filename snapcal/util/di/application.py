"""Application layer DI providers."""

from dishka import Scope, provide

from snapcal.application.usecase.account import (
    ListAccountsUseCase,
    SwitchAccountUseCase,
)
from snapcal.application.usecase.registration import (
    CompleteLinkUseCase,
    GetRegistrationStatusUseCase,
    InitiateLinkUseCase,
)
from snapcal.config import RegistrationSettings
from snapcal.domain.service import (
    HandshakeService,
    IdentityDirectoryService,
    Notifier,
    OAuthClient,
)
from snapcal.interface.bot.commands import CommandHandler
from snapcal.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application use cases provider - concrete, no mocks needed."""

    # Registration use cases
    @provide(scope=Scope.REQUEST)
    def get_initiate_link_use_case(
        self,
        handshake_service: HandshakeService,
        oauth_client: OAuthClient,
    ) -> InitiateLinkUseCase:
        """Provide initiate link use case."""
        return InitiateLinkUseCase(
            handshake_service=handshake_service,
            oauth_client=oauth_client,
        )

    @provide(scope=Scope.REQUEST)
    def get_complete_link_use_case(
        self,
        handshake_service: HandshakeService,
        identity_service: IdentityDirectoryService,
        oauth_client: OAuthClient,
        notifier: Notifier,
        registration_settings: RegistrationSettings,
    ) -> CompleteLinkUseCase:
        """Provide complete link use case."""
        return CompleteLinkUseCase(
            handshake_service=handshake_service,
            identity_service=identity_service,
            oauth_client=oauth_client,
            notifier=notifier,
            timeout_seconds=registration_settings.callback_timeout_seconds,
        )

    @provide(scope=Scope.REQUEST)
    def get_registration_status_use_case(
        self, identity_service: IdentityDirectoryService
    ) -> GetRegistrationStatusUseCase:
        """Provide get registration status use case."""
        return GetRegistrationStatusUseCase(identity_service=identity_service)

    # Account use cases
    @provide(scope=Scope.REQUEST)
    def get_list_accounts_use_case(
        self, identity_service: IdentityDirectoryService
    ) -> ListAccountsUseCase:
        """Provide list accounts use case."""
        return ListAccountsUseCase(identity_service=identity_service)

    @provide(scope=Scope.REQUEST)
    def get_switch_account_use_case(
        self, identity_service: IdentityDirectoryService
    ) -> SwitchAccountUseCase:
        """Provide switch account use case."""
        return SwitchAccountUseCase(identity_service=identity_service)

    # Chat commands
    @provide(scope=Scope.REQUEST)
    def get_command_handler(
        self,
        initiate_link: InitiateLinkUseCase,
        get_registration_status: GetRegistrationStatusUseCase,
        list_accounts: ListAccountsUseCase,
        switch_account: SwitchAccountUseCase,
        registration_settings: RegistrationSettings,
    ) -> CommandHandler:
        """Provide chat command handler."""
        return CommandHandler(
            initiate_link=initiate_link,
            get_registration_status=get_registration_status,
            list_accounts=list_accounts,
            switch_account=switch_account,
            session_ttl_minutes=registration_settings.session_ttl_minutes,
        )
