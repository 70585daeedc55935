"""Discord chat commands for account linking.

Turns the text of a chat message into a reply. ``gateway.RegistrationBot``
calls ``CommandHandler.handle`` for each message and sends back any
non-None result.
"""

import logfire

from snapcal.application.usecase.account import (
    ListAccountsUseCase,
    SwitchAccountUseCase,
)
from snapcal.application.usecase.account.list_accounts import ListAccountsRequest
from snapcal.application.usecase.account.switch_account import SwitchAccountRequest
from snapcal.application.usecase.registration import (
    GetRegistrationStatusUseCase,
    InitiateLinkUseCase,
)
from snapcal.application.usecase.registration.get_registration_status import (
    GetRegistrationStatusRequest,
)
from snapcal.application.usecase.registration.initiate_link import (
    InitiateLinkRequest,
)
from snapcal.domain.error import DomainError, NotFoundError, OutOfRangeError
from snapcal.interface.error import CommandFormatError
from snapcal.util.error import ConfigurationError

COMMAND_PREFIX = "!"

REGISTER_FORMAT_ERROR = (
    "❌ Invalid format. Use: `!register` "
    "(no email needed - you'll authenticate with Google)"
)
SWITCH_FORMAT_ERROR = (
    "❌ Invalid format. Use: `!switch [account_number]`\n\n"
    "Example: `!switch 2`\n\n"
    "Use `!accounts` to see your registered accounts."
)
SWITCH_NUMBER_ERROR = (
    "❌ Please provide a valid account number. "
    "Use `!accounts` to see your registered accounts."
)
NO_ACCOUNTS_MESSAGE = (
    "📭 You have no Google accounts registered. "
    "Use `!register` to add your first account."
)
NOT_REGISTERED_MESSAGE = (
    "❌ **Registration Status: NOT REGISTERED**\n\n"
    "To register your Discord account, use: `!register`"
)


class CommandHandler:
    """Dispatches ``!`` commands to the account linking use cases."""

    def __init__(
        self,
        initiate_link: InitiateLinkUseCase,
        get_registration_status: GetRegistrationStatusUseCase,
        list_accounts: ListAccountsUseCase,
        switch_account: SwitchAccountUseCase,
        session_ttl_minutes: int = 10,
    ) -> None:
        self.initiate_link = initiate_link
        self.get_registration_status = get_registration_status
        self.list_accounts = list_accounts
        self.switch_account = switch_account
        self.session_ttl_minutes = session_ttl_minutes

    async def handle(
        self, external_id: str, display_name: str | None, content: str
    ) -> str | None:
        """Reply to a chat message.

        Args:
            external_id: Discord user id of the author
            display_name: Discord username of the author
            content: Raw message text

        Returns:
            Reply text, or None when the message is not a known command
        """
        text = content.strip()
        if not text.startswith(COMMAND_PREFIX):
            return None

        command = text.split()[0].lower()
        handlers = {
            "!register": lambda: self._register(external_id, display_name, text),
            "!status": lambda: self._status(external_id),
            "!whoami": lambda: self._status(external_id),
            "!accounts": lambda: self._accounts(external_id),
            "!switch": lambda: self._switch(external_id, text),
        }
        handler = handlers.get(command)
        if handler is None:
            return None

        with logfire.span("bot.command", command=command, external_id=external_id):
            try:
                return await handler()
            except CommandFormatError as e:
                return str(e)

    async def _register(
        self, external_id: str, display_name: str | None, text: str
    ) -> str:
        if len(text.split()) != 1:
            raise CommandFormatError(REGISTER_FORMAT_ERROR)

        try:
            response = await self.initiate_link.execute(
                InitiateLinkRequest(external_id=external_id, display_name=display_name)
            )
        except (ConfigurationError, DomainError) as e:
            logfire.error(
                "Registration command failed", external_id=external_id, error=str(e)
            )
            return f"❌ Authentication setup failed: {e}"

        return "\n".join(
            [
                "🔐 **Google Authentication Required**\n",
                "To link your Discord account with a Google email, "
                "please click the link below:\n",
                f"🔗 **[Authenticate with Google]({response.authorization_url})**\n",
                "📋 **Multi-Account Support:**",
                "• If this is your first account, it will be set as active",
                "• If you already have accounts, this will add a new one "
                "or refresh an existing one",
                "• Use `!accounts` to see all your registered accounts",
                "• Use `!switch [number]` to switch between accounts\n",
                f"⚠️ This link expires in {self.session_ttl_minutes} minutes for security.",
            ]
        )

    async def _status(self, external_id: str) -> str:
        status = await self.get_registration_status.execute(
            GetRegistrationStatusRequest(external_id=external_id)
        )
        if not status.registered:
            return NOT_REGISTERED_MESSAGE

        registered = (
            status.registered_at.date().isoformat() if status.registered_at else "Unknown"
        )
        return (
            "✅ **Registration Status: ACTIVE**\n"
            f"📧 Email: **{status.active_email}**\n"
            f"🔢 Linked accounts: {status.total_accounts}\n"
            f"📅 Registered: {registered}"
        )

    async def _accounts(self, external_id: str) -> str:
        response = await self.list_accounts.execute(
            ListAccountsRequest(external_id=external_id)
        )
        if not response.accounts:
            return NO_ACCOUNTS_MESSAGE

        lines = ["📋 **Your Registered Google Accounts:**\n"]
        for account in response.accounts:
            marker = " ✅ (Active)" if account.is_active else ""
            lines.append(f"**{account.position}.** {account.provider_email}{marker}")
            lines.append(f"   Registered: {account.linked_at.date().isoformat()}\n")
        lines.append(f"Total accounts: **{response.total_accounts}**\n")
        lines.append("Use `!switch [number]` to switch between accounts.")
        return "\n".join(lines)

    async def _switch(self, external_id: str, text: str) -> str:
        args = text.split()
        if len(args) != 2:
            raise CommandFormatError(SWITCH_FORMAT_ERROR)
        try:
            position = int(args[1])
        except ValueError:
            raise CommandFormatError(SWITCH_NUMBER_ERROR) from None
        if position < 1:
            raise CommandFormatError(SWITCH_NUMBER_ERROR)

        try:
            response = await self.switch_account.execute(
                SwitchAccountRequest(external_id=external_id, position=position)
            )
        except OutOfRangeError as e:
            return f"❌ {e}"
        except NotFoundError:
            return NO_ACCOUNTS_MESSAGE

        return (
            "✅ **Account switched successfully!**\n\n"
            f"📧 Active account: **{response.active_account.provider_email}**\n\n"
            "All future uploads will be saved to this account."
        )
