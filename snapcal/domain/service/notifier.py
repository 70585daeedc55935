"""Notification interface for reporting link outcomes back to chat users."""

from snapcal.domain.value import ExternalId


class Notifier:
    """Best-effort side channel to the chat identity that started a link.

    Implementations never raise: an unreachable identity is logged and
    reported as ``False``.
    """

    async def notify_success(self, external_id: ExternalId, provider_email: str) -> bool:
        """Tell the user their account was linked.

        Args:
            external_id: Chat identity to notify
            provider_email: Email of the linked provider account

        Returns:
            True if the message was delivered
        """
        raise NotImplementedError

    async def notify_failure(self, external_id: ExternalId, reason_code: str) -> bool:
        """Tell the user linking failed and how to recover.

        Args:
            external_id: Chat identity to notify
            reason_code: Stable outcome code (e.g. ``invalid_state``)

        Returns:
            True if the message was delivered
        """
        raise NotImplementedError
