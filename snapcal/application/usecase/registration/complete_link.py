"""Complete account link use case.

Handles the provider redirect that ends the OAuth handshake. Every input,
including provider errors, replays and infrastructure failures, ends in
exactly one ``LinkOutcome``; nothing escapes as an exception.

The handshake session is consumed before the authorization code is
exchanged, so a replayed callback for the same state can never merge twice
no matter how slow the exchange is.
"""

import asyncio

import logfire
from pydantic import BaseModel

from snapcal.application.usecase.base import BaseUseCase
from snapcal.domain.model.handshake_session import HandshakeSession
from snapcal.domain.service import (
    HandshakeService,
    IdentityDirectoryService,
    Notifier,
    OAuthClient,
)
from snapcal.domain.value import (
    UNKNOWN_EXTERNAL_ID,
    ExternalId,
    HandshakeState,
    LinkOutcome,
    MergeResult,
)

ACCESS_DENIED = "access_denied"


class CompleteLinkRequest(BaseModel):
    """Callback parameters as received from the provider redirect."""

    code: str | None = None
    state: str | None = None
    error: str | None = None


class LinkResult(BaseModel):
    """Terminal result of a callback."""

    outcome: LinkOutcome
    external_id: str | None = None
    display_name: str | None = None
    provider_email: str | None = None
    merge_result: MergeResult | None = None
    provider_error: str | None = None  # Raw ``error`` value from the provider
    notified: bool = False

    @property
    def succeeded(self) -> bool:
        """True only for the success outcome."""
        return self.outcome is LinkOutcome.SUCCESS


class CompleteLinkUseCase(BaseUseCase):
    """Use case for finishing the OAuth handshake and merging the account."""

    def __init__(
        self,
        handshake_service: HandshakeService,
        identity_service: IdentityDirectoryService,
        oauth_client: OAuthClient,
        notifier: Notifier,
        timeout_seconds: float = 30.0,
    ) -> None:
        """Initialize complete link use case.

        Args:
            handshake_service: Handshake session domain service
            identity_service: Identity directory domain service
            oauth_client: Provider OAuth client
            notifier: Chat notifier for outcome messages
            timeout_seconds: Budget for code exchange plus merge
        """
        self.handshake_service = handshake_service
        self.identity_service = identity_service
        self.oauth_client = oauth_client
        self.notifier = notifier
        self.timeout_seconds = timeout_seconds

    async def execute(self, request: CompleteLinkRequest) -> LinkResult:
        """Execute the callback state machine.

        Args:
            request: Callback parameters

        Returns:
            Link result with a stable outcome code
        """
        with logfire.span(
            "complete_link",
            has_code=bool(request.code),
            has_state=bool(request.state),
            provider_error=request.error,
        ):
            try:
                result = await self._complete(request)
            except Exception as e:
                # Anything not mapped below still ends as a terminal outcome
                logfire.exception(
                    "Unexpected error completing account link",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                result = LinkResult(outcome=LinkOutcome.PROCESSING_FAILED)

            logfire.info(
                "Account link finished",
                outcome=result.outcome.value,
                external_id=result.external_id,
                notified=result.notified,
            )
            return result

    async def _complete(self, request: CompleteLinkRequest) -> LinkResult:
        if request.error:
            return await self._handle_provider_error(request)

        if not request.code or not request.state:
            return LinkResult(outcome=LinkOutcome.MISSING_PARAMETERS)

        session = await self._consume_session(request.state)
        if session is None:
            notified = await self._notify_failure(
                UNKNOWN_EXTERNAL_ID, LinkOutcome.INVALID_STATE
            )
            return LinkResult(outcome=LinkOutcome.INVALID_STATE, notified=notified)

        try:
            result = await asyncio.wait_for(
                self._link(session, request.code), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logfire.error(
                "Account link timed out",
                external_id=str(session.external_id),
                timeout_seconds=self.timeout_seconds,
            )
            result = self._failure(session, LinkOutcome.PROCESSING_FAILED)
        except Exception as e:
            logfire.error(
                "Account link failed",
                external_id=str(session.external_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            result = self._failure(session, LinkOutcome.PROCESSING_FAILED)

        if result.succeeded:
            notified = await self._notify_success(
                session.external_id, result.provider_email or ""
            )
        else:
            notified = await self._notify_failure(session.external_id, result.outcome)
        return result.model_copy(update={"notified": notified})

    async def _handle_provider_error(self, request: CompleteLinkRequest) -> LinkResult:
        """Map a provider ``error`` parameter to an outcome.

        Only an explicit denial is attributed to a session; any other provider
        error is reported without touching the session store.
        """
        logfire.warn("Provider returned an error", provider_error=request.error)

        if request.error != ACCESS_DENIED:
            return LinkResult(
                outcome=LinkOutcome.PROVIDER_ERROR, provider_error=request.error
            )

        session = None
        if request.state:
            try:
                session = await self._consume_session(request.state)
            except Exception as e:
                logfire.error(
                    "Could not resolve session for denied link",
                    error=str(e),
                    error_type=type(e).__name__,
                )

        target = session.external_id if session else UNKNOWN_EXTERNAL_ID
        notified = await self._notify_failure(target, LinkOutcome.ACCESS_DENIED)
        return LinkResult(
            outcome=LinkOutcome.ACCESS_DENIED,
            external_id=session.external_id if session else None,
            display_name=session.external_display_name if session else None,
            provider_error=request.error,
            notified=notified,
        )

    async def _consume_session(self, state: str) -> HandshakeSession | None:
        return await asyncio.wait_for(
            self.handshake_service.consume(HandshakeState(state)),
            timeout=self.timeout_seconds,
        )

    async def _link(self, session: HandshakeSession, code: str) -> LinkResult:
        """Exchange the code and merge the verified email."""
        identity = await self.oauth_client.exchange_code(code)

        if not identity.has_verified_email:
            logfire.warn(
                "Provider email not verified",
                external_id=str(session.external_id),
                has_email=bool(identity.email),
            )
            return self._failure(session, LinkOutcome.EMAIL_NOT_VERIFIED)

        merge_result, _ = await self.identity_service.link_account(
            session.external_id,
            identity.email,
            session.external_display_name,
        )

        return LinkResult(
            outcome=LinkOutcome.SUCCESS,
            external_id=session.external_id,
            display_name=session.external_display_name,
            provider_email=identity.email,
            merge_result=merge_result,
        )

    @staticmethod
    def _failure(session: HandshakeSession, outcome: LinkOutcome) -> LinkResult:
        return LinkResult(
            outcome=outcome,
            external_id=session.external_id,
            display_name=session.external_display_name,
        )

    async def _notify_success(self, external_id: ExternalId, provider_email: str) -> bool:
        try:
            return await self.notifier.notify_success(external_id, provider_email)
        except Exception as e:
            logfire.error(
                "Success notification failed",
                external_id=str(external_id),
                error=str(e),
            )
            return False

    async def _notify_failure(self, external_id: ExternalId, outcome: LinkOutcome) -> bool:
        try:
            return await self.notifier.notify_failure(external_id, outcome.value)
        except Exception as e:
            logfire.error(
                "Failure notification failed",
                external_id=str(external_id),
                outcome=outcome.value,
                error=str(e),
            )
            return False

