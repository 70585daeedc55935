"""Account linking OAuth routes."""

import logging
from urllib.parse import urlencode

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, HTTPException, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from snapcal.application.usecase.registration import (
    CompleteLinkUseCase,
    InitiateLinkUseCase,
)
from snapcal.application.usecase.registration.complete_link import (
    CompleteLinkRequest,
    LinkResult,
)
from snapcal.application.usecase.registration.initiate_link import (
    InitiateLinkRequest,
)
from snapcal.config import Settings
from snapcal.domain.error import StateAllocationError, ValidationError
from snapcal.util.error import ConfigurationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth/oauth", tags=["authentication"], route_class=DishkaRoute)


class InitiateLinkBody(BaseModel):
    """Start a link for a chat identity."""

    external_id: str
    display_name: str | None = None


class InitiateLinkResult(BaseModel):
    """Initiate link response."""

    authorization_url: str
    state: str
    message: str


@router.post("/initiate", response_model=InitiateLinkResult)
async def initiate_link(
    body: InitiateLinkBody,
    use_case: FromDishka[InitiateLinkUseCase],
) -> InitiateLinkResult:
    """Open a handshake session and return the Google consent URL.

    Called by the chat bot when a user runs ``!register``.

    Raises:
        HTTPException: 400 for an empty external_id, 500 when Google
            credentials are not configured, 503 when no handshake state
            could be stored

    Example:
        POST /auth/oauth/initiate
        {"external_id": "123456789012345678", "display_name": "alice"}
    """
    try:
        response = await use_case.execute(
            InitiateLinkRequest(
                external_id=body.external_id, display_name=body.display_name
            )
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ConfigurationError as e:
        logger.error("Account link unavailable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "configuration_missing", "message": str(e)},
        )
    except StateAllocationError as e:
        logger.error("Handshake session not opened: %s", e)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)
        )

    return InitiateLinkResult(
        authorization_url=response.authorization_url,
        state=response.state,
        message="Open the link to connect your Google account",
    )


@router.get("/callback")
async def oauth_callback(
    use_case: FromDishka[CompleteLinkUseCase],
    settings: FromDishka[Settings],
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
) -> RedirectResponse:
    """Handle the Google redirect and send the browser to the frontend.

    Every outcome is a redirect: ``/auth/success`` with the linked email and
    chat name, or ``/auth/error`` with the outcome code.
    """
    result = await use_case.execute(
        CompleteLinkRequest(code=code, state=state, error=error)
    )
    logger.info("OAuth callback finished: outcome=%s", result.outcome.value)

    return RedirectResponse(
        url=callback_redirect_url(settings.api.frontend_url, result),
        status_code=status.HTTP_302_FOUND,
    )


def callback_redirect_url(frontend_url: str, result: LinkResult) -> str:
    """Frontend page that reports a callback result."""
    if result.succeeded:
        query = urlencode(
            {
                "email": result.provider_email or "",
                "discord": result.display_name or result.external_id or "",
            }
        )
        return f"{frontend_url}/auth/success?{query}"
    return f"{frontend_url}/auth/error?{urlencode({'error': result.outcome.value})}"
