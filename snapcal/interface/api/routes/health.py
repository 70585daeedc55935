"""Health check routes."""

from datetime import datetime, timezone

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter
from pydantic import BaseModel

from snapcal.adapter.google import GoogleOAuthClient
from snapcal.config import Settings

router = APIRouter(tags=["health"], route_class=DishkaRoute)

VERSION = "0.1.0"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    version: str
    git_sha: str
    google_oauth_configured: bool


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: FromDishka[Settings],
    google_client: FromDishka[GoogleOAuthClient],
) -> HealthResponse:
    """Basic health check endpoint.

    Missing Google credentials do not make the service unhealthy; linking
    simply refuses to start until they are set.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=VERSION,
        git_sha=settings.git_sha,
        google_oauth_configured=google_client.is_configured(),
    )
