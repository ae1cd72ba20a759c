"""
Health check endpoint.

Provides system health status for monitoring and load balancers.
"""

from fastapi import APIRouter

from licenseshop import __version__
from licenseshop.api.schemas import HealthResponse
from licenseshop.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Check system health.

    Reports whether a mail transport is configured so operators can tell
    no-op delivery mode apart from a real outage.
    """
    settings = get_settings()

    return HealthResponse(
        status="healthy",
        version=__version__,
        smtp_configured=settings.smtp_configured,
    )
