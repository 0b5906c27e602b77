"""Health check endpoint."""

from typing import Any

from fastapi import APIRouter, Depends

from guidee_api import __version__
from guidee_shared.config import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
async def health(settings: Settings = Depends(get_settings)) -> dict[str, Any]:
    """Liveness check used by the load balancer and deploys."""
    return {
        "status": "healthy",
        "version": __version__,
        "environment": settings.environment,
    }
