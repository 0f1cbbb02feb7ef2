"""
Health check endpoints.
"""

from fastapi import APIRouter

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
@router.get("/")
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns basic service status.
    """
    return {
        "status": "healthy",
        "service": "onionlink"
    }


@router.get("/ready")
async def readiness_check() -> dict:
    """
    Readiness check endpoint.

    Returns whether the service is ready to accept requests.
    """
    return {
        "status": "ready",
        "service": "onionlink"
    }
