"""
FastAPI dependency injection.

Provides dependencies for the connectivity service and authentication.
"""

import os
import secrets
from typing import Optional

from fastapi import HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from ..services.connectivity import ConnectivityService


# API Key security
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def get_connectivity_service(request: Request) -> ConnectivityService:
    """Get the service instance the app was created with."""
    return request.app.state.service


async def verify_api_key(
    api_key: Optional[str] = Security(api_key_header),
) -> str:
    """
    Verify API key for admin endpoints.

    The API key should match the ONIONLINK_API_KEY environment variable.
    """
    expected_key = os.getenv("ONIONLINK_API_KEY")

    if expected_key is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API key not configured. Set ONIONLINK_API_KEY environment variable."
        )

    if api_key is None or not secrets.compare_digest(api_key, expected_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key"
        )

    return api_key


# Alias for clarity
get_current_admin = verify_api_key
