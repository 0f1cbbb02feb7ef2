"""
Service state endpoints.

- GET /status - Connectivity summary
- GET /diagnostics - Diagnostic messages
- POST /reset - Drop all connection state
"""

from fastapi import APIRouter, Depends, Query

from ...schemas.circuits import DiagnosticsResponse, StatusResponse
from ...schemas.common import SuccessResponse
from ...services.connectivity import ConnectivityService
from ..deps import get_connectivity_service, get_current_admin


router = APIRouter(tags=["server"])


@router.get(
    "/status",
    response_model=StatusResponse,
    summary="Get connectivity status",
    responses={
        200: {"description": "Status summary"},
        401: {"description": "Invalid API key"},
    }
)
async def get_status(
    service: ConnectivityService = Depends(get_connectivity_service),
    _admin: str = Depends(get_current_admin)
) -> StatusResponse:
    """
    Get the selected transport, bootstrap progress and open connection counts.
    """
    return StatusResponse(**service.status())


@router.get(
    "/diagnostics",
    response_model=DiagnosticsResponse,
    summary="Get diagnostic messages",
    responses={
        200: {"description": "Diagnostic messages"},
        401: {"description": "Invalid API key"},
    }
)
async def get_diagnostics(
    show_timestamp: bool = Query(True, description="Prefix entries with their timestamp"),
    service: ConnectivityService = Depends(get_connectivity_service),
    _admin: str = Depends(get_current_admin)
) -> DiagnosticsResponse:
    """
    Get recorded registry inconsistencies and dropped events.
    """
    return DiagnosticsResponse(
        entries=[item.to_text(show_timestamp) for item in service.diagnostics.items()]
    )


@router.post(
    "/reset",
    response_model=SuccessResponse,
    summary="Reset connection state",
    responses={
        200: {"description": "State reset"},
        401: {"description": "Invalid API key"},
    }
)
async def reset(
    service: ConnectivityService = Depends(get_connectivity_service),
    _admin: str = Depends(get_current_admin)
) -> SuccessResponse:
    """
    Drop all tracked connections and country codes, e.g. after a proxy restart.
    """
    service.reset()
    return SuccessResponse(message="Connectivity state reset")
