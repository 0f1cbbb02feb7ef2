"""
Lifecycle event ingestion endpoint.
"""

import json
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from ...schemas.common import SuccessResponse
from ...services.connectivity import ConnectivityService
from ..deps import get_connectivity_service, get_current_admin


router = APIRouter(prefix="/events", tags=["events"])


@router.post(
    "",
    response_model=SuccessResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit a proxy core event",
    responses={
        202: {"description": "Event applied"},
        400: {"description": "Event could not be decoded"},
        401: {"description": "Invalid API key"},
    }
)
async def post_event(
    payload: dict[str, Any] = Body(..., examples=[{"type": "ClosedConnection", "proxy_src": "10.0.0.1:1111", "proxy_dst": "10.0.0.2:2222"}]),
    service: ConnectivityService = Depends(get_connectivity_service),
    _admin: str = Depends(get_current_admin)
) -> SuccessResponse:
    """
    Apply one event, in the proxy core's JSON format.
    """
    event = service.handle_event(json.dumps(payload))
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Event could not be decoded"
        )
    return SuccessResponse(message="Event applied", data={"type": getattr(event, "type", None)})
