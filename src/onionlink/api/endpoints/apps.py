"""
Per-app circuit endpoints.

- GET /apps/{app_id}/circuits - Circuits of the app's open connections
- GET /apps/{app_id}/country-codes - Countries of the app's latest circuit
- DELETE /apps/{app_id}/country-codes - Forget the app's latest circuit
"""

from fastapi import APIRouter, Depends, HTTPException, status

from ...schemas.circuits import CircuitListResponse, CircuitResponse, CountryCodesResponse
from ...schemas.common import SuccessResponse
from ...services.connectivity import ConnectivityService
from ..deps import get_connectivity_service, get_current_admin


router = APIRouter(prefix="/apps", tags=["apps"])


@router.get(
    "/{app_id}/circuits",
    response_model=CircuitListResponse,
    summary="Get an app's circuits",
    responses={
        200: {"description": "Circuits of open connections"},
        401: {"description": "Invalid API key"},
        500: {"description": "Connection registry inconsistency"},
    }
)
async def get_circuits(
    app_id: int,
    service: ConnectivityService = Depends(get_connectivity_service),
    _admin: str = Depends(get_current_admin)
) -> CircuitListResponse:
    """
    Get the de-duplicated circuits of the app's currently open connections.
    """
    circuits = service.registry.circuits_for_app(app_id)
    items = sorted(
        (CircuitResponse.from_view(view) for view in circuits),
        key=lambda c: c.destination_domain or "",
    )
    return CircuitListResponse(app_id=app_id, circuits=items, total=len(items))


@router.get(
    "/{app_id}/country-codes",
    response_model=CountryCodesResponse,
    summary="Get the countries of an app's latest circuit",
    responses={
        200: {"description": "Country codes, in hop order"},
        401: {"description": "Invalid API key"},
        404: {"description": "No circuit recorded for this app"},
    }
)
async def get_country_codes(
    app_id: int,
    service: ConnectivityService = Depends(get_connectivity_service),
    _admin: str = Depends(get_current_admin)
) -> CountryCodesResponse:
    """
    Get the country codes of the latest circuit built for the app.

    Stays available after the app's connections have closed.
    """
    snapshot = service.country_codes_for_app(app_id)
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No circuit recorded for app {app_id}"
        )
    return CountryCodesResponse.from_snapshot(app_id, snapshot)


@router.delete(
    "/{app_id}/country-codes",
    response_model=SuccessResponse,
    summary="Forget an app's latest circuit",
    responses={
        200: {"description": "Country codes removed"},
        401: {"description": "Invalid API key"},
    }
)
async def delete_country_codes(
    app_id: int,
    service: ConnectivityService = Depends(get_connectivity_service),
    _admin: str = Depends(get_current_admin)
) -> SuccessResponse:
    """
    Remove the stored country codes, e.g. when the app is no longer monitored.
    """
    service.evict_country_codes(app_id)
    return SuccessResponse(message=f"Country codes of app {app_id} removed")
