"""
Bridge configuration endpoints.

- GET /bridges - Active bridge configuration
- PUT /bridges - Replace the bridge lines
- PUT /bridges/client-port - Assign the transport client port
"""

from fastapi import APIRouter, Depends, HTTPException, status

from ...schemas.bridges import BridgeLinesUpdate, ClientPortUpdate, TransportConfigResponse
from ...services.connectivity import ConnectivityService
from ..deps import get_connectivity_service, get_current_admin


router = APIRouter(prefix="/bridges", tags=["bridges"])


@router.get(
    "",
    response_model=TransportConfigResponse,
    summary="Get the active bridge configuration",
    responses={
        200: {"description": "Active bridge configuration"},
        401: {"description": "Invalid API key"},
        404: {"description": "No usable bridge configuration"},
    }
)
async def get_bridges(
    service: ConnectivityService = Depends(get_connectivity_service),
    _admin: str = Depends(get_current_admin)
) -> TransportConfigResponse:
    """
    Get the selected transport and the bridge lines handed to the proxy core.
    """
    config = service.transport_config
    if config is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No usable bridge configuration"
        )
    return TransportConfigResponse.from_config(config)


@router.put(
    "",
    response_model=TransportConfigResponse,
    summary="Replace the bridge lines",
    responses={
        200: {"description": "Selected bridge configuration"},
        401: {"description": "Invalid API key"},
        422: {"description": "No line could be parsed"},
    }
)
async def put_bridges(
    data: BridgeLinesUpdate,
    service: ConnectivityService = Depends(get_connectivity_service),
    _admin: str = Depends(get_current_admin)
) -> TransportConfigResponse:
    """
    Parse the given bridge lines and select the configuration to run.

    Unparseable lines are skipped. If none is usable the previous
    configuration is dropped and 422 is returned.
    """
    config = service.configure_bridges(data.lines)
    if config is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="No usable bridge line"
        )
    return TransportConfigResponse.from_config(config)


@router.put(
    "/client-port",
    response_model=TransportConfigResponse,
    summary="Assign the transport client port",
    responses={
        200: {"description": "Updated bridge configuration"},
        401: {"description": "Invalid API key"},
        409: {"description": "No bridge configuration"},
    }
)
async def put_client_port(
    data: ClientPortUpdate,
    service: ConnectivityService = Depends(get_connectivity_service),
    _admin: str = Depends(get_current_admin)
) -> TransportConfigResponse:
    """
    Record the port the externally started transport client listens on.
    """
    try:
        config = service.set_client_port(data.port)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    return TransportConfigResponse.from_config(config)
