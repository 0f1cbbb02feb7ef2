"""
Onionlink API Schemas

Request and response schemas for the REST API.
These are separate from domain models to control what is exposed.
"""

from .bridges import (
    BridgeLinesUpdate,
    ClientPortUpdate,
    BridgeResponse,
    TransportConfigResponse,
)
from .circuits import (
    RelayHopResponse,
    CircuitResponse,
    CircuitListResponse,
    CountryCodesResponse,
    StatusResponse,
    DiagnosticsResponse,
)
from .common import (
    SuccessResponse,
    ErrorResponse,
)

__all__ = [
    # Bridge schemas
    "BridgeLinesUpdate",
    "ClientPortUpdate",
    "BridgeResponse",
    "TransportConfigResponse",
    # Circuit schemas
    "RelayHopResponse",
    "CircuitResponse",
    "CircuitListResponse",
    "CountryCodesResponse",
    "StatusResponse",
    "DiagnosticsResponse",
    # Common schemas
    "SuccessResponse",
    "ErrorResponse",
]
