"""
Bridge API schemas for request/response validation.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..bridges import TransportConfig
from ..transports import TransportType


class BridgeLinesUpdate(BaseModel):
    """Schema for replacing the configured bridge lines (PUT /bridges)."""

    lines: str = Field(
        ...,
        min_length=1,
        description="Newline-separated bridge lines",
        examples=["obfs4 192.0.2.1:443 0123456789ABCDEF0123456789ABCDEF01234567 cert=abc iat-mode=0"]
    )


class ClientPortUpdate(BaseModel):
    """Schema for assigning the transport client port (PUT /bridges/client-port)."""

    port: int = Field(
        ...,
        ge=1,
        le=65535,
        description="Port the transport client listens on"
    )


class BridgeResponse(BaseModel):
    """One parsed bridge."""

    model_config = ConfigDict(from_attributes=True)

    raw_line: str = Field(..., description="Bridge line")
    host: str = Field(..., description="Bridge address")
    fingerprint_or_identity: Optional[str] = Field(default=None, description="Fingerprint or identity")
    options: dict[str, str] = Field(default_factory=dict, description="Recognized options")


class TransportConfigResponse(BaseModel):
    """Response schema for the active bridge configuration."""

    transport_type: TransportType = Field(..., description="Selected transport")
    bridges: list[BridgeResponse] = Field(default_factory=list, description="Parsed bridges")
    selected_index: int = Field(default=0, description="Active bridge for single-config transports")
    client_port: int = Field(default=-1, description="Transport client port, -1 when unset")
    active_bridge_lines: Optional[str] = Field(default=None, description="Lines passed to the proxy core")

    @classmethod
    def from_config(cls, config: TransportConfig) -> "TransportConfigResponse":
        return cls(
            transport_type=config.transport_type,
            bridges=[BridgeResponse.model_validate(b, from_attributes=True) for b in config.bridges],
            selected_index=config.selected_index,
            client_port=config.client_port,
            active_bridge_lines=config.active_bridge_lines(),
        )
