"""
Circuit API schemas.
"""

from typing import Optional

from pydantic import BaseModel, Field

from ..circuits import CircuitView, CountryCodeSnapshot


class RelayHopResponse(BaseModel):
    """One relay of a circuit."""
    rsa_identity: Optional[str] = Field(default=None)
    ed25519_identity: Optional[str] = Field(default=None)
    addresses: list[str] = Field(default_factory=list)
    country_code: Optional[str] = Field(default=None)


class CircuitResponse(BaseModel):
    """Circuit of an open connection."""
    destination_domain: Optional[str] = Field(default=None, description="Destination host")
    hops: list[RelayHopResponse] = Field(default_factory=list, description="Relays, in order")

    @classmethod
    def from_view(cls, view: CircuitView) -> "CircuitResponse":
        return cls(
            destination_domain=view.destination_domain,
            hops=[
                RelayHopResponse(
                    rsa_identity=hop.rsa_identity,
                    ed25519_identity=hop.ed25519_identity,
                    addresses=list(hop.addresses),
                    country_code=hop.country_code,
                )
                for hop in view.hops
            ],
        )


class CircuitListResponse(BaseModel):
    """Circuits of one app."""
    app_id: int = Field(..., description="App UID")
    circuits: list[CircuitResponse] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)


class CountryCodesResponse(BaseModel):
    """Country codes of an app's latest circuit."""
    app_id: int = Field(..., description="App UID")
    country_codes: list[Optional[str]] = Field(default_factory=list, description="Hop countries, in order")

    @classmethod
    def from_snapshot(cls, app_id: int, snapshot: CountryCodeSnapshot) -> "CountryCodesResponse":
        return cls(app_id=app_id, country_codes=list(snapshot))


class StatusResponse(BaseModel):
    """Connectivity status summary."""
    transport: Optional[str] = Field(default=None)
    bridges: int = Field(default=0, ge=0)
    client_port: int = Field(default=-1)
    bootstrap_percent: int = Field(default=0, ge=0, le=100)
    ready_for_traffic: bool = Field(default=False)
    active_apps: list[int] = Field(default_factory=list)
    active_connections: int = Field(default=0, ge=0)
    diagnostics: int = Field(default=0, ge=0)


class DiagnosticsResponse(BaseModel):
    """Diagnostic messages."""
    entries: list[str] = Field(default_factory=list)
