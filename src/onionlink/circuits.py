"""
Circuit value types.

These are the read-only shapes the connection registry hands out:
connection keys, relay hops, per-connection circuit views and the
per-app country code snapshot.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from .events import NewConnectionEvent


@dataclass(frozen=True)
class ConnectionKey:
    """Identifies one proxied connection."""
    proxy_src: str  # source IP:port on the device side
    proxy_dst: str  # destination IP:port on the VPN side

    def __str__(self) -> str:
        return f"{self.proxy_src}->{self.proxy_dst}"


class RelayHop(BaseModel):
    """
    A relay inside a connection's circuit.

    Two hops are the same relay when both identities match and they list
    the same addresses (in any order). The country code is descriptive and
    does not take part in equality.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    rsa_identity: Optional[str] = Field(
        default=None,
        description="RSA identity of the relay, if it has one"
    )
    ed25519_identity: Optional[str] = Field(
        default=None,
        alias="ed_identity",
        description="Ed25519 identity of the relay, if it has one"
    )
    addresses: tuple[str, ...] = Field(
        default=(),
        description="IP:port combinations the relay is reachable at"
    )
    country_code: Optional[str] = Field(
        default=None,
        description="Two-letter country code, if known"
    )

    @field_validator('addresses', mode='before')
    @classmethod
    def default_addresses(cls, v):
        return () if v is None else v

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RelayHop):
            return NotImplemented
        return (
            self.rsa_identity == other.rsa_identity
            and self.ed25519_identity == other.ed25519_identity
            and len(self.addresses) == len(other.addresses)
            and set(self.addresses) == set(other.addresses)
        )

    def __hash__(self) -> int:
        return hash((self.rsa_identity, self.ed25519_identity, frozenset(self.addresses)))


def destination_domain(tor_dst: Optional[str]) -> Optional[str]:
    """
    Host portion of a host:port destination.

    >>> destination_domain("example.com:443")
    'example.com'
    >>> destination_domain("[2001:db8::1]:443")
    '2001:db8::1'
    """
    if tor_dst is None:
        return None
    if tor_dst.startswith("["):
        end = tor_dst.find("]")
        if end > 0:
            return tor_dst[1:end]
    host, _, _ = tor_dst.partition(":")
    return host


@dataclass(frozen=True, eq=False)
class CircuitView:
    """
    Destination and relays of one active connection.

    Equal to another view when the destination domains match and both
    hold the same hops, regardless of order.
    """
    destination_domain: Optional[str]
    hops: tuple[RelayHop, ...] = field(default=())

    @classmethod
    def from_record(cls, record: "NewConnectionEvent") -> "CircuitView":
        return cls(
            destination_domain=destination_domain(record.tor_dst),
            hops=tuple(record.circuit),
        )

    @property
    def country_codes(self) -> tuple[Optional[str], ...]:
        return tuple(hop.country_code for hop in self.hops)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CircuitView):
            return NotImplemented
        return (
            self.destination_domain == other.destination_domain
            and Counter(self.hops) == Counter(other.hops)
        )

    def __hash__(self) -> int:
        return hash((self.destination_domain, frozenset(self.hops)))


@dataclass(frozen=True)
class CountryCodeSnapshot:
    """Country codes of the hops of the latest circuit built for an app, in order."""
    country_codes: tuple[Optional[str], ...]

    @classmethod
    def from_hops(cls, hops) -> "CountryCodeSnapshot":
        return cls(country_codes=tuple(hop.country_code for hop in hops))

    def __iter__(self) -> Iterator[Optional[str]]:
        return iter(self.country_codes)

    def __len__(self) -> int:
        return len(self.country_codes)
