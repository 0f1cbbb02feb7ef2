"""
Onionlink - Bridge configuration and circuit tracking for a Tor-over-VPN client

- Bridge line parsing for obfs4, snowflake and webtunnel
- Transport selection when several bridge types are supplied
- Per-app tracking of open connections and their Tor circuits
"""

__version__ = "1.0.0"
__author__ = "Onionlink Team"

from .transports import TransportType
from .bridges import (
    BridgeConfig,
    TransportConfig,
    BridgeSelector,
    parse_line,
    parse_batch,
    select,
    build_transport_config,
)
from .circuits import ConnectionKey, RelayHop, CircuitView, CountryCodeSnapshot
from .events import parse_event
from .registry import ConnectionRegistry
from .diagnostics import DiagnosticsLog
from .services import ConnectivityService

__all__ = [
    "TransportType",
    "BridgeConfig",
    "TransportConfig",
    "BridgeSelector",
    "parse_line",
    "parse_batch",
    "select",
    "build_transport_config",
    "ConnectionKey",
    "RelayHop",
    "CircuitView",
    "CountryCodeSnapshot",
    "parse_event",
    "ConnectionRegistry",
    "DiagnosticsLog",
    "ConnectivityService",
]
