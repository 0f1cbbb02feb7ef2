"""
Connectivity service.

Owns the active bridge configuration, the connection registry and the
diagnostics buffer, and exposes the queries the API and CLI need. One
instance is built per process and handed to its consumers.
"""

import threading
from typing import Optional, Union

from ..bridges import BridgeSelector, TransportConfig, parse_batch
from ..circuits import CircuitView, CountryCodeSnapshot
from ..core.config import Settings
from ..core.logging import get_logger
from ..diagnostics import DiagnosticsLog
from ..errors import EventDecodeError, RegistryInconsistencyError
from ..events import (
    BootstrapEvent,
    NewDirectoryEvent,
    OnionlinkEvent,
    UnknownEvent,
    parse_event,
)
from ..registry import ConnectionRegistry


logger = get_logger(__name__)


class ConnectivityService:
    """
    Facade over bridge selection and connection tracking.

    - Bridges: parse configured lines, select the transport to run
    - Events: decode proxy core events and route them to the registry
    - Queries: circuits and country codes per app, diagnostics
    """

    def __init__(
        self,
        registry: Optional[ConnectionRegistry] = None,
        diagnostics: Optional[DiagnosticsLog] = None,
        selector: Optional[BridgeSelector] = None,
    ):
        """
        Initialize the connectivity service.

        Args:
            registry: Connection registry (a new one if omitted)
            diagnostics: Diagnostics buffer (a new one if omitted)
            selector: Bridge selector (cryptographically random if omitted)
        """
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticsLog()
        self.registry = registry if registry is not None else ConnectionRegistry(self.diagnostics)
        self._selector = selector or BridgeSelector()

        self._transport_config: Optional[TransportConfig] = None
        self._bootstrap: Optional[BootstrapEvent] = None
        self._relays_by_country: dict[str, int] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConnectivityService":
        """Build a service and load the configured bridge lines."""
        diagnostics = DiagnosticsLog(
            capacity=settings.diagnostics.capacity,
            reverse_order=settings.diagnostics.reverse_order,
        )
        service = cls(diagnostics=diagnostics)
        bridge_lines = settings.read_bridge_lines()
        if bridge_lines:
            service.configure_bridges(bridge_lines)
        if settings.bridge.client_port != -1:
            if service.transport_config is None:
                logger.warning("Client port configured without bridges", port=settings.bridge.client_port)
            else:
                service.set_client_port(settings.bridge.client_port)
        return service

    # BRIDGES

    def configure_bridges(self, text: Optional[str]) -> Optional[TransportConfig]:
        """
        Parse bridge lines and make the selected configuration active.

        A client port assigned earlier is carried over.

        Returns:
            The active configuration, or None if no line was usable
        """
        config = self._selector.select(parse_batch(text))
        with self._lock:
            if config is not None and self._transport_config is not None:
                config = config.with_client_port(self._transport_config.client_port)
            self._transport_config = config

        if config is None:
            logger.warning("No usable bridge configuration")
        else:
            logger.info(
                "Bridge configuration selected",
                transport=config.transport_type.value,
                bridges=len(config.bridges),
            )
        return config

    def clear_bridges(self) -> None:
        with self._lock:
            self._transport_config = None

    @property
    def transport_config(self) -> Optional[TransportConfig]:
        with self._lock:
            return self._transport_config

    def active_bridge_lines(self) -> Optional[str]:
        """Bridge lines for the proxy core, None when nothing is configured."""
        config = self.transport_config
        return config.active_bridge_lines() if config else None

    def set_client_port(self, port: int) -> TransportConfig:
        """
        Record the port the transport client listens on.

        Raises:
            ValueError: If no bridges are configured or the port is invalid
        """
        with self._lock:
            if self._transport_config is None:
                raise ValueError("No bridge configuration to assign a client port to")
            self._transport_config = self._transport_config.with_client_port(port)
            return self._transport_config

    # EVENTS

    def handle_event(self, event: Union[OnionlinkEvent, str, bytes]) -> Optional[OnionlinkEvent]:
        """
        Apply one lifecycle event.

        Raw payloads are decoded first; undecodable ones are logged,
        recorded in diagnostics and dropped.

        Returns:
            The decoded event, or None if it was dropped
        """
        if isinstance(event, (str, bytes)):
            try:
                event = parse_event(event)
            except EventDecodeError as e:
                logger.warning("Dropping undecodable event", event_type=e.event_type, error=str(e))
                self.diagnostics.add(f"WARNING: Dropped event: {e}")
                return None

        if self.registry.handle_event(event):
            return event

        if isinstance(event, BootstrapEvent):
            with self._lock:
                self._bootstrap = event
            logger.info(
                "Bootstrap progress",
                percent=event.bootstrap_percent,
                status=event.bootstrap_status,
                ready=event.is_ready_for_traffic,
            )
            if event.blockage_message:
                logger.warning("Bootstrap blocked", reason=event.blockage_message)
        elif isinstance(event, NewDirectoryEvent):
            with self._lock:
                self._relays_by_country = dict(event.relays_by_country)
            logger.debug("New directory", countries=len(event.relays_by_country))
        elif isinstance(event, UnknownEvent):
            logger.debug("Ignoring unknown event", event_type=event.type)
        return event

    @property
    def bootstrap(self) -> Optional[BootstrapEvent]:
        with self._lock:
            return self._bootstrap

    @property
    def relays_by_country(self) -> dict[str, int]:
        with self._lock:
            return dict(self._relays_by_country)

    # QUERIES

    def circuits_for_app(self, app_id: int) -> frozenset[CircuitView]:
        """Circuits of the app's open connections; empty on a registry inconsistency."""
        try:
            return self.registry.circuits_for_app(app_id)
        except RegistryInconsistencyError:
            return frozenset()

    def country_codes_for_app(self, app_id: int) -> Optional[CountryCodeSnapshot]:
        return self.registry.country_codes_for_app(app_id)

    def evict_country_codes(self, app_id: int) -> None:
        self.registry.evict_country_codes(app_id)

    def reset(self) -> None:
        """Drop all connection state, e.g. after a proxy restart."""
        self.registry.reset()
        with self._lock:
            self._bootstrap = None
            self._relays_by_country = {}
        logger.info("Connectivity state reset")

    def status(self) -> dict:
        """Summary of the current state."""
        config = self.transport_config
        bootstrap = self.bootstrap
        return {
            "transport": config.transport_type.value if config else None,
            "bridges": len(config.bridges) if config else 0,
            "client_port": config.client_port if config else -1,
            "bootstrap_percent": bootstrap.bootstrap_percent if bootstrap else 0,
            "ready_for_traffic": bootstrap.is_ready_for_traffic if bootstrap else False,
            "active_apps": self.registry.active_apps(),
            "active_connections": self.registry.connection_count(),
            "diagnostics": len(self.diagnostics),
        }
