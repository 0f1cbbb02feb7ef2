"""
Connection registry.

Tracks open proxied connections per app UID from the proxy core's
lifecycle events, and remembers the country codes of the latest circuit
built for each app.

Country codes outlive the connections they came from: the UI should be
able to show an app's circuit even when no data happens to be flowing at
that moment. Only the latest circuit per app is kept, since the event
stream doesn't yet say which circuit a connection belongs to when an app
uses several.

All three indices sit behind one lock. Queries return immutable values,
so callers get a consistent snapshot.
"""

import threading
from typing import Optional

from .circuits import CircuitView, ConnectionKey, CountryCodeSnapshot
from .core.logging import get_logger
from .diagnostics import DiagnosticsLog
from .errors import RegistryInconsistencyError
from .events import (
    ClosedConnectionEvent,
    ConnectionRecord,
    FailedConnectionEvent,
    NewConnectionEvent,
    OnionlinkEvent,
)

logger = get_logger(__name__)


class ConnectionRegistry:
    """
    Per-app view of active connections and last-known circuits.

    A connection key is either absent or active. NewConnection makes it
    active; ClosedConnection or FailedConnection makes it absent again.
    """

    def __init__(self, diagnostics: Optional[DiagnosticsLog] = None):
        """
        Initialize the registry.

        Args:
            diagnostics: Where internal consistency problems are reported
        """
        self._diagnostics = diagnostics

        # app UID -> keys of its open connections
        self._app_keys: dict[int, set[ConnectionKey]] = {}
        # connection key -> the NewConnection event that opened it
        self._connections: dict[ConnectionKey, ConnectionRecord] = {}
        # app UID -> country codes of its latest circuit
        self._country_codes: dict[int, CountryCodeSnapshot] = {}

        self._lock = threading.Lock()

    def handle_event(self, event: OnionlinkEvent) -> bool:
        """
        Apply a lifecycle event.

        Returns:
            True if the event was a connection event and was applied
        """
        if isinstance(event, NewConnectionEvent):
            self.on_new_connection(event)
        elif isinstance(event, ClosedConnectionEvent):
            self.on_closed_connection(event.key)
        elif isinstance(event, FailedConnectionEvent):
            self.on_failed_connection(event.key)
        else:
            return False
        return True

    def on_new_connection(self, record: ConnectionRecord) -> None:
        key = record.key
        snapshot = CountryCodeSnapshot.from_hops(record.circuit)
        with self._lock:
            previous = self._connections.get(key)
            if previous is not None and previous.app_id != record.app_id:
                # Key still open under another app: it moves to the new one
                self._discard_app_key(previous.app_id, key)
            self._connections[key] = record
            self._app_keys.setdefault(record.app_id, set()).add(key)
            self._country_codes[record.app_id] = snapshot

        if previous is not None and previous.app_id != record.app_id:
            logger.warning(
                "New connection for a key open under another app",
                connection=str(key),
                previous_app_id=previous.app_id,
                app_id=record.app_id,
            )
            self._report(
                f"WARNING: NewConnection for {key} of app {record.app_id} "
                f"replaced open connection of app {previous.app_id}"
            )

    def on_closed_connection(self, key: ConnectionKey) -> None:
        # Closed often follows a Failed we already handled
        with self._lock:
            self._remove(key)

    def on_failed_connection(self, key: ConnectionKey) -> None:
        with self._lock:
            removed = self._remove(key)
        if not removed:
            logger.warning("Failed connection event for unknown connection", connection=str(key))
            self._report(f"WARNING: Unknown FailedConnection event for {key}")

    def _remove(self, key: ConnectionKey) -> bool:
        """Drop a connection from both indices. Caller holds the lock."""
        record = self._connections.pop(key, None)
        if record is None:
            return False

        self._discard_app_key(record.app_id, key)
        return True

    def _discard_app_key(self, app_id: int, key: ConnectionKey) -> None:
        """Drop a key from an app's active set. Caller holds the lock."""
        keys = self._app_keys.get(app_id)
        if keys is not None:
            keys.discard(key)
            if not keys:
                del self._app_keys[app_id]

    def circuits_for_app(self, app_id: int) -> frozenset[CircuitView]:
        """
        Circuits of an app's currently open connections.

        Raises:
            RegistryInconsistencyError: If an open key has no record
        """
        with self._lock:
            keys = self._app_keys.get(app_id)
            if not keys:
                return frozenset()

            missing = next((key for key in keys if key not in self._connections), None)
            if missing is None:
                return frozenset(CircuitView.from_record(self._connections[key]) for key in keys)

        error = RegistryInconsistencyError(app_id, missing)
        logger.error("Registry inconsistency", app_id=app_id, connection=str(missing))
        self._report(f"ERROR: {error}")
        raise error

    def country_codes_for_app(self, app_id: int) -> Optional[CountryCodeSnapshot]:
        with self._lock:
            return self._country_codes.get(app_id)

    def evict_country_codes(self, app_id: int) -> None:
        """Forget an app's last circuit, e.g. when it's no longer monitored."""
        with self._lock:
            self._country_codes.pop(app_id, None)

    def active_apps(self) -> list[int]:
        with self._lock:
            return sorted(self._app_keys)

    def tracked_apps(self) -> list[int]:
        """Apps with open connections or a remembered circuit."""
        with self._lock:
            return sorted(set(self._app_keys) | set(self._country_codes))

    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def reset(self) -> None:
        """Drop all state, e.g. when the proxy restarts."""
        with self._lock:
            self._connections.clear()
            self._app_keys.clear()
            self._country_codes.clear()
        logger.debug("Connection registry reset")

    def _report(self, message: str) -> None:
        if self._diagnostics is not None:
            self._diagnostics.add(message)
