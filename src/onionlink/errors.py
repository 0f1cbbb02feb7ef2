"""
Exception types raised by onionlink.

Every error is an OnionlinkError so callers can catch the whole family
at their boundary (API handlers, CLI commands).
"""

from typing import Optional


class OnionlinkError(Exception):
    """Base class for expected onionlink error conditions."""


class BridgeLineError(OnionlinkError):
    """A bridge line did not match any transport grammar."""

    def __init__(self, line: str, message: Optional[str] = None):
        self.line = line
        super().__init__(message or "Bridge line could not be parsed.")


class EventDecodeError(OnionlinkError):
    """A lifecycle event payload from the proxy core could not be decoded."""

    def __init__(self, message: str, event_type: Optional[str] = None):
        self.event_type = event_type
        super().__init__(message)


class RegistryInconsistencyError(OnionlinkError):
    """
    An app's active connection key has no record in the connection index.

    This points at a bug in event delivery (duplicate or out-of-order
    events). It fails the query that hit it, nothing else.
    """

    def __init__(self, app_id: int, key: object):
        self.app_id = app_id
        self.key = key
        super().__init__(f"Active connection {key} of app {app_id} has no record")


class ConfigurationError(OnionlinkError):
    """Settings could not be loaded or are invalid."""
