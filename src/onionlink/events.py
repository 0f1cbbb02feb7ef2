"""
Lifecycle events emitted by the proxy core.

The proxy core posts one JSON object per event, discriminated by its
"type" field. parse_event() turns such a payload into one of the models
below. Types we don't know decode to UnknownEvent, which keeps only the
raw payload.

Raw payloads carry connection details of other apps; don't log them.
"""

import json
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .circuits import ConnectionKey, RelayHop
from .core.logging import get_logger
from .errors import EventDecodeError

logger = get_logger(__name__)


class OnionlinkEvent(BaseModel):
    """Base class for an asynchronous notification from the proxy core."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    raw_json: Optional[str] = Field(
        default=None,
        repr=False,
        exclude=True,
        description="The payload this event was decoded from"
    )


class BootstrapEvent(OnionlinkEvent):
    """An update on Tor bootstrapping status."""

    type: Literal["Bootstrap"] = "Bootstrap"
    bootstrap_percent: int = Field(
        default=0,
        ge=0,
        le=100,
        description="Rough progress percentage"
    )
    bootstrap_status: Optional[str] = Field(
        default=None,
        description="Human-readable bootstrap state"
    )
    is_ready_for_traffic: bool = Field(
        default=False,
        description="Whether traffic can be passed through Tor"
    )
    blockage_message: Optional[str] = Field(
        default=None,
        description="Why bootstrapping is stuck, if it is"
    )


class NewConnectionEvent(OnionlinkEvent):
    """
    A new connection successfully completed.

    This is the record the connection registry stores for the connection.
    """

    type: Literal["NewConnection"] = "NewConnection"
    proxy_src: str
    proxy_dst: str
    tor_dst: Optional[str] = Field(
        default=None,
        description="Address (IP:port or hostname:port) reached over Tor"
    )
    app_id: int = Field(
        ...,
        description="UID of the app that made the connection"
    )
    circuit: tuple[RelayHop, ...] = Field(
        default=(),
        description="Relays of the connection's circuit, in order"
    )

    @field_validator('circuit', mode='before')
    @classmethod
    def default_circuit(cls, v):
        return () if v is None else v

    @property
    def key(self) -> ConnectionKey:
        return ConnectionKey(self.proxy_src, self.proxy_dst)


class FailedConnectionEvent(OnionlinkEvent):
    """A connection failed. A ClosedConnectionEvent may follow."""

    type: Literal["FailedConnection"] = "FailedConnection"
    proxy_src: str
    proxy_dst: str
    tor_dst: Optional[str] = None
    app_id: int
    error: Optional[str] = None

    @property
    def key(self) -> ConnectionKey:
        return ConnectionKey(self.proxy_src, self.proxy_dst)


class ClosedConnectionEvent(OnionlinkEvent):
    """
    A connection closed, cleanly or not.

    May follow either a NewConnectionEvent or a FailedConnectionEvent, or
    neither.
    """

    type: Literal["ClosedConnection"] = "ClosedConnection"
    proxy_src: str
    proxy_dst: str
    error: Optional[str] = Field(
        default=None,
        description="None on a clean close"
    )

    @property
    def key(self) -> ConnectionKey:
        return ConnectionKey(self.proxy_src, self.proxy_dst)


class NewDirectoryEvent(OnionlinkEvent):
    """A new directory was downloaded."""

    type: Literal["NewDirectory"] = "NewDirectory"
    relays_by_country: dict[str, int] = Field(
        default_factory=dict,
        description="Two-letter country code to number of relays"
    )

    @field_validator('relays_by_country', mode='before')
    @classmethod
    def default_relays(cls, v):
        return {} if v is None else v


class UnknownEvent(OnionlinkEvent):
    """An event type this version doesn't understand."""

    type: str = "Unknown"


ConnectionRecord = NewConnectionEvent

ConnectionEvent = Union[NewConnectionEvent, FailedConnectionEvent, ClosedConnectionEvent]

LifecycleEvent = Union[
    BootstrapEvent,
    NewConnectionEvent,
    FailedConnectionEvent,
    ClosedConnectionEvent,
    NewDirectoryEvent,
    UnknownEvent,
]

EVENT_TYPES: dict[str, type[OnionlinkEvent]] = {
    "Bootstrap": BootstrapEvent,
    "NewConnection": NewConnectionEvent,
    "FailedConnection": FailedConnectionEvent,
    "ClosedConnection": ClosedConnectionEvent,
    "NewDirectory": NewDirectoryEvent,
}


def parse_event(raw: Union[str, bytes]) -> LifecycleEvent:
    """
    Decode one event payload from the proxy core.

    Args:
        raw: JSON object with a "type" discriminator

    Returns:
        The typed event, or UnknownEvent for an unrecognized type

    Raises:
        EventDecodeError: If the payload is not a JSON object or a known
            event type has invalid fields
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")

    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise EventDecodeError(f"Event payload is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise EventDecodeError("Event payload is not a JSON object")

    event_type = data.get("type")
    model = EVENT_TYPES.get(event_type) if isinstance(event_type, str) else None
    if model is None:
        logger.error("Unknown event type", event_type=event_type)
        return UnknownEvent(type=str(event_type), raw_json=raw)

    try:
        return model.model_validate({**data, "raw_json": raw})
    except ValidationError as e:
        raise EventDecodeError(
            f"Invalid {event_type} event: {e.error_count()} field error(s)",
            event_type=event_type,
        ) from e
