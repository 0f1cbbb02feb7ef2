"""
Bridge line parsing and transport selection for onionlink.

Turns free-form bridge configuration text into typed TransportConfig
values, then picks the one transport (and, for snowflake, the one bridge)
the proxy core should run with. The underlying proxy can only use one
obfuscation layer at a time, so several supplied transport types are
resolved to a single one at random.

Grammars live in transports.py.
"""

import secrets
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .core.logging import get_logger
from .errors import BridgeLineError
from .transports import (
    GRAMMARS,
    SINGLE_CONFIG_TRANSPORTS,
    TransportType,
    transport_order,
)

logger = get_logger(__name__)

UNSET_CLIENT_PORT = -1

# torrc style prefix, e.g. "Bridge obfs4 1.2.3.4:443 ..."
_TORRC_PREFIX = "Bridge"


class RandomSource(Protocol):
    """Anything with random.Random's randrange()."""

    def randrange(self, stop: int) -> int: ...


class BridgeConfig(BaseModel):
    """One parsed bridge line."""

    model_config = ConfigDict(frozen=True)

    raw_line: str = Field(
        ...,
        description="The matched bridge line, trimmed"
    )
    host: str = Field(
        ...,
        min_length=1,
        description="Bridge address (IP:port or domain)"
    )
    fingerprint_or_identity: Optional[str] = Field(
        default=None,
        description="Fingerprint (obfs4, snowflake) or identity (webtunnel)"
    )
    options: dict[str, str] = Field(
        default_factory=dict,
        description="Recognized transport options"
    )

    def get_option(self, key: str) -> Optional[str]:
        return self.options.get(key)

    def to_torrc_line(self) -> str:
        """Render as a torrc Bridge line."""
        return f"{_TORRC_PREFIX} {self.raw_line}"


class TransportConfig(BaseModel):
    """
    All parsed bridges of one transport type.

    `selected_index` points at the active bridge for transports that can
    only run one configuration at a time. It is always a valid index into
    `bridges`, or 0 when `bridges` is empty.
    """

    model_config = ConfigDict(validate_assignment=True)

    transport_type: TransportType
    bridges: list[BridgeConfig] = Field(default_factory=list)
    selected_index: int = Field(default=0, ge=0)
    client_port: int = Field(
        default=UNSET_CLIENT_PORT,
        description="Port of the externally started transport client, -1 when unset"
    )

    @field_validator('client_port')
    @classmethod
    def validate_client_port(cls, v: int) -> int:
        """Validate port is unset or in valid range."""
        if v != UNSET_CLIENT_PORT and (v < 1 or v > 65535):
            raise ValueError(f"Invalid client port: {v}. Must be -1 or 1-65535")
        return v

    @model_validator(mode='after')
    def validate_selected_index(self) -> "TransportConfig":
        """Keep the selected index inside the bridge list."""
        if self.bridges and self.selected_index >= len(self.bridges):
            raise ValueError(
                f"selected_index {self.selected_index} out of range for {len(self.bridges)} bridges"
            )
        if not self.bridges and self.selected_index != 0:
            raise ValueError("selected_index must be 0 when there are no bridges")
        return self

    @property
    def single_config_only(self) -> bool:
        return self.transport_type in SINGLE_CONFIG_TRANSPORTS

    @property
    def selected_bridge(self) -> Optional[BridgeConfig]:
        if not self.bridges:
            return None
        return self.bridges[self.selected_index]

    def selected_bridge_line(self) -> Optional[str]:
        bridge = self.selected_bridge
        return bridge.raw_line if bridge else None

    def get_option(self, key: str) -> Optional[str]:
        """Option value of the selected bridge."""
        bridge = self.selected_bridge
        return bridge.get_option(key) if bridge else None

    def active_bridges(self) -> list[BridgeConfig]:
        """Bridges the proxy core runs with: only the selected one for snowflake."""
        if not self.bridges:
            return []
        if self.single_config_only:
            return [self.bridges[self.selected_index]]
        return list(self.bridges)

    def active_bridge_lines(self) -> Optional[str]:
        """
        Bridge lines to hand to the proxy core.

        Snowflake gets only the selected line, other transports get every
        line, newline-joined in input order. None when there are no bridges.
        """
        bridges = self.active_bridges()
        if not bridges:
            return None
        return "\n".join(bridge.raw_line for bridge in bridges).rstrip()

    def with_client_port(self, port: int) -> "TransportConfig":
        """Copy of this config with the transport client port assigned."""
        return TransportConfig(
            transport_type=self.transport_type,
            bridges=list(self.bridges),
            selected_index=self.selected_index,
            client_port=port,
        )


def _strip_torrc_prefix(line: str) -> str:
    parts = line.split(None, 1)
    if len(parts) == 2 and parts[0] == _TORRC_PREFIX:
        return parts[1].strip()
    return line


def parse_line(line: str) -> tuple[TransportType, BridgeConfig]:
    """
    Parse a single bridge line.

    Grammars are tried in the fixed order obfs4, snowflake, webtunnel and
    the first structural match wins.

    Args:
        line: One bridge line, optionally prefixed with "Bridge"

    Returns:
        Tuple of (transport type, parsed bridge)

    Raises:
        BridgeLineError: If the line matches no grammar
    """
    trimmed = _strip_torrc_prefix(line.strip())
    tokens = trimmed.split()

    for grammar in GRAMMARS:
        match = grammar.match(tokens)
        if match is None:
            continue
        bridge = BridgeConfig(
            raw_line=trimmed,
            host=match.host,
            fingerprint_or_identity=match.fingerprint_or_identity,
            options=match.options,
        )
        return grammar.transport_type, bridge

    raise BridgeLineError(line)


def parse_batch(text: Optional[str]) -> dict[TransportType, TransportConfig]:
    """
    Parse newline-separated bridge lines.

    Blank lines and '#' comments are skipped. A line that fails to parse
    is logged and skipped; it never aborts the batch.

    Returns:
        Mapping of transport type to its parsed bridges, in input order
    """
    if not text:
        return {}

    grouped: dict[TransportType, list[BridgeConfig]] = {}
    for number, line in enumerate(text.split("\n"), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            transport_type, bridge = parse_line(stripped)
        except BridgeLineError:
            # Only the keyword: the rest may carry bridge secrets
            logger.warning(
                "Skipping unparseable bridge line",
                line_number=number,
                keyword=stripped.split()[0],
            )
            continue
        grouped.setdefault(transport_type, []).append(bridge)

    return {
        transport_type: TransportConfig(transport_type=transport_type, bridges=bridges)
        for transport_type, bridges in grouped.items()
    }


class BridgeSelector:
    """
    Picks the single transport configuration to run.

    Uses a cryptographically strong generator by default. Pass any object
    with randrange() to make the pick deterministic.
    """

    def __init__(self, rng: Optional[RandomSource] = None):
        self._rng = rng or secrets.SystemRandom()

    def select(self, batch: dict[TransportType, TransportConfig]) -> Optional[TransportConfig]:
        """
        Select one transport configuration from a parsed batch.

        Args:
            batch: Output of parse_batch()

        Returns:
            The chosen TransportConfig, or None if the batch is empty
        """
        candidates = sorted(
            (config for config in batch.values() if config.bridges),
            key=lambda config: transport_order(config.transport_type),
        )
        if not candidates:
            return None

        if len(candidates) == 1:
            chosen = candidates[0]
        else:
            chosen = candidates[self._rng.randrange(len(candidates))]
            logger.info(
                "Multiple transport types supplied, picked one",
                available=[c.transport_type.value for c in candidates],
                transport=chosen.transport_type.value,
            )

        selected_index = chosen.selected_index
        if chosen.single_config_only:
            selected_index = self._rng.randrange(len(chosen.bridges))

        return TransportConfig(
            transport_type=chosen.transport_type,
            bridges=list(chosen.bridges),
            selected_index=selected_index,
            client_port=chosen.client_port,
        )


def select(
    batch: dict[TransportType, TransportConfig],
    rng: Optional[RandomSource] = None,
) -> Optional[TransportConfig]:
    """Select one transport configuration (see BridgeSelector)."""
    return BridgeSelector(rng).select(batch)


def build_transport_config(
    text: Optional[str],
    rng: Optional[RandomSource] = None,
) -> Optional[TransportConfig]:
    """Parse bridge lines and select the configuration to run."""
    return select(parse_batch(text), rng)
