"""
Pluggable transport grammars for onionlink.

Each supported transport has a fixed bridge-line layout:

    obfs4 <host:port> <fingerprint> [cert=<b64>] [iat-mode=<0-9>]
    snowflake <host:port> <fingerprint> [url=...] [fronts=a,b] [ice=a,b] ...
    webtunnel <host:port> [<identity>] [url=...] [ver=...]

Options may come in any order and any subset. Keys a transport does not
know are dropped, so newer bridge lines still parse with older clients.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional, Sequence


class TransportType(str, Enum):
    """Supported pluggable transport types."""
    OBFS4 = "obfs4"           # Obfuscated traffic
    SNOWFLAKE = "snowflake"   # WebRTC peers behind a domain-fronted broker
    WEBTUNNEL = "webtunnel"   # Looks like HTTPS to the fronting domain


class OptionKind(Enum):
    """Value shape accepted for a bridge-line option."""
    STRING = "string"   # any token without whitespace
    DIGIT = "digit"     # one decimal digit
    LIST = "list"       # comma-joined tokens, no empty items


# Option keys
CERT = "cert"
IAT_MODE = "iat-mode"
FINGERPRINT = "fingerprint"
URL = "url"
FRONTS = "fronts"
ICE = "ice"
UTLS_IMITATE = "utls-imitate"
AMP_CACHE = "amp-cache"
SQS_QUEUE_URL = "sqs-queue-url"
SQS_CREDS_STR = "sqs-creds-str"
VER = "ver"

_VALUE_PATTERNS = {
    OptionKind.STRING: re.compile(r"\S+"),
    OptionKind.DIGIT: re.compile(r"\d"),
    OptionKind.LIST: re.compile(r"[^\s,]+(?:,[^\s,]+)*"),
}

_IDENTITY_PATTERN = re.compile(r"[A-Za-z0-9]+")


@dataclass(frozen=True)
class GrammarMatch:
    """Fields extracted from a line that fits a transport grammar."""
    host: str
    fingerprint_or_identity: Optional[str]
    options: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TransportGrammar:
    """
    Declarative definition of one transport's bridge-line format.

    `identity_optional` marks the second positional field as optional
    (webtunnel); it must then be alphanumeric so it can't be mistaken
    for an option token.
    """
    transport_type: TransportType
    options: Mapping[str, OptionKind]
    identity_optional: bool = False

    @property
    def keyword(self) -> str:
        return self.transport_type.value

    def allows(self, key: str) -> bool:
        return key in self.options

    def match(self, tokens: Sequence[str]) -> Optional[GrammarMatch]:
        """
        Match whitespace-split tokens against this grammar.

        Returns None when the tokens don't fit structurally.
        """
        if not tokens or tokens[0] != self.keyword or len(tokens) < 2:
            return None

        host = tokens[1]
        if "=" in host:
            return None

        rest = list(tokens[2:])
        identity: Optional[str] = None
        if self.identity_optional:
            if rest and "=" not in rest[0]:
                if not _IDENTITY_PATTERN.fullmatch(rest[0]):
                    return None
                identity = rest.pop(0)
        else:
            if not rest or "=" in rest[0]:
                return None
            identity = rest.pop(0)

        options: dict[str, str] = {}
        for token in rest:
            key, sep, value = token.partition("=")
            if not sep or not key:
                return None
            kind = self.options.get(key)
            if kind is None:
                # Unknown for this transport, whatever its value
                continue
            if not _VALUE_PATTERNS[kind].fullmatch(value):
                return None
            options[key] = value

        return GrammarMatch(host=host, fingerprint_or_identity=identity, options=options)


OBFS4_GRAMMAR = TransportGrammar(
    transport_type=TransportType.OBFS4,
    options={
        CERT: OptionKind.STRING,
        IAT_MODE: OptionKind.DIGIT,
    },
)

SNOWFLAKE_GRAMMAR = TransportGrammar(
    transport_type=TransportType.SNOWFLAKE,
    options={
        FINGERPRINT: OptionKind.STRING,
        URL: OptionKind.STRING,
        FRONTS: OptionKind.LIST,
        ICE: OptionKind.LIST,
        UTLS_IMITATE: OptionKind.STRING,
        AMP_CACHE: OptionKind.STRING,
        SQS_CREDS_STR: OptionKind.STRING,
        SQS_QUEUE_URL: OptionKind.STRING,
    },
)

WEBTUNNEL_GRAMMAR = TransportGrammar(
    transport_type=TransportType.WEBTUNNEL,
    options={
        URL: OptionKind.STRING,
        VER: OptionKind.STRING,
    },
    identity_optional=True,
)

# Tried in this order; the first match wins.
GRAMMARS: tuple[TransportGrammar, ...] = (
    OBFS4_GRAMMAR,
    SNOWFLAKE_GRAMMAR,
    WEBTUNNEL_GRAMMAR,
)

# Transports whose client can only run a single bridge configuration at once.
SINGLE_CONFIG_TRANSPORTS = frozenset({TransportType.SNOWFLAKE})


def get_grammar(transport_type: TransportType) -> TransportGrammar:
    """Look up the grammar for a transport type."""
    for grammar in GRAMMARS:
        if grammar.transport_type == transport_type:
            return grammar
    raise KeyError(transport_type)


def transport_order(transport_type: TransportType) -> int:
    """Position of a transport in the fixed grammar order."""
    return [g.transport_type for g in GRAMMARS].index(transport_type)
