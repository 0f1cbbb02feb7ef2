"""
Shared fixtures for onionlink tests.
"""

import json

import pytest


OBFS4_LINE = (
    "obfs4 192.0.2.1:443 0123456789ABCDEF0123456789ABCDEF01234567 "
    "cert=4JeU2x3EsSphNCqGEMLhOGCQBsLvRPOdDmOGudvPL2qKSn+DCDJuFilndkvF0XhFOQ0qHA iat-mode=0"
)
OBFS4_LINE_2 = (
    "obfs4 198.51.100.7:9001 89ABCDEF0123456789ABCDEF0123456789ABCDEF "
    "cert=Zx9BNFrp1HgfxKwb2fVcl8iaTgcyr4zDyjNvuUqXHrUvYOVWjoUXSD6XVNZEGqrTmHNaCw iat-mode=1"
)
SNOWFLAKE_LINE = (
    "snowflake 192.0.2.3:80 2B280B23E1107BB62ABFC40DDCC8824814F80A72 "
    "fingerprint=2B280B23E1107BB62ABFC40DDCC8824814F80A72 "
    "url=https://snowflake-broker.example.net/ "
    "fronts=foursquare.com,github.githubassets.com "
    "ice=stun:stun.l.google.com:19302,stun:stun.antisip.com:3478 "
    "utls-imitate=hellorandomizedalpn"
)
SNOWFLAKE_LINE_2 = (
    "snowflake 192.0.2.4:80 8838024498816A039FCBBAB14E6F40A0843051FA "
    "fingerprint=8838024498816A039FCBBAB14E6F40A0843051FA "
    "url=https://snowflake-broker.example.net/ fronts=vimeo.com"
)
SNOWFLAKE_LINE_3 = (
    "snowflake 192.0.2.5:80 1FA0843051FA8838024498816A039FCBBAB14E6F "
    "url=https://snowflake-broker.example.org/ ice=stun:stun.example.org:3478"
)
WEBTUNNEL_LINE = (
    "webtunnel [2001:db8::1]:443 2852538D49D7D73C1A6694FC492104983A9C4FA3 "
    "url=https://example.org/a1b2c3 ver=0.0.1"
)


class FixedRandom:
    """Stand-in for a random generator that returns queued values."""

    def __init__(self, *values):
        self.values = list(values)
        self.calls = []

    def randrange(self, stop):
        self.calls.append(stop)
        value = self.values.pop(0)
        assert 0 <= value < stop
        return value


def make_hop(rsa, country_code=None, addresses=("192.0.2.10:9001",), ed=None):
    """Build a relay hop payload as the proxy core sends it."""
    return {
        "rsa_identity": rsa,
        "ed_identity": ed,
        "addresses": list(addresses),
        "country_code": country_code,
    }


def new_connection(src, dst, app_id, tor_dst="example.com:443", hops=None):
    """Build a NewConnection payload."""
    return json.dumps({
        "type": "NewConnection",
        "proxy_src": src,
        "proxy_dst": dst,
        "tor_dst": tor_dst,
        "app_id": app_id,
        "circuit": hops if hops is not None else [],
    })


def closed_connection(src, dst, error=None):
    """Build a ClosedConnection payload."""
    return json.dumps({
        "type": "ClosedConnection",
        "proxy_src": src,
        "proxy_dst": dst,
        "error": error,
    })


def failed_connection(src, dst, app_id, error="connection refused"):
    """Build a FailedConnection payload."""
    return json.dumps({
        "type": "FailedConnection",
        "proxy_src": src,
        "proxy_dst": dst,
        "tor_dst": "example.com:443",
        "app_id": app_id,
        "error": error,
    })


@pytest.fixture
def fixed_random():
    """Factory for deterministic random sources."""
    return FixedRandom


@pytest.fixture
def us_de_hops():
    """Two-hop circuit through the US and Germany."""
    return [
        make_hop("AAAA", "US", ("192.0.2.10:9001",)),
        make_hop("BBBB", "DE", ("192.0.2.20:443",)),
    ]
