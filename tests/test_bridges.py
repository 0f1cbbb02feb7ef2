"""
Tests for bridge line parsing and transport selection.
"""

import pytest
from pydantic import ValidationError

from onionlink.bridges import (
    BridgeConfig,
    BridgeSelector,
    TransportConfig,
    build_transport_config,
    parse_batch,
    parse_line,
    select,
)
from onionlink.errors import BridgeLineError
from onionlink.transports import TransportType

from conftest import (
    OBFS4_LINE,
    OBFS4_LINE_2,
    SNOWFLAKE_LINE,
    SNOWFLAKE_LINE_2,
    SNOWFLAKE_LINE_3,
    WEBTUNNEL_LINE,
)


class TestParseLine:
    """Tests for single line parsing."""

    def test_obfs4(self):
        """Test parsing a full obfs4 line."""
        transport_type, bridge = parse_line(OBFS4_LINE)
        assert transport_type == TransportType.OBFS4
        assert bridge.raw_line == OBFS4_LINE
        assert bridge.host == "192.0.2.1:443"
        assert bridge.fingerprint_or_identity == "0123456789ABCDEF0123456789ABCDEF01234567"
        assert bridge.get_option("iat-mode") == "0"
        assert bridge.get_option("cert").startswith("4JeU2x3E")

    def test_snowflake(self):
        """Test parsing a snowflake line with list options."""
        transport_type, bridge = parse_line(SNOWFLAKE_LINE)
        assert transport_type == TransportType.SNOWFLAKE
        assert bridge.get_option("fronts") == "foursquare.com,github.githubassets.com"
        assert bridge.get_option("utls-imitate") == "hellorandomizedalpn"
        assert bridge.get_option("amp-cache") is None

    def test_webtunnel(self):
        """Test parsing a webtunnel line with an IPv6 host."""
        transport_type, bridge = parse_line(WEBTUNNEL_LINE)
        assert transport_type == TransportType.WEBTUNNEL
        assert bridge.host == "[2001:db8::1]:443"
        assert bridge.get_option("ver") == "0.0.1"

    def test_raw_line_trimmed(self):
        """Test surrounding whitespace is stripped from the stored line."""
        _, bridge = parse_line(f"   {OBFS4_LINE}\t ")
        assert bridge.raw_line == OBFS4_LINE

    def test_torrc_prefix(self):
        """Test a leading torrc 'Bridge' keyword is accepted."""
        _, bridge = parse_line(f"Bridge {OBFS4_LINE}")
        assert bridge.raw_line == OBFS4_LINE
        assert bridge.to_torrc_line() == f"Bridge {OBFS4_LINE}"

    def test_torrc_prefix_any_whitespace(self):
        """Test the torrc keyword may be followed by a tab."""
        transport_type, bridge = parse_line(f"Bridge\t{OBFS4_LINE}")
        assert transport_type == TransportType.OBFS4
        assert bridge.raw_line == OBFS4_LINE

    def test_reparse_raw_line(self):
        """Test parsing a stored raw line yields the same bridge."""
        transport_type, bridge = parse_line(SNOWFLAKE_LINE)
        assert parse_line(bridge.raw_line) == (transport_type, bridge)

    def test_unknown_key_dropped(self):
        """Test keys the transport does not know never reach options."""
        transport_type, bridge = parse_line("snowflake host fp cert=x")
        assert transport_type == TransportType.SNOWFLAKE
        assert bridge.host == "host"
        assert bridge.fingerprint_or_identity == "fp"
        assert bridge.options == {}

    @pytest.mark.parametrize("line", [
        "obfs4",
        "foo bar baz",
        "",
        "obfs4 host:1 FP iat-mode=12",
        "meek_lite 192.0.2.2:80 FP url=https://x/",
    ])
    def test_rejected(self, line):
        """Test lines matching no grammar raise BridgeLineError."""
        with pytest.raises(BridgeLineError) as exc_info:
            parse_line(line)
        assert exc_info.value.line == line

    def test_error_message_hides_line(self):
        """Test the error message does not echo bridge secrets."""
        with pytest.raises(BridgeLineError) as exc_info:
            parse_line("obfs4 host:1 FP cert=secret iat-mode=99")
        assert "secret" not in str(exc_info.value)


class TestParseBatch:
    """Tests for multi-line parsing."""

    def test_empty(self):
        """Test empty and missing input."""
        assert parse_batch(None) == {}
        assert parse_batch("") == {}
        assert parse_batch("\n  \n") == {}

    def test_groups_by_transport(self):
        """Test lines are grouped per transport in input order."""
        text = "\n".join([OBFS4_LINE, SNOWFLAKE_LINE, OBFS4_LINE_2, WEBTUNNEL_LINE])
        batch = parse_batch(text)
        assert set(batch) == {
            TransportType.OBFS4, TransportType.SNOWFLAKE, TransportType.WEBTUNNEL
        }
        obfs4 = batch[TransportType.OBFS4]
        assert [b.raw_line for b in obfs4.bridges] == [OBFS4_LINE, OBFS4_LINE_2]
        assert obfs4.selected_index == 0
        assert obfs4.client_port == -1

    def test_bad_lines_skipped(self):
        """Test an unparseable line does not abort the batch."""
        text = "\n".join(["foo bar baz", OBFS4_LINE, "obfs4", SNOWFLAKE_LINE])
        batch = parse_batch(text)
        assert len(batch[TransportType.OBFS4].bridges) == 1
        assert len(batch[TransportType.SNOWFLAKE].bridges) == 1

    def test_comments_skipped(self):
        """Test '#' comment lines are ignored."""
        batch = parse_batch(f"# my bridges\n{OBFS4_LINE}\n")
        assert list(batch) == [TransportType.OBFS4]

    def test_crlf_input(self):
        """Test Windows line endings."""
        batch = parse_batch(f"{OBFS4_LINE}\r\n{OBFS4_LINE_2}\r\n")
        assert [b.raw_line for b in batch[TransportType.OBFS4].bridges] == [OBFS4_LINE, OBFS4_LINE_2]

    def test_nothing_parseable(self):
        """Test a batch of only bad lines is empty."""
        assert parse_batch("foo\nbar baz") == {}


class TestTransportConfig:
    """Tests for the TransportConfig model."""

    def _config(self, transport_type, *lines, **kwargs):
        bridges = [parse_line(line)[1] for line in lines]
        return TransportConfig(transport_type=transport_type, bridges=bridges, **kwargs)

    def test_selected_index_out_of_range(self):
        """Test the selected index must point into the bridge list."""
        with pytest.raises(ValidationError):
            self._config(TransportType.OBFS4, OBFS4_LINE, selected_index=1)

    def test_selected_index_empty(self):
        """Test the selected index must be 0 without bridges."""
        config = TransportConfig(transport_type=TransportType.OBFS4)
        assert config.selected_bridge is None
        assert config.active_bridge_lines() is None
        with pytest.raises(ValidationError):
            TransportConfig(transport_type=TransportType.OBFS4, selected_index=1)

    def test_assignment_validated(self):
        """Test assigning an invalid index is rejected."""
        config = self._config(TransportType.SNOWFLAKE, SNOWFLAKE_LINE, SNOWFLAKE_LINE_2)
        config.selected_index = 1
        assert config.selected_bridge_line() == SNOWFLAKE_LINE_2
        with pytest.raises(ValidationError):
            config.selected_index = 2

    def test_client_port_validation(self):
        """Test the client port is -1 or a valid port."""
        config = self._config(TransportType.OBFS4, OBFS4_LINE)
        assert config.with_client_port(4711).client_port == 4711
        assert config.client_port == -1
        with pytest.raises(ValidationError):
            config.with_client_port(0)
        with pytest.raises(ValidationError):
            config.with_client_port(70000)

    def test_active_lines_multi_config(self):
        """Test obfs4 hands every line to the proxy core."""
        config = self._config(TransportType.OBFS4, OBFS4_LINE, OBFS4_LINE_2)
        assert config.active_bridge_lines() == f"{OBFS4_LINE}\n{OBFS4_LINE_2}"

    def test_active_lines_single_config(self):
        """Test snowflake hands over only the selected line."""
        config = self._config(
            TransportType.SNOWFLAKE, SNOWFLAKE_LINE, SNOWFLAKE_LINE_2, selected_index=1
        )
        assert config.single_config_only
        assert config.active_bridge_lines() == SNOWFLAKE_LINE_2
        assert config.get_option("fronts") == "vimeo.com"

    def test_bridge_config_frozen(self):
        """Test parsed bridges are immutable."""
        _, bridge = parse_line(OBFS4_LINE)
        with pytest.raises(ValidationError):
            bridge.host = "other:1"

    def test_bridge_config_requires_host(self):
        """Test an empty host is rejected."""
        with pytest.raises(ValidationError):
            BridgeConfig(raw_line="obfs4", host="")


class TestSelection:
    """Tests for choosing the transport to run."""

    def test_empty_batch(self):
        """Test nothing is selected from an empty batch."""
        assert select({}) is None
        assert build_transport_config("") is None
        assert build_transport_config("foo bar baz") is None

    def test_single_obfs4_keeps_all(self, fixed_random):
        """Test obfs4 runs with every bridge and no random draw."""
        rng = fixed_random()
        config = select(parse_batch(f"{OBFS4_LINE}\n{OBFS4_LINE_2}"), rng)
        assert config.transport_type == TransportType.OBFS4
        assert OBFS4_LINE in config.active_bridge_lines()
        assert OBFS4_LINE_2 in config.active_bridge_lines()
        assert rng.calls == []

    def test_single_snowflake_picks_one(self, fixed_random):
        """Test snowflake runs with exactly one of its bridges."""
        rng = fixed_random(2)
        text = "\n".join([SNOWFLAKE_LINE, SNOWFLAKE_LINE_2, SNOWFLAKE_LINE_3])
        config = select(parse_batch(text), rng)
        assert config.transport_type == TransportType.SNOWFLAKE
        assert len(config.bridges) == 3
        assert config.selected_index == 2
        assert config.active_bridge_lines() == SNOWFLAKE_LINE_3
        assert rng.calls == [3]

    def test_single_snowflake_random_source(self):
        """Test the default generator always lands on one of the lines."""
        text = "\n".join([SNOWFLAKE_LINE, SNOWFLAKE_LINE_2, SNOWFLAKE_LINE_3])
        for _ in range(20):
            config = build_transport_config(text)
            assert config.active_bridge_lines() in (SNOWFLAKE_LINE, SNOWFLAKE_LINE_2, SNOWFLAKE_LINE_3)

    def test_multiple_types_pick_one(self, fixed_random):
        """Test several transport types resolve to one, in grammar order."""
        text = "\n".join([WEBTUNNEL_LINE, SNOWFLAKE_LINE, OBFS4_LINE])
        batch = parse_batch(text)

        assert select(batch, fixed_random(0)).transport_type == TransportType.OBFS4
        assert select(batch, fixed_random(2)).transport_type == TransportType.WEBTUNNEL

        rng = fixed_random(1, 0)
        config = select(batch, rng)
        assert config.transport_type == TransportType.SNOWFLAKE
        assert config.active_bridge_lines() == SNOWFLAKE_LINE
        assert rng.calls == [3, 1]

    def test_input_not_mutated(self, fixed_random):
        """Test selection returns a new config."""
        batch = parse_batch("\n".join([SNOWFLAKE_LINE, SNOWFLAKE_LINE_2]))
        original = batch[TransportType.SNOWFLAKE]
        config = BridgeSelector(fixed_random(1)).select(batch)
        assert config is not original
        assert original.selected_index == 0
        assert config.selected_index == 1

    def test_empty_configs_ignored(self, fixed_random):
        """Test transport configs without bridges are never chosen."""
        batch = parse_batch(OBFS4_LINE)
        batch[TransportType.SNOWFLAKE] = TransportConfig(transport_type=TransportType.SNOWFLAKE)
        rng = fixed_random()
        assert select(batch, rng).transport_type == TransportType.OBFS4
        assert rng.calls == []
