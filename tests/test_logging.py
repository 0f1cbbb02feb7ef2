"""
Tests for logging setup.
"""

import json

from onionlink.core.logging import _mask_sensitive, get_logger, setup_logging


class TestLogging:
    """Tests for structlog configuration."""

    def test_mask_sensitive(self):
        """Test secret-bearing keys are masked."""
        event = _mask_sensitive(None, "info", {
            "event": "decoded",
            "raw_json": '{"proxy_src": "10.0.0.1:1"}',
            "cert": "abc",
            "line_number": 3,
        })
        assert event["raw_json"] == "***"
        assert event["cert"] == "***"
        assert event["line_number"] == 3

    def test_json_file_output(self, tmp_path):
        """Test JSON lines are written to the log file."""
        log_file = tmp_path / "onionlink.log"
        setup_logging(level="INFO", format="json", log_file=str(log_file))

        logger = get_logger("onionlink.test")
        logger.debug("hidden")
        logger.info("bridge selected", transport="obfs4", bridge_line="obfs4 secret")

        lines = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert len(lines) == 1
        assert lines[0]["event"] == "bridge selected"
        assert lines[0]["level"] == "INFO"
        assert lines[0]["logger"] == "onionlink.test"
        assert lines[0]["transport"] == "obfs4"
        assert lines[0]["bridge_line"] == "***"
