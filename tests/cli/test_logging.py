"""
Tests for CLI log formatting and setup.
"""

import json
import logging
import sys

import pytest

from boardsync.cli.logging import JSONFormatter, TextFormatter, setup_logging


def _record(message="Moved card", level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord(
        name="OutboundSync",
        level=level,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


# =============================================================================
# JSONFormatter
# =============================================================================


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "OutboundSync"
        assert entry["message"] == "Moved card"
        assert entry["timestamp"].endswith("Z")
        assert "context" not in entry
        assert "exception" not in entry

    def test_extra_fields_go_to_context(self):
        record = _record(card_id="c1", status="✅ Done")

        entry = json.loads(JSONFormatter().format(record))

        assert entry["context"] == {"card_id": "c1", "status": "✅ Done"}

    def test_static_fields(self):
        formatter = JSONFormatter(static_fields={"service": "boardsync", "host": "laptop"})

        entry = json.loads(formatter.format(_record()))

        assert entry["service"] == "boardsync"
        assert entry["host"] == "laptop"

    def test_exception(self):
        try:
            raise ValueError("bad value")
        except ValueError:
            record = _record(level=logging.ERROR, exc_info=sys.exc_info())

        entry = json.loads(JSONFormatter().format(record))

        assert entry["exception"]["type"] == "ValueError"
        assert entry["exception"]["message"] == "bad value"
        assert "Traceback" in entry["exception"]["traceback"]

    def test_optional_fields(self):
        formatter = JSONFormatter(
            include_timestamp=False,
            include_level=False,
            include_logger=False,
            include_location=True,
        )

        entry = json.loads(formatter.format(_record()))

        assert set(entry) == {"message", "location"}
        assert entry["location"]["line"] == 10

    def test_single_line(self):
        output = JSONFormatter().format(_record(message="a\nb"))
        assert "\n" not in output


# =============================================================================
# TextFormatter
# =============================================================================


class TestTextFormatter:
    """Tests for TextFormatter."""

    def test_plain(self):
        output = TextFormatter(use_colors=False).format(_record())

        assert "INFO" in output
        assert "OutboundSync: Moved card" in output
        assert "\033[" not in output

    def test_colors_by_level(self):
        formatter = TextFormatter(use_colors=True)

        assert formatter.format(_record(level=logging.WARNING)).startswith("\033[33m")
        assert formatter.format(_record(level=logging.ERROR)).endswith("\033[0m")

    def test_context(self):
        formatter = TextFormatter(use_colors=False, include_context=True)

        output = formatter.format(_record(card_id="c1"))

        assert output.endswith("[card_id='c1']")


# =============================================================================
# setup_logging
# =============================================================================


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_replaces_handlers(self, restore_root_logger):
        root = restore_root_logger
        root.addHandler(logging.NullHandler())

        setup_logging(level=logging.DEBUG)

        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, TextFormatter)

    def test_json_format(self, restore_root_logger):
        setup_logging(log_format="json", static_fields={"run": "r1"})

        formatter = restore_root_logger.handlers[0].formatter
        assert isinstance(formatter, JSONFormatter)
        assert formatter.static_fields == {"run": "r1"}

    def test_log_file(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "sync.log"

        setup_logging(log_file=str(log_file))
        logging.getLogger("InboundSync").info("Created card")
        for handler in restore_root_logger.handlers:
            handler.flush()

        assert len(restore_root_logger.handlers) == 2
        content = log_file.read_text(encoding="utf-8")
        assert "InboundSync: Created card" in content
        assert "\033[" not in content

    def test_quiets_http_loggers(self, restore_root_logger):
        setup_logging(level=logging.DEBUG)

        assert logging.getLogger("urllib3").level == logging.WARNING
        assert logging.getLogger("requests").level == logging.WARNING
