"""
Unit tests for structured JSON logging.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-009)

TODO:
- None
"""

import json
import logging
import sys

from plugmon.logging_config import JSONFormatter, setup_logging


def _record(msg: str, *args, level: int = logging.INFO, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="plugmon.test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )


class TestJSONFormatter:
    """JSONFormatter outputs valid JSON with required fields."""

    def test_format_contains_required_fields(self) -> None:
        parsed = json.loads(JSONFormatter().format(_record("hello", level=logging.WARNING)))

        assert "timestamp" in parsed
        assert parsed["level"] == "WARNING"
        assert parsed["logger"] == "plugmon.test"
        assert parsed["message"] == "hello"
        assert "exc_info" not in parsed

    def test_format_with_args(self) -> None:
        parsed = json.loads(JSONFormatter().format(_record("count=%d", 42)))

        assert parsed["message"] == "count=42"

    def test_format_includes_exception(self) -> None:
        try:
            raise RuntimeError("kaput")
        except RuntimeError:
            record = _record("failed", level=logging.ERROR, exc_info=sys.exc_info())

        parsed = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: kaput" in parsed["exc_info"]


class TestSetupLogging:
    """setup_logging() configures root logger with JSONFormatter."""

    def test_root_logger_has_single_json_handler(self) -> None:
        setup_logging()
        setup_logging()

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_accepts_level_name(self) -> None:
        setup_logging("DEBUG")

        assert logging.getLogger().level == logging.DEBUG
        setup_logging(logging.INFO)
