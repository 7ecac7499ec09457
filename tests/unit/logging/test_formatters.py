"""Tests for log formatters."""

import json
import logging
import sys

from src.logging.context import bind_context, set_correlation_id, set_extra_context
from src.logging.formatters import HumanFormatter, JSONFormatter, get_record_fields


def _make_record(message="test message", level=logging.INFO, **extra):
    """Create a test log record."""
    record = logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="test.py",
        lineno=42,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestGetRecordFields:
    def test_plain_record_has_no_fields(self):
        assert get_record_fields(_make_record()) == {}

    def test_collects_extra_attributes(self):
        record = _make_record(mission_id="m-1", conflicting_missions=["m-2"])
        assert get_record_fields(record) == {"mission_id": "m-1", "conflicting_missions": ["m-2"]}

    def test_extra_overrides_bound_context(self):
        with bind_context(drone_id="d-bound"):
            fields = get_record_fields(_make_record(drone_id="d-explicit"))
        assert fields["drone_id"] == "d-explicit"

    def test_correlation_id_first(self):
        set_correlation_id("corr-1")
        set_extra_context(drone_id="d-001")
        assert list(get_record_fields(_make_record())) == ["correlation_id", "drone_id"]


class TestJSONFormatter:
    def test_core_fields(self):
        parsed = json.loads(JSONFormatter().format(_make_record("hello world", logging.ERROR)))
        assert parsed["message"] == "hello world"
        assert parsed["level"] == "ERROR"
        assert parsed["logger"] == "test.logger"
        assert parsed["service"] == "drone-mission-control"
        assert "timestamp" in parsed

    def test_timestamp_is_utc(self):
        parsed = json.loads(JSONFormatter().format(_make_record()))
        assert parsed["timestamp"].endswith("+00:00")

    def test_excludes_timestamp_when_disabled(self):
        parsed = json.loads(JSONFormatter(include_timestamp=False).format(_make_record()))
        assert "timestamp" not in parsed

    def test_includes_service_name(self):
        parsed = json.loads(JSONFormatter(service_name="my-service").format(_make_record()))
        assert parsed["service"] == "my-service"

    def test_location(self):
        assert json.loads(JSONFormatter().format(_make_record()))["line"] == 42
        parsed = json.loads(JSONFormatter(include_location=False).format(_make_record()))
        assert "line" not in parsed

    def test_includes_context(self):
        set_correlation_id("corr-123")
        set_extra_context(mission_id="m-001")
        parsed = json.loads(JSONFormatter().format(_make_record()))
        assert parsed["correlation_id"] == "corr-123"
        assert parsed["mission_id"] == "m-001"

    def test_includes_extra_fields(self):
        parsed = json.loads(JSONFormatter().format(_make_record(deleted=12)))
        assert parsed["deleted"] == 12

    def test_unserializable_extra_falls_back_to_str(self):
        parsed = json.loads(JSONFormatter().format(_make_record(payload=object())))
        assert parsed["payload"].startswith("<object")

    def test_includes_exception_info(self):
        record = _make_record()
        try:
            raise ValueError("test error")  # noqa: TRY301
        except ValueError:
            record.exc_info = sys.exc_info()
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["exception"]["type"] == "ValueError"
        assert parsed["exception"]["message"] == "test error"


class TestHumanFormatter:
    def test_pipe_separated(self):
        output = HumanFormatter(use_colors=False).format(_make_record("hello world", logging.WARNING))
        assert " | " in output
        assert "hello world" in output
        assert "WARNING" in output

    def test_colors_enabled(self):
        assert "\033[" in HumanFormatter(use_colors=True).format(_make_record())

    def test_truncates_long_logger_name(self):
        record = _make_record()
        record.name = "very.long.module.name.that.exceeds.the.maximum.length"
        assert "..." in HumanFormatter(use_colors=False).format(record)

    def test_appends_fields(self):
        set_correlation_id("corr-abc")
        output = HumanFormatter(use_colors=False).format(_make_record(drone_id="d-001"))
        assert "correlation_id=corr-abc" in output
        assert "drone_id=d-001" in output
