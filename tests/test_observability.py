"""Tests for logging, correlation IDs and redaction."""

import json
import logging
from datetime import date
from decimal import Decimal

from hotelbook.domain.statuses import BookingStatus
from hotelbook.observability.correlation import (
    correlation_scope,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from hotelbook.observability.logging import JsonFormatter, configure_logging, get_logger
from hotelbook.observability.redaction import (
    redact_string,
    redact_value,
    safe_log_context,
)


class TestRedaction:
    def test_redact_phone_number(self):
        result = redact_string("Call me at +1 415 555-0123")
        assert "555" not in result
        assert "[REDACTED]" in result

    def test_redact_email(self):
        result = redact_string("Guest: jane@example.com")
        assert "jane@example.com" not in result

    def test_dict_only_keys(self):
        result = redact_value({"card": "4242", "name": "Jane"})
        assert "4242" not in result
        assert "card" in result

    def test_domain_values(self):
        assert redact_value(Decimal("100.00")) == "100.00"
        assert redact_value(BookingStatus.CANCELLED) == "cancelled"
        assert redact_value(date(2030, 1, 10)) == "2030-01-10"
        assert redact_value(None) == "null"

    def test_safe_log_context(self):
        ctx = safe_log_context(reason="call me at +14155550123", units=2)
        assert "[REDACTED]" in ctx["reason"]
        assert ctx["units"] == "2"


class TestCorrelation:
    def test_set_and_reset(self):
        token = set_correlation_id("cid-1")
        assert get_correlation_id() == "cid-1"
        reset_correlation_id(token)
        assert get_correlation_id() == ""

    def test_scope_generates_id(self):
        with correlation_scope() as cid:
            assert cid
            assert get_correlation_id() == cid
        assert get_correlation_id() == ""

    def test_scope_keeps_given_id(self):
        with correlation_scope("task-7") as cid:
            assert cid == "task-7"


class TestJsonFormatter:
    def _record(self, **extra):
        record = logging.LogRecord(
            name="hotelbook.test",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="reservation created",
            args=(),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_includes_extra_fields_and_correlation(self):
        with correlation_scope("cid-9"):
            line = JsonFormatter().format(
                self._record(extra_fields={"reservation_id": "r-1", "units": 2})
            )
        payload = json.loads(line)
        assert payload["message"] == "reservation created"
        assert payload["correlationId"] == "cid-9"
        assert payload["reservation_id"] == "r-1"
        assert payload["level"] == "INFO"

    def test_single_handler_on_tree_root(self):
        get_logger("hotelbook.test.once")
        get_logger("hotelbook.domain.bookings")
        root = configure_logging()
        json_handlers = [h for h in root.handlers if isinstance(h.formatter, JsonFormatter)]
        assert len(json_handlers) == 1
        assert root.propagate is False

    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert configure_logging().level == logging.DEBUG
        monkeypatch.setenv("LOG_LEVEL", "INFO")
        configure_logging()
