"""Unit tests for logging infrastructure."""

import json
import logging
import sys

from taste_predictor.utils.logger import (
    JSONFormatter,
    RequestContextFilter,
    RichTextFormatter,
    bind_request_id,
    get_logger,
    logger,
)


def make_record(msg="Test message", level=logging.INFO, name="test_logger", exc_info=None):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


def fresh_logger(name):
    if name in logging.Logger.manager.loggerDict:
        logging.getLogger(name).handlers.clear()
    return name


class TestJSONFormatter:
    """Test JSONFormatter produces valid JSON output."""

    def test_json_formatter_outputs_valid_json(self):
        """Test that JSONFormatter produces valid JSON."""
        parsed = json.loads(JSONFormatter().format(make_record()))

        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test_logger"
        assert parsed["message"] == "Test message"
        assert "timestamp" in parsed

    def test_json_formatter_includes_exception_traceback(self):
        """Test that JSONFormatter includes exception traceback when present."""
        try:
            raise ValueError("Test error")
        except ValueError:
            record = make_record("Error occurred", logging.ERROR, exc_info=sys.exc_info())

        parsed = json.loads(JSONFormatter().format(record))

        assert "ValueError" in parsed["exception"]

    def test_json_formatter_with_request_context(self):
        """Test that JSONFormatter includes request_id and account_id if present."""
        record = make_record()
        record.request_id = "req-123"
        record.account_id = "acct-456"

        parsed = json.loads(JSONFormatter().format(record))

        assert parsed["request_id"] == "req-123"
        assert parsed["account_id"] == "acct-456"

    def test_json_formatter_omits_missing_context(self):
        parsed = json.loads(JSONFormatter().format(make_record()))

        assert "request_id" not in parsed
        assert "account_id" not in parsed


class TestRichTextFormatter:
    """Test RichTextFormatter produces colored text output."""

    def test_rich_text_formatter_includes_level_logger_and_message(self):
        output = RichTextFormatter().format(make_record("Custom message", name="my_logger"))

        assert "INFO" in output
        assert "my_logger" in output
        assert "Custom message" in output

    def test_rich_text_formatter_includes_icon_per_level(self):
        """Test that RichTextFormatter includes the icon for each level."""
        formatter = RichTextFormatter()
        for level in (logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR):
            output = formatter.format(make_record(level=level))
            assert RichTextFormatter.ICONS[logging.getLevelName(level)] in output

    def test_rich_text_formatter_prefixes_request_id(self):
        record = make_record()
        record.request_id = "abc123"

        output = RichTextFormatter().format(record)

        assert "[abc123] Test message" in output

    def test_rich_text_formatter_shows_account(self):
        record = make_record()
        record.request_id = "abc123"
        record.account_id = "acct-9"

        assert "[abc123 account=acct-9] Test message" in RichTextFormatter().format(record)

    def test_rich_text_formatter_account_without_request(self):
        record = make_record()
        record.account_id = "acct-9"

        assert "[account=acct-9] Test message" in RichTextFormatter().format(record)

    def test_rich_text_formatter_includes_exception_traceback(self):
        try:
            raise RuntimeError("Test error")
        except RuntimeError:
            record = make_record("Error occurred", logging.ERROR, exc_info=sys.exc_info())

        output = RichTextFormatter().format(record)

        assert "RuntimeError" in output
        assert "Test error" in output


class TestRequestContext:
    """Test the request id bound by the HTTP middleware reaches log records."""

    def test_filter_fills_bound_request_id(self):
        record = make_record()

        with bind_request_id("req-42"):
            RequestContextFilter().filter(record)

        assert record.request_id == "req-42"

    def test_filter_keeps_explicit_request_id(self):
        record = make_record()
        record.request_id = "explicit"

        with bind_request_id("req-42"):
            RequestContextFilter().filter(record)

        assert record.request_id == "explicit"

    def test_filter_leaves_record_alone_outside_request(self):
        record = make_record()

        assert RequestContextFilter().filter(record) is True
        assert not hasattr(record, "request_id")

    def test_binding_is_reset_on_exit(self):
        with bind_request_id("req-1"):
            pass
        record = make_record()

        RequestContextFilter().filter(record)

        assert not hasattr(record, "request_id")

    def test_module_logger_records_carry_request_id(self, caplog):
        caplog.set_level(logging.INFO, logger="taste_predictor")

        with bind_request_id("req-99"):
            logger.info("Inside request", extra={"account_id": "acct-1"})

        record = next(r for r in caplog.records if r.getMessage() == "Inside request")
        assert record.request_id == "req-99"
        assert record.account_id == "acct-1"


class TestGetLogger:
    """Test get_logger function."""

    def test_get_logger_reuses_configured_logger(self):
        logger1 = get_logger("test_module_reuse")
        logger2 = get_logger("test_module_reuse")

        assert logger1 is logger2
        assert len(logger2.handlers) == 1

    def test_get_logger_respects_log_level_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        test_logger = get_logger(fresh_logger("test_level_logger"))

        assert test_logger.level == logging.DEBUG

    def test_invalid_log_level_defaults_to_info(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "INVALID")

        test_logger = get_logger(fresh_logger("test_invalid_level"))

        assert test_logger.level == logging.INFO

    def test_get_logger_uses_json_formatter(self, monkeypatch):
        monkeypatch.setenv("LOG_TYPE", "json")

        test_logger = get_logger(fresh_logger("test_json_logger"))

        assert isinstance(test_logger.handlers[0].formatter, JSONFormatter)

    def test_log_type_defaults_to_text(self, monkeypatch):
        monkeypatch.delenv("LOG_TYPE", raising=False)

        test_logger = get_logger(fresh_logger("test_default_type"))

        assert isinstance(test_logger.handlers[0].formatter, RichTextFormatter)


class TestModuleLevelLogger:
    """Test module-level logger instance."""

    def test_logger_is_configured(self):
        assert isinstance(logger, logging.Logger)
        assert logger.name == "taste_predictor"
        assert len(logger.handlers) > 0

    def test_logger_can_log_with_request_context(self):
        # Should not raise any exceptions
        logger.info("Test message", extra={"request_id": "req-1"})
        logger.warning("Test warning")
        logger.error("Test error")
