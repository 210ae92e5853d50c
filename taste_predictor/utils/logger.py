"""Logging infrastructure for Taste Predictor.

Provides centralized logging with configurable format (text/JSON) and level.
Configured via environment variables:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_TYPE: text, json (default: text)

Every record logged through the service logger carries the id of the HTTP
request being handled (bound by the API middleware with bind_request_id()),
and account operations add `extra={"account_id": ...}`. Both formatters
render these two fields when present.
"""

import json
import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator, Optional


CONTEXT_FIELDS = ("request_id", "account_id")

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


@contextmanager
def bind_request_id(request_id: str) -> Iterator[str]:
    """Attach `request_id` to every record logged in the current task until exit."""
    token = _request_id.set(request_id)
    try:
        yield request_id
    finally:
        _request_id.reset(token)


class RequestContextFilter(logging.Filter):
    """Fills `record.request_id` from the bound request, unless passed via `extra=`."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            request_id = _request_id.get()
            if request_id is not None:
                record.request_id = request_id
        return True


def record_context(record: logging.LogRecord) -> dict[str, str]:
    """Context fields set on a record, in CONTEXT_FIELDS order."""
    return {
        field: str(getattr(record, field))
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_context(record),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class RichTextFormatter(logging.Formatter):
    """Formatter that outputs colored text with emoji icons.

    Request context is shown between the logger name and the message:
    `[3f2a9c01b7de account=8d0e...] Prediction ready`.
    """

    COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "RESET": "\033[0m",
    }

    ICONS = {
        "DEBUG": "🔍",
        "INFO": "ℹ️",
        "WARNING": "⚠️",
        "ERROR": "❌",
    }

    @staticmethod
    def context_prefix(record: logging.LogRecord) -> str:
        context = record_context(record)
        if not context:
            return ""
        parts = []
        if "request_id" in context:
            parts.append(context["request_id"])
        if "account_id" in context:
            parts.append(f"account={context['account_id']}")
        return f"[{' '.join(parts)}] "

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        color = self.COLORS.get(level, self.COLORS["RESET"])
        icon = self.ICONS.get(level, "")
        reset = self.COLORS["RESET"]

        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        message = (
            f"{color}{icon} {timestamp} {level:<8} {record.name:<20} "
            f"{self.context_prefix(record)}{record.getMessage()}{reset}"
        )

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


def get_logger(name: str) -> logging.Logger:
    """Create and configure logger instance.

    Args:
        name: Logger name, typically module name.

    Returns:
        Configured logger instance with a stdout handler and the request context filter.
    """
    logger_instance = logging.getLogger(name)

    if logger_instance.handlers:
        return logger_instance

    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_type = os.getenv("LOG_TYPE", "text").lower()

    log_level = getattr(logging, log_level_str, logging.INFO)
    logger_instance.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter() if log_type == "json" else RichTextFormatter())

    logger_instance.addHandler(handler)
    # Logger-level: records propagated to other handlers carry the context too
    logger_instance.addFilter(RequestContextFilter())

    return logger_instance


logger = get_logger("taste_predictor")

# Suppress verbose informational logs from external libraries
logging.getLogger("google.genai").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
