"""
Centralized logging configuration with structured logging support.

Every record handled by the console handler is stamped with the request id
and the authenticated caller of the request it was emitted in, so lifecycle
log lines (session started, result created, analysis failed) can be joined
back to the request and person that caused them.
"""
import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from linxiq.core.config import settings

# Request ID for log correlation, set by RequestLoggingMiddleware
request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# (person_id, role) of the authenticated caller, set by get_current_caller
caller_context: ContextVar[Optional[Tuple[int, str]]] = ContextVar(
    "caller", default=None
)

# Placeholder rendered in text logs outside a request
NO_CONTEXT = "-"

# Structured fields copied from LogRecord extras into the JSON payload
_EXTRA_FIELDS = (
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_host",
    "caller_id",
    "caller_role",
    "person_id",
    "test_id",
    "session_id",
    "result_id",
    "assignment_id",
    "error_id",
)


class RequestContextFilter(logging.Filter):
    """
    Attach request_id, caller_id and caller_role to every record.

    Values passed explicitly through ``extra`` win over the context.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_context.get() or NO_CONTEXT
        caller = caller_context.get()
        if caller is not None:
            if not hasattr(record, "caller_id"):
                record.caller_id = caller[0]
            if not hasattr(record, "caller_role"):
                record.caller_role = caller[1]
        return True


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for production logging.

    Produces structured log entries with consistent fields for log aggregation.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_entry: Dict[str, Any] = {
            "timestamp": timestamp.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None) or request_id_context.get()
        if request_id and request_id != NO_CONTEXT:
            log_entry["request_id"] = request_id

        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        # Add source location for error-level logs
        if record.levelno >= logging.ERROR:
            log_entry["source"] = f"{record.pathname}:{record.lineno}"

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging() -> None:
    """
    Configure application-wide logging.

    JSON output in production (one object per line for log aggregators),
    human-readable output everywhere else.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    is_production = settings.ENV == "production"

    logging_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": (
                    "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
                ),
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {
                "()": JSONFormatter,
            },
        },
        "filters": {
            "request_context": {
                "()": RequestContextFilter,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "filters": ["request_context"],
                "formatter": "json" if is_production else "default",
                "stream": sys.stdout,
            },
        },
        "root": {
            "level": log_level,
            "handlers": ["console"],
        },
        "loggers": {
            "linxiq": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False,
            },
            "uvicorn.access": {
                "level": logging.WARNING if settings.DEBUG else logging.INFO,
                "handlers": ["console"],
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": logging.WARNING,
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }

    logging.config.dictConfig(logging_config)
