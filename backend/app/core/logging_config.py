"""
Centralized logging configuration with structured logging support.

Development gets a one-line human-readable format. Production emits one JSON
object per line, carrying the request id and quiz session id from context so
that a quiz attempt can be followed across API requests and sync calls.
"""
import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.core.config import settings

# Set by RequestLoggingMiddleware for every incoming request.
request_id_context: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Set by the quiz driver around session sync calls.
quiz_session_context: ContextVar[Optional[str]] = ContextVar(
    "quiz_session_id", default=None
)

# LogRecord extras copied into the JSON entry when present
STRUCTURED_FIELDS = (
    "method",
    "path",
    "status_code",
    "duration_ms",
    "client_host",
    "question_id",
    "question_index",
    "error_id",
)

# Third-party loggers kept at WARNING unless something goes wrong
_NOISY_LOGGERS = ("sqlalchemy.engine", "httpx")


class JSONFormatter(logging.Formatter):
    """Render a LogRecord as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_context.get()
        if request_id:
            entry["request_id"] = request_id

        # An explicit extra takes precedence over the ambient session
        session_id = getattr(record, "session_id", None) or quiz_session_context.get()
        if session_id:
            entry["session_id"] = session_id

        entry.update(
            {
                name: getattr(record, name)
                for name in STRUCTURED_FIELDS
                if hasattr(record, name)
            }
        )

        if record.levelno >= logging.ERROR:
            entry["source"] = f"{record.pathname}:{record.lineno}"
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def build_logging_config(
    log_level: int, json_output: bool, quiet_access_log: bool
) -> Dict[str, Any]:
    """
    Build the dictConfig mapping for the given level and output format.

    Args:
        log_level: Level for the root and ``app`` loggers
        json_output: Use JSONFormatter instead of the plain text format
        quiet_access_log: Raise uvicorn's access log to WARNING
    """
    handler = {
        "class": "logging.StreamHandler",
        "level": log_level,
        "formatter": "json" if json_output else "default",
        "stream": sys.stdout,
    }

    loggers: Dict[str, Any] = {
        "app": {"level": log_level, "handlers": ["console"], "propagate": False},
        "uvicorn.access": {
            "level": logging.WARNING if quiet_access_log else logging.INFO,
            "handlers": ["console"],
            "propagate": False,
        },
    }
    for name in _NOISY_LOGGERS:
        loggers[name] = {
            "level": logging.WARNING,
            "handlers": ["console"],
            "propagate": False,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "json": {"()": JSONFormatter},
        },
        "handlers": {"console": handler},
        "root": {"level": log_level, "handlers": ["console"]},
        "loggers": loggers,
    }


def setup_logging() -> None:
    """Apply the logging configuration derived from settings."""
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.config.dictConfig(
        build_logging_config(
            log_level,
            json_output=settings.ENV == "production",
            quiet_access_log=settings.DEBUG,
        )
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
