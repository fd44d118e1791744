"""Logging configuration.

Two output formats:
- console: human-readable lines on stderr
- json: one JSON object per line on stdout, for log aggregation
"""

import json
import logging
import logging.config
from datetime import datetime, UTC

# LogRecord attributes that are not user-supplied extras
_STANDARD_ATTRS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName", "taskName",
    "processName", "process", "exc_info", "exc_text", "stack_info",
    "message",
}


class JsonFormatter(logging.Formatter):
    """JSON log formatter with timestamp, level, logger, message and extras."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extras = {}
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                try:
                    json.dumps(value)
                    extras[key] = value
                except (TypeError, ValueError):
                    extras[key] = str(value)
        if extras:
            log_entry["extra"] = extras

        return json.dumps(log_entry, default=str)


def get_logging_config(level: str = "INFO", fmt: str = "console") -> dict:
    """Build a dictConfig mapping for the given level and format.

    Args:
        level: Log level name for the hera loggers and root
        fmt: "console" or "json"

    Returns:
        logging.config.dictConfig compatible dict
    """
    if fmt == "json":
        formatters = {"json": {"()": "hera.logging_config.JsonFormatter"}}
        handler = {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        }
    else:
        formatters = {
            "verbose": {
                "format": "[{asctime}] {levelname} {name} {message}",
                "style": "{",
            },
        }
        handler = {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": {"console": handler},
        "loggers": {
            "": {"handlers": ["console"], "level": level},
            "hera": {"handlers": ["console"], "level": level, "propagate": False},
            "sqlalchemy.engine": {"handlers": ["console"], "level": "WARNING", "propagate": False},
            "uvicorn": {"handlers": ["console"], "level": level, "propagate": False},
        },
    }


def configure_logging(level: str = "INFO", fmt: str = "console") -> None:
    """Install the hera logging configuration."""
    logging.config.dictConfig(get_logging_config(level.upper(), fmt))
