from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Any

from asgi_correlation_id.context import correlation_id
from pythonjsonlogger import jsonlogger

# Server loggers that get their own handler instead of bubbling to root.
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(correlation_id)s"


class CorrelationIdFilter(logging.Filter):
    """Stamp the X-Request-ID of the current request on each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id.get() or "-"
        return True


def build_logging_config(level: str = "INFO") -> dict[str, Any]:
    """dictConfig schema: one JSON stream handler shared by app and server."""
    level = level.upper()
    server = {
        name: {"handlers": ["default"], "level": level, "propagate": False}
        for name in SERVER_LOGGERS
    }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"with_correlation": {"()": CorrelationIdFilter}},
        "formatters": {
            "json": {
                "()": jsonlogger.JsonFormatter,
                "fmt": LOG_FORMAT,
                "rename_fields": {"levelname": "level", "asctime": "timestamp"},
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "filters": ["with_correlation"],
            }
        },
        "root": {"handlers": ["default"], "level": level},
        "loggers": {"chatdock": {"level": level}, **server},
    }


def configure_logging(level: str = "INFO") -> None:
    dictConfig(build_logging_config(level))
