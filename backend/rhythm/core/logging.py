"""Centralized logging configuration."""
from __future__ import annotations

import logging
from logging.config import dictConfig

from rhythm.core.context import get_request_id


class RequestIdFilter(logging.Filter):
    """Add request_id attribute to log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - minimal logic
        record.request_id = get_request_id() or "-"
        return True


def configure_logging(*, log_level: str = "INFO", planner_log_level: str | None = None) -> None:
    """Configure application logging once at startup.

    The planner engine logs stage-by-stage detail at DEBUG; ``planner_log_level``
    lets that logger run at a different level than the rest of the app.
    """
    if getattr(configure_logging, "_configured", False):
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(message)s",
                }
            },
            "filters": {
                "request_id": {
                    "()": "rhythm.core.logging.RequestIdFilter",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": "DEBUG",
                    "filters": ["request_id"],
                }
            },
            "loggers": {
                "rhythm.planner": {"level": planner_log_level or log_level},
            },
            "root": {
                "handlers": ["console"],
                "level": log_level,
            },
        }
    )

    logging.getLogger(__name__).debug("Logging configured at %s", log_level)
    setattr(configure_logging, "_configured", True)
