# src/insertion/core/logging/builder.py
"""
Logging builder: create and apply a dictConfig logging configuration from Settings.

Configuration knobs (on the Settings object):
 - LOG_LEVEL, LOG_FORMAT ("json" | "text"), ENV
 - LOG_TO_STDOUT: console only; otherwise rotating files under LOG_DIR
 - LOG_DIR, LOG_MAX_BYTES, LOG_BACKUP_COUNT
 - ENABLE_SQL_LOGGING: route sqlalchemy.engine at DEBUG (statements may contain values)

Any object exposing these attributes works, which keeps tests free of env setup.
"""

from __future__ import annotations

from pathlib import Path
import logging
import logging.config
from insertion.utils.logging import get_project_name

from .formatters import JsonFormatter, ColorFormatter
from .filters import OperationIdFilter, RedactFilter
from .handlers import (
    get_console_handler,
    get_file_handler,
    get_error_file_handler,
    get_error_console_handler,
)

# Settings type (avoid calling get_settings() here to prevent import-time side effects)
from insertion.config.settings import Settings  # type: ignore


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping using the provided settings.

    The returned mapping includes:
      - formatters: "standard" (color or plain text) and "json"
      - filters: "operation_id", "redact"
      - handlers: console, (file/error_file) OR error_console depending on LOG_TO_STDOUT
      - loggers: root, insertion, sqlalchemy.engine
    """
    formatters = {
        "standard": {
            # use ColorFormatter only in text mode
            "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(operation_id)s | %(message)s",
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": get_project_name(),
        },
    }

    filters = {
        "operation_id": {"()": OperationIdFilter},
        "redact": {"()": RedactFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}

    if (not settings.LOG_TO_STDOUT) and (settings.LOG_DIR):
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers.keys()),
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            "insertion": {
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            # Be cautious with SQL logging (may contain sensitive data)
            "sqlalchemy.engine": {
                "level": "DEBUG" if settings.ENABLE_SQL_LOGGING else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }

    return config


def setup_logging(settings: Settings) -> None:
    """
    Initialize logging using settings.

    Steps:
      1. Ensure LOG_DIR exists when writing files.
      2. Apply dictConfig(make_dict_config(settings)).
      3. Register an OperationIdFilter on the root logger as a safety net for
         handlers added later (e.g. pytest's capture handler).
    """
    if (not settings.LOG_TO_STDOUT) and (settings.LOG_DIR):
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))

    logging.getLogger().addFilter(OperationIdFilter())
