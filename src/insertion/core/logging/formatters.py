# src/insertion/core/logging/formatters.py

"""
Custom logging formatters.

  - JsonFormatter: structured JSON lines for log collectors. Includes service, env,
    version and operation_id plus any `extra` fields; never raises on
    non-serializable values.

  - ColorFormatter: compact ANSI-colored lines for local development consoles.

The builder (dictConfig) selects one of them from settings.LOG_FORMAT.
"""

import json
import logging
from typing import Any
from logging import LogRecord
from insertion.utils.logging import get_project_version

PROJECT_VERSION = get_project_version()

# LogRecord attributes that are not worth repeating as extras
_RESERVED = {
    "args", "msg", "levelname", "levelno", "name", "exc_info", "exc_text",
    "stack_info", "created", "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "taskName", "filename", "module", "funcName",
}


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter.

    Construction:
      - env: environment name (e.g., "development" | "production"); optional.
      - service: logical service name included in every line.
      - datefmt: optional date format passed to logging.Formatter (used by formatTime).
    """

    def __init__(self, *, env: str | None = None, service: str = "insertion", datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "operation_id": getattr(record, "operation_id", "-"),
            "service": self.service,
            "env": self.env,
            "version": PROJECT_VERSION,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)

        # extras: anything attached via `extra={...}`
        for k, v in record.__dict__.items():
            if k in log_record or k.startswith("_") or k in _RESERVED:
                continue
            try:
                json.dumps(v)
                log_record[k] = v
            except (TypeError, ValueError):
                log_record[k] = str(v)

        return json.dumps(log_record, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """
    Development-friendly colored formatter:
    TIMESTAMP | LEVEL | LOGGER | OPERATION_ID | MESSAGE, level colorized.
    """

    COLOR_CODES = {
        "DEBUG": "\033[1;36;47m",    # bold cyan on white
        "INFO": "\033[32m",          # green
        "WARNING": "\033[33m",       # yellow
        "ERROR": "\033[31m",         # red
        "CRITICAL": "\033[1;41m",    # bold on red
        "RESET": "\033[0m",
    }

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: LogRecord) -> str:
        color = self.COLOR_CODES.get(record.levelname, "")
        # reset after the level name so the color does not spill into the message
        reset = self.COLOR_CODES["RESET"]

        timestamp = self.formatTime(record, self.datefmt)

        base = (
            f"{timestamp} | {color}{record.levelname:<10}{reset} | "
            f"{record.name:<30} | "
            f"{getattr(record, 'operation_id', '-'):<12} | "
            f"{record.getMessage()}"
        )

        if record.exc_info:
            base = base + "\n" + self.formatException(record.exc_info)

        return base
