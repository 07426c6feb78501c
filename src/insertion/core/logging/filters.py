# src/insertion/core/logging/filters.py
"""
Logging filters

Operation ID filter and helpers for logging.

Every top-level `insert`/`build` call gets an operation id; nested inserts triggered
from handler hooks run in the same context and share it, so all log lines of one
composed insert can be grouped together.

- `set_operation_id()` / `reset_operation_id()` manage a `contextvars.ContextVar`.
- `OperationIdFilter` guarantees every LogRecord has an `operation_id` attribute, so
  formatters referencing `%(operation_id)s` never KeyError. The sentinel is "-".
- `RedactFilter` masks record attributes whose names look sensitive.
"""

import logging
from logging import LogRecord
import contextvars

# contextvar for the current operation id. Default is None ("no operation running").
_operation_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation_id", default=None
)


def set_operation_id(operation_id: str | None):
    """
    Set the operation id in the current context and return the token to allow reset.
    """
    return _operation_id_ctx.set(operation_id)


def reset_operation_id(token):
    """
    Reset the contextvar to the previously saved token returned by set_operation_id().
    """
    _operation_id_ctx.reset(token)


def get_operation_id() -> str | None:
    return _operation_id_ctx.get()


class OperationIdFilter(logging.Filter):
    """
    Logging filter that guarantees every LogRecord has an `operation_id` attribute.

    Precedence: an explicit `extra={"operation_id": ...}`, then the contextvar, then "-".
    Always returns True; it only annotates the record.
    """

    def filter(self, record: LogRecord) -> bool:
        record.operation_id = (
            getattr(record, "operation_id", None) or get_operation_id() or "-"
        )
        return True


# Redact sensitive information
class RedactFilter(logging.Filter):
    SENSITIVE = {"password","secret","token","access_token","refresh_token","ssn","authorization"}
    def filter(self, record: LogRecord) -> bool:
        # mask attributes on record that match SENSITIVE
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = "***REDACTED***"
        return True
