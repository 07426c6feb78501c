# src/insertion/core/logging/
# ├─ __init__.py            # public API: setup_logging, operation id helpers
# ├─ builder.py             # make_dict_config(settings) + setup_logging(settings)
# ├─ formatters.py          # JsonFormatter, ColorFormatter
# ├─ filters.py             # OperationIdFilter, RedactFilter (+ contextvar helpers)
# └─ handlers.py            # handler config factories (console/file)


from .builder import setup_logging, make_dict_config
from .filters import set_operation_id, reset_operation_id, get_operation_id, OperationIdFilter, RedactFilter

__all__ = [
    "setup_logging",
    "make_dict_config",
    "set_operation_id",
    "reset_operation_id",
    "get_operation_id",
    "OperationIdFilter",
    "RedactFilter",
]
