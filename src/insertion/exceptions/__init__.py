# insertion/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   └── base.py        # InsertionError and friends

from .base import (
    InsertionError,
    InsertionArgumentError,
    NestingDepthError,
    HandlerRegistrationError,
    ModelNotFoundError,
)

__all__ = [
    "InsertionError",
    "InsertionArgumentError",
    "NestingDepthError",
    "HandlerRegistrationError",
    "ModelNotFoundError",
]
