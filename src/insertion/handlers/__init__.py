"""
Handler layer initialization module.

Usage:
    from insertion.handlers import Insert, BareInsert, handlers
"""

from .base_handler import Insert
from .bare_handler import BareInsert
from .registry import HandlerRegistry, handlers, autodiscover

__all__ = [
    "Insert",
    "BareInsert",
    "HandlerRegistry",
    "handlers",
    "autodiscover",
]
