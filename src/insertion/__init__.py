"""
insertion: naming-convention insert dispatcher for SQLAlchemy models.

    from insertion import Insert, handlers, insert, build

    @handlers.register
    class UserInsert(Insert):
        def __init__(self, name, email, age=25):
            super().__init__(name=name.upper(), email=email, age=age)

    user = insert(db, "user", name="john", email="john@example.com")    # persisted
    draft = build(db, "user", name="jane", email="jane@example.com")    # nothing written
"""

from .dispatch import Inserter, insert, build
from .handlers import Insert, BareInsert, HandlerRegistry, handlers, autodiscover
from .exceptions import (
    InsertionError,
    InsertionArgumentError,
    NestingDepthError,
    HandlerRegistrationError,
    ModelNotFoundError,
)
from .transactions import preview_scope, TransactionScope
from .utils.logging import get_project_version

__version__ = get_project_version()

__all__ = [
    "__version__",
    "Inserter",
    "insert",
    "build",
    "Insert",
    "BareInsert",
    "HandlerRegistry",
    "handlers",
    "autodiscover",
    "InsertionError",
    "InsertionArgumentError",
    "NestingDepthError",
    "HandlerRegistrationError",
    "ModelNotFoundError",
    "preview_scope",
    "TransactionScope",
]
