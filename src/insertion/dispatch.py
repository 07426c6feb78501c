"""
Insert dispatcher.

Resolves a model name to its handler and runs one of the two execution modes:

    insert(db, "users", name="John", email="john@example.com")   # persisted record
    build(db, "user", name="John", email="john@example.com")     # detached preview

Resolution (re-done on every call, nothing is cached):
  1. classify the model name ("users" -> "User")
  2. registered handler for "User" (class "UserInsert" by convention)?
       yes -> construct it with the attributes; a TypeError from construction becomes
              InsertionArgumentError labelled with the handler class
       no  -> look up the mapped class "User" and wrap it in BareInsert
  3. run do_insert() / build_insert() on the handler
"""
from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.orm import Session

from insertion.config import get_settings
from insertion.core.logging.filters import get_operation_id, set_operation_id, reset_operation_id
from insertion.database.base import Base
from insertion.exceptions import (
    InsertionError,
    InsertionArgumentError,
    ModelNotFoundError,
    NestingDepthError,
)
from insertion.handlers.base_handler import Insert, activate
from insertion.handlers.bare_handler import BareInsert
from insertion.handlers.registry import HandlerRegistry, handlers
from insertion.utils.naming import classify, handler_name

logger = logging.getLogger(__name__)


class Inserter:
    """
    Dispatches insert/build calls for one session.

    Args:
        session: the SQLAlchemy session every handler writes through
        base: declarative base whose registry is searched for model classes
        registry: handler registry (defaults to the process-wide `handlers`)
        autocommit: commit after each do_insert(); defaults to INSERTION_AUTOCOMMIT.
                    Only applies when the call itself opened the session's transaction:
                    inside a transaction the caller already began, inserts join it and
                    the caller commits or rolls back. With autocommit off, inserts are
                    always left to the caller.
        max_depth: limit for nested insert/build calls; defaults to INSERTION_MAX_DEPTH
        suffix: handler class name suffix; defaults to the registry's suffix
    """

    def __init__(
        self,
        session: Session,
        *,
        base: type[Any] | None = None,
        registry: HandlerRegistry | None = None,
        autocommit: bool | None = None,
        max_depth: int | None = None,
        suffix: str | None = None,
    ):
        settings = get_settings()
        self.session = session
        self.base = base if base is not None else Base
        self.registry = registry if registry is not None else handlers
        self.autocommit = settings.INSERTION_AUTOCOMMIT if autocommit is None else autocommit
        self.max_depth = settings.INSERTION_MAX_DEPTH if max_depth is None else max_depth
        self.suffix = suffix or self.registry.suffix
        self._depth = 0
        # set for the duration of an outermost dispatch: did it find the session idle?
        self._owns_transaction: bool | None = None

    # =================================================================================================================
    # Public operations
    # =================================================================================================================

    def insert(self, model_name: str, /, **attributes: Any) -> Any:
        """Insert and return the persisted record."""
        return self._dispatch("insert", model_name, attributes)

    def build(self, model_name: str, /, **attributes: Any) -> Any:
        """Run the insert, discard it, and return a detached record with store-generated values."""
        return self._dispatch("build", model_name, attributes)

    def resolve(self, model_name: str, /, **attributes: Any) -> Insert:
        """
        Return the constructed handler for `model_name`, bound to this inserter.

        Raises:
            InsertionArgumentError: the registered handler rejected the attributes.
            ModelNotFoundError: no handler and no mapped class for the name.
        """
        class_name = classify(model_name)
        handler_cls = self.registry.get(class_name)

        if handler_cls is None:
            logger.debug(
                "insertion.dispatch.fallback",
                extra={"model": class_name, "candidate": handler_name(class_name, self.suffix)},
            )
            return BareInsert(self.resolve_model(class_name), **attributes).bind(self)

        # handler constructors may already compose nested inserts
        with activate(self):
            try:
                handler = handler_cls(**attributes)
            except InsertionError:
                # nested failure, already labelled by the handler that raised it
                raise
            except TypeError as exc:
                # INFO: caller passed attributes the handler does not accept
                logger.info(
                    "insertion.dispatch.argument_error",
                    extra={
                        "model": class_name,
                        "handler": handler_cls.__name__,
                        "provided_keys": sorted(attributes),
                    },
                )
                raise InsertionArgumentError(str(exc), class_name=handler_cls) from exc

        # the registry key is the model, whatever the handler class is called
        return handler.bind(self, model_name=class_name)

    def owns_transaction(self) -> bool:
        """
        True when writes made now belong to a transaction this inserter opened.

        Decided once at the start of the outermost dispatch; outside a dispatch (a handler
        bound and run directly) the session must not be inside a transaction yet.
        """
        if self._owns_transaction is not None:
            return self._owns_transaction
        return not self.session.in_transaction()

    def resolve_model(self, name: str) -> type:
        """
        Find the mapped class called `name` in the declarative base's registry.

        Raises:
            ModelNotFoundError: no mapped class has that name. Not caught anywhere.
        """
        for mapper in self.base.registry.mappers:
            if mapper.class_.__name__ == name:
                return mapper.class_
        raise ModelNotFoundError(name)

    # =================================================================================================================
    # Internals
    # =================================================================================================================

    def _dispatch(self, mode: str, model_name: str, attributes: dict[str, Any]) -> Any:
        if self._depth >= self.max_depth:
            raise NestingDepthError(
                f"nested insert depth limit ({self.max_depth}) reached while dispatching '{model_name}'"
            )

        # nested calls keep the operation id of the call that started them
        token = None
        if get_operation_id() is None:
            token = set_operation_id(uuid.uuid4().hex[:12])

        outermost = self._depth == 0
        if outermost:
            self._owns_transaction = not self.session.in_transaction()

        self._depth += 1
        try:
            logger.debug(
                "insertion.dispatch.start",
                extra={
                    "mode": mode,
                    "model": str(model_name),
                    "depth": self._depth,
                    "provided_keys": sorted(attributes),
                },
            )

            handler = self.resolve(model_name, **attributes)

            with activate(self):
                if mode == "build":
                    return handler.build_insert()
                return handler.do_insert()
        finally:
            self._depth -= 1
            if outermost:
                self._owns_transaction = None
            if token is not None:
                reset_operation_id(token)


# =====================================================================================================================
# Module-level shortcuts
# =====================================================================================================================

def insert(session: Session, model_name: str, /, **attributes: Any) -> Any:
    """Insert `attributes` for `model_name` through a default Inserter; returns the persisted record."""
    return Inserter(session).insert(model_name, **attributes)


def build(session: Session, model_name: str, /, **attributes: Any) -> Any:
    """Preview-insert `attributes` for `model_name`; returns a detached record, nothing is written."""
    return Inserter(session).build(model_name, **attributes)


__all__ = ["Inserter", "insert", "build"]
