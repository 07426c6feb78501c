"""
Base handler class providing the two insert execution modes.

A handler describes how one model is inserted: its constructor receives the caller's
keyword attributes and turns them into the attribute set that is written, and the
two execution methods write that attribute set through the bound `Inserter`'s session:

    - do_insert():    INSERT ... RETURNING, record attached to the session (persisted);
                      committed only when the dispatch opened the session's transaction
    - build_insert(): same INSERT inside a SAVEPOINT that is always aborted; the record
                      carries every store-generated value but is not backed by a row

Custom handlers subclass `Insert`, are named `<Model>Insert` and are registered with a
`HandlerRegistry`:

    @handlers.register
    class UserInsert(Insert):
        def __init__(self, name, email, age=25):
            super().__init__(name=name.upper(), email=email, age=age)

        def after_insert(self, record):
            self._insert("post", title="Welcome", user_id=record.id)

Models without a registered handler go through `BareInsert`.
"""
from __future__ import annotations

import contextlib
import contextvars
import logging
import time
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar, Iterator, Mapping

from sqlalchemy import inspect as sa_inspect, insert as sa_insert
from sqlalchemy.engine import RowMapping
from sqlalchemy.orm import Mapper, make_transient_to_detached
from sqlalchemy.orm.attributes import set_committed_value

from insertion.exceptions import InsertionError
from insertion.transactions import preview_scope
from insertion.utils.naming import model_name_from_handler

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from insertion.dispatch import Inserter

# Setup logging
logger = logging.getLogger(__name__)

# The inserter currently dispatching. Lets a handler's own __init__ reach the nested
# _insert/_build helpers before the dispatcher has bound it.
_active_inserter: contextvars.ContextVar[Inserter | None] = contextvars.ContextVar(
    "active_inserter", default=None
)


@contextlib.contextmanager
def activate(inserter: Inserter) -> Iterator[None]:
    token = _active_inserter.set(inserter)
    try:
        yield
    finally:
        _active_inserter.reset(token)


class Insert:
    """
    Generic handler base.

    Class attributes:
        model_name: explicit model class name. When unset, the model name is the
                    handler class name with the handler suffix stripped. A model
                    passed to bind() (the registry key, during dispatch) wins over both.
    """

    model_name: ClassVar[str | None] = None

    _inserter: Inserter | None = None
    _model: type | None = None
    _model_key: str | None = None
    _attributes: Mapping[str, Any] | None = None

    def __init__(self, **attributes: Any):
        # read-only view: the attribute set is fixed once the handler is built
        self._attributes = MappingProxyType(dict(attributes))

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(keys={sorted(self.attributes)!r})>"

    # =================================================================================================================
    # Binding
    # =================================================================================================================

    @classmethod
    def insert(cls, session: Session, model_name: str, /, **attributes: Any) -> Any:
        """Shortcut for `insertion.insert(session, model_name, **attributes)`."""
        from insertion.dispatch import insert

        return insert(session, model_name, **attributes)

    def bind(self, inserter: Inserter, model_name: str | None = None) -> Insert:
        self._inserter = inserter
        if model_name is not None and self._model is None:
            self._model_key = model_name
        return self

    @property
    def inserter(self) -> Inserter:
        inserter = self._inserter or _active_inserter.get()
        if inserter is None:
            raise InsertionError(
                "handler is not bound to an Inserter; use Inserter.resolve() or bind()",
                class_name=type(self),
            )
        return inserter

    @property
    def session(self) -> Session:
        return self.inserter.session

    @property
    def attributes(self) -> Mapping[str, Any]:
        if self._attributes is None:
            return MappingProxyType({})
        return self._attributes

    @property
    def model(self) -> type:
        """The mapped class this handler writes to, resolved once per instance."""
        if self._model is None:
            self._model = self._resolve_model()
        return self._model

    def _resolve_model(self) -> type:
        cls = type(self)
        name = self._model_key or cls.model_name or model_name_from_handler(cls.__name__, self.inserter.suffix)
        if name is None:
            raise InsertionError(
                f"cannot derive a model name from '{cls.__name__}'; "
                f"name it <Model>{self.inserter.suffix} or set model_name",
                class_name=cls,
            )
        return self.inserter.resolve_model(name)

    # =================================================================================================================
    # Hooks
    # =================================================================================================================

    def after_insert(self, record: Any) -> None:
        """Called once with the persisted record after do_insert(). Return value is ignored."""

    def after_build(self, record: Any) -> None:
        """Called once with the detached record after build_insert(). Return value is ignored."""

    # =================================================================================================================
    # Execution
    # =================================================================================================================

    def do_insert(self) -> Any:
        """
        Insert the attribute set and return the persisted record.

        Logging:
        - DEBUG: start event with handler, model and provided keys (not values).
        - INFO: success event with the new identity, duration_ms and whether it committed.
        Database errors are not caught; they propagate unchanged.
        """
        model = self.model
        logger.debug(
            "insert.do_insert.start",
            extra={
                "handler": type(self).__name__,
                "model": model.__name__,
                "provided_keys": sorted(self.attributes),
            },
        )
        start = time.perf_counter()

        # decided before the write: afterwards the session is always inside a transaction
        commit = self.inserter.autocommit and self.inserter.owns_transaction()

        row = self._insert_returning_row()
        record = self._instantiate(row)

        # identity key from the returned primary key; adding a detached instance makes
        # it persistent without emitting another INSERT
        make_transient_to_detached(record)
        self.session.add(record)

        if commit:
            self.session.commit()

        self.after_insert(record)

        logger.info(
            "insert.do_insert.success",
            extra={
                "handler": type(self).__name__,
                "model": model.__name__,
                "identity": _identity_repr(record),
                "committed": commit,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return record

    def build_insert(self) -> Any:
        """
        Run the insert inside an aborted SAVEPOINT and return a detached record.

        The record holds what the store would have produced (generated keys, column
        defaults, server-side values) but no row survives the call.
        """
        model = self.model
        logger.debug(
            "insert.build_insert.start",
            extra={
                "handler": type(self).__name__,
                "model": model.__name__,
                "provided_keys": sorted(self.attributes),
            },
        )
        start = time.perf_counter()

        with preview_scope(self.session) as scope:
            row = self._insert_returning_row()
            scope.abort()

        # the row was fully fetched before the abort, so the record outlives the savepoint
        record = self._instantiate(row)

        self.after_build(record)

        logger.info(
            "insert.build_insert.success",
            extra={
                "handler": type(self).__name__,
                "model": model.__name__,
                "identity": _identity_repr(record),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return record

    # =================================================================================================================
    # Nested composition
    # =================================================================================================================

    def _insert(self, model_name: str, /, **attributes: Any) -> Any:
        return self.inserter.insert(model_name, **attributes)

    def _build(self, model_name: str, /, **attributes: Any) -> Any:
        return self.inserter.build(model_name, **attributes)

    # =================================================================================================================
    # Store primitives
    # =================================================================================================================

    def _insert_returning_row(self) -> RowMapping:
        """Single-row INSERT returning every column of the model's table."""
        mapper: Mapper = sa_inspect(self.model)
        table = mapper.local_table

        stmt = sa_insert(table).returning(*table.c)
        values = self._column_values(mapper)
        if values:
            stmt = stmt.values(**values)

        return self.session.execute(stmt).mappings().one()

    def _column_values(self, mapper: Mapper) -> dict[str, Any]:
        # translate ORM attribute keys to column keys; unknown keys pass through and
        # are rejected by the statement compiler
        values = {}
        for key, value in self.attributes.items():
            if key in mapper.column_attrs:
                key = mapper.column_attrs[key].columns[0].key
            values[key] = value
        return values

    def _instantiate(self, row: RowMapping) -> Any:
        """Materialize a transient instance from a returned row without running __init__."""
        mapper: Mapper = sa_inspect(self.model)
        table = mapper.local_table

        record = mapper.class_manager.new_instance()
        for prop in mapper.column_attrs:
            column = prop.columns[0]
            if getattr(column, "table", None) is not table:
                continue
            # committed state: no pending history, nothing to flush
            set_committed_value(record, prop.key, row[column])
        return record


def _identity_repr(record: Any) -> str:
    # transient (built) records have no identity key, so read the primary key values directly
    identity = sa_inspect(type(record)).primary_key_from_instance(record)
    return str(identity[0]) if len(identity) == 1 else str(tuple(identity))
