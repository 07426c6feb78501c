"""
Explicit transactional scope used by preview ("build") inserts.

`preview_scope(session)` opens a SAVEPOINT and yields a `TransactionScope`. Inside the
block the caller decides with `commit()` or `abort()`; aborting is an ordinary call,
not an exception. Leaving the block undecided aborts, and an exception raised inside
the block aborts before it propagates.

    with preview_scope(db) as scope:
        row = db.execute(stmt).mappings().one()
        scope.abort()
"""

from __future__ import annotations

import contextlib
import logging
from typing import Iterator

from sqlalchemy.orm import Session, SessionTransaction

logger = logging.getLogger(__name__)


class TransactionScope:
    """A SAVEPOINT that is either committed or aborted exactly once."""

    def __init__(self, session: Session):
        self.session = session
        self._transaction: SessionTransaction = session.begin_nested()
        self._decided = False

    @property
    def is_active(self) -> bool:
        return not self._decided and self._transaction.is_active

    def commit(self) -> None:
        """Release the SAVEPOINT; writes become part of the enclosing transaction."""
        if self._decided:
            return
        self._decided = True
        self._transaction.commit()

    def abort(self) -> None:
        """Roll back to the SAVEPOINT, discarding every write made inside the scope."""
        if self._decided:
            return
        self._decided = True
        self._transaction.rollback()


@contextlib.contextmanager
def preview_scope(session: Session) -> Iterator[TransactionScope]:
    scope = TransactionScope(session)
    try:
        yield scope
    except Exception:
        scope.abort()
        raise
    finally:
        if not scope._decided:
            logger.debug("transactions.preview_scope.implicit_abort")
            scope.abort()
