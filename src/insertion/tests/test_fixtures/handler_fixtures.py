"""Fixtures for handler and dispatcher tests."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from insertion.database.base import Base
from insertion.dispatch import Inserter
from insertion.handlers.registry import HandlerRegistry

# NOTE: All database fixtures in this file depend on the `db_session` fixture defined in conftest.py


@pytest.fixture
def registry() -> HandlerRegistry:
    """
    A fresh, empty handler registry per test.

    Tests register their own `<Model>Insert` classes here, so nothing leaks into the
    process-wide `handlers` registry or into other tests.
    """
    return HandlerRegistry(suffix="Insert")


@pytest.fixture
def inserter(db_session: Session, registry: HandlerRegistry) -> Inserter:
    """Inserter bound to the transactional test session and the per-test registry."""
    return Inserter(db_session, base=Base, registry=registry, autocommit=True, max_depth=8)


@pytest.fixture
def sample_user_data() -> dict[str, str]:
    return {
        "name": "John",
        "email": "john@example.com",
    }


@pytest.fixture
def count_rows(db_session: Session):
    """
    Row counter for a model, e.g. `count_rows(User)`.
    """
    def _count(model) -> int:
        return db_session.scalar(select(func.count()).select_from(model))

    return _count
