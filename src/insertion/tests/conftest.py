"""
Core pytest configuration for the entire test suite.

Provides the database setup shared by every test module. Domain fixtures live in
tests/test_fixtures/ and are imported at the bottom of this file so they are
available everywhere without explicit imports.
"""

from __future__ import annotations

# -------------------------------
# Standard library imports
# -------------------------------
import os
import logging
from typing import Generator
from urllib.parse import urlparse

# -------------------------------
# Early logging tuning
# -------------------------------
# Quiet noisy third-party loggers before they are imported.
NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

# -------------------------------
# Third-party / project imports
# -------------------------------
import pytest
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session

from insertion.database.base import Base
from insertion.tests.test_fixtures import models  # noqa: F401 – import to register models with Base.metadata
from insertion.config import get_settings
from insertion.core.logging.builder import setup_logging

logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """
    Install the library logging configuration once for the whole test session.

    pytest re-attaches its capture handlers for every test phase, so caplog keeps working
    after dictConfig replaced the root handlers.
    """
    setup_logging(get_settings())
    yield


# ------------------------------------------------------------------------------------------------
# Test database URL
# ------------------------------------------------------------------------------------------------


def safe_log_db_url(db_url: str) -> str:
    """
    Return the database URL without credentials, for logging.
    """
    parsed = urlparse(db_url)
    return f"{parsed.scheme}://{parsed.hostname or ''}:{parsed.port or ''}/{parsed.path.lstrip('/')}"


def get_test_database_url(tmp_dir) -> str:
    """
    1. `TEST_DATABASE_URL` environment variable (CI override, e.g. Postgres)
    2. SQLite file in a temporary directory
    """
    if test_url := os.getenv("TEST_DATABASE_URL"):
        return test_url
    return f"sqlite+pysqlite:///{tmp_dir / 'test_insertion.db'}"


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """
    pysqlite manages BEGIN itself, which breaks SAVEPOINT handling. Take transaction
    control away from the driver and emit BEGIN ourselves (recipe from the SQLAlchemy
    SQLite dialect docs).
    """
    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


# ------------------------------------------------------------------------------------------------
# DATABASE FIXTURES
# ------------------------------------------------------------------------------------------------


@pytest.fixture(scope="session")
def engine(tmp_path_factory) -> Generator[Engine, None, None]:
    url = get_test_database_url(tmp_path_factory.mktemp("db"))
    logger.info(f"Using test DB: {safe_log_db_url(url)}")

    engine = create_engine(url, echo=False, pool_pre_ping=True)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_savepoints(engine)

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Generator[Session, None, None]:
    """
    Transaction-per-test session.

    Pattern:
      - acquire a connection and begin an outer transaction on it
      - bind a Session to the connection with join_transaction_mode="create_savepoint",
        so session.commit()/rollback() only act on a SAVEPOINT
      - cleanup: close the session and roll back the outer transaction, so nothing a
        test writes (even "committed" inserts) survives it
    """
    with engine.connect() as connection:
        transaction = connection.begin()
        session = Session(
            bind=connection,
            join_transaction_mode="create_savepoint",
            expire_on_commit=False,
        )
        try:
            yield session
        finally:
            session.close()
            transaction.rollback()


# Handler/dispatcher test fixtures
from .test_fixtures.handler_fixtures import (  # noqa: E402,F401
    registry,
    inserter,
    sample_user_data,
    count_rows,
)
