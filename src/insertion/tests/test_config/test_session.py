import pytest
from sqlalchemy import select

import insertion
from insertion.config import get_settings
from insertion.database.base import Base
from insertion.db.session import get_engine, get_sessionmaker, get_session
from insertion.tests.test_fixtures.models import User


def clear_caches():
    get_sessionmaker.cache_clear()
    get_engine.cache_clear()
    get_settings.cache_clear()


@pytest.fixture
def sqlite_file_settings(tmp_path, monkeypatch):
    """
    Point the default session factory at a throwaway SQLite file.
    """
    for name in ("POSTGRES_HOST", "POSTGRES_DB"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SQLITE_URL", f"sqlite+pysqlite:///{tmp_path / 'session.db'}")
    clear_caches()

    yield get_settings()

    get_engine().dispose()
    clear_caches()


def test_engine_follows_settings(sqlite_file_settings):
    engine = get_engine()
    assert engine.url.render_as_string() == sqlite_file_settings.DATABASE_URL
    assert get_engine() is engine


def test_get_session_inserts_and_commits(sqlite_file_settings):
    """
    Behavior:
            - A session from get_session() works with the module-level insert; the default
              autocommit makes the row visible to a second session.
    """
    Base.metadata.create_all(get_engine())

    for db in get_session():
        user = insertion.insert(db, "users", name="John", email="john@example.com")

    with get_sessionmaker()() as other:
        names = other.scalars(select(User.name)).all()

    assert names == ["John"]
    # expire_on_commit=False: attributes stay readable after the session closed
    assert user.email == "john@example.com"


def test_insert_inside_caller_transaction_rolls_back_with_it(sqlite_file_settings):
    """
    Behavior:
            - With the default settings (autocommit on), an insert made inside a transaction
              the caller began is not committed on its own; the caller's rollback removes it
              together with the caller's pending objects.
    """
    Base.metadata.create_all(get_engine())

    with get_sessionmaker()() as db:
        with pytest.raises(RuntimeError):
            with db.begin():
                db.add(User(name="Unrelated"))
                insertion.insert(db, "users", name="Dispatched")
                raise RuntimeError("caller aborts")

    with get_sessionmaker()() as other:
        names = other.scalars(select(User.name)).all()

    assert names == []
