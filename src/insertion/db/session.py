from functools import lru_cache
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from insertion.config import get_settings


@lru_cache()
def get_engine() -> Engine:
    """Create the Engine from settings on first use."""
    settings = get_settings()
    return create_engine(
        settings.DATABASE_URL,
        echo=settings.SQLALCHEMY_ECHO,   # Set to False in production
        pool_pre_ping=True,              # Enables connection health checks
    )


@lru_cache()
def get_sessionmaker() -> sessionmaker[Session]:
    # expire_on_commit=False keeps inserted records readable after autocommit
    return sessionmaker(bind=get_engine(), class_=Session, expire_on_commit=False)


def get_session() -> Generator[Session, None, None]:
    """Yield a session and ensure it's closed afterwards.

    Usage:
        for db in get_session():
            insert(db, "user", name="John")
    """
    with get_sessionmaker()() as session:
        yield session
