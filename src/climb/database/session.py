"""Database session management for the CLIMB data store."""

import logging
import os
import threading

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from climb.constants import DEFAULT_DATABASE_PATH
from climb.database.models import Base

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None
_init_lock = threading.Lock()


def _create_engine(database_path: str) -> Engine:
    if database_path == IN_MEMORY:
        # a single shared connection, otherwise each session sees an empty db
        return create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    db_dir = os.path.dirname(database_path)
    if db_dir:
        try:
            os.makedirs(db_dir, exist_ok=True)
        except PermissionError as e:
            raise PermissionError(
                f"Cannot create database directory {db_dir}: {e}"
            ) from e

    return create_engine(
        f"sqlite:///{database_path}",
        connect_args={"check_same_thread": False},
        pool_pre_ping=True,
    )


def init_database(database_path: str | None = None) -> None:
    """
    Initialize the store and create missing tables.

    Calling it again without cleanup_database() is a no-op.

    Args:
        database_path: SQLite file path, or ":memory:". Defaults to
                      DEFAULT_DATABASE_PATH.

    Raises:
        PermissionError: If directory cannot be created
        ValueError: If database path is invalid
    """
    global _engine, _SessionFactory

    with _init_lock:
        if _engine is not None and _SessionFactory is not None:
            return

        database_path = database_path or DEFAULT_DATABASE_PATH
        if not isinstance(database_path, str):
            raise ValueError(f"Invalid database path: {database_path!r}")

        _engine = _create_engine(database_path)
        Base.metadata.create_all(_engine)
        _SessionFactory = sessionmaker(bind=_engine)
        logger.debug(f"Database ready at {database_path}")


def get_session() -> Session:
    """
    Get a new database session.

    Raises:
        RuntimeError: If database has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")

    return _SessionFactory()


@contextmanager
def session_scope() -> Generator[Session]:
    """
    Provide a transactional scope for database operations.

    Commits on success, rolls back and re-raises on error.
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def cleanup_database() -> None:
    """Dispose of the engine and reset global state (used by tests)."""
    global _engine, _SessionFactory

    with _init_lock:
        if _engine is not None:
            _engine.dispose()
            _engine = None
        _SessionFactory = None
