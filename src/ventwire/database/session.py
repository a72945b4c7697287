"""Database session management for ventwire."""

import logging
import os
import threading

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from ventwire.database.models import Base

logger = logging.getLogger(__name__)

# Global engine and session factory
_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None
_init_lock = threading.Lock()


def init_database(database_path: str | None = None) -> None:
    """
    Initialize the database connection in a thread-safe manner.

    Args:
        database_path: Path to the SQLite database file. Defaults to the
                      configured [database].path, then DEFAULT_DATABASE_PATH.
                      ":memory:" gives a throwaway in-memory database.

    Raises:
        PermissionError: If directory cannot be created
        ValueError: If database path is invalid
    """
    global _engine, _SessionFactory

    with _init_lock:
        if _engine is not None and _SessionFactory is not None:
            return

        if database_path is None:
            from ventwire.config import get_database_path

            database_path = get_database_path()

        if not database_path or not isinstance(database_path, str):
            raise ValueError(f"Invalid database path: {database_path}")

        engine_kwargs: dict[str, Any] = {
            "echo": False,
            "connect_args": {"check_same_thread": False},
        }

        if database_path == ":memory:":
            from sqlalchemy.pool import StaticPool

            engine_kwargs["poolclass"] = StaticPool
        else:
            db_dir = os.path.dirname(database_path)
            if db_dir:
                try:
                    os.makedirs(db_dir, exist_ok=True)
                except PermissionError as e:
                    raise PermissionError(
                        f"Cannot create database directory {db_dir}: {e}"
                    ) from e
            engine_kwargs["pool_pre_ping"] = True

        engine = create_engine(f"sqlite:///{database_path}", **engine_kwargs)

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn: Any, connection_record: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

        Base.metadata.create_all(engine)

        _engine = engine
        _SessionFactory = sessionmaker(bind=engine, expire_on_commit=False)
        logger.debug(f"Database initialized at {database_path}")


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

    Usage:
        with session_scope() as session:
            session.add(obj)
            # Automatically commits on success, rolls back on error
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


def get_engine() -> Engine:
    """Get the database engine."""
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _engine


def cleanup_database() -> None:
    """
    Dispose of the engine and reset global state.

    Called from test teardown so each test can point at a fresh database.
    """
    global _engine, _SessionFactory

    with _init_lock:
        if _engine is not None:
            _engine.dispose()
            _engine = None
        _SessionFactory = None
