"""
SQLAlchemy engine and session management for the BCI tracker.

Ingestion is the only writer and commits each batch in one transaction, while
queries and briefings read concurrently. The file database
runs in WAL mode so those readers keep seeing the last committed batch instead
of blocking on (or being blocked by) the writer.
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event, Engine
from sqlalchemy.orm import Session, sessionmaker

from bci_tracker.constants import DB_NAME

# Module-level engine instance (lazy-initialized)
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    # WAL lets readers see the last committed batch while a writer is active
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(db_path: str = DB_NAME) -> Engine:
    """Create an engine for a SQLite file with the tracker's connection settings."""
    engine = create_engine(f"sqlite:///{db_path}")
    event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def get_engine() -> Engine:
    """Get the SQLAlchemy engine, creating it if necessary."""
    global _engine, _session_factory
    if _engine is None:
        _engine = make_engine()
        _session_factory = sessionmaker(bind=_engine)
    return _engine


def set_engine(engine: Engine) -> None:
    """Set a custom engine (for testing)."""
    global _engine, _session_factory
    _engine = engine
    _session_factory = sessionmaker(bind=engine)


def reset_engine() -> None:
    """Reset the engine to None (for testing)."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Get a session context manager for database operations.

    Usage:
        with get_session() as session:
            session.add(obj)
            # commit happens automatically on successful exit
    """
    if _session_factory is None:
        get_engine()  # Initialize engine and session factory

    session = _session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
