"""Database session management.

Provides session factory for SQLite database access with proper
thread-safety for FastAPI concurrency.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from reelboard.config import get_db_path
from reelboard.db.schema import Base

MEMORY_DB = ":memory:"

# Module-level engine cache for connection pooling
_engine_cache: dict[str, Engine] = {}

# Module-level session factory cache
_session_factory_cache: dict[str, sessionmaker] = {}


def _cache_key(db_path: Path) -> str:
    if str(db_path) == MEMORY_DB:
        return MEMORY_DB
    return str(db_path.resolve())


def get_engine(db_path: Path | None = None) -> Engine:
    """Get SQLAlchemy engine for the database.

    Engines are cached by resolved db_path so that every session shares
    one pool. ``:memory:`` yields a single shared in-memory database.

    Args:
        db_path: Path to SQLite database file. Defaults to REELBOARD_DB_PATH.

    Returns:
        SQLAlchemy engine instance (cached).
    """
    if db_path is None:
        db_path = get_db_path()

    db_path = Path(db_path)
    cache_key = _cache_key(db_path)

    if cache_key in _engine_cache:
        return _engine_cache[cache_key]

    if cache_key == MEMORY_DB:
        url = "sqlite:///:memory:"
    else:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        url = f"sqlite:///{db_path}"

    # check_same_thread=False + StaticPool: one connection shared across
    # FastAPI's threadpool workers
    engine = create_engine(
        url,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _engine_cache[cache_key] = engine

    return engine


def _get_session_factory(db_path: Path | None = None) -> sessionmaker:
    """Get cached session factory for the database."""
    if db_path is None:
        db_path = get_db_path()

    db_path = Path(db_path)
    cache_key = _cache_key(db_path)

    if cache_key in _session_factory_cache:
        return _session_factory_cache[cache_key]

    engine = get_engine(db_path)
    factory = sessionmaker(bind=engine)
    _session_factory_cache[cache_key] = factory

    return factory


def get_session(db_path: Path | None = None) -> Session:
    """Get a database session.

    Note: Caller is responsible for closing the session. For automatic
    resource management, use get_db_session() context manager instead.

    Args:
        db_path: Path to SQLite database file.

    Returns:
        SQLAlchemy Session instance.
    """
    factory = _get_session_factory(db_path)
    return factory()


@contextmanager
def get_db_session(db_path: Path | None = None) -> Generator[Session, None, None]:
    """Context manager for database sessions with automatic cleanup.

    Commits on successful exit, rolls back on exception, and always
    closes the session.

    Example:
        with get_db_session() as session:
            repo.create_timeline(session, data)
    """
    session = get_session(db_path)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(db_path: Path | None = None) -> None:
    """Create all tables if they do not exist."""
    engine = get_engine(db_path)
    Base.metadata.create_all(engine)
