"""
SQLAlchemy base configuration and session management.

Uses SQLAlchemy 2.0 style with type hints and declarative base.
Designed to be portable between SQLite (dev) and PostgreSQL (prod).
"""

from contextlib import contextmanager
from typing import Callable, Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from usaa.config import config


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# Create engine with configuration appropriate for the database type
engine_kwargs = {
    'echo': config.debug,  # Log SQL in debug mode
}

if config.database.is_sqlite:
    # Request handlers and the write pool share connections across threads
    engine_kwargs['connect_args'] = {'check_same_thread': False}

engine = create_engine(config.database.url, **engine_kwargs)


# Enable SQLite optimizations via PRAGMA statements
if config.database.is_sqlite:
    @event.listens_for(engine, 'connect')
    def set_sqlite_pragma(dbapi_connection, connection_record):
        """
        Configure SQLite for concurrent request handlers.

        WAL mode allows reads to proceed while a status update is
        being committed.
        """
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA journal_mode=WAL')
        cursor.execute('PRAGMA synchronous=NORMAL')
        cursor.close()


# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,  # Avoid lazy loading issues
)


@contextmanager
def get_session(
    session_factory: Optional[Callable[[], Session]] = None,
) -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Usage:
        with get_session() as session:
            session.get(...)

    Automatically handles commit/rollback and session cleanup.
    """
    session = (session_factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(bind: Optional[Engine] = None) -> None:
    """
    Initialize database schema.

    Creates all tables if they don't exist. For production,
    use Alembic migrations instead.
    """
    Base.metadata.create_all(bind=bind or engine)
