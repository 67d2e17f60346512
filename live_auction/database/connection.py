"""Database connection and session management using SQLAlchemy.

This module implements the core database connectivity patterns for the service:
1. Database engine creation with connection pooling
2. Session factory configuration for ORM operations
3. Session patterns for CLI scripts

The auction engine itself never imports the module-level engine; it receives a
session factory through its Ledger. That keeps tests free to build an isolated
in-memory database per test while the server and the CLI share the engine
configured here.

Session Patterns Provided:
1. get_session(): Manual session with automatic commit/rollback
2. get_session_context(): Context manager for with statements
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from live_auction.config.settings import settings


def build_engine(database_url: str, echo: bool = False, pool_size: int = 5) -> Engine:
    """Create an engine for the given URL.

    SQLite connections are shared across the FastAPI worker threads, so the
    same-thread check is disabled for them; pool sizing only applies to real
    database servers.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        database_url,
        echo=echo,
        pool_size=pool_size,
        pool_pre_ping=True,  # Test connections before use (handles disconnects)
    )


def build_session_factory(bind: Engine) -> sessionmaker:
    """Session factory with explicit transaction control."""
    return sessionmaker(
        autocommit=False,  # Require explicit session.commit() for transactions
        autoflush=False,  # Don't flush before queries; the engine flushes when it needs ids
        bind=bind,
    )


# Created once at module load time and reused by the API server and the CLI
engine = build_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_size=settings.database_pool_size,
)

SessionLocal = build_session_factory(engine)


def get_session() -> Generator[Session, None, None]:
    """Get database session with automatic commit/rollback and cleanup.

    If any exception occurs, the transaction is rolled back and the exception
    is re-raised.
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def get_session_context() -> Generator[Session, None, None]:
    """Context manager wrapper for database sessions.

    Usage:
        with get_session_context() as session:
            session.add(team)
            # Automatically committed and closed when exiting 'with' block
    """
    yield from get_session()
