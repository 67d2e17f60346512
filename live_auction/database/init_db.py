"""Database initialization utilities.

Database Lifecycle Operations:
- create_database(): Initialize schema from SQLAlchemy models
- drop_database(): Remove all tables (destructive operation)
- reset_database(): Complete refresh (drop + create)
- ensure_auction_state(): Guarantee exactly one AuctionState row exists

Every function takes an optional engine / session so the same code prepares the
production database, a scratch SQLite file, or an in-memory test database.
"""

import logging
from pathlib import Path

from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session

from live_auction.config.settings import Settings, settings
from live_auction.database.models import AuctionState, Base

logger = logging.getLogger(__name__)


def _ensure_sqlite_directory(bind: Engine) -> None:
    """For SQLite files, make sure the parent directory exists."""
    url = make_url(str(bind.url))
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def create_database(bind: Engine | None = None) -> None:
    """Create database schema and all tables from SQLAlchemy models.

    Idempotent - create_all() skips tables that already exist.
    """
    if bind is None:
        from live_auction.database.connection import engine as bind
    try:
        _ensure_sqlite_directory(bind)
        Base.metadata.create_all(bind=bind)
        logger.info("Database tables created successfully")
    except Exception:
        logger.exception("Failed to create database")
        raise


def drop_database(bind: Engine | None = None) -> None:
    """Drop all database tables - DESTRUCTIVE OPERATION.

    WARNING: This operation cannot be undone. All data will be lost, including
    the permanent bid log.
    """
    if bind is None:
        from live_auction.database.connection import engine as bind
    try:
        Base.metadata.drop_all(bind=bind)
        logger.info("Database tables dropped successfully")
    except Exception:
        logger.exception("Failed to drop database")
        raise


def reset_database(bind: Engine | None = None) -> None:
    """Reset database by dropping and recreating all tables."""
    logger.info("Resetting database...")
    drop_database(bind)
    create_database(bind)
    logger.info("Database reset complete")


def default_auction_state(config: Settings = settings) -> AuctionState:
    """Build the AuctionState row seeded from process settings."""
    from live_auction.auction.increments import IncrementSchedule

    return AuctionState(
        is_active=False,
        is_registration_open=True,
        testgrounds_locked=False,
        sport_min_bids=dict(config.default_sport_min_bids),
        bid_increment_rules=IncrementSchedule.from_rules(config.default_increment_rules).to_rules(),
        animation_duration=config.default_animation_duration,
        animation_type=config.default_animation_type,
    )


def ensure_auction_state(session: Session, config: Settings = settings) -> AuctionState:
    """Guarantee that exactly one AuctionState row exists and return it.

    - No row: insert the default row.
    - Several rows (left over from manual inserts): keep the oldest, delete
      the rest.

    The caller owns the transaction; this function only flushes.
    """
    rows = session.query(AuctionState).order_by(AuctionState.id).all()

    if not rows:
        logger.info("No auction state row found, inserting default row")
        state = default_auction_state(config)
        session.add(state)
        session.flush()
        return state

    if len(rows) > 1:
        logger.warning("Found %d auction state rows, deleting extras", len(rows))
        for extra in rows[1:]:
            session.delete(extra)
        session.flush()

    return rows[0]
