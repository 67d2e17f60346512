"""Shared pytest fixtures.

Every test gets its own in-memory SQLite database. StaticPool keeps a single
connection alive so all sessions of one test see the same database, and
check_same_thread=False lets FastAPI's thread pool use it in API tests.

SQLite ignores FOR UPDATE, so these tests cover the state machine logic and
the single-lot/budget invariants, not row-lock contention.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from live_auction.auction.engine import AuctionEngine
from live_auction.auction.ledger import Ledger
from live_auction.broadcast.dispatcher import EventDispatcher
from live_auction.config.settings import Settings
from live_auction.database.connection import build_session_factory
from live_auction.database.init_db import create_database, ensure_auction_state


class RecordingDispatcher(EventDispatcher):
    """Dispatcher that keeps every published message for assertions."""

    def __init__(self) -> None:
        super().__init__()
        self.messages: list[dict] = []

    def _deliver(self, message: dict) -> None:
        self.messages.append(message)

    @property
    def event_names(self) -> list[str]:
        return [message["event"] for message in self.messages]


@pytest.fixture
def config():
    return Settings(_env_file=None, operator_token=None)


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_database(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def ledger(db_engine, config):
    ledger = Ledger(build_session_factory(db_engine), config)
    with ledger.transaction("prepare_test_database") as session:
        ensure_auction_state(session, config)
    return ledger


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def engine(ledger, dispatcher):
    return AuctionEngine(ledger, dispatcher)


@pytest.fixture
def team_a(engine, dispatcher):
    team = engine.create_team("Strikers", "cricket")
    dispatcher.messages.clear()
    return team


@pytest.fixture
def team_b(engine, dispatcher):
    team = engine.create_team("Titans", "cricket")
    dispatcher.messages.clear()
    return team


@pytest.fixture
def player(engine, dispatcher):
    """Approved cricket player priced at the default minimum bid (50)."""
    player = engine.register_player(
        "Arjun Mehta",
        "cricket",
        "2nd",
        stats={"playingRole": "Batsman", "battingStyle": "Right Handed"},
        status="approved",
    )
    dispatcher.messages.clear()
    return player


@pytest.fixture
def other_player(engine, dispatcher):
    player = engine.register_player(
        "Kabir Singh", "cricket", "1st", stats={"playingRole": "Bowler"}, status="approved"
    )
    dispatcher.messages.clear()
    return player


@pytest.fixture
def active_lot(engine, dispatcher, player):
    """The player fixture, already on the block."""
    engine.start_lot(player["id"])
    dispatcher.messages.clear()
    return player
