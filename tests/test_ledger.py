"""Tests for the Ledger: transactions, after-commit hooks and the singleton row."""

import logging

import pytest

from live_auction.core.exceptions import ConflictError, NotFoundError
from live_auction.database.init_db import ensure_auction_state
from live_auction.database.models import AuctionState, PlayerStatus, Sport, Team


def test_transaction_commits_and_runs_hooks(ledger):
    calls = []

    with ledger.transaction("create_team") as session:
        session.add(Team(name="Aces", sport=Sport.CRICKET, budget=1000, remaining_budget=1000))
        ledger.after_commit(session, lambda: calls.append("published"))
        assert calls == []

    assert calls == ["published"]
    with ledger.reader() as session:
        assert session.query(Team).count() == 1


def test_transaction_rolls_back_on_auction_error(ledger):
    """Nothing is written and no hook runs when the block raises."""
    calls = []

    with pytest.raises(NotFoundError):
        with ledger.transaction("create_team") as session:
            session.add(Team(name="Aces", sport=Sport.CRICKET, budget=1000, remaining_budget=1000))
            session.flush()
            ledger.after_commit(session, lambda: calls.append("published"))
            ledger.get_team(session, 9999)

    assert calls == []
    with ledger.reader() as session:
        assert session.query(Team).count() == 0


def test_integrity_errors_become_conflicts(ledger):
    """A budget above the wallet violates the CHECK constraint."""
    with pytest.raises(ConflictError):
        with ledger.transaction("overfill_wallet") as session:
            session.add(Team(name="Aces", sport=Sport.CRICKET, budget=1000, remaining_budget=1500))


def test_single_auctioning_backstop(engine, ledger, active_lot, other_player):
    """The partial unique index refuses a second auctioning player."""
    with pytest.raises(ConflictError):
        with ledger.transaction("force_second_lot") as session:
            ledger.get_player(session, other_player["id"]).status = PlayerStatus.AUCTIONING
            session.flush()

    with ledger.reader() as session:
        assert ledger.get_player(session, other_player["id"]).status == PlayerStatus.APPROVED


def test_failing_hook_is_logged_not_raised(ledger, caplog):
    def broken():
        raise RuntimeError("socket closed")

    with caplog.at_level(logging.ERROR, logger="live_auction.auction.ledger"):
        with ledger.transaction("publish") as session:
            ledger.after_commit(session, broken)

    assert "After-commit hook of publish failed" in caplog.text


def test_auction_state_is_created_on_first_use(ledger):
    with ledger.transaction("drop_state") as session:
        session.query(AuctionState).delete()

    with ledger.transaction("read_state") as session:
        state = ledger.auction_state(session, lock=True)
        assert state.bid_increment_rules[0] == {"threshold": 0, "increment": 10}
        assert state.sport_min_bids["cricket"] == 50

    with ledger.reader() as session:
        assert session.query(AuctionState).count() == 1


def test_ensure_auction_state_removes_duplicates(ledger, config):
    with ledger.transaction("duplicate_state") as session:
        session.add(
            AuctionState(
                sport_min_bids={},
                bid_increment_rules=[{"threshold": 0, "increment": 1}],
                animation_type="sparkles",
            )
        )

    with ledger.transaction("ensure_state") as session:
        state = ensure_auction_state(session, config)
        assert state.animation_type == "confetti"

    with ledger.reader() as session:
        assert session.query(AuctionState).count() == 1


def test_sold_totals(engine, ledger, team_a, team_b, player, other_player):
    for lot, team, price in ((player, team_a, 200), (other_player, team_a, 150)):
        engine.start_lot(lot["id"])
        engine.resolve_sold(lot["id"], team["id"], price)

    with ledger.reader() as session:
        assert ledger.sold_totals(session) == {team_a["id"]: 350}
