"""Ledger store: transactions and queries over the auction tables.

The Ledger owns the rules for touching durable state:

1. Every mutation runs inside Ledger.transaction(). The transaction commits
   only if the block finishes; any exception rolls everything back, so callers
   observe complete success or no change at all.
2. After-commit hooks (broadcasts) run only once the commit succeeded, inside a
   commit-ordering lock, so the order of published events equals commit order.
   A hook that fails is logged and never fails the committed operation.
3. Rows whose value is checked before it is written (team wallets, the
   auction-state singleton, the active lot) are read with FOR UPDATE.
   Lock order is always team -> auction state -> player.

Database errors surface as InternalError, except integrity violations, which
mean a concurrent operation won a race and surface as ConflictError.
"""

import logging
import threading
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from live_auction.config.settings import Settings, settings
from live_auction.core.exceptions import AuctionError, ConflictError, InternalError, NotFoundError
from live_auction.database.init_db import ensure_auction_state
from live_auction.database.models import AuctionState, Bid, BidLog, Player, PlayerStatus, Team

logger = logging.getLogger(__name__)

AFTER_COMMIT_KEY = "after_commit"


class Ledger:
    """Repository over the auction tables, bound to a session factory."""

    def __init__(self, session_factory: sessionmaker, config: Settings = settings):
        self._session_factory = session_factory
        self.config = config
        self._commit_lock = threading.Lock()

    @property
    def bind(self):
        """Engine the sessions are bound to (used to create tables)."""
        return self._session_factory.kw.get("bind")

    # ========== TRANSACTIONS ==========

    @contextmanager
    def transaction(self, operation: str, **ids: Any) -> Generator[Session, None, None]:
        """Run a block atomically.

        Args:
            operation: Name used in log lines (e.g. "place_bid")
            **ids: Identifiers logged alongside unexpected failures
        """
        session = self._session_factory()
        session.info[AFTER_COMMIT_KEY] = []
        try:
            yield session
            with self._commit_lock:
                session.commit()
                self._run_after_commit(session, operation)
        except AuctionError:
            session.rollback()
            raise
        except IntegrityError as e:
            session.rollback()
            logger.warning("%s rejected by a database constraint %s: %s", operation, ids, e.orig)
            raise ConflictError(
                "The auction changed while this request was running, please retry"
            ) from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception("%s failed %s", operation, ids)
            raise InternalError(f"{operation} failed due to a storage error") from e
        except Exception:
            session.rollback()
            logger.exception("%s failed unexpectedly %s", operation, ids)
            raise
        finally:
            session.close()

    @contextmanager
    def reader(self) -> Generator[Session, None, None]:
        """Read-only session; nothing is committed."""
        session = self._session_factory()
        try:
            yield session
        finally:
            session.rollback()
            session.close()

    @staticmethod
    def after_commit(session: Session, callback: Callable[[], Any]) -> None:
        """Schedule a callback to run once the session's transaction commits."""
        session.info.setdefault(AFTER_COMMIT_KEY, []).append(callback)

    @staticmethod
    def _run_after_commit(session: Session, operation: str) -> None:
        for callback in session.info.pop(AFTER_COMMIT_KEY, []):
            try:
                callback()
            except Exception:
                # The mutation is committed; clients re-sync from the snapshot
                logger.exception("After-commit hook of %s failed", operation)

    # ========== AUCTION STATE ==========

    def auction_state(self, session: Session, lock: bool = False) -> AuctionState:
        """The singleton AuctionState row, created on first use."""
        query = session.query(AuctionState).order_by(AuctionState.id)
        if lock:
            query = query.with_for_update()
        state = query.first()
        if state is None:
            state = ensure_auction_state(session, self.config)
        return state

    # ========== TEAMS ==========

    def get_team(self, session: Session, team_id: int, lock: bool = False) -> Team:
        """Fetch a team, optionally locking its row (FOR UPDATE)."""
        query = session.query(Team).filter(Team.id == team_id)
        if lock:
            query = query.with_for_update()
        team = query.first()
        if team is None:
            raise NotFoundError(f"Team {team_id} not found", team_id=team_id)
        return team

    def list_teams(self, session: Session, include_test: bool = True) -> list[Team]:
        query = session.query(Team)
        if not include_test:
            query = query.filter(Team.is_test_data.is_(False))
        return query.order_by(Team.id).all()

    def sold_totals(self, session: Session) -> dict[int, int]:
        """Sum of sold prices per team - the authoritative spend figure."""
        rows = (
            session.query(Player.team_id, func.coalesce(func.sum(Player.sold_price), 0))
            .filter(Player.status == PlayerStatus.SOLD, Player.team_id.isnot(None))
            .group_by(Player.team_id)
            .all()
        )
        return {team_id: int(total) for team_id, total in rows}

    # ========== PLAYERS ==========

    def get_player(self, session: Session, player_id: int, lock: bool = False) -> Player:
        """Fetch a player, optionally locking its row (FOR UPDATE)."""
        query = session.query(Player).filter(Player.id == player_id)
        if lock:
            query = query.with_for_update()
        player = query.populate_existing().first()
        if player is None:
            raise NotFoundError(f"Player {player_id} not found", player_id=player_id)
        return player

    def active_player(self, session: Session, lock: bool = False) -> Player | None:
        """The player currently being auctioned, if any."""
        query = session.query(Player).filter(Player.status == PlayerStatus.AUCTIONING)
        if lock:
            query = query.with_for_update()
        return query.order_by(Player.id).first()

    def mark_auctioning(self, session: Session, player_id: int, base_price: int | None) -> bool:
        """Conditional check-and-set of a lot start.

        One UPDATE statement carries the status predicate, so a player sold by a
        concurrent request is never flipped back. The base price falls back to
        the stored price, then to the configured floor.

        Returns:
            True if the row was updated, False if it is sold or missing
        """
        values: dict[str, Any] = {"status": PlayerStatus.AUCTIONING}
        if base_price is not None:
            values["base_price"] = base_price
        else:
            values["base_price"] = func.coalesce(Player.base_price, self.config.fallback_floor_price)

        updated = (
            session.query(Player)
            .filter(Player.id == player_id, Player.status != PlayerStatus.SOLD)
            .update(values, synchronize_session=False)
        )
        return updated == 1

    # ========== BIDS ==========

    def add_bid(self, session: Session, player: Player, team: Team, amount: int) -> Bid:
        """Insert an accepted bid into the active list and the permanent log."""
        bid = Bid(player_id=player.id, team_id=team.id, amount=amount)
        session.add(bid)
        session.add(BidLog(player_id=player.id, team_id=team.id, amount=amount))
        session.flush()  # Assigns bid.id for the broadcast payload
        return bid

    def leading_bid(self, session: Session, player_id: int) -> Bid | None:
        """Most recent accepted bid on a lot - it defines the current price."""
        return (
            session.query(Bid)
            .filter(Bid.player_id == player_id)
            .order_by(Bid.id.desc())
            .first()
        )

    def clear_bids(
        self, session: Session, player_id: int | None = None, team_id: int | None = None
    ) -> int:
        """Delete active bids (all, per lot, or per team). The bid log is untouched."""
        query = session.query(Bid)
        if player_id is not None:
            query = query.filter(Bid.player_id == player_id)
        if team_id is not None:
            query = query.filter(Bid.team_id == team_id)
        return query.delete(synchronize_session=False)

    def recent_bid_logs(self, session: Session, limit: int) -> list[BidLog]:
        """Permanent bid history, newest first."""
        return (
            session.query(BidLog)
            .order_by(BidLog.created_at.desc(), BidLog.id.desc())
            .limit(limit)
            .all()
        )
