"""Auction state machine.

The AuctionEngine runs every operation that changes the auction:

    IDLE --start_lot--> LOT_ACTIVE --resolve_sold / resolve_unsold / skip--> IDLE
                        LOT_ACTIVE --place_bid / reset_bid--> LOT_ACTIVE

Each operation follows the same shape:
1. Validate raw input (ValidationError before any I/O)
2. Open a ledger transaction, lock the rows whose values are checked
3. Check invariants, write, build the response and the domain event
4. Commit; the event is published only after the commit succeeded

Bid policy: bids must be monotonic. The first bid on a lot must reach the lot's
base price and every later bid must reach next_min_bid(current price). An
operator override skips the monotonic check (never the budget check) for
manual corrections.

The engine holds no global state: the ledger (database + auction-state row)
and the dispatcher are injected, so tests build isolated instances.
"""

import logging
import math
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session

from live_auction.auction import events
from live_auction.auction.events import AuctionEvent, player_payload
from live_auction.auction.increments import IncrementSchedule, min_bid_for, validate_sport_min_bids
from live_auction.auction.ledger import Ledger
from live_auction.auction.stats import validate_player_stats
from live_auction.broadcast.dispatcher import EventDispatcher
from live_auction.core.exceptions import (
    BidTooLowError,
    BudgetExceededError,
    ConflictError,
    ValidationError,
)
from live_auction.database.models import AcademicYear, Player, PlayerStatus, Sport, Team

logger = logging.getLogger(__name__)

STATE_FLAGS = ("is_active", "is_registration_open", "testgrounds_locked")
STATE_FIELDS = STATE_FLAGS + (
    "sport_min_bids",
    "bid_increment_rules",
    "animation_duration",
    "animation_type",
)


def _whole_amount(value: Any, field: str) -> int:
    """Validate a money amount and round it to a whole number of points."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number", field=field)
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"{field} must be a finite number", field=field)
    amount = math.floor(value + 0.5)
    if amount <= 0:
        raise ValidationError(f"Invalid {field}: must be positive", field=field)
    return amount


def _require_id(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} is required", field=field)
    return value


def _parse_sport(value: Any) -> Sport:
    try:
        return Sport(str(value).lower())
    except ValueError as e:
        raise ValidationError(f"Unknown sport '{value}'", sport=value) from e


def team_payload(team: Team) -> dict[str, Any]:
    return {
        "id": team.id,
        "name": team.name,
        "sport": team.sport.value,
        "budget": team.budget,
        "remaining_budget": team.remaining_budget,
        "logo_url": team.logo_url,
        "is_test_data": bool(team.is_test_data),
    }


class AuctionEngine:
    """Validates and applies auction operations, then publishes their events."""

    def __init__(self, ledger: Ledger, dispatcher: EventDispatcher):
        self.ledger = ledger
        self.dispatcher = dispatcher

    @property
    def fallback_floor(self) -> int:
        return self.ledger.config.fallback_floor_price

    @property
    def default_budget(self) -> int:
        return self.ledger.config.default_team_budget

    def _emit(self, session: Session, event: AuctionEvent) -> AuctionEvent:
        """Publish the event once the surrounding transaction commits."""
        self.ledger.after_commit(session, lambda: self.dispatcher.publish(event))
        return event

    def _floor_price(self, player: Player) -> int:
        return player.base_price or self.fallback_floor

    def _schedule(self, session: Session) -> IncrementSchedule:
        state = self.ledger.auction_state(session)
        return IncrementSchedule.from_rules(state.bid_increment_rules)

    # ========== LOT LIFECYCLE ==========

    def start_lot(self, player_id: int, base_price: int | None = None) -> dict[str, Any]:
        """Open bidding on a player.

        The auction-state row lock serializes concurrent starts: of two
        requests for different players exactly one succeeds, the other gets a
        ConflictError. Re-starting the lot that is already active refreshes
        its base price.
        """
        player_id = _require_id(player_id, "player_id")
        if base_price is not None:
            base_price = _whole_amount(base_price, "base_price")

        with self.ledger.transaction("start_lot", player_id=player_id) as session:
            state = self.ledger.auction_state(session, lock=True)

            active = self.ledger.active_player(session)
            if active is not None and active.id != player_id:
                raise ConflictError(
                    f"{active.name} is already being auctioned",
                    active_player_id=active.id,
                )

            if not self.ledger.mark_auctioning(session, player_id, base_price):
                self.ledger.get_player(session, player_id)  # NotFoundError if missing
                raise ConflictError("Player is already sold", player_id=player_id)
            if active is None:
                # A new round never inherits bids from an earlier one
                self.ledger.clear_bids(session, player_id=player_id)

            player = self.ledger.get_player(session, player_id)
            state.current_player_id = player.id
            state.started_at = datetime.now(UTC)

            payload = player_payload(player)
            self._emit(session, events.lot_started(player))

        logger.info("Started auction for player %s (ID: %s)", payload["name"], player_id)
        return payload

    def place_bid(
        self, player_id: int, team_id: int, amount: Any, override: bool = False
    ) -> dict[str, Any]:
        """Accept a bid from a team on the active lot.

        The team row stays locked from the budget check until commit, so two
        bids from the same team can never both pass against a stale balance.
        The lot row is locked as well, so the monotonic check always sees the
        latest committed bid.

        Args:
            override: operator correction - skip the minimum-bid check

        Raises:
            ValidationError: non-positive or non-numeric amount
            NotFoundError: unknown team or player
            ConflictError: the player is not the active lot
            BudgetExceededError: amount above the team's remaining budget
            BidTooLowError: amount below the minimum legal bid
        """
        player_id = _require_id(player_id, "player_id")
        team_id = _require_id(team_id, "team_id")
        amount = _whole_amount(amount, "amount")

        with self.ledger.transaction("place_bid", player_id=player_id, team_id=team_id) as session:
            team = self.ledger.get_team(session, team_id, lock=True)
            player = self.ledger.get_player(session, player_id, lock=True)

            if player.status != PlayerStatus.AUCTIONING:
                raise ConflictError(
                    f"{player.name} is not being auctioned", player_id=player_id
                )

            if amount > team.remaining_budget:
                raise BudgetExceededError(team.remaining_budget, team_id=team.id)

            schedule = self._schedule(session)
            leading = self.ledger.leading_bid(session, player.id)
            minimum = (
                schedule.next_min_bid(leading.amount) if leading else self._floor_price(player)
            )
            if amount < minimum and not override:
                raise BidTooLowError(amount, minimum, player_id=player.id)

            bid = self.ledger.add_bid(session, player, team, amount)
            next_min_bid = schedule.next_min_bid(amount)
            result = {
                "id": bid.id,
                "player_id": player.id,
                "player_name": player.name,
                "team_id": team.id,
                "team_name": team.name,
                "amount": bid.amount,
                "created_at": bid.created_at,
                "next_min_bid": next_min_bid,
                "override": override,
            }
            self._emit(session, events.bid_accepted(bid, team, player, next_min_bid))

        logger.info("Bid %s by %s on %s accepted", amount, result["team_name"], result["player_name"])
        return result

    def resolve_sold(self, player_id: int, team_id: int, final_price: Any) -> dict[str, Any]:
        """Sell the active lot to a team and charge the team's wallet."""
        player_id = _require_id(player_id, "player_id")
        team_id = _require_id(team_id, "team_id")
        price = _whole_amount(final_price, "final_price")

        with self.ledger.transaction("resolve_sold", player_id=player_id, team_id=team_id) as session:
            team = self.ledger.get_team(session, team_id, lock=True)
            state = self.ledger.auction_state(session, lock=True)
            player = self.ledger.get_player(session, player_id, lock=True)

            if player.status == PlayerStatus.SOLD:
                raise ConflictError(f"{player.name} is already sold", player_id=player_id)
            if player.status != PlayerStatus.AUCTIONING:
                raise ConflictError(f"{player.name} is not being auctioned", player_id=player_id)
            if price > team.remaining_budget:
                raise BudgetExceededError(team.remaining_budget, team_id=team.id)

            player.status = PlayerStatus.SOLD
            player.team_id = team.id
            player.sold_price = price
            team.remaining_budget -= price
            if state.current_player_id == player.id:
                state.current_player_id = None
            session.flush()

            result = {
                "player": player_payload(player),
                "team": team_payload(team),
                "sold_price": price,
            }
            self._emit(session, events.lot_sold(player, team, price))
            self._emit(
                session,
                events.config_changed("player-sold", player_id=player.id, team_id=team.id),
            )

        logger.info(
            "Player %s sold to %s for %s", result["player"]["name"], result["team"]["name"], price
        )
        return result

    def resolve_unsold(self, player_id: int) -> dict[str, Any]:
        """Release a lot without a sale. Calling it twice leaves the same state.

        Active bids of the lot are cleared; the bid log keeps them.
        """
        player_id = _require_id(player_id, "player_id")

        with self.ledger.transaction("resolve_unsold", player_id=player_id) as session:
            state = self.ledger.auction_state(session, lock=True)
            player = self.ledger.get_player(session, player_id, lock=True)
            if player.status == PlayerStatus.SOLD:
                raise ConflictError(
                    f"{player.name} is sold; release the player instead", player_id=player_id
                )

            player.status = PlayerStatus.UNSOLD
            self.ledger.clear_bids(session, player_id=player.id)
            if state.current_player_id == player.id:
                state.current_player_id = None
            session.flush()

            payload = player_payload(player)
            self._emit(session, events.lot_unsold(player))

        logger.info("Player %s marked unsold", player_id)
        return payload

    def skip(self, player_id: int) -> dict[str, Any]:
        """Send a player back to the queue at the sport's minimum bid, without bids."""
        player_id = _require_id(player_id, "player_id")

        with self.ledger.transaction("skip", player_id=player_id) as session:
            state = self.ledger.auction_state(session, lock=True)
            player = self.ledger.get_player(session, player_id, lock=True)
            if player.status == PlayerStatus.SOLD:
                raise ConflictError(f"{player.name} is already sold", player_id=player_id)

            player.status = PlayerStatus.ELIGIBLE
            player.base_price = min_bid_for(state.sport_min_bids, player.sport)
            self.ledger.clear_bids(session, player_id=player.id)
            if state.current_player_id == player.id:
                state.current_player_id = None
            session.flush()

            payload = player_payload(player)
            self._emit(session, events.lot_skipped(player))

        logger.info("Player %s skipped, back in queue at %s", player_id, payload["base_price"])
        return payload

    def reset_bid(self, player_id: int | None = None) -> dict[str, Any]:
        """Clear the active bids of the current lot; the bid log is untouched."""
        if player_id is not None:
            player_id = _require_id(player_id, "player_id")

        with self.ledger.transaction("reset_bid", player_id=player_id) as session:
            player = self.ledger.active_player(session, lock=True)
            if player is None:
                raise ConflictError("No active auction to reset")
            if player_id is not None and player.id != player_id:
                raise ConflictError(
                    f"Player {player_id} is not the active lot", active_player_id=player.id
                )

            cleared = self.ledger.clear_bids(session, player_id=player.id)
            floor_price = self._floor_price(player)
            result = {"player_id": player.id, "floor_price": floor_price, "bids_cleared": cleared}
            self._emit(session, events.bid_reset(player, floor_price))

        logger.info("Reset %d bids on player %s", cleared, result["player_id"])
        return result

    # ========== READ MODELS ==========

    def current_lot(self) -> dict[str, Any]:
        """Snapshot of the active lot for clients (re)joining the room.

        The sequence number is read before the data, so any event newer than
        the snapshot carries a larger sequence.
        """
        sequence = self.dispatcher.last_sequence
        with self.ledger.reader() as session:
            state = self.ledger.auction_state(session)
            player = self.ledger.active_player(session)
            if player is None:
                return {
                    "current_auction": None,
                    "is_auction_active": bool(state.is_active),
                    "sequence": sequence,
                }

            schedule = IncrementSchedule.from_rules(state.bid_increment_rules)
            leading = self.ledger.leading_bid(session, player.id)
            floor_price = self._floor_price(player)
            leading_bid = None
            if leading is not None:
                leading_bid = {
                    "id": leading.id,
                    "team_id": leading.team_id,
                    "team_name": leading.team.name,
                    "amount": leading.amount,
                    "created_at": leading.created_at,
                }
            return {
                "current_auction": {
                    "player": player_payload(player),
                    "leading_bid": leading_bid,
                    "current_price": leading.amount if leading else floor_price,
                    "next_min_bid": schedule.next_min_bid(leading.amount) if leading else floor_price,
                },
                "is_auction_active": bool(state.is_active),
                "sequence": sequence,
            }

    def state_snapshot(self) -> dict[str, Any]:
        with self.ledger.reader() as session:
            return self._state_dict(self.ledger.auction_state(session))

    @staticmethod
    def _state_dict(state) -> dict[str, Any]:
        return {
            "is_active": bool(state.is_active),
            "is_registration_open": bool(state.is_registration_open),
            "testgrounds_locked": bool(state.testgrounds_locked),
            "sport_min_bids": dict(state.sport_min_bids or {}),
            "bid_increment_rules": list(state.bid_increment_rules or []),
            "animation_duration": state.animation_duration,
            "animation_type": state.animation_type,
            "current_player_id": state.current_player_id,
        }

    def leaderboard(self, viewer_is_operator: bool = False) -> list[dict[str, Any]]:
        """Teams with their sold rosters, ordered by total spend.

        While the sandbox lockdown is on, test teams are hidden from everyone
        except operators.
        """
        with self.ledger.reader() as session:
            state = self.ledger.auction_state(session)
            include_test = viewer_is_operator or not state.testgrounds_locked
            rows = []
            for team in self.ledger.list_teams(session, include_test=include_test):
                roster = sorted(
                    (p for p in team.players if p.status == PlayerStatus.SOLD),
                    key=lambda p: p.id,
                )
                rows.append(
                    {
                        **team_payload(team),
                        "total_spent": team.budget - team.remaining_budget,
                        "players_count": len(roster),
                        "players": [
                            {
                                "id": p.id,
                                "name": p.name,
                                "photo_url": p.photo_url,
                                "year": p.year.value,
                                "sold_price": p.sold_price,
                                "stats": dict(p.stats or {}),
                            }
                            for p in roster
                        ],
                    }
                )
        rows.sort(key=lambda row: (-row["total_spent"], row["id"]))
        return rows

    def recent_bids(self, limit: int = 10000) -> list[dict[str, Any]]:
        """Permanent bid log, newest first."""
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ValidationError("limit must be a positive integer", field="limit")
        with self.ledger.reader() as session:
            return [
                {
                    "id": log.id,
                    "amount": log.amount,
                    "created_at": log.created_at,
                    "team_id": log.team_id,
                    "team_name": log.team.name if log.team else None,
                    "player_id": log.player_id,
                    "player_name": log.player.name if log.player else None,
                    "auction_context": log.auction_context,
                }
                for log in self.ledger.recent_bid_logs(session, limit)
            ]

    # ========== CONFIGURATION ==========

    def update_state(self, patch: dict[str, Any]) -> dict[str, Any]:
        """Patch global auction settings and broadcast a config-changed signal.

        sport_min_bids entries are merged into the stored mapping; the
        increment schedule is replaced as a whole (validated and sorted).
        """
        unknown = set(patch) - set(STATE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown auction state fields: {sorted(unknown)}")
        if not patch:
            raise ValidationError("Nothing to update")

        changes: dict[str, Any] = {}
        for flag in STATE_FLAGS:
            if flag in patch:
                if not isinstance(patch[flag], bool):
                    raise ValidationError(f"{flag} must be true or false", field=flag)
                changes[flag] = patch[flag]
        if "bid_increment_rules" in patch:
            changes["bid_increment_rules"] = IncrementSchedule.from_rules(
                patch["bid_increment_rules"]
            ).to_rules()
        if "sport_min_bids" in patch:
            changes["sport_min_bids"] = validate_sport_min_bids(patch["sport_min_bids"])
        if "animation_duration" in patch:
            changes["animation_duration"] = _whole_amount(
                patch["animation_duration"], "animation_duration"
            )
        if "animation_type" in patch:
            animation_type = patch["animation_type"]
            if not isinstance(animation_type, str) or not animation_type.strip():
                raise ValidationError("animation_type must be a non-empty string")
            changes["animation_type"] = animation_type.strip()

        with self.ledger.transaction("update_state", fields=sorted(changes)) as session:
            state = self.ledger.auction_state(session, lock=True)
            for key, value in changes.items():
                if key == "sport_min_bids":
                    # New dict so the JSON column registers the change
                    value = {**(state.sport_min_bids or {}), **value}
                setattr(state, key, value)
            session.flush()
            snapshot = self._state_dict(state)
            self._emit(session, events.config_changed("state-updated", fields=sorted(changes)))

        logger.info("Auction state updated: %s", sorted(changes))
        return snapshot

    def bulk_update_min_bid(self, sport: str, value: Any) -> dict[str, Any]:
        """Set a sport's minimum bid and re-price its unsold queue.

        Sold players keep their price and the active lot keeps its floor.
        """
        sport = _parse_sport(sport)
        value = _whole_amount(value, "value")

        with self.ledger.transaction("bulk_update_min_bid", sport=sport.value) as session:
            state = self.ledger.auction_state(session, lock=True)
            updated = (
                session.query(Player)
                .filter(
                    Player.sport == sport,
                    Player.status.notin_([PlayerStatus.SOLD, PlayerStatus.AUCTIONING]),
                )
                .update({"base_price": value}, synchronize_session=False)
            )
            state.sport_min_bids = {**(state.sport_min_bids or {}), sport.value: value}
            session.flush()
            result = {"sport_min_bids": dict(state.sport_min_bids), "players_updated": updated}
            self._emit(
                session,
                events.config_changed("min-bid-updated", sport=sport.value, value=value),
            )

        logger.info("Updated minimum bid for %s to %s (%d players)", sport.value, value, updated)
        return result

    # ========== WALLETS ==========

    def reset_team_wallet(self, team_id: int) -> dict[str, Any]:
        """Unsell a team's roster, clear its bids, restore the default budget."""
        team_id = _require_id(team_id, "team_id")

        with self.ledger.transaction("reset_team_wallet", team_id=team_id) as session:
            team = self.ledger.get_team(session, team_id, lock=True)
            released = (
                session.query(Player)
                .filter(Player.team_id == team.id, Player.status == PlayerStatus.SOLD)
                .update(
                    {"status": PlayerStatus.UNSOLD, "team_id": None, "sold_price": None},
                    synchronize_session=False,
                )
            )
            self.ledger.clear_bids(session, team_id=team.id)
            team.budget = self.default_budget
            team.remaining_budget = self.default_budget
            session.flush()
            payload = team_payload(team)
            self._emit(session, events.config_changed("wallet-reset", team_id=team.id))

        logger.info("Wallet of team %s reset (%d players released)", team_id, released)
        return {"team": payload, "players_released": released}

    def reset_all_wallets(self) -> dict[str, Any]:
        """Clear every active bid, release every sold player, restore all wallets.

        Released players go back to "unsold" so that remaining budgets stay
        consistent with the sum of sold prices.
        """
        with self.ledger.transaction("reset_all_wallets") as session:
            teams = session.query(Team).with_for_update().order_by(Team.id).all()
            released = (
                session.query(Player)
                .filter(Player.status == PlayerStatus.SOLD)
                .update(
                    {"status": PlayerStatus.UNSOLD, "team_id": None, "sold_price": None},
                    synchronize_session=False,
                )
            )
            cleared = self.ledger.clear_bids(session)
            for team in teams:
                team.budget = self.default_budget
                team.remaining_budget = self.default_budget
            result = {
                "teams_reset": len(teams),
                "players_released": released,
                "bids_cleared": cleared,
            }
            self._emit(session, events.config_changed("wallets-reset"))

        logger.info("Global wallet reset: %s", result)
        return result

    def reconcile_budgets(self) -> list[dict[str, Any]]:
        """Recompute remaining budgets from sold prices ("fix budgets").

        Returns one entry per corrected team. A team whose sales exceed its
        budget is clamped to 0 and logged, since that state needs a human.
        """
        with self.ledger.transaction("reconcile_budgets") as session:
            teams = session.query(Team).with_for_update().order_by(Team.id).all()
            totals = self.ledger.sold_totals(session)
            corrections = []
            for team in teams:
                expected = team.budget - totals.get(team.id, 0)
                if expected < 0:
                    logger.warning(
                        "Team %s spent %s over a budget of %s; clamping remaining budget to 0",
                        team.id,
                        totals[team.id],
                        team.budget,
                    )
                    expected = 0
                if team.remaining_budget != expected:
                    corrections.append(
                        {
                            "team_id": team.id,
                            "team_name": team.name,
                            "before": team.remaining_budget,
                            "after": expected,
                        }
                    )
                    team.remaining_budget = expected
            if corrections:
                self._emit(
                    session,
                    events.config_changed(
                        "budgets-reconciled", team_ids=[c["team_id"] for c in corrections]
                    ),
                )

        logger.info("Budgets reconciled, %d teams corrected", len(corrections))
        return corrections

    # ========== QUEUE MANAGEMENT ==========

    def release_player(self, player_id: int) -> dict[str, Any]:
        """Undo a sale: the player becomes unsold and the price is refunded."""
        player_id = _require_id(player_id, "player_id")

        with self.ledger.transaction("release_player", player_id=player_id) as session:
            # Read first to learn the owning team, then lock team -> player
            owner_id = self.ledger.get_player(session, player_id).team_id
            team = self.ledger.get_team(session, owner_id, lock=True) if owner_id else None
            player = self.ledger.get_player(session, player_id, lock=True)
            if player.status != PlayerStatus.SOLD or player.team_id != owner_id:
                raise ConflictError(f"{player.name} is not sold", player_id=player_id)

            refund = 0
            if team is not None:
                refund = min(player.sold_price or 0, team.budget - team.remaining_budget)
                team.remaining_budget += refund
            player.status = PlayerStatus.UNSOLD
            player.team_id = None
            player.sold_price = None
            session.flush()

            payload = player_payload(player)
            self._emit(
                session,
                events.config_changed("player-released", player_id=player.id, team_id=owner_id),
            )

        logger.info("Player %s released, %s refunded to team %s", player_id, refund, owner_id)
        return payload

    def add_to_queue(self, player_id: int) -> dict[str, Any]:
        """Make a pending/approved/unsold player eligible for auction."""
        player_id = _require_id(player_id, "player_id")

        with self.ledger.transaction("add_to_queue", player_id=player_id) as session:
            player = self.ledger.get_player(session, player_id, lock=True)
            if player.status == PlayerStatus.SOLD:
                raise ConflictError("Player is already sold. Release them first.", player_id=player_id)
            if player.status == PlayerStatus.ELIGIBLE:
                raise ConflictError("Player is already in the queue.", player_id=player_id)
            if player.status == PlayerStatus.AUCTIONING:
                raise ConflictError("Player is being auctioned.", player_id=player_id)

            player.status = PlayerStatus.ELIGIBLE
            session.flush()
            payload = player_payload(player)
            self._emit(session, events.config_changed("player-queued", player_id=player.id))

        return payload

    def bulk_reset_released(self) -> dict[str, Any]:
        """Return every unsold player to "approved" at its sport's minimum bid."""
        with self.ledger.transaction("bulk_reset_released") as session:
            state = self.ledger.auction_state(session, lock=True)
            reset = 0
            for sport in Sport:
                reset += (
                    session.query(Player)
                    .filter(Player.status == PlayerStatus.UNSOLD, Player.sport == sport)
                    .update(
                        {
                            "status": PlayerStatus.APPROVED,
                            "base_price": min_bid_for(state.sport_min_bids, sport),
                            "sold_price": None,
                            "team_id": None,
                        },
                        synchronize_session=False,
                    )
                )
            self._emit(session, events.config_changed("released-players-reset", count=reset))

        logger.info("Reset %d released players to approved", reset)
        return {"players_reset": reset}

    # ========== LEDGER SEEDING ==========

    def create_team(
        self,
        name: str,
        sport: str,
        budget: int | None = None,
        logo_url: str | None = None,
        is_test_data: bool = False,
    ) -> dict[str, Any]:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Team name is required", field="name")
        sport = _parse_sport(sport)
        budget = self.default_budget if budget is None else _whole_amount(budget, "budget")

        with self.ledger.transaction("create_team", name=name) as session:
            team = Team(
                name=name.strip(),
                sport=sport,
                budget=budget,
                remaining_budget=budget,
                logo_url=logo_url,
                is_test_data=is_test_data,
            )
            session.add(team)
            session.flush()
            payload = team_payload(team)
            self._emit(session, events.config_changed("team-created", team_id=team.id))

        logger.info("Created team %s (ID: %s)", payload["name"], payload["id"])
        return payload

    def register_player(
        self,
        name: str,
        sport: str,
        year: str,
        stats: dict[str, Any] | None = None,
        base_price: int | None = None,
        status: str = PlayerStatus.PENDING.value,
        photo_url: str | None = None,
        user_id: int | None = None,
        is_test_data: bool = False,
    ) -> dict[str, Any]:
        """Register a player with validated stats.

        Without an explicit base price the player is priced at the sport's
        current minimum bid.
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Player name is required", field="name")
        sport = _parse_sport(sport)
        try:
            year = AcademicYear(year)
        except ValueError as e:
            raise ValidationError(f"Unknown year '{year}'", field="year") from e
        try:
            status = PlayerStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unknown status '{status}'", field="status") from e
        if status in (PlayerStatus.AUCTIONING, PlayerStatus.SOLD):
            raise ValidationError(f"Players cannot be registered as {status.value}", field="status")
        clean_stats = validate_player_stats(sport, stats)
        if base_price is not None:
            base_price = _whole_amount(base_price, "base_price")

        with self.ledger.transaction("register_player", name=name) as session:
            if base_price is None:
                base_price = min_bid_for(self.ledger.auction_state(session).sport_min_bids, sport)
            player = Player(
                name=name.strip(),
                sport=sport,
                year=year,
                stats=clean_stats,
                base_price=base_price,
                status=status,
                photo_url=photo_url,
                user_id=user_id,
                is_test_data=is_test_data,
            )
            session.add(player)
            session.flush()
            payload = player_payload(player)
            self._emit(session, events.config_changed("player-registered", player_id=player.id))

        logger.info("Registered player %s (ID: %s)", payload["name"], payload["id"])
        return payload
