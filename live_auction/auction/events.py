"""Domain events produced by the auction state machine.

The engine never talks to websockets. Each successful operation returns (and
hands to its dispatcher) one of these values; the broadcast layer turns them
into wire messages:

    {"event": "bid-accepted", "sequence": 42, "timestamp": "...", "payload": {...}}

Payloads are self-contained: a client can update its view from the payload
alone, without a follow-up fetch.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

LOT_STARTED = "lot-started"
BID_ACCEPTED = "bid-accepted"
LOT_RESOLVED = "lot-resolved"
CONFIG_CHANGED = "config-changed"
STATE_SYNC = "state-sync"  # sent once to a client when it joins the room

# lot-resolved subtypes
SOLD = "sold"
UNSOLD = "unsold"
SKIPPED = "skipped"
RESET = "reset"


def _now() -> datetime:
    return datetime.now(UTC)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class AuctionEvent:
    """A committed state change, ready to be published to the room."""

    name: str
    payload: dict[str, Any]
    timestamp: datetime = field(default_factory=_now)

    def to_message(self, sequence: int) -> dict[str, Any]:
        """Wire format sent to every room member."""
        return {
            "event": self.name,
            "sequence": sequence,
            "timestamp": self.timestamp.isoformat(),
            "payload": self.payload,
        }


def player_payload(player) -> dict[str, Any]:
    """Full JSON-ready view of a Player row."""
    return {
        "id": player.id,
        "name": player.name,
        "sport": player.sport.value if player.sport else None,
        "year": player.year.value if player.year else None,
        "photo_url": player.photo_url,
        "stats": dict(player.stats or {}),
        "base_price": player.base_price,
        "status": player.status.value if player.status else None,
        "team_id": player.team_id,
        "sold_price": player.sold_price,
        "is_test_data": bool(player.is_test_data),
    }


def lot_started(player) -> AuctionEvent:
    return AuctionEvent(LOT_STARTED, {"type": "started", "player": player_payload(player)})


def bid_accepted(bid, team, player, next_min_bid: int) -> AuctionEvent:
    return AuctionEvent(
        BID_ACCEPTED,
        {
            "bid_id": bid.id,
            "team_id": team.id,
            "team_name": team.name,
            "amount": bid.amount,
            "player_id": player.id,
            "player_name": player.name,
            "next_min_bid": next_min_bid,
            "placed_at": _iso(bid.created_at),
        },
    )


def lot_sold(player, team, price: int) -> AuctionEvent:
    return AuctionEvent(
        LOT_RESOLVED,
        {
            "type": SOLD,
            "player_id": player.id,
            "player_name": player.name,
            "photo_url": player.photo_url,
            "team_id": team.id,
            "team_name": team.name,
            "amount": price,
            "remaining_budget": team.remaining_budget,
        },
    )


def lot_unsold(player) -> AuctionEvent:
    return AuctionEvent(
        LOT_RESOLVED,
        {"type": UNSOLD, "player": {"id": player.id, "name": player.name, "status": UNSOLD}},
    )


def lot_skipped(player) -> AuctionEvent:
    return AuctionEvent(
        LOT_RESOLVED,
        {
            "type": SKIPPED,
            "player": {
                "id": player.id,
                "name": player.name,
                "status": player.status.value,
                "base_price": player.base_price,
            },
        },
    )


def bid_reset(player, floor_price: int) -> AuctionEvent:
    """Leading bid cleared: the lot is back at its floor with no leading team."""
    return AuctionEvent(
        LOT_RESOLVED,
        {
            "type": RESET,
            "player_id": player.id,
            "player_name": player.name,
            "amount": floor_price,
            "team_id": None,
            "team_name": None,
        },
    )


def config_changed(reason: str, **details: Any) -> AuctionEvent:
    """Generic refresh signal for leaderboards, rosters and settings panels."""
    return AuctionEvent(CONFIG_CHANGED, {"reason": reason, **details})


def state_sync(snapshot: dict[str, Any]) -> AuctionEvent:
    """Current-lot snapshot for a client joining the room (not numbered anew)."""
    return AuctionEvent(STATE_SYNC, snapshot)
