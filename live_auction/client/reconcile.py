"""Client-side view of the live auction.

The broadcast channel is at-most-once with no replay, so a client cannot rely
on seeing every message. LiveView applies room messages in sequence order and
falls back to the REST snapshot whenever it may have missed something:

- messages at or below the last applied sequence are ignored (stale)
- a jump in sequence numbers flags a resync (messages were lost)
- config-changed flags a resync (the payload is only a refresh signal)
- sync() replaces the whole view from a GET /api/auction/current snapshot

Usage:
    view = LiveView()
    view.sync(fetch_snapshot("http://localhost:8000"))
    for message in websocket_messages:
        view.apply(message)
        if view.needs_resync:
            view.sync(fetch_snapshot("http://localhost:8000"))
"""

import logging
from typing import Any

import httpx

from live_auction.auction import events

logger = logging.getLogger(__name__)

CURRENT_LOT_PATH = "/api/auction/current"


def fetch_snapshot(
    base_url: str, client: httpx.Client | None = None, timeout: float = 5.0
) -> dict[str, Any]:
    """Fetch the authoritative current-lot snapshot from the REST API."""
    if client is not None:
        response = client.get(CURRENT_LOT_PATH)
    else:
        response = httpx.get(base_url.rstrip("/") + CURRENT_LOT_PATH, timeout=timeout)
    response.raise_for_status()
    return response.json()


class LiveView:
    """Local view state that converges to the server's after reconnects."""

    def __init__(self) -> None:
        self.player: dict[str, Any] | None = None
        self.leading_bid: dict[str, Any] | None = None
        self.current_price: int | None = None
        self.next_min_bid: int | None = None
        self.is_auction_active = False
        self.last_result: dict[str, Any] | None = None
        self.sequence = 0
        # Nothing is known until the first snapshot
        self.needs_resync = True

    @property
    def player_id(self) -> int | None:
        return self.player["id"] if self.player else None

    def sync(self, snapshot: dict[str, Any]) -> None:
        """Replace the view wholesale from a current-lot snapshot."""
        lot = snapshot.get("current_auction")
        if lot:
            self.player = lot["player"]
            self.leading_bid = lot.get("leading_bid")
            self.current_price = lot.get("current_price")
            self.next_min_bid = lot.get("next_min_bid")
        else:
            self._clear_lot()
        self.is_auction_active = bool(snapshot.get("is_auction_active"))
        self.sequence = snapshot.get("sequence", 0)
        self.needs_resync = False
        logger.debug("View synced at sequence %s", self.sequence)

    def apply(self, message: dict[str, Any]) -> bool:
        """Apply one room message.

        Returns:
            True if the message changed the view, False if it was stale
        """
        name = message.get("event")
        payload = message.get("payload") or {}

        if name == events.STATE_SYNC:
            self.sync(payload)
            return True

        sequence = message.get("sequence", 0)
        if sequence <= self.sequence:
            return False
        if sequence != self.sequence + 1:
            logger.info("Missed messages %d..%d, resync needed", self.sequence + 1, sequence - 1)
            self.needs_resync = True
        self.sequence = sequence

        if name == events.LOT_STARTED:
            self._on_lot_started(payload)
        elif name == events.BID_ACCEPTED:
            self._on_bid_accepted(payload)
        elif name == events.LOT_RESOLVED:
            self._on_lot_resolved(payload)
        elif name == events.CONFIG_CHANGED:
            self.needs_resync = True
        else:
            logger.warning("Ignoring unknown event %s", name)
        return True

    def _clear_lot(self) -> None:
        self.player = None
        self.leading_bid = None
        self.current_price = None
        self.next_min_bid = None

    def _on_lot_started(self, payload: dict[str, Any]) -> None:
        self.player = payload["player"]
        self.leading_bid = None
        self.current_price = self.player.get("base_price")
        self.next_min_bid = self.current_price
        self.last_result = None

    def _on_bid_accepted(self, payload: dict[str, Any]) -> None:
        if payload.get("player_id") != self.player_id:
            # Bid on a lot we never saw start
            self.needs_resync = True
            return
        self.leading_bid = {
            "id": payload.get("bid_id"),
            "team_id": payload["team_id"],
            "team_name": payload.get("team_name"),
            "amount": payload["amount"],
            "created_at": payload.get("placed_at"),
        }
        self.current_price = payload["amount"]
        self.next_min_bid = payload.get("next_min_bid")

    def _on_lot_resolved(self, payload: dict[str, Any]) -> None:
        kind = payload.get("type")
        if kind == events.RESET:
            if payload.get("player_id") != self.player_id:
                self.needs_resync = True
                return
            self.leading_bid = None
            self.current_price = payload.get("amount")
            self.next_min_bid = payload.get("amount")
            return
        self.last_result = payload
        self._clear_lot()
