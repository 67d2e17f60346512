"""Auction domain: increment policy, events, ledger and the state machine."""

from .engine import AuctionEngine
from .events import AuctionEvent
from .increments import IncrementRule, IncrementSchedule
from .ledger import Ledger

__all__ = ["AuctionEngine", "AuctionEvent", "IncrementRule", "IncrementSchedule", "Ledger"]
