"""Database package initialization."""

from .connection import SessionLocal, build_engine, build_session_factory, engine, get_session
from .models import (
    AcademicYear,
    AuctionState,
    Base,
    Bid,
    BidLog,
    Player,
    PlayerStatus,
    Sport,
    Team,
)

__all__ = [
    "AcademicYear",
    "AuctionState",
    "Base",
    "Bid",
    "BidLog",
    "Player",
    "PlayerStatus",
    "SessionLocal",
    "Sport",
    "Team",
    "build_engine",
    "build_session_factory",
    "engine",
    "get_session",
]
