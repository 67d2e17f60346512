"""SQLAlchemy database models for the live auction ledger.

This file defines the database schema using SQLAlchemy ORM. The ledger holds
everything that must survive a restart:

1. Teams: franchise wallets (total budget and remaining budget)
2. Players: the lots, with their lifecycle status and sale outcome
3. Bids: the transient "active bids for the current lot" view
4. Bid logs: the permanent, append-only history of every accepted bid
5. Auction state: the single row of global auction configuration

Money Rules:
- remaining_budget is a denormalized running total. It is decremented at sale
  time and can always be recomputed as budget minus the sum of sold prices
  (see Ledger.reconcile_budgets).
- 0 <= remaining_budget <= budget is enforced by CHECK constraints as well as
  by the engine.

Status Rules:
- A player's status moves pending -> approved -> eligible -> auctioning ->
  sold | unsold. unsold, eligible and approved can be re-entered.
- At most one player is "auctioning" at any time. The engine serializes lot
  starts on the AuctionState row; the partial unique index below is the
  database-level backstop.
"""

import enum
from datetime import UTC, datetime

from sqlalchemy import JSON
from sqlalchemy import Boolean
from sqlalchemy import CheckConstraint
from sqlalchemy import Column
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey
from sqlalchemy import Index
from sqlalchemy import Integer
from sqlalchemy import String
from sqlalchemy import text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def utcnow() -> datetime:
    """Timezone-aware "now" used for bid timestamps."""
    return datetime.now(UTC)


class Sport(str, enum.Enum):
    """Sports a franchise team and its players compete in."""

    CRICKET = "cricket"
    FUTSAL = "futsal"
    VOLLEYBALL = "volleyball"


class AcademicYear(str, enum.Enum):
    """Class tier of a registered player."""

    FIRST = "1st"
    SECOND = "2nd"
    THIRD = "3rd"


class PlayerStatus(str, enum.Enum):
    """Lifecycle status of a player (lot)."""

    PENDING = "pending"
    APPROVED = "approved"
    ELIGIBLE = "eligible"
    AUCTIONING = "auctioning"
    SOLD = "sold"
    UNSOLD = "unsold"


def _enum_column(enum_cls: type[enum.Enum], **kwargs) -> Column:
    """String-backed enum column storing the member values ("sold", "cricket")."""
    return Column(
        SAEnum(
            enum_cls,
            native_enum=False,
            length=20,
            values_callable=lambda members: [m.value for m in members],
            validate_strings=True,
        ),
        **kwargs,
    )


class Team(Base):
    """Franchise team bidding in the auction.

    A team's wallet is the pair (budget, remaining_budget). Bids never touch the
    wallet; only a sale (decrement), a release (refund) and the administrative
    resets/reconcile write remaining_budget.
    """

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    sport = _enum_column(Sport, nullable=False, index=True)

    budget = Column(Integer, nullable=False, default=2000)
    remaining_budget = Column(Integer, nullable=False, default=2000)

    logo_url = Column(String(500))
    is_test_data = Column(Boolean, nullable=False, default=False)

    # Sold roster - players only get a team_id when they are sold
    players = relationship("Player", back_populates="team")

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("remaining_budget >= 0", name="ck_team_remaining_non_negative"),
        CheckConstraint("remaining_budget <= budget", name="ck_team_remaining_within_budget"),
    )


class Player(Base):
    """Registered athlete, auctioned as a lot.

    stats is an open key-value payload whose shape depends on the sport; it is
    validated at registration time (see live_auction.auction.stats) and stored
    as-is afterwards.
    """

    __tablename__ = "players"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True)  # Owning user account (auth lives elsewhere)
    name = Column(String(255), nullable=False, index=True)
    sport = _enum_column(Sport, nullable=False, index=True)
    year = _enum_column(AcademicYear, nullable=False)
    photo_url = Column(String(500))
    stats = Column(JSON, nullable=False, default=dict)

    base_price = Column(Integer, nullable=True, default=50)
    status = _enum_column(PlayerStatus, nullable=False, default=PlayerStatus.PENDING, index=True)

    # Sale outcome - both stay NULL until the player is sold
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="SET NULL"), nullable=True, index=True)
    team = relationship("Team", back_populates="players")
    sold_price = Column(Integer, nullable=True)

    is_test_data = Column(Boolean, nullable=False, default=False)

    bids = relationship("Bid", back_populates="player", cascade="all, delete-orphan")

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_player_sport_status", "sport", "status"),
        # Backstop for the single-active-lot rule
        Index(
            "uq_players_single_auctioning",
            "status",
            unique=True,
            sqlite_where=text("status = 'auctioning'"),
            postgresql_where=text("status = 'auctioning'"),
        ),
    )


class Bid(Base):
    """Active bid on the current lot.

    These rows form the transient view of the lot being auctioned and are
    deleted by reset-bid and wallet resets. The permanent history lives in
    BidLog.
    """

    __tablename__ = "bids"

    id = Column(Integer, primary_key=True, index=True)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    player = relationship("Player", back_populates="bids")
    team = relationship("Team")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_bid_amount_positive"),
        Index("idx_bid_player", "player_id", "id"),
    )


class BidLog(Base):
    """Permanent, append-only record of every accepted bid."""

    __tablename__ = "bid_logs"

    id = Column(Integer, primary_key=True, index=True)
    player_id = Column(Integer, ForeignKey("players.id"), nullable=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    amount = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    auction_context = Column(String(50), nullable=False, default="main")

    player = relationship("Player")
    team = relationship("Team")

    __table_args__ = (Index("idx_bid_log_created", "created_at"),)


class AuctionState(Base):
    """Global auction configuration and the pointer to the active lot.

    Exactly one row exists. It is created by ensure_auction_state() at startup
    and is only ever updated afterwards. StartLot locks this row, which makes it
    the single global serialization point of the engine.
    """

    __tablename__ = "auction_state"

    id = Column(Integer, primary_key=True)
    current_player_id = Column(
        Integer, ForeignKey("players.id", ondelete="SET NULL"), nullable=True
    )
    current_player = relationship("Player")

    is_active = Column(Boolean, nullable=False, default=False)
    is_registration_open = Column(Boolean, nullable=False, default=True)
    testgrounds_locked = Column(Boolean, nullable=False, default=False)

    # {"cricket": 50, ...}
    sport_min_bids = Column(JSON, nullable=False)
    # [{"threshold": 0, "increment": 10}, ...] sorted ascending by threshold
    bid_increment_rules = Column(JSON, nullable=False)

    # Presentation only
    animation_duration = Column(Integer, nullable=False, default=25)
    animation_type = Column(String(50), nullable=False, default="confetti")

    started_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
