"""Pydantic schemas for API request/response models.

Request schemas only check shape (types, required fields). Business rules -
positive amounts, known sports, legal increment schedules - are enforced by
the auction engine so the CLI and the API reject the same inputs the same way.

Money fields on requests are floats: the engine rounds them to whole points.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

# ========== REQUEST SCHEMAS ==========


class StartLotRequest(BaseModel):
    player_id: int
    base_price: float | None = None


class BidRequest(BaseModel):
    """Bid on the active lot. override is honored for operators only."""

    player_id: int
    team_id: int
    amount: float
    override: bool = False


class SoldRequest(BaseModel):
    player_id: int
    team_id: int
    final_price: float


class PlayerActionRequest(BaseModel):
    player_id: int


class ResetBidRequest(BaseModel):
    player_id: int | None = None


class StatePatch(BaseModel):
    """Partial update of the auction-state singleton. Unset fields are left alone."""

    model_config = ConfigDict(extra="forbid")

    is_active: bool | None = None
    is_registration_open: bool | None = None
    testgrounds_locked: bool | None = None
    sport_min_bids: dict[str, Any] | None = None
    bid_increment_rules: list[dict[str, Any]] | None = None
    animation_duration: float | None = None
    animation_type: str | None = None


class TeamCreate(BaseModel):
    name: str
    sport: str
    budget: float | None = None
    logo_url: str | None = None
    is_test_data: bool = False


class PlayerCreate(BaseModel):
    name: str
    sport: str
    year: str
    stats: dict[str, Any] | None = None
    base_price: float | None = None
    status: str = "pending"
    photo_url: str | None = None
    user_id: int | None = None
    is_test_data: bool = False


class MinBidUpdate(BaseModel):
    value: float


# ========== RESPONSE SCHEMAS ==========


class TeamResponse(BaseModel):
    id: int
    name: str
    sport: str
    budget: int
    remaining_budget: int
    logo_url: str | None = None
    is_test_data: bool = False


class PlayerResponse(BaseModel):
    id: int
    name: str
    sport: str
    year: str
    photo_url: str | None = None
    stats: dict[str, Any] = {}
    base_price: int | None = None
    status: str
    team_id: int | None = None
    sold_price: int | None = None
    is_test_data: bool = False


class BidResponse(BaseModel):
    """An accepted bid plus the minimum the next bid has to reach."""

    id: int
    player_id: int
    player_name: str
    team_id: int
    team_name: str
    amount: int
    created_at: datetime
    next_min_bid: int
    override: bool = False


class LeadingBidResponse(BaseModel):
    id: int
    team_id: int
    team_name: str
    amount: int
    created_at: datetime


class LotResponse(BaseModel):
    player: PlayerResponse
    leading_bid: LeadingBidResponse | None = None
    current_price: int
    next_min_bid: int


class CurrentLotResponse(BaseModel):
    """Authoritative snapshot used by clients to (re)sync.

    sequence is the last broadcast sequence number at snapshot time: room
    messages with a sequence at or below it are already reflected here.
    """

    current_auction: LotResponse | None = None
    is_auction_active: bool
    sequence: int


class SaleResponse(BaseModel):
    player: PlayerResponse
    team: TeamResponse
    sold_price: int


class ResetBidResponse(BaseModel):
    player_id: int
    floor_price: int
    bids_cleared: int


class AuctionStateResponse(BaseModel):
    is_active: bool
    is_registration_open: bool
    testgrounds_locked: bool
    sport_min_bids: dict[str, int]
    bid_increment_rules: list[dict[str, int]]
    animation_duration: int
    animation_type: str
    current_player_id: int | None = None


class RosterPlayerResponse(BaseModel):
    id: int
    name: str
    photo_url: str | None = None
    year: str
    sold_price: int | None = None
    stats: dict[str, Any] = {}


class LeaderboardEntry(TeamResponse):
    total_spent: int
    players_count: int
    players: list[RosterPlayerResponse]


class BidLogResponse(BaseModel):
    id: int
    amount: int
    created_at: datetime
    team_id: int
    team_name: str | None = None
    player_id: int
    player_name: str | None = None
    auction_context: str


class WalletResetResponse(BaseModel):
    team: TeamResponse
    players_released: int


class GlobalResetResponse(BaseModel):
    teams_reset: int
    players_released: int
    bids_cleared: int


class BudgetCorrection(BaseModel):
    team_id: int
    team_name: str
    before: int
    after: int


class MinBidResponse(BaseModel):
    sport_min_bids: dict[str, int]
    players_updated: int


class ReleasedResetResponse(BaseModel):
    players_reset: int
