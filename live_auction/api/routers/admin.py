"""Administrative endpoints (/api/admin).

Every route here requires the operator role: ledger seeding, wallet resets,
budget reconciliation and queue management.
"""

from fastapi import APIRouter, Depends, status

from live_auction.api.dependencies import get_engine, require_operator
from live_auction.api.schemas import (
    BudgetCorrection,
    GlobalResetResponse,
    MinBidResponse,
    MinBidUpdate,
    PlayerCreate,
    PlayerResponse,
    ReleasedResetResponse,
    TeamCreate,
    TeamResponse,
    WalletResetResponse,
)
from live_auction.auction.engine import AuctionEngine

router = APIRouter(dependencies=[Depends(require_operator)])


# ========== LEDGER SEEDING ==========


@router.post("/teams", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
def create_team(request: TeamCreate, engine: AuctionEngine = Depends(get_engine)):
    return engine.create_team(**request.model_dump())


@router.post("/players", response_model=PlayerResponse, status_code=status.HTTP_201_CREATED)
def register_player(request: PlayerCreate, engine: AuctionEngine = Depends(get_engine)):
    """Register a player; stats are validated against the sport's schema."""
    return engine.register_player(**request.model_dump())


# ========== WALLETS ==========


@router.post("/teams/{team_id}/reset-wallet", response_model=WalletResetResponse)
def reset_team_wallet(team_id: int, engine: AuctionEngine = Depends(get_engine)):
    return engine.reset_team_wallet(team_id)


@router.post("/wallets/reset", response_model=GlobalResetResponse)
def reset_all_wallets(engine: AuctionEngine = Depends(get_engine)):
    return engine.reset_all_wallets()


@router.post("/budgets/reconcile", response_model=list[BudgetCorrection])
def reconcile_budgets(engine: AuctionEngine = Depends(get_engine)):
    """Recompute remaining budgets from sold prices; returns the corrections."""
    return engine.reconcile_budgets()


# ========== QUEUE MANAGEMENT ==========


@router.post("/players/{player_id}/release", response_model=PlayerResponse)
def release_player(player_id: int, engine: AuctionEngine = Depends(get_engine)):
    return engine.release_player(player_id)


@router.post("/players/{player_id}/queue", response_model=PlayerResponse)
def add_to_queue(player_id: int, engine: AuctionEngine = Depends(get_engine)):
    return engine.add_to_queue(player_id)


@router.put("/min-bids/{sport}", response_model=MinBidResponse)
def bulk_update_min_bid(
    sport: str, request: MinBidUpdate, engine: AuctionEngine = Depends(get_engine)
):
    return engine.bulk_update_min_bid(sport, request.value)


@router.post("/players/reset-released", response_model=ReleasedResetResponse)
def bulk_reset_released(engine: AuctionEngine = Depends(get_engine)):
    return engine.bulk_reset_released()
