"""Live auction endpoints (/api/auction).

Endpoints are plain `def` functions: FastAPI runs them in its thread pool,
where the engine's blocking database transactions belong. Events produced by
a committed operation are handed to the broadcast worker on the event loop.

Operator-only endpoints declare `Depends(require_operator)`; bidding is open
to everyone, but the override flag is ignored unless the caller is an operator.
"""

from fastapi import APIRouter, Depends, Query

from live_auction.api.dependencies import get_engine, is_operator, require_operator
from live_auction.api.schemas import (
    AuctionStateResponse,
    BidLogResponse,
    BidRequest,
    BidResponse,
    CurrentLotResponse,
    LeaderboardEntry,
    PlayerActionRequest,
    PlayerResponse,
    ResetBidRequest,
    ResetBidResponse,
    SaleResponse,
    SoldRequest,
    StartLotRequest,
    StatePatch,
)
from live_auction.auction.engine import AuctionEngine

router = APIRouter()


# ========== LOT LIFECYCLE ==========


@router.post("/start", response_model=PlayerResponse, dependencies=[Depends(require_operator)])
def start_auction(request: StartLotRequest, engine: AuctionEngine = Depends(get_engine)):
    """Put a player on the block (IDLE -> LOT_ACTIVE)."""
    return engine.start_lot(request.player_id, request.base_price)


@router.post("/bid", response_model=BidResponse)
def place_bid(
    request: BidRequest,
    engine: AuctionEngine = Depends(get_engine),
    operator: bool = Depends(is_operator),
):
    """
    Place a bid on the active lot.

    Rejections come back as 409 with a machine-readable error:
    - budget_exceeded: includes remaining_budget
    - bid_too_low: includes minimum_bid (another bid committed first)
    - conflict: the player is not on the block
    """
    return engine.place_bid(
        request.player_id,
        request.team_id,
        request.amount,
        override=request.override and operator,
    )


@router.get("/current", response_model=CurrentLotResponse)
def get_current_auction(engine: AuctionEngine = Depends(get_engine)):
    """Snapshot of the active lot; clients re-sync from here after reconnecting."""
    return engine.current_lot()


@router.post("/sold", response_model=SaleResponse, dependencies=[Depends(require_operator)])
def mark_sold(request: SoldRequest, engine: AuctionEngine = Depends(get_engine)):
    return engine.resolve_sold(request.player_id, request.team_id, request.final_price)


@router.post("/unsold", response_model=PlayerResponse, dependencies=[Depends(require_operator)])
def mark_unsold(request: PlayerActionRequest, engine: AuctionEngine = Depends(get_engine)):
    return engine.resolve_unsold(request.player_id)


@router.post("/skip", response_model=PlayerResponse, dependencies=[Depends(require_operator)])
def skip_player(request: PlayerActionRequest, engine: AuctionEngine = Depends(get_engine)):
    """Send the player back to the queue at the sport's minimum bid."""
    return engine.skip(request.player_id)


@router.post(
    "/reset-bid", response_model=ResetBidResponse, dependencies=[Depends(require_operator)]
)
def reset_current_bid(
    request: ResetBidRequest | None = None, engine: AuctionEngine = Depends(get_engine)
):
    return engine.reset_bid(request.player_id if request else None)


# ========== STATE & READ MODELS ==========


@router.get("/state", response_model=AuctionStateResponse)
def get_auction_state(engine: AuctionEngine = Depends(get_engine)):
    return engine.state_snapshot()


@router.patch("/state", response_model=AuctionStateResponse, dependencies=[Depends(require_operator)])
def update_auction_state(patch: StatePatch, engine: AuctionEngine = Depends(get_engine)):
    """Toggle flags, edit per-sport minimum bids, replace the increment schedule."""
    return engine.update_state(patch.model_dump(exclude_unset=True))


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
def get_leaderboard(
    engine: AuctionEngine = Depends(get_engine), operator: bool = Depends(is_operator)
):
    """Teams ordered by spend; sandbox teams are hidden during lockdown."""
    return engine.leaderboard(viewer_is_operator=operator)


@router.get(
    "/bids/recent", response_model=list[BidLogResponse], dependencies=[Depends(require_operator)]
)
def get_recent_bids(
    limit: int = Query(10000, ge=1, le=10000, description="Maximum number of log entries"),
    engine: AuctionEngine = Depends(get_engine),
):
    return engine.recent_bids(limit)
