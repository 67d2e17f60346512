"""
Main FastAPI application for the live auction service.

This module wires the pieces together:
- Auction engine (state machine over the ledger database)
- Broadcast room (every websocket client on /ws)
- Broadcast worker (asyncio task that drains committed events into the room)

Request Flow:
1. An operator or bidder calls a REST endpoint (sync, runs in the thread pool)
2. The engine validates, locks rows and commits
3. After commit the event gets a sequence number and is queued on the loop
4. The worker sends it to every room member
5. Clients that missed a message re-fetch GET /api/auction/current

create_app() builds an isolated application (tests pass their own engine and
settings); the module-level `app` is what uvicorn serves.
"""

import asyncio
import contextlib
import logging

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from live_auction.api.routers import admin, auction
from live_auction.auction import events
from live_auction.auction.engine import AuctionEngine
from live_auction.auction.ledger import Ledger
from live_auction.broadcast import Room, RoomDispatcher
from live_auction.config.settings import Settings, settings
from live_auction.core.exceptions import AuctionError, InternalError, NotFoundError
from live_auction.database.connection import SessionLocal
from live_auction.database.init_db import create_database

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


def build_engine(config: Settings = settings) -> tuple[AuctionEngine, Room]:
    """Default engine: configured database, one room, a room dispatcher."""
    room = Room()
    dispatcher = RoomDispatcher(room, queue_size=config.broadcast_queue_size)
    return AuctionEngine(Ledger(SessionLocal, config), dispatcher), room


def create_app(
    engine: AuctionEngine | None = None,
    room: Room | None = None,
    config: Settings = settings,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        engine: Auction engine to serve; defaults to one over the configured database
        room: Broadcast room; must be the room of the engine's RoomDispatcher
        config: Settings (operator token, CORS origins)
    """
    if engine is None:
        engine, room = build_engine(config)
    if room is None:
        room = getattr(engine.dispatcher, "room", None) or Room()

    app = FastAPI(
        title="Live Auction API",
        description="Real-time player auction: lots, budget-capped bids, live broadcast",
        version=API_VERSION,
    )
    app.state.engine = engine
    app.state.room = room
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AuctionError)
    async def auction_error_handler(request: Request, exc: AuctionError):
        """Map engine errors to {"error": kind, "message": ..., **context}."""
        if isinstance(exc, InternalError):
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        elif isinstance(exc, NotFoundError):
            logger.warning("%s %s: %s %s", request.method, request.url.path, exc.message, exc.context)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content={"error": "validation_error", "message": "Invalid request", "details": details},
        )

    @app.on_event("startup")
    async def on_startup() -> None:
        create_database(bind=engine.ledger.bind)
        dispatcher = engine.dispatcher
        if isinstance(dispatcher, RoomDispatcher):
            dispatcher.bind(asyncio.get_running_loop())
            app.state.broadcast_task = asyncio.get_running_loop().create_task(dispatcher.run())

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        task = getattr(app.state, "broadcast_task", None)
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    @app.get("/")
    async def root():
        return {
            "message": "Live Auction API",
            "version": API_VERSION,
            "docs": f"http://{config.api_host}:{config.api_port}/docs",
        }

    @app.get("/health")
    async def health_check():
        """Health check for load balancers and monitoring."""
        return {
            "status": "healthy",
            "service": "Live Auction",
            "room_connections": room.size,
            "last_sequence": engine.dispatcher.last_sequence,
        }

    @app.get("/api/config")
    async def get_config():
        """Public, non-sensitive configuration (never the operator token)."""
        return {
            "default_team_budget": config.default_team_budget,
            "fallback_floor_price": config.fallback_floor_price,
            "operator_token_required": bool(config.operator_token),
            "broadcast_queue_size": config.broadcast_queue_size,
        }

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        """Join the auction room.

        The first message is always the state-sync snapshot; broadcasts that
        arrive while it is built are held by the room and sent after it.
        Anything the client sends is ignored.
        """
        await room.join(websocket)
        try:
            snapshot = await asyncio.to_thread(engine.current_lot)
            message = events.state_sync(snapshot).to_message(snapshot["sequence"])
            await room.sync(websocket, jsonable_encoder(message))
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            room.leave(websocket)

    app.include_router(auction.router, prefix="/api/auction", tags=["auction"])
    app.include_router(admin.router, prefix="/api/admin", tags=["admin"])

    return app


app = create_app()
