"""
CLI commands for database setup and seeding.

Database Lifecycle:
1. init-db: create tables (idempotent)
2. ensure-state: guarantee the single AuctionState row
3. seed: load teams and players from a JSON file
4. reset-db: drop everything and start over (asks for confirmation)

Seed file format:
    {
      "teams": [{"name": "Strikers", "sport": "cricket", "budget": 2000}],
      "players": [{"name": "A. Khan", "sport": "cricket", "year": "2nd",
                   "stats": {"playingRole": "Batsman"}, "status": "approved"}]
    }
"""

import json
import logging
from pathlib import Path

import typer

from live_auction.auction.engine import AuctionEngine
from live_auction.auction.ledger import Ledger
from live_auction.broadcast.dispatcher import NullDispatcher
from live_auction.config.settings import settings
from live_auction.core.exceptions import AuctionError
from live_auction.core.logging import setup_logging
from live_auction.database.connection import SessionLocal, get_session_context
from live_auction.database.init_db import create_database, ensure_auction_state, reset_database

logger = logging.getLogger(__name__)


def cli_engine() -> AuctionEngine:
    """Engine over the configured database; scripts have no room to broadcast to."""
    return AuctionEngine(Ledger(SessionLocal, settings), NullDispatcher())


def init_db():
    """
    Initialize the database with required tables.

    Example usage:
        live-auction init-db
    """
    setup_logging()
    typer.echo("Initializing database...")
    try:
        create_database()
        with get_session_context() as session:
            ensure_auction_state(session)
        typer.echo("✅ Database initialized successfully!")
    except Exception as e:
        typer.echo(f"❌ Database initialization failed: {e}")
        raise typer.Exit(1) from e


def reset_db(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Drop and recreate every table. The bid log is lost too."""
    setup_logging()
    if not yes:
        typer.confirm("This deletes all teams, players and bids. Continue?", abort=True)
    try:
        reset_database()
        with get_session_context() as session:
            ensure_auction_state(session)
        typer.echo("✅ Database reset complete!")
    except Exception as e:
        typer.echo(f"❌ Database reset failed: {e}")
        raise typer.Exit(1) from e


def ensure_state():
    """Create the auction-state row if missing, delete duplicates."""
    setup_logging()
    try:
        with get_session_context() as session:
            state = ensure_auction_state(session)
            state_id = state.id
        typer.echo(f"✅ Auction state ready (row {state_id})")
    except Exception as e:
        typer.echo(f"❌ Could not ensure auction state: {e}")
        raise typer.Exit(1) from e


def seed(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON seed file"),
    test_data: bool = typer.Option(False, "--test-data", help="Flag seeded rows as sandbox data"),
):
    """Load teams and players from a JSON file."""
    setup_logging()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        typer.echo(f"❌ Could not read {path}: {e}")
        raise typer.Exit(1) from e

    create_database()
    engine = cli_engine()
    teams = players = 0
    try:
        for team in data.get("teams", []):
            engine.create_team(**{"is_test_data": test_data, **team})
            teams += 1
        for player in data.get("players", []):
            engine.register_player(**{"is_test_data": test_data, **player})
            players += 1
    except (AuctionError, TypeError) as e:
        typer.echo(f"❌ Seeding stopped after {teams} teams and {players} players: {e}")
        raise typer.Exit(1) from e

    typer.echo(f"✅ Seeded {teams} teams and {players} players")
