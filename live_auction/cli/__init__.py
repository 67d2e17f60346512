"""CLI interface for the live auction service."""

import typer

from .database import ensure_state, init_db, reset_db, seed
from .wallets import fix_budgets, reset_wallets

main = typer.Typer(help="Live auction CLI")

# Database lifecycle
main.command("init-db")(init_db)
main.command("reset-db")(reset_db)
main.command("ensure-state")(ensure_state)
main.command("seed")(seed)

# Wallet maintenance
main.command("fix-budgets")(fix_budgets)
main.command("reset-wallets")(reset_wallets)


@main.command()
def serve(
    host: str = typer.Option(None, help="Bind address (default: settings.api_host)"),
    port: int = typer.Option(None, help="Port (default: settings.api_port)"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
):
    """Run the API server. The broadcast room lives in-process, so one worker only."""
    import uvicorn

    from live_auction.config.settings import settings
    from live_auction.core.logging import setup_logging
    from live_auction.database.init_db import create_database

    setup_logging()
    create_database()
    uvicorn.run(
        "live_auction.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload or settings.api_reload,
    )
