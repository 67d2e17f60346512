"""CLI commands for wallet maintenance between auction rounds."""

import typer
from rich.console import Console
from rich.table import Table

from live_auction.cli.database import cli_engine
from live_auction.core.exceptions import AuctionError
from live_auction.core.logging import setup_logging

console = Console()


def fix_budgets():
    """
    Recompute every team's remaining budget from its sold players.

    remaining_budget is kept as a running total for fast reads; this command
    corrects any drift (e.g. after manual database edits).
    """
    setup_logging()
    try:
        corrections = cli_engine().reconcile_budgets()
    except AuctionError as e:
        typer.echo(f"❌ Budget reconciliation failed: {e.message}")
        raise typer.Exit(1) from e

    if not corrections:
        typer.echo("✅ All budgets are consistent")
        return
    table = Table(title="Budget corrections")
    table.add_column("Team")
    table.add_column("Before", justify="right")
    table.add_column("After", justify="right")
    for correction in corrections:
        table.add_row(
            correction["team_name"], str(correction["before"]), str(correction["after"])
        )
    console.print(table)
    typer.echo(f"✅ Corrected {len(corrections)} teams")


def reset_wallets(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Clear all active bids, release sold players and restore default budgets."""
    setup_logging()
    if not yes:
        typer.confirm("Reset every team wallet and release all sold players?", abort=True)
    try:
        result = cli_engine().reset_all_wallets()
    except AuctionError as e:
        typer.echo(f"❌ Wallet reset failed: {e.message}")
        raise typer.Exit(1) from e
    typer.echo(
        f"✅ Reset {result['teams_reset']} teams, released {result['players_released']} players, "
        f"cleared {result['bids_cleared']} bids"
    )
