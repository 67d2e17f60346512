"""Logging setup shared by the API server and the CLI."""

import logging
import sys
from pathlib import Path

from live_auction.config.settings import settings


def setup_logging(level: str | None = None, log_file: Path | None = None) -> None:
    """
    Configure root logging.

    Sets up dual logging output:
    - File logging for a permanent record of auction operations
    - Console logging for real-time feedback

    Falls back to settings for level and file location. Safe to call more than
    once; later calls replace the handlers.
    """
    log_file = log_file or settings.log_file
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_file))
    except OSError:
        # Read-only filesystem, console only
        pass

    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
