"""Application settings and configuration management.

This file implements the centralized configuration system using Pydantic Settings.
It handles environment variables, default values, and configuration validation
for the live auction service.

Configuration Sources (in priority order):
1. Environment variables (highest priority)
2. .env file values
3. Default values defined here (lowest priority)

Note the split between two kinds of configuration:

- Process settings (this file): where the database lives, how to log, which
  token unlocks operator endpoints. These are fixed for the lifetime of the
  process.
- Auction settings (the AuctionState row): sport minimum bids, increment
  schedule, active/registration flags. These change while the auction runs and
  are edited through the API. The values below only seed that row the first
  time it is created.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide settings with environment variable support.

    Example Usage:
    - In code: `settings.database_url`
    - Environment variable: `DATABASE_URL=postgresql://auction:secret@db/auction`
    - .env file: `database_url=sqlite:///dev.db`
    """

    model_config = SettingsConfigDict(
        env_file=".env",  # Load from .env file in project root
        env_file_encoding="utf-8",
        case_sensitive=False,  # Allow DATABASE_URL or database_url
        extra="ignore",
    )

    # API Configuration - FastAPI web server settings
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    api_reload: bool = False
    cors_origins: list[str] = ["*"]

    # Database Configuration - SQLAlchemy connection settings
    database_url: str = "sqlite:///data/database/live_auction.db"
    database_pool_size: int = 5
    database_echo: bool = False  # Log all SQL queries (True for debugging)

    # Operator gate - requests must send X-Operator-Token when this is set.
    # Left empty, every caller is treated as an operator (local development).
    operator_token: str | None = None

    # Ledger defaults taken from the original auction rules
    default_team_budget: int = 2000
    fallback_floor_price: int = 50  # Used when neither override nor base price is known
    default_sport_min_bids: dict[str, int] = {"cricket": 50, "futsal": 50, "volleyball": 50}
    default_increment_rules: list[dict[str, int]] = [
        {"threshold": 0, "increment": 10},
        {"threshold": 200, "increment": 50},
        {"threshold": 500, "increment": 100},
    ]
    default_animation_duration: int = 25
    default_animation_type: str = "confetti"

    # Broadcast layer
    broadcast_queue_size: int = 1000  # Pending messages before new ones are dropped

    # Logging Configuration
    log_level: str = "INFO"
    log_file: Path = Path("data/logs/live_auction.log")

    @property
    def project_root(self) -> Path:
        """Get the project root directory.

        live_auction/config/settings.py -> live_auction/config -> live_auction -> project_root
        """
        return Path(__file__).parent.parent.parent

    @property
    def data_dir(self) -> Path:
        """Directory for the SQLite database file and log files."""
        return self.project_root / "data"

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is a SQLite file/memory database."""
        return self.database_url.startswith("sqlite")


# Global settings instance - import it anywhere:
# from live_auction.config.settings import settings
settings = Settings()
