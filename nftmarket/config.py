"""Environment-driven configuration.

Centralized config using pydantic-settings. Reads from a .env file and
NFTMARKET_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MarketSettings(BaseSettings):
    """Marketplace configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export NFTMARKET_LOG_LEVEL=DEBUG
        export NFTMARKET_FEE_BPS=50
        export NFTMARKET_SUPPORTED_ASSETS='["0xusdc", "0xdai"]'
        export NFTMARKET_EVENT_LOG_PATH=/data/events.db
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="NFTMARKET_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Storage
    event_log_path: Path = Path(".nftmarket/events.db")

    # Marketplace construction parameters
    fee_bps: int = Field(default=25, ge=0, le=255)
    supported_assets: list[str] = Field(default_factory=list)

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton; import as `from nftmarket.config import settings`
settings = MarketSettings()
