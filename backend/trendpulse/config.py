"""
TrendPulse — Configuration Management

Screener settings read from the environment (or a .env file). The analysis
engines take no configuration; only the data client, screener, API and CLI do.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven settings; field names double as variable names."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Core ──
    app_env: str = "development"
    log_level: str = "INFO"

    # ── Binance ──
    binance_base_url: str = "https://api.binance.com"
    binance_timeout: float = 10.0

    # ── Data windows ──
    candle_limit: int = 250  # EMA200 needs 200 candles per timeframe
    volume_limit: int = 20
    volume_interval: str = "1h"
    pullback_window: int = 100

    # ── Screener ──
    min_confidence: int = 70
    max_concurrency: int = 5
    watchlist: str = "BTCUSDT,ETHUSDT,BNBUSDT,SOLUSDT,XRPUSDT"

    @property
    def watchlist_symbols(self) -> list[str]:
        """Parse the comma-separated watchlist into a list."""
        return [s.strip().upper() for s in self.watchlist.split(",") if s.strip()]

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Process-wide Settings, built on first use."""
    return Settings()
