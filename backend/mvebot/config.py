"""Application configuration."""

from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mvecore.models import INTERVAL_SECONDS


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Market
    symbol: str = "BTCUSDT"
    strategy_interval: str = "1m"
    stop_loss_interval: str = "1s"  # Binance spot has no 30s klines
    reference_interval: str | None = None  # None = use strategy_interval

    # Strategy Parameters
    sma_periods: list[int] = [20, 50, 100, 200]
    fast_period: int = 20
    slow_period: int = 200
    reference_period: int = 200
    cluster_threshold_percent: float = 0.5

    # History requirements
    candle_limit: int = 250
    min_history: int = 200
    stop_loss_candle_limit: int = 100

    # Scheduling (seconds)
    strategy_tick_seconds: float = 60
    stop_loss_tick_seconds: float = 30
    stop_loss_start_delay_seconds: float = 5
    stale_after_seconds: float = 70

    # Binance API
    binance_base_url: str = "https://api.binance.com"
    request_timeout_seconds: float = 10.0

    # Storage
    dry_run: bool = True
    database_url: str = "postgresql://localhost/mveclusterbot"

    # Server
    host: str = "0.0.0.0"
    port: int = 4000
    debug: bool = False

    @model_validator(mode="after")
    def _check_consistency(self) -> "Settings":
        for name in ("strategy_interval", "stop_loss_interval", "reference_interval"):
            value = getattr(self, name)
            if value is not None and value not in INTERVAL_SECONDS:
                raise ValueError(f"{name}={value!r} is not a supported interval")
        if not self.sma_periods or any(p < 1 for p in self.sma_periods):
            raise ValueError("sma_periods must be a non-empty list of positive integers")
        for name in ("fast_period", "slow_period"):
            if getattr(self, name) not in self.sma_periods:
                raise ValueError(f"{name}={getattr(self, name)} must be one of sma_periods")
        if self.fast_period >= self.slow_period:
            raise ValueError("fast_period must be shorter than slow_period")
        if self.reference_period < 1:
            raise ValueError("reference_period must be positive")
        if self.cluster_threshold_percent <= 0:
            raise ValueError("cluster_threshold_percent must be positive")
        if self.min_history < max(self.sma_periods):
            raise ValueError("min_history must cover the longest SMA period")
        if self.candle_limit < self.min_history:
            raise ValueError("candle_limit must be at least min_history")
        if self.candle_limit < self.reference_period:
            raise ValueError("candle_limit must cover reference_period")
        return self

    @property
    def effective_reference_interval(self) -> str:
        """Interval the reference SMA is computed on."""
        return self.reference_interval or self.strategy_interval


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
