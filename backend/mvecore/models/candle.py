"""Candle (K-line) data model."""

from datetime import datetime, timedelta
from typing import Sequence

from pydantic import BaseModel, ConfigDict

# Interval string to duration in seconds (Binance spot kline intervals)
INTERVAL_SECONDS = {
    "1s": 1,
    "1m": 60,
    "3m": 180,
    "5m": 300,
    "15m": 900,
    "30m": 1800,
    "1h": 3600,
    "2h": 7200,
    "4h": 14400,
    "6h": 21600,
    "8h": 28800,
    "12h": 43200,
    "1d": 86400,
}


def interval_seconds(interval: str) -> int:
    """Return the duration of a kline interval in seconds.

    Raises:
        ValueError: If the interval is not a known Binance interval.
    """
    try:
        return INTERVAL_SECONDS[interval]
    except KeyError:
        raise ValueError(f"Unsupported interval: {interval!r}") from None


class Candle(BaseModel):
    """Candlestick sample. Immutable once fetched."""

    model_config = ConfigDict(frozen=True)

    open_time: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float
    close_time: datetime


def closes_of(candles: Sequence[Candle]) -> list[float]:
    """Get list of close prices, oldest first."""
    return [c.close for c in candles]


def reference_is_current(
    reference: Sequence[Candle],
    as_of: datetime,
    interval: str,
) -> bool:
    """Check that a separately fetched series reaches ``as_of``.

    The latest reference candle must close no earlier than one reference
    interval before ``as_of`` (typically the open time of the newest
    candle of the other series fetched in the same tick).
    """
    if not reference:
        return False
    lag = timedelta(seconds=interval_seconds(interval))
    return reference[-1].close_time >= as_of - lag
