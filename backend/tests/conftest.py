"""Shared fixtures: settings, candle factories and a fake candle source."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from mvebot.config import Settings
from mvebot.errors import TransientFetchError
from mvebot.services import BotContext
from mvebot.storage import InMemoryPositionStore
from mvecore.models import Candle, interval_seconds

# Open time of the newest candle in every generated series
NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def candles_from_closes(
    closes: list[float],
    interval: str = "1m",
    end: datetime = NOW,
) -> list[Candle]:
    """Build candles with the given closes; the last one opens at ``end``."""
    step = timedelta(seconds=interval_seconds(interval))
    n = len(closes)
    candles = []
    for i, close in enumerate(closes):
        open_time = end - step * (n - 1 - i)
        candles.append(
            Candle(
                open_time=open_time,
                open=close,
                high=close + 1,
                low=close - 1,
                close=close,
                volume=10.0,
                close_time=open_time + step - timedelta(milliseconds=1),
            )
        )
    return candles


class FakeCandleSource:
    """Candle source serving canned series per interval.

    ``gates`` holds an interval's fetch until the test sets the event;
    ``errors`` makes an interval's fetch raise.
    """

    def __init__(self, series: dict[str, list[Candle]] | None = None):
        self.series: dict[str, list[Candle]] = series or {}
        self.errors: dict[str, Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[tuple[str, str, int]] = []

    def set_closes(self, interval: str, closes: list[float], end: datetime = NOW) -> None:
        self.series[interval] = candles_from_closes(closes, interval, end)

    def calls_for(self, interval: str) -> int:
        return sum(1 for _, i, _ in self.calls if i == interval)

    async def fetch(self, symbol: str, interval: str, limit: int) -> list[Candle]:
        self.calls.append((symbol, interval, limit))
        gate = self.gates.get(interval)
        if gate is not None:
            await gate.wait()
        if interval in self.errors:
            raise self.errors[interval]
        if interval not in self.series:
            raise TransientFetchError(f"no data for {interval}")
        return self.series[interval][-limit:]


# Closing-price series (250 samples) ending in a fast/slow crossover on the
# last candle with all four SMAs inside a 0.5% band.
GOLDEN_CLOSES = [100.0] * 248 + [99.9, 101.0]
DEATH_CLOSES = [100.0] * 248 + [100.1, 99.0]
FLAT_CLOSES = [100.0] * 250


@pytest.fixture
def settings():
    """Default settings, isolated from any local .env file."""
    return Settings(_env_file=None, dry_run=True)


@pytest.fixture
def source():
    return FakeCandleSource()


@pytest.fixture
def store():
    return InMemoryPositionStore()


@pytest.fixture
def ctx(settings, source, store):
    """Bot context with a fixed clock."""
    return BotContext(settings=settings, source=source, store=store, clock=lambda: NOW)


@pytest.fixture
def make_candles():
    """Factory building candles from closing prices."""
    return candles_from_closes


@pytest.fixture
def golden_closes():
    return list(GOLDEN_CLOSES)


@pytest.fixture
def death_closes():
    return list(DEATH_CLOSES)


@pytest.fixture
def flat_closes():
    return list(FLAT_CLOSES)


@pytest.fixture
def make_ctx(source, store):
    """Factory for a context with settings overrides and the fixed clock."""

    def _make(**overrides) -> BotContext:
        overrides.setdefault("dry_run", True)
        settings = Settings(_env_file=None, **overrides)
        return BotContext(settings=settings, source=source, store=store, clock=lambda: NOW)

    return _make
