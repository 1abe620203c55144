"""Collaborator protocols for candle sources and position storage.

Any upstream feed (REST polling, a streaming buffer, a test fake) and any
storage backend (SQL, in-memory dry run) can implement these protocols to
be driven by the schedulers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from mvecore.models import Candle, PnlSummary, Position


@runtime_checkable
class CandleSource(Protocol):
    """Protocol that upstream price feeds must implement."""

    async def fetch(self, symbol: str, interval: str, limit: int) -> list[Candle]:
        """Fetch the most recent ``limit`` candles, oldest first.

        Raises:
            TransientFetchError: On timeout, HTTP failure, or bad payload.
        """
        ...


@runtime_checkable
class PositionStore(Protocol):
    """Protocol that position storage backends must implement."""

    async def open_position(self, draft: Position) -> str:
        """Insert a new OPEN position and return its identifier."""
        ...

    async def close_position(
        self,
        position_id: str,
        exit_price: float,
        reason: str,
        exit_time: datetime | None = None,
    ) -> Position | None:
        """Close a position only if it is still OPEN.

        Returns the closed record, or None if another closer got there first.
        """
        ...

    async def restore_latest_open(self, symbol: str) -> Position | None:
        """Get the newest OPEN position for a symbol, if any."""
        ...

    async def get_history(self, symbol: str, limit: int = 100) -> list[Position]:
        """Get positions for a symbol, newest first."""
        ...

    async def get_open(self, symbol: str) -> list[Position]:
        """Get OPEN positions for a symbol, newest first."""
        ...

    async def get_pnl_total(self, symbol: str) -> PnlSummary:
        """Sum realised PnL over CLOSED positions for a symbol."""
        ...
