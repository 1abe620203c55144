"""In-memory position store for dry-run mode.

Nothing is persisted: positions live for the lifetime of the process and
a restart always comes back flat. Identifiers are ``dryrun-<n>`` sentinels.
"""

import logging
from datetime import datetime

from mvecore.models import PnlSummary, Position, PositionStatus

logger = logging.getLogger(__name__)

DRY_RUN_ID_PREFIX = "dryrun"


class InMemoryPositionStore:
    """Dry-run position store.

    Each method body runs without awaiting, so on a single event loop the
    status check and the update in ``close_position`` cannot interleave with
    another closer.
    """

    def __init__(self):
        self._positions: dict[str, Position] = {}
        self._counter = 0

    async def open_position(self, draft: Position) -> str:
        self._counter += 1
        position_id = f"{DRY_RUN_ID_PREFIX}-{self._counter}"
        self._positions[position_id] = draft.model_copy(
            update={"id": position_id, "status": PositionStatus.OPEN}
        )
        return position_id

    async def close_position(
        self,
        position_id: str,
        exit_price: float,
        reason: str,
        exit_time: datetime | None = None,
    ) -> Position | None:
        position = self._positions.get(position_id)
        if position is None or not position.is_open:
            logger.info(f"Position {position_id} already closed, skipping {reason}")
            return None

        closed = position.closed(exit_price, reason, exit_time)
        self._positions[position_id] = closed
        return closed

    async def restore_latest_open(self, symbol: str) -> Position | None:
        open_positions = await self.get_open(symbol)
        return open_positions[0] if open_positions else None

    async def get_history(self, symbol: str, limit: int = 100) -> list[Position]:
        positions = [p for p in reversed(self._positions.values()) if p.symbol == symbol]
        return positions[:limit]

    async def get_open(self, symbol: str) -> list[Position]:
        return [
            p
            for p in reversed(self._positions.values())
            if p.symbol == symbol and p.is_open
        ]

    async def get_pnl_total(self, symbol: str) -> PnlSummary:
        closed = [
            p
            for p in self._positions.values()
            if p.symbol == symbol and p.status == PositionStatus.CLOSED
        ]
        return PnlSummary(
            total_pnl=sum(p.profit_loss or 0.0 for p in closed),
            count=len(closed),
        )
