"""Shared mutable state for the two schedulers."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from mvebot.config import Settings
from mvebot.services.tick import TickGuard
from mvebot.storage import StateCache
from mvecore.models import Position
from mvecore.protocols import CandleSource, PositionStore

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BotContext:
    """Everything the strategy and stop-loss ticks share.

    Lives from process start to shutdown. ``open_position`` mirrors the one
    OPEN record in the store; each scheduler has its own guard so the two
    never block each other, only themselves.
    """

    settings: Settings
    source: CandleSource
    store: PositionStore
    cache: StateCache = field(default_factory=StateCache)
    strategy_guard: TickGuard = field(default_factory=lambda: TickGuard("strategy"))
    stop_loss_guard: TickGuard = field(default_factory=lambda: TickGuard("stop_loss"))
    open_position: Position | None = None
    clock: Callable[[], datetime] = utcnow

    async def close_open_position(self, price: float, reason: str) -> Position | None:
        """Close the tracked position through the store's conditional update.

        Returns the closed record, or None if there was nothing to close or
        the other scheduler closed it first. Either way the position is no
        longer open afterwards, so the in-memory handle is cleared. A store
        failure propagates and leaves the handle in place.
        """
        position = self.open_position
        if position is None or position.id is None:
            return None

        closed = await self.store.close_position(
            position.id, price, reason, exit_time=self.clock()
        )
        if self.open_position is position:
            self.open_position = None

        if closed is not None:
            logger.info(
                f"CLOSE {closed.position_type.value} @ {price} | "
                f"PnL: {closed.profit_loss:.4f} | Reason: {reason}"
            )
        return closed
