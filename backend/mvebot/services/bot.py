"""Wiring of candle source, store, cache and the two schedulers."""

import logging

from mvebot.clients import BinanceRestClient
from mvebot.config import Settings
from mvebot.services.context import BotContext
from mvebot.services.runner import SchedulerRunner
from mvebot.services.stop_loss_scheduler import StopLossScheduler
from mvebot.services.strategy_scheduler import StrategyScheduler
from mvebot.services.tick import TickOutcome
from mvebot.storage import InMemoryPositionStore, SqlPositionStore
from mvecore.protocols import CandleSource, PositionStore

logger = logging.getLogger(__name__)


class Bot:
    """One symbol, one position, two independently guarded schedulers.

    The store implementation is chosen once at construction (dry run keeps
    positions in memory); the schedulers never know which one they use.
    """

    def __init__(self, settings: Settings, source: CandleSource, store: PositionStore):
        self.settings = settings
        self.ctx = BotContext(settings=settings, source=source, store=store)
        self.strategy = StrategyScheduler(self.ctx)
        self.stop_loss = StopLossScheduler(self.ctx)
        self.runner = SchedulerRunner(
            strategy_tick=self.strategy.tick,
            stop_loss_tick=self.stop_loss.tick,
            strategy_period=settings.strategy_tick_seconds,
            stop_loss_period=settings.stop_loss_tick_seconds,
            stop_loss_delay=settings.stop_loss_start_delay_seconds,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Bot":
        """Build a bot with the Binance REST source and the configured store."""
        source = BinanceRestClient(
            base_url=settings.binance_base_url,
            timeout=settings.request_timeout_seconds,
        )
        store: PositionStore = (
            InMemoryPositionStore() if settings.dry_run else SqlPositionStore()
        )
        return cls(settings, source, store)

    async def restore(self) -> None:
        """Recover the open position after a restart.

        Raises:
            PersistenceFailure: If the store cannot be read.
        """
        position = await self.ctx.store.restore_latest_open(self.settings.symbol)
        self.ctx.open_position = position
        if position:
            logger.info(
                f"Restored open position: {position.position_type.value} "
                f"@ {position.entry_price} (id={position.id})"
            )
        else:
            logger.info("No open position to restore")

    async def refresh_if_stale(self) -> TickOutcome | None:
        """Run one strategy tick if the cached snapshot is stale.

        Goes through the same guard as the timer-driven tick, so it never
        overlaps a scheduled one. Returns None when the cache was fresh.
        """
        if not self.ctx.cache.is_stale(self.settings.stale_after_seconds, self.ctx.clock()):
            return None
        return await self.strategy.tick()

    def start(self) -> None:
        self.runner.start()

    async def stop(self) -> None:
        await self.runner.stop()
        close = getattr(self.ctx.source, "close", None)
        if close is not None:
            await close()
