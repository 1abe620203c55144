"""Stop-loss watchdog tick.

Runs on a faster cadence than the strategy and only while a position is
open. The reference SMA is recomputed from freshly fetched candles, never
read from the strategy snapshot.
"""

import logging

from mvebot.errors import InsufficientHistoryError, PersistenceFailure, TransientFetchError
from mvebot.services.context import BotContext
from mvebot.services.tick import TickOutcome
from mvecore.indicators import latest, sma
from mvecore.models import closes_of, reference_is_current
from mvecore.strategy import check_stop_loss

logger = logging.getLogger(__name__)


class StopLossScheduler:
    """Force-closes the open position when price crosses the reference SMA."""

    def __init__(self, ctx: BotContext):
        self.ctx = ctx
        self.settings = ctx.settings

    async def tick(self) -> TickOutcome:
        """Run one guarded stop-loss tick."""
        if self.ctx.open_position is None:
            return TickOutcome.IDLE

        guard = self.ctx.stop_loss_guard
        if not guard.try_acquire():
            logger.debug("Stop-loss tick already in flight, skipping")
            return TickOutcome.SKIPPED

        try:
            await self._run()
            return TickOutcome.COMPLETED
        except InsufficientHistoryError as e:
            logger.warning(f"Stop-loss tick skipped: {e}")
        except TransientFetchError as e:
            logger.error(f"Stop-loss tick fetch failed: {e}")
        except PersistenceFailure as e:
            logger.error(f"Stop-loss tick store error: {e}")
        except Exception:
            logger.exception("Stop-loss tick error")
        finally:
            guard.release()
        return TickOutcome.ABORTED

    async def _run(self) -> None:
        settings = self.settings
        ref_interval = settings.effective_reference_interval
        period = settings.reference_period

        candles = await self.ctx.source.fetch(
            settings.symbol, settings.stop_loss_interval, settings.stop_loss_candle_limit
        )
        if not candles:
            raise InsufficientHistoryError(f"No {settings.stop_loss_interval} candles")
        price = candles[-1].close

        ref_candles = await self.ctx.source.fetch(
            settings.symbol, ref_interval, settings.candle_limit
        )
        reference = latest(sma(closes_of(ref_candles), period))
        if reference is None:
            raise InsufficientHistoryError(
                f"{len(ref_candles)} {ref_interval} candles, need {period}"
            )
        if not reference_is_current(ref_candles, candles[-1].open_time, ref_interval):
            raise InsufficientHistoryError(
                f"Reference {ref_interval} series lags the {settings.stop_loss_interval} series"
            )

        # The strategy tick may have closed it while we were fetching
        position = self.ctx.open_position
        triggered = False
        if position is not None:
            reason = check_stop_loss(position.position_type, price, reference, period)
            if reason is not None:
                closed = await self.ctx.close_open_position(price, reason)
                triggered = closed is not None
                if triggered:
                    logger.info(
                        f"STOP-LOSS TRIGGERED | Price: {price} | "
                        f"SMA{period}: {reference:.2f}"
                    )

        self.ctx.cache.record_stop_loss_tick(triggered, self.ctx.clock())
