"""Strategy tick: indicators, clustering, crossover, entry/exit.

One tick:
1. Skip if a strategy tick is already running
2. Fetch primary-interval candles (and the reference interval, if separate)
3. Compute the SMA set, cluster result and fast/slow crossover
4. Open on a clustered cross when flat, close on the opposite cross
5. Replace the cached snapshot

Any fetch, compute or store error aborts the tick and leaves the previous
snapshot and position untouched.
"""

import logging

from mvebot.errors import InsufficientHistoryError, PersistenceFailure, TransientFetchError
from mvebot.services.context import BotContext
from mvebot.services.tick import TickOutcome
from mvecore.indicators import compute_indicator_set, latest, previous, sma
from mvecore.models import (
    Candle,
    ClusterResult,
    OPPOSITE_CROSSOVER,
    Position,
    PositionType,
    Snapshot,
    closes_of,
    reference_is_current,
)
from mvecore.strategy import Decision, decide_entry_exit, detect_cluster, detect_cross

logger = logging.getLogger(__name__)


class StrategyScheduler:
    """Runs strategy ticks against a shared BotContext."""

    def __init__(self, ctx: BotContext):
        self.ctx = ctx
        self.settings = ctx.settings

    async def tick(self) -> TickOutcome:
        """Run one guarded strategy tick."""
        guard = self.ctx.strategy_guard
        if not guard.try_acquire():
            logger.debug("Strategy tick already in flight, skipping")
            return TickOutcome.SKIPPED

        try:
            await self._run()
            return TickOutcome.COMPLETED
        except InsufficientHistoryError as e:
            logger.warning(f"Strategy tick skipped: {e}")
        except TransientFetchError as e:
            logger.error(f"Strategy tick fetch failed: {e}")
        except PersistenceFailure as e:
            logger.error(f"Strategy tick store error: {e}")
        except Exception:
            logger.exception("Strategy tick error")
        finally:
            guard.release()
        return TickOutcome.ABORTED

    async def _run(self) -> None:
        settings = self.settings
        candles = await self.ctx.source.fetch(
            settings.symbol, settings.strategy_interval, settings.candle_limit
        )
        if len(candles) < settings.min_history:
            raise InsufficientHistoryError(
                f"{len(candles)} {settings.strategy_interval} candles, "
                f"need {settings.min_history}"
            )

        closes = closes_of(candles)
        price = closes[-1]

        series = compute_indicator_set(closes, settings.sma_periods)
        fast = series[settings.fast_period]
        slow = series[settings.slow_period]
        if len(fast) < 2 or len(slow) < 2:
            raise InsufficientHistoryError("Not enough SMA data points for crossover")

        values = {period: latest(s) for period, s in series.items()}
        reference = await self._reference_indicator(candles, closes)

        cluster = detect_cluster(
            list(values.values()), price, settings.cluster_threshold_percent
        )
        signal = detect_cross(previous(fast), previous(slow), latest(fast), latest(slow))

        position = self.ctx.open_position
        decision = decide_entry_exit(
            position.position_type if position else None, cluster, signal
        )

        if decision == Decision.OPEN_LONG:
            await self._open(PositionType.LONG, price, values, cluster, reference)
        elif decision == Decision.OPEN_SHORT:
            await self._open(PositionType.SHORT, price, values, cluster, reference)
        elif decision == Decision.CLOSE_OPPOSITE:
            await self.ctx.close_open_position(price, OPPOSITE_CROSSOVER)

        now = self.ctx.clock()
        self.ctx.cache.replace(
            Snapshot(
                price=price,
                indicators=values,
                reference_indicator=reference,
                cluster=cluster,
                signal=signal,
                last_strategy_tick=now,
            )
        )

        open_position = self.ctx.open_position
        pos_text = (
            f"{open_position.position_type.value} @ {open_position.entry_price}"
            if open_position
            else "NONE"
        )
        gap_text = f"{cluster.gap_percent:.3f}%" if cluster.gap_percent is not None else "n/a"
        logger.info(
            f"STRATEGY | Price: {price} | "
            f"SMA{settings.fast_period}: {latest(fast):.2f} | "
            f"SMA{settings.slow_period}: {latest(slow):.2f} | "
            f"Clustered: {cluster.clustered} ({gap_text}) | "
            f"Signal: {signal.value} | Position: {pos_text}"
        )

    async def _reference_indicator(
        self, candles: list[Candle], closes: list[float]
    ) -> float | None:
        """Reference SMA on the reference interval, or None if unavailable.

        Without a separate reference interval it is computed on the primary
        closes. A separately fetched series that lags the primary one is
        ignored for this tick.
        """
        settings = self.settings
        period = settings.reference_period
        if settings.reference_interval is None:
            return latest(sma(closes, period))

        ref_candles = await self.ctx.source.fetch(
            settings.symbol, settings.reference_interval, settings.candle_limit
        )
        value = latest(sma(closes_of(ref_candles), period))
        if value is None:
            logger.warning(
                f"Reference SMA{period} unavailable: {len(ref_candles)} "
                f"{settings.reference_interval} candles"
            )
            return None
        if not reference_is_current(
            ref_candles, candles[-1].open_time, settings.reference_interval
        ):
            logger.warning(
                f"Reference {settings.reference_interval} series lags the "
                f"{settings.strategy_interval} series, ignoring SMA{period}"
            )
            return None
        return value

    async def _open(
        self,
        position_type: PositionType,
        price: float,
        values: dict[int, float],
        cluster: ClusterResult,
        reference: float | None,
    ) -> None:
        now = self.ctx.clock()
        draft = Position(
            symbol=self.settings.symbol,
            position_type=position_type,
            entry_price=price,
            entry_time=now,
            entry_indicators=values,
            cluster_info=cluster,
            reference_indicator_at_entry=reference,
            created_at=now,
            updated_at=now,
        )
        position_id = await self.ctx.store.open_position(draft)
        self.ctx.open_position = draft.model_copy(update={"id": position_id})
        logger.info(
            f"OPEN {position_type.value} @ {price} | "
            f"Cluster Gap: {cluster.gap_percent:.3f}% | ID: {position_id}"
        )
