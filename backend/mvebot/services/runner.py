"""Periodic drivers for the strategy and stop-loss ticks."""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable

from mvebot.services.context import utcnow
from mvebot.services.tick import TickOutcome

logger = logging.getLogger(__name__)

TickFn = Callable[[], Awaitable[TickOutcome]]


def seconds_until_boundary(now: datetime, period: float) -> float:
    """Seconds from ``now`` to the next multiple of ``period`` since the epoch.

    Returns a full period when ``now`` sits exactly on a boundary.
    """
    remainder = now.timestamp() % period
    return period - remainder


class SchedulerRunner:
    """Fires each tick function on its own cadence.

    Every fire starts the tick as a separate task, so a slow tick never
    delays the timer: the next fire simply finds the scheduler's guard held
    and is skipped. The two cadences share nothing but the event loop.
    """

    def __init__(
        self,
        strategy_tick: TickFn,
        stop_loss_tick: TickFn,
        strategy_period: float = 60,
        stop_loss_period: float = 30,
        stop_loss_delay: float = 5,
        align_strategy: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._strategy_tick = strategy_tick
        self._stop_loss_tick = stop_loss_tick
        self.strategy_period = strategy_period
        self.stop_loss_period = stop_loss_period
        self.stop_loss_delay = stop_loss_delay
        self.align_strategy = align_strategy
        self._clock = clock

        self._loops: list[asyncio.Task] = []
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._loops)

    def start(self) -> None:
        """Start both periodic loops on the running event loop."""
        if self.running:
            return
        first_strategy = (
            seconds_until_boundary(self._clock(), self.strategy_period)
            if self.align_strategy
            else 0.0
        )
        self._loops = [
            asyncio.create_task(
                self._loop("strategy", self._strategy_tick, first_strategy, self.strategy_period)
            ),
            asyncio.create_task(
                self._loop(
                    "stop_loss", self._stop_loss_tick, self.stop_loss_delay, self.stop_loss_period
                )
            ),
        ]
        logger.info(
            f"Scheduler started: strategy every {self.strategy_period}s "
            f"(first in {first_strategy:.1f}s), stop-loss every "
            f"{self.stop_loss_period}s after {self.stop_loss_delay}s"
        )

    async def stop(self, timeout: float = 15.0) -> None:
        """Cancel the timers and wait for in-flight ticks to finish."""
        for task in self._loops:
            task.cancel()
        await asyncio.gather(*self._loops, return_exceptions=True)
        self._loops = []

        if self._inflight:
            # Ticks are not cancelled mid-way
            _, pending = await asyncio.wait(set(self._inflight), timeout=timeout)
            if pending:
                logger.warning(f"{len(pending)} tick(s) still running at shutdown")
        logger.info("Scheduler stopped")

    async def _loop(self, name: str, tick: TickFn, first_delay: float, period: float) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + first_delay
        while True:
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            self._fire(name, tick)
            deadline += period

    def _fire(self, name: str, tick: TickFn) -> None:
        task = asyncio.create_task(tick(), name=f"{name}-tick")
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
