"""Concurrency tests: racing closers and overlapping schedulers.

Uses a store that yields to the event loop a random number of times before
each operation, standing in for a database round trip.
"""

import asyncio
import random

import pytest

from conftest import DEATH_CLOSES, GOLDEN_CLOSES, NOW
from mvebot.config import Settings
from mvebot.services import BotContext, StopLossScheduler, StrategyScheduler, TickOutcome
from mvebot.storage import InMemoryPositionStore
from mvecore.models import Position, PositionStatus, PositionType


class YieldingStore(InMemoryPositionStore):
    """In-memory store with random suspension points before each write."""

    def __init__(self, rng: random.Random):
        super().__init__()
        self.rng = rng

    async def _yield(self) -> None:
        for _ in range(self.rng.randint(0, 5)):
            await asyncio.sleep(0)

    async def open_position(self, draft: Position) -> str:
        await self._yield()
        return await super().open_position(draft)

    async def close_position(self, position_id, exit_price, reason, exit_time=None):
        await self._yield()
        return await super().close_position(position_id, exit_price, reason, exit_time)


def make_context(source, store) -> BotContext:
    return BotContext(
        settings=Settings(_env_file=None, dry_run=True),
        source=source,
        store=store,
        clock=lambda: NOW,
    )


async def seed_long(ctx, entry_price: float = 101.0) -> str:
    draft = Position(symbol="BTCUSDT", position_type=PositionType.LONG, entry_price=entry_price)
    position_id = await InMemoryPositionStore.open_position(ctx.store, draft)
    ctx.open_position = draft.model_copy(update={"id": position_id})
    return position_id


class TestRacingCloses:
    """Exactly one of two concurrent closers wins."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", range(10))
    async def test_two_closers_one_winner(self, source, seed):
        store = YieldingStore(random.Random(seed))
        ctx = make_context(source, store)
        await seed_long(ctx)

        results = await asyncio.gather(
            ctx.close_open_position(99.0, "OPPOSITE_CROSSOVER"),
            ctx.close_open_position(95.0, "STOP_LOSS_BELOW_SMA200"),
        )

        winners = [r for r in results if r is not None]
        assert len(winners) == 1
        assert ctx.open_position is None

        history = await store.get_history("BTCUSDT")
        assert len(history) == 1
        assert history[0].status == PositionStatus.CLOSED
        assert history[0].exit_reason == winners[0].exit_reason

        summary = await store.get_pnl_total("BTCUSDT")
        assert summary.count == 1
        assert summary.total_pnl == pytest.approx(winners[0].profit_loss)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", range(10))
    async def test_strategy_and_stop_loss_ticks_race(self, source, seed):
        """Opposite crossover and stop-loss both fire on the same position."""
        rng = random.Random(seed)
        store = YieldingStore(rng)
        ctx = make_context(source, store)
        seeded_id = await seed_long(ctx)

        # DEATH cross on 1m closes the LONG; 1s price 95 is also below SMA200
        source.set_closes("1m", DEATH_CLOSES)
        source.set_closes("1s", [95.0] * 100)

        strategy = StrategyScheduler(ctx)
        stop_loss = StopLossScheduler(ctx)
        ticks = [strategy.tick(), stop_loss.tick()]
        rng.shuffle(ticks)
        outcomes = await asyncio.gather(*ticks)

        assert TickOutcome.ABORTED not in outcomes

        history = await store.get_history("BTCUSDT")
        closed = [p for p in history if p.status == PositionStatus.CLOSED]
        assert [p.id for p in closed] == [seeded_id]
        assert closed[0].exit_reason in ("OPPOSITE_CROSSOVER", "STOP_LOSS_BELOW_SMA200")

        # A strategy tick that runs after the stop-loss may legitimately open
        # a SHORT on the same death cross, but never more than one position.
        open_positions = await store.get_open("BTCUSDT")
        assert len(open_positions) <= 1
        if open_positions:
            assert ctx.open_position.id == open_positions[0].id
        else:
            assert ctx.open_position is None


class TestSingleOpenPosition:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", range(5))
    async def test_concurrent_strategy_ticks_open_once(self, source, seed):
        """Overlapping strategy fires never open two positions."""
        store = YieldingStore(random.Random(seed))
        ctx = make_context(source, store)
        source.set_closes("1m", GOLDEN_CLOSES)
        strategy = StrategyScheduler(ctx)

        outcomes = await asyncio.gather(*(strategy.tick() for _ in range(4)))

        assert outcomes.count(TickOutcome.COMPLETED) >= 1
        assert set(outcomes) <= {TickOutcome.COMPLETED, TickOutcome.SKIPPED}
        assert len(await store.get_open("BTCUSDT")) <= 1
        assert len(await store.get_history("BTCUSDT")) == 1
