"""Tests for the snapshot cache and tick guard."""

from datetime import datetime, timedelta, timezone

from mvebot.services import TickGuard
from mvebot.storage import StateCache
from mvecore.models import ClusterResult, CrossSignal, Snapshot

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestStateCache:
    def test_empty_cache_is_stale(self):
        cache = StateCache()

        assert cache.snapshot.price is None
        assert cache.age_seconds(T0) is None
        assert cache.is_stale(70, T0)

    def test_freshness(self):
        cache = StateCache()
        cache.replace(Snapshot(price=100.0, last_strategy_tick=T0))

        assert cache.age_seconds(T0 + timedelta(seconds=30)) == 30.0
        assert not cache.is_stale(70, T0 + timedelta(seconds=70))
        assert cache.is_stale(70, T0 + timedelta(seconds=71))

    def test_replace_keeps_stop_loss_fields(self):
        cache = StateCache()
        cache.record_stop_loss_tick(True, T0)

        cache.replace(
            Snapshot(
                price=101.0,
                indicators={20: 100.0},
                cluster=ClusterResult(clustered=True, gap=0.1),
                signal=CrossSignal.GOLDEN,
                last_strategy_tick=T0,
            )
        )

        snapshot = cache.snapshot
        assert snapshot.price == 101.0
        assert snapshot.signal == CrossSignal.GOLDEN
        assert snapshot.stop_loss_triggered is True
        assert snapshot.last_stop_loss_tick == T0

    def test_stop_loss_tick_keeps_strategy_fields(self):
        cache = StateCache()
        cache.replace(Snapshot(price=101.0, last_strategy_tick=T0))
        before = cache.snapshot

        cache.record_stop_loss_tick(False, T0 + timedelta(seconds=30))

        assert cache.snapshot is not before
        assert cache.snapshot.price == 101.0
        assert cache.snapshot.last_strategy_tick == T0
        assert cache.snapshot.last_stop_loss_tick == T0 + timedelta(seconds=30)


class TestTickGuard:
    def test_try_acquire_is_exclusive(self):
        guard = TickGuard("strategy")

        assert guard.try_acquire()
        assert guard.held
        assert not guard.try_acquire()

        guard.release()
        assert not guard.held
        assert guard.try_acquire()
