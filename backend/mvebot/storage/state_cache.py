"""In-process cache of the last computed strategy snapshot."""

from datetime import datetime, timezone

from mvecore.models import Snapshot


class StateCache:
    """Holds the latest Snapshot for the read API.

    The strategy tick replaces the snapshot wholesale (keeping the stop-loss
    fields it does not own); the stop-loss tick patches only its own fields.
    Readers always get the current object and never mutate it.
    """

    def __init__(self):
        self._snapshot = Snapshot()

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def replace(self, snapshot: Snapshot) -> None:
        """Install a new strategy snapshot, preserving the stop-loss fields."""
        self._snapshot = snapshot.model_copy(
            update={
                "stop_loss_triggered": self._snapshot.stop_loss_triggered,
                "last_stop_loss_tick": self._snapshot.last_stop_loss_tick,
            }
        )

    def record_stop_loss_tick(self, triggered: bool, at: datetime) -> None:
        """Update the stop-loss fields only."""
        self._snapshot = self._snapshot.model_copy(
            update={"stop_loss_triggered": triggered, "last_stop_loss_tick": at}
        )

    def age_seconds(self, now: datetime | None = None) -> float | None:
        """Seconds since the last strategy tick, or None if there was none."""
        last = self._snapshot.last_strategy_tick
        if last is None:
            return None
        now = now or datetime.now(timezone.utc)
        return (now - last).total_seconds()

    def is_stale(self, threshold_seconds: float, now: datetime | None = None) -> bool:
        """True if there was no strategy tick yet or it is older than the threshold."""
        age = self.age_seconds(now)
        return age is None or age > threshold_seconds
