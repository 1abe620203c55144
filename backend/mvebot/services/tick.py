"""Per-scheduler re-entrancy guard and tick outcomes."""

from enum import Enum


class TickOutcome(str, Enum):
    """What happened to one tick invocation."""

    COMPLETED = "completed"
    SKIPPED = "skipped"  # same scheduler already running
    IDLE = "idle"  # nothing to watch (stop-loss without an open position)
    ABORTED = "aborted"  # fetch/compute/store error, state left untouched


class TickGuard:
    """Non-blocking try-lock for one scheduler.

    ``try_acquire`` never waits: a tick that finds the guard held is skipped,
    not queued. Check-and-set happens without an await in between, so on a
    single event loop two ticks can never both acquire it.
    """

    def __init__(self, name: str):
        self.name = name
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def try_acquire(self) -> bool:
        if self._held:
            return False
        self._held = True
        return True

    def release(self) -> None:
        self._held = False
