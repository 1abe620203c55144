"""Last computed strategy state, served to the query surface."""

from datetime import datetime

from pydantic import BaseModel, Field

from mvecore.models.signal import ClusterResult, CrossSignal


class Snapshot(BaseModel):
    """Snapshot of the most recent strategy and stop-loss ticks.

    Starts with empty fields at process start and is replaced wholesale by
    every successful strategy tick. The stop-loss tick only touches
    ``stop_loss_triggered`` and ``last_stop_loss_tick``.
    """

    price: float | None = None
    indicators: dict[int, float] = Field(default_factory=dict)
    reference_indicator: float | None = None
    cluster: ClusterResult = Field(default_factory=ClusterResult)
    signal: CrossSignal = CrossSignal.NONE
    stop_loss_triggered: bool = False
    last_strategy_tick: datetime | None = None
    last_stop_loss_tick: datetime | None = None
