"""Data models."""

from mvecore.models.candle import (
    Candle,
    INTERVAL_SECONDS,
    interval_seconds,
    closes_of,
    reference_is_current,
)
from mvecore.models.signal import ClusterResult, CrossSignal
from mvecore.models.position import (
    OPPOSITE_CROSSOVER,
    PnlSummary,
    Position,
    PositionStatus,
    PositionType,
    stop_loss_reason,
)
from mvecore.models.snapshot import Snapshot

__all__ = [
    "Candle",
    "INTERVAL_SECONDS",
    "interval_seconds",
    "closes_of",
    "reference_is_current",
    "ClusterResult",
    "CrossSignal",
    "OPPOSITE_CROSSOVER",
    "PnlSummary",
    "Position",
    "PositionStatus",
    "PositionType",
    "stop_loss_reason",
    "Snapshot",
]
