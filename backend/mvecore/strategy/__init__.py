"""Signal detection and trading decision policy."""

from mvecore.strategy.cluster import detect_cluster
from mvecore.strategy.cross import detect_cross
from mvecore.strategy.decision import Decision, decide_entry_exit, check_stop_loss

__all__ = [
    "detect_cluster",
    "detect_cross",
    "Decision",
    "decide_entry_exit",
    "check_stop_loss",
]
