"""Entry/exit decision policy shared by the schedulers.

Signal Logic:
- No open position, indicators clustered:
  GOLDEN cross -> open LONG, DEATH cross -> open SHORT
- Open position, opposite cross -> close (OPPOSITE_CROSSOVER)
- Otherwise hold

Stop-loss:
- LONG closes when price < reference SMA
- SHORT closes when price > reference SMA
"""

from enum import Enum

from mvecore.models import ClusterResult, CrossSignal, PositionType, stop_loss_reason


class Decision(str, Enum):
    """Action the strategy tick should take."""

    OPEN_LONG = "OPEN_LONG"
    OPEN_SHORT = "OPEN_SHORT"
    CLOSE_OPPOSITE = "CLOSE_OPPOSITE"
    HOLD = "HOLD"


def decide_entry_exit(
    open_position_type: PositionType | None,
    cluster: ClusterResult,
    signal: CrossSignal,
) -> Decision:
    """Apply the entry/exit rules in order.

    Args:
        open_position_type: Side of the currently open position, or None
        cluster: Cluster result for the current tick
        signal: Crossover signal for the current tick
    """
    if open_position_type is None:
        if cluster.clustered:
            if signal == CrossSignal.GOLDEN:
                return Decision.OPEN_LONG
            if signal == CrossSignal.DEATH:
                return Decision.OPEN_SHORT
        return Decision.HOLD

    if (signal == CrossSignal.DEATH and open_position_type == PositionType.LONG) or (
        signal == CrossSignal.GOLDEN and open_position_type == PositionType.SHORT
    ):
        return Decision.CLOSE_OPPOSITE

    return Decision.HOLD


def check_stop_loss(
    position_type: PositionType,
    price: float,
    reference: float,
    reference_period: int,
) -> str | None:
    """Return the stop-loss exit reason if price breached the reference, else None."""
    if position_type == PositionType.LONG and price < reference:
        return stop_loss_reason(position_type, reference_period)
    if position_type == PositionType.SHORT and price > reference:
        return stop_loss_reason(position_type, reference_period)
    return None
