"""Position (trade) record model."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from mvecore.models.signal import ClusterResult

OPPOSITE_CROSSOVER = "OPPOSITE_CROSSOVER"


def stop_loss_reason(position_type: "PositionType", reference_period: int) -> str:
    """Exit reason tag for a stop-loss breach against the reference SMA.

    LONG positions stop out below the reference, SHORT positions above it.
    """
    side = "BELOW" if position_type == PositionType.LONG else "ABOVE"
    return f"STOP_LOSS_{side}_SMA{reference_period}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PositionStatus(str, Enum):
    """Lifecycle status of a position."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class PositionType(str, Enum):
    """Trade direction."""

    LONG = "LONG"
    SHORT = "SHORT"


class Position(BaseModel):
    """Single-unit position on one symbol.

    At most one OPEN position exists per symbol. Closing goes through the
    store's conditional update so that only one closer can win.
    """

    id: str | None = None
    symbol: str
    status: PositionStatus = PositionStatus.OPEN
    position_type: PositionType
    qty: float = 1.0
    entry_price: float
    entry_time: datetime = Field(default_factory=_utcnow)
    entry_indicators: dict[int, float] = Field(default_factory=dict)
    cluster_info: ClusterResult = Field(default_factory=ClusterResult)
    reference_indicator_at_entry: float | None = None
    exit_price: float | None = None
    exit_time: datetime | None = None
    exit_reason: str | None = None
    profit_loss: float | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def is_open(self) -> bool:
        return self.status == PositionStatus.OPEN

    def pnl_at(self, exit_price: float) -> float:
        """Profit/loss if closed at ``exit_price``.

        LONG: exit - entry, SHORT: entry - exit, both times quantity.
        """
        if self.position_type == PositionType.LONG:
            diff = exit_price - self.entry_price
        else:
            diff = self.entry_price - exit_price
        return diff * self.qty

    def closed(
        self,
        exit_price: float,
        reason: str,
        exit_time: datetime | None = None,
    ) -> "Position":
        """Return a CLOSED copy with exit fields and PnL filled in."""
        now = exit_time or _utcnow()
        return self.model_copy(
            update={
                "status": PositionStatus.CLOSED,
                "exit_price": exit_price,
                "exit_time": now,
                "exit_reason": reason,
                "profit_loss": self.pnl_at(exit_price),
                "updated_at": now,
            }
        )


class PnlSummary(BaseModel):
    """Aggregate realised PnL over closed positions."""

    total_pnl: float = 0.0
    count: int = 0
