"""Cluster and crossover result models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class CrossSignal(str, Enum):
    """Directional crossover between a fast and a slow indicator."""

    GOLDEN = "GOLDEN"  # fast crossed above slow
    DEATH = "DEATH"  # fast crossed below slow
    NONE = "NONE"


class ClusterResult(BaseModel):
    """Whether the moving averages sit inside a band relative to price.

    ``gap`` is max - min across the indicator values and
    ``threshold_amount`` is price * threshold%. Fields that could not be
    computed (missing inputs) are ``None`` and ``clustered`` is False.
    """

    model_config = ConfigDict(frozen=True)

    clustered: bool = False
    gap: float | None = None
    gap_percent: float | None = None
    threshold_amount: float | None = None
