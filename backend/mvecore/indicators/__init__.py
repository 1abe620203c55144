"""Technical indicators (pure math, no I/O)."""

from mvecore.indicators.indicators import (
    sma,
    compute_indicator_set,
    latest,
    previous,
)

__all__ = [
    "sma",
    "compute_indicator_set",
    "latest",
    "previous",
]
