"""Moving-average indicators over closing-price series.

Series returned here are tail-aligned: element ``i`` of ``sma(values, p)``
is the mean of ``values[i : i + p]``, so the last element always belongs to
the most recent candle. Unlike a NaN-padded series, an unavailable
indicator is simply an empty list.
"""

from typing import Iterable, Sequence

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view


def sma(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate Simple Moving Average.

    Args:
        values: Sequence of price values, oldest first
        period: Window length in samples

    Returns:
        List of ``len(values) - period + 1`` averages, or an empty list when
        there are fewer than ``period`` values.
    """
    if period < 1 or len(values) < period:
        return []

    arr = np.asarray(values, dtype=np.float64)
    windows = sliding_window_view(arr, period)
    return windows.mean(axis=1).tolist()


def compute_indicator_set(
    closes: Sequence[float],
    periods: Iterable[int],
) -> dict[int, list[float]]:
    """Compute the full SMA series for every period.

    Recomputed from the whole history on each call; periods with
    insufficient data map to an empty list.
    """
    return {period: sma(closes, period) for period in periods}


def latest(series: Sequence[float]) -> float | None:
    """Most recent value of a series, or None if it is empty."""
    return series[-1] if series else None


def previous(series: Sequence[float]) -> float | None:
    """Value one step before the most recent, or None if unavailable."""
    return series[-2] if len(series) >= 2 else None
