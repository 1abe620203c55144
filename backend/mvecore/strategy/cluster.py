"""Moving-average clustering detection.

The indicators are "clustered" when the spread between the highest and the
lowest of them is within a percentage band of the current price.
"""

import math
from typing import Sequence

from mvecore.models import ClusterResult


def _missing(value: float | None) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value)) or value == 0


def detect_cluster(
    values: Sequence[float | None],
    price: float | None,
    threshold_percent: float,
) -> ClusterResult:
    """Check whether indicator values lie within ``threshold_percent`` of price.

    Args:
        values: Indicator values for the same timestamp (any number >= 1)
        price: Current price
        threshold_percent: Band width as a percentage of price (0.5 = 0.5%)

    Returns:
        ClusterResult. Any missing (None/NaN/zero) value or price yields
        ``clustered=False`` with no gap figures.
    """
    if not values or _missing(price) or any(_missing(v) for v in values):
        return ClusterResult(clustered=False)

    gap = max(values) - min(values)
    threshold_amount = price * (threshold_percent / 100)

    return ClusterResult(
        clustered=gap <= threshold_amount,
        gap=gap,
        gap_percent=(gap / price) * 100,
        threshold_amount=threshold_amount,
    )
