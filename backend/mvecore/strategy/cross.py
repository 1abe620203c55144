"""Fast/slow moving-average crossover detection."""

from mvecore.models import CrossSignal


def detect_cross(
    prev_fast: float,
    prev_slow: float,
    curr_fast: float,
    curr_slow: float,
) -> CrossSignal:
    """Classify the transition between two consecutive fast/slow pairs.

    Strict inequalities on both sides: touching or running flat on the slow
    line never produces a signal.
    """
    if prev_fast < prev_slow and curr_fast > curr_slow:
        return CrossSignal.GOLDEN
    if prev_fast > prev_slow and curr_fast < curr_slow:
        return CrossSignal.DEATH
    return CrossSignal.NONE
