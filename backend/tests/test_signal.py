"""Tests for cluster and crossover detection."""

import itertools
import math

import pytest

from mvecore.models import CrossSignal
from mvecore.strategy import detect_cluster, detect_cross


class TestDetectCluster:
    """Tests for the clustering band check."""

    def test_clustered_within_band(self):
        """Gap of 0.3 on price 100 sits inside a 0.5% band."""
        result = detect_cluster([100.0, 100.1, 100.2, 100.3], 100.0, 0.5)

        assert result.clustered is True
        assert result.gap == pytest.approx(0.3)
        assert result.gap_percent == pytest.approx(0.3)
        assert result.threshold_amount == pytest.approx(0.5)

    def test_not_clustered_outside_band(self):
        result = detect_cluster([100.0, 101.0, 99.0, 100.5], 100.0, 0.5)

        assert result.clustered is False
        assert result.gap == pytest.approx(2.0)

    def test_boundary_is_clustered(self):
        """Gap exactly equal to the threshold counts as clustered."""
        # 0.5% of 200 is exactly 1.0; 100.5 - 99.5 is exactly 1.0
        result = detect_cluster([99.5, 100.0, 100.5], 200.0, 0.5)

        assert result.gap == result.threshold_amount
        assert result.clustered is True

    def test_just_over_boundary(self):
        result = detect_cluster([99.5, 100.0, 100.50001], 200.0, 0.5)
        assert result.clustered is False

    def test_threshold_scales_with_price(self):
        """The same relative spread clusters regardless of price level."""
        low = detect_cluster([1.000, 1.004], 1.0, 0.5)
        high = detect_cluster([50000.0, 50200.0], 50000.0, 0.5)

        assert low.clustered is True
        assert high.clustered is True

    def test_any_number_of_values(self):
        assert detect_cluster([100.0], 100.0, 0.5).clustered is True
        assert detect_cluster([100.0, 100.2] * 5, 100.0, 0.5).clustered is True

    @pytest.mark.parametrize(
        "values,price",
        [
            ([100.0, None, 100.0, 100.0], 100.0),
            ([100.0, 100.0, 100.0, 0.0], 100.0),
            ([100.0, math.nan, 100.0, 100.0], 100.0),
            ([100.0, 100.0, 100.0, 100.0], None),
            ([100.0, 100.0, 100.0, 100.0], 0.0),
            ([], 100.0),
        ],
    )
    def test_fails_closed_on_missing_input(self, values, price):
        result = detect_cluster(values, price, 0.5)

        assert result.clustered is False
        assert result.gap is None
        assert result.gap_percent is None


class TestDetectCross:
    """Tests for fast/slow crossover classification."""

    def test_golden_cross(self):
        assert detect_cross(99.0, 100.0, 101.0, 100.0) == CrossSignal.GOLDEN

    def test_death_cross(self):
        assert detect_cross(101.0, 100.0, 99.0, 100.0) == CrossSignal.DEATH

    def test_no_cross_when_staying_above(self):
        assert detect_cross(101.0, 100.0, 102.0, 100.0) == CrossSignal.NONE

    def test_no_cross_when_staying_below(self):
        assert detect_cross(98.0, 100.0, 99.0, 100.0) == CrossSignal.NONE

    @pytest.mark.parametrize(
        "args",
        [
            (100.0, 100.0, 101.0, 100.0),  # from a touch
            (99.0, 100.0, 100.0, 100.0),  # onto a touch
            (101.0, 100.0, 100.0, 100.0),
            (100.0, 100.0, 100.0, 100.0),  # flat
        ],
    )
    def test_equality_never_signals(self, args):
        assert detect_cross(*args) == CrossSignal.NONE

    def test_antisymmetric_under_role_swap(self):
        """Swapping fast and slow never yields the same non-NONE signal."""
        grid = [98.0, 99.0, 100.0, 101.0]
        for a, b, c, d in itertools.product(grid, repeat=4):
            forward = detect_cross(a, b, c, d)
            swapped = detect_cross(b, a, d, c)
            if forward != CrossSignal.NONE:
                assert swapped != forward
                assert {forward, swapped} == {CrossSignal.GOLDEN, CrossSignal.DEATH}
