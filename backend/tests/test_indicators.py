"""Tests for moving-average indicators."""

import pytest

from mvecore.indicators import compute_indicator_set, latest, previous, sma


class TestSMA:
    """Tests for SMA calculation."""

    def test_sma_basic(self):
        """Test basic SMA calculation."""
        values = [float(i) for i in range(1, 11)]  # 1-10
        result = sma(values, 3)

        # Tail-aligned: len - period + 1 values
        assert len(result) == 8
        # First value is (1+2+3)/3 = 2
        assert result[0] == pytest.approx(2.0)
        # Last value is (8+9+10)/3 = 9
        assert result[-1] == pytest.approx(9.0)

    def test_sma_period_equals_length(self):
        """A window exactly as long as the input yields one value."""
        result = sma([1.0, 2.0, 3.0, 4.0], 4)
        assert result == [pytest.approx(2.5)]

    @pytest.mark.parametrize("length", [0, 1, 5, 19])
    def test_sma_insufficient_data(self, length):
        """Fewer closes than the period gives an empty result, never a partial average."""
        values = [100.0 + i for i in range(length)]
        assert sma(values, 20) == []

    def test_sma_invalid_period(self):
        """Non-positive periods are unavailable, not an error."""
        assert sma([1.0, 2.0], 0) == []

    def test_sma_200_window(self):
        """199 closes at 100 and one at 101 average to 100.005."""
        closes = [100.0] * 199 + [101.0]
        result = sma(closes, 200)

        assert len(result) == 1
        assert result[0] == pytest.approx(100.005)

    def test_sma_is_pure(self):
        """Same input, same output; input untouched."""
        closes = [100.0, 101.0, 102.0, 103.0]
        snapshot = list(closes)
        assert sma(closes, 2) == sma(closes, 2)
        assert closes == snapshot


class TestIndicatorSet:
    """Tests for computing all configured periods at once."""

    def test_all_periods_present(self):
        closes = [float(i) for i in range(1, 251)]
        result = compute_indicator_set(closes, [20, 50, 100, 200])

        assert set(result) == {20, 50, 100, 200}
        assert len(result[20]) == 231
        assert len(result[200]) == 51
        # Mean of 231..250
        assert latest(result[20]) == pytest.approx(240.5)

    def test_short_history_leaves_long_periods_empty(self):
        closes = [100.0] * 60
        result = compute_indicator_set(closes, [20, 50, 100])

        assert len(result[20]) == 41
        assert len(result[50]) == 11
        assert result[100] == []


class TestLatestPrevious:
    def test_latest_and_previous(self):
        assert latest([1.0, 2.0, 3.0]) == 3.0
        assert previous([1.0, 2.0, 3.0]) == 2.0

    def test_unavailable(self):
        assert latest([]) is None
        assert previous([]) is None
        assert previous([1.0]) is None
