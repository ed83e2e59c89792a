"""Tests for simple and exponential moving averages.

All test values use Decimal (project convention).
"""

from decimal import Decimal

import pytest

from dashcache.indicators.averages import (
    exponential_moving_average,
    rolling_sma,
    simple_moving_average,
)


class TestSimpleMovingAverage:
    """Tests for the single-index SMA."""

    def test_null_before_window_is_full(self) -> None:
        """SMA is None for every index below window - 1."""
        prices = [Decimal(i) for i in range(1, 11)]
        for i in range(4):
            assert simple_moving_average(prices, i, 5) is None

    def test_defined_from_window_minus_one(self) -> None:
        """SMA is defined for every index >= window - 1."""
        prices = [Decimal(i) for i in range(1, 11)]
        for i in range(4, 10):
            assert simple_moving_average(prices, i, 5) is not None

    def test_constant_series_returns_constant(self) -> None:
        """Constant price P averages to exactly P."""
        prices = [Decimal("123.45")] * 20
        assert simple_moving_average(prices, 19, 7) == Decimal("123.45")

    def test_exact_window_mean(self) -> None:
        """Average covers exactly the window ending at index."""
        prices = [Decimal("1"), Decimal("2"), Decimal("3"), Decimal("4"), Decimal("5")]
        assert simple_moving_average(prices, 4, 3) == Decimal("4")
        assert simple_moving_average(prices, 2, 3) == Decimal("2")

    def test_index_out_of_range_raises(self) -> None:
        """An index past the end raises IndexError."""
        with pytest.raises(IndexError):
            simple_moving_average([Decimal("1")], 5, 1)

    def test_non_positive_window_raises(self) -> None:
        """A window below 1 raises ValueError."""
        with pytest.raises(ValueError):
            simple_moving_average([Decimal("1")], 0, 0)


class TestRollingSma:
    """The running-sum SMA agrees with the per-index SMA."""

    def test_matches_per_index(self) -> None:
        """Every index matches the direct SMA."""
        prices = [Decimal(str(100 + (i * 7) % 13)) for i in range(60)]
        rolled = rolling_sma(prices, 11)
        for i in range(len(prices)):
            assert rolled[i] == simple_moving_average(prices, i, 11)

    def test_length_matches_input(self) -> None:
        """A window longer than the series gives all None."""
        assert len(rolling_sma([Decimal("1")] * 5, 10)) == 5
        assert rolling_sma([Decimal("1")] * 5, 10) == [None] * 5


class TestExponentialMovingAverage:
    """Tests for the SMA-seeded EMA."""

    def test_seeded_with_sma(self) -> None:
        """First value at period - 1 equals the SMA of the first period prices.

        period = 3, alpha = 0.5
        seed = (1 + 2 + 3) / 3 = 2
        EMA[3] = 0.5 * 4 + 0.5 * 2 = 3
        EMA[4] = 0.5 * 5 + 0.5 * 3 = 4
        """
        prices = [Decimal("1"), Decimal("2"), Decimal("3"), Decimal("4"), Decimal("5")]
        result = exponential_moving_average(prices, 3)

        assert result[0] is None
        assert result[1] is None
        assert result[2] == Decimal("2.000000000000")
        assert result[3] == Decimal("3.000000000000")
        assert result[4] == Decimal("4.000000000000")

    def test_too_short_returns_all_none(self) -> None:
        """Fewer prices than the period gives all None."""
        assert exponential_moving_average([Decimal("1"), Decimal("2")], 3) == [None, None]

    def test_constant_series(self) -> None:
        """A constant series averages to itself."""
        result = exponential_moving_average([Decimal("7")] * 10, 4)
        assert all(v == Decimal("7") for v in result[3:])

    def test_values_are_quantized(self) -> None:
        """Values carry 12 decimal places."""
        prices = [Decimal("1.1"), Decimal("2.3"), Decimal("3.7"), Decimal("4.1")]
        result = exponential_moving_average(prices, 2)
        for value in result[1:]:
            assert value is not None
            assert value.as_tuple().exponent == -12
