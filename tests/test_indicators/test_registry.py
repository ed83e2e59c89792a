"""Tests for the indicator name registry."""

import pytest

from dashcache.exceptions import UnknownIndicatorError
from dashcache.indicators import INDICATORS, get_indicator
from dashcache.indicators.rsi import relative_strength_index


def test_lookup_by_name() -> None:
    """Registered names resolve to their computations."""
    assert get_indicator("rsi") is relative_strength_index
    assert {"pi_cycle", "rainbow", "altcoin_season", "rsi"} <= set(INDICATORS)


def test_unknown_name_fails_fast() -> None:
    """Unknown names raise UnknownIndicatorError."""
    with pytest.raises(UnknownIndicatorError, match="Unknown indicator 'macd'"):
        get_indicator("macd")
