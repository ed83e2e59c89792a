"""Name -> computation lookup for the indicator functions."""

from collections.abc import Callable
from typing import Any

from dashcache.exceptions import UnknownIndicatorError
from dashcache.indicators.altcoin_season import altcoin_season_index
from dashcache.indicators.averages import exponential_moving_average, rolling_sma
from dashcache.indicators.crossover import long_term_crossover_series
from dashcache.indicators.market import market_statistics, top_movers
from dashcache.indicators.rainbow import rainbow_chart
from dashcache.indicators.rsi import relative_strength_index
from dashcache.indicators.sentiment import market_sentiment, social_activity

INDICATORS: dict[str, Callable[..., Any]] = {
    "pi_cycle": long_term_crossover_series,
    "rainbow": rainbow_chart,
    "altcoin_season": altcoin_season_index,
    "rsi": relative_strength_index,
    "sma": rolling_sma,
    "ema": exponential_moving_average,
    "market_statistics": market_statistics,
    "top_movers": top_movers,
    "market_sentiment": market_sentiment,
    "social_activity": social_activity,
}


def get_indicator(name: str) -> Callable[..., Any]:
    """Return the computation registered under ``name``.

    Raises:
        UnknownIndicatorError: If nothing is registered under ``name``.
    """
    try:
        return INDICATORS[name]
    except KeyError:
        raise UnknownIndicatorError(
            f"Unknown indicator {name!r}; expected one of {sorted(INDICATORS)}"
        ) from None
