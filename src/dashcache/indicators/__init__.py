"""Pure indicator computations over price series and market snapshots.

Every function here is deterministic and free of I/O: the same input always
produces the same output.
"""

from dashcache.indicators.altcoin_season import altcoin_season_index
from dashcache.indicators.averages import (
    exponential_moving_average,
    rolling_sma,
    simple_moving_average,
)
from dashcache.indicators.crossover import long_term_crossover_series, summarize_crossovers
from dashcache.indicators.market import market_statistics, top_movers
from dashcache.indicators.rainbow import rainbow_chart, rainbow_status
from dashcache.indicators.registry import INDICATORS, get_indicator
from dashcache.indicators.rsi import relative_strength_index
from dashcache.indicators.sentiment import market_sentiment, social_activity

__all__ = [
    "INDICATORS",
    "altcoin_season_index",
    "exponential_moving_average",
    "get_indicator",
    "long_term_crossover_series",
    "market_sentiment",
    "market_statistics",
    "rainbow_chart",
    "rainbow_status",
    "relative_strength_index",
    "rolling_sma",
    "simple_moving_average",
    "social_activity",
    "summarize_crossovers",
    "top_movers",
]
