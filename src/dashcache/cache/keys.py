"""Cache key names shared by the refresh jobs and the read-only web layer.

Historical series keys live in the no-expiry tier; derived keys expire and
carry a ``<key>_meta`` companion written by ``FreshnessCache.store_with_meta``.
"""

META_SUFFIX = "_meta"

# Forever tier
PI_CYCLE_HISTORY = "pi_cycle_historical_prices"
RAINBOW_HISTORY = "rainbow_chart_historical_v2"
WALLET_COINS = "active_wallet_coins"
SYSTEM_STATS = "system_stats"

# Indicators
PI_CYCLE_FRAME = "pi_cycle_top_bitcoin_v2"
PI_CYCLE_SUMMARY = "pi_cycle_top_bitcoin_v2_summary"
RAINBOW_CHART = "rainbow_chart_bitcoin"
ALTCOIN_SEASON = "altcoin_season_index"
RSI = "av_RSI_BTCUSD_daily_14"

# Market and wallet snapshots
MARKET_STATISTICS = "market_statistics"
MARKET_TOP_MOVERS = "market_top_movers"
WALLET_SNAPSHOT = "wallet_snapshot"

# Market-data trio
GLOBAL = "global"
TRENDING = "trending"

# Sentiment
MARKET_SENTIMENT = "cryptocompare_market_sentiment"

# Economic
ECONOMIC_INDICATORS = "economic_indicators"
ECONOMIC_OVERLAY_WINDOWS = (90, 180, 365, 730)


def meta_key(key: str) -> str:
    return f"{key}{META_SUFFIX}"


def markets(vs_currency: str = "usd", per_page: int = 250, ids: str = "") -> str:
    return f"markets_{vs_currency}_{ids}_{per_page}"


def wallet_coin(coin_id: str) -> str:
    return f"wallet_coin_{coin_id}"


def fear_greed(limit: int = 30) -> str:
    return f"fear_greed_{limit}_json_world"


def news_feed(page: int, per_page: int) -> str:
    return f"crypto_news_feed_{page}_{per_page}"


def economic_calendar(start: str, end: str) -> str:
    return f"economic_calendar_{start}_{end}"


def social_activity(days: int) -> str:
    return f"cryptocompare_social_activity_{days}"


def fred_series(series_id: str, start: str, end: str) -> str:
    return f"fred_series_{series_id}_{start}_{end}"


def economic_overlay(indicator: str, days: int) -> str:
    return f"economic_overlay_{indicator}_{days}"
