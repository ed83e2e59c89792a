"""Altcoin Season Index: share of top altcoins outperforming Bitcoin.

Bitcoin's performance is read from the longest period CoinGecko returned
(90d, then 30d, 7d, 24h). Each altcoin is compared on that same field when it
has a value; otherwise its own 30d, 7d, 24h change (or 0) is used. This can
compare periods of different lengths when data is patchy. The behavior is
kept as observed in production.
"""

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from dashcache.providers.schemas import CoinMarket

#: (CoinGecko field, period label), longest first
BITCOIN_PERIODS: tuple[tuple[str, str], ...] = (
    ("price_change_percentage_90d_in_currency", "90d"),
    ("price_change_percentage_30d_in_currency", "30d"),
    ("price_change_percentage_7d_in_currency", "7d"),
    ("price_change_percentage_24h", "24h"),
)
ALTCOIN_FALLBACK_FIELDS = (
    "price_change_percentage_30d_in_currency",
    "price_change_percentage_7d_in_currency",
    "price_change_percentage_24h",
)
TOP_PERFORMERS = 10


class SeasonStatus(str, Enum):
    ALTCOIN_SEASON = "altcoin_season"
    NEUTRAL = "neutral"
    BITCOIN_SEASON = "bitcoin_season"


def season_status(index: int) -> SeasonStatus:
    if index >= 75:
        return SeasonStatus.ALTCOIN_SEASON
    if index >= 50:
        return SeasonStatus.NEUTRAL
    return SeasonStatus.BITCOIN_SEASON


def _bitcoin_performance(markets: Sequence[CoinMarket]) -> tuple[Decimal, str, str | None]:
    for coin in markets:
        if coin.id != "bitcoin":
            continue
        for field, label in BITCOIN_PERIODS:
            value = getattr(coin, field)
            if value is not None:
                return value, label, field
        break
    return Decimal("0"), "none", None


def _altcoin_performance(coin: CoinMarket, period_field: str | None) -> Decimal:
    if period_field is not None:
        value = getattr(coin, period_field)
        if value is not None:
            return value
    for field in ALTCOIN_FALLBACK_FIELDS:
        value = getattr(coin, field)
        if value is not None:
            return value
    return Decimal("0")


def altcoin_season_index(markets: Sequence[CoinMarket], total_altcoins: int = 49) -> dict[str, Any]:
    """Compute the index from a top-N market snapshot.

    Args:
        markets: Top coins by market cap, including bitcoin.
        total_altcoins: Divisor for the index (top-N minus Bitcoin).

    Returns:
        ``currentIndex`` (0-100), ``status``, ``outperformingCount``,
        ``totalCoins``, ``btcPerformance``, ``periodUsed`` and up to ten
        ``topPerformers`` sorted by performance descending.
    """
    if total_altcoins <= 0:
        raise ValueError(f"total_altcoins must be positive, got {total_altcoins}")

    btc_performance, period_used, period_field = _bitcoin_performance(markets)

    performers: list[dict[str, Any]] = []
    for coin in markets:
        if coin.id == "bitcoin":
            continue
        performance = _altcoin_performance(coin, period_field)
        if performance > btc_performance:
            performers.append(
                {
                    "id": coin.id,
                    "symbol": coin.symbol,
                    "name": coin.name,
                    "performance": performance.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
                    "rank": coin.market_cap_rank,
                }
            )

    performers.sort(key=lambda p: p["performance"], reverse=True)
    index = int(
        (Decimal(len(performers)) / total_altcoins * 100).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
    )

    return {
        "currentIndex": index,
        "status": season_status(index).value,
        "outperformingCount": len(performers),
        "totalCoins": total_altcoins,
        "btcPerformance": btc_performance.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        "periodUsed": period_used,
        "topPerformers": performers[:TOP_PERFORMERS],
    }
