"""Market sentiment from 24h price action and social activity from volumes.

Per-coin sentiment maps the 24h change onto 0-100 around a neutral 50
(every 1% move shifts the score by 5 points). A coin moving 2% or more
either way carries a bullish or bearish signal.
"""

from collections.abc import Sequence
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from dashcache.providers.schemas import PriceFullRow

NEUTRAL_SCORE = Decimal("50")
POINTS_PER_PERCENT = Decimal("5")
SIGNAL_THRESHOLD = Decimal("2")

#: Symbols sampled for the market sentiment snapshot
TOP_SYMBOLS = ["BTC", "ETH", "BNB", "XRP", "ADA", "SOL", "DOGE", "DOT", "AVAX", "MATIC"]


class Signal(str, Enum):
    BULLISH = "bullish"
    NEUTRAL = "neutral"
    BEARISH = "bearish"


def sentiment_score(change_24h: Decimal) -> Decimal:
    score = NEUTRAL_SCORE + change_24h * POINTS_PER_PERCENT
    score = min(max(score, Decimal("0")), Decimal("100"))
    return score.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def price_signal(change_24h: Decimal) -> Signal:
    if change_24h >= SIGNAL_THRESHOLD:
        return Signal.BULLISH
    if change_24h <= -SIGNAL_THRESHOLD:
        return Signal.BEARISH
    return Signal.NEUTRAL


def classify_score(score: Decimal) -> Signal:
    if score >= 60:
        return Signal.BULLISH
    if score <= 40:
        return Signal.BEARISH
    return Signal.NEUTRAL


def market_sentiment(quotes: dict[str, PriceFullRow]) -> dict[str, Any]:
    """Per-coin sentiment plus the overall average score and its classification."""
    coins = []
    for symbol, quote in quotes.items():
        coins.append(
            {
                "symbol": symbol,
                "price": quote.PRICE,
                "change24h": quote.CHANGEPCT24HOUR.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
                "volume24h": quote.VOLUME24HOURTO,
                "marketCap": quote.MKTCAP,
                "sentiment": sentiment_score(quote.CHANGEPCT24HOUR),
                "signal": price_signal(quote.CHANGEPCT24HOUR).value,
            }
        )

    if coins:
        overall = sum((c["sentiment"] for c in coins), Decimal("0")) / len(coins)
    else:
        overall = NEUTRAL_SCORE
    overall = overall.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return {"overallScore": overall, "overall": classify_score(overall).value, "coins": coins}


def social_activity(volumes: Sequence[tuple[date, Decimal]]) -> dict[str, Any]:
    """Normalize daily volumes to a 0-100 activity index (50 everywhere when flat)."""
    if not volumes:
        return {"data": [], "current": None, "average": None}

    values = [v for _, v in volumes]
    low, high = min(values), max(values)
    span = high - low

    data = []
    for day, volume in volumes:
        if span == 0:
            activity = NEUTRAL_SCORE
        else:
            activity = ((volume - low) / span * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        data.append({"date": day.isoformat(), "volume": volume, "activity": activity})

    average = sum((d["activity"] for d in data), Decimal("0")) / len(data)
    return {
        "data": data,
        "current": data[-1]["activity"],
        "average": average.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP),
    }
