"""Aggregate statistics over a market snapshot."""

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from dashcache.providers.schemas import CoinMarket

TOP_MOVERS = 5


def market_statistics(markets: Sequence[CoinMarket]) -> dict[str, Any]:
    """Total market cap and volume, mean 24h change, gainer and loser counts."""
    changes = [c.price_change_percentage_24h for c in markets if c.price_change_percentage_24h is not None]
    average = sum(changes, Decimal("0")) / len(changes) if changes else Decimal("0")
    return {
        "totalMarketCap": sum((c.market_cap or Decimal("0") for c in markets), Decimal("0")),
        "totalVolume": sum((c.total_volume or Decimal("0") for c in markets), Decimal("0")),
        "averageChange24h": average.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        "gainersCount": sum(1 for change in changes if change > 0),
        "losersCount": sum(1 for change in changes if change < 0),
        "coinCount": len(markets),
    }


def top_movers(markets: Sequence[CoinMarket], limit: int = TOP_MOVERS) -> dict[str, list[dict]]:
    """Largest 24h gainers and losers, ``limit`` of each."""
    with_change = [c for c in markets if c.price_change_percentage_24h is not None]
    ordered = sorted(with_change, key=lambda c: c.price_change_percentage_24h, reverse=True)

    def _row(coin: CoinMarket) -> dict:
        return {
            "id": coin.id,
            "symbol": coin.symbol,
            "name": coin.name,
            "price": coin.current_price,
            "change24h": coin.price_change_percentage_24h,
        }

    gainers = [_row(c) for c in ordered if c.price_change_percentage_24h > 0][:limit]
    losers = [_row(c) for c in reversed(ordered) if c.price_change_percentage_24h < 0][:limit]
    return {"gainers": gainers, "losers": losers}
