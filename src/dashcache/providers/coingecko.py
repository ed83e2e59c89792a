"""CoinGecko adapter: daily prices, OHLC closes, markets, global stats, trending.

The free tier serves at most 365 days of daily history, so deeper backfills
must go to CryptoCompare instead (see ``fetch_daily_prices``).
"""

from decimal import Decimal
from typing import Any, Literal

import httpx

from dashcache.models import PricePoint
from dashcache.providers.base import (
    FailureKind,
    HttpProvider,
    ProviderFailure,
    envelope_kind,
)
from dashcache.providers.schemas import (
    CoinMarket,
    GlobalData,
    GlobalResponse,
    MarketChart,
    TrendingResponse,
)


def dedupe_by_date(points: list[PricePoint]) -> list[PricePoint]:
    """Keep the last point seen for each calendar day, ascending by date.

    Daily chart endpoints append an intraday "now" sample after the midnight
    close; the later sample wins.
    """
    by_date: dict = {}
    for point in sorted(points, key=lambda p: p.timestamp):
        by_date[point.date] = point
    return list(by_date.values())


class CoinGeckoClient(HttpProvider):
    """CoinGecko public API v3 adapter.

    Args:
        client: Shared httpx client.
        base_url: API base, e.g. ``https://api.coingecko.com/api/v3``.
        api_key: Optional demo API key sent as ``x-cg-demo-api-key``.
        max_days: Free-tier daily history limit.
    """

    name = "coingecko"

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        api_key: str = "",
        max_days: int = 365,
    ) -> None:
        super().__init__(client, base_url, api_key)
        self._max_days = max_days

    @property
    def max_days(self) -> int:
        return self._max_days

    def _headers(self) -> dict[str, str] | None:
        if self._api_key:
            return {"x-cg-demo-api-key": self._api_key}
        return None

    def _check_envelope(self, payload: Any) -> ProviderFailure | None:
        if not isinstance(payload, dict):
            return None
        # {"status": {"error_code": 429, "error_message": "..."}} or {"error": "..."}
        status = payload.get("status")
        if isinstance(status, dict) and status.get("error_code"):
            message = str(status.get("error_message", "unknown error"))
            code = int(status["error_code"])
            kind = FailureKind.RATE_LIMITED if code == 429 else envelope_kind(message)
            return self._failure(kind, message, code)
        if "error" in payload:
            message = str(payload["error"])
            return self._failure(envelope_kind(message), message)
        return None

    async def _get(self, path: str, params: dict[str, Any]) -> Any:
        return await self._get_json(path, params=params, headers=self._headers())

    # ──────────────────────────────────────────────
    # Price history
    # ──────────────────────────────────────────────

    async def fetch_daily_prices(
        self,
        asset: str = "bitcoin",
        vs_currency: str = "usd",
        days_back: int | Literal["max"] = 365,
    ) -> list[PricePoint] | ProviderFailure:
        """Fetch daily closes from ``/coins/{asset}/market_chart``.

        Args:
            asset: CoinGecko coin id.
            vs_currency: Quote currency.
            days_back: Days of history, or ``"max"`` for the full range.

        Returns:
            Points ascending by date, one per day, or a ProviderFailure.

        Raises:
            ValueError: If ``days_back`` exceeds the free-tier limit. Callers
                must route deeper requests to a different provider.
        """
        if days_back != "max" and int(days_back) > self._max_days:
            raise ValueError(
                f"days_back={days_back} exceeds CoinGecko limit of {self._max_days}"
            )

        payload = await self._get(
            f"/coins/{asset}/market_chart",
            {"vs_currency": vs_currency, "days": days_back, "interval": "daily"},
        )
        if isinstance(payload, ProviderFailure):
            return payload
        chart = self._parse(MarketChart, payload)
        if isinstance(chart, ProviderFailure):
            return chart

        points = [
            PricePoint.from_timestamp(int(ms) // 1000, price)
            for ms, price in chart.prices
            if price > 0
        ]
        if not points:
            return self._failure(FailureKind.MALFORMED, "empty price series")
        return dedupe_by_date(points)

    async def fetch_ohlc_closes(
        self, asset: str = "bitcoin", vs_currency: str = "usd", days: int = 365
    ) -> list[PricePoint] | ProviderFailure:
        """Fetch ``/coins/{asset}/ohlc`` candles and keep the close as the daily price."""
        payload = await self._get(
            f"/coins/{asset}/ohlc", {"vs_currency": vs_currency, "days": days}
        )
        if isinstance(payload, ProviderFailure):
            return payload
        candles = self._parse(list[tuple[float, Decimal, Decimal, Decimal, Decimal]], payload)
        if isinstance(candles, ProviderFailure):
            return candles

        points = [
            PricePoint.from_timestamp(int(candle[0]) // 1000, candle[4])
            for candle in candles
            if candle[4] > 0
        ]
        if not points:
            return self._failure(FailureKind.MALFORMED, "empty OHLC series")
        return dedupe_by_date(points)

    # ──────────────────────────────────────────────
    # Market snapshots
    # ──────────────────────────────────────────────

    async def fetch_markets(
        self,
        vs_currency: str = "usd",
        per_page: int = 250,
        page: int = 1,
        ids: list[str] | None = None,
        price_change_percentage: str = "24h",
    ) -> list[CoinMarket] | ProviderFailure:
        """Fetch ``/coins/markets`` ordered by market cap, optionally for specific ids."""
        params: dict[str, Any] = {
            "vs_currency": vs_currency,
            "order": "market_cap_desc",
            "per_page": per_page,
            "page": page,
            "sparkline": "false",
            "price_change_percentage": price_change_percentage,
        }
        if ids:
            params["ids"] = ",".join(ids)

        payload = await self._get("/coins/markets", params)
        if isinstance(payload, ProviderFailure):
            return payload
        return self._parse(list[CoinMarket], payload)

    async def fetch_global(self) -> GlobalData | ProviderFailure:
        payload = await self._get("/global", {})
        if isinstance(payload, ProviderFailure):
            return payload
        parsed = self._parse(GlobalResponse, payload)
        if isinstance(parsed, ProviderFailure):
            return parsed
        return parsed.data

    async def fetch_trending(self) -> list[dict] | ProviderFailure:
        payload = await self._get("/search/trending", {})
        if isinstance(payload, ProviderFailure):
            return payload
        parsed = self._parse(TrendingResponse, payload)
        if isinstance(parsed, ProviderFailure):
            return parsed
        return parsed.coins
