"""CryptoCompare adapter: deep daily history, volumes, and multi-symbol quotes.

CryptoCompare reports errors inside HTTP 200 bodies as
``{"Response": "Error", "Message": "..."}``.
"""

from datetime import date
from decimal import Decimal
from typing import Any

from dashcache.models import PricePoint
from dashcache.providers.base import FailureKind, HttpProvider, ProviderFailure, envelope_kind
from dashcache.providers.schemas import (
    HistoDayResponse,
    HistoDayRow,
    PriceFullRow,
    PriceMultiFullResponse,
)

#: histoday returns at most this many rows per request
MAX_LIMIT = 2000


class CryptoCompareClient(HttpProvider):
    """CryptoCompare min-api adapter; the API key is sent as ``api_key``."""

    name = "cryptocompare"

    def _check_envelope(self, payload: Any) -> ProviderFailure | None:
        if isinstance(payload, dict) and payload.get("Response") == "Error":
            message = str(payload.get("Message", "unknown error"))
            return self._failure(envelope_kind(message), message)
        return None

    def _params(self, **params: Any) -> dict[str, Any]:
        if self._api_key:
            params["api_key"] = self._api_key
        return params

    async def _histoday(
        self, asset: str, limit: int, vs_currency: str
    ) -> list[HistoDayRow] | ProviderFailure:
        payload = await self._get_json(
            "/v2/histoday",
            params=self._params(
                fsym=asset.upper(),
                tsym=vs_currency.upper(),
                limit=min(limit, MAX_LIMIT),
                aggregate=1,
            ),
        )
        if isinstance(payload, ProviderFailure):
            return payload
        parsed = self._parse(HistoDayResponse, payload)
        if isinstance(parsed, ProviderFailure):
            return parsed
        return parsed.Data.Data

    async def fetch_historical_daily(
        self, asset: str = "BTC", limit: int = MAX_LIMIT, vs_currency: str = "USD"
    ) -> list[PricePoint] | ProviderFailure:
        """Fetch up to ``limit`` daily candles and return their closes.

        Rows with a non-positive close (days before the asset traded) are
        dropped.
        """
        rows = await self._histoday(asset, limit, vs_currency)
        if isinstance(rows, ProviderFailure):
            return rows

        points = [
            PricePoint.from_timestamp(row.time, row.close) for row in rows if row.close > 0
        ]
        if not points:
            return self._failure(FailureKind.MALFORMED, "empty histoday series")
        return points

    async def fetch_daily_volumes(
        self, asset: str = "BTC", limit: int = 30, vs_currency: str = "USD"
    ) -> list[tuple[date, Decimal]] | ProviderFailure:
        """Fetch daily quote-currency volumes (``volumeto``), ascending by date."""
        rows = await self._histoday(asset, limit, vs_currency)
        if isinstance(rows, ProviderFailure):
            return rows
        volumes = [
            (PricePoint.from_timestamp(row.time, row.close).date, row.volumeto) for row in rows
        ]
        if not volumes:
            return self._failure(FailureKind.MALFORMED, "empty volume series")
        return volumes

    async def fetch_price_multi_full(
        self, symbols: list[str], vs_currency: str = "USD"
    ) -> dict[str, PriceFullRow] | ProviderFailure:
        """Fetch ``/pricemultifull`` and return ``RAW[symbol][vs_currency]`` rows."""
        payload = await self._get_json(
            "/pricemultifull",
            params=self._params(fsyms=",".join(symbols), tsyms=vs_currency.upper()),
        )
        if isinstance(payload, ProviderFailure):
            return payload
        parsed = self._parse(PriceMultiFullResponse, payload)
        if isinstance(parsed, ProviderFailure):
            return parsed

        quotes = {
            symbol: rows[vs_currency.upper()]
            for symbol, rows in parsed.RAW.items()
            if vs_currency.upper() in rows
        }
        if not quotes:
            return self._failure(FailureKind.MALFORMED, "no quotes in response")
        return quotes
