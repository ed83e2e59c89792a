"""Alpha Vantage technical-indicator adapter (RSI fallback source).

Alpha Vantage answers HTTP 200 for every outcome. Errors come back as one of
three top-level keys: ``Error Message`` (bad request), ``Note`` (call
frequency exceeded) or ``Information`` (daily quota / premium endpoint).
"""

from decimal import Decimal
from typing import Any

from dashcache.providers.base import FailureKind, HttpProvider, ProviderFailure
from dashcache.providers.schemas import RsiResponse


class AlphaVantageClient(HttpProvider):
    """Alpha Vantage adapter; ``base_url`` is the full ``/query`` endpoint."""

    name = "alpha_vantage"

    def _check_envelope(self, payload: Any) -> ProviderFailure | None:
        if not isinstance(payload, dict):
            return None
        if "Error Message" in payload:
            return self._failure(FailureKind.API_ERROR, str(payload["Error Message"]))
        for key in ("Note", "Information"):
            if key in payload:
                return self._failure(FailureKind.RATE_LIMITED, str(payload[key]))
        return None

    async def fetch_rsi(
        self, symbol: str = "BTCUSD", interval: str = "daily", period: int = 14
    ) -> dict[str, Decimal] | ProviderFailure:
        """Fetch RSI values keyed by ISO date, newest first."""
        if not self.is_configured:
            return self._failure(FailureKind.API_ERROR, "API key not configured")

        payload = await self._get_json(
            params={
                "function": "RSI",
                "symbol": symbol,
                "interval": interval,
                "time_period": period,
                "series_type": "close",
                "apikey": self._api_key,
            }
        )
        if isinstance(payload, ProviderFailure):
            return payload
        parsed = self._parse(RsiResponse, payload)
        if isinstance(parsed, ProviderFailure):
            return parsed
        if not parsed.values:
            return self._failure(FailureKind.MALFORMED, "empty RSI series")

        ordered = sorted(parsed.values.items(), key=lambda item: item[0], reverse=True)
        return {day: value.RSI for day, value in ordered}
