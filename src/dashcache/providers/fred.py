"""FRED (Federal Reserve Economic Data) series adapter."""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from dashcache.providers.base import FailureKind, HttpProvider, ProviderFailure
from dashcache.providers.schemas import FredObservationsResponse

#: Indicator name -> (FRED series id, display name)
FRED_SERIES: dict[str, tuple[str, str]] = {
    "federal_funds_rate": ("FEDFUNDS", "Federal Funds Rate"),
    "inflation_cpi": ("CPIAUCSL", "Consumer Price Index"),
    "unemployment_rate": ("UNRATE", "Unemployment Rate"),
    "dxy_dollar_index": ("DTWEXBGS", "US Dollar Index"),
}


class FredClient(HttpProvider):
    """FRED adapter; errors arrive as ``error_code`` / ``error_message``."""

    name = "fred"

    def _check_envelope(self, payload: Any) -> ProviderFailure | None:
        if isinstance(payload, dict) and "error_code" in payload:
            code = int(payload["error_code"])
            kind = FailureKind.RATE_LIMITED if code == 429 else FailureKind.API_ERROR
            return self._failure(kind, str(payload.get("error_message", "unknown")), code)
        return None

    async def fetch_series(
        self, series_id: str, start: date, end: date
    ) -> list[tuple[date, Decimal]] | ProviderFailure:
        """Fetch observations ascending by date.

        FRED marks missing observations with ``"."``; those and any other
        non-numeric values are skipped.
        """
        if not self.is_configured:
            return self._failure(FailureKind.API_ERROR, "API key not configured")

        payload = await self._get_json(
            "/series/observations",
            params={
                "series_id": series_id,
                "api_key": self._api_key,
                "file_type": "json",
                "observation_start": start.isoformat(),
                "observation_end": end.isoformat(),
                "sort_order": "asc",
                "limit": 10000,
            },
        )
        if isinstance(payload, ProviderFailure):
            return payload
        parsed = self._parse(FredObservationsResponse, payload)
        if isinstance(parsed, ProviderFailure):
            return parsed

        observations: list[tuple[date, Decimal]] = []
        for row in parsed.observations:
            if row.value == ".":
                continue
            try:
                observations.append((date.fromisoformat(row.date), Decimal(row.value)))
            except (InvalidOperation, ValueError):
                continue
        return observations
