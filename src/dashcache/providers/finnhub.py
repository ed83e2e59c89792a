"""Finnhub adapter: crypto news feed and economic calendar."""

from datetime import date
from typing import Any

from dashcache.providers.base import FailureKind, HttpProvider, ProviderFailure, envelope_kind
from dashcache.providers.schemas import CalendarEvent, EconomicCalendarResponse, NewsArticle


class FinnhubClient(HttpProvider):
    """Finnhub adapter; the API key is sent as ``token``."""

    name = "finnhub"

    def _check_envelope(self, payload: Any) -> ProviderFailure | None:
        if isinstance(payload, dict) and "error" in payload:
            message = str(payload["error"])
            return self._failure(envelope_kind(message), message)
        return None

    async def fetch_crypto_news(self) -> list[NewsArticle] | ProviderFailure:
        if not self.is_configured:
            return self._failure(FailureKind.API_ERROR, "API key not configured")
        payload = await self._get_json(
            "/news", params={"category": "crypto", "token": self._api_key}
        )
        if isinstance(payload, ProviderFailure):
            return payload
        return self._parse(list[NewsArticle], payload)

    async def fetch_economic_calendar(
        self, start: date, end: date
    ) -> list[CalendarEvent] | ProviderFailure:
        if not self.is_configured:
            return self._failure(FailureKind.API_ERROR, "API key not configured")
        payload = await self._get_json(
            "/calendar/economic",
            params={"from": start.isoformat(), "to": end.isoformat(), "token": self._api_key},
        )
        if isinstance(payload, ProviderFailure):
            return payload
        parsed = self._parse(EconomicCalendarResponse, payload)
        if isinstance(parsed, ProviderFailure):
            return parsed
        return parsed.economicCalendar
