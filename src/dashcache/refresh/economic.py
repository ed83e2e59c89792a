"""Economic domain: FRED macro series used as chart overlays."""

from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone

from dashcache.cache import keys
from dashcache.cache.freshness import FreshnessCache
from dashcache.config import RefreshSettings
from dashcache.exceptions import NoDataError
from dashcache.logging import get_logger
from dashcache.providers.base import FailureKind, ProviderFailure
from dashcache.providers.fred import FRED_SERIES, FredClient
from dashcache.refresh.orchestrator import DomainRefresher, SubTask

logger = get_logger(__name__)

DEFAULT_DAYS = 365


class EconomicRefresher(DomainRefresher):
    """Refreshes each FRED series and invalidates the overlays derived from it.

    Args:
        fred: FRED client; every sub-task fails when it has no API key.
        cache: Output cache.
        settings: TTLs and freshness gate.
        days: Observation window ending today.
        today: Current UTC date provider.
    """

    name = "economic"
    title = "Economic Data Cache (FRED)"

    def __init__(
        self,
        fred: FredClient,
        cache: FreshnessCache,
        settings: RefreshSettings,
        days: int = DEFAULT_DAYS,
        today: Callable[[], date] = lambda: datetime.now(timezone.utc).date(),
    ) -> None:
        super().__init__(cache, settings.min_refresh_seconds)
        self._fred = fred
        self._settings = settings
        self._days = days
        self._today = today

    def _window(self) -> tuple[date, date]:
        end = self._today()
        return end - timedelta(days=self._days), end

    def _series_key(self, series_id: str) -> str:
        start, end = self._window()
        return keys.fred_series(series_id, start.isoformat(), end.isoformat())

    def subtasks(self, force: bool = False) -> list[SubTask]:
        return [
            SubTask(
                name,
                lambda indicator=indicator: self.refresh_indicator(indicator),
                self._series_key(series_id),
            )
            for indicator, (series_id, name) in FRED_SERIES.items()
        ]

    async def refresh_indicator(self, indicator: str) -> str | ProviderFailure:
        """Fetch one FRED series; a failed fetch leaves the stored series in place."""
        if not self._fred.is_configured:
            return ProviderFailure(
                provider=self._fred.name,
                kind=FailureKind.API_ERROR,
                message="FRED API is not configured; set PROVIDER_FRED_API_KEY",
            )

        series_id, _ = FRED_SERIES[indicator]
        start, end = self._window()
        observations = await self._fred.fetch_series(series_id, start, end)
        if isinstance(observations, ProviderFailure):
            return observations
        if not observations:
            raise NoDataError(f"No data received for {indicator}")

        await self._cache.store_with_meta(
            self._series_key(series_id),
            [{"date": day.isoformat(), "value": value} for day, value in observations],
            source=self._fred.name,
            ttl_seconds=self._settings.economic_ttl_seconds,
        )
        for window in keys.ECONOMIC_OVERLAY_WINDOWS:
            await self._cache.forget(keys.economic_overlay(indicator, window))
        await self._cache.forget(keys.ECONOMIC_INDICATORS)

        latest_day, latest_value = observations[-1]
        return f"{len(observations)} observations, latest {latest_value} on {latest_day.isoformat()}"
