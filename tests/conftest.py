"""Shared test fixtures for the dashboard cache pipeline."""

from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import httpx
import pytest

from dashcache.cache.backends import MemoryBackend
from dashcache.cache.freshness import FreshnessCache
from dashcache.config import (
    AppSettings,
    CacheSettings,
    ProviderSettings,
    RefreshSettings,
)
from dashcache.models import PricePoint


class FakeClock:
    """Manually advanced epoch clock shared by backend and cache."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend(clock: FakeClock) -> MemoryBackend:
    return MemoryBackend(clock=clock)


@pytest.fixture
def cache(backend: MemoryBackend, clock: FakeClock) -> FreshnessCache:
    return FreshnessCache(backend, clock=clock, fresh_seconds=60, stale_seconds=30 * 86400)


@pytest.fixture
def refresh_settings() -> RefreshSettings:
    """Refresh settings with the freshness gate disabled."""
    return RefreshSettings(min_refresh_seconds=0)


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with an in-memory cache and dummy API keys."""
    return AppSettings(
        log_level="DEBUG",
        providers=ProviderSettings(
            alpha_vantage_api_key="test-av-key",  # type: ignore[arg-type]
            finnhub_api_key="test-finnhub-key",  # type: ignore[arg-type]
            fred_api_key="test-fred-key",  # type: ignore[arg-type]
        ),
        cache=CacheSettings(backend="memory"),
        refresh=RefreshSettings(min_refresh_seconds=0),
    )


@pytest.fixture
def make_series() -> Callable[..., list[PricePoint]]:
    """Factory: consecutive daily points starting at ``start`` with the given prices."""

    def _make(prices: list, start: date = date(2023, 1, 1)) -> list[PricePoint]:
        points = []
        for i, price in enumerate(prices):
            day = start + timedelta(days=i)
            ts = int(datetime(day.year, day.month, day.day, tzinfo=timezone.utc).timestamp())
            points.append(PricePoint(date=day, timestamp=ts, price=Decimal(str(price))))
        return points

    return _make


@pytest.fixture
def make_http_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory: httpx client whose requests are answered by ``handler``."""

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make
