"""Tests for the indicators refresh domain.

All providers are AsyncMocks; the cache is the in-memory backend.
"""

from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from dashcache.cache import keys
from dashcache.config import IndicatorSettings, SeriesSettings
from dashcache.exceptions import NoDataError
from dashcache.providers.alphavantage import AlphaVantageClient
from dashcache.providers.base import FailureKind, ProviderFailure
from dashcache.providers.coingecko import CoinGeckoClient
from dashcache.providers.cryptocompare import CryptoCompareClient
from dashcache.providers.schemas import CoinMarket
from dashcache.refresh.indicators import RSI_KEY_NAME, IndicatorRefresher
from dashcache.series.store import SeriesStore

START = date(2023, 1, 1)
TODAY = START + timedelta(days=400)


def failure(provider: str = "coingecko") -> ProviderFailure:
    return ProviderFailure(provider=provider, kind=FailureKind.RATE_LIMITED, message="slow down", status_code=429)


@pytest.fixture
def coingecko() -> AsyncMock:
    client = AsyncMock(spec=CoinGeckoClient)
    client.name = "coingecko"
    client.max_days = 365
    return client


@pytest.fixture
def cryptocompare() -> AsyncMock:
    client = AsyncMock(spec=CryptoCompareClient)
    client.name = "cryptocompare"
    return client


@pytest.fixture
def alpha_vantage() -> AsyncMock:
    client = AsyncMock(spec=AlphaVantageClient)
    client.name = "alpha_vantage"
    return client


@pytest.fixture
def series_settings() -> SeriesSettings:
    return SeriesSettings()


@pytest.fixture
def refresher(coingecko, cryptocompare, alpha_vantage, cache, series_settings, refresh_settings) -> IndicatorRefresher:
    return IndicatorRefresher(
        coingecko,
        cryptocompare,
        alpha_vantage,
        cache,
        SeriesStore(cache, series_settings),
        series_settings,
        IndicatorSettings(),
        refresh_settings,
        today=lambda: TODAY,
    )


class TestPiCycle:
    """Pi Cycle series maintenance and frames."""

    @pytest.mark.asyncio
    async def test_backfill_from_empty_store(self, refresher, cache, cryptocompare, coingecko, make_series) -> None:
        """Empty store: full backfill goes to CryptoCompare (beyond CoinGecko's 365 days)."""
        cryptocompare.fetch_historical_daily.return_value = make_series(list(range(1, 401)), start=START)

        detail = await refresher.refresh_pi_cycle()

        cryptocompare.fetch_historical_daily.assert_awaited_once_with("BTC", 2000)
        coingecko.fetch_daily_prices.assert_not_awaited()

        frames = await cache.get(keys.PI_CYCLE_FRAME)
        assert len(frames) == 400
        assert frames[109]["ma111"] is None
        assert frames[110]["ma111"] == "56.00"  # mean of 1..111
        assert frames[348]["ma350x2"] is None
        assert frames[349]["ma350x2"] == "351.00"  # 2 * mean of 1..350
        assert not any(frame["isCrossover"] for frame in frames)

        meta = await cache.get_meta(keys.PI_CYCLE_FRAME)
        assert meta is not None and meta.source == "cryptocompare"
        assert meta.timestamp == cache.now()
        assert len(await SeriesStore(cache, SeriesSettings()).get_series(keys.PI_CYCLE_HISTORY)) == 400
        assert await cache.get(keys.PI_CYCLE_SUMMARY) is not None
        assert detail.startswith("400 points (+400)")

    @pytest.mark.asyncio
    async def test_incremental_update_uses_coingecko(self, refresher, cache, coingecko, make_series) -> None:
        """A short gap is fetched from CoinGecko and merged with stored dates winning."""
        store = SeriesStore(cache, SeriesSettings())
        await store.merge(keys.PI_CYCLE_HISTORY, make_series([100] * 398, start=START))
        # Last stored day is TODAY - 3: gap 3 plus the 2-day buffer
        coingecko.fetch_daily_prices.return_value = make_series([999, 101, 102], start=TODAY - timedelta(days=3))

        await refresher.refresh_pi_cycle()

        coingecko.fetch_daily_prices.assert_awaited_once_with("bitcoin", "usd", 5)
        series = await store.get_series(keys.PI_CYCLE_HISTORY)
        assert len(series) == 400
        assert series[-3].price == Decimal("100")
        assert series[-1].price == Decimal("102")

    @pytest.mark.asyncio
    async def test_all_sources_failed_with_empty_store(self, refresher, coingecko, cryptocompare) -> None:
        """Every source failing with nothing stored raises NoDataError."""
        cryptocompare.fetch_historical_daily.return_value = failure("cryptocompare")
        coingecko.fetch_daily_prices.return_value = failure()
        coingecko.fetch_ohlc_closes.return_value = failure()

        with pytest.raises(NoDataError, match="No historical data available"):
            await refresher.refresh_pi_cycle()

    @pytest.mark.asyncio
    async def test_failed_fetch_recomputes_from_stored_series(
        self, refresher, cache, coingecko, cryptocompare, make_series
    ) -> None:
        """A failed fetch still rebuilds the frame from the stored series."""
        store = SeriesStore(cache, SeriesSettings())
        await store.merge(keys.PI_CYCLE_HISTORY, make_series([1] * 10, start=TODAY - timedelta(days=10)))
        coingecko.fetch_daily_prices.return_value = failure()
        cryptocompare.fetch_historical_daily.return_value = failure("cryptocompare")
        coingecko.fetch_ohlc_closes.return_value = failure()

        detail = await refresher.refresh_pi_cycle()

        assert detail.startswith("10 points (+0)")
        meta = await cache.get_meta(keys.PI_CYCLE_FRAME)
        assert meta is not None and meta.source == "cache"


class TestAltcoinSeason:
    """Altcoin Season index refresh."""

    @pytest.mark.asyncio
    async def test_stores_index_forever(self, refresher, cache, clock, coingecko) -> None:
        """The index is stored without expiry."""
        coingecko.fetch_markets.return_value = [
            CoinMarket(id="bitcoin", symbol="btc", name="Bitcoin", price_change_percentage_30d_in_currency=Decimal("1")),
            CoinMarket(id="ethereum", symbol="eth", name="Ethereum", price_change_percentage_30d_in_currency=Decimal("5")),
        ]

        await refresher.refresh_altcoin_season()
        clock.advance(10 * 365 * 86400)

        stored = await cache.get(keys.ALTCOIN_SEASON)
        assert stored["outperformingCount"] == 1
        assert stored["totalCoins"] == 49

    @pytest.mark.asyncio
    async def test_keeps_previous_on_failure(self, refresher, cache, coingecko) -> None:
        """A provider failure keeps the previous index."""
        await cache.put_forever(keys.ALTCOIN_SEASON, {"currentIndex": 42})
        coingecko.fetch_markets.return_value = failure()

        detail = await refresher.refresh_altcoin_season()

        assert "kept previous index 42" in detail
        assert await cache.get(keys.ALTCOIN_SEASON) == {"currentIndex": 42}

    @pytest.mark.asyncio
    async def test_failure_without_previous(self, refresher, coingecko) -> None:
        """A provider failure with no previous index raises NoDataError."""
        coingecko.fetch_markets.return_value = failure()
        with pytest.raises(NoDataError):
            await refresher.refresh_altcoin_season()


class TestRsi:
    """RSI from CoinGecko closes with Alpha Vantage fallback."""

    @pytest.mark.asyncio
    async def test_computed_from_daily_prices(self, refresher, cache, coingecko, alpha_vantage, make_series) -> None:
        """Enough closes are computed locally and stored newest first."""
        coingecko.fetch_daily_prices.return_value = make_series(list(range(1, 31)), start=START)

        detail = await refresher.refresh_rsi()

        alpha_vantage.fetch_rsi.assert_not_awaited()
        document = await cache.get(keys.RSI)
        values = document[RSI_KEY_NAME]
        newest = (START + timedelta(days=29)).isoformat()
        assert next(iter(values)) == newest
        assert values[newest] == {"RSI": "100.00"}
        assert len(values) == 16  # 30 prices, first value at index 14
        assert "(computed)" in detail

    @pytest.mark.asyncio
    async def test_too_few_prices_falls_back_to_alpha_vantage(
        self, refresher, cache, coingecko, alpha_vantage, make_series
    ) -> None:
        """Fewer than 15 closes falls back to Alpha Vantage."""
        coingecko.fetch_daily_prices.return_value = make_series([1, 2, 3])
        alpha_vantage.fetch_rsi.return_value = {"2024-01-02": Decimal("61.234"), "2024-01-01": Decimal("58")}

        await refresher.refresh_rsi()

        meta = await cache.get_meta(keys.RSI)
        assert meta is not None and meta.source == "alpha_vantage"
        assert (await cache.get(keys.RSI))[RSI_KEY_NAME]["2024-01-02"] == {"RSI": "61.23"}

    @pytest.mark.asyncio
    async def test_both_sources_failed(self, refresher, coingecko, alpha_vantage) -> None:
        """Both sources failing returns the last failure."""
        coingecko.fetch_daily_prices.return_value = failure()
        alpha_vantage.fetch_rsi.return_value = failure("alpha_vantage")

        result = await refresher.refresh_rsi()

        assert isinstance(result, ProviderFailure)
        assert result.provider == "alpha_vantage"


class TestDomainRun:
    """The indicators domain as a whole."""

    @pytest.mark.asyncio
    async def test_one_good_indicator_is_enough(self, refresher, coingecko, cryptocompare, alpha_vantage, make_series) -> None:
        """One succeeding indicator is enough for the domain to succeed."""
        cryptocompare.fetch_historical_daily.return_value = make_series(list(range(1, 401)), start=START)
        coingecko.fetch_daily_prices.return_value = failure()
        coingecko.fetch_ohlc_closes.return_value = failure()
        coingecko.fetch_markets.return_value = failure()
        alpha_vantage.fetch_rsi.return_value = failure("alpha_vantage")

        report = await refresher.run()

        assert [r.name for r in report.results] == ["Pi Cycle", "Rainbow Chart", "Altcoin Season", "RSI"]
        assert report.success
        assert [r.success for r in report.results] == [True, True, False, False]
