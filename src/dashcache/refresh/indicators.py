"""Indicators domain: Pi Cycle, Rainbow Chart, Altcoin Season, RSI.

Pi Cycle and Rainbow Chart each keep their own forever-cached daily BTC
series and fetch only the days missing since the last stored date. Derived
outputs are written with a ``_meta`` companion and expire, so a stale panel
is always distinguishable from a fresh one.

Provider routing for daily history: CoinGecko's free tier covers at most 365
days, so deeper requests go to CryptoCompare first.
"""

from collections.abc import Callable
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from dashcache.cache import keys
from dashcache.cache.freshness import FreshnessCache
from dashcache.config import IndicatorSettings, RefreshSettings, SeriesSettings
from dashcache.exceptions import NoDataError
from dashcache.indicators.crossover import summarize_crossovers
from dashcache.indicators.rainbow import rainbow_metadata, rainbow_status
from dashcache.indicators.registry import get_indicator
from dashcache.logging import get_logger
from dashcache.models import PricePoint
from dashcache.providers.alphavantage import AlphaVantageClient
from dashcache.providers.base import FailureKind, ProviderFailure
from dashcache.providers.coingecko import CoinGeckoClient
from dashcache.providers.cryptocompare import CryptoCompareClient
from dashcache.providers.fallback import Attempt, first_success
from dashcache.refresh.orchestrator import DomainRefresher, SubTask
from dashcache.series.store import SeriesStore

logger = get_logger(__name__)

RSI_KEY_NAME = "Technical Analysis: RSI"
#: Minimum chart length before the rainbow series is topped up with full history
RAINBOW_MIN_POINTS = 365


def _cents(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def rsi_document(values: dict[str, Decimal], keep: int) -> dict[str, Any]:
    """Alpha Vantage-shaped RSI document holding the newest ``keep`` values."""
    newest = sorted(values.items(), key=lambda item: item[0], reverse=True)[:keep]
    return {RSI_KEY_NAME: {day: {"RSI": str(_cents(value))} for day, value in newest}}


class IndicatorRefresher(DomainRefresher):
    """Refreshes every technical indicator panel.

    Args:
        coingecko: Short-range daily prices and market snapshots.
        cryptocompare: Deep daily history.
        alpha_vantage: RSI fallback source.
        cache: Output cache.
        series: Forever-cached historical series.
        series_settings: Incremental window sizing.
        settings: Indicator windows and TTLs.
        refresh_settings: Freshness gate interval.
        today: Current UTC date provider.
    """

    name = "indicators"
    title = "Indicators Cache (Pi Cycle, Rainbow Chart, Altcoin Season, RSI)"

    def __init__(
        self,
        coingecko: CoinGeckoClient,
        cryptocompare: CryptoCompareClient,
        alpha_vantage: AlphaVantageClient,
        cache: FreshnessCache,
        series: SeriesStore,
        series_settings: SeriesSettings,
        settings: IndicatorSettings,
        refresh_settings: RefreshSettings,
        today: Callable[[], date] = lambda: datetime.now(timezone.utc).date(),
    ) -> None:
        super().__init__(cache, refresh_settings.min_refresh_seconds)
        self._coingecko = coingecko
        self._cryptocompare = cryptocompare
        self._alpha_vantage = alpha_vantage
        self._series = series
        self._series_settings = series_settings
        self._settings = settings
        self._today = today

    def subtasks(self, force: bool = False) -> list[SubTask]:
        return [
            SubTask("Pi Cycle", self.refresh_pi_cycle, keys.PI_CYCLE_FRAME),
            SubTask("Rainbow Chart", self.refresh_rainbow, keys.RAINBOW_CHART),
            SubTask("Altcoin Season", self.refresh_altcoin_season, keys.ALTCOIN_SEASON),
            SubTask("RSI", self.refresh_rsi, keys.RSI),
        ]

    # ──────────────────────────────────────────────
    # Historical series
    # ──────────────────────────────────────────────

    def _history_attempts(self, days: int) -> list[Attempt]:
        """Ordered BTC daily history sources for a ``days`` window."""
        cap = self._coingecko.max_days
        coingecko_days = min(days, cap)
        coingecko = ("coingecko", lambda: self._coingecko.fetch_daily_prices("bitcoin", "usd", coingecko_days))
        cryptocompare = ("cryptocompare", lambda: self._cryptocompare.fetch_historical_daily("BTC", days))
        ohlc = ("coingecko_ohlc", lambda: self._coingecko.fetch_ohlc_closes("bitcoin", "usd", cap))
        if days <= cap:
            return [coingecko, cryptocompare, ohlc]
        return [cryptocompare, coingecko, ohlc]

    async def _update_series(self, key: str) -> tuple[list[PricePoint], int, str]:
        """Fetch the missing days for ``key`` and merge them.

        Returns:
            (merged series, number of points added, source label). A failed
            fetch leaves the stored series untouched and reports source "cache".

        Raises:
            NoDataError: If nothing could be fetched and nothing is stored.
        """
        before = await self._series.get_series(key)
        days = await self._series.days_to_fetch(key, self._today())
        outcome = await first_success(self._history_attempts(days))

        if isinstance(outcome, ProviderFailure):
            logger.warning("series_fetch_failed", key=key, days=days, error=str(outcome))
            if not before:
                raise NoDataError("No historical data available and unable to fetch new data")
            return before, 0, "cache"

        source, points = outcome
        merged = await self._series.merge(key, points)
        added = len({p.date for p in merged} - {p.date for p in before})
        return merged, added, source

    # ──────────────────────────────────────────────
    # Pi Cycle Top
    # ──────────────────────────────────────────────

    async def refresh_pi_cycle(self) -> str:
        series, added, source = await self._update_series(keys.PI_CYCLE_HISTORY)
        if added:
            # The frame is rebuilt from the new series; drop the old one first
            await self._cache.forget(keys.PI_CYCLE_FRAME)

        frames = get_indicator("pi_cycle")(
            series,
            self._settings.pi_cycle_short_window,
            self._settings.pi_cycle_long_window,
            self._settings.pi_cycle_long_multiplier,
        )
        summary = summarize_crossovers(frames)
        ttl = self._settings.frame_ttl_seconds
        await self._cache.store_with_meta(
            keys.PI_CYCLE_FRAME, [frame.to_dict() for frame in frames], source=source, ttl_seconds=ttl
        )
        await self._cache.store_with_meta(
            keys.PI_CYCLE_SUMMARY, summary.to_dict(), source=source, ttl_seconds=ttl
        )

        logger.info(
            "pi_cycle_updated",
            points=len(frames),
            added=added,
            status=summary.status.value,
            last_crossover=summary.last_crossover.isoformat() if summary.last_crossover else None,
        )
        return f"{len(frames)} points (+{added}), last {frames[-1].date.isoformat()}, {summary.status.value}"

    # ──────────────────────────────────────────────
    # Rainbow Chart
    # ──────────────────────────────────────────────

    async def refresh_rainbow(self) -> str:
        series, added, source = await self._update_series(keys.RAINBOW_HISTORY)

        if len(series) < RAINBOW_MIN_POINTS:
            full = await self._coingecko.fetch_daily_prices("bitcoin", "usd", "max")
            if isinstance(full, ProviderFailure):
                logger.warning("rainbow_full_history_failed", error=str(full))
            else:
                series = await self._series.merge(keys.RAINBOW_HISTORY, full)
                source = self._coingecko.name

        rows = get_indicator("rainbow")(series)
        if not rows:
            raise NoDataError("No rainbow chart points after genesis")

        latest = series[-1]
        document = {
            "data": rows,
            "status": rainbow_status(latest.price, latest.date),
            "metadata": {**rainbow_metadata(), "dataPoints": len(rows)},
        }
        await self._cache.store_with_meta(
            keys.RAINBOW_CHART, document, source=source, ttl_seconds=self._settings.rainbow_ttl_seconds
        )
        return f"{len(rows)} points, band {document['status']['currentBand']}"

    # ──────────────────────────────────────────────
    # Altcoin Season
    # ──────────────────────────────────────────────

    async def compute_altcoin_season(self) -> dict[str, Any] | ProviderFailure:
        """Fetch the top-N snapshot and compute the index without storing it."""
        top_n = self._settings.altcoin_top_n
        coins = await self._coingecko.fetch_markets(
            per_page=top_n, price_change_percentage="24h,7d,30d"
        )
        if isinstance(coins, ProviderFailure):
            return coins
        if not coins:
            raise NoDataError("No market data available")
        return get_indicator("altcoin_season")(coins, total_altcoins=top_n - 1)

    async def refresh_altcoin_season(self) -> str:
        """Recompute the index. On provider failure the previous index is kept.

        The key is written without expiry: readers use the never-stale
        contract and must always find a value once one was computed.
        """
        result = await self.compute_altcoin_season()
        if isinstance(result, ProviderFailure):
            previous = await self._cache.get(keys.ALTCOIN_SEASON)
            if previous is None:
                raise NoDataError(f"No market data available: {result}")
            logger.warning("altcoin_season_kept_previous", error=str(result))
            return f"kept previous index {previous['currentIndex']} ({result.kind.value})"

        await self._cache.store_with_meta(keys.ALTCOIN_SEASON, result, source=self._coingecko.name)
        return f"index {result['currentIndex']} ({result['status']}, {result['periodUsed']})"

    # ──────────────────────────────────────────────
    # RSI
    # ──────────────────────────────────────────────

    async def _computed_rsi(self) -> dict[str, Decimal] | ProviderFailure:
        period = self._settings.rsi_period
        prices = await self._coingecko.fetch_daily_prices("bitcoin", "usd", self._settings.rsi_days)
        if isinstance(prices, ProviderFailure):
            return prices
        if len(prices) < period + 1:
            return ProviderFailure(
                provider=self._coingecko.name,
                kind=FailureKind.MALFORMED,
                message=f"need {period + 1} prices for RSI, got {len(prices)}",
            )
        values = get_indicator("rsi")([p.price for p in prices], period)
        return {p.date.isoformat(): v for p, v in zip(prices, values) if v is not None}

    async def refresh_rsi(self) -> str | ProviderFailure:
        outcome = await first_success(
            [
                ("computed", self._computed_rsi),
                (
                    "alpha_vantage",
                    lambda: self._alpha_vantage.fetch_rsi("BTCUSD", "daily", self._settings.rsi_period),
                ),
            ]
        )
        if isinstance(outcome, ProviderFailure):
            return outcome

        source, values = outcome
        document = rsi_document(values, self._settings.rsi_keep)
        await self._cache.store_with_meta(
            keys.RSI, document, source=source, ttl_seconds=self._settings.rsi_ttl_seconds
        )
        latest_day = next(iter(document[RSI_KEY_NAME]))
        latest = document[RSI_KEY_NAME][latest_day]["RSI"]
        return f"RSI {latest} on {latest_day} ({source})"
