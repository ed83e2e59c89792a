"""Read-side accessors over the cache, as consumed by the web layer.

Refresh jobs own freshness; readers only fill a key on a cold cache.
"""

from typing import Any

from dashcache.cache import keys
from dashcache.cache.freshness import FreshnessCache
from dashcache.config import IndicatorSettings
from dashcache.exceptions import NoDataError, ProviderError, UnknownIndicatorError
from dashcache.indicators.crossover import long_term_crossover_series, summarize_crossovers
from dashcache.models import IndicatorFrame
from dashcache.providers.base import ProviderFailure
from dashcache.providers.coingecko import CoinGeckoClient
from dashcache.refresh.indicators import IndicatorRefresher
from dashcache.series.store import SeriesStore

#: Dataset name -> cache key for plain reads
DATASETS: dict[str, str] = {
    "rainbow": keys.RAINBOW_CHART,
    "rsi": keys.RSI,
    "market-statistics": keys.MARKET_STATISTICS,
    "top-movers": keys.MARKET_TOP_MOVERS,
    "wallet": keys.WALLET_SNAPSHOT,
    "global": keys.GLOBAL,
    "trending": keys.TRENDING,
    "fear-greed": keys.fear_greed(30),
    "sentiment": keys.MARKET_SENTIMENT,
    "stats": keys.SYSTEM_STATS,
}

#: Datasets rebuilt from the stored history when their frame has expired
PI_CYCLE_DATASETS: dict[str, str] = {
    "pi-cycle": keys.PI_CYCLE_FRAME,
    "pi-cycle-summary": keys.PI_CYCLE_SUMMARY,
}


class SnapshotReader:
    """Cache reads with the contract each dataset needs."""

    def __init__(
        self,
        cache: FreshnessCache,
        coingecko: CoinGeckoClient,
        indicators: IndicatorRefresher,
        series: SeriesStore,
        settings: IndicatorSettings,
        market_ttl_seconds: int = 3600,
        per_page: int = 250,
    ) -> None:
        self._cache = cache
        self._coingecko = coingecko
        self._indicators = indicators
        self._series = series
        self._settings = settings
        self._market_ttl = market_ttl_seconds
        self._per_page = per_page

    async def altcoin_season(self) -> dict[str, Any]:
        """Never-stale read: any stored index is returned regardless of age."""

        async def compute() -> dict[str, Any]:
            result = await self._indicators.compute_altcoin_season()
            if isinstance(result, ProviderFailure):
                raise ProviderError(result)
            return result

        return await self._cache.get_or_compute_never_stale(keys.ALTCOIN_SEASON, compute)

    async def _pi_cycle_frames(self) -> list[IndicatorFrame]:
        series = await self._series.get_series(keys.PI_CYCLE_HISTORY)
        if not series:
            raise NoDataError("No Pi Cycle history stored")
        return long_term_crossover_series(
            series,
            self._settings.pi_cycle_short_window,
            self._settings.pi_cycle_long_window,
            self._settings.pi_cycle_long_multiplier,
        )

    async def pi_cycle(self, name: str = "pi-cycle") -> Any:
        """Never-stale read of the Pi Cycle frame or its summary.

        An expired value is rebuilt from the stored history without any
        provider call.

        Raises:
            NoDataError: If neither the value nor any history is stored.
        """

        async def compute() -> Any:
            frames = await self._pi_cycle_frames()
            if name == "pi-cycle-summary":
                return summarize_crossovers(frames).to_dict()
            return [frame.to_dict() for frame in frames]

        return await self._cache.get_or_compute_never_stale(PI_CYCLE_DATASETS[name], compute)

    async def markets(self) -> dict[str, Any]:
        """Stale-while-error read of the top-coins snapshot with source metadata."""

        async def primary() -> list[dict] | ProviderFailure:
            coins = await self._coingecko.fetch_markets(per_page=self._per_page)
            if isinstance(coins, ProviderFailure):
                return coins
            return [coin.model_dump(mode="json") for coin in coins]

        return await self._cache.remember(keys.markets("usd", self._per_page), self._market_ttl, primary)

    async def dataset(self, name: str) -> dict[str, Any]:
        """Plain read of a named dataset with its metadata."""
        if name == "altcoin-season":
            return {"data": await self.altcoin_season(), "metadata": None}
        if name == "markets":
            return await self.markets()
        if name in PI_CYCLE_DATASETS:
            try:
                data = await self.pi_cycle(name)
            except NoDataError:
                return {"data": None, "metadata": None}
            meta = await self._cache.get_meta(PI_CYCLE_DATASETS[name])
            return {"data": data, "metadata": meta.to_dict() if meta else None}
        if name not in DATASETS:
            known = sorted([*DATASETS, *PI_CYCLE_DATASETS, "altcoin-season", "markets"])
            raise UnknownIndicatorError(f"Unknown dataset {name!r}; expected one of {known}")
        entry = await self._cache.get_entry(DATASETS[name])
        if entry is None:
            return {"data": None, "metadata": None}
        return {"data": entry.value, "metadata": entry.meta.to_dict() if entry.meta else None}
