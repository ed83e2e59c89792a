"""Market domain: top-coin snapshot plus derived statistics and movers."""

from dashcache.cache import keys
from dashcache.cache.freshness import FreshnessCache
from dashcache.config import RefreshSettings
from dashcache.exceptions import NoDataError
from dashcache.indicators.market import market_statistics, top_movers
from dashcache.logging import get_logger
from dashcache.providers.base import ProviderFailure
from dashcache.providers.coingecko import CoinGeckoClient
from dashcache.providers.schemas import CoinMarket
from dashcache.refresh.orchestrator import DomainRefresher, SubTask

logger = get_logger(__name__)


class MarketRefresher(DomainRefresher):
    """Refreshes the top coins by market cap and the statistics computed from them.

    Statistics read the snapshot back from the cache, so they still refresh
    from the last good snapshot when the markets fetch fails.
    """

    name = "market"
    title = "Market Cache (Top 250 coins)"

    def __init__(
        self,
        coingecko: CoinGeckoClient,
        cache: FreshnessCache,
        settings: RefreshSettings,
    ) -> None:
        super().__init__(cache, settings.min_refresh_seconds)
        self._coingecko = coingecko
        self._settings = settings
        self._markets_key = keys.markets("usd", settings.market_per_page)

    def subtasks(self, force: bool = False) -> list[SubTask]:
        return [
            SubTask("Markets", self.refresh_markets, self._markets_key),
            SubTask("Statistics", self.refresh_statistics, keys.MARKET_STATISTICS),
        ]

    async def refresh_markets(self) -> str | ProviderFailure:
        coins = await self._coingecko.fetch_markets(per_page=self._settings.market_per_page)
        if isinstance(coins, ProviderFailure):
            return coins
        if not coins:
            raise NoDataError("CoinGecko returned no markets")

        await self._cache.store_with_meta(
            self._markets_key,
            [coin.model_dump(mode="json") for coin in coins],
            source=self._coingecko.name,
            ttl_seconds=self._settings.market_ttl_seconds,
        )
        return f"{len(coins)} coins updated"

    async def refresh_statistics(self) -> str:
        raw = await self._cache.get(self._markets_key)
        if not raw:
            raise NoDataError("No market snapshot cached")
        coins = [CoinMarket.model_validate(row) for row in raw]

        stats = market_statistics(coins)
        movers = top_movers(coins)
        ttl = self._settings.market_ttl_seconds
        await self._cache.store_with_meta(keys.MARKET_STATISTICS, stats, source="computed", ttl_seconds=ttl)
        await self._cache.store_with_meta(keys.MARKET_TOP_MOVERS, movers, source="computed", ttl_seconds=ttl)
        return f"{stats['gainersCount']} gainers, {stats['losersCount']} losers"
