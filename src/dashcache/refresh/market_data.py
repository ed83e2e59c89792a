"""Market-data trio: Fear & Greed index, global market stats, trending coins."""

from decimal import ROUND_HALF_UP, Decimal

from dashcache.cache import keys
from dashcache.cache.freshness import FreshnessCache
from dashcache.config import RefreshSettings
from dashcache.providers.alternative import AlternativeClient
from dashcache.providers.base import ProviderFailure
from dashcache.providers.coingecko import CoinGeckoClient
from dashcache.refresh.orchestrator import DomainRefresher, SubTask

FEAR_GREED_LIMIT = 30


async def refresh_fear_greed(
    alternative: AlternativeClient, cache: FreshnessCache, ttl_seconds: int, limit: int = FEAR_GREED_LIMIT
) -> str | ProviderFailure:
    """Fetch and store the last ``limit`` Fear & Greed readings. Shared with the sentiment domain."""
    rows = await alternative.fetch_fear_greed(limit)
    if isinstance(rows, ProviderFailure):
        return rows
    await cache.store_with_meta(
        keys.fear_greed(limit),
        [row.model_dump(mode="json") for row in rows],
        source=alternative.name,
        ttl_seconds=ttl_seconds,
    )
    latest = rows[0]
    return f"{latest.value} ({latest.value_classification})"


class MarketDataRefresher(DomainRefresher):
    name = "market_data"
    title = "Market Data Cache (Fear & Greed, Global Stats, Trending)"

    def __init__(
        self,
        coingecko: CoinGeckoClient,
        alternative: AlternativeClient,
        cache: FreshnessCache,
        settings: RefreshSettings,
    ) -> None:
        super().__init__(cache, settings.min_refresh_seconds)
        self._coingecko = coingecko
        self._alternative = alternative
        self._ttl = settings.snapshot_ttl_seconds

    def subtasks(self, force: bool = False) -> list[SubTask]:
        return [
            SubTask("Fear & Greed", self.refresh_fear_greed, keys.fear_greed(FEAR_GREED_LIMIT)),
            SubTask("Global Stats", self.refresh_global, keys.GLOBAL),
            SubTask("Trending", self.refresh_trending, keys.TRENDING),
        ]

    async def refresh_fear_greed(self) -> str | ProviderFailure:
        return await refresh_fear_greed(self._alternative, self._cache, self._ttl)

    async def refresh_global(self) -> str | ProviderFailure:
        data = await self._coingecko.fetch_global()
        if isinstance(data, ProviderFailure):
            return data
        await self._cache.store_with_meta(
            keys.GLOBAL, data.model_dump(mode="json"), source=self._coingecko.name, ttl_seconds=self._ttl
        )
        total = data.total_market_cap.get("usd", Decimal("0"))
        dominance = data.market_cap_percentage.get("btc", Decimal("0"))
        return (
            f"market cap ${total / Decimal('1e12'):.2f}T, "
            f"BTC dominance {dominance.quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)}%"
        )

    async def refresh_trending(self) -> str | ProviderFailure:
        coins = await self._coingecko.fetch_trending()
        if isinstance(coins, ProviderFailure):
            return coins
        await self._cache.store_with_meta(
            keys.TRENDING, {"coins": coins}, source=self._coingecko.name, ttl_seconds=self._ttl
        )
        return f"{len(coins)} trending coins"
