"""Sentiment domain: Fear & Greed, market sentiment, social activity."""

from dashcache.cache import keys
from dashcache.cache.freshness import FreshnessCache
from dashcache.config import RefreshSettings
from dashcache.indicators.sentiment import TOP_SYMBOLS, market_sentiment, social_activity
from dashcache.providers.alternative import AlternativeClient
from dashcache.providers.base import ProviderFailure
from dashcache.providers.cryptocompare import CryptoCompareClient
from dashcache.refresh.market_data import FEAR_GREED_LIMIT, refresh_fear_greed
from dashcache.refresh.orchestrator import DomainRefresher, SubTask

SOCIAL_WINDOWS = (30, 365)


class SentimentRefresher(DomainRefresher):
    name = "sentiment"
    title = "Sentiment Cache (Fear & Greed, Market Sentiment, Social Activity)"

    def __init__(
        self,
        alternative: AlternativeClient,
        cryptocompare: CryptoCompareClient,
        cache: FreshnessCache,
        settings: RefreshSettings,
    ) -> None:
        super().__init__(cache, settings.min_refresh_seconds)
        self._alternative = alternative
        self._cryptocompare = cryptocompare
        self._ttl = settings.snapshot_ttl_seconds

    def subtasks(self, force: bool = False) -> list[SubTask]:
        tasks = [
            SubTask("Fear & Greed", self.refresh_fear_greed, keys.fear_greed(FEAR_GREED_LIMIT)),
            SubTask("Market Sentiment", self.refresh_market_sentiment, keys.MARKET_SENTIMENT),
        ]
        for days in SOCIAL_WINDOWS:
            tasks.append(
                SubTask(
                    f"Social Activity ({days}d)",
                    lambda days=days: self.refresh_social_activity(days),
                    keys.social_activity(days),
                )
            )
        return tasks

    async def refresh_fear_greed(self) -> str | ProviderFailure:
        return await refresh_fear_greed(self._alternative, self._cache, self._ttl)

    async def refresh_market_sentiment(self) -> str | ProviderFailure:
        quotes = await self._cryptocompare.fetch_price_multi_full(TOP_SYMBOLS)
        if isinstance(quotes, ProviderFailure):
            return quotes
        snapshot = market_sentiment(quotes)
        await self._cache.store_with_meta(
            keys.MARKET_SENTIMENT, snapshot, source=self._cryptocompare.name, ttl_seconds=self._ttl
        )
        return f"{snapshot['overall']} ({snapshot['overallScore']}) over {len(snapshot['coins'])} coins"

    async def refresh_social_activity(self, days: int) -> str | ProviderFailure:
        volumes = await self._cryptocompare.fetch_daily_volumes("BTC", days)
        if isinstance(volumes, ProviderFailure):
            return volumes
        activity = social_activity(volumes)
        await self._cache.store_with_meta(
            keys.social_activity(days), activity, source=self._cryptocompare.name, ttl_seconds=self._ttl
        )
        return f"{len(activity['data'])} days, current {activity['current']}"
