"""Composition root for the cache-refresh pipeline.

Builds every component explicitly from settings; nothing is looked up from
global state. The CLI (``dashcache.cli``) is the process entry point.

Component wiring order (in build_components):
1. Cache backend and FreshnessCache
2. Shared httpx client
3. Provider adapters (CoinGecko, CryptoCompare, Alpha Vantage, Alternative.me, Finnhub, FRED)
4. SeriesStore (forever-cached price history)
5. WalletTracker
6. Domain refreshers (market, wallet, market_data, news_calendar, indicators, sentiment, economic)
7. CacheUpdateCommand and SnapshotReader
"""

from dataclasses import dataclass, field

import httpx

from dashcache.cache.backends import CacheBackend, build_backend
from dashcache.cache.freshness import FreshnessCache
from dashcache.command import CacheUpdateCommand
from dashcache.config import AppSettings
from dashcache.logging import get_logger
from dashcache.providers import (
    AlphaVantageClient,
    AlternativeClient,
    CoinGeckoClient,
    CryptoCompareClient,
    FinnhubClient,
    FredClient,
    build_http_client,
)
from dashcache.refresh import (
    DomainRefresher,
    EconomicRefresher,
    IndicatorRefresher,
    MarketDataRefresher,
    MarketRefresher,
    NewsCalendarRefresher,
    SentimentRefresher,
    WalletRefresher,
    WalletTracker,
)
from dashcache.series.store import SeriesStore
from dashcache.snapshots import SnapshotReader

logger = get_logger(__name__)


@dataclass
class Components:
    """Everything a command needs, plus the resources to release afterwards."""

    settings: AppSettings
    backend: CacheBackend
    http_client: httpx.AsyncClient
    cache: FreshnessCache
    series: SeriesStore
    wallet_tracker: WalletTracker
    domains: dict[str, DomainRefresher] = field(default_factory=dict)
    command: CacheUpdateCommand | None = None
    reader: SnapshotReader | None = None

    async def close(self) -> None:
        await self.http_client.aclose()
        await self.backend.close()


async def build_components(
    settings: AppSettings,
    backend: CacheBackend | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> Components:
    """Build and connect all pipeline components from settings.

    Args:
        settings: Application-wide settings.
        backend: Optional pre-built backend (tests pass a MemoryBackend).
        http_client: Optional pre-built client (tests pass a mock transport).

    Returns:
        Connected Components; the caller must ``await components.close()``.
    """
    providers = settings.providers

    # 1. Cache
    backend = backend or build_backend(settings.cache)
    await backend.connect()
    cache = FreshnessCache(
        backend,
        fresh_seconds=settings.cache.fresh_seconds,
        stale_seconds=settings.cache.stale_seconds,
    )

    # 2. HTTP client
    http_client = http_client or build_http_client(providers)

    # 3. Providers
    coingecko = CoinGeckoClient(
        http_client,
        providers.coingecko_url,
        providers.coingecko_api_key.get_secret_value(),
        max_days=settings.series.free_tier_max_days,
    )
    cryptocompare = CryptoCompareClient(
        http_client, providers.cryptocompare_url, providers.cryptocompare_api_key.get_secret_value()
    )
    alpha_vantage = AlphaVantageClient(
        http_client, providers.alpha_vantage_url, providers.alpha_vantage_api_key.get_secret_value()
    )
    alternative = AlternativeClient(http_client, providers.alternative_url)
    finnhub = FinnhubClient(http_client, providers.finnhub_url, providers.finnhub_api_key.get_secret_value())
    fred = FredClient(http_client, providers.fred_url, providers.fred_api_key.get_secret_value())

    for provider in (alpha_vantage, finnhub, fred):
        if not provider.is_configured:
            logger.warning("provider_not_configured", provider=provider.name)

    # 4. Series store
    series = SeriesStore(cache, settings.series)

    # 5. Wallet tracker
    wallet_tracker = WalletTracker(cache, settings.refresh.wallet_coin_ttl_seconds)

    # 6. Domains
    refresh = settings.refresh
    indicators = IndicatorRefresher(
        coingecko, cryptocompare, alpha_vantage, cache, series,
        settings.series, settings.indicators, refresh,
    )
    domain_list: list[DomainRefresher] = [
        MarketRefresher(coingecko, cache, refresh),
        WalletRefresher(coingecko, wallet_tracker, cache, refresh),
        MarketDataRefresher(coingecko, alternative, cache, refresh),
        NewsCalendarRefresher(finnhub, cache, refresh),
        indicators,
        SentimentRefresher(alternative, cryptocompare, cache, refresh),
        EconomicRefresher(fred, cache, refresh),
    ]
    domains = {domain.name: domain for domain in domain_list}

    # 7. Command and reader
    components = Components(
        settings=settings,
        backend=backend,
        http_client=http_client,
        cache=cache,
        series=series,
        wallet_tracker=wallet_tracker,
        domains=domains,
        command=CacheUpdateCommand(domains),
        reader=SnapshotReader(
            cache, coingecko, indicators, series, settings.indicators,
            refresh.market_ttl_seconds, refresh.market_per_page,
        ),
    )
    logger.info("components_built", backend=settings.cache.backend, domains=sorted(domains))
    return components


def main() -> None:
    """Console entry point."""
    from dashcache.cli import app

    app()


if __name__ == "__main__":
    main()
