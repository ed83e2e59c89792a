"""Wallet domain: market data for coins held in tracked portfolios.

Coins are registered through ``WalletTracker`` whenever a portfolio view
touches them; the list expires after a week without activity. The refresh
fetches them in batches and records a per-coin status.
"""

from collections.abc import Iterable
from typing import Any

from dashcache.cache import keys
from dashcache.cache.freshness import FreshnessCache
from dashcache.config import RefreshSettings
from dashcache.exceptions import NoDataError
from dashcache.logging import get_logger
from dashcache.providers.base import ProviderFailure
from dashcache.providers.coingecko import CoinGeckoClient
from dashcache.refresh.orchestrator import DomainRefresher, SubTask

logger = get_logger(__name__)

NO_ACTIVE_COINS = "no active wallet coins"


class WalletTracker:
    """Maintains the set of active wallet coin ids in the cache."""

    def __init__(self, cache: FreshnessCache, ttl_seconds: int = 7 * 86400) -> None:
        self._cache = cache
        self._ttl = ttl_seconds

    async def active_coins(self) -> list[str]:
        return list(await self._cache.get(keys.WALLET_COINS) or [])

    async def track(self, coin_ids: Iterable[str]) -> list[str]:
        """Add coin ids and reset the list's expiry. Returns the updated list."""
        coins = await self.active_coins()
        for coin_id in coin_ids:
            coin_id = coin_id.strip().lower()
            if coin_id and coin_id not in coins:
                coins.append(coin_id)
        await self._cache.put(keys.WALLET_COINS, coins, self._ttl)
        logger.info("wallet_coins_tracked", total=len(coins))
        return coins

    async def untrack(self, coin_ids: Iterable[str]) -> list[str]:
        removed = {c.strip().lower() for c in coin_ids}
        coins = [c for c in await self.active_coins() if c not in removed]
        await self._cache.put(keys.WALLET_COINS, coins, self._ttl)
        return coins


class WalletRefresher(DomainRefresher):
    """Refreshes per-coin market data for every active wallet coin."""

    name = "wallet"
    title = "Wallet Cache (Portfolio coins)"

    def __init__(
        self,
        coingecko: CoinGeckoClient,
        tracker: WalletTracker,
        cache: FreshnessCache,
        settings: RefreshSettings,
    ) -> None:
        super().__init__(cache, settings.min_refresh_seconds)
        self._coingecko = coingecko
        self._tracker = tracker
        self._settings = settings

    def subtasks(self, force: bool = False) -> list[SubTask]:
        return [SubTask("Wallet coins", self.refresh_wallet, keys.WALLET_SNAPSHOT)]

    async def refresh_wallet(self) -> str:
        coin_ids = await self._tracker.active_coins()
        if not coin_ids:
            return NO_ACTIVE_COINS

        statuses: dict[str, str] = {}
        batch_size = self._settings.wallet_batch_size
        for start in range(0, len(coin_ids), batch_size):
            batch = coin_ids[start : start + batch_size]
            await self._refresh_batch(batch, statuses)

        updated = sum(1 for status in statuses.values() if status == "updated")
        snapshot: dict[str, Any] = {
            "total_coins": len(coin_ids),
            "updated": updated,
            "failed": len(coin_ids) - updated,
            "coins": statuses,
        }
        await self._cache.store_with_meta(
            keys.WALLET_SNAPSHOT, snapshot, source=self._coingecko.name,
            ttl_seconds=self._settings.wallet_ttl_seconds,
        )

        if updated == 0:
            raise NoDataError(f"No wallet coins updated ({len(coin_ids)} tracked)")
        return f"{updated}/{len(coin_ids)} coins updated"

    async def _refresh_batch(self, batch: list[str], statuses: dict[str, str]) -> None:
        coins = await self._coingecko.fetch_markets(ids=batch, per_page=len(batch))
        if isinstance(coins, ProviderFailure):
            logger.warning("wallet_batch_failed", batch_size=len(batch), error=str(coins))
            for coin_id in batch:
                statuses[coin_id] = f"api_error: {coins.message}"
            return

        found = {coin.id: coin for coin in coins}
        for coin_id in batch:
            coin = found.get(coin_id)
            if coin is None:
                statuses[coin_id] = "not_found"
                continue
            await self._cache.store_with_meta(
                keys.wallet_coin(coin_id), coin.model_dump(mode="json"),
                source=self._coingecko.name, ttl_seconds=self._settings.wallet_ttl_seconds,
            )
            statuses[coin_id] = "updated"
