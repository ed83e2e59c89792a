"""Freshness-aware cache facade over a CacheBackend.

Two read contracts:

- ``get_or_compute``: ordinary TTL memoization. Expired or absent values are
  recomputed; compute errors propagate.
- ``get_or_compute_never_stale``: any stored value is returned as-is, however
  old. Refresh jobs own freshness for these keys, so a rate-limited upstream
  can never blank a dashboard panel.

``remember`` adds stale-while-error reads with source metadata and request
counters for the snapshot endpoints.
"""

import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

from dashcache.cache import keys
from dashcache.cache.backends import CacheBackend
from dashcache.exceptions import DashcacheError
from dashcache.logging import get_logger
from dashcache.models import CacheEntry, CacheMeta
from dashcache.providers.base import ProviderFailure

logger = get_logger(__name__)

Compute = Callable[[], Awaitable[Any]]


class FreshnessCache:
    """Key-value cache with TTL, never-stale and stale-while-error access modes.

    Args:
        backend: Underlying store.
        clock: Returns epoch seconds; shared with the backend in tests.
        fresh_seconds: Default age under which ``is_fresh`` is true.
        stale_seconds: Maximum age of a value served by ``get_stale``.
    """

    def __init__(
        self,
        backend: CacheBackend,
        clock: Callable[[], float] = time.time,
        fresh_seconds: int = 60,
        stale_seconds: int = 30 * 86400,
    ) -> None:
        self._backend = backend
        self._clock = clock
        self._fresh_seconds = fresh_seconds
        self._stale_seconds = stale_seconds

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    def now(self) -> datetime:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc)

    # ──────────────────────────────────────────────
    # Write primitives
    # ──────────────────────────────────────────────

    async def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        await self._backend.set(key, value, ttl_seconds)

    async def put_forever(self, key: str, value: Any) -> None:
        await self._backend.set(key, value, None)

    async def forget(self, key: str) -> None:
        """Remove ``key`` and its ``_meta`` companion."""
        await self._backend.delete(key)
        await self._backend.delete(keys.meta_key(key))

    async def store_with_meta(
        self, key: str, value: Any, source: str, ttl_seconds: int | None = None
    ) -> None:
        """Write ``value`` plus ``<key>_meta = {timestamp, source}`` with the same expiry."""
        meta = CacheMeta(timestamp=self.now(), source=source)
        await self._backend.set(key, value, ttl_seconds)
        await self._backend.set(keys.meta_key(key), meta.to_dict(), ttl_seconds)

    # ──────────────────────────────────────────────
    # Reads
    # ──────────────────────────────────────────────

    async def get(self, key: str) -> Any | None:
        return await self._backend.get(key)

    async def get_meta(self, key: str) -> CacheMeta | None:
        raw = await self._backend.get(keys.meta_key(key))
        if raw is None:
            return None
        return CacheMeta.from_dict(raw)

    async def get_entry(self, key: str) -> CacheEntry | None:
        value = await self._backend.get(key)
        if value is None:
            return None
        return CacheEntry(key=key, value=value, meta=await self.get_meta(key))

    async def age_seconds(self, key: str) -> float | None:
        """Seconds since ``key`` was last written with metadata, or None."""
        meta = await self.get_meta(key)
        if meta is None:
            return None
        return max(0.0, (self.now() - meta.timestamp).total_seconds())

    async def is_fresh(self, key: str, max_age_seconds: int | None = None) -> bool:
        limit = self._fresh_seconds if max_age_seconds is None else max_age_seconds
        age = await self.age_seconds(key)
        return age is not None and age < limit

    async def get_stale(self, key: str) -> CacheEntry | None:
        """Return the stored entry if it is no older than the stale window."""
        entry = await self.get_entry(key)
        if entry is None:
            return None
        age = await self.age_seconds(key)
        if age is not None and age > self._stale_seconds:
            return None
        return entry

    # ──────────────────────────────────────────────
    # Read-through contracts
    # ──────────────────────────────────────────────

    async def get_or_compute(self, key: str, ttl_seconds: int, compute: Compute) -> Any:
        """Return the cached value, or compute, store with ``ttl_seconds`` and return it."""
        cached = await self._backend.get(key)
        if cached is not None:
            return cached
        value = await compute()
        await self._backend.set(key, value, ttl_seconds)
        return value

    async def get_or_compute_never_stale(self, key: str, compute: Compute) -> Any:
        """Return any stored value without calling ``compute``; otherwise compute and store forever."""
        cached = await self._backend.get(key)
        if cached is not None:
            return cached
        value = await compute()
        await self._backend.set(key, value, None)
        return value

    async def remember(
        self,
        key: str,
        ttl_seconds: int,
        primary: Compute,
        fallback: Compute | None = None,
    ) -> dict[str, Any]:
        """Stale-while-error read used by snapshot endpoints.

        Serves the cached value while younger than ``ttl_seconds``. Otherwise
        tries ``primary`` then ``fallback``; if both fail, serves the last
        value within the stale window. Fetch callables may return a
        ProviderFailure or raise a DashcacheError.

        Returns:
            ``{"data": ..., "metadata": {lastUpdated, cacheAge, source, isFresh}}``
            where source is one of cache, primary, fallback, stale_cache, none.
        """
        await self._bump_stats(totalRequests=1)

        entry = await self.get_entry(key)
        age = await self.age_seconds(key)
        if entry is not None and age is not None and age < ttl_seconds:
            await self._bump_stats(cacheHits=1, lastCacheHit=self.now().isoformat())
            return self._envelope(entry.value, "cache", entry.meta, age, ttl_seconds)

        for source, fetch in (("primary", primary), ("fallback", fallback)):
            if fetch is None:
                continue
            value, error = await self._attempt(fetch)
            if error is None:
                # Kept for the whole stale window so later failures can serve it
                await self.store_with_meta(key, value, source, self._stale_seconds)
                await self._bump_stats(lastApiSuccess=self.now().isoformat())
                meta = CacheMeta(timestamp=self.now(), source=source)
                return self._envelope(value, source, meta, 0.0, ttl_seconds)
            await self._record_failure(key, source, error)

        stale = await self.get_stale(key)
        if stale is not None:
            return self._envelope(stale.value, "stale_cache", stale.meta, age, ttl_seconds)
        return self._envelope(None, "none", None, None, ttl_seconds)

    async def _attempt(self, fetch: Compute) -> tuple[Any, str | None]:
        try:
            value = await fetch()
        except DashcacheError as e:
            return None, str(e)
        if isinstance(value, ProviderFailure):
            return None, str(value)
        if value is None:
            return None, "empty result"
        return value, None

    async def _record_failure(self, key: str, source: str, error: str) -> None:
        logger.warning("cache_source_failed", key=key, source=source, error=error)
        lowered = error.lower()
        if "rate limit" in lowered or "rate_limited" in lowered or "429" in lowered:
            await self._bump_stats(apiFailures=1, rateLimits=1)
        else:
            await self._bump_stats(apiFailures=1)

    def _envelope(
        self,
        data: Any,
        source: str,
        meta: CacheMeta | None,
        age: float | None,
        ttl_seconds: int,
    ) -> dict[str, Any]:
        return {
            "data": data,
            "metadata": {
                "lastUpdated": meta.timestamp.isoformat() if meta else None,
                "cacheAge": int(age) if age is not None else None,
                "source": source,
                "isFresh": age is not None and age < ttl_seconds,
            },
        }

    async def get_stats(self) -> dict[str, Any]:
        stats = await self._backend.get(keys.SYSTEM_STATS)
        return stats or {
            "totalRequests": 0,
            "cacheHits": 0,
            "apiFailures": 0,
            "rateLimits": 0,
            "lastApiSuccess": None,
            "lastCacheHit": None,
        }

    async def _bump_stats(self, **changes: Any) -> None:
        stats = await self.get_stats()
        for name, change in changes.items():
            if isinstance(change, int):
                stats[name] = int(stats.get(name) or 0) + change
            else:
                stats[name] = change
        await self._backend.set(keys.SYSTEM_STATS, stats, None)
