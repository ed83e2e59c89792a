"""Append-only historical daily price series kept in the no-expiry cache tier.

Once warmed, a series only needs the days since its last stored date on each
refresh cycle instead of a full re-fetch. Finalized daily closes never
change, so existing dates always win over newly fetched duplicates.
"""

from datetime import date

from dashcache.cache.freshness import FreshnessCache
from dashcache.config import SeriesSettings
from dashcache.logging import get_logger
from dashcache.models import PricePoint

logger = get_logger(__name__)


class SeriesStore:
    """Durable per-asset price series with incremental merge.

    Args:
        cache: Freshness cache; series are written with ``put_forever``.
        settings: Retention cap and incremental window sizing.
    """

    def __init__(self, cache: FreshnessCache, settings: SeriesSettings) -> None:
        self._cache = cache
        self._settings = settings

    async def get_series(self, key: str) -> list[PricePoint]:
        """Return the stored series ascending by timestamp (empty if none)."""
        raw = await self._cache.get(key)
        if not raw:
            return []
        points = [PricePoint.from_dict(item) for item in raw]
        return sorted(points, key=lambda p: p.timestamp)

    async def get_last_date(self, key: str) -> date | None:
        series = await self.get_series(key)
        if not series:
            return None
        return series[-1].date

    async def days_to_fetch(self, key: str, today: date) -> int:
        """Number of days to request for the next incremental update.

        Gap since the last stored date plus the safety buffer, capped at the
        maximum history. With nothing stored, a full backfill is requested.
        """
        last_date = await self.get_last_date(key)
        if last_date is None:
            return self._settings.max_history_days
        gap = max(0, (today - last_date).days)
        return min(gap + self._settings.buffer_days, self._settings.max_history_days)

    async def merge(self, key: str, new_points: list[PricePoint]) -> list[PricePoint]:
        """Merge newly fetched points into the stored series and persist it.

        Duplicate dates keep the stored point. The result is sorted ascending
        by timestamp and truncated to the newest ``max_points``. An empty
        ``new_points`` (e.g. after a failed fetch) leaves the store untouched.

        Returns:
            The merged series.
        """
        existing = await self.get_series(key)
        if not new_points:
            return existing

        by_date = {point.date: point for point in existing}
        added = 0
        for point in new_points:
            if point.date not in by_date:
                by_date[point.date] = point
                added += 1

        merged = sorted(by_date.values(), key=lambda p: p.timestamp)
        dropped = max(0, len(merged) - self._settings.max_points)
        if dropped:
            merged = merged[dropped:]

        if added or dropped or len(merged) != len(existing):
            await self._cache.put_forever(key, [point.to_dict() for point in merged])

        logger.info(
            "series_merged",
            key=key,
            fetched=len(new_points),
            added=added,
            dropped=dropped,
            total=len(merged),
        )
        return merged
