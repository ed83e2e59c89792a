"""Tests for the append-only historical series store."""

from datetime import date
from decimal import Decimal

import pytest

from dashcache.config import SeriesSettings
from dashcache.series.store import SeriesStore

KEY = "pi_cycle_historical_prices"


@pytest.fixture
def store(cache) -> SeriesStore:
    return SeriesStore(cache, SeriesSettings())


class TestMerge:
    """Merging fetched points into a stored series."""

    @pytest.mark.asyncio
    async def test_merge_into_empty_sorts(self, store, make_series) -> None:
        """Points are stored sorted by date."""
        points = make_series([1, 2, 3])
        merged = await store.merge(KEY, list(reversed(points)))

        assert [p.date for p in merged] == [p.date for p in points]
        assert await store.get_series(KEY) == merged

    @pytest.mark.asyncio
    async def test_existing_dates_win(self, store, make_series) -> None:
        """Stored prices are kept over refetched ones for the same date."""
        await store.merge(KEY, make_series([100, 101]))
        merged = await store.merge(KEY, make_series([999, 999, 102]))

        assert [p.price for p in merged] == [Decimal("100"), Decimal("101"), Decimal("102")]

    @pytest.mark.asyncio
    async def test_merge_is_idempotent(self, store, make_series) -> None:
        """Merging the same points twice changes nothing."""
        points = make_series([1, 2, 3])
        first = await store.merge(KEY, points)
        second = await store.merge(KEY, points)
        assert first == second

    @pytest.mark.asyncio
    async def test_caps_to_newest_points(self, cache, make_series) -> None:
        """Only the newest max_points are kept."""
        store = SeriesStore(cache, SeriesSettings(max_points=3))
        merged = await store.merge(KEY, make_series([1, 2, 3, 4, 5]))

        assert [p.price for p in merged] == [Decimal("3"), Decimal("4"), Decimal("5")]

    @pytest.mark.asyncio
    async def test_empty_fetch_leaves_store_untouched(self, store, backend, make_series) -> None:
        """An empty fetch never clears or creates a series."""
        assert await store.merge(KEY, []) == []
        assert KEY not in backend.keys()

        await store.merge(KEY, make_series([1, 2]))
        assert len(await store.merge(KEY, [])) == 2

    @pytest.mark.asyncio
    async def test_series_never_expires(self, store, clock, make_series) -> None:
        """Series are stored without a TTL."""
        await store.merge(KEY, make_series([1]))
        clock.advance(10 * 365 * 86400)
        assert len(await store.get_series(KEY)) == 1


class TestDaysToFetch:
    """Incremental window sizing."""

    @pytest.mark.asyncio
    async def test_empty_store_requests_full_history(self, store) -> None:
        """An empty store asks for the full 2000 days."""
        assert await store.days_to_fetch(KEY, date(2024, 1, 15)) == 2000
        assert await store.get_last_date(KEY) is None

    @pytest.mark.asyncio
    async def test_gap_plus_buffer(self, store, make_series) -> None:
        """The window is the gap since the last date plus the buffer."""
        await store.merge(KEY, make_series([1] * 10, start=date(2024, 1, 1)))
        assert await store.get_last_date(KEY) == date(2024, 1, 10)
        assert await store.days_to_fetch(KEY, date(2024, 1, 15)) == 7

    @pytest.mark.asyncio
    async def test_up_to_date_still_fetches_buffer(self, store, make_series) -> None:
        """An up-to-date series still refetches the buffer days."""
        await store.merge(KEY, make_series([1], start=date(2024, 1, 15)))
        assert await store.days_to_fetch(KEY, date(2024, 1, 15)) == 2

    @pytest.mark.asyncio
    async def test_capped_at_max_history(self, cache, make_series) -> None:
        """The window never exceeds max_history_days."""
        store = SeriesStore(cache, SeriesSettings(max_history_days=30))
        await store.merge(KEY, make_series([1], start=date(2020, 1, 1)))
        assert await store.days_to_fetch(KEY, date(2024, 1, 1)) == 30
