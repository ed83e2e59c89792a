"""Historical price series persistence."""

from dashcache.series.store import SeriesStore

__all__ = ["SeriesStore"]
