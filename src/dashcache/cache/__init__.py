"""Cache layer: key names, backends, and the freshness-aware facade."""

from dashcache.cache.backends import (
    CacheBackend,
    MemoryBackend,
    RedisBackend,
    SqliteBackend,
    build_backend,
)
from dashcache.cache.freshness import FreshnessCache

__all__ = [
    "CacheBackend",
    "FreshnessCache",
    "MemoryBackend",
    "RedisBackend",
    "SqliteBackend",
    "build_backend",
]
