"""Key -> JSON value cache backends.

``CacheBackend`` is the narrow store interface the pipeline writes through:
get, set with or without expiry, delete. Values are JSON documents; Decimals
and dates are written as strings. Three implementations:

- ``MemoryBackend``: in-process dict with an injectable clock (tests, dry runs).
- ``SqliteBackend``: aiosqlite file store with WAL mode (single-host deploys).
- ``RedisBackend``: redis.asyncio, the store the web layer reads in production.
"""

import json
import os
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Self

import aiosqlite
import redis.asyncio as aioredis

from dashcache.config import CacheSettings
from dashcache.exceptions import CacheBackendError
from dashcache.logging import get_logger

logger = get_logger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode(value: Any) -> str:
    """Serialize a cache value to compact JSON."""
    return json.dumps(value, separators=(",", ":"), default=_json_default)


def decode(payload: str | bytes) -> Any:
    return json.loads(payload)


class CacheBackend(ABC):
    """Abstract key-value store used by FreshnessCache."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the decoded value for ``key``, or None if absent or expired."""
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store ``value``; ``ttl_seconds=None`` stores without expiry."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    async def connect(self) -> None:
        """Open any underlying connection. No-op by default."""

    async def close(self) -> None:
        """Release any underlying connection. No-op by default."""

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()


class MemoryBackend(CacheBackend):
    """In-process backend. Values are stored encoded so reads match other backends.

    Args:
        clock: Returns epoch seconds; inject a fake to age entries in tests.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, float | None]] = {}

    async def get(self, key: str) -> Any | None:
        item = self._data.get(key)
        if item is None:
            return None
        payload, expires_at = item
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return None
        return decode(payload)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds is not None else None
        self._data[key] = (encode(value), expires_at)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    expires_at REAL
);
"""


class SqliteBackend(CacheBackend):
    """Async SQLite backend.

    Usage:
        async with SqliteBackend("data/cache.db") as backend:
            await backend.set("key", {"a": 1}, ttl_seconds=60)
    """

    def __init__(self, db_path: str = "data/cache.db", clock: Callable[[], float] = time.time) -> None:
        self._db_path = db_path
        self._clock = clock
        self._connection: aiosqlite.Connection | None = None

    @property
    def db(self) -> aiosqlite.Connection:
        """Access the raw aiosqlite connection.

        Raises CacheBackendError if not connected.
        """
        if self._connection is None:
            raise CacheBackendError("Cache database not connected. Call connect() first.")
        return self._connection

    async def connect(self) -> None:
        """Open the database, set WAL pragmas, and create the entries table."""
        db_dir = os.path.dirname(self._db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._connection = await aiosqlite.connect(self._db_path)
        await self._connection.execute("PRAGMA journal_mode=WAL")
        await self._connection.execute("PRAGMA synchronous=NORMAL")
        await self._connection.executescript(_CREATE_TABLES_SQL)
        await self._connection.commit()

        logger.info("cache_db_connected", db_path=self._db_path)

    async def close(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("cache_db_closed", db_path=self._db_path)

    async def get(self, key: str) -> Any | None:
        cursor = await self.db.execute(
            "SELECT value, expires_at FROM cache_entries WHERE key = ?", (key,)
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        payload, expires_at = row
        if expires_at is not None and expires_at <= self._clock():
            await self.delete(key)
            return None
        return decode(payload)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds is not None else None
        await self.db.execute(
            "INSERT OR REPLACE INTO cache_entries (key, value, expires_at) VALUES (?, ?, ?)",
            (key, encode(value), expires_at),
        )
        await self.db.commit()

    async def delete(self, key: str) -> None:
        await self.db.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
        await self.db.commit()


class RedisBackend(CacheBackend):
    """redis.asyncio backend; expiring writes use SETEX.

    Args:
        client: An existing ``redis.asyncio.Redis`` (decode_responses=True).
        url: Used to create a client when none is given.
    """

    def __init__(self, client: aioredis.Redis | None = None, url: str = "redis://localhost:6379/0") -> None:
        self._redis = client or aioredis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> Any | None:
        payload = await self._redis.get(key)
        if payload is None:
            return None
        return decode(payload)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        payload = encode(value)
        if ttl_seconds is None:
            await self._redis.set(key, payload)
        else:
            await self._redis.setex(key, max(1, int(ttl_seconds)), payload)

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def close(self) -> None:
        await self._redis.aclose()


def build_backend(settings: CacheSettings) -> CacheBackend:
    """Create the configured backend. The caller connects and closes it."""
    if settings.backend == "memory":
        return MemoryBackend()
    if settings.backend == "sqlite":
        return SqliteBackend(settings.sqlite_path)
    if settings.backend == "redis":
        return RedisBackend(url=settings.redis_url)
    raise CacheBackendError(f"Unknown cache backend: {settings.backend}")
