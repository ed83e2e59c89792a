"""Tests for the cache backends and JSON encoding."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from dashcache.cache.backends import (
    MemoryBackend,
    RedisBackend,
    SqliteBackend,
    build_backend,
    decode,
    encode,
)
from dashcache.config import CacheSettings
from dashcache.exceptions import CacheBackendError


def test_encode_decimal_and_date_as_strings() -> None:
    """Decimals and dates are written as strings in compact JSON."""
    payload = encode({"price": Decimal("42000.10"), "day": date(2024, 1, 1)})
    assert payload == '{"price":"42000.10","day":"2024-01-01"}'
    assert decode(payload) == {"price": "42000.10", "day": "2024-01-01"}


class TestMemoryBackend:
    """In-process backend."""

    @pytest.mark.asyncio
    async def test_expiry(self, clock) -> None:
        """Expiring keys vanish at their TTL; keys without one persist."""
        backend = MemoryBackend(clock=clock)
        await backend.set("a", 1, ttl_seconds=10)
        await backend.set("b", 2)

        clock.advance(10)

        assert await backend.get("a") is None
        assert await backend.get("b") == 2

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self) -> None:
        """Deleting an absent key does nothing."""
        backend = MemoryBackend()
        await backend.delete("missing")
        assert backend.keys() == []


class TestSqliteBackend:
    """aiosqlite backend."""

    @pytest.mark.asyncio
    async def test_roundtrip_and_expiry(self, tmp_path, clock) -> None:
        """Values survive a write/read cycle and expire on the injected clock."""
        async with SqliteBackend(str(tmp_path / "cache.db"), clock=clock) as backend:
            await backend.set("series", [{"price": Decimal("1.5")}])
            await backend.set("frame", {"x": 1}, ttl_seconds=5)

            assert await backend.get("series") == [{"price": "1.5"}]
            clock.advance(6)
            assert await backend.get("frame") is None

            await backend.delete("series")
            assert await backend.get("series") is None

    @pytest.mark.asyncio
    async def test_not_connected(self, tmp_path) -> None:
        """Using the backend before connect() raises CacheBackendError."""
        backend = SqliteBackend(str(tmp_path / "cache.db"))
        with pytest.raises(CacheBackendError):
            await backend.get("k")


class TestRedisBackend:
    """redis.asyncio backend."""

    @pytest.mark.asyncio
    async def test_expiring_writes_use_setex(self) -> None:
        """TTL writes use SETEX, forever writes use SET."""
        client = AsyncMock()
        backend = RedisBackend(client=client)

        await backend.set("k", {"a": 1}, ttl_seconds=60)
        await backend.set("forever", [1])

        client.setex.assert_awaited_once_with("k", 60, '{"a":1}')
        client.set.assert_awaited_once_with("forever", "[1]")

    @pytest.mark.asyncio
    async def test_get_decodes(self) -> None:
        """Stored JSON is decoded on read."""
        client = AsyncMock()
        client.get.return_value = '{"a":1}'
        assert await RedisBackend(client=client).get("k") == {"a": 1}


def test_build_backend_memory() -> None:
    """The memory setting builds a MemoryBackend."""
    assert isinstance(build_backend(CacheSettings(backend="memory")), MemoryBackend)
