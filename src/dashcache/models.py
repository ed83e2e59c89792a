"""Core data models for the cache-refresh pipeline.

CRITICAL: All prices use Decimal. Never use float for price or indicator
values. Cached JSON stores Decimals as strings and restores them on read.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class PricePoint:
    """One daily close in a historical price series.

    ``timestamp`` is seconds since epoch; ``date`` is the UTC calendar day
    and is unique within a series.
    """

    date: date
    timestamp: int
    price: Decimal

    @classmethod
    def from_timestamp(cls, timestamp: int, price: Decimal) -> "PricePoint":
        """Build a point from an epoch timestamp in seconds."""
        day = datetime.fromtimestamp(timestamp, tz=timezone.utc).date()
        return cls(date=day, timestamp=int(timestamp), price=price)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "timestamp": self.timestamp,
            "price": str(self.price),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PricePoint":
        return cls(
            date=date.fromisoformat(data["date"]),
            timestamp=int(data["timestamp"]),
            price=Decimal(str(data["price"])),
        )


@dataclass
class IndicatorFrame:
    """One computed indicator record per date.

    ``moving_averages`` maps a window label (e.g. ``ma111``) to its value,
    or None while the series is shorter than that window.
    """

    date: date
    timestamp: int
    price: Decimal
    moving_averages: dict[str, Decimal | None]
    is_crossover: bool = False

    def to_dict(self) -> dict[str, Any]:
        # Millisecond timestamp for chart consumers
        data: dict[str, Any] = {
            "date": self.date.isoformat(),
            "timestamp": self.timestamp * 1000,
            "price": str(self.price),
        }
        for label, value in self.moving_averages.items():
            data[label] = str(value) if value is not None else None
        data["isCrossover"] = self.is_crossover
        return data


class RunStatus(str, Enum):
    """Terminal state of a domain refresh run."""

    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    FAILURE = "failure"


@dataclass
class RunResult:
    """Outcome of one orchestrated sub-task."""

    name: str
    success: bool
    duration_seconds: float
    detail: str = ""
    error: str | None = None


@dataclass
class RunReport:
    """Aggregated results of one domain refresh run."""

    name: str
    results: list[RunResult] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> list[RunResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[RunResult]:
        return [r for r in self.results if not r.success]

    @property
    def success(self) -> bool:
        """Domains are best-effort: one successful sub-task is enough."""
        return bool(self.succeeded)

    @property
    def status(self) -> RunStatus:
        if not self.succeeded:
            return RunStatus.FAILURE
        if self.failed:
            return RunStatus.PARTIAL_FAILURE
        return RunStatus.SUCCESS

    @property
    def detail(self) -> str:
        """Short summary for operator tables."""
        parts = []
        for r in self.results:
            text = r.detail if r.success else f"failed ({r.error})"
            parts.append(f"{r.name}: {text}" if text else r.name)
        return "; ".join(parts)


@dataclass
class CacheMeta:
    """Companion metadata stored under ``<key>_meta``."""

    timestamp: datetime
    source: str

    def to_dict(self) -> dict[str, str]:
        return {"timestamp": self.timestamp.isoformat(), "source": self.source}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheMeta":
        ts = datetime.fromisoformat(data["timestamp"])
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return cls(timestamp=ts, source=str(data.get("source", "unknown")))


@dataclass
class CacheEntry:
    """A cached value together with its metadata, if any was stored."""

    key: str
    value: Any
    meta: CacheMeta | None = None
