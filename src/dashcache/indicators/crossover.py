"""Long-term moving-average crossover series (generalized Pi Cycle Top).

The Pi Cycle Top indicator compares the 111-day SMA with twice the 350-day
SMA; a rising cross of the short line above the scaled long line has
historically marked cycle tops.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from dashcache.indicators.averages import rolling_sma
from dashcache.models import IndicatorFrame, PricePoint

_CENTS = Decimal("0.01")


class CrossoverStatus(str, Enum):
    """Where the short average sits relative to the scaled long average."""

    ABOVE = "above"
    BELOW = "below"
    UNKNOWN = "unknown"


@dataclass
class CrossoverSummary:
    last_crossover: date | None
    crossover_count: int
    status: CrossoverStatus

    def to_dict(self) -> dict:
        return {
            "lastCrossover": self.last_crossover.isoformat() if self.last_crossover else None,
            "crossoverCount": self.crossover_count,
            "currentStatus": self.status.value,
        }


def _round_cents(value: Decimal | None) -> Decimal | None:
    if value is None:
        return None
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def crossover_labels(short_window: int, long_window: int, long_multiplier: int) -> tuple[str, str]:
    """Frame keys for the short and scaled long averages, e.g. ``ma111`` / ``ma350x2``."""
    return f"ma{short_window}", f"ma{long_window}x{long_multiplier}"


def long_term_crossover_series(
    series: Sequence[PricePoint],
    short_window: int = 111,
    long_window: int = 350,
    long_multiplier: int = 2,
) -> list[IndicatorFrame]:
    """Compute one IndicatorFrame per point with both averages and crossover flags.

    Both averages are rounded to cents before comparison. ``is_crossover``
    is true at index k only if both lines were defined at k-1, the short
    line was at or below the long line at k-1, and strictly above it at k.

    Args:
        series: Price points; sorted by timestamp before use.
        short_window: Short SMA window.
        long_window: Long SMA window.
        long_multiplier: Scale applied to the long SMA.

    Returns:
        Frames ascending by date, same length as ``series``.
    """
    ordered = sorted(series, key=lambda p: p.timestamp)
    prices = [p.price for p in ordered]
    short_ma = rolling_sma(prices, short_window)
    long_ma = rolling_sma(prices, long_window)
    short_label, long_label = crossover_labels(short_window, long_window, long_multiplier)

    frames: list[IndicatorFrame] = []
    prev_short: Decimal | None = None
    prev_long: Decimal | None = None
    for point, short_raw, long_raw in zip(ordered, short_ma, long_ma):
        short_value = _round_cents(short_raw)
        long_value = _round_cents(long_raw * long_multiplier) if long_raw is not None else None

        crossed = (
            prev_short is not None
            and prev_long is not None
            and short_value is not None
            and long_value is not None
            and prev_short <= prev_long
            and short_value > long_value
        )
        frames.append(
            IndicatorFrame(
                date=point.date,
                timestamp=point.timestamp,
                price=point.price,
                moving_averages={short_label: short_value, long_label: long_value},
                is_crossover=crossed,
            )
        )
        prev_short, prev_long = short_value, long_value

    return frames


def summarize_crossovers(frames: Sequence[IndicatorFrame]) -> CrossoverSummary:
    """Last crossover date, crossover count, and the current line relationship."""
    crossovers = [f for f in frames if f.is_crossover]
    status = CrossoverStatus.UNKNOWN
    if frames:
        values = list(frames[-1].moving_averages.values())
        if len(values) == 2 and values[0] is not None and values[1] is not None:
            status = CrossoverStatus.ABOVE if values[0] > values[1] else CrossoverStatus.BELOW

    return CrossoverSummary(
        last_crossover=crossovers[-1].date if crossovers else None,
        crossover_count=len(crossovers),
        status=status,
    )
