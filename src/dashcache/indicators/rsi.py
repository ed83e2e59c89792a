"""Relative Strength Index with Wilder smoothing.

CRITICAL: All computations use Decimal. Never use float.
"""

from collections.abc import Sequence
from decimal import Decimal

_RSI_QUANTIZE = Decimal("0.000000000001")
_HUNDRED = Decimal("100")


def relative_strength_index(closes: Sequence[Decimal], period: int = 14) -> list[Decimal | None]:
    """Compute RSI aligned one-for-one with ``closes``.

    Average gain and loss are seeded with the simple mean of the first
    ``period`` day-over-day deltas (losses as positive magnitudes), then
    smoothed as ``avg = (avg * (period - 1) + current) / period``.
    RSI is exactly 100 when the average loss is 0, otherwise
    ``100 - 100 / (1 + avg_gain / avg_loss)``.

    Args:
        closes: Closing prices, oldest first.
        period: Lookback period.

    Returns:
        List the same length as ``closes``; the first ``period`` entries are
        None because no full window of deltas exists yet.
    """
    if period <= 0:
        raise ValueError(f"period must be positive, got {period}")

    result: list[Decimal | None] = [None] * len(closes)
    if len(closes) <= period:
        return result

    deltas = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    gains = [d if d > 0 else Decimal("0") for d in deltas]
    losses = [-d if d < 0 else Decimal("0") for d in deltas]

    avg_gain = (sum(gains[:period], Decimal("0")) / period).quantize(_RSI_QUANTIZE)
    avg_loss = (sum(losses[:period], Decimal("0")) / period).quantize(_RSI_QUANTIZE)
    result[period] = _rsi(avg_gain, avg_loss)

    for i in range(period, len(deltas)):
        avg_gain = ((avg_gain * (period - 1) + gains[i]) / period).quantize(_RSI_QUANTIZE)
        avg_loss = ((avg_loss * (period - 1) + losses[i]) / period).quantize(_RSI_QUANTIZE)
        result[i + 1] = _rsi(avg_gain, avg_loss)

    return result


def _rsi(avg_gain: Decimal, avg_loss: Decimal) -> Decimal:
    if avg_loss == 0:
        return _HUNDRED
    rs = avg_gain / avg_loss
    return (_HUNDRED - _HUNDRED / (Decimal("1") + rs)).quantize(_RSI_QUANTIZE)
