"""Simple and exponential moving averages over Decimal price lists.

CRITICAL: All computations use Decimal. Never use float.
"""

from collections.abc import Sequence
from decimal import Decimal

#: Precision limit for EMA intermediate results (12 decimal places).
_EMA_QUANTIZE = Decimal("0.000000000001")


def simple_moving_average(prices: Sequence[Decimal], index: int, window: int) -> Decimal | None:
    """Average of the ``window`` prices ending at ``index`` (inclusive).

    Args:
        prices: Ordered prices (oldest first).
        index: Position of the last price in the window.
        window: Number of prices averaged.

    Returns:
        The mean, or None if fewer than ``window`` prices precede ``index``.
    """
    if window <= 0:
        raise ValueError(f"window must be positive, got {window}")
    if index < 0 or index >= len(prices):
        raise IndexError(f"index {index} out of range for {len(prices)} prices")
    if index < window - 1:
        return None
    return sum(prices[index - window + 1 : index + 1], Decimal("0")) / window


def rolling_sma(prices: Sequence[Decimal], window: int) -> list[Decimal | None]:
    """SMA at every index using a running sum. Equal to ``simple_moving_average`` per index."""
    if window <= 0:
        raise ValueError(f"window must be positive, got {window}")

    result: list[Decimal | None] = []
    running = Decimal("0")
    for i, price in enumerate(prices):
        running += price
        if i >= window:
            running -= prices[i - window]
        result.append(running / window if i >= window - 1 else None)
    return result


def exponential_moving_average(prices: Sequence[Decimal], period: int) -> list[Decimal | None]:
    """Compute EMA aligned one-for-one with ``prices``.

    The first value appears at index ``period - 1`` and is the SMA of the
    first ``period`` prices. After that:
        alpha = 2 / (period + 1)
        EMA_t = alpha * price_t + (1 - alpha) * EMA_{t-1}

    Each result is quantized to 12 decimal places.

    Returns:
        List the same length as ``prices``; None before the seed index.
    """
    if period <= 0:
        raise ValueError(f"period must be positive, got {period}")
    if len(prices) < period:
        return [None] * len(prices)

    alpha = Decimal("2") / (Decimal(period) + Decimal("1"))
    one_minus_alpha = Decimal("1") - alpha

    result: list[Decimal | None] = [None] * (period - 1)
    ema = (sum(prices[:period], Decimal("0")) / period).quantize(_EMA_QUANTIZE)
    result.append(ema)
    for price in prices[period:]:
        ema = (alpha * price + one_minus_alpha * ema).quantize(_EMA_QUANTIZE)
        result.append(ema)
    return result
