"""Bitcoin rainbow chart: power-law fair value with nine logarithmic bands.

    log10(fair_value) = -17.01 + 5.82 * log10(days since 2009-01-09)

Each band is the fair value shifted by a fixed offset in log10 space. band4
(offset 0) is the fair value itself.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from dashcache.models import PricePoint

GENESIS_DATE = date(2009, 1, 9)
POWER_LAW_EXPONENT = Decimal("5.82")
POWER_LAW_INTERCEPT = Decimal("-17.01")
#: Top band upper bound for position-in-band, relative to its lower bound
TOP_BAND_HEADROOM = Decimal("1.25")


@dataclass(frozen=True)
class RainbowBand:
    name: str
    offset: Decimal
    label: str
    color: str


#: Lowest to highest
BANDS: tuple[RainbowBand, ...] = (
    RainbowBand("band1", Decimal("-0.38"), "Fire Sale", "#0D47A1"),
    RainbowBand("band2", Decimal("-0.20"), "Accumulate", "#1976D2"),
    RainbowBand("band3", Decimal("-0.10"), "Still Cheap", "#42A5F5"),
    RainbowBand("band4", Decimal("0"), "Fair Value", "#4CAF50"),
    RainbowBand("band5", Decimal("0.10"), "HODL!", "#FFEB3B"),
    RainbowBand("band6", Decimal("0.20"), "Is this a bubble?", "#FFB74D"),
    RainbowBand("band7", Decimal("0.30"), "FOMO Intensifies", "#FF9800"),
    RainbowBand("band8", Decimal("0.40"), "Sell. Seriously, SELL!", "#F44336"),
    RainbowBand("band9", Decimal("0.50"), "Maximum Bubble Territory", "#B71C1C"),
)
BANDS_BY_NAME = {band.name: band for band in BANDS}


def days_since_genesis(day: date) -> int:
    return (day - GENESIS_DATE).days


def round_band_value(value: Decimal) -> Decimal:
    """Display rounding: 4 dp below 1, 2 dp below 100, whole below 10k, else nearest 1000."""
    if value < 1:
        return value.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)
    if value < 100:
        return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if value < 10000:
        return value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return (value / 1000).quantize(Decimal("1"), rounding=ROUND_HALF_UP) * 1000


def band_values(days: int) -> dict[str, Decimal]:
    """Rounded band prices for a given day count since genesis (minimum 1)."""
    days = max(days, 1)
    log_fair = POWER_LAW_INTERCEPT + POWER_LAW_EXPONENT * Decimal(days).log10()
    return {
        band.name: round_band_value(Decimal(10) ** (log_fair + band.offset)) for band in BANDS
    }


def current_band(price: Decimal, bands: dict[str, Decimal]) -> str:
    """Highest band whose value the price reaches; band1 if below all of them."""
    for band in reversed(BANDS):
        value = bands.get(band.name)
        if value is not None and price >= value:
            return band.name
    return BANDS[0].name


def rainbow_chart(series: Sequence[PricePoint]) -> list[dict[str, Any]]:
    """Chart rows ``{date, timestamp(ms), price, band1..band9}`` ascending by date.

    Points before day 1 of the power law are skipped.
    """
    rows: list[dict[str, Any]] = []
    for point in sorted(series, key=lambda p: p.timestamp):
        days = days_since_genesis(point.date)
        if days < 1:
            continue
        row: dict[str, Any] = {
            "date": point.date.isoformat(),
            "timestamp": point.timestamp * 1000,
            "price": point.price,
        }
        row.update(band_values(days))
        rows.append(row)
    return rows


def rainbow_status(price: Decimal, day: date) -> dict[str, Any]:
    """Where ``price`` sits on the rainbow for ``day``.

    ``positionInBand`` is the percentage of the way from the current band's
    value to the next band's (the top band uses a 25% headroom).
    """
    days = days_since_genesis(day)
    bands = band_values(days)
    name = current_band(price, bands)
    index = [band.name for band in BANDS].index(name)

    lower = bands[name]
    upper = bands[BANDS[index + 1].name] if index < len(BANDS) - 1 else lower * TOP_BAND_HEADROOM
    position = (price - lower) / (upper - lower) * 100 if upper != lower else Decimal("0")
    fair_value = bands["band4"]

    return {
        "price": price.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        "daysSinceGenesis": days,
        "currentBand": name,
        "bandLabel": BANDS_BY_NAME[name].label,
        "bandColor": BANDS_BY_NAME[name].color,
        "positionInBand": position.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP),
        "bands": bands,
        "fairValue": fair_value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        "deviationFromFairValue": ((price / fair_value - 1) * 100).quantize(
            Decimal("0.1"), rounding=ROUND_HALF_UP
        ),
    }


def rainbow_metadata() -> dict[str, Any]:
    return {
        "bandLabels": {band.name: band.label for band in BANDS},
        "bandColors": {band.name: band.color for band in BANDS},
        "powerLaw": {"exponent": POWER_LAW_EXPONENT, "intercept": POWER_LAW_INTERCEPT},
    }
