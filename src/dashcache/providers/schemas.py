"""Response schemas for upstream provider payloads.

One pydantic model per provider response shape. Adapters validate raw JSON
against these before translating into local types, so an unexpected shape
fails loudly instead of silently defaulting. Only fields the pipeline reads
are declared; extra fields are ignored unless a snapshot passes them through.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

# ──────────────────────────────────────────────
# CoinGecko
# ──────────────────────────────────────────────


class MarketChart(BaseModel):
    """``/coins/{id}/market_chart``: ``prices`` is ``[[ms, price], ...]``."""

    prices: list[tuple[float, Decimal]]


class CoinMarket(BaseModel):
    """One row of ``/coins/markets``. Extra fields are kept for snapshots."""

    model_config = ConfigDict(extra="allow")

    id: str
    symbol: str
    name: str
    current_price: Decimal | None = None
    market_cap: Decimal | None = None
    market_cap_rank: int | None = None
    total_volume: Decimal | None = None
    price_change_percentage_24h: Decimal | None = None
    price_change_percentage_7d_in_currency: Decimal | None = None
    price_change_percentage_30d_in_currency: Decimal | None = None
    price_change_percentage_90d_in_currency: Decimal | None = None


class GlobalData(BaseModel):
    """``/global`` payload body."""

    model_config = ConfigDict(extra="allow")

    total_market_cap: dict[str, Decimal]
    total_volume: dict[str, Decimal] = Field(default_factory=dict)
    market_cap_percentage: dict[str, Decimal] = Field(default_factory=dict)


class GlobalResponse(BaseModel):
    data: GlobalData


class TrendingResponse(BaseModel):
    """``/search/trending``; coin entries are passed through untouched."""

    coins: list[dict]


# ──────────────────────────────────────────────
# CryptoCompare
# ──────────────────────────────────────────────


class HistoDayRow(BaseModel):
    time: int
    close: Decimal
    volumeto: Decimal = Decimal("0")


class HistoDayData(BaseModel):
    Data: list[HistoDayRow]


class HistoDayResponse(BaseModel):
    """``/v2/histoday``: rows are nested under ``Data.Data``."""

    Data: HistoDayData


class PriceFullRow(BaseModel):
    """One ``RAW[symbol][currency]`` entry of ``/pricemultifull``."""

    PRICE: Decimal
    CHANGEPCT24HOUR: Decimal = Decimal("0")
    VOLUME24HOURTO: Decimal = Decimal("0")
    MKTCAP: Decimal = Decimal("0")


class PriceMultiFullResponse(BaseModel):
    RAW: dict[str, dict[str, PriceFullRow]]


# ──────────────────────────────────────────────
# Alternative.me
# ──────────────────────────────────────────────


class FearGreedRow(BaseModel):
    value: int
    value_classification: str
    timestamp: str
    time_until_update: str | None = None


class FearGreedResponse(BaseModel):
    data: list[FearGreedRow]


# ──────────────────────────────────────────────
# Alpha Vantage
# ──────────────────────────────────────────────


class RsiValue(BaseModel):
    RSI: Decimal


class RsiResponse(BaseModel):
    """``function=RSI``; keyed by date string, newest first."""

    model_config = ConfigDict(populate_by_name=True)

    values: dict[str, RsiValue] = Field(alias="Technical Analysis: RSI")


# ──────────────────────────────────────────────
# Finnhub
# ──────────────────────────────────────────────


class NewsArticle(BaseModel):
    headline: str
    url: str
    datetime: int
    summary: str = ""
    source: str = ""
    image: str = ""
    category: str = ""


class CalendarEvent(BaseModel):
    event: str
    time: str | None = None
    country: str | None = None
    impact: int | str | None = None
    actual: Decimal | None = None
    estimate: Decimal | None = None
    prev: Decimal | None = None
    unit: str | None = None


class EconomicCalendarResponse(BaseModel):
    economicCalendar: list[CalendarEvent]


# ──────────────────────────────────────────────
# FRED
# ──────────────────────────────────────────────


class FredObservation(BaseModel):
    date: str
    value: str


class FredObservationsResponse(BaseModel):
    observations: list[FredObservation]
