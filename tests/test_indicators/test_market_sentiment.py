"""Tests for market statistics, top movers, sentiment and social activity."""

from datetime import date
from decimal import Decimal

from dashcache.indicators.market import market_statistics, top_movers
from dashcache.indicators.sentiment import (
    Signal,
    market_sentiment,
    price_signal,
    sentiment_score,
    social_activity,
)
from dashcache.providers.schemas import CoinMarket, PriceFullRow


def market(coin_id: str, change: str | None, cap: str = "100", volume: str = "10") -> CoinMarket:
    return CoinMarket(
        id=coin_id,
        symbol=coin_id,
        name=coin_id,
        current_price=Decimal("1"),
        market_cap=Decimal(cap),
        total_volume=Decimal(volume),
        price_change_percentage_24h=Decimal(change) if change is not None else None,
    )


class TestMarketStatistics:
    """Totals and gainer/loser counts."""

    def test_totals_and_counts(self) -> None:
        """Coins without a 24h change are left out of the average and counts."""
        coins = [market("a", "5"), market("b", "-3"), market("c", "1"), market("d", None)]
        stats = market_statistics(coins)

        assert stats["totalMarketCap"] == Decimal("400")
        assert stats["totalVolume"] == Decimal("40")
        assert stats["averageChange24h"] == Decimal("1.00")
        assert stats["gainersCount"] == 2
        assert stats["losersCount"] == 1

    def test_empty_snapshot(self) -> None:
        """An empty snapshot gives zeros."""
        stats = market_statistics([])
        assert stats["averageChange24h"] == Decimal("0.00")
        assert stats["coinCount"] == 0


class TestTopMovers:
    """Top gainers and losers."""

    def test_top_five_each_way(self) -> None:
        """Five gainers and five losers, strongest first."""
        coins = [market(f"up{i}", str(i + 1)) for i in range(7)] + [
            market(f"down{i}", str(-(i + 1))) for i in range(7)
        ]
        movers = top_movers(coins)

        assert [m["id"] for m in movers["gainers"]] == ["up6", "up5", "up4", "up3", "up2"]
        assert [m["id"] for m in movers["losers"]] == ["down6", "down5", "down4", "down3", "down2"]


class TestSentiment:
    """Per-coin sentiment scores and signals."""

    def test_score_centered_and_clamped(self) -> None:
        """Score is 50 + 5 x change, clamped to 0-100."""
        assert sentiment_score(Decimal("0")) == Decimal("50.0")
        assert sentiment_score(Decimal("4")) == Decimal("70.0")
        assert sentiment_score(Decimal("20")) == Decimal("100.0")
        assert sentiment_score(Decimal("-20")) == Decimal("0.0")

    def test_signal_thresholds(self) -> None:
        """A move of 2% either way is a signal."""
        assert price_signal(Decimal("2")) == Signal.BULLISH
        assert price_signal(Decimal("1.99")) == Signal.NEUTRAL
        assert price_signal(Decimal("-2")) == Signal.BEARISH

    def test_market_sentiment_average(self) -> None:
        """Overall score is the mean of coin scores."""
        quotes = {
            "BTC": PriceFullRow(PRICE=Decimal("60000"), CHANGEPCT24HOUR=Decimal("4")),
            "ETH": PriceFullRow(PRICE=Decimal("3000"), CHANGEPCT24HOUR=Decimal("0")),
        }
        snapshot = market_sentiment(quotes)

        assert snapshot["overallScore"] == Decimal("60.0")
        assert snapshot["overall"] == "bullish"
        assert snapshot["coins"][0]["signal"] == "bullish"


class TestSocialActivity:
    """Volume-based activity index."""

    def test_normalizes_to_0_100(self) -> None:
        """Volumes are scaled between the window min and max."""
        volumes = [(date(2024, 1, d), Decimal(v)) for d, v in [(1, "10"), (2, "20"), (3, "30")]]
        result = social_activity(volumes)

        assert [row["activity"] for row in result["data"]] == [Decimal("0.0"), Decimal("50.0"), Decimal("100.0")]
        assert result["current"] == Decimal("100.0")
        assert result["average"] == Decimal("50.0")

    def test_flat_volume_is_50(self) -> None:
        """Flat volume reads as 50."""
        volumes = [(date(2024, 1, d), Decimal("5")) for d in (1, 2)]
        assert all(row["activity"] == Decimal("50") for row in social_activity(volumes)["data"])

    def test_empty(self) -> None:
        """No volumes means no current value."""
        assert social_activity([])["current"] is None
