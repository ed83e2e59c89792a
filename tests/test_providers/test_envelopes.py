"""In-body error envelope detection for the keyed providers."""

from datetime import date
from decimal import Decimal

import httpx
import pytest

from dashcache.providers.alphavantage import AlphaVantageClient
from dashcache.providers.alternative import AlternativeClient
from dashcache.providers.base import FailureKind, ProviderFailure
from dashcache.providers.finnhub import FinnhubClient
from dashcache.providers.fred import FredClient


def responder(body: dict | list):
    return lambda request: httpx.Response(200, json=body)


class TestAlphaVantage:
    """Alpha Vantage RSI and its in-body envelopes."""

    URL = "https://www.alphavantage.test/query"

    @pytest.mark.asyncio
    async def test_parses_rsi_newest_first(self, make_http_client) -> None:
        """RSI values come back newest first."""
        body = {
            "Meta Data": {},
            "Technical Analysis: RSI": {
                "2024-01-01": {"RSI": "55.1"},
                "2024-01-02": {"RSI": "60.2"},
            },
        }
        client = AlphaVantageClient(make_http_client(responder(body)), self.URL, "key")
        values = await client.fetch_rsi()

        assert not isinstance(values, ProviderFailure)
        assert list(values) == ["2024-01-02", "2024-01-01"]
        assert values["2024-01-02"] == Decimal("60.2")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body,kind",
        [
            ({"Error Message": "Invalid API call."}, FailureKind.API_ERROR),
            ({"Note": "Thank you for using Alpha Vantage! call frequency is 5 calls per minute"}, FailureKind.RATE_LIMITED),
            ({"Information": "daily rate limit reached"}, FailureKind.RATE_LIMITED),
        ],
    )
    async def test_envelopes(self, make_http_client, body: dict, kind: FailureKind) -> None:
        """Error, Note and Information bodies map to failures."""
        client = AlphaVantageClient(make_http_client(responder(body)), self.URL, "key")
        result = await client.fetch_rsi()

        assert isinstance(result, ProviderFailure)
        assert result.kind == kind

    @pytest.mark.asyncio
    async def test_missing_key_fails_without_request(self, make_http_client) -> None:
        """No API key fails without a request."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        client = AlphaVantageClient(make_http_client(handler), self.URL, "")
        result = await client.fetch_rsi()

        assert isinstance(result, ProviderFailure)
        assert not client.is_configured


class TestFinnhub:
    """Finnhub news and calendar."""

    URL = "https://finnhub.test/api/v1"

    @pytest.mark.asyncio
    async def test_error_envelope(self, make_http_client) -> None:
        """An "error" body is an API error."""
        client = FinnhubClient(make_http_client(responder({"error": "Invalid API key"})), self.URL, "key")
        result = await client.fetch_crypto_news()

        assert isinstance(result, ProviderFailure)
        assert result.kind == FailureKind.API_ERROR

    @pytest.mark.asyncio
    async def test_calendar(self, make_http_client) -> None:
        """Calendar events are parsed."""
        body = {"economicCalendar": [{"event": "CPI", "country": "US", "impact": "high", "actual": None}]}
        client = FinnhubClient(make_http_client(responder(body)), self.URL, "key")
        events = await client.fetch_economic_calendar(date(2024, 1, 1), date(2024, 1, 31))

        assert not isinstance(events, ProviderFailure)
        assert events[0].event == "CPI"


class TestAlternative:
    """Alternative.me Fear & Greed."""

    URL = "https://api.alternative.test"

    @pytest.mark.asyncio
    async def test_parses_rows(self, make_http_client) -> None:
        """Rows are parsed with their classification."""
        body = {
            "data": [{"value": "72", "value_classification": "Greed", "timestamp": "01-01-2024"}],
            "metadata": {"error": None},
        }
        client = AlternativeClient(make_http_client(responder(body)), self.URL)
        rows = await client.fetch_fear_greed(1)

        assert not isinstance(rows, ProviderFailure)
        assert rows[0].value == 72

    @pytest.mark.asyncio
    async def test_metadata_error(self, make_http_client) -> None:
        """A metadata error is an API error."""
        body = {"data": [], "metadata": {"error": "bad limit"}}
        client = AlternativeClient(make_http_client(responder(body)), self.URL)
        result = await client.fetch_fear_greed(1)

        assert isinstance(result, ProviderFailure)
        assert result.kind == FailureKind.API_ERROR


class TestFred:
    """FRED observations."""

    URL = "https://api.stlouisfed.test/fred"

    @pytest.mark.asyncio
    async def test_skips_missing_observations(self, make_http_client) -> None:
        """Observations with "." are skipped."""
        body = {
            "observations": [
                {"date": "2024-01-01", "value": "5.33"},
                {"date": "2024-01-02", "value": "."},
                {"date": "2024-01-03", "value": "5.31"},
            ]
        }
        client = FredClient(make_http_client(responder(body)), self.URL, "key")
        rows = await client.fetch_series("FEDFUNDS", date(2024, 1, 1), date(2024, 1, 31))

        assert not isinstance(rows, ProviderFailure)
        assert rows == [(date(2024, 1, 1), Decimal("5.33")), (date(2024, 1, 3), Decimal("5.31"))]

    @pytest.mark.asyncio
    async def test_error_code_envelope(self, make_http_client) -> None:
        """An error_code body is an API error."""
        body = {"error_code": 400, "error_message": "Bad Request. The series does not exist."}
        client = FredClient(make_http_client(responder(body)), self.URL, "key")
        result = await client.fetch_series("NOPE", date(2024, 1, 1), date(2024, 1, 31))

        assert isinstance(result, ProviderFailure)
        assert result.kind == FailureKind.API_ERROR
        assert result.status_code == 400
