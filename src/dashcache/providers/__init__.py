"""Upstream market-data provider adapters.

Each adapter wraps one HTTP API, validates its responses against explicit
schemas, and returns either parsed values or a typed ``ProviderFailure``.
"""

from dashcache.providers.alphavantage import AlphaVantageClient
from dashcache.providers.alternative import AlternativeClient
from dashcache.providers.base import FailureKind, HttpProvider, ProviderFailure, build_http_client
from dashcache.providers.coingecko import CoinGeckoClient
from dashcache.providers.cryptocompare import CryptoCompareClient
from dashcache.providers.fallback import first_success
from dashcache.providers.finnhub import FinnhubClient
from dashcache.providers.fred import FredClient

__all__ = [
    "AlphaVantageClient",
    "AlternativeClient",
    "CoinGeckoClient",
    "CryptoCompareClient",
    "FailureKind",
    "FinnhubClient",
    "FredClient",
    "HttpProvider",
    "ProviderFailure",
    "build_http_client",
    "first_success",
]
