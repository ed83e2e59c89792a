"""Configuration system using pydantic-settings with environment variable loading."""

from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderSettings(BaseSettings):
    """Upstream market-data API endpoints and credentials."""

    model_config = SettingsConfigDict(env_prefix="PROVIDER_")

    coingecko_url: str = "https://api.coingecko.com/api/v3"
    cryptocompare_url: str = "https://min-api.cryptocompare.com/data"
    alpha_vantage_url: str = "https://www.alphavantage.co/query"
    finnhub_url: str = "https://finnhub.io/api/v1"
    fred_url: str = "https://api.stlouisfed.org/fred"
    alternative_url: str = "https://api.alternative.me"

    coingecko_api_key: SecretStr = SecretStr("")
    cryptocompare_api_key: SecretStr = SecretStr("")
    alpha_vantage_api_key: SecretStr = SecretStr("")
    finnhub_api_key: SecretStr = SecretStr("")
    fred_api_key: SecretStr = SecretStr("")

    timeout_seconds: float = 30.0  # bounded so a hung upstream cannot stall a run
    user_agent: str = "dashcache/1.0"


class CacheSettings(BaseSettings):
    """Cache backend selection and freshness windows."""

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    backend: Literal["memory", "sqlite", "redis"] = "redis"
    redis_url: str = "redis://localhost:6379/0"
    sqlite_path: str = "data/cache.db"
    fresh_seconds: int = 60
    stale_seconds: int = 30 * 86400  # stale values older than this are not served


class SeriesSettings(BaseSettings):
    """Historical price series retention and incremental fetch sizing."""

    model_config = SettingsConfigDict(env_prefix="SERIES_")

    max_points: int = 2000
    buffer_days: int = 2  # overlap added to the gap since the last stored date
    max_history_days: int = 2000  # full backfill when nothing is stored
    free_tier_max_days: int = 365


class IndicatorSettings(BaseSettings):
    """Indicator windows and output TTLs."""

    model_config = SettingsConfigDict(env_prefix="INDICATOR_")

    pi_cycle_short_window: int = 111
    pi_cycle_long_window: int = 350
    pi_cycle_long_multiplier: int = 2
    frame_ttl_seconds: int = 86400

    rsi_period: int = 14
    rsi_days: int = 30
    rsi_keep: int = 30  # newest RSI values kept in the cached document
    rsi_ttl_seconds: int = 86400

    rainbow_ttl_seconds: int = 86400
    altcoin_top_n: int = 50


class RefreshSettings(BaseSettings):
    """Per-domain refresh parameters."""

    model_config = SettingsConfigDict(env_prefix="REFRESH_")

    market_per_page: int = 250
    market_ttl_seconds: int = 3600
    wallet_batch_size: int = 50
    wallet_coin_ttl_seconds: int = 7 * 86400
    wallet_ttl_seconds: int = 3600
    snapshot_ttl_seconds: int = 3600
    news_per_page: int = 20
    news_ttl_seconds: int = 1800
    calendar_ttl_seconds: int = 3600
    economic_ttl_seconds: int = 86400
    min_refresh_seconds: int = 300  # younger outputs are skipped unless forced


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    providers: ProviderSettings = ProviderSettings()
    cache: CacheSettings = CacheSettings()
    series: SeriesSettings = SeriesSettings()
    indicators: IndicatorSettings = IndicatorSettings()
    refresh: RefreshSettings = RefreshSettings()
