"""Scheduled refresh domains and the sequential sub-task orchestrator."""

from dashcache.refresh.economic import EconomicRefresher
from dashcache.refresh.indicators import IndicatorRefresher
from dashcache.refresh.market import MarketRefresher
from dashcache.refresh.market_data import MarketDataRefresher
from dashcache.refresh.news import NewsCalendarRefresher
from dashcache.refresh.orchestrator import DomainRefresher, RefreshOrchestrator, SubTask
from dashcache.refresh.sentiment import SentimentRefresher
from dashcache.refresh.wallet import WalletRefresher, WalletTracker

__all__ = [
    "DomainRefresher",
    "EconomicRefresher",
    "IndicatorRefresher",
    "MarketDataRefresher",
    "MarketRefresher",
    "NewsCalendarRefresher",
    "RefreshOrchestrator",
    "SentimentRefresher",
    "SubTask",
    "WalletRefresher",
    "WalletTracker",
]
