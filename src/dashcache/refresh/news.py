"""News & calendar domain: paged crypto news feed and filtered economic calendar."""

from collections.abc import Callable
from datetime import date, datetime, timezone
from typing import Any

from dashcache.cache import keys
from dashcache.cache.freshness import FreshnessCache
from dashcache.config import RefreshSettings
from dashcache.providers.base import ProviderFailure
from dashcache.providers.finnhub import FinnhubClient
from dashcache.providers.schemas import CalendarEvent, NewsArticle
from dashcache.refresh.orchestrator import DomainRefresher, SubTask

#: Pages written ahead for the news feed
NEWS_PAGES = 2


def normalize_article(article: NewsArticle) -> dict[str, Any]:
    return {
        "title": article.headline,
        "summary": article.summary,
        "url": article.url,
        "source": article.source,
        "publishedAt": datetime.fromtimestamp(article.datetime, tz=timezone.utc).isoformat(),
        "image": article.image,
        "category": article.category,
    }


def news_page(articles: list[NewsArticle], page: int, per_page: int, updated_at: str) -> dict[str, Any]:
    """One page of the feed, newest first."""
    ordered = sorted(articles, key=lambda a: a.datetime, reverse=True)
    start = (page - 1) * per_page
    chunk = ordered[start : start + per_page]
    return {
        "articles": [normalize_article(a) for a in chunk],
        "count": len(chunk),
        "total": len(ordered),
        "page": page,
        "per_page": per_page,
        "has_more": start + per_page < len(ordered),
        "lastUpdated": updated_at,
    }


def impact_level(impact: int | str | None) -> str:
    """Finnhub reports impact as 1-3 or as a word; normalize to high/medium/low."""
    if isinstance(impact, str):
        lowered = impact.strip().lower()
        if lowered.isdigit():
            return impact_level(int(lowered))
        return lowered if lowered in ("high", "medium") else "low"
    if impact == 3:
        return "high"
    if impact == 2:
        return "medium"
    return "low"


def filter_calendar(events: list[CalendarEvent]) -> list[dict[str, Any]]:
    """Drop low-impact events; keep US events and high-impact events elsewhere."""
    kept = []
    for event in events:
        impact = impact_level(event.impact)
        if impact == "low":
            continue
        if event.country != "US" and impact != "high":
            continue
        kept.append(
            {
                "time": event.time,
                "country": event.country,
                "event": event.event,
                "impact": impact,
                "actual": event.actual,
                "estimate": event.estimate,
                "previous": event.prev,
                "unit": event.unit,
            }
        )
    kept.sort(key=lambda e: e["time"] or "")
    return kept


def calendar_range(today: date) -> tuple[date, date]:
    """January 1 of this year to December 31 of next year."""
    return date(today.year, 1, 1), date(today.year + 1, 12, 31)


class NewsCalendarRefresher(DomainRefresher):
    name = "news_calendar"
    title = "News & Calendar Cache"

    def __init__(
        self,
        finnhub: FinnhubClient,
        cache: FreshnessCache,
        settings: RefreshSettings,
        today: Callable[[], date] = lambda: datetime.now(timezone.utc).date(),
    ) -> None:
        super().__init__(cache, settings.min_refresh_seconds)
        self._finnhub = finnhub
        self._settings = settings
        self._today = today

    def _calendar_key(self) -> str:
        start, end = calendar_range(self._today())
        return keys.economic_calendar(start.isoformat(), end.isoformat())

    def subtasks(self, force: bool = False) -> list[SubTask]:
        per_page = self._settings.news_per_page
        return [
            SubTask("Crypto News", self.refresh_news, keys.news_feed(1, per_page)),
            SubTask("Economic Calendar", self.refresh_calendar, self._calendar_key()),
        ]

    async def refresh_news(self) -> str | ProviderFailure:
        articles = await self._finnhub.fetch_crypto_news()
        if isinstance(articles, ProviderFailure):
            return articles

        per_page = self._settings.news_per_page
        updated_at = self._cache.now().isoformat()
        pages_written = 0
        for page in range(1, NEWS_PAGES + 1):
            if page > 1 and len(articles) <= (page - 1) * per_page:
                break
            await self._cache.store_with_meta(
                keys.news_feed(page, per_page),
                news_page(articles, page, per_page, updated_at),
                source=self._finnhub.name,
                ttl_seconds=self._settings.news_ttl_seconds,
            )
            pages_written += 1
        return f"{len(articles)} articles, {pages_written} pages"

    async def refresh_calendar(self) -> str | ProviderFailure:
        start, end = calendar_range(self._today())
        events = await self._finnhub.fetch_economic_calendar(start, end)
        if isinstance(events, ProviderFailure):
            return events

        kept = filter_calendar(events)
        await self._cache.store_with_meta(
            keys.economic_calendar(start.isoformat(), end.isoformat()),
            {"events": kept, "from": start.isoformat(), "to": end.isoformat()},
            source=self._finnhub.name,
            ttl_seconds=self._settings.calendar_ttl_seconds,
        )
        return f"{len(kept)} of {len(events)} events kept"
