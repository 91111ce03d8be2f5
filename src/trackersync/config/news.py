"""Headline feed configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .http_resilience import CacheConfig, RateLimit, ResilienceConfig

GOOGLE_NEWS_RSS_URL = "https://news.google.com/rss/search"
NEWS_TIMEOUT_SECONDS = 15.0
NEWS_CACHE_TTL_SECONDS = 900.0
ITEMS_PER_QUERY = 5
MAX_HEADLINES = 100

DEFAULT_NEWS_QUERIES: tuple[str, ...] = (
    "ICE shooting victim",
    "Border Patrol shooting",
    "Trump lawsuit federal court",
    "Trump administration sued",
    "Trump approval rating poll",
    "Trump campaign promise broken",
    "Trump national debt",
    "Trump net worth Forbes",
    "Trump golf trips cost",
    "Trump conflict of interest emoluments",
)


@dataclass(frozen=True, slots=True)
class NewsConfig:
    queries: tuple[str, ...]
    resilience: ResilienceConfig
    items_per_query: int = ITEMS_PER_QUERY
    max_headlines: int = MAX_HEADLINES

    @property
    def enabled(self) -> bool:
        return bool(self.queries)


def _parse_queries(raw: str) -> tuple[str, ...]:
    return tuple(query.strip() for query in raw.split(";") if query.strip())


def get_news_config(*, resilience: ResilienceConfig | None = None) -> NewsConfig:
    """Headline queries come from ``TRACKERSYNC_NEWS_QUERIES``; an empty value disables them."""

    raw = os.getenv("TRACKERSYNC_NEWS_QUERIES")
    queries = DEFAULT_NEWS_QUERIES if raw is None else _parse_queries(raw)
    return NewsConfig(
        queries=queries,
        resilience=resilience
        or ResilienceConfig(
            name="google-news",
            timeout_seconds=NEWS_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            cache=CacheConfig(
                backend="sqlite",
                default_ttl_seconds=NEWS_CACHE_TTL_SECONDS,
                refresh_ttl_on_access=False,
                ignore_cache_headers=True,
            ),
        ),
    )
