"""Google News RSS headline source."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import feedparser
import httpx

from trackersync.adapters.http_resilience import default_client_factory
from trackersync.config.news import GOOGLE_NEWS_RSS_URL, NewsConfig, get_news_config
from trackersync.domain.ports.fetching import Headline

if TYPE_CHECKING:
    from trackersync.adapters.http_resilience import ClientFactory, ResilientClient
    from trackersync.domain.ports.fetching import HeadlineSource

log = getLogger(__name__)

_MAX_TITLE_LENGTH = 500


def _clean_title(raw: object) -> str:
    if not isinstance(raw, str):
        return ""
    return " ".join(raw.split())[:_MAX_TITLE_LENGTH]


@dataclass(slots=True)
class GoogleNewsHeadlines:
    """Fetch the newest headlines for each configured search query.

    A query that fails contributes no headlines; the others are still returned.
    """

    config: NewsConfig = field(default_factory=get_news_config)
    client_factory: ClientFactory = field(default=default_client_factory)

    def __call__(self) -> list[Headline]:
        if not self.config.enabled:
            return []
        return asyncio.run(self._fetch_all_async())

    async def _fetch_all_async(self) -> list[Headline]:
        headlines: list[Headline] = []
        seen: set[str] = set()
        async with self.client_factory(self.config.resilience) as client:
            for query in self.config.queries:
                for headline in await self._fetch_query(client=client, query=query):
                    if headline.title in seen:
                        continue
                    seen.add(headline.title)
                    headlines.append(headline)
        return headlines[: self.config.max_headlines]

    async def _fetch_query(self, *, client: ResilientClient, query: str) -> list[Headline]:
        params = {"q": query, "hl": "en-US", "gl": "US", "ceid": "US:en"}
        try:
            response = await client.get(GOOGLE_NEWS_RSS_URL, params=params)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            log.warning(f"Headline query {query!r} failed: {exc}")
            return []

        feed = feedparser.parse(response.text)
        headlines: list[Headline] = []
        for entry in feed.entries[: self.config.items_per_query]:
            title = _clean_title(entry.get("title"))
            if not title:
                continue
            headlines.append(
                Headline(title=title, published=str(entry.get("published", "")), query=query)
            )
        return headlines


if TYPE_CHECKING:
    _source_check: HeadlineSource = GoogleNewsHeadlines()
