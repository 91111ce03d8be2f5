from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from tests.helpers.transport import make_client_factory, make_transport_factory
from trackersync.adapters.news import GoogleNewsHeadlines
from trackersync.config import NO_RETRY, CacheConfig, NewsConfig, ResilienceConfig, get_news_config

if TYPE_CHECKING:
    from pathlib import Path


def _rss(*titles: str) -> str:
    items = "".join(
        f"<item><title>{title}</title><pubDate>Mon, 02 Jun 2025 10:00:00 GMT</pubDate></item>"
        for title in titles
    )
    return f'<?xml version="1.0"?><rss version="2.0"><channel><title>q</title>{items}</channel></rss>'


def _config(*queries: str, **overrides: int) -> NewsConfig:
    return NewsConfig(
        queries=queries,
        resilience=ResilienceConfig(name="google-news"),
        **overrides,
    )


def test_headlines_are_fetched_per_query_and_deduplicated() -> None:
    feeds = {
        "golf": _rss("Golf trip costs rise", "Shared headline"),
        "debt": _rss("Shared headline", "Debt passes 37 trillion"),
    }
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=feeds[request.url.params["q"]])

    source = GoogleNewsHeadlines(
        config=_config("golf", "debt"),
        client_factory=make_client_factory(handler, requests=requests),
    )

    headlines = source()

    assert [headline.title for headline in headlines] == [
        "Golf trip costs rise",
        "Shared headline",
        "Debt passes 37 trillion",
    ]
    assert headlines[0].query == "golf"
    assert headlines[0].published
    assert requests[0].url.host == "news.google.com"
    assert requests[0].url.params["ceid"] == "US:en"


def test_items_per_query_and_total_cap() -> None:
    source = GoogleNewsHeadlines(
        config=_config("a", "b", items_per_query=2, max_headlines=3),
        client_factory=make_client_factory(
            lambda request: httpx.Response(
                200,
                text=_rss(*(f"{request.url.params['q']}-{index}" for index in range(5))),
            )
        ),
    )

    titles = [headline.title for headline in source()]

    assert titles == ["a-0", "a-1", "b-0"]


def test_failed_query_is_skipped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["q"] == "broken":
            return httpx.Response(503)
        return httpx.Response(200, text=_rss("Still here"))

    source = GoogleNewsHeadlines(
        config=_config("broken", "fine"),
        client_factory=make_client_factory(handler),
    )

    assert [headline.title for headline in source()] == ["Still here"]


def test_disabled_source_makes_no_requests() -> None:
    requests: list[httpx.Request] = []
    source = GoogleNewsHeadlines(
        config=_config(),
        client_factory=make_client_factory(lambda _request: httpx.Response(200), requests=requests),
    )

    assert source() == []
    assert requests == []


def test_news_queries_from_environment(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("TRACKERSYNC_NEWS_QUERIES", "ICE shooting; ; Trump golf ")

    assert get_news_config().queries == ("ICE shooting", "Trump golf")

    clean_env.setenv("TRACKERSYNC_NEWS_QUERIES", "")

    assert get_news_config().enabled is False


def test_default_news_queries(clean_env: pytest.MonkeyPatch) -> None:
    config = get_news_config()

    assert config.enabled
    assert config.resilience.cache is not None


def test_second_cycle_is_served_from_cache(tmp_path: Path) -> None:
    requests: list[httpx.Request] = []
    config = NewsConfig(
        queries=("golf", "debt"),
        resilience=ResilienceConfig(
            name="google-news",
            retry=NO_RETRY,
            cache=CacheConfig(
                backend="sqlite",
                sqlite_path=str(tmp_path / "http_cache.db"),
                default_ttl_seconds=900.0,
                refresh_ttl_on_access=False,
                ignore_cache_headers=True,
            ),
        ),
    )
    source = GoogleNewsHeadlines(
        config=config,
        client_factory=make_transport_factory(
            lambda request: httpx.Response(
                200,
                text=_rss(f"{request.url.params['q']} headline"),
                headers={"Cache-Control": "private, max-age=0"},
            ),
            requests=requests,
        ),
    )

    first = source()
    second = source()

    assert len(requests) == 2
    assert [headline.title for headline in second] == [headline.title for headline in first]
    assert [headline.title for headline in first] == ["golf headline", "debt headline"]


def test_default_news_cache_outlives_one_cycle(clean_env: pytest.MonkeyPatch) -> None:
    cache = get_news_config().resilience.cache

    assert cache is not None
    assert cache.backend == "sqlite"
    assert cache.default_ttl_seconds == 900.0
    assert cache.refresh_ttl_on_access is False
    assert cache.ignore_cache_headers is True


def test_failed_responses_are_not_cached(tmp_path: Path) -> None:
    requests: list[httpx.Request] = []
    statuses = [503, 200]

    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(statuses.pop(0), text=_rss("Recovered"))

    source = GoogleNewsHeadlines(
        config=NewsConfig(
            queries=("golf",),
            resilience=ResilienceConfig(
                name="google-news",
                retry=NO_RETRY,
                cache=CacheConfig(
                    backend="sqlite",
                    sqlite_path=str(tmp_path / "http_cache.db"),
                    default_ttl_seconds=900.0,
                    ignore_cache_headers=True,
                ),
            ),
        ),
        client_factory=make_transport_factory(handler, requests=requests),
    )

    assert source() == []
    assert [headline.title for headline in source()] == ["Recovered"]
    assert len(requests) == 2
