"""Client factories that route ``ResilientClient`` traffic to an in-process handler."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

from trackersync.adapters.http_resilience import ResilientClient

if TYPE_CHECKING:
    from collections.abc import Callable

    from trackersync.config import ResilienceConfig


def make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    requests: list[httpx.Request] | None = None,
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            base_url=resilience.base_url or "",
            headers=dict(resilience.default_headers or {}),
            transport=httpx.MockTransport(async_handler),
        )
        return client

    return factory


def make_transport_factory(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    requests: list[httpx.Request] | None = None,
) -> Callable[[ResilienceConfig], ResilientClient]:
    """Like ``make_client_factory`` but keeps the retry transport and response cache."""

    async def async_handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(resilience, transport=httpx.MockTransport(async_handler))

    return factory
