"""Pytest configuration and shared fixtures."""

import json
from typing import Callable, Dict, Union

import httpx
import pytest

from pricecompare.config import Settings
from pricecompare.scrapers.base import Query, SiteOverrides, TargetSite
from pricecompare.scrapers.utils.http_client import PageFetcher, create_http_client


Route = Union[str, dict, int, Callable[[httpx.Request], httpx.Response]]


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        GOOGLE_API_KEY="",
        GOOGLE_CSE_ID="",
        ZYDA_DOMAINS="",
        ORDABLE_DOMAINS="",
        SOURCE_TIMEOUT_SECONDS=5.0,
        RELEVANCE_THRESHOLD=0.25,
        MAX_RESULTS=30,
        DISCOVERY_URL_CAP=8,
    )


@pytest.fixture
def query() -> Query:
    return Query(text="shawarma", city="Kuwait")


@pytest.fixture
def food_target() -> TargetSite:
    return TargetSite(
        name="talabat",
        domain="talabat.com",
        base_url="https://www.talabat.com",
        overrides=SiteOverrides(
            search_urls=("{base}/kuwait/search?q={query}",),
            link_pattern=r"/kuwait/restaurant/|/menu|/brands/",
        ),
    )


@pytest.fixture
def plain_target() -> TargetSite:
    return TargetSite(name="jahez", domain="jahez.net", base_url="https://jahez.net")


def make_transport(routes: Dict[str, Route], calls: list | None = None) -> httpx.MockTransport:
    """MockTransport answering by URL prefix (query string ignored unless given).

    Route values: str -> 200 text/html, dict/list -> 200 JSON, int -> empty
    response with that status, callable -> called with the request.
    Unmatched URLs get 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if calls is not None:
            calls.append(url)
        # Longest prefix wins so specific routes beat generic ones
        for prefix in sorted(routes, key=len, reverse=True):
            if url.startswith(prefix):
                route = routes[prefix]
                if callable(route):
                    return route(request)
                if isinstance(route, int):
                    return httpx.Response(route)
                if isinstance(route, (dict, list)):
                    return httpx.Response(200, content=json.dumps(route).encode("utf-8"),
                                          headers={"content-type": "application/json"})
                return httpx.Response(200, text=route, headers={"content-type": "text/html"})
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.fixture
def transport_factory():
    """Expose make_transport to tests that wire their own client."""
    return make_transport


@pytest.fixture
async def fetcher_factory(settings):
    """Build a PageFetcher over a MockTransport; clients are closed after the test."""
    clients = []

    def _make(routes: Dict[str, Route], calls: list | None = None) -> PageFetcher:
        client = create_http_client(settings, transport=make_transport(routes, calls))
        clients.append(client)
        return PageFetcher(client)

    yield _make

    for client in clients:
        await client.aclose()
