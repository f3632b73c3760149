"""Shared pytest fixtures for crawlmcp tests.

Backend clients are exercised against httpx.MockTransport; everything above
the backends gets AsyncMock stand-ins so no test touches the network.
"""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import structlog

from crawlmcp.backends.searxng import SearchResponse, SearchResult

Handler = Callable[[httpx.Request], httpx.Response]


def _search_response(
    urls: list[str], *, query: str = "q", total: int | None = None,
) -> SearchResponse:
    results = [
        SearchResult(title=f"Title {i}", url=url, content=f"Snippet {i}")
        for i, url in enumerate(urls)
    ]
    return SearchResponse(
        query=query,
        number_of_results=len(results) if total is None else total,
        results=results,
    )


@pytest.fixture(autouse=True)
def _reset_structlog():
    """setup_logging() binds output to the current sys.stderr, which pytest swaps per test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def mock_http_client() -> Callable[[Handler], httpx.AsyncClient]:
    """Factory: AsyncClient whose every request is answered by ``handler``."""

    def _make(handler: Handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def make_search_response() -> Callable[..., SearchResponse]:
    return _search_response


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Strip every env var the settings read so defaults are observable."""
    for name in (
        "SEARXNG_URL", "CRAWL4AI_URL", "FIRECRAWL_API_KEY", "FIRECRAWL_API_URL",
        "PROXY_URL", "MCP_HTTP_ENABLED", "MCP_HTTP_HOST", "MCP_HTTP_PORT", "MCP_PORT",
        "MCP_INTERNAL_TOKEN", "MCP_SSE_PATH", "MCP_SSE_KEEPALIVE_S", "MCP_STDIO_ENABLED", "FANOUT_CONCURRENCY",
        "FANOUT_DEFAULT_MAX_RESULTS", "FANOUT_MAX_RESULTS_CAP", "LOG_LEVEL", "LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def searxng() -> MagicMock:
    client = MagicMock()
    client.search = AsyncMock(return_value=_search_response([]))
    client.health_check = AsyncMock(return_value=True)
    return client


@pytest.fixture
def crawl4ai() -> MagicMock:
    client = MagicMock()
    client.scrape = AsyncMock(
        side_effect=lambda url, **_kw: {"success": True, "data": {"url": url, "markdown": "# ok"}},
    )
    client.health_check = AsyncMock(return_value=True)
    return client


@pytest.fixture
def firecrawl() -> MagicMock:
    client = MagicMock()
    for method in ("scrape", "batch_scrape", "crawl", "map", "extract", "get_crawl_status"):
        setattr(client, method, AsyncMock(return_value={"success": True}))
    return client
