"""Tests for the built-in tool handlers against mocked backend clients."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from crawlmcp.backends.searxng import SearchResponse, SearchResult
from crawlmcp.config.settings import FanoutSettings
from crawlmcp.infra.errors import BackendTimeoutError, ToolError
from crawlmcp.tools.builtins import register_builtins
from crawlmcp.tools.builtins.batch_scrape import BatchScrapeTool
from crawlmcp.tools.builtins.crawl4ai_scrape import Crawl4AIScrapeTool
from crawlmcp.tools.builtins.crawl_website import CrawlWebsiteTool
from crawlmcp.tools.builtins.extract_structured_data import ExtractStructuredDataTool
from crawlmcp.tools.builtins.get_crawl_status import GetCrawlStatusTool
from crawlmcp.tools.builtins.map_website import MapWebsiteTool
from crawlmcp.tools.builtins.scrape_url import ScrapeUrlTool
from crawlmcp.tools.builtins.search_and_scrape import SearchAndScrapeTool
from crawlmcp.tools.builtins.search_web import SearchWebTool
from crawlmcp.tools.fanout import FanoutAggregator
from crawlmcp.tools.registry import ToolRegistry

EXPECTED_CATALOG = [
    "scrape_url",
    "batch_scrape",
    "crawl_website",
    "map_website",
    "extract_structured_data",
    "get_crawl_status",
    "search_web",
    "search_and_scrape",
    "crawl4ai_scrape",
]


def test_register_builtins_full_catalog(searxng, crawl4ai, firecrawl) -> None:
    registry = ToolRegistry()
    aggregator = FanoutAggregator(searxng, crawl4ai, FanoutSettings())
    register_builtins(
        registry,
        searxng=searxng,
        crawl4ai=crawl4ai,
        firecrawl=firecrawl,
        aggregator=aggregator,
    )
    assert registry.names() == EXPECTED_CATALOG
    for tool in registry.get_tools_schema():
        assert tool["description"]
        assert tool["inputSchema"]["type"] == "object"


# ---------------------------------------------------------------------------
# Firecrawl-backed tools
# ---------------------------------------------------------------------------


class TestFirecrawlTools:
    @pytest.mark.asyncio
    async def test_scrape_url_defaults(self, firecrawl) -> None:
        await ScrapeUrlTool(firecrawl).run({"url": "https://example.com"})
        firecrawl.scrape.assert_awaited_once_with(
            "https://example.com",
            {"formats": ["markdown"], "waitFor": 0, "timeout": 30000},
        )

    @pytest.mark.asyncio
    async def test_scrape_url_camel_case_option(self, firecrawl) -> None:
        await ScrapeUrlTool(firecrawl).run(
            {"url": "https://example.com", "options": {"waitFor": 1500, "formats": ["html"]}},
        )
        _, options = firecrawl.scrape.await_args.args
        assert options["waitFor"] == 1500
        assert options["formats"] == ["html"]

    @pytest.mark.asyncio
    async def test_batch_scrape(self, firecrawl) -> None:
        await BatchScrapeTool(firecrawl).run({"urls": ["https://a", "https://b"]})
        firecrawl.batch_scrape.assert_awaited_once_with(
            ["https://a", "https://b"], {"formats": ["markdown"], "maxConcurrency": 3},
        )

    @pytest.mark.asyncio
    async def test_crawl_website_defaults(self, firecrawl) -> None:
        await CrawlWebsiteTool(firecrawl).run(
            {"url": "https://example.com", "options": {"includePaths": ["/docs"]}},
        )
        _, options = firecrawl.crawl.await_args.args
        assert options == {
            "limit": 10,
            "maxDepth": 2,
            "includePaths": ["/docs"],
            "excludePaths": [],
            "scrapeOptions": {"formats": ["markdown"]},
        }

    @pytest.mark.asyncio
    async def test_map_website_forwards_only_set_options(self, firecrawl) -> None:
        await MapWebsiteTool(firecrawl).run(
            {"url": "https://example.com", "options": {"search": "blog"}},
        )
        firecrawl.map.assert_awaited_once_with("https://example.com", {"search": "blog"})

    @pytest.mark.asyncio
    async def test_extract_with_schema(self, firecrawl) -> None:
        schema = {"type": "object", "properties": {"price": {"type": "number"}}}
        await ExtractStructuredDataTool(firecrawl).run(
            {"url": "https://shop", "prompt": "price", "schema": schema},
        )
        firecrawl.extract.assert_awaited_once_with("https://shop", prompt="price", schema=schema)

    @pytest.mark.asyncio
    async def test_extract_requires_prompt(self, firecrawl) -> None:
        with pytest.raises(ToolError, match="prompt"):
            await ExtractStructuredDataTool(firecrawl).run({"url": "https://shop"})
        firecrawl.extract.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_crawl_status(self, firecrawl) -> None:
        await GetCrawlStatusTool(firecrawl).run({"jobId": "job-1"})
        firecrawl.get_crawl_status.assert_awaited_once_with("job-1")


# ---------------------------------------------------------------------------
# SearXNG / Crawl4AI tools
# ---------------------------------------------------------------------------


class TestSearchWeb:
    @pytest.mark.asyncio
    async def test_shapes_output(self, searxng) -> None:
        searxng.search = AsyncMock(return_value=SearchResponse(
            query="python",
            number_of_results=42,
            results=[SearchResult(
                title="Python", url="https://python.org", content="Home",
                published_date="2024-01-01",
            )],
            suggestions=["python docs"],
            unresponsive_engines=[["bing", "timeout"]],
        ))

        result = await SearchWebTool(searxng).run(
            {"query": "python", "options": {"engines": "google", "limit": 2}},
        )

        searxng.search.assert_awaited_once_with(
            "python", engines="google", categories=None, language="en", pageno=2,
        )
        assert result == {
            "query": "python",
            "total_results": 42,
            "results": [{
                "title": "Python",
                "url": "https://python.org",
                "content": "Home",
                "publishedDate": "2024-01-01",
            }],
            "suggestions": ["python docs"],
            "engine_info": {"unresponsive": [["bing", "timeout"]]},
        }

    @pytest.mark.asyncio
    async def test_failure_message(self, searxng) -> None:
        searxng.search = AsyncMock(side_effect=BackendTimeoutError("SearXNG request timed out"))
        with pytest.raises(ToolError, match="^Search failed: SearXNG request timed out$"):
            await SearchWebTool(searxng).run({"query": "python"})


class TestCrawl4AIScrape:
    @pytest.mark.asyncio
    async def test_forwards_proxy_and_options(self, crawl4ai) -> None:
        tool = Crawl4AIScrapeTool(crawl4ai, proxy_url="http://proxy:8080")
        result = await tool.run(
            {"url": "https://example.com", "options": {"wait_for": 200, "timeout": 5000}},
        )
        crawl4ai.scrape.assert_awaited_once_with(
            "https://example.com",
            formats=["markdown"],
            wait_for=200,
            timeout_ms=5000,
            proxy_url="http://proxy:8080",
        )
        assert result["success"] is True

    @pytest.mark.asyncio
    async def test_failure_message(self, crawl4ai) -> None:
        crawl4ai.scrape = AsyncMock(side_effect=RuntimeError("connection reset"))
        with pytest.raises(ToolError, match="^Crawl4AI scrape failed: connection reset$"):
            await Crawl4AIScrapeTool(crawl4ai).run({"url": "https://example.com"})


class TestSearchAndScrape:
    @pytest.mark.asyncio
    async def test_delegates_to_aggregator(self) -> None:
        aggregator = MagicMock()
        aggregator.run = AsyncMock(return_value={"query": "q"})
        result = await SearchAndScrapeTool(aggregator).run(
            {"query": "q", "options": {"max_results": 2, "scrape_formats": ["html"]}},
        )
        assert result == {"query": "q"}
        aggregator.run.assert_awaited_once_with(
            "q", max_results=2, engines=None, language="en", scrape_formats=["html"],
        )
