from __future__ import annotations

from typing import TYPE_CHECKING

from crawlmcp.tools.builtins.batch_scrape import BatchScrapeTool
from crawlmcp.tools.builtins.crawl4ai_scrape import Crawl4AIScrapeTool
from crawlmcp.tools.builtins.crawl_website import CrawlWebsiteTool
from crawlmcp.tools.builtins.extract_structured_data import ExtractStructuredDataTool
from crawlmcp.tools.builtins.get_crawl_status import GetCrawlStatusTool
from crawlmcp.tools.builtins.map_website import MapWebsiteTool
from crawlmcp.tools.builtins.scrape_url import ScrapeUrlTool
from crawlmcp.tools.builtins.search_and_scrape import SearchAndScrapeTool
from crawlmcp.tools.builtins.search_web import SearchWebTool
from crawlmcp.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from crawlmcp.backends.crawl4ai import Crawl4AIClient
    from crawlmcp.backends.firecrawl import FirecrawlClient
    from crawlmcp.backends.searxng import SearxngClient
    from crawlmcp.tools.fanout import FanoutAggregator


def register_builtins(
    registry: ToolRegistry,
    *,
    searxng: SearxngClient,
    crawl4ai: Crawl4AIClient,
    firecrawl: FirecrawlClient,
    aggregator: FanoutAggregator,
    proxy_url: str | None = None,
) -> None:
    """Register all built-in tools with the registry.

    Firecrawl tools are always registered; without an API key their calls
    fail with a clear error instead of disappearing from tools/list.
    """
    registry.register(ScrapeUrlTool(firecrawl))
    registry.register(BatchScrapeTool(firecrawl))
    registry.register(CrawlWebsiteTool(firecrawl))
    registry.register(MapWebsiteTool(firecrawl))
    registry.register(ExtractStructuredDataTool(firecrawl))
    registry.register(GetCrawlStatusTool(firecrawl))
    registry.register(SearchWebTool(searxng))
    registry.register(SearchAndScrapeTool(aggregator))
    registry.register(Crawl4AIScrapeTool(crawl4ai, proxy_url=proxy_url))
