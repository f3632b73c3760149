"""search_and_scrape: composite tool backed by FanoutAggregator."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field

from crawlmcp.tools.base import BaseTool, ToolArguments, ToolOptions

if TYPE_CHECKING:
    from crawlmcp.tools.fanout import FanoutAggregator


class SearchAndScrapeOptions(ToolOptions):
    max_results: int | None = None
    engines: str | None = None
    language: str = "en"
    scrape_formats: list[str] = Field(default_factory=lambda: ["markdown"])


class SearchAndScrapeArgs(ToolArguments):
    query: str
    options: SearchAndScrapeOptions = Field(default_factory=SearchAndScrapeOptions)


class SearchAndScrapeTool(BaseTool[SearchAndScrapeArgs]):
    """Search once, then scrape the top results concurrently.

    Per-URL scrape failures are data inside a successful result; only a
    failed search makes the whole call fail.
    """

    args_model = SearchAndScrapeArgs

    def __init__(self, aggregator: FanoutAggregator) -> None:
        self._aggregator = aggregator

    @property
    def name(self) -> str:
        return "search_and_scrape"

    @property
    def description(self) -> str:
        return (
            "Search the web and automatically scrape top results "
            "(combines SearXNG + Crawl4AI)"
        )

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "The search query"},
                "options": {
                    "type": "object",
                    "properties": {
                        "max_results": {
                            "type": "number",
                            "description": "Maximum number of search results to scrape",
                            "default": 3,
                        },
                        "engines": {
                            "type": "string",
                            "description": "Search engines to use",
                        },
                        "language": {
                            "type": "string",
                            "description": "Search language",
                            "default": "en",
                        },
                        "scrape_formats": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Formats for scraped content",
                            "default": ["markdown"],
                        },
                    },
                },
            },
            "required": ["query"],
        }

    async def execute(self, args: SearchAndScrapeArgs) -> Any:
        opts = args.options
        return await self._aggregator.run(
            args.query,
            max_results=opts.max_results,
            engines=opts.engines,
            language=opts.language or "en",
            scrape_formats=opts.scrape_formats,
        )
