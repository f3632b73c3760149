"""batch_scrape: multi-URL scrape job through Firecrawl."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field

from crawlmcp.tools.base import BaseTool, ToolArguments, ToolOptions

if TYPE_CHECKING:
    from crawlmcp.backends.firecrawl import FirecrawlClient


class BatchScrapeOptions(ToolOptions):
    formats: list[str] = Field(default_factory=lambda: ["markdown"])
    concurrency: int = 3


class BatchScrapeArgs(ToolArguments):
    urls: list[str]
    options: BatchScrapeOptions = Field(default_factory=BatchScrapeOptions)


class BatchScrapeTool(BaseTool[BatchScrapeArgs]):
    args_model = BatchScrapeArgs

    def __init__(self, firecrawl: FirecrawlClient) -> None:
        self._firecrawl = firecrawl

    @property
    def name(self) -> str:
        return "batch_scrape"

    @property
    def description(self) -> str:
        return "Scrape multiple URLs in batch using proxy rotation"

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "urls": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Array of URLs to scrape",
                },
                "options": {
                    "type": "object",
                    "properties": {
                        "formats": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Output formats",
                            "default": ["markdown"],
                        },
                        "concurrency": {
                            "type": "number",
                            "description": "Number of concurrent requests",
                            "default": 3,
                        },
                    },
                },
            },
            "required": ["urls"],
        }

    async def execute(self, args: BatchScrapeArgs) -> Any:
        opts = args.options
        return await self._firecrawl.batch_scrape(
            args.urls,
            {"formats": opts.formats or ["markdown"], "maxConcurrency": opts.concurrency},
        )
