"""crawl_website: start a Firecrawl crawl job from a base URL."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field

from crawlmcp.tools.base import BaseTool, ToolArguments, ToolOptions

if TYPE_CHECKING:
    from crawlmcp.backends.firecrawl import FirecrawlClient


class CrawlWebsiteOptions(ToolOptions):
    limit: int = 10
    max_depth: int = Field(2, alias="maxDepth")
    include_paths: list[str] = Field(default_factory=list, alias="includePaths")
    exclude_paths: list[str] = Field(default_factory=list, alias="excludePaths")


class CrawlWebsiteArgs(ToolArguments):
    url: str
    options: CrawlWebsiteOptions = Field(default_factory=CrawlWebsiteOptions)


class CrawlWebsiteTool(BaseTool[CrawlWebsiteArgs]):
    args_model = CrawlWebsiteArgs

    def __init__(self, firecrawl: FirecrawlClient) -> None:
        self._firecrawl = firecrawl

    @property
    def name(self) -> str:
        return "crawl_website"

    @property
    def description(self) -> str:
        return "Crawl a website starting from a base URL"

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "The base URL to start crawling from",
                },
                "options": {
                    "type": "object",
                    "properties": {
                        "limit": {
                            "type": "number",
                            "description": "Maximum number of pages to crawl",
                            "default": 10,
                        },
                        "maxDepth": {
                            "type": "number",
                            "description": "Maximum crawl depth",
                            "default": 2,
                        },
                        "includePaths": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Paths to include in crawl",
                        },
                        "excludePaths": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Paths to exclude from crawl",
                        },
                    },
                },
            },
            "required": ["url"],
        }

    async def execute(self, args: CrawlWebsiteArgs) -> Any:
        opts = args.options
        return await self._firecrawl.crawl(
            args.url,
            {
                "limit": opts.limit or 10,
                "maxDepth": opts.max_depth or 2,
                "includePaths": opts.include_paths,
                "excludePaths": opts.exclude_paths,
                "scrapeOptions": {"formats": ["markdown"]},
            },
        )
