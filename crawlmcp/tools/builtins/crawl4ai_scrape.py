"""crawl4ai_scrape: single-URL scrape through the self-hosted Crawl4AI service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field

from crawlmcp.infra.errors import ToolError
from crawlmcp.tools.base import BaseTool, ToolArguments, ToolOptions

if TYPE_CHECKING:
    from crawlmcp.backends.crawl4ai import Crawl4AIClient


class Crawl4AIScrapeOptions(ToolOptions):
    formats: list[str] = Field(default_factory=lambda: ["markdown"])
    wait_for: int = 0
    timeout: int = 30_000


class Crawl4AIScrapeArgs(ToolArguments):
    url: str
    options: Crawl4AIScrapeOptions = Field(default_factory=Crawl4AIScrapeOptions)


class Crawl4AIScrapeTool(BaseTool[Crawl4AIScrapeArgs]):
    args_model = Crawl4AIScrapeArgs

    def __init__(self, crawl4ai: Crawl4AIClient, *, proxy_url: str | None = None) -> None:
        self._crawl4ai = crawl4ai
        self._proxy_url = proxy_url

    @property
    def name(self) -> str:
        return "crawl4ai_scrape"

    @property
    def description(self) -> str:
        return "Scrape a URL using Crawl4AI (better than Firecrawl for self-hosted)"

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "The URL to scrape"},
                "options": {
                    "type": "object",
                    "properties": {
                        "formats": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Output formats",
                            "default": ["markdown"],
                        },
                        "wait_for": {
                            "type": "number",
                            "description": "Wait time in milliseconds",
                            "default": 0,
                        },
                        "timeout": {
                            "type": "number",
                            "description": "Timeout in milliseconds",
                            "default": 30000,
                        },
                    },
                },
            },
            "required": ["url"],
        }

    async def execute(self, args: Crawl4AIScrapeArgs) -> Any:
        try:
            return await self._crawl4ai.scrape(
                args.url,
                formats=args.options.formats,
                wait_for=args.options.wait_for,
                timeout_ms=args.options.timeout,
                proxy_url=self._proxy_url,
            )
        except Exception as e:
            raise ToolError(f"Crawl4AI scrape failed: {e}") from e
