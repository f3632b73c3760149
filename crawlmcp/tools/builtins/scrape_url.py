"""scrape_url: single-page scrape through Firecrawl."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field

from crawlmcp.tools.base import BaseTool, ToolArguments, ToolOptions

if TYPE_CHECKING:
    from crawlmcp.backends.firecrawl import FirecrawlClient


class ScrapeUrlOptions(ToolOptions):
    formats: list[str] = Field(default_factory=lambda: ["markdown"])
    wait_for: int = Field(0, alias="waitFor")
    timeout: int = 30_000


class ScrapeUrlArgs(ToolArguments):
    url: str
    options: ScrapeUrlOptions = Field(default_factory=ScrapeUrlOptions)


class ScrapeUrlTool(BaseTool[ScrapeUrlArgs]):
    args_model = ScrapeUrlArgs

    def __init__(self, firecrawl: FirecrawlClient) -> None:
        self._firecrawl = firecrawl

    @property
    def name(self) -> str:
        return "scrape_url"

    @property
    def description(self) -> str:
        return "Scrape content from a single URL using proxy rotation"

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
                            "description": (
                                "Output formats (markdown, html, rawHtml, links, screenshot)"
                            ),
                            "default": ["markdown"],
                        },
                        "waitFor": {
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

    async def execute(self, args: ScrapeUrlArgs) -> Any:
        opts = args.options
        return await self._firecrawl.scrape(
            args.url,
            {
                "formats": opts.formats or ["markdown"],
                "waitFor": opts.wait_for,
                "timeout": opts.timeout,
            },
        )
