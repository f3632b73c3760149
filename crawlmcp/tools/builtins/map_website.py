"""map_website: sitemap-style URL discovery through Firecrawl."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field

from crawlmcp.tools.base import BaseTool, ToolArguments, ToolOptions

if TYPE_CHECKING:
    from crawlmcp.backends.firecrawl import FirecrawlClient


class MapWebsiteOptions(ToolOptions):
    search: str | None = None
    limit: int | None = None
    ignore_sitemap: bool = Field(False, alias="ignoreSitemap")


class MapWebsiteArgs(ToolArguments):
    url: str
    options: MapWebsiteOptions = Field(default_factory=MapWebsiteOptions)


class MapWebsiteTool(BaseTool[MapWebsiteArgs]):
    args_model = MapWebsiteArgs

    def __init__(self, firecrawl: FirecrawlClient) -> None:
        self._firecrawl = firecrawl

    @property
    def name(self) -> str:
        return "map_website"

    @property
    def description(self) -> str:
        return "Get a complete list of URLs from a website (like sitemap discovery)"

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "The website URL to map"},
                "options": {
                    "type": "object",
                    "properties": {
                        "search": {
                            "type": "string",
                            "description": "Search term to filter URLs",
                        },
                        "limit": {
                            "type": "number",
                            "description": "Maximum number of URLs to return",
                            "default": 5000,
                        },
                        "ignoreSitemap": {
                            "type": "boolean",
                            "description": "Ignore sitemap and crawl manually",
                            "default": False,
                        },
                    },
                },
            },
            "required": ["url"],
        }

    async def execute(self, args: MapWebsiteArgs) -> Any:
        opts = args.options
        # Only forward what the caller set; Firecrawl applies its own defaults.
        map_options: dict[str, Any] = {}
        if opts.search:
            map_options["search"] = opts.search
        if opts.limit:
            map_options["limit"] = opts.limit
        if opts.ignore_sitemap:
            map_options["ignoreSitemap"] = True
        return await self._firecrawl.map(args.url, map_options)
