"""search_web: SearXNG metasearch."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field

from crawlmcp.infra.errors import ToolError
from crawlmcp.tools.base import BaseTool, ToolArguments, ToolOptions

if TYPE_CHECKING:
    from crawlmcp.backends.searxng import SearxngClient


class SearchWebOptions(ToolOptions):
    engines: str | None = None
    categories: str | None = None
    language: str = "en"
    limit: int = Field(1, description="Result page number (SearXNG pageno)")


class SearchWebArgs(ToolArguments):
    query: str
    options: SearchWebOptions = Field(default_factory=SearchWebOptions)


class SearchWebTool(BaseTool[SearchWebArgs]):
    args_model = SearchWebArgs

    def __init__(self, searxng: SearxngClient) -> None:
        self._searxng = searxng

    @property
    def name(self) -> str:
        return "search_web"

    @property
    def description(self) -> str:
        return "Search the web using SearXNG (truly self-hosted search)"

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "The search query"},
                "options": {
                    "type": "object",
                    "properties": {
                        "engines": {
                            "type": "string",
                            "description": 'Comma-separated list of engines (e.g., "google,bing")',
                        },
                        "categories": {
                            "type": "string",
                            "description": "Search categories (general, images, news, etc.)",
                        },
                        "language": {
                            "type": "string",
                            "description": "Search language (en, es, fr, etc.)",
                            "default": "en",
                        },
                        "limit": {
                            "type": "number",
                            "description": "Number of results page (pageno)",
                            "default": 1,
                        },
                    },
                },
            },
            "required": ["query"],
        }

    async def execute(self, args: SearchWebArgs) -> Any:
        opts = args.options
        try:
            result = await self._searxng.search(
                args.query,
                engines=opts.engines,
                categories=opts.categories,
                language=opts.language or "en",
                pageno=opts.limit or 1,
            )
        except Exception as e:
            raise ToolError(f"Search failed: {e}") from e

        return {
            "query": result.query,
            "total_results": result.number_of_results,
            "results": [
                {
                    "title": r.title,
                    "url": r.url,
                    "content": r.content,
                    "publishedDate": r.published_date,
                }
                for r in result.results
            ],
            "suggestions": result.suggestions,
            "engine_info": {"unresponsive": result.unresponsive_engines},
        }
