from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field

from crawlmcp.tools.base import BaseTool, ToolArguments

if TYPE_CHECKING:
    from crawlmcp.backends.firecrawl import FirecrawlClient


class GetCrawlStatusArgs(ToolArguments):
    job_id: str = Field(alias="jobId")


class GetCrawlStatusTool(BaseTool[GetCrawlStatusArgs]):
    """Polls a Firecrawl crawl job started by crawl_website."""

    args_model = GetCrawlStatusArgs

    def __init__(self, firecrawl: FirecrawlClient) -> None:
        self._firecrawl = firecrawl

    @property
    def name(self) -> str:
        return "get_crawl_status"

    @property
    def description(self) -> str:
        return "Check the status of a crawl job by ID"

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "jobId": {
                    "type": "string",
                    "description": "The crawl job ID to check",
                },
            },
            "required": ["jobId"],
        }

    async def execute(self, args: GetCrawlStatusArgs) -> Any:
        return await self._firecrawl.get_crawl_status(args.job_id)
