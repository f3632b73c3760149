"""extract_structured_data: prompt-driven extraction through Firecrawl."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import Field

from crawlmcp.tools.base import BaseTool, ToolArguments

if TYPE_CHECKING:
    from crawlmcp.backends.firecrawl import FirecrawlClient


class ExtractStructuredDataArgs(ToolArguments):
    url: str
    prompt: str
    # "schema" shadows a BaseModel attribute, hence the alias.
    output_schema: dict[str, Any] | None = Field(None, alias="schema")


class ExtractStructuredDataTool(BaseTool[ExtractStructuredDataArgs]):
    args_model = ExtractStructuredDataArgs

    def __init__(self, firecrawl: FirecrawlClient) -> None:
        self._firecrawl = firecrawl

    @property
    def name(self) -> str:
        return "extract_structured_data"

    @property
    def description(self) -> str:
        return "Extract specific structured data from a webpage using AI prompts"

    @property
    def parameters(self) -> dict:
        return {
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "The URL to extract data from",
                },
                "prompt": {
                    "type": "string",
                    "description": "AI prompt describing what data to extract",
                },
                "schema": {
                    "type": "object",
                    "description": "JSON schema for the expected output structure",
                },
            },
            "required": ["url", "prompt"],
        }

    async def execute(self, args: ExtractStructuredDataArgs) -> Any:
        return await self._firecrawl.extract(
            args.url, prompt=args.prompt, schema=args.output_schema,
        )
