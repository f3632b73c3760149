"""Core tool dispatch: catalog lookup -> handler -> result normalization.

Shared by every transport (stdio, SSE sessions, HTTP tool proxy).
The dispatcher never raises past its own boundary: unknown tools and
handler failures both come back as error-flagged ToolCallResults.
"""

from __future__ import annotations

import json
import time
from typing import Any

import structlog

from crawlmcp.gateway.protocol import ToolCallRequest, ToolCallResult
from crawlmcp.infra.errors import CrawlMCPError, UnknownToolError
from crawlmcp.tools.base import ToolDefinition
from crawlmcp.tools.registry import ToolRegistry

logger = structlog.get_logger()

ARGS_SUMMARY_MAX_CHARS = 1024


def summarize_arguments(arguments: Any) -> str:
    """Truncated JSON rendering of tool arguments for diagnostics."""
    try:
        return json.dumps(arguments, ensure_ascii=False)[:ARGS_SUMMARY_MAX_CHARS]
    except (TypeError, ValueError):
        return "<unserializable>"


def render_payload(payload: Any) -> str:
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str)


class ToolDispatcher:
    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry

    def list_tools(self) -> list[ToolDefinition]:
        return self._registry.list_definitions()

    async def call(self, request: ToolCallRequest) -> ToolCallResult:
        name = request.tool_name
        start = time.monotonic()
        args_summary = summarize_arguments(request.arguments)
        log = logger.bind(tool=name, session_id=request.session_id)

        tool = self._registry.get(name)
        if tool is None:
            log.warning("tool_call_unknown", args_summary=args_summary)
            return ToolCallResult.error(str(UnknownToolError(name)))

        log.info("tool_call_start", args_summary=args_summary)
        try:
            payload = await tool.run(request.arguments)
            result = ToolCallResult.text(render_payload(payload))
        except CrawlMCPError as e:
            log.warning(
                "tool_call_failed",
                code=e.code,
                error=str(e),
                duration_ms=_elapsed_ms(start),
                args_summary=args_summary,
            )
            return ToolCallResult.error(_message_of(e))
        except Exception as e:
            log.exception(
                "tool_call_failed",
                error=str(e),
                duration_ms=_elapsed_ms(start),
                args_summary=args_summary,
            )
            return ToolCallResult.error(_message_of(e))

        log.info(
            "tool_call_finish",
            duration_ms=_elapsed_ms(start),
            content_blocks=len(result.content),
        )
        return result


def _message_of(exc: BaseException) -> str:
    return str(exc) or f"{type(exc).__name__} while executing tool"


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
