from __future__ import annotations

import asyncio
import secrets
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse

from crawlmcp.backends.crawl4ai import Crawl4AIClient
from crawlmcp.backends.searxng import SearxngClient
from crawlmcp.config.settings import GatewaySettings
from crawlmcp.gateway.dispatch import ToolDispatcher
from crawlmcp.gateway.protocol import ToolCallRequest
from crawlmcp.gateway.router import ProtocolRouter
from crawlmcp.infra.errors import SessionNotFoundError, TransportClosedError
from crawlmcp.session.registry import SessionRegistry
from crawlmcp.transport.sse import SseTransport

logger = structlog.get_logger()

# Tools reachable through the plain-HTTP convenience proxy, mapped to the catalog entry
# that serves them. scrape_url goes to the self-hosted scraper, not Firecrawl.
HTTP_PROXY_TOOLS = {
    "search_web": "search_web",
    "scrape_url": "crawl4ai_scrape",
    "crawl4ai_scrape": "crawl4ai_scrape",
    "search_and_scrape": "search_and_scrape",
}

SSE_PATHS = ("/mcp/sse", "/sse")


def create_app(
    *,
    router: ProtocolRouter,
    dispatcher: ToolDispatcher,
    sessions: SessionRegistry,
    searxng: SearxngClient,
    crawl4ai: Crawl4AIClient,
    settings: GatewaySettings,
) -> FastAPI:
    """Build the network surface around already-constructed components."""
    app = FastAPI(title="crawlmcp gateway", version="0.1.0")
    app.state.router = router
    app.state.dispatcher = dispatcher
    app.state.sessions = sessions
    app.state.searxng = searxng
    app.state.crawl4ai = crawl4ai
    app.state.settings = settings
    app.state.serve_tasks = set()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.token:
        expected = f"Bearer {settings.token}"

        @app.middleware("http")
        async def require_token(request: Request, call_next):
            # Browsers send CORS preflights without credentials; CORSMiddleware answers them.
            if request.method == "OPTIONS" and "access-control-request-method" in request.headers:
                return await call_next(request)
            auth = request.headers.get("authorization", "")
            if not secrets.compare_digest(auth.encode(), expected.encode()):
                logger.warning(
                    "auth_denied",
                    path=request.url.path,
                    client=request.client.host if request.client else None,
                )
                return JSONResponse({"ok": False, "error": "unauthorized"}, status_code=401)
            return await call_next(request)

    app.add_api_route("/health", health, methods=["GET"])
    for path in SSE_PATHS:
        app.add_api_route(path, open_sse_stream, methods=["GET"])
        app.add_api_route(path, post_session_message, methods=["POST"])
    app.add_api_route("/mcp/sse/{session_id}", post_session_message, methods=["POST"])
    app.add_api_route("/mcp/tool/{name}", call_tool, methods=["POST"])
    app.add_api_route("/mcp/call", call_tool, methods=["POST"])
    return app


async def health(request: Request) -> dict[str, bool]:
    state = request.app.state
    searxng_ok, crawl4ai_ok = await asyncio.gather(
        state.searxng.health_check(), state.crawl4ai.health_check(),
    )
    return {"ok": True, "searxng": searxng_ok, "crawl4ai": crawl4ai_ok}


async def open_sse_stream(request: Request) -> StreamingResponse:
    """Accept one long-lived SSE connection as a new session."""
    state = request.app.state
    binding = SseTransport(state.settings.sse_path, keepalive_s=state.settings.sse_keepalive_s)
    session_id = state.sessions.register(binding)

    task = asyncio.create_task(state.router.serve(binding))
    state.serve_tasks.add(task)
    task.add_done_callback(state.serve_tasks.discard)

    logger.info("sse_connected", session_id=session_id, path=request.url.path)
    return StreamingResponse(
        binding.events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


async def post_session_message(request: Request, session_id: str | None = None) -> Response:
    """Hand one client->server message to the session's binding."""
    session_id = (
        session_id
        or request.query_params.get("sessionId")
        or request.headers.get("x-session-id")
    )
    sessions: SessionRegistry = request.app.state.sessions
    if not session_id:
        return JSONResponse({"ok": False, "error": "session not found"}, status_code=404)
    try:
        binding = sessions.lookup(session_id)
    except SessionNotFoundError:
        logger.info("session_message_unknown", session_id=session_id)
        return JSONResponse({"ok": False, "error": "session not found"}, status_code=404)

    body = (await request.body()).decode("utf-8", errors="replace")
    try:
        binding.deliver(body)
    except TransportClosedError:
        return JSONResponse({"ok": False, "error": "session not found"}, status_code=404)
    return Response("Accepted", status_code=202)


async def call_tool(request: Request, name: str | None = None) -> JSONResponse:
    """Plain-HTTP convenience proxy for a subset of tools."""
    body = await _json_body(request)
    tool_name = name or body.get("name")
    if not tool_name:
        return JSONResponse({"ok": False, "error": "tool name required"}, status_code=400)

    target = HTTP_PROXY_TOOLS.get(tool_name)
    if target is None:
        return JSONResponse(
            {"ok": False, "error": "tool not supported via HTTP proxy"}, status_code=404,
        )

    arguments = body.get("arguments") or body.get("args") or body.get("params") or {}
    dispatcher: ToolDispatcher = request.app.state.dispatcher
    result = await dispatcher.call(ToolCallRequest(tool_name=target, arguments=arguments))
    if result.is_error:
        error = result.content[0].text if result.content else "tool error"
        logger.warning("http_tool_failed", tool=tool_name, error=error)
        return JSONResponse({"ok": False, "error": error}, status_code=500)
    return JSONResponse({"ok": True, "result": result.to_wire()})


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
