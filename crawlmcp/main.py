"""Process entry point: build components, start channels, run until stopped.

Usage:
    python -m crawlmcp [--no-stdio] [--no-http] [--log-level LEVEL] [--console-log]
"""

from __future__ import annotations

import argparse
import asyncio
import os
import platform
import resource
import signal
import sys
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import ValidationError

from crawlmcp.backends.crawl4ai import Crawl4AIClient
from crawlmcp.backends.firecrawl import FirecrawlClient
from crawlmcp.backends.proxy import create_proxy
from crawlmcp.backends.searxng import SearxngClient
from crawlmcp.config.settings import Settings, get_settings
from crawlmcp.gateway.app import create_app
from crawlmcp.gateway.dispatch import ToolDispatcher
from crawlmcp.gateway.router import ProtocolRouter
from crawlmcp.gateway.server import GatewayServer
from crawlmcp.infra.logging import setup_logging
from crawlmcp.session.registry import SessionRegistry
from crawlmcp.tools.builtins import register_builtins
from crawlmcp.tools.fanout import FanoutAggregator
from crawlmcp.tools.registry import ToolRegistry
from crawlmcp.transport.stdio import open_stdio

logger = structlog.get_logger()

MEMORY_LOG_INTERVAL_S = 60.0


@dataclass
class Components:
    """Everything the channels share. Built once per process."""

    settings: Settings
    searxng: SearxngClient
    crawl4ai: Crawl4AIClient
    firecrawl: FirecrawlClient
    registry: ToolRegistry
    dispatcher: ToolDispatcher
    router: ProtocolRouter
    sessions: SessionRegistry

    async def aclose(self) -> None:
        await self.searxng.aclose()
        await self.crawl4ai.aclose()
        await self.firecrawl.aclose()
        logger.info("backend_clients_closed")


def build_components(settings: Settings) -> Components:
    """Wire backends, catalog and routing. Raises ValueError on a bad PROXY_URL."""
    proxy = create_proxy(settings.proxy.url)
    searxng = SearxngClient(settings.searxng.url)
    crawl4ai = Crawl4AIClient(settings.crawl4ai.url)
    firecrawl = FirecrawlClient(
        settings.firecrawl.api_url, settings.firecrawl.api_key, proxy=proxy,
    )
    aggregator = FanoutAggregator(
        searxng, crawl4ai, settings.fanout, proxy_url=settings.proxy.url,
    )

    registry = ToolRegistry()
    register_builtins(
        registry,
        searxng=searxng,
        crawl4ai=crawl4ai,
        firecrawl=firecrawl,
        aggregator=aggregator,
        proxy_url=settings.proxy.url,
    )
    dispatcher = ToolDispatcher(registry)
    return Components(
        settings=settings,
        searxng=searxng,
        crawl4ai=crawl4ai,
        firecrawl=firecrawl,
        registry=registry,
        dispatcher=dispatcher,
        router=ProtocolRouter(dispatcher),
        sessions=SessionRegistry(),
    )


def startup_facts(settings: Settings, *, stdio_enabled: bool, http_enabled: bool) -> dict[str, Any]:
    """Non-sensitive configuration facts for the startup record."""
    return {
        "pid": os.getpid(),
        "python": platform.python_version(),
        "searxng_url": settings.searxng.url,
        "crawl4ai_url": settings.crawl4ai.url,
        "firecrawl_url": settings.firecrawl.api_url,
        "firecrawl_configured": bool(settings.firecrawl.api_key),
        "proxy_configured": settings.proxy.url is not None,
        "auth_enabled": bool(settings.gateway.token),
        "stdio_enabled": stdio_enabled,
        "http_enabled": http_enabled,
    }


async def log_memory_usage(interval_s: float = MEMORY_LOG_INTERVAL_S) -> None:
    while True:
        await asyncio.sleep(interval_s)
        usage = resource.getrusage(resource.RUSAGE_SELF)
        logger.info(
            "process_memory",
            max_rss_kb=usage.ru_maxrss,
            user_cpu_s=round(usage.ru_utime, 2),
            system_cpu_s=round(usage.ru_stime, 2),
        )


def _handle_loop_exception(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    exc = context.get("exception")
    logger.error(
        "asyncio_unhandled_error",
        message=context.get("message"),
        error=repr(exc) if exc else None,
    )


async def serve(components: Components, *, stdio_enabled: bool, http_enabled: bool) -> None:
    """Run the enabled channels until a stop signal (or stdin end without HTTP)."""
    loop = asyncio.get_running_loop()
    loop.set_exception_handler(_handle_loop_exception)
    stop = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _request_stop, stop, sig)

    settings = components.settings
    server: GatewayServer | None = None
    stdio_task: asyncio.Task[None] | None = None
    memory_task = asyncio.create_task(log_memory_usage())
    try:
        if http_enabled:
            app = create_app(
                router=components.router,
                dispatcher=components.dispatcher,
                sessions=components.sessions,
                searxng=components.searxng,
                crawl4ai=components.crawl4ai,
                settings=settings.gateway,
            )
            server = GatewayServer(app, host=settings.gateway.host, port=settings.gateway.port)
            await server.start()

        if stdio_enabled:
            binding = await open_stdio()
            stdio_task = asyncio.create_task(components.router.serve(binding))
            stdio_task.add_done_callback(
                lambda _: _on_stdio_finished(stop, keep_running=http_enabled)
            )

        await stop.wait()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
        memory_task.cancel()
        if stdio_task is not None and not stdio_task.done():
            stdio_task.cancel()
        if server is not None:
            await server.stop()
        await components.aclose()
        logger.info("server_stopped")


def _request_stop(stop: asyncio.Event, sig: signal.Signals) -> None:
    logger.warning("shutdown_signal_received", signal=sig.name)
    stop.set()


def _on_stdio_finished(stop: asyncio.Event, *, keep_running: bool) -> None:
    if keep_running:
        logger.info("stdio_finished_http_still_serving")
        return
    stop.set()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crawlmcp",
        description="MCP tool gateway for SearXNG, Crawl4AI and Firecrawl",
    )
    parser.add_argument("--no-stdio", action="store_true", help="Do not serve the stdio channel")
    parser.add_argument("--no-http", action="store_true", help="Do not start the HTTP/SSE gateway")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Override LOG_LEVEL",
    )
    parser.add_argument(
        "--console-log", action="store_true", help="Human-readable logs instead of JSON",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging(json_output=not args.console_log)
        logger.error("invalid_configuration", error=str(e))
        return 2

    setup_logging(
        json_output=settings.log.json_output and not args.console_log,
        log_level=args.log_level or settings.log.level,
    )

    stdio_enabled = settings.stdio_enabled and not args.no_stdio
    http_enabled = settings.gateway.enabled and not args.no_http
    if not (stdio_enabled or http_enabled):
        logger.error("no_channels_enabled")
        return 2

    try:
        components = build_components(settings)
    except ValueError as e:
        logger.error("startup_failed", error=str(e))
        return 1

    logger.info(
        "server_starting",
        **startup_facts(settings, stdio_enabled=stdio_enabled, http_enabled=http_enabled),
    )
    try:
        asyncio.run(serve(components, stdio_enabled=stdio_enabled, http_enabled=http_enabled))
    except RuntimeError as e:
        logger.error("server_failed", error=str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
