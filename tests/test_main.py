"""Tests for the composition root and CLI entry point."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from crawlmcp.config.settings import get_settings
from crawlmcp.main import (
    build_components,
    build_parser,
    log_memory_usage,
    main,
    startup_facts,
)


class TestParser:
    def test_defaults(self) -> None:
        args = build_parser().parse_args([])
        assert (args.no_stdio, args.no_http, args.log_level, args.console_log) == (
            False, False, None, False,
        )

    def test_log_level_case_insensitive(self) -> None:
        assert build_parser().parse_args(["--log-level", "debug"]).log_level == "DEBUG"


class TestBuildComponents:
    @pytest.mark.asyncio
    async def test_full_catalog_wired(self, clean_env) -> None:
        components = build_components(get_settings())
        try:
            assert len(components.registry) == 9
            assert len(components.sessions) == 0
            assert components.firecrawl.configured is False
        finally:
            await components.aclose()

    def test_bad_proxy_fails_fast(self, clean_env) -> None:
        clean_env.setenv("PROXY_URL", "ftp://proxy:21")
        with pytest.raises(ValueError, match="Invalid proxy configuration"):
            build_components(get_settings())

    def test_startup_facts_hide_secrets(self, clean_env) -> None:
        clean_env.setenv("FIRECRAWL_API_KEY", "fc-secret")
        clean_env.setenv("MCP_INTERNAL_TOKEN", "tok-secret")
        clean_env.setenv("PROXY_URL", "http://user:pw@proxy:8080")
        facts = startup_facts(get_settings(), stdio_enabled=True, http_enabled=False)

        assert facts["firecrawl_configured"] is True
        assert facts["auth_enabled"] is True
        assert facts["proxy_configured"] is True
        rendered = repr(facts)
        for secret in ("fc-secret", "tok-secret", "pw@"):
            assert secret not in rendered


class TestMain:
    def test_no_channels_enabled(self, clean_env) -> None:
        assert main(["--no-stdio", "--no-http"]) == 2

    def test_invalid_configuration(self, clean_env) -> None:
        clean_env.setenv("MCP_HTTP_PORT", "not-a-port")
        assert main(["--no-stdio"]) == 2

    def test_bad_proxy_exit_code(self, clean_env) -> None:
        clean_env.setenv("PROXY_URL", "gopher://proxy:70")
        assert main(["--no-stdio"]) == 1

    def test_serves_until_stopped(self, clean_env) -> None:
        with patch("crawlmcp.main.serve", new=AsyncMock(return_value=None)) as serve:
            assert main(["--no-stdio", "--console-log"]) == 0
        _, kwargs = serve.await_args
        assert kwargs == {"stdio_enabled": False, "http_enabled": True}


def test_memory_logger_runs_periodically() -> None:
    async def _run() -> None:
        task = asyncio.create_task(log_memory_usage(interval_s=0.001))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(_run())
