"""Crawl4AI REST client (single and batch scrape)."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from crawlmcp.backends.http import USER_AGENT, normalize_base_url, request_json
from crawlmcp.infra.errors import BackendResponseError

logger = structlog.get_logger()

DEFAULT_SCRAPE_TIMEOUT_MS = 30_000
# Slack added on top of the backend-side scrape timeout for the HTTP round trip.
SCRAPE_TIMEOUT_SLACK_S = 5.0
BATCH_TIMEOUT_S = 120.0
HEALTH_TIMEOUT_S = 5.0
# Crawl4AI-side limit; independent of the fan-out's own semaphore.
MAX_BATCH_CONCURRENCY = 5


def _require_object(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise BackendResponseError(f"Crawl4AI {what} returned an unexpected payload")
    return data


class Crawl4AIClient:
    def __init__(self, base_url: str, *, client: httpx.AsyncClient | None = None) -> None:
        self.base_url = normalize_base_url(base_url)
        self._client = client or httpx.AsyncClient(headers={"User-Agent": USER_AGENT})

    async def scrape(
        self,
        url: str,
        *,
        formats: list[str] | None = None,
        wait_for: int = 0,
        timeout_ms: int = DEFAULT_SCRAPE_TIMEOUT_MS,
        proxy_url: str | None = None,
    ) -> dict[str, Any]:
        """Scrape one URL. Raises BackendResponseError when Crawl4AI reports success=false."""
        payload = {
            "url": url,
            "formats": formats or ["markdown"],
            "wait_for": wait_for,
            "timeout": timeout_ms,
            "proxy_url": proxy_url,
        }
        logger.info("crawl4ai_scrape", url=url)
        data = _require_object(
            await request_json(
                self._client, "POST", f"{self.base_url}/scrape",
                backend="Crawl4AI", timeout=timeout_ms / 1000 + SCRAPE_TIMEOUT_SLACK_S,
                json=payload,
            ),
            "scrape",
        )
        if not data.get("success"):
            raise BackendResponseError(f"Scraping failed: {data.get('error') or 'unknown error'}")

        metadata = (data.get("data") or {}).get("metadata") or {}
        logger.info("crawl4ai_scrape_done", url=url, word_count=metadata.get("word_count", 0))
        return data

    async def batch_scrape(
        self,
        urls: list[str],
        *,
        formats: list[str] | None = None,
        concurrency: int = 3,
    ) -> dict[str, Any]:
        """Scrape many URLs server-side. Per-URL failures stay inside ``results``."""
        payload = {
            "urls": urls,
            "formats": formats or ["markdown"],
            "concurrency": max(1, min(concurrency, MAX_BATCH_CONCURRENCY)),
        }
        logger.info("crawl4ai_batch_scrape", url_count=len(urls))
        data = _require_object(
            await request_json(
                self._client, "POST", f"{self.base_url}/batch-scrape",
                backend="Crawl4AI", timeout=BATCH_TIMEOUT_S, json=payload,
            ),
            "batch scrape",
        )
        results = data.get("results")
        if not isinstance(results, list):
            raise BackendResponseError("Crawl4AI batch scrape returned no results list")

        successful = sum(1 for r in results if isinstance(r, dict) and r.get("success"))
        logger.info(
            "crawl4ai_batch_scrape_done",
            successful=successful,
            total=data.get("total", len(results)),
        )
        return data

    async def health_check(self) -> bool:
        try:
            response = await self._client.get(
                f"{self.base_url}/health", timeout=HEALTH_TIMEOUT_S,
            )
        except httpx.HTTPError:
            return False
        return response.status_code == 200

    async def aclose(self) -> None:
        await self._client.aclose()
