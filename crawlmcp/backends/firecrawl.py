"""Firecrawl v1 REST client: scrape, batch scrape, crawl, map, extract, job status.

Without an API key the client still constructs so the server can boot;
every call then fails with a clear BackendError.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from crawlmcp.backends.http import USER_AGENT, normalize_base_url, request_json
from crawlmcp.infra.errors import BackendError

logger = structlog.get_logger()

REQUEST_TIMEOUT_S = 60.0


class FirecrawlClient:
    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        *,
        proxy: httpx.Proxy | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_url = normalize_base_url(api_url)
        self._api_key = api_key
        if client is None:
            headers = {"User-Agent": USER_AGENT, "Content-Type": "application/json"}
            if api_key:
                headers["Authorization"] = f"Bearer {api_key}"
            client = httpx.AsyncClient(headers=headers, proxy=proxy)
        self._client = client
        if not api_key:
            logger.warning(
                "firecrawl_not_configured",
                msg="FIRECRAWL_API_KEY not set; Firecrawl tools will fail until configured",
            )

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        if not self._api_key:
            raise BackendError("FIRECRAWL_API_KEY not set", code="BACKEND_NOT_CONFIGURED")
        return await request_json(
            self._client, method, f"{self.api_url}{path}",
            backend="Firecrawl", timeout=REQUEST_TIMEOUT_S, **kwargs,
        )

    async def scrape(self, url: str, options: dict[str, Any]) -> Any:
        logger.info("firecrawl_scrape", url=url)
        return await self._call("POST", "/v1/scrape", json={"url": url, **options})

    async def batch_scrape(self, urls: list[str], options: dict[str, Any]) -> Any:
        logger.info("firecrawl_batch_scrape", url_count=len(urls))
        return await self._call("POST", "/v1/batch/scrape", json={"urls": urls, **options})

    async def crawl(self, url: str, options: dict[str, Any]) -> Any:
        logger.info("firecrawl_crawl", url=url)
        return await self._call("POST", "/v1/crawl", json={"url": url, **options})

    async def map(self, url: str, options: dict[str, Any]) -> Any:
        logger.info("firecrawl_map", url=url)
        return await self._call("POST", "/v1/map", json={"url": url, **options})

    async def extract(
        self, url: str, *, prompt: str, schema: dict[str, Any] | None = None,
    ) -> Any:
        logger.info("firecrawl_extract", url=url)
        body: dict[str, Any] = {"urls": [url], "prompt": prompt}
        if schema:
            body["schema"] = schema
        return await self._call("POST", "/v1/extract", json=body)

    async def get_crawl_status(self, job_id: str) -> Any:
        logger.info("firecrawl_crawl_status", job_id=job_id)
        return await self._call("GET", f"/v1/crawl/{job_id}")

    async def aclose(self) -> None:
        await self._client.aclose()
