"""SearXNG metasearch client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from crawlmcp.backends.http import USER_AGENT, normalize_base_url, request_json
from crawlmcp.infra.errors import BackendResponseError

logger = structlog.get_logger()

SEARCH_TIMEOUT_S = 10.0
HEALTH_TIMEOUT_S = 5.0


@dataclass
class SearchResult:
    title: str
    url: str
    content: str = ""
    published_date: str | None = None
    img_src: str | None = None
    category: str | None = None
    score: float | None = None


@dataclass
class SearchResponse:
    query: str
    number_of_results: int
    results: list[SearchResult] = field(default_factory=list)
    answers: list[Any] = field(default_factory=list)
    corrections: list[Any] = field(default_factory=list)
    infoboxes: list[Any] = field(default_factory=list)
    suggestions: list[Any] = field(default_factory=list)
    unresponsive_engines: list[Any] = field(default_factory=list)


def _parse_result(raw: Any) -> SearchResult | None:
    if not isinstance(raw, dict) or not isinstance(raw.get("url"), str):
        return None
    return SearchResult(
        title=str(raw.get("title") or ""),
        url=raw["url"],
        content=str(raw.get("content") or ""),
        published_date=raw.get("publishedDate"),
        img_src=raw.get("img_src"),
        category=raw.get("category"),
        score=raw.get("score"),
    )


def parse_search_response(data: Any, query: str) -> SearchResponse:
    """Build a SearchResponse from SearXNG JSON. Entries without a url are skipped."""
    if not isinstance(data, dict):
        raise BackendResponseError("SearXNG returned an unexpected payload")
    raw_results = data.get("results") or []
    if not isinstance(raw_results, list):
        raise BackendResponseError("SearXNG 'results' is not a list")

    results = [r for r in (_parse_result(item) for item in raw_results) if r is not None]
    total = data.get("number_of_results")
    return SearchResponse(
        query=str(data.get("query") or query),
        number_of_results=total if isinstance(total, int) else len(results),
        results=results,
        answers=list(data.get("answers") or []),
        corrections=list(data.get("corrections") or []),
        infoboxes=list(data.get("infoboxes") or []),
        suggestions=list(data.get("suggestions") or []),
        unresponsive_engines=list(data.get("unresponsive_engines") or []),
    )


class SearxngClient:
    """Async client for a self-hosted SearXNG instance (JSON output must be enabled)."""

    def __init__(self, base_url: str, *, client: httpx.AsyncClient | None = None) -> None:
        self.base_url = normalize_base_url(base_url)
        self._client = client or httpx.AsyncClient(
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        )

    async def search(
        self,
        query: str,
        *,
        categories: str | None = None,
        engines: str | None = None,
        language: str | None = None,
        pageno: int | None = None,
        time_range: str | None = None,
        safesearch: int | None = None,
    ) -> SearchResponse:
        params: dict[str, str] = {"q": query, "format": "json"}
        if categories:
            params["categories"] = categories
        if engines:
            params["engines"] = engines
        if language:
            params["language"] = language
        if pageno:
            params["pageno"] = str(pageno)
        if time_range:
            params["time_range"] = time_range
        if safesearch is not None:
            params["safesearch"] = str(safesearch)

        logger.info("searxng_search", query=query)
        data = await request_json(
            self._client, "GET", f"{self.base_url}/search",
            backend="SearXNG", timeout=SEARCH_TIMEOUT_S, params=params,
        )
        response = parse_search_response(data, query)
        logger.info(
            "searxng_search_done",
            query=query,
            total=response.number_of_results,
            returned=len(response.results),
        )
        return response

    async def get_engines(self) -> Any | None:
        """Engine statistics from /stats, or None when unavailable."""
        try:
            return await request_json(
                self._client, "GET", f"{self.base_url}/stats",
                backend="SearXNG", timeout=SEARCH_TIMEOUT_S,
            )
        except Exception:
            logger.warning("searxng_stats_failed", exc_info=True)
            return None

    async def health_check(self) -> bool:
        try:
            response = await self._client.get(
                f"{self.base_url}/healthz", timeout=HEALTH_TIMEOUT_S,
            )
        except httpx.HTTPError:
            return False
        return response.status_code == 200

    async def aclose(self) -> None:
        await self._client.aclose()
