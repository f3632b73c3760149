"""search_and_scrape fan-out: one search, then bounded-concurrency scrapes.

Idle -> Searching -> (SearchEmpty | Scraping) -> Done.
Every selected URL yields exactly one FanoutItem, success or failure;
one scrape failing never cancels the others. Results keep search rank order.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from crawlmcp.infra.errors import ToolError

if TYPE_CHECKING:
    from crawlmcp.backends.crawl4ai import Crawl4AIClient
    from crawlmcp.backends.searxng import SearchResponse, SearchResult, SearxngClient
    from crawlmcp.config.settings import FanoutSettings

logger = structlog.get_logger()


@dataclass(frozen=True)
class ScrapeSuccess:
    data: Any


@dataclass(frozen=True)
class ScrapeFailure:
    message: str


@dataclass(frozen=True)
class FanoutItem:
    url: str
    outcome: ScrapeSuccess | ScrapeFailure

    @property
    def success(self) -> bool:
        return isinstance(self.outcome, ScrapeSuccess)


def _failure_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class FanoutAggregator:
    def __init__(
        self,
        searxng: SearxngClient,
        crawl4ai: Crawl4AIClient,
        settings: FanoutSettings,
        *,
        proxy_url: str | None = None,
    ) -> None:
        self._searxng = searxng
        self._crawl4ai = crawl4ai
        self._concurrency = settings.concurrency
        self._default_max = settings.default_max_results
        self._cap = settings.max_results_cap
        self._proxy_url = proxy_url

    def selection_size(self, requested: int | None) -> int:
        """min(requested or default, cap), never below 1."""
        wanted = requested if requested and requested > 0 else self._default_max
        return max(1, min(wanted, self._cap))

    async def run(
        self,
        query: str,
        *,
        max_results: int | None = None,
        engines: str | None = None,
        language: str = "en",
        scrape_formats: list[str] | None = None,
    ) -> dict[str, Any]:
        start = time.monotonic()
        logger.info("search_and_scrape_start", query=query, max_results=max_results)

        try:
            search = await self._searxng.search(query, engines=engines, language=language)
        except Exception as e:
            logger.warning(
                "search_and_scrape_search_failed",
                query=query,
                error=str(e),
                duration_ms=_elapsed_ms(start),
            )
            raise ToolError(f"Search and scrape failed: {_failure_message(e)}") from e

        if not search.results:
            logger.info("search_and_scrape_empty", query=query, duration_ms=_elapsed_ms(start))
            return {
                "query": query,
                "search_results": 0,
                "scraped_results": [],
                "message": "No search results found",
            }

        selected = search.results[: self.selection_size(max_results)]
        logger.info("search_and_scrape_scrape_start", query=query, url_count=len(selected))

        items = await self.scrape_all([r.url for r in selected], formats=scrape_formats)
        merged = _merge(query, search, selected, items)

        logger.info(
            "search_and_scrape_finish",
            query=query,
            scraped_count=merged["scraped_count"],
            selected=len(items),
            duration_ms=_elapsed_ms(start),
        )
        return merged

    async def scrape_all(
        self, urls: list[str], *, formats: list[str] | None = None,
    ) -> list[FanoutItem]:
        """Scrape every URL with at most ``concurrency`` in flight; order follows ``urls``."""
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _scrape_one(url: str) -> FanoutItem:
            async with semaphore:
                try:
                    result = await self._crawl4ai.scrape(
                        url, formats=formats, proxy_url=self._proxy_url,
                    )
                except Exception as e:
                    logger.info("fanout_scrape_failed", url=url, error=_failure_message(e))
                    return FanoutItem(url=url, outcome=ScrapeFailure(_failure_message(e)))
            data = result.get("data") if isinstance(result, dict) else result
            return FanoutItem(url=url, outcome=ScrapeSuccess(data))

        return list(await asyncio.gather(*(_scrape_one(url) for url in urls)))


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _merge(
    query: str,
    search: SearchResponse,
    selected: list[SearchResult],
    items: list[FanoutItem],
) -> dict[str, Any]:
    results = []
    for hit, item in zip(selected, items, strict=True):
        if isinstance(item.outcome, ScrapeSuccess):
            content: Any = item.outcome.data
        else:
            content = {"error": item.outcome.message}
        results.append({
            "search_info": {"title": hit.title, "url": item.url, "snippet": hit.content},
            "scraped_content": content,
            "success": item.success,
        })
    return {
        "query": query,
        "search_results": search.number_of_results,
        "scraped_count": sum(1 for item in items if item.success),
        "results": results,
    }
