"""Shared httpx request helper: one place where transport failures are classified."""

from __future__ import annotations

from typing import Any

import httpx

from crawlmcp.infra.errors import (
    BackendResponseError,
    BackendStatusError,
    BackendTimeoutError,
    BackendUnavailableError,
)

USER_AGENT = "crawlmcp/0.1"


def normalize_base_url(url: str) -> str:
    return url.rstrip("/")


async def request_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    backend: str,
    timeout: float,
    **kwargs: Any,
) -> Any:
    """Send one request and decode its JSON body.

    Raises a BackendError subclass for timeouts, connection failures,
    non-2xx statuses, and undecodable bodies. Nothing httpx-specific escapes.
    """
    try:
        response = await client.request(method, url, timeout=timeout, **kwargs)
        response.raise_for_status()
    except httpx.TimeoutException as e:
        raise BackendTimeoutError(f"{backend} request timed out after {timeout:g}s") from e
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        raise BackendStatusError(
            f"{backend} returned HTTP {status}", status_code=status,
        ) from e
    except httpx.RequestError as e:
        raise BackendUnavailableError(f"{backend} unreachable: {e}") from e

    try:
        return response.json()
    except ValueError as e:
        raise BackendResponseError(f"{backend} returned a non-JSON body") from e
