"""Per-connection network binding over Server-Sent Events.

Outbound messages are SSE ``message`` events on the long-lived GET stream;
inbound messages arrive as separate POSTs and are handed over via deliver().
Replies only ever go to the binding that received the request.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import structlog

from crawlmcp.infra.errors import TransportClosedError
from crawlmcp.transport.base import Transport

logger = structlog.get_logger()

KEEPALIVE_INTERVAL_S = 15.0


def format_sse(data: str, event: str | None = None) -> str:
    lines = [f"event: {event}"] if event else []
    lines.extend(f"data: {line}" for line in data.splitlines() or [""])
    return "\n".join(lines) + "\n\n"


class SseTransport(Transport):
    kind = "sse"

    def __init__(self, endpoint: str, *, keepalive_s: float = KEEPALIVE_INTERVAL_S) -> None:
        super().__init__()
        self._endpoint = endpoint
        self._keepalive_s = keepalive_s
        self._inbound: asyncio.Queue[str | None] = asyncio.Queue()
        self._outbound: asyncio.Queue[str | None] = asyncio.Queue()

    @property
    def message_endpoint(self) -> str:
        """Where the client POSTs its messages; sent as the first SSE event."""
        return f"{self._endpoint}?sessionId={self.session_id}"

    def deliver(self, raw: str) -> None:
        """Hand one client->server message to the binding. Raises TransportClosedError."""
        if self.closed:
            raise TransportClosedError("Session transport is closed")
        self._inbound.put_nowait(raw)

    async def receive(self) -> str | None:
        if self.closed and self._inbound.empty():
            return None
        return await self._inbound.get()

    async def _write(self, data: str) -> None:
        if self.closed:
            raise TransportClosedError("Session transport is closed")
        self._outbound.put_nowait(data)

    def _on_closed(self) -> None:
        # Wake both the serve loop and the event stream.
        self._inbound.put_nowait(None)
        self._outbound.put_nowait(None)

    async def events(self) -> AsyncIterator[str]:
        """SSE frames for the response body. Ends (and closes the binding) on disconnect."""
        try:
            yield format_sse(self.message_endpoint, event="endpoint")
            while True:
                try:
                    data = await asyncio.wait_for(self._outbound.get(), self._keepalive_s)
                except TimeoutError:
                    yield ": ping\n\n"
                    continue
                if data is None:
                    break
                yield format_sse(data, event="message")
        finally:
            logger.info("sse_stream_closed", session_id=self.session_id)
            self._mark_closed()
