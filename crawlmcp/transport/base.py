"""Transport binding contract shared by the stdio and SSE channels."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import structlog
from pydantic import BaseModel

from crawlmcp.gateway.protocol import encode_message
from crawlmcp.infra.errors import TransportClosedError

logger = structlog.get_logger()

CloseCallback = Callable[[], None]


class Transport(ABC):
    """One physical channel: receive a message, send a message, detect closure.

    Closure is one-way and idempotent. The close callback fires at most once,
    whichever side (peer disconnect, failed write, explicit close) gets there first.
    """

    kind: str = "transport"

    def __init__(self) -> None:
        self.session_id: str | None = None
        self._closed = False
        self._close_callback: CloseCallback | None = None
        self._callback_registered = False

    @property
    def closed(self) -> bool:
        return self._closed

    def on_close(self, callback: CloseCallback) -> None:
        """Register the single closure notification.

        Registering on an already-closed binding fires the callback immediately.
        Raises RuntimeError if a callback is already registered.
        """
        if self._callback_registered:
            raise RuntimeError(f"{self.kind} transport already has a close callback")
        self._callback_registered = True
        self._close_callback = callback
        if self._closed:
            self._fire_close_callback()

    async def send(self, message: BaseModel | dict[str, Any] | str) -> bool:
        """Write one complete message. Returns False if it could not be delivered.

        A write to a peer that has gone away closes the binding instead of raising.
        """
        if self._closed:
            logger.debug("transport_send_dropped", transport=self.kind, session_id=self.session_id)
            return False
        data = message if isinstance(message, str) else encode_message(message)
        try:
            await self._write(data)
        except (OSError, TransportClosedError) as e:
            logger.info(
                "transport_write_failed",
                transport=self.kind,
                session_id=self.session_id,
                error=str(e) or type(e).__name__,
            )
            self._mark_closed()
            return False
        return True

    @abstractmethod
    async def receive(self) -> str | None:
        """Next inbound message, or None once the inbound side has ended."""
        ...

    async def close(self) -> None:
        self._mark_closed()

    @abstractmethod
    async def _write(self, data: str) -> None:
        ...

    def _on_closed(self) -> None:
        """Hook for subclasses to release resources / wake readers. Runs once."""

    def _mark_closed(self) -> bool:
        if self._closed:
            return False
        self._closed = True
        self._on_closed()
        self._fire_close_callback()
        return True

    def _fire_close_callback(self) -> None:
        callback, self._close_callback = self._close_callback, None
        if callback is None:
            return
        try:
            callback()
        except Exception:
            logger.exception(
                "transport_close_callback_failed",
                transport=self.kind,
                session_id=self.session_id,
            )
