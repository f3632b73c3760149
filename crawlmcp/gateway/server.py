"""Explicitly started HTTP listener for the gateway app."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Iterator

import structlog
import uvicorn
from fastapi import FastAPI

logger = structlog.get_logger()

# Open SSE streams never end on their own.
SHUTDOWN_GRACE_S = 5


class _EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the owning process."""

    def install_signal_handlers(self) -> None:
        return None

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield


class GatewayServer:
    def __init__(self, app: FastAPI, *, host: str, port: int) -> None:
        self._host = host
        self._port = port
        config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_config=None,
            access_log=False,
            timeout_graceful_shutdown=SHUTDOWN_GRACE_S,
        )
        self._server = _EmbeddedServer(config)
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def port(self) -> int:
        """The port actually bound; differs from the configured one when that was 0."""
        for server in getattr(self._server, "servers", ()):
            for sock in server.sockets:
                return sock.getsockname()[1]
        return self._port

    async def start(self) -> None:
        """Bind and begin serving. Raises RuntimeError if the port cannot be bound."""
        if self._task is not None:
            raise RuntimeError("Gateway server already started")
        self._task = asyncio.create_task(self._serve())
        while not self._server.started:
            if self._task.done():
                await self._task
                raise RuntimeError(f"Gateway server exited during startup on {self._host}:{self._port}")
            await asyncio.sleep(0.05)
        logger.info("gateway_started", host=self._host, port=self.port)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._server.should_exit = True
        task, self._task = self._task, None
        await task
        logger.info("gateway_stopped")

    async def _serve(self) -> None:
        try:
            await self._server.serve()
        except SystemExit as e:
            # uvicorn exits the process when it cannot bind; surface it to start() instead.
            raise RuntimeError(
                f"Gateway server failed to start on {self._host}:{self._port}"
            ) from e
