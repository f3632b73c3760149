from __future__ import annotations

import socket

import pytest
from fastapi import FastAPI

from crawlmcp.gateway.server import GatewayServer


@pytest.mark.asyncio
async def test_start_and_stop() -> None:
    server = GatewayServer(FastAPI(), host="127.0.0.1", port=0)
    await server.start()
    assert server.running
    await server.stop()
    assert not server.running


@pytest.mark.asyncio
async def test_double_start_rejected() -> None:
    server = GatewayServer(FastAPI(), host="127.0.0.1", port=0)
    await server.start()
    try:
        with pytest.raises(RuntimeError, match="already started"):
            await server.start()
    finally:
        await server.stop()


@pytest.mark.asyncio
async def test_port_in_use_raises() -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
        taken.bind(("127.0.0.1", 0))
        taken.listen()
        port = taken.getsockname()[1]

        server = GatewayServer(FastAPI(), host="127.0.0.1", port=port)
        with pytest.raises(RuntimeError, match="failed to start"):
            await server.start()


@pytest.mark.asyncio
async def test_stop_without_start_is_noop() -> None:
    await GatewayServer(FastAPI(), host="127.0.0.1", port=0).stop()
