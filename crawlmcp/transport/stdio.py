"""Duplex stdio binding: one JSON message per line on stdin/stdout.

A single caller exists for the process lifetime, so there is no session id.
End of stdin ends the inbound side only; replies still in flight may be written.
"""

from __future__ import annotations

import asyncio
import sys
from typing import BinaryIO

import structlog

from crawlmcp.transport.base import Transport

logger = structlog.get_logger()

# Scraped pages can make single frames large.
MAX_LINE_BYTES = 16 * 1024 * 1024


class StdioTransport(Transport):
    kind = "stdio"

    def __init__(self, reader: asyncio.StreamReader, writer: BinaryIO) -> None:
        super().__init__()
        self._reader = reader
        self._writer = writer

    async def receive(self) -> str | None:
        while not self.closed:
            try:
                line = await self._reader.readuntil(b"\n")
            except asyncio.IncompleteReadError as e:
                line = e.partial
            except asyncio.LimitOverrunError:
                logger.warning("stdio_frame_too_large", limit=MAX_LINE_BYTES)
                await self._skip_line()
                continue
            if not line:
                logger.info("stdio_input_closed")
                return None
            text = line.decode("utf-8", errors="replace").strip()
            if text:
                return text
        return None

    async def _skip_line(self) -> None:
        """Drop input up to and including the next newline, however long the line is."""
        try:
            while True:
                try:
                    await self._reader.readuntil(b"\n")
                    return
                except asyncio.LimitOverrunError as e:
                    await self._reader.readexactly(e.consumed)
        except asyncio.IncompleteReadError:
            # Input ended inside the oversized line; the next read sees EOF.
            return

    async def _write(self, data: str) -> None:
        self._writer.write(data.encode("utf-8") + b"\n")
        self._writer.flush()


async def open_stdio() -> StdioTransport:
    """Bind the process's stdin/stdout to a StdioTransport."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=MAX_LINE_BYTES)
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    return StdioTransport(reader, sys.stdout.buffer)
