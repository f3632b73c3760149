"""Tests for the stdio and SSE transport bindings."""

from __future__ import annotations

import asyncio
import io
import json

import pytest

from crawlmcp.gateway.protocol import RPCResponse
from crawlmcp.infra.errors import TransportClosedError
from crawlmcp.transport.sse import SseTransport, format_sse
from crawlmcp.transport.stdio import StdioTransport


class _BrokenPipe(io.BytesIO):
    def write(self, data) -> int:  # type: ignore[override]
        raise BrokenPipeError("peer went away")


def _stdio(data: bytes, writer: io.BytesIO | None = None) -> tuple[StdioTransport, io.BytesIO]:
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    out = writer if writer is not None else io.BytesIO()
    return StdioTransport(reader, out), out


# ---------------------------------------------------------------------------
# StdioTransport
# ---------------------------------------------------------------------------


class TestStdio:
    @pytest.mark.asyncio
    async def test_reads_lines_and_skips_blank(self) -> None:
        binding, _ = _stdio(b'{"a":1}\n\n   \n{"b":2}\n')
        assert await binding.receive() == '{"a":1}'
        assert await binding.receive() == '{"b":2}'
        assert await binding.receive() is None

    @pytest.mark.asyncio
    async def test_last_line_without_newline(self) -> None:
        binding, _ = _stdio(b'{"a":1}')
        assert await binding.receive() == '{"a":1}'
        assert await binding.receive() is None

    @pytest.mark.asyncio
    async def test_send_writes_one_line_per_message(self) -> None:
        binding, out = _stdio(b"")
        assert await binding.send(RPCResponse(id=1, result={"ok": True})) is True
        assert await binding.send({"jsonrpc": "2.0", "id": 2, "result": {}}) is True

        lines = out.getvalue().decode().splitlines()
        assert [json.loads(line)["id"] for line in lines] == [1, 2]

    @pytest.mark.asyncio
    async def test_broken_pipe_closes_binding(self) -> None:
        binding, _ = _stdio(b"", writer=_BrokenPipe())
        fired: list[bool] = []
        binding.on_close(lambda: fired.append(True))

        assert await binding.send({"id": 1}) is False
        assert binding.closed
        assert fired == [True]

    @pytest.mark.asyncio
    async def test_send_after_close_is_dropped(self) -> None:
        binding, out = _stdio(b"")
        await binding.close()
        assert await binding.send({"id": 1}) is False
        assert out.getvalue() == b""

    @pytest.mark.asyncio
    async def test_oversized_line_is_dropped_whole(self) -> None:
        reader = asyncio.StreamReader(limit=16)
        reader.feed_data(b'{"blob":"' + b"x" * 64 + b'"}\n{"id":1}\n')
        reader.feed_eof()
        binding = StdioTransport(reader, io.BytesIO())

        assert await binding.receive() == '{"id":1}'
        assert await binding.receive() is None

    @pytest.mark.asyncio
    async def test_oversized_line_split_across_reads(self) -> None:
        reader = asyncio.StreamReader(limit=16)
        binding = StdioTransport(reader, io.BytesIO())
        reader.feed_data(b"y" * 40)

        pending = asyncio.create_task(binding.receive())
        await asyncio.sleep(0.01)
        assert not pending.done()

        reader.feed_data(b'tail of the same line"}\n{"id":2}\n')
        reader.feed_eof()
        assert await asyncio.wait_for(pending, 1) == '{"id":2}'

    @pytest.mark.asyncio
    async def test_oversized_line_at_end_of_input(self) -> None:
        reader = asyncio.StreamReader(limit=16)
        reader.feed_data(b"z" * 64)
        reader.feed_eof()
        assert await StdioTransport(reader, io.BytesIO()).receive() is None


# ---------------------------------------------------------------------------
# Close semantics (shared base)
# ---------------------------------------------------------------------------


class TestCloseCallback:
    @pytest.mark.asyncio
    async def test_fires_exactly_once(self) -> None:
        binding = SseTransport("/mcp/sse")
        fired: list[int] = []
        binding.on_close(lambda: fired.append(1))

        await binding.close()
        await binding.close()

        assert fired == [1]

    @pytest.mark.asyncio
    async def test_registering_on_closed_binding_fires_immediately(self) -> None:
        binding = SseTransport("/mcp/sse")
        await binding.close()
        fired: list[int] = []
        binding.on_close(lambda: fired.append(1))
        assert fired == [1]

    def test_second_registration_rejected(self) -> None:
        binding = SseTransport("/mcp/sse")
        binding.on_close(lambda: None)
        with pytest.raises(RuntimeError, match="already has a close callback"):
            binding.on_close(lambda: None)

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_propagate(self) -> None:
        binding = SseTransport("/mcp/sse")

        def _boom() -> None:
            raise RuntimeError("boom")

        binding.on_close(_boom)
        await binding.close()
        assert binding.closed


# ---------------------------------------------------------------------------
# SseTransport
# ---------------------------------------------------------------------------


class TestSse:
    def test_format_sse_multiline(self) -> None:
        assert format_sse("a\nb", event="message") == "event: message\ndata: a\ndata: b\n\n"

    @pytest.mark.asyncio
    async def test_endpoint_event_then_messages(self) -> None:
        binding = SseTransport("/mcp/sse")
        binding.session_id = "abc"
        events = binding.events()

        assert await events.__anext__() == "event: endpoint\ndata: /mcp/sse?sessionId=abc\n\n"
        await binding.send(RPCResponse(id=1, result={}))
        frame = await events.__anext__()
        assert frame.startswith("event: message\ndata: ")
        assert json.loads(frame.split("data: ", 1)[1]) == {"jsonrpc": "2.0", "id": 1, "result": {}}

        await binding.close()
        with pytest.raises(StopAsyncIteration):
            await events.__anext__()

    @pytest.mark.asyncio
    async def test_keepalive_comment(self) -> None:
        binding = SseTransport("/mcp/sse", keepalive_s=0.01)
        events = binding.events()
        await events.__anext__()
        assert await events.__anext__() == ": ping\n\n"
        await events.aclose()

    @pytest.mark.asyncio
    async def test_stream_end_closes_binding(self) -> None:
        binding = SseTransport("/mcp/sse")
        fired: list[int] = []
        binding.on_close(lambda: fired.append(1))
        events = binding.events()
        await events.__anext__()

        await events.aclose()

        assert binding.closed
        assert fired == [1]

    @pytest.mark.asyncio
    async def test_deliver_and_receive(self) -> None:
        binding = SseTransport("/mcp/sse")
        binding.deliver('{"id":1}')
        assert await binding.receive() == '{"id":1}'

        await binding.close()
        assert await binding.receive() is None
        with pytest.raises(TransportClosedError):
            binding.deliver('{"id":2}')

    @pytest.mark.asyncio
    async def test_send_after_close_returns_false(self) -> None:
        binding = SseTransport("/mcp/sse")
        await binding.close()
        assert await binding.send({"id": 1}) is False
