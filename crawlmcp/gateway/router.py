"""Protocol routing: one inbound frame -> at most one reply on the same binding."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from crawlmcp.gateway.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    PROTOCOL_VERSION,
    RPCError,
    RPCErrorData,
    RPCRequest,
    RPCResponse,
    RequestId,
    ToolCallParams,
    ToolCallRequest,
    parse_rpc_request,
    request_id_of,
)
from crawlmcp.infra.errors import GatewayError

if TYPE_CHECKING:
    from crawlmcp.gateway.dispatch import ToolDispatcher
    from crawlmcp.transport.base import Transport

logger = structlog.get_logger()

SERVER_NAME = "crawlmcp"
SERVER_VERSION = "0.1.0"

_ERROR_CODES = {
    "PARSE_ERROR": PARSE_ERROR,
    "INVALID_REQUEST": INVALID_REQUEST,
    "METHOD_NOT_FOUND": METHOD_NOT_FOUND,
    "INVALID_PARAMS": INVALID_PARAMS,
}


def _error(request_id: RequestId | None, code: int, message: str) -> RPCError:
    return RPCError(id=request_id, error=RPCErrorData(code=code, message=message))


class ProtocolRouter:
    def __init__(
        self,
        dispatcher: ToolDispatcher,
        *,
        server_name: str = SERVER_NAME,
        server_version: str = SERVER_VERSION,
    ) -> None:
        self._dispatcher = dispatcher
        self._server_info = {"name": server_name, "version": server_version}

    async def handle(
        self, raw: str | bytes | dict[str, Any], *, session_id: str | None = None,
    ) -> RPCResponse | RPCError | None:
        """Route one frame. Returns the reply, or None for notifications."""
        request_id: RequestId | None = request_id_of(raw)
        try:
            request = parse_rpc_request(raw)
            request_id = request.id
            if request.is_notification:
                logger.debug("rpc_notification", method=request.method, session_id=session_id)
                return None
            result = await self._route(request, session_id)
            return RPCResponse(id=request_id, result=result)
        except GatewayError as e:
            logger.warning(
                "rpc_request_error",
                code=e.code,
                error=str(e),
                request_id=request_id,
                session_id=session_id,
            )
            return _error(request_id, _ERROR_CODES.get(e.code, INTERNAL_ERROR), str(e))
        except Exception:
            logger.exception("rpc_unhandled_error", request_id=request_id, session_id=session_id)
            return _error(request_id, INTERNAL_ERROR, "An internal error occurred")

    async def _route(self, request: RPCRequest, session_id: str | None) -> dict[str, Any]:
        method = request.method
        if method == "initialize":
            return {
                "protocolVersion": request.params.get("protocolVersion") or PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": self._server_info,
            }
        if method == "ping":
            return {}
        if method == "tools/list":
            return {"tools": [d.to_wire() for d in self._dispatcher.list_tools()]}
        if method == "tools/call":
            try:
                params = ToolCallParams.model_validate(request.params)
            except ValidationError as e:
                raise GatewayError(f"Invalid tools/call params: {e}", code="INVALID_PARAMS") from e
            result = await self._dispatcher.call(
                ToolCallRequest(
                    tool_name=params.name, arguments=params.arguments, session_id=session_id,
                )
            )
            return result.to_wire()
        raise GatewayError(f"Unknown method: {method}", code="METHOD_NOT_FOUND")

    async def serve(self, binding: Transport) -> None:
        """Pump one binding until its inbound side ends.

        Each request runs as its own task as soon as it arrives; no per-binding
        queueing or reordering. Once input ends, in-flight requests finish
        (their replies are dropped if the binding closed meanwhile) and the
        binding is closed.
        """
        pending: set[asyncio.Task[None]] = set()
        log = logger.bind(transport=binding.kind, session_id=binding.session_id)
        log.info("transport_serving")
        try:
            while True:
                raw = await binding.receive()
                if raw is None:
                    break
                task = asyncio.create_task(self._reply(binding, raw))
                pending.add(task)
                task.add_done_callback(pending.discard)
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        finally:
            for task in pending:
                task.cancel()
            await binding.close()
            log.info("transport_finished")

    async def _reply(self, binding: Transport, raw: str) -> None:
        reply = await self.handle(raw, session_id=binding.session_id)
        if reply is not None:
            await binding.send(reply)
