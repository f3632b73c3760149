from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from crawlmcp.infra.errors import GatewayError

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

# JSON-RPC 2.0 reserved codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

RequestId = str | int


class RPCRequest(BaseModel):
    """Inbound request or notification. Notifications carry no id."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId | None = None
    method: str
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_notification(self) -> bool:
        return self.id is None


class RPCErrorData(BaseModel):
    code: int
    message: str
    data: Any | None = None


class RPCResponse(BaseModel):
    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId | None
    result: dict[str, Any]


class RPCError(BaseModel):
    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId | None
    error: RPCErrorData


class ToolCallParams(BaseModel):
    name: str
    arguments: Any = None


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolCallRequest(BaseModel):
    """One tools/call, consumed synchronously by the dispatcher."""

    tool_name: str
    arguments: Any = None
    session_id: str | None = None


class ToolCallResult(BaseModel):
    """Exactly one per ToolCallRequest. When is_error, text is a diagnostic, not data."""

    model_config = ConfigDict(populate_by_name=True)

    content: list[TextContent]
    is_error: bool = Field(False, serialization_alias="isError")

    @classmethod
    def text(cls, payload: str) -> ToolCallResult:
        return cls(content=[TextContent(text=payload)])

    @classmethod
    def error(cls, message: str) -> ToolCallResult:
        return cls(content=[TextContent(text=message)], is_error=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def parse_rpc_request(raw: str | bytes | dict[str, Any]) -> RPCRequest:
    """Parse a raw JSON message into an RPCRequest.

    Raises GatewayError(code="PARSE_ERROR") on invalid JSON and
    GatewayError(code="INVALID_REQUEST") on envelope mismatch.
    """
    if isinstance(raw, dict):
        data: Any = raw
    else:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise GatewayError(f"Invalid JSON: {e}", code="PARSE_ERROR") from e
    if not isinstance(data, dict):
        raise GatewayError("Invalid request: expected a JSON object", code="INVALID_REQUEST")
    try:
        return RPCRequest.model_validate(data)
    except ValidationError as e:
        raise GatewayError(f"Invalid request: {e}", code="INVALID_REQUEST") from e


def request_id_of(raw: str | bytes | dict[str, Any]) -> RequestId | None:
    """Best-effort id recovery for error replies to unparseable requests."""
    try:
        data = raw if isinstance(raw, dict) else json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if isinstance(data, dict) and isinstance(data.get("id"), (str, int)):
        return data["id"]
    return None


def encode_message(message: BaseModel | dict[str, Any]) -> str:
    """Serialize one outbound frame as compact single-line JSON.

    None-valued optional fields are dropped, except the envelope id, which
    JSON-RPC requires to be present (null) on errors for unknown ids.
    """
    if isinstance(message, BaseModel):
        data = message.model_dump(mode="json", by_alias=True, exclude_none=True)
        if "id" in type(message).model_fields:
            data.setdefault("id", None)
    else:
        data = message
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"), default=str)
