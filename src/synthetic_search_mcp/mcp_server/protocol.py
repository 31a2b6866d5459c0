"""Line-oriented JSON-RPC envelopes used on the stdio transport."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping

from .errors import INTERNAL_ERROR, McpServerError, ParseError

ENVELOPE_FIELD = "protocolVersion"
ENVELOPE_VERSION = "2.0"
MCP_PROTOCOL_VERSION = "2024-11-05"
DEFAULT_SERVER_NAME = "synthetic-search-mcp"

METHOD_INITIALIZE = "initialize"
METHOD_LIST = "capabilities/list"
METHOD_CALL = "capabilities/call"

RequestId = str | int | None


@dataclass(frozen=True)
class JsonRpcRequest:
    """A decoded request line."""

    id: RequestId
    method: str
    params: Any = None


@dataclass(frozen=True)
class JsonRpcError:
    code: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


@dataclass(frozen=True)
class JsonRpcResponse:
    """Response envelope carrying either a result or an error, never both.

    Build instances through :meth:`success` and :meth:`failure`; a ``None``
    result is a legitimate JSON ``null`` payload.
    """

    id: RequestId
    result: Any = None
    error: JsonRpcError | None = None

    @classmethod
    def success(cls, request_id: RequestId, result: Any) -> "JsonRpcResponse":
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id: RequestId, code: int, message: str) -> "JsonRpcResponse":
        return cls(id=request_id, error=JsonRpcError(code=code, message=message))

    @classmethod
    def from_exception(cls, request_id: RequestId, exc: McpServerError) -> "JsonRpcResponse":
        return cls.failure(request_id, exc.code, str(exc))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {ENVELOPE_FIELD: ENVELOPE_VERSION, "id": self.id}
        if self.error is not None:
            payload["error"] = self.error.to_dict()
        else:
            payload["result"] = self.result
        return payload


INTERNAL_ERROR_RESPONSE = JsonRpcResponse.failure(None, INTERNAL_ERROR, "Internal error")


def parse_request(line: str) -> JsonRpcRequest:
    """Decode one input line into a request or raise :class:`ParseError`."""

    try:
        payload = json.loads(line)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise ParseError("Request must be a JSON object.")

    request_id = payload.get("id")
    if isinstance(request_id, bool) or not isinstance(request_id, (str, int, type(None))):
        raise ParseError("Request id must be a string, an integer or null.")

    method = payload.get("method")
    if not isinstance(method, str):
        method = ""
    return JsonRpcRequest(id=request_id, method=method, params=payload.get("params"))


def encode_response(response: JsonRpcResponse) -> str:
    """Serialize a response as a single line of compact JSON (no newline)."""

    return json.dumps(
        response.to_dict(), ensure_ascii=False, allow_nan=False, separators=(",", ":")
    )


__all__ = [
    "DEFAULT_SERVER_NAME",
    "ENVELOPE_FIELD",
    "ENVELOPE_VERSION",
    "INTERNAL_ERROR_RESPONSE",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "MCP_PROTOCOL_VERSION",
    "METHOD_CALL",
    "METHOD_INITIALIZE",
    "METHOD_LIST",
    "encode_response",
    "parse_request",
]
