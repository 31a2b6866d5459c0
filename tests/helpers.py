"""Shared builders for MCP server tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

from synthetic_search_mcp.mcp_server import FunctionTool

ECHO_SCHEMA = {
    "type": "object",
    "properties": {"text": {"type": "string"}},
    "required": ["text"],
}


def make_tool(name: str, handler, *, description: str = "Test tool") -> FunctionTool:
    return FunctionTool(name=name, description=description, input_schema=ECHO_SCHEMA, handler=handler)


def make_response(
    *,
    status_code: int = 200,
    payload: Any = None,
    text: str = "",
    json_error: Exception | None = None,
) -> MagicMock:
    """Build a stand-in for ``requests.Response``."""

    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response
