"""Model Context Protocol core: tool registry, dispatch and stdio transport."""

from __future__ import annotations

from .cancellation import CancellationToken
from .errors import (
    CapabilityNotFound,
    ConfigurationError,
    ExecutionFailed,
    InvalidInvocation,
    McpServerError,
    MethodNotFound,
    OperationCanceled,
    ParseError,
)
from .server import MCPServer
from .stdio import StdioTransport, TransportState, serve_stdio
from .tools import FunctionTool, Tool, ToolRegistry

__all__ = [
    "CancellationToken",
    "CapabilityNotFound",
    "ConfigurationError",
    "ExecutionFailed",
    "FunctionTool",
    "InvalidInvocation",
    "MCPServer",
    "McpServerError",
    "MethodNotFound",
    "OperationCanceled",
    "ParseError",
    "StdioTransport",
    "Tool",
    "ToolRegistry",
    "TransportState",
    "serve_stdio",
]
