"""Error taxonomy shared by the MCP protocol core."""

from __future__ import annotations

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class McpServerError(Exception):
    """Base class for errors that map onto a JSON-RPC error object."""

    code: int = INTERNAL_ERROR


class ConfigurationError(McpServerError):
    """Raised at startup when the server is assembled incorrectly."""


class ParseError(McpServerError):
    """Raised when an input line is not a usable request envelope."""


class InvalidInvocation(McpServerError):
    """Raised when a tool call is missing its tool name."""

    code = INVALID_PARAMS


class MethodNotFound(McpServerError):
    """Raised when a request names a method outside the method table."""

    code = METHOD_NOT_FOUND


class CapabilityNotFound(McpServerError):
    """Raised when a tool call names a tool that is not registered."""


class ExecutionFailed(McpServerError):
    """Raised when a registered tool fails for any reason."""


class OperationCanceled(McpServerError):
    """Raised when cooperative cancellation interrupts an operation."""


__all__ = [
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "METHOD_NOT_FOUND",
    "CapabilityNotFound",
    "ConfigurationError",
    "ExecutionFailed",
    "InvalidInvocation",
    "McpServerError",
    "MethodNotFound",
    "OperationCanceled",
    "ParseError",
]
