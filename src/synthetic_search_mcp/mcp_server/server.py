"""Dispatch core sitting between protocol messages and tool execution."""

from __future__ import annotations

import logging
from typing import Any

from .cancellation import CancellationToken
from .errors import (
    CapabilityNotFound,
    ExecutionFailed,
    InvalidInvocation,
    OperationCanceled,
)
from .tools import Tool, ToolRegistry

logger = logging.getLogger(__name__)


class MCPServer:
    """Execute registered tools by name on behalf of a transport."""

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry
        logger.info("Registered %d MCP tools", len(registry))

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def list_tools(self) -> tuple[dict[str, Any], ...]:
        return self._registry.describe()

    async def invoke(
        self,
        name: str | None,
        arguments: Any = None,
        cancellation: CancellationToken | None = None,
    ) -> Any:
        """Run the tool registered under ``name`` with ``arguments``.

        ``arguments`` is handed to the tool untouched. Any failure raised by the
        tool, cancellation included, surfaces as :class:`ExecutionFailed` whose
        message embeds the original message text.
        """

        if not isinstance(name, str) or not name.strip():
            raise InvalidInvocation("Tool name cannot be empty or whitespace.")

        tool: Tool | None = self._registry.find(name)
        if tool is None:
            raise CapabilityNotFound(f"Tool '{name}' not found.")

        token = cancellation or CancellationToken()
        logger.info("Executing tool: %s", name)
        try:
            result = await tool.execute(arguments, token)
        except OperationCanceled as exc:
            logger.warning("Tool %s was canceled", name)
            raise ExecutionFailed(f"Tool execution failed: {exc}") from exc
        except Exception as exc:
            logger.error("Error executing tool %s: %s", name, exc, exc_info=True)
            raise ExecutionFailed(f"Tool execution failed: {exc}") from exc
        logger.info("Tool %s executed successfully", name)
        return result


__all__ = ["MCPServer"]
