"""Tool contract and the registry backing capability listing and invocation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterator, Mapping

from jsonschema import Draft7Validator, SchemaError

from .cancellation import CancellationToken
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Any, CancellationToken], Awaitable[Any]]


class Tool(ABC):
    """A named capability that the agent can invoke over the protocol.

    Subclasses provide ``name``, ``description`` and ``input_schema`` (a JSON
    Schema describing the arguments object) and implement :meth:`execute`.
    Tools are registered once at startup and must not change identity
    afterwards; any state they hold (an HTTP session, for instance) is their
    own.
    """

    name: str
    description: str
    input_schema: Mapping[str, Any]

    @abstractmethod
    async def execute(self, arguments: Any, cancellation: CancellationToken) -> Any:
        """Run the tool and return a JSON-serializable result."""

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": dict(self.input_schema),
        }


@dataclass(frozen=True)
class FunctionTool(Tool):
    """Adapter turning a coroutine function into a registered tool."""

    name: str
    description: str
    input_schema: Mapping[str, Any]
    handler: ToolHandler

    async def execute(self, arguments: Any, cancellation: CancellationToken) -> Any:
        return await self.handler(arguments, cancellation)


class ToolRegistry:
    """Name-keyed collection of tools, filled at startup and read-only afterwards."""

    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Register ``tool``; every failure leaves the registry untouched."""

        name = getattr(tool, "name", None)
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError("Tool name cannot be empty or whitespace.")
        if name in self._tools:
            raise ConfigurationError(f"A tool with the name '{name}' is already registered.")
        _check_input_schema(name, tool.input_schema)
        self._tools[name] = tool
        logger.debug("Registered tool %s", name)

    def tools(self) -> tuple[Tool, ...]:
        """Return a snapshot of all registered tools in registration order."""

        return tuple(self._tools.values())

    def describe(self) -> tuple[dict[str, Any], ...]:
        return tuple(tool.describe() for tool in self._tools.values())

    def find(self, name: str | None) -> Tool | None:
        """Return the tool registered under ``name``; blank names find nothing."""

        if not name or not name.strip():
            return None
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(self.tools())

    def __len__(self) -> int:
        return len(self._tools)


def _check_input_schema(name: str, schema: Any) -> None:
    if not isinstance(schema, Mapping):
        raise ConfigurationError(f"Input schema for tool '{name}' must be an object.")
    if schema.get("type") != "object":
        raise ConfigurationError(f"Input schema for tool '{name}' must describe a JSON object.")
    try:
        Draft7Validator.check_schema(dict(schema))
    except SchemaError as exc:
        raise ConfigurationError(
            f"Input schema for tool '{name}' is not a valid JSON Schema: {exc.message}"
        ) from exc


__all__ = ["FunctionTool", "Tool", "ToolHandler", "ToolRegistry"]
