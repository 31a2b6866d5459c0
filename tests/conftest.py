from __future__ import annotations

import io
import json
import logging
from typing import Any, Callable, Iterator
from unittest.mock import MagicMock

import pytest
import requests

from synthetic_search_mcp.cli import StderrLogHandler
from synthetic_search_mcp.mcp_server import CancellationToken, MCPServer, ToolRegistry, serve_stdio
from tests.helpers import make_tool

RunLines = Callable[..., list[dict[str, Any]]]


@pytest.fixture
def calls() -> list[tuple[str, Any]]:
    return []


@pytest.fixture
def registry(calls: list[tuple[str, Any]]) -> ToolRegistry:
    async def echo(arguments: Any, cancellation: CancellationToken) -> dict[str, Any]:
        calls.append(("echo", arguments))
        return {"text": arguments["text"]}

    async def explode(arguments: Any, cancellation: CancellationToken) -> Any:
        calls.append(("explode", arguments))
        raise RuntimeError("kaboom")

    registry = ToolRegistry()
    registry.register(make_tool("echo", echo, description="Echo the provided text"))
    registry.register(make_tool("explode", explode, description="Always fails"))
    return registry


@pytest.fixture
def server(registry: ToolRegistry) -> MCPServer:
    return MCPServer(registry)


@pytest.fixture
def session() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def run_lines() -> RunLines:
    """Feed request lines through a stdio transport and decode the output lines."""

    def _run(server: MCPServer, lines: list[str | dict[str, Any]], **options: Any) -> list[dict[str, Any]]:
        encoded = [line if isinstance(line, str) else json.dumps(line) for line in lines]
        output = io.StringIO()
        serve_stdio(
            server,
            input_stream=io.StringIO("".join(f"{line}\n" for line in encoded)),
            output_stream=output,
            **options,
        )
        return [json.loads(line) for line in output.getvalue().splitlines()]

    return _run


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    yield
    package_logger = logging.getLogger("synthetic_search_mcp")
    for handler in list(package_logger.handlers):
        if isinstance(handler, StderrLogHandler):
            package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
