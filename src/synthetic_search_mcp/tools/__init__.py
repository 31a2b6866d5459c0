"""Tools exposed by the Synthetic Search MCP server."""

from __future__ import annotations

import requests

from ..config import ServerConfig
from ..mcp_server.tools import ToolRegistry
from .synthetic_search import (
    SearchResponse,
    SearchResult,
    SyntheticSearchError,
    SyntheticSearchTool,
    create_session,
)


def register_default_tools(
    registry: ToolRegistry,
    config: ServerConfig,
    session: requests.Session,
) -> None:
    registry.register(
        SyntheticSearchTool(session=session, api_url=config.api_url, timeout=config.timeout)
    )


__all__ = [
    "SearchResponse",
    "SearchResult",
    "SyntheticSearchError",
    "SyntheticSearchTool",
    "create_session",
    "register_default_tools",
]
