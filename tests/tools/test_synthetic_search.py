"""Tests for the Synthetic.new search tool."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from synthetic_search_mcp.mcp_server import CancellationToken, OperationCanceled
from synthetic_search_mcp.tools import (
    SyntheticSearchError,
    SyntheticSearchTool,
    create_session,
)
from tests.helpers import make_response

MCP_PAYLOAD = {
    "query": "Model Context Protocol",
    "results": [
        {
            "title": "MCP Spec",
            "url": "https://modelcontextprotocol.io/specification",
            "snippet": "Protocol reference",
        }
    ],
}


def test_search_returns_mapped_result(session: MagicMock) -> None:
    session.post.return_value = make_response(payload=MCP_PAYLOAD)
    tool = SyntheticSearchTool(session=session)

    result = asyncio.run(tool.search("Model Context Protocol"))

    session.post.assert_called_once_with(
        "https://api.synthetic.new/v2/search",
        json={"query": "Model Context Protocol"},
        timeout=60.0,
    )
    assert result.query == "Model Context Protocol"
    assert result.result_count == 1
    assert result.results[0].title == "MCP Spec"


def test_execute_returns_protocol_payload(session: MagicMock) -> None:
    session.post.return_value = make_response(payload=MCP_PAYLOAD)
    tool = SyntheticSearchTool(session=session)

    payload = asyncio.run(tool.execute({"query": "Model Context Protocol"}, CancellationToken()))

    assert payload == {
        "query": "Model Context Protocol",
        "results": [
            {
                "title": "MCP Spec",
                "url": "https://modelcontextprotocol.io/specification",
                "snippet": "Protocol reference",
            }
        ],
        "resultCount": 1,
    }


def test_search_uses_input_query_when_upstream_query_is_empty(session: MagicMock) -> None:
    session.post.return_value = make_response(payload={"query": "", "results": []})
    tool = SyntheticSearchTool(session=session)

    result = asyncio.run(tool.search("Fallback Query"))

    assert result.query == "Fallback Query"
    assert result.result_count == 0
    assert result.results == ()


def test_missing_results_and_fields_map_to_defaults(session: MagicMock) -> None:
    session.post.return_value = make_response(payload={"query": "q", "results": [{"title": "Only title"}]})
    tool = SyntheticSearchTool(session=session)

    payload = asyncio.run(tool.execute({"query": "q"}, CancellationToken()))

    assert payload["results"] == [{"title": "Only title", "url": "", "snippet": ""}]

    session.post.return_value = make_response(payload={"query": "q"})
    assert asyncio.run(tool.search("q")).results == ()


@pytest.mark.parametrize("arguments", [{}, {"query": ""}, {"query": "   "}, {"query": 3}, None, "query"])
def test_query_is_required(session: MagicMock, arguments: object) -> None:
    tool = SyntheticSearchTool(session=session)

    with pytest.raises(SyntheticSearchError, match="Query is required"):
        asyncio.run(tool.execute(arguments, CancellationToken()))
    session.post.assert_not_called()


def test_non_success_status_is_reported(session: MagicMock) -> None:
    session.post.return_value = make_response(status_code=400, text="bad request")
    tool = SyntheticSearchTool(session=session)

    with pytest.raises(SyntheticSearchError) as excinfo:
        asyncio.run(tool.search("invalid"))

    message = str(excinfo.value)
    assert "Synthetic API request failed" in message
    assert "400" in message
    assert "bad request" in message


def test_transport_errors_are_reported(session: MagicMock) -> None:
    session.post.side_effect = requests.ConnectionError("connection refused")
    tool = SyntheticSearchTool(session=session)

    with pytest.raises(SyntheticSearchError, match="Synthetic API request failed: connection refused"):
        asyncio.run(tool.search("anything"))


def test_undecodable_body_is_reported(session: MagicMock) -> None:
    session.post.return_value = make_response(json_error=ValueError("Expecting value"))
    tool = SyntheticSearchTool(session=session)

    with pytest.raises(SyntheticSearchError, match="invalid response: Expecting value"):
        asyncio.run(tool.search("anything"))


@pytest.mark.parametrize("payload", [["not", "an", "object"], {"query": "q", "results": "nope"}, {"results": [1]}])
def test_unexpected_payload_shapes_are_reported(session: MagicMock, payload: object) -> None:
    session.post.return_value = make_response(payload=payload)
    tool = SyntheticSearchTool(session=session)

    with pytest.raises(SyntheticSearchError, match="invalid response"):
        asyncio.run(tool.search("anything"))


def test_custom_endpoint_and_timeout(session: MagicMock) -> None:
    session.post.return_value = make_response(payload={"query": "q", "results": []})
    tool = SyntheticSearchTool(session=session, api_url="http://localhost:8080/", timeout=5)

    asyncio.run(tool.search("q"))

    assert tool.endpoint == "http://localhost:8080/v2/search"
    session.post.assert_called_once_with("http://localhost:8080/v2/search", json={"query": "q"}, timeout=5)


def test_cancelled_token_skips_the_request(session: MagicMock) -> None:
    tool = SyntheticSearchTool(session=session)
    token = CancellationToken()
    token.cancel()

    with pytest.raises(OperationCanceled):
        asyncio.run(tool.search("anything", token))
    session.post.assert_not_called()


def test_create_session_attaches_bearer_credential() -> None:
    session = create_session("secret-key")
    try:
        assert session.headers["Authorization"] == "Bearer secret-key"
        assert session.headers["Accept"] == "application/json"
    finally:
        session.close()


def test_create_session_requires_a_key() -> None:
    with pytest.raises(SyntheticSearchError):
        create_session("")
