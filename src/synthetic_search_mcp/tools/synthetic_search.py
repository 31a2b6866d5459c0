"""Web search tool backed by the Synthetic.new search API."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import requests

from .. import __version__
from ..config import DEFAULT_API_URL, DEFAULT_TIMEOUT
from ..mcp_server.cancellation import CancellationToken
from ..mcp_server.tools import Tool

logger = logging.getLogger(__name__)

SEARCH_PATH = "/v2/search"


class SyntheticSearchError(RuntimeError):
    """Raised when a search cannot be performed or its response is unusable."""


@dataclass(frozen=True)
class SearchResult:
    """A single hit returned by the search API."""

    title: str
    url: str
    snippet: str

    @classmethod
    def from_api_payload(cls, payload: Mapping[str, Any]) -> "SearchResult":
        return cls(
            title=str(payload.get("title") or ""),
            url=str(payload.get("url") or ""),
            snippet=str(payload.get("snippet") or ""),
        )

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "url": self.url, "snippet": self.snippet}


@dataclass(frozen=True)
class SearchResponse:
    query: str
    results: tuple[SearchResult, ...]

    @property
    def result_count(self) -> int:
        return len(self.results)

    @classmethod
    def from_api_payload(cls, payload: Any, *, fallback_query: str) -> "SearchResponse":
        if not isinstance(payload, Mapping):
            raise SyntheticSearchError(
                "Synthetic API returned an invalid response: expected a JSON object"
            )
        upstream_query = payload.get("query")
        query = upstream_query if isinstance(upstream_query, str) and upstream_query.strip() else fallback_query
        items = payload.get("results") or []
        if not isinstance(items, Sequence) or isinstance(items, (str, bytes)):
            raise SyntheticSearchError(
                "Synthetic API returned an invalid response: 'results' must be an array"
            )
        results: list[SearchResult] = []
        for item in items:
            if not isinstance(item, Mapping):
                raise SyntheticSearchError(
                    "Synthetic API returned an invalid response: unexpected result entry"
                )
            results.append(SearchResult.from_api_payload(item))
        return cls(query=query, results=tuple(results))

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "results": [result.to_dict() for result in self.results],
            "resultCount": self.result_count,
        }


def create_session(api_key: str) -> requests.Session:
    """Return a session that authenticates every request with ``api_key``."""

    if not api_key:
        raise SyntheticSearchError("A Synthetic API key is required.")
    session = requests.Session()
    session.headers.update(
        {
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
            "User-Agent": f"synthetic-search-mcp/{__version__}",
        }
    )
    return session


class SyntheticSearchTool(Tool):
    """Zero data retention web search for coding agents."""

    name = "synthetic_search"
    description = (
        "Search the web using Synthetic.new API - zero data retention web search for coding agents"
    )
    input_schema: Mapping[str, Any] = {
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": "The search query to execute",
            }
        },
        "required": ["query"],
    }

    def __init__(
        self,
        *,
        session: requests.Session,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._session = session
        self._endpoint = f"{api_url.rstrip('/')}{SEARCH_PATH}"
        self._timeout = timeout

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def execute(self, arguments: Any, cancellation: CancellationToken) -> dict[str, Any]:
        query = arguments.get("query") if isinstance(arguments, Mapping) else None
        response = await self.search(query if isinstance(query, str) else "", cancellation)
        return response.to_dict()

    async def search(self, query: str, cancellation: CancellationToken | None = None) -> SearchResponse:
        """Run one search; blocking HTTP happens on the loop's default executor."""

        if not query or not query.strip():
            raise SyntheticSearchError("Query is required")
        token = cancellation or CancellationToken()
        token.raise_if_cancelled()

        logger.info("Executing synthetic search for query: %s", query)
        loop = asyncio.get_running_loop()
        response = await token.guard(loop.run_in_executor(None, self._post, query))
        logger.info("Synthetic search completed. Found %d results", response.result_count)
        return response

    def _post(self, query: str) -> SearchResponse:
        try:
            response = self._session.post(
                self._endpoint,
                json={"query": query},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.error("HTTP error calling Synthetic.new API: %s", exc)
            raise SyntheticSearchError(f"Synthetic API request failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            body = response.text.strip()
            logger.error("Synthetic.new API returned status %s", response.status_code)
            raise SyntheticSearchError(
                f"Synthetic API request failed with status {response.status_code}: {body}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise SyntheticSearchError(f"Synthetic API returned an invalid response: {exc}") from exc
        return SearchResponse.from_api_payload(payload, fallback_query=query)


__all__ = [
    "SEARCH_PATH",
    "SearchResponse",
    "SearchResult",
    "SyntheticSearchError",
    "SyntheticSearchTool",
    "create_session",
]
