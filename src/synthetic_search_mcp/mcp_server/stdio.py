"""Stdio transport: one JSON-RPC request per input line, one response per output line."""

from __future__ import annotations

import asyncio
import logging
import queue
import sys
import threading
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, TextIO

from .. import __version__
from .cancellation import CancellationToken
from .errors import (
    INTERNAL_ERROR,
    InvalidInvocation,
    McpServerError,
    MethodNotFound,
    OperationCanceled,
    ParseError,
)
from .protocol import (
    DEFAULT_SERVER_NAME,
    INTERNAL_ERROR_RESPONSE,
    MCP_PROTOCOL_VERSION,
    METHOD_CALL,
    METHOD_INITIALIZE,
    METHOD_LIST,
    JsonRpcRequest,
    JsonRpcResponse,
    encode_response,
    parse_request,
)
from .server import MCPServer

logger = logging.getLogger(__name__)

MethodHandler = Callable[[JsonRpcRequest], Awaitable[Any]]


class TransportState(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"


class StdioTransport:
    """Serve MCP requests sequentially over a pair of text streams.

    Each request is read, dispatched and answered before the next line is
    read, so responses leave in request order and at most one tool call runs
    at a time. The loop ends on end-of-input, :meth:`stop`, or cancellation of
    the token handed to :meth:`run`; a stopped transport cannot be restarted.
    """

    def __init__(
        self,
        server: MCPServer,
        *,
        input_stream: TextIO | None = None,
        output_stream: TextIO | None = None,
        server_name: str = DEFAULT_SERVER_NAME,
        server_version: str = __version__,
        protocol_version: str = MCP_PROTOCOL_VERSION,
    ) -> None:
        self._server = server
        self._reader = _LineReader(input_stream or sys.stdin)
        self._writer = output_stream or sys.stdout
        self._server_info = {"name": server_name, "version": server_version}
        self._protocol_version = protocol_version
        self._methods: dict[str, MethodHandler] = {
            METHOD_INITIALIZE: self._handle_initialize,
            METHOD_LIST: self._handle_list,
            METHOD_CALL: self._handle_call,
        }
        self._state = TransportState.RUNNING
        self._token: CancellationToken | None = None
        self._started = False
        self._stop_requested = False
        self._disposed = False

    @property
    def state(self) -> TransportState:
        return self._state

    async def run(self, cancellation: CancellationToken | None = None) -> None:
        """Process input lines until end-of-input, stop, or cancellation."""

        if self._started or self._state is TransportState.STOPPED:
            raise RuntimeError("StdioTransport instances cannot be restarted.")
        self._started = True
        self._token = (
            CancellationToken.linked(cancellation) if cancellation is not None else CancellationToken()
        )
        if self._stop_requested:
            self._token.cancel()

        logger.info("Starting STDIO transport")
        try:
            while not self._token.cancelled:
                try:
                    line = await self._token.guard(self._reader.readline())
                except OperationCanceled:
                    break
                except (OSError, ValueError) as exc:
                    logger.warning("MCP stdio transport closed while reading: %s", exc)
                    break
                if not line:
                    break
                response = await self._handle_line(line)
                if not self._write(response):
                    break
        finally:
            self._state = TransportState.STOPPED
            logger.info("STDIO transport stopped")

    def stop(self) -> None:
        """Request the loop to exit at its next read or dispatch boundary."""

        if self._stop_requested:
            return
        self._stop_requested = True
        logger.info("Stopping STDIO transport")
        if self._token is not None:
            self._token.cancel()

    def dispose(self) -> None:
        """Stop the loop and release the cancellation link and reader thread."""

        if self._disposed:
            return
        self._disposed = True
        self.stop()
        if self._token is not None:
            self._token.dispose()
        self._reader.close()

    async def _handle_line(self, line: str) -> JsonRpcResponse:
        try:
            request = parse_request(line)
        except ParseError as exc:
            logger.warning("Error processing STDIO request: %s", exc)
            return INTERNAL_ERROR_RESPONSE

        handler = self._methods.get(request.method)
        try:
            if handler is None:
                logger.warning("Unknown method %r", request.method)
                raise MethodNotFound(f"Method not found: {request.method}")
            result = await handler(request)
        except McpServerError as exc:
            return JsonRpcResponse.from_exception(request.id, exc)
        except Exception:
            logger.exception("Unexpected error handling method %s", request.method)
            return JsonRpcResponse.failure(request.id, INTERNAL_ERROR, "Internal error")
        return JsonRpcResponse.success(request.id, result)

    async def _handle_initialize(self, request: JsonRpcRequest) -> dict[str, Any]:
        return {
            "protocolVersion": self._protocol_version,
            "capabilities": {},
            "serverInfo": dict(self._server_info),
        }

    async def _handle_list(self, request: JsonRpcRequest) -> dict[str, Any]:
        return {"capabilities": list(self._server.list_tools())}

    async def _handle_call(self, request: JsonRpcRequest) -> Any:
        params = request.params if isinstance(request.params, Mapping) else {}
        name = params.get("name")
        if not isinstance(name, str) or not name.strip():
            raise InvalidInvocation("Invalid params: tool name is required")
        arguments = params.get("arguments", {})
        try:
            return await self._server.invoke(name, arguments, self._token)
        except McpServerError as exc:
            logger.error("Error executing tool %s: %s", name, exc)
            raise

    def _write(self, response: JsonRpcResponse) -> bool:
        try:
            line = encode_response(response)
        except (TypeError, ValueError) as exc:
            logger.error("Response for request %r is not serializable: %s", response.id, exc)
            line = encode_response(JsonRpcResponse.failure(response.id, INTERNAL_ERROR, "Internal error"))
        try:
            self._writer.write(line)
            self._writer.write("\n")
            self._writer.flush()
        except (OSError, ValueError) as exc:
            logger.warning("MCP stdio transport closed while sending: %s", exc)
            return False
        return True


class _LineReader:
    """Read lines on a daemon thread, one line per awaited request.

    A blocking ``readline`` on stdin cannot be interrupted, so it runs off the
    event loop on a thread that never keeps the process alive. Lines are only
    read on demand, never ahead of the caller.
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._requests: queue.Queue[tuple[asyncio.AbstractEventLoop, asyncio.Future[str]] | None] = (
            queue.Queue()
        )
        self._thread: threading.Thread | None = None

    async def readline(self) -> str:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[str] = loop.create_future()
        if self._thread is None:
            self._thread = threading.Thread(target=self._run, name="mcp-stdio-reader", daemon=True)
            self._thread.start()
        self._requests.put((loop, future))
        return await future

    def close(self) -> None:
        if self._thread is not None:
            self._requests.put(None)

    def _run(self) -> None:
        while True:
            item = self._requests.get()
            if item is None:
                return
            loop, future = item
            try:
                line = self._stream.readline()
            except Exception as exc:
                _deliver(loop, future, "", exc)
                continue
            _deliver(loop, future, line, None)


def _deliver(
    loop: asyncio.AbstractEventLoop,
    future: asyncio.Future[str],
    line: str,
    exc: BaseException | None,
) -> None:
    def resolve() -> None:
        if future.done():
            return
        if exc is not None:
            future.set_exception(exc)
        else:
            future.set_result(line)

    try:
        loop.call_soon_threadsafe(resolve)
    except RuntimeError:
        # Event loop already closed; nobody is waiting for this line.
        return


def serve_stdio(
    server: MCPServer,
    *,
    input_stream: TextIO | None = None,
    output_stream: TextIO | None = None,
    **options: Any,
) -> None:
    """Run a :class:`StdioTransport` to completion on a fresh event loop."""

    transport = StdioTransport(
        server, input_stream=input_stream, output_stream=output_stream, **options
    )
    try:
        asyncio.run(transport.run())
    finally:
        transport.stop()
        transport.dispose()


__all__ = ["StdioTransport", "TransportState", "serve_stdio"]
