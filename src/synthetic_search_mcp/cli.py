"""Command line entry point: wire configuration, logging and the stdio server."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import TextIO

import requests

from .config import ServerConfig, load_server_config
from .mcp_server import CancellationToken, ConfigurationError, MCPServer, StdioTransport, ToolRegistry
from .tools import create_session, register_default_tools

logger = logging.getLogger(__name__)

_LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
_PACKAGE_LOGGER = "synthetic_search_mcp"


class StderrLogHandler(logging.StreamHandler):
    """Stream handler installed by :func:`configure_logging`."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="synthetic-search-mcp",
        description="Run the Synthetic Search MCP server over stdio.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a YAML file with non-secret server settings.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log debug output to stderr (also enabled by DebugMode=true).",
    )
    parser.add_argument(
        "--list-tools",
        action="store_true",
        help="List available tools and exit.",
    )
    return parser


def configure_logging(debug: bool, *, stream: TextIO | None = None) -> logging.Handler:
    """Send package logs to stderr only; stdout belongs to the protocol."""

    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    for existing in list(package_logger.handlers):
        if isinstance(existing, StderrLogHandler):
            package_logger.removeHandler(existing)

    handler = StderrLogHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%H:%M:%S"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    return handler


def build_server(config: ServerConfig, session: requests.Session) -> MCPServer:
    registry = ToolRegistry()
    register_default_tools(registry, config, session)
    return MCPServer(registry)


async def run_server(
    server: MCPServer,
    config: ServerConfig,
    *,
    input_stream: TextIO | None = None,
    output_stream: TextIO | None = None,
    shutdown: CancellationToken | None = None,
) -> None:
    """Serve until end-of-input or a shutdown signal, then tear down once."""

    token = shutdown or CancellationToken()
    loop = asyncio.get_running_loop()
    installed = _install_signal_handlers(loop, token)
    transport = StdioTransport(
        server,
        input_stream=input_stream,
        output_stream=output_stream,
        server_name=config.server_name,
        server_version=config.server_version,
        protocol_version=config.protocol_version,
    )
    try:
        await transport.run(token)
    finally:
        for signum in installed:
            loop.remove_signal_handler(signum)
        transport.stop()
        transport.dispose()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_server_config(args.config)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    configure_logging(args.debug or config.debug)
    session = create_session(config.api_key)
    try:
        try:
            server = build_server(config, session)
        except ConfigurationError as exc:
            logger.error("Failed to register tools: %s", exc)
            print(f"Configuration error: {exc}", file=sys.stderr)
            return 1

        if args.list_tools:
            print(json.dumps({"capabilities": list(server.list_tools())}, indent=2))
            return 0

        _configure_stdio()
        asyncio.run(run_server(server, config))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return 130
    finally:
        session.close()
    return 0


def _install_signal_handlers(
    loop: asyncio.AbstractEventLoop, token: CancellationToken
) -> list[int]:
    installed: list[int] = []
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, token.cancel)
        except (NotImplementedError, RuntimeError, ValueError):
            # Unsupported on this platform or outside the main thread.
            continue
        installed.append(signum)
    return installed


def _configure_stdio() -> None:
    stdin_reconfigure = getattr(sys.stdin, "reconfigure", None)
    if stdin_reconfigure is not None:
        stdin_reconfigure(encoding="utf-8", errors="replace")
    stdout_reconfigure = getattr(sys.stdout, "reconfigure", None)
    if stdout_reconfigure is not None:
        stdout_reconfigure(encoding="utf-8")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
