"""Configuration helpers for the Synthetic Search MCP server."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from . import __version__
from .mcp_server.errors import ConfigurationError
from .mcp_server.protocol import DEFAULT_SERVER_NAME, MCP_PROTOCOL_VERSION

API_KEY_ENV = "SYNTHETIC_API_KEY"
API_URL_ENV = "SYNTHETIC_API_URL"
DEBUG_ENV = "DebugMode"

DEFAULT_API_URL = "https://api.synthetic.new"
DEFAULT_TIMEOUT = 60.0
_DEFAULT_CONFIG_PATH = Path("config/synthetic-search.yaml")


@dataclass(slots=True)
class ServerConfig:
    api_key: str
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    debug: bool = False
    server_name: str = DEFAULT_SERVER_NAME
    server_version: str = __version__
    protocol_version: str = MCP_PROTOCOL_VERSION

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], *, api_key: str) -> "ServerConfig":
        api_url = str(payload.get("api_url") or DEFAULT_API_URL).rstrip("/")
        timeout = _parse_timeout(payload.get("timeout", DEFAULT_TIMEOUT))
        debug = bool(payload.get("debug", False))
        server_name = str(payload.get("server_name") or DEFAULT_SERVER_NAME)
        server_version = str(payload.get("server_version") or __version__)
        return cls(
            api_key=api_key,
            api_url=api_url,
            timeout=timeout,
            debug=debug,
            server_name=server_name,
            server_version=server_version,
        )


def load_server_config(
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ServerConfig:
    """Load settings from YAML (optional) and the environment.

    The API key only ever comes from ``SYNTHETIC_API_KEY``; the YAML file holds
    non-secret settings. Environment values win over file values.
    """

    env = os.environ if environ is None else environ
    api_key = (env.get(API_KEY_ENV) or "").strip()
    if not api_key:
        raise ConfigurationError(
            f"{API_KEY_ENV} environment variable is required. "
            "Get your API key from https://synthetic.new"
        )

    payload = dict(_read_config_file(config_path))
    api_url = (env.get(API_URL_ENV) or "").strip()
    if api_url:
        payload["api_url"] = api_url
    if DEBUG_ENV in env:
        payload["debug"] = parse_bool(env[DEBUG_ENV])
    return ServerConfig.from_dict(payload, api_key=api_key)


def parse_bool(value: str | None) -> bool:
    """Return ``True`` only for a case-insensitive ``"true"``."""

    if value is None:
        return False
    return value.strip().lower() == "true"


def _read_config_file(config_path: Path | None) -> Mapping[str, Any]:
    if config_path is not None:
        resolved = Path(config_path).expanduser()
        if not resolved.exists():
            raise ConfigurationError(f"Server config '{resolved}' does not exist")
    elif _DEFAULT_CONFIG_PATH.exists():
        resolved = _DEFAULT_CONFIG_PATH
    else:
        return {}

    raw = resolved.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(raw) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Server config '{resolved}' is not valid YAML: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigurationError("Server config must be a mapping")
    return data


def _parse_timeout(value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Timeout must be a number, got {value!r}") from exc
    if timeout <= 0:
        raise ConfigurationError("Timeout must be a positive number of seconds")
    return timeout


__all__ = [
    "API_KEY_ENV",
    "API_URL_ENV",
    "DEBUG_ENV",
    "DEFAULT_API_URL",
    "DEFAULT_TIMEOUT",
    "ServerConfig",
    "load_server_config",
    "parse_bool",
]
