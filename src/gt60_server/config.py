"""Server configuration, read from ``GT60_*`` environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from .protocol.framing import DEFAULT_MAX_BUFFER_SIZE

DEFAULT_TCP_HOST = "0.0.0.0"
DEFAULT_TCP_PORT = 8080
DEFAULT_HTTP_PORT = 3000
DEFAULT_READ_SIZE = 1024

MCP_TRANSPORTS = ("stdio", "sse", "streamable-http")


@dataclass
class ServerConfig:
    """Runtime settings for the TCP listener and the MCP surface."""

    tcp_host: str = DEFAULT_TCP_HOST
    tcp_port: int = DEFAULT_TCP_PORT
    http_port: int = DEFAULT_HTTP_PORT
    max_buffer_size: int = DEFAULT_MAX_BUFFER_SIZE
    read_size: int = DEFAULT_READ_SIZE
    log_level: str = "INFO"
    mcp_transport: str = "stdio"

    def __post_init__(self) -> None:
        if not 0 <= self.tcp_port <= 65535:
            raise ValueError(f"TCP port must be 0-65535, got {self.tcp_port}")
        if not 0 <= self.http_port <= 65535:
            raise ValueError(f"HTTP port must be 0-65535, got {self.http_port}")
        if self.read_size < 1:
            raise ValueError(f"Read size must be positive, got {self.read_size}")
        if self.mcp_transport not in MCP_TRANSPORTS:
            raise ValueError(
                f"Unknown MCP transport '{self.mcp_transport}'. "
                f"Valid: {list(MCP_TRANSPORTS)}"
            )
        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Unknown log level '{self.log_level}'")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServerConfig:
        """Build a config from environment variables, using defaults for unset ones."""
        env = os.environ if environ is None else environ
        return cls(
            tcp_host=env.get("GT60_TCP_HOST", DEFAULT_TCP_HOST),
            tcp_port=_int_env(env, "GT60_TCP_PORT", DEFAULT_TCP_PORT),
            http_port=_int_env(env, "GT60_HTTP_PORT", DEFAULT_HTTP_PORT),
            max_buffer_size=_int_env(env, "GT60_MAX_BUFFER", DEFAULT_MAX_BUFFER_SIZE),
            read_size=_int_env(env, "GT60_READ_SIZE", DEFAULT_READ_SIZE),
            log_level=env.get("GT60_LOG_LEVEL", "INFO"),
            mcp_transport=env.get("GT60_MCP_TRANSPORT", "stdio"),
        )


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from None
