"""MCP server entry point for the GT60 tracker server.

Runs the device TCP listener in a background thread and exposes status,
health and packet-injection tools via the Model Context Protocol using
the official Python MCP SDK.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import ServerConfig
from .protocol.commands import COMMAND_REGISTRY, decode_payload, supported_commands
from .protocol.parser import ParseError, parse_packet
from .transport.tcp_server import TrackerServer

logger = logging.getLogger(__name__)

SERVICE_NAME = "GT60 GPS Server"

mcp = FastMCP(
    "gt60-server",
    instructions="Status, health and packet inspection for the GT60 GPS tracker server",
)

# Global listener state
_config = ServerConfig()
_listener: TrackerServer | None = None
_process_start = time.monotonic()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _status() -> dict[str, Any]:
    running = _listener is not None and _listener.running
    result: dict[str, Any] = {
        "service": SERVICE_NAME,
        "status": "running" if running else "stopped",
        "tcp_port": _listener.port if _listener is not None else _config.tcp_port,
        "http_port": _config.http_port,
        "supported_commands": supported_commands(),
    }
    if _listener is not None:
        result.update(_listener.stats.to_dict())
    return result


# ─── STATUS TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def get_status() -> dict[str, Any]:
    """Report service state, listening ports, and the supported command table."""
    return _status()


@mcp.tool()
def get_health() -> dict[str, Any]:
    """Liveness check with the current time and process uptime in seconds."""
    return {
        "status": "healthy",
        "timestamp": _now(),
        "uptime": time.monotonic() - _process_start,
    }


# ─── PACKET TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def test_packet(packet: str) -> dict[str, Any]:
    """Parse a raw GT60 frame without a live device connection.

    Returns the parsed packet (IMEI, command, fields, checksum check)
    together with its decoded payload, or the parse error.

    Args:
        packet: A complete frame, e.g. "(123456789012345,BP00,042A)".
    """
    if not packet:
        return {"error": "Packet data required"}

    logger.info("Test packet: %s", packet)
    try:
        parsed = parse_packet(packet)
    except ParseError as e:
        logger.warning("Test packet error: %s", e)
        return {
            "error": str(e),
            "error_type": type(e).__name__,
            "raw_data": packet,
            "timestamp": _now(),
        }

    result = parsed.to_dict()
    result["payload"] = decode_payload(parsed.command, parsed.fields).to_dict()
    return result


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("gt60://protocol/commands")
def resource_commands() -> str:
    """Command codes with display names and whether a field decoder exists."""
    commands = [
        {
            "code": code,
            "name": d.display_name,
            "decoder": d.decoder.__name__,
        }
        for code, d in COMMAND_REGISTRY.items()
    ]
    return json.dumps({"commands": commands, "count": len(commands)})


@mcp.resource("gt60://server/status")
def resource_status() -> str:
    """Listener state and connection counters."""
    return json.dumps(_status())


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def explain_packet(packet: str) -> str:
    """Walk through a raw frame field by field.

    Args:
        packet: Raw GT60 frame text.
    """
    return f"""Explain this GT60 tracker frame: {packet}

Use the test_packet tool to parse it, then describe:
- The device IMEI and the command (see the gt60://protocol/commands resource)
- Each decoded payload field and its units
- Whether the checksum matched, and if not, which part of the frame is suspect"""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Start the device listener and run the MCP server."""
    global _config, _listener
    _config = ServerConfig.from_env()
    logging.basicConfig(
        level=_config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    _listener = TrackerServer(_config)
    _listener.run_in_thread()
    mcp.settings.port = _config.http_port

    logger.info(
        "GT60 GPS Server started (TCP %d, MCP %s)", _listener.port, _config.mcp_transport
    )
    try:
        mcp.run(transport=_config.mcp_transport)
    finally:
        logger.info("Shutting down servers...")
        _listener.stop_thread()


if __name__ == "__main__":
    main()
