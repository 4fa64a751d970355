"""Protocol and tool contract definitions.

This is the single source of truth for:
- supported MCP protocol versions
- server identity
- capabilities advertised by initialize
- the tool list
"""

from __future__ import annotations

from typing import Any

from .definitions import TOOL_DEFINITIONS

SERVER_INFO: dict[str, str] = {"name": "browser-hub", "version": "0.1.0"}

SUPPORTED_PROTOCOL_VERSIONS = ["0.1.0", "2025-06-18", "2024-11-05"]
LATEST_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[1]
DEFAULT_PROTOCOL_VERSION = LATEST_PROTOCOL_VERSION

CAPABILITIES: dict[str, Any] = {
    "logging": {},
    "tools": {"listChanged": False},
}

INSTRUCTIONS = (
    "Open a page with new_page or goto before page-scoped tools. "
    "Use observe to discover elements, then act one step at a time. "
    "Sessions are isolated per caller (params._meta.sessionId)."
)


def select_protocol(requested: Any) -> str:
    if isinstance(requested, str) and requested in SUPPORTED_PROTOCOL_VERSIONS:
        return requested
    return DEFAULT_PROTOCOL_VERSION


def initialize_result(protocol: str) -> dict[str, Any]:
    return {
        "protocolVersion": protocol,
        "serverInfo": SERVER_INFO,
        "capabilities": CAPABILITIES,
        "instructions": INSTRUCTIONS,
    }


def tools_list() -> list[dict[str, Any]]:
    return TOOL_DEFINITIONS


def contract_snapshot(protocol: str | None = None) -> dict[str, Any]:
    return {
        "protocolVersion": protocol or DEFAULT_PROTOCOL_VERSION,
        "serverInfo": SERVER_INFO,
        "tools": tools_list(),
    }
