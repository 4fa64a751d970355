"""Render user-facing contract docs.

Deterministic rendering of the tool contract markdown, kept as a module so
tests can check it against the live `tools/list` output.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def _required(tool: dict[str, Any]) -> str:
    schema = tool.get("inputSchema") or {}
    required = schema.get("required") or []
    return ", ".join(f"`{name}`" for name in required) or "-"


def render_tools_markdown(snapshot: dict[str, Any]) -> str:
    tools = snapshot.get("tools") or []
    lines: list[str] = []
    lines.append("# MCP Tool Contract")
    lines.append("")
    lines.append(f"- protocolVersion: `{snapshot.get('protocolVersion')}`")

    server_info = snapshot.get("serverInfo") or {}
    lines.append(f"- server: `{server_info.get('name')}` v`{server_info.get('version')}`")
    lines.append(f"- tools: `{len(tools)}`")
    lines.append("")

    lines.append("## Tools")
    lines.append("")
    lines.append("| name | required | description |")
    lines.append("|---|---|---|")
    for tool in tools:
        if not isinstance(tool, dict):
            continue
        name = str(tool.get("name", ""))
        desc = str(tool.get("description", "")).strip().splitlines()[0] if tool.get("description") else ""
        desc = desc.replace("|", "\\|")
        lines.append(f"| `{name}` | {_required(tool)} | {desc} |")

    lines.append("")
    lines.append("## Notes")
    lines.append("")
    lines.append("- `tools/list` is the source of truth for the tool list and input schemas.")
    lines.append("- Tool outputs are MCP `content[]` items: JSON `text`, plus an `image` for inline screenshots.")
    lines.append(
        '- On failure the server sets `isError=true`; `content[0].text` is `{"ok": false, "error": <code>, "message": ...}`.'
    )
    lines.append("- `pageIndex` is honored only with `MCP_ENABLE_MULTI_PAGE=1`; `model` fields only with `MCP_ENABLE_MODEL_OVERRIDE=1`.")

    return "\n".join(lines) + "\n"


def render_contract_files(snapshot: dict[str, Any]) -> dict[str, str]:
    """File name -> content for the `contracts/` directory."""
    return {
        "tools.json": json.dumps(snapshot, ensure_ascii=False, indent=2) + "\n",
        "tools.md": render_tools_markdown(snapshot),
    }


def stale_contract_files(out_dir: Path, snapshot: dict[str, Any]) -> list[str]:
    """Names of contract files that are missing or differ from `snapshot`."""
    stale: list[str] = []
    for name, content in render_contract_files(snapshot).items():
        path = out_dir / name
        if not path.is_file() or path.read_text(encoding="utf-8") != content:
            stale.append(name)
    return stale
