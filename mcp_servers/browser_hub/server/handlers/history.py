"""
History handlers - read the engine's step log and turn it into a script.

Pure reads: no page resolution, no session lock.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ...engine import HistoryEntry
from ...script import generate_playwright_script
from ..types import ToolContext, ToolResult


def history_entries(history: Iterable[HistoryEntry | dict[str, Any]], *, include_actions: bool = False) -> list[dict[str, Any]]:
    entries: list[dict[str, Any]] = []
    for index, raw in enumerate(history, start=1):
        item = raw.to_dict() if isinstance(raw, HistoryEntry) else dict(raw or {})
        entry: dict[str, Any] = {"index": index, "method": item.get("method"), "timestamp": item.get("timestamp")}
        if item.get("instruction"):
            entry["instruction"] = item["instruction"]
        if include_actions and item.get("action"):
            entry["action"] = item["action"]
        entries.append(entry)
    return entries


def summarize_history(entries: list[dict[str, Any]]) -> str:
    lines = [f"Total operations: {len(entries)}"]
    lines.extend(f"{e['index']}. method: {e['method']}, time: {e['timestamp']}" for e in entries)
    return "\n".join(lines)


async def handle_generate_script(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    session = ctx.require_session()
    script = generate_playwright_script(
        session.handle.history(),
        test_name=args.get("testName"),
        include_comments=args.get("includeComments", True),
    )
    return ToolResult.text(script)


async def handle_get_history(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    session = ctx.require_session()
    entries = history_entries(session.handle.history(), include_actions=bool(args.get("includeActions")))
    if args.get("summarize"):
        return ToolResult.text(summarize_history(entries))
    return ctx.ok({"count": len(entries), "entries": entries})


HISTORY_HANDLERS: dict[str, tuple] = {
    "generate_script": (handle_generate_script, True),
    "get_history": (handle_get_history, True),
}
