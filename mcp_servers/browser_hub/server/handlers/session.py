"""
Session handlers - explicit teardown of the calling session.
"""

from __future__ import annotations

from typing import Any

from ..types import ToolContext, ToolResult


async def handle_close_session(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    closed = await ctx.sessions.close(ctx.session_id)
    return ctx.ok({"closed": closed, "sessionId": ctx.session_id})


# Does not bind a session: closing must not construct one.
SESSION_HANDLERS: dict[str, tuple] = {
    "close_session": (handle_close_session, False),
}
