"""
Page handlers - open, list, select, navigate and close pages.

Every handler here mutates the session's page set, so each holds the
session lock for its whole body.
"""

from __future__ import annotations

from typing import Any

from ...errors import invalid_index
from ..types import ToolContext, ToolResult
from .common import engine_call


async def handle_new_page(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    session = ctx.require_session()
    async with session.lock:
        resolved = await engine_call(ctx.tool, "new_page", ctx.resolver.create(session))
        url = args.get("url")
        if url:
            await engine_call(ctx.tool, "goto", resolved.page.goto(url))
        return ctx.ok({"message": "New page created", "index": resolved.index, "totalPages": resolved.total})


async def handle_list_pages(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    session = ctx.require_session()
    async with session.lock:
        total = session.page_count()
        active = ctx.resolver.reclamp(session)
        return ctx.ok({"total": total, "indices": list(range(total)), "activeIndex": active})


async def handle_set_active_page(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    session = ctx.require_session()
    index = args["pageIndex"]
    async with session.lock:
        total = session.page_count()
        if not 0 <= index < total:
            raise invalid_index(index, tool=ctx.tool, total=total)
        session.active_page_index = index
    return ctx.ok({"message": "Active page updated", "activeIndex": index})


async def handle_goto(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    session = ctx.require_session()
    url = args["url"]
    async with session.lock:
        resolved = await engine_call(
            ctx.tool,
            "new_page",
            ctx.resolver.resolve(session, args.get("pageIndex"), allow_create=True, tool=ctx.tool),
        )
        await engine_call(ctx.tool, "goto", resolved.page.goto(url))
        session.active_page_index = resolved.index
    return ctx.ok({"message": "Navigated", "url": url, "pageIndex": resolved.index})


async def handle_close_page(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    session = ctx.require_session()
    async with session.lock:
        found = ctx.resolver.find(session, args.get("pageIndex"), tool=ctx.tool)
        if found is None:
            return ctx.ok(
                {
                    "message": "No active page to close",
                    "remaining": session.page_count(),
                    "activeIndex": session.active_page_index,
                }
            )
        await engine_call(ctx.tool, "close_page", found.page.close())
        active = ctx.resolver.reclamp(session)
        return ctx.ok(
            {
                "message": "Page closed",
                "closedIndex": found.index,
                "remaining": session.page_count(),
                "activeIndex": active,
            }
        )


PAGE_HANDLERS: dict[str, tuple] = {
    "new_page": (handle_new_page, True),
    "list_pages": (handle_list_pages, True),
    "set_active_page": (handle_set_active_page, True),
    "goto": (handle_goto, True),
    "close_page": (handle_close_page, True),
}
