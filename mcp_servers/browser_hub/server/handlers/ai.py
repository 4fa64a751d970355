"""
AI handlers - act, observe, extract and the multi-step agent.

Page-scoped handlers hold the session lock only while resolving the page;
engine calls run unlocked.
"""

from __future__ import annotations

import re
from typing import Any

from ...engine import to_plain
from ..types import ToolContext, ToolResult
from .common import engine_call

ACT_JSON_HINT = (
    "Respond with a single action object in JSON "
    "(at least type and selector; add value, key or scroll fields when needed)."
)
OBSERVE_JSON_HINT = "Return the candidate actions as JSON (with the fields they need, such as selector, type and value)."
EXTRACT_JSON_HINT = "Return a JSON data object that matches the schema."

_JSON_RE = re.compile("json", re.IGNORECASE)

DEFAULT_AGENT_MESSAGE = "Agent finished"

_AGENT_OPTION_KEYS = ("cua", "systemPrompt", "integrations", "model", "executionModel")


def with_json_hint(instruction: str, hint: str) -> str:
    """Append `hint` unless the instruction already asks for JSON (or is empty)."""
    if not instruction.strip() or _JSON_RE.search(instruction):
        return instruction
    return f"{instruction}\n{hint}"


def _scoped_options(args: dict[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
    """Top-level values overlaid by the same keys inside `options`."""
    merged = {k: args[k] for k in keys if k in args}
    options = args.get("options")
    if isinstance(options, dict):
        merged.update({k: options[k] for k in keys if k in options})
    return merged


async def handle_act(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    session = ctx.require_session()
    async with session.lock:
        resolved = await ctx.resolver.resolve(session, args.get("pageIndex"), tool=ctx.tool)

    options = args.get("options") or {}
    kwargs: dict[str, Any] = {}
    if "timeout" in options:
        kwargs["timeout"] = options["timeout"]
    if options.get("variables"):
        kwargs["variables"] = options["variables"]
    if "model" in options:
        kwargs["model"] = options["model"]
    if args.get("action"):
        kwargs["action"] = args["action"]

    result = await engine_call(
        ctx.tool,
        "act",
        session.handle.act(with_json_hint(args["instruction"], ACT_JSON_HINT), page=resolved.page, **kwargs),
    )
    if result is None:
        result = {"success": True, "message": "Action executed"}
    return ctx.ok(to_plain(result))


async def handle_observe(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    session = ctx.require_session()
    async with session.lock:
        resolved = await ctx.resolver.resolve(session, args.get("pageIndex"), tool=ctx.tool)

    kwargs = _scoped_options(args, ("selector", "timeout", "model"))
    candidates = await engine_call(
        ctx.tool,
        "observe",
        session.handle.observe(
            with_json_hint(args.get("instruction") or "", OBSERVE_JSON_HINT),
            page=resolved.page,
            **kwargs,
        ),
    )
    return ctx.ok(to_plain(list(candidates or [])))


async def handle_extract(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    session = ctx.require_session()
    async with session.lock:
        resolved = await ctx.resolver.resolve(session, args.get("pageIndex"), tool=ctx.tool)

    kwargs = _scoped_options(args, ("selector", "timeout", "model"))
    if "schema" in args:
        kwargs["schema"] = args["schema"]
    result = await engine_call(
        ctx.tool,
        "extract",
        session.handle.extract(with_json_hint(args["instruction"], EXTRACT_JSON_HINT), page=resolved.page, **kwargs),
    )
    return ctx.ok(to_plain(result))


async def handle_agent(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    session = ctx.require_session()
    agent_options = {k: args[k] for k in _AGENT_OPTION_KEYS if k in args}

    async def _run() -> Any:
        agent = session.handle.agent(**agent_options)
        return await agent.execute(args["instruction"], max_steps=args.get("maxSteps"))

    result = to_plain(await engine_call(ctx.tool, "agent", _run()))
    message = result.get("message") if isinstance(result, dict) else getattr(result, "message", None)
    return ctx.ok({"message": message or DEFAULT_AGENT_MESSAGE})


AI_HANDLERS: dict[str, tuple] = {
    "act": (handle_act, True),
    "observe": (handle_observe, True),
    "extract": (handle_extract, True),
    "agent": (handle_agent, True),
}
