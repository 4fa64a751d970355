"""
Tool registry with dispatch table for the MCP server.

Every call goes through one path: normalize and validate the arguments, bind
the caller's session when the tool needs one, run the handler, and turn any
failure into a structured error result.
"""

from __future__ import annotations

import logging
from typing import Any

from ..errors import InvalidArgument, ToolError
from .normalize import normalize_arguments
from .types import HandlerFunc, ToolContext, ToolResult

logger = logging.getLogger("mcp.hub.registry")


class ToolRegistry:
    """Registry for tool handlers with session binding."""

    def __init__(self) -> None:
        # name -> (handler, requires_session)
        self._handlers: dict[str, tuple[HandlerFunc, bool]] = {}

    def register(self, name: str, handler: HandlerFunc, requires_session: bool = True) -> None:
        """Register a tool handler."""
        self._handlers[name] = (handler, requires_session)

    def register_many(self, handlers: dict[str, tuple[HandlerFunc, bool]]) -> None:
        """Register multiple handlers at once."""
        self._handlers.update(handlers)

    async def dispatch(self, name: str, ctx: ToolContext, arguments: Any) -> ToolResult:
        """Dispatch one tool call. Never raises for tool failures."""
        ctx.tool = name
        try:
            handler_info = self._handlers.get(name)
            if handler_info is None:
                raise InvalidArgument(
                    f"Unknown tool: {name}" if name else "Missing tool name",
                    tool=name or None,
                    suggestion="Call tools/list to see available tools",
                )
            handler, requires_session = handler_info

            call = normalize_arguments(
                name,
                arguments,
                enable_multi_page=ctx.config.enable_multi_page,
                enable_model_override=ctx.config.enable_model_override,
            )
            ctx.ignored = call.ignored
            if call.ignored:
                logger.info("ignored_fields tool=%s fields=%s", name, ",".join(call.ignored))

            if not requires_session:
                return await handler(ctx, call.arguments)
            async with ctx.sessions.acquire(ctx.session_id) as session:
                ctx.session = session
                return await handler(ctx, call.arguments)
        except ToolError as exc:
            if exc.tool is None:
                exc.tool = name or None
            logger.info("tool_error tool=%s code=%s reason=%s", name, exc.code, exc.reason)
            return ToolResult.from_error(exc)
        except Exception as exc:  # noqa: BLE001
            logger.exception("tool_call_failed tool=%s", name)
            return ToolResult.error(str(exc) or type(exc).__name__, code="EngineFailure", tool=name or None)

    @property
    def tool_names(self) -> list[str]:
        """Get list of registered tool names."""
        return list(self._handlers.keys())

    def __len__(self) -> int:
        return len(self._handlers)


def create_default_registry() -> ToolRegistry:
    """Create registry with every catalogue handler."""
    from .handlers import ALL_HANDLERS

    registry = ToolRegistry()
    registry.register_many(ALL_HANDLERS)
    return registry


__all__ = ["ToolRegistry", "create_default_registry", "logger"]
