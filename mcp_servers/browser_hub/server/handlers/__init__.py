"""
Tool handlers organized by domain.

Each handler module provides async functions that handle specific tool calls.
All handlers follow the signature: (ctx, arguments) -> ToolResult
"""

from .ai import AI_HANDLERS
from .capture import CAPTURE_HANDLERS
from .history import HISTORY_HANDLERS
from .pages import PAGE_HANDLERS
from .session import SESSION_HANDLERS

# Aggregate all handlers
ALL_HANDLERS: dict[str, tuple] = {
    **PAGE_HANDLERS,
    **CAPTURE_HANDLERS,
    **AI_HANDLERS,
    **HISTORY_HANDLERS,
    **SESSION_HANDLERS,
}

__all__ = [
    "AI_HANDLERS",
    "ALL_HANDLERS",
    "CAPTURE_HANDLERS",
    "HISTORY_HANDLERS",
    "PAGE_HANDLERS",
    "SESSION_HANDLERS",
]
