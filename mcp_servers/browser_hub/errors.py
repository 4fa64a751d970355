"""
Structured tool errors.

Every failure a caller can observe is one of the classes below. The registry
turns them into error results; handlers only raise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass
class ToolError(Exception):
    """Structured error with context for AI agents."""

    code: ClassVar[str] = "ToolError"

    reason: str
    tool: str | None = None
    suggestion: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        prefix = f"[{self.tool}] " if self.tool else ""
        return f"{prefix}{self.code}: {self.reason}"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"ok": False, "error": self.code, "message": self.reason}
        if self.tool:
            payload["tool"] = self.tool
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidArgument(ToolError):
    """Missing or malformed input, detected before any side effect."""

    code = "InvalidArgument"


class InvalidIndex(ToolError):
    """Explicit page index outside the live page list."""

    code = "InvalidIndex"


class NoActivePage(ToolError):
    code = "NoActivePage"


class EngineFailure(ToolError):
    """A delegated automation call raised."""

    code = "EngineFailure"


class InitializationFailure(ToolError):
    code = "InitializationFailure"


OPEN_PAGE_SUGGESTION = "Use new_page or goto to open a page first"


def invalid_index(index: Any, *, tool: str | None = None, total: int | None = None) -> InvalidIndex:
    details: dict[str, Any] = {"pageIndex": index}
    if total is not None:
        details["totalPages"] = total
    return InvalidIndex(
        f"Invalid pageIndex: {index}",
        tool=tool,
        suggestion="Call list_pages to see valid indices",
        details=details,
    )


__all__ = [
    "OPEN_PAGE_SUGGESTION",
    "EngineFailure",
    "InitializationFailure",
    "InvalidArgument",
    "InvalidIndex",
    "NoActivePage",
    "ToolError",
    "invalid_index",
]
