"""
Type definitions for MCP server responses and handlers.
"""

from __future__ import annotations

import json as _json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..assets import AssetPublisher
    from ..config import HubConfig
    from ..errors import ToolError
    from ..pages import PageResolver
    from ..sessions import Session, SessionRegistry


def _dumps(data: Any) -> str:
    return _json.dumps(data, ensure_ascii=False, default=str)


@dataclass(slots=True)
class ToolContent:
    """Single content item in tool response."""

    type: str  # "text" or "image"
    text: str | None = None
    data: str | None = None  # base64 for images
    mime_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to MCP content format."""
        if self.type == "image":
            return {"type": "image", "data": self.data, "mimeType": self.mime_type}
        return {"type": "text", "text": self.text}


@dataclass(slots=True)
class ToolResult:
    """Result of a tool execution."""

    content: list[ToolContent] = field(default_factory=list)
    is_error: bool = False
    # Raw payload, kept for in-process callers and tests. Not sent on the wire.
    data: Any | None = None

    @classmethod
    def text(cls, text: str) -> ToolResult:
        return cls(content=[ToolContent(type="text", text=text or "")], data=text)

    @classmethod
    def json(cls, data: Any) -> ToolResult:
        """Create result with the payload rendered as JSON text."""
        return cls(content=[ToolContent(type="text", text=_dumps(data))], data=data)

    @classmethod
    def error(
        cls,
        message: str,
        *,
        code: str = "EngineFailure",
        tool: str | None = None,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> ToolResult:
        payload: dict[str, Any] = {"ok": False, "error": code, "message": message}
        if tool:
            payload["tool"] = tool
        if suggestion:
            payload["suggestion"] = suggestion
        if details:
            payload["details"] = details
        return cls(content=[ToolContent(type="text", text=_dumps(payload))], is_error=True, data=payload)

    @classmethod
    def from_error(cls, exc: ToolError) -> ToolResult:
        payload = exc.to_dict()
        return cls(content=[ToolContent(type="text", text=_dumps(payload))], is_error=True, data=payload)

    @classmethod
    def with_image(cls, data: Any, data_b64: str, mime_type: str = "image/png") -> ToolResult:
        """JSON text plus an inline image. Omits the image if data is empty."""
        result = cls.json(data)
        if data_b64:
            result.content.append(ToolContent(type="image", data=data_b64, mime_type=mime_type))
        return result

    def to_content_list(self) -> list[dict[str, Any]]:
        """Convert to MCP content list format."""
        return [c.to_dict() for c in self.content]


@dataclass(slots=True)
class ToolContext:
    """Everything a handler may touch during one call."""

    config: HubConfig
    sessions: SessionRegistry
    resolver: PageResolver
    assets: AssetPublisher
    session_id: str
    tool: str = ""
    # Bound by the registry for tools that need a session.
    session: Session | None = None
    # Gated or meaningless fields dropped during normalization.
    ignored: list[str] = field(default_factory=list)

    def require_session(self) -> Session:
        if self.session is None:
            raise RuntimeError(f"{self.tool} requires a session")
        return self.session

    def with_ignored(self, payload: Any) -> Any:
        """Echo ignored fields into object payloads."""
        if self.ignored and isinstance(payload, dict):
            return {**payload, "ignored": list(self.ignored)}
        return payload

    def ok(self, payload: Any) -> ToolResult:
        return ToolResult.json(self.with_ignored(payload))


HandlerFunc = Callable[[ToolContext, dict[str, Any]], Awaitable[ToolResult]]
