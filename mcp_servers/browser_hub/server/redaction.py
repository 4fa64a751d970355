"""Log-safe views of tool calls and JSON-RPC frames.

Masks URL credentials and secret-looking query values. Act variables are
replaced by summaries, and inline screenshots never reach the log.
"""

from __future__ import annotations

import json
import re
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

MASK = "<redacted>"

_SECRET_FRAGMENTS = (
    "token",
    "secret",
    "password",
    "passwd",
    "pwd",
    "authorization",
    "cookie",
    "session",
    "jwt",
    "bearer",
    "api-key",
    "api_key",
    "apikey",
)

# Matched whole, so "author" stays readable.
_SECRET_NAMES = frozenset({"auth", "pass"})

# Identifiers, not secrets.
_PUBLIC_NAMES = frozenset({"sessionid"})

_TRUNCATED_KEYS = frozenset({"instruction", "systemprompt"})
_INSTRUCTION_LIMIT = 200
_TEXT_LIMIT = 512

_DATA_URL_RE = re.compile(r"^data:[\w/+.-]+;base64,", re.IGNORECASE)


def is_sensitive_key(key: str) -> bool:
    name = (key or "").strip().lower()
    if not name or name in _PUBLIC_NAMES:
        return False
    return name in _SECRET_NAMES or any(fragment in name for fragment in _SECRET_FRAGMENTS)


def _mask_params(raw: str) -> str | None:
    """Query-string with secret values masked; None when nothing was secret."""
    pairs = parse_qsl(raw, keep_blank_values=True)
    if not any(value and is_sensitive_key(name) for name, value in pairs):
        return None
    masked = [(name, MASK if value and is_sensitive_key(name) else value) for name, value in pairs]
    return urlencode(masked)


def redact_url(url: str) -> str:
    """Drop userinfo and mask secret query or fragment values.

    The input comes back untouched when there is nothing to mask.
    """
    if not isinstance(url, str) or not url:
        return url
    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    netloc = parts.netloc.rpartition("@")[2]
    query = _mask_params(parts.query) if parts.query else None
    fragment = _mask_params(parts.fragment) if "=" in parts.fragment else None
    if netloc == parts.netloc and query is None and fragment is None:
        return url
    return urlunsplit(
        (
            parts.scheme,
            netloc,
            parts.path,
            parts.query if query is None else query,
            parts.fragment if fragment is None else fragment,
        )
    )


def describe_secret(value: Any) -> str:
    """Shape of a hidden value, never its content."""
    if isinstance(value, (bytes, bytearray)):
        return f"<redacted bytes len={len(value)}>"
    if isinstance(value, str):
        return f"<redacted str len={len(value)}>"
    if isinstance(value, (list, tuple, set)):
        return f"<redacted list len={len(value)}>"
    if isinstance(value, dict):
        return f"<redacted dict keys={len(value)}>"
    return MASK


def _clip(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}… <truncated len={len(text)}>"


def _scrub(tool: str, key: str, value: Any) -> Any:
    name = key.lower()
    if tool == "act" and name == "variables":
        if isinstance(value, dict):
            return {k: describe_secret(v) for k, v in value.items()}
        return describe_secret(value)
    if isinstance(value, dict):
        return {k: _scrub(tool, str(k), v) for k, v in value.items()}
    if isinstance(value, list):
        return [_scrub(tool, key, item) for item in value]
    if isinstance(value, str):
        if name == "url":
            return redact_url(value)
        if name in _TRUNCATED_KEYS:
            return _clip(value, _INSTRUCTION_LIMIT)
        if tool == "act" and name == "value":
            return describe_secret(value)
    return describe_secret(value) if is_sensitive_key(name) else value


def redact_tool_arguments(tool: str, args: dict[str, Any]) -> dict[str, Any]:
    """Copy of one call's arguments that is safe to log."""
    if not isinstance(args, dict):
        return {}
    return {k: _scrub(tool, str(k), v) for k, v in args.items()}


def redact_text_content(text: str) -> str:
    """Shorten a JSON text payload for logs, replacing inline screenshots."""
    try:
        payload = json.loads(text)
    except ValueError:
        return _clip(text, _TEXT_LIMIT)
    data_url = payload.get("dataURL") if isinstance(payload, dict) else None
    if isinstance(data_url, str) and _DATA_URL_RE.match(data_url):
        payload = {**payload, "dataURL": f"<omitted dataURL len={len(data_url)}>"}
    return _clip(json.dumps(payload, ensure_ascii=False), _TEXT_LIMIT)


def _redact_content_item(item: Any) -> Any:
    if not isinstance(item, dict):
        return item
    kind = item.get("type")
    if kind == "image" and isinstance(item.get("data"), str):
        return {**item, "data": f"<omitted image base64 len={len(item['data'])}>"}
    if kind == "text" and isinstance(item.get("text"), str):
        return {**item, "text": redact_text_content(item["text"])}
    return item


def redact_jsonrpc_for_log(frame: dict[str, Any]) -> dict[str, Any]:
    """Log-safe copy of one JSON-RPC request or response."""
    msg = dict(frame) if isinstance(frame, dict) else {}

    params = msg.get("params")
    if msg.get("method") in {"tools/call", "call_tool"} and isinstance(params, dict):
        name = params.get("name")
        arguments = params.get("arguments") or params.get("args")
        if isinstance(name, str) and isinstance(arguments, dict):
            safe = {k: v for k, v in params.items() if k != "args"}
            safe["arguments"] = redact_tool_arguments(name, arguments)
            msg["params"] = safe

    result = msg.get("result")
    if isinstance(result, dict) and isinstance(result.get("content"), list):
        msg["result"] = {**result, "content": [_redact_content_item(item) for item in result["content"]]}

    return msg


__all__ = [
    "describe_secret",
    "is_sensitive_key",
    "redact_jsonrpc_for_log",
    "redact_text_content",
    "redact_tool_arguments",
    "redact_url",
]
