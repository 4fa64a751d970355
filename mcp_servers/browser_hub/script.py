"""Translate recorded history into a Playwright Test script (JavaScript)."""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from .engine import HistoryEntry

DEFAULT_TEST_NAME = "Generated Script"

_HEADER = "import { test, expect } from '@playwright/test';\n"


def _js(value: Any) -> str:
    """JavaScript string literal."""
    return json.dumps(str(value), ensure_ascii=False)


def _num(value: Any) -> int | float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def _entry_dict(entry: HistoryEntry | dict[str, Any]) -> dict[str, Any]:
    if isinstance(entry, HistoryEntry):
        return entry.to_dict()
    return entry if isinstance(entry, dict) else {}


def _statement(kind: str | None, action: dict[str, Any]) -> str | None:
    """One statement for a recognized action, None when it cannot be mapped."""
    selector = action.get("selector")
    has_selector = isinstance(selector, str) and bool(selector)

    if kind == "goto":
        url = action.get("url")
        return f"await page.goto({_js(url)});" if url else None
    if kind == "click":
        return f"await page.click({_js(selector)});" if has_selector else None
    if kind in ("fill", "type"):
        if not has_selector or action.get("value") is None:
            return None
        return f"await page.{kind}({_js(selector)}, {_js(action['value'])});"
    if kind == "press":
        key = action.get("keys") or action.get("key")
        if not key:
            return None
        if has_selector:
            return f"await page.press({_js(selector)}, {_js(key)});"
        return f"await page.keyboard.press({_js(key)});"
    if kind == "scroll":
        x, y = _num(action.get("x")), _num(action.get("y"))
        return f"await page.evaluate(({{ x, y }}) => window.scrollBy(x, y), {{ x: {x}, y: {y} }});"
    return None


def _comment_text(text: str) -> str:
    return " ".join(text.split())


def generate_playwright_script(
    history: Iterable[HistoryEntry | dict[str, Any]],
    *,
    test_name: str | None = None,
    include_comments: bool = True,
) -> str:
    """Render history as one Playwright test.

    Every entry yields output in order. Recognized actions become statements,
    optionally preceded by their instruction as a comment; anything else is
    kept as an `Unmapped action` comment.
    """
    name = (test_name or "").strip() or DEFAULT_TEST_NAME
    lines = [_HEADER, f"test({_js(name)}, async ({{ page }}) => {{"]

    for raw in history:
        entry = _entry_dict(raw)
        action = entry.get("action") if isinstance(entry.get("action"), dict) else {}
        kind = action.get("type") or entry.get("method")
        statement = _statement(kind, action)
        if statement is None:
            lines.append(f"  // Unmapped action: {kind} {json.dumps(action, ensure_ascii=False, sort_keys=True)}")
            continue
        instruction = entry.get("instruction")
        if include_comments and isinstance(instruction, str) and instruction.strip():
            lines.append(f"  // Action: {_comment_text(instruction)}")
        lines.append(f"  {statement}")

    lines.append("});")
    return "\n".join(lines) + "\n"


__all__ = ["DEFAULT_TEST_NAME", "generate_playwright_script"]
