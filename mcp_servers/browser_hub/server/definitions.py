"""Tool schema definitions (the `tools/list` catalogue)."""

from __future__ import annotations

from typing import Any

_SCHEMA = "http://json-schema.org/draft-07/schema#"

PAGE_INDEX_PROPERTY: dict[str, Any] = {
    "pageIndex": {
        "type": "integer",
        "description": "Target page (0-based). Honored only when MCP_ENABLE_MULTI_PAGE=1; otherwise the active page is used.",
    },
}

MODEL_PROPERTY: dict[str, Any] = {
    "model": {
        "type": "string",
        "description": "Model override. Honored only when MCP_ENABLE_MODEL_OVERRIDE=1.",
    },
}

TIMEOUT_PROPERTY: dict[str, Any] = {
    "timeout": {"type": "number", "minimum": 0, "description": "Engine timeout in milliseconds"},
}

SELECTOR_PROPERTY: dict[str, Any] = {
    "selector": {"type": "string", "description": "Restrict the operation to this XPath/CSS scope"},
}


def _object(properties: dict[str, Any], *, required: list[str] | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {"$schema": _SCHEMA, "type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


NEW_PAGE_TOOL: dict[str, Any] = {
    "name": "new_page",
    "description": """Open a new page, optionally navigate it, and make it the active page.
RESPONSE: {"message": "New page created", "index": 0, "totalPages": 1}""",
    "inputSchema": _object({"url": {"type": "string", "format": "uri", "description": "Optional http(s) URL to open"}}),
}

LIST_PAGES_TOOL: dict[str, Any] = {
    "name": "list_pages",
    "description": """List the pages of this session.
RESPONSE: {"total": 2, "indices": [0, 1], "activeIndex": 1}""",
    "inputSchema": _object({}),
}

SET_ACTIVE_PAGE_TOOL: dict[str, Any] = {
    "name": "set_active_page",
    "description": """Make the page at pageIndex the active page for later calls.
RESPONSE: {"message": "Active page updated", "activeIndex": 1}""",
    "inputSchema": _object(
        {"pageIndex": {"type": "integer", "description": "Page to activate (0-based)"}},
        required=["pageIndex"],
    ),
}

GOTO_TOOL: dict[str, Any] = {
    "name": "goto",
    "description": """Navigate the active (or given) page to a URL. Creates a page when none exists.
Use for navigation only; do not mix in login or form flows.
RESPONSE: {"message": "Navigated", "url": "https://example.com", "pageIndex": 0}""",
    "inputSchema": _object(
        {"url": {"type": "string", "format": "uri", "description": "http(s) URL to open"}, **PAGE_INDEX_PROPERTY},
        required=["url"],
    ),
}

CLOSE_PAGE_TOOL: dict[str, Any] = {
    "name": "close_page",
    "description": """Close the active (or given) page. Closing when no page is open is not an error.
RESPONSE: {"message": "Page closed", "closedIndex": 0, "remaining": 0, "activeIndex": 0}""",
    "inputSchema": _object({**PAGE_INDEX_PROPERTY}),
}

SCREENSHOT_TOOL: dict[str, Any] = {
    "name": "screenshot",
    "description": """Capture the active (or given) page.
Default returns a URL served by the local asset server; returnMode="dataURL" returns the image inline.
RESPONSE: {"url": "http://localhost:4001/screenshots/shot_1700000000000_ab12cd34.png", "pageIndex": 0}""",
    "inputSchema": _object(
        {
            "fullPage": {"type": "boolean", "default": False, "description": "Capture the full scrollable page"},
            "type": {"type": "string", "enum": ["png", "jpeg"], "default": "png", "description": "Image format"},
            "quality": {
                "type": "integer",
                "minimum": 1,
                "maximum": 100,
                "description": "JPEG quality (only for type=jpeg)",
            },
            "clip": {
                "type": "object",
                "properties": {
                    "x": {"type": "number"},
                    "y": {"type": "number"},
                    "width": {"type": "number", "minimum": 0},
                    "height": {"type": "number", "minimum": 0},
                },
                "required": ["x", "y", "width", "height"],
                "description": "Crop region in CSS pixels",
            },
            "returnMode": {
                "type": "string",
                "enum": ["url", "dataURL"],
                "default": "url",
                "description": "url (default) or dataURL",
            },
            **PAGE_INDEX_PROPERTY,
        }
    ),
}

ACT_TOOL: dict[str, Any] = {
    "name": "act",
    "description": """Perform ONE action on the page from a natural-language instruction.
Use clear verbs (click, type, select); call observe first to discover elements.
Pass `action` (from an observe result) to replay a deterministic step without the model.""",
    "inputSchema": _object(
        {
            "instruction": {"type": "string", "description": "What to do. Required."},
            "action": {
                "type": "object",
                "properties": {
                    "selector": {"type": "string"},
                    "method": {"type": "string"},
                    "arguments": {"type": "array", "items": {"type": "string"}},
                    "description": {"type": "string"},
                },
                "description": "Deterministic action, e.g. an observe candidate",
            },
            "options": {
                "type": "object",
                "properties": {
                    **TIMEOUT_PROPERTY,
                    "variables": {
                        "type": "object",
                        "description": "Values substituted for %name% placeholders in the instruction",
                    },
                    **MODEL_PROPERTY,
                },
            },
            **PAGE_INDEX_PROPERTY,
        },
        required=["instruction"],
    ),
}

OBSERVE_TOOL: dict[str, Any] = {
    "name": "observe",
    "description": """Discover actionable elements, usually before act.
An empty instruction lists every interactive element. Results keep the engine's relevance order.""",
    "inputSchema": _object(
        {
            "instruction": {"type": "string", "description": "Elements to look for (optional)"},
            **SELECTOR_PROPERTY,
            **TIMEOUT_PROPERTY,
            "options": {
                "type": "object",
                "properties": {**SELECTOR_PROPERTY, **TIMEOUT_PROPERTY, **MODEL_PROPERTY},
            },
            **PAGE_INDEX_PROPERTY,
        }
    ),
}

EXTRACT_TOOL: dict[str, Any] = {
    "name": "extract",
    "description": """Extract structured data from the page.
Describe fields with types, e.g. { "name": "string", "age": "number" }, or pass a JSON schema.""",
    "inputSchema": _object(
        {
            "instruction": {"type": "string", "description": "What data to extract. Required."},
            "schema": {"type": "object", "description": "JSON schema of the expected result"},
            **SELECTOR_PROPERTY,
            **TIMEOUT_PROPERTY,
            **MODEL_PROPERTY,
            "options": {
                "type": "object",
                "properties": {**SELECTOR_PROPERTY, **TIMEOUT_PROPERTY, **MODEL_PROPERTY},
            },
            **PAGE_INDEX_PROPERTY,
        },
        required=["instruction"],
    ),
}

AGENT_TOOL: dict[str, Any] = {
    "name": "agent",
    "description": """Run a multi-step agent on this session until it finishes or hits maxSteps.
Navigate first with goto, give specific instructions with a clear success criterion.
RESPONSE: {"message": "Agent finished"}""",
    "inputSchema": _object(
        {
            "instruction": {"type": "string", "description": "High-level task. Required."},
            "maxSteps": {"type": "integer", "minimum": 1, "description": "Step budget"},
            "systemPrompt": {"type": "string", "description": "Custom system prompt"},
            "cua": {"type": "boolean", "description": "Use a computer-use agent"},
            "integrations": {"type": "array", "items": {"type": "string"}, "description": "MCP integration URLs"},
            **MODEL_PROPERTY,
            "executionModel": {
                "type": "string",
                "description": "Model for tool execution. Honored only when MCP_ENABLE_MODEL_OVERRIDE=1.",
            },
        },
        required=["instruction"],
    ),
}

GENERATE_SCRIPT_TOOL: dict[str, Any] = {
    "name": "generate_script",
    "description": "Turn this session's history into a Playwright Test script (JavaScript).",
    "inputSchema": _object(
        {
            "testName": {"type": "string", "default": "Generated Script", "description": "Test title"},
            "includeComments": {
                "type": "boolean",
                "default": True,
                "description": "Precede statements with their instruction",
            },
        }
    ),
}

GET_HISTORY_TOOL: dict[str, Any] = {
    "name": "get_history",
    "description": """Read this session's execution history (method, timestamp, instruction).
RESPONSE: {"count": 1, "entries": [{"index": 1, "method": "goto", "timestamp": "..."}]}""",
    "inputSchema": _object(
        {
            "includeActions": {"type": "boolean", "default": False, "description": "Include action details"},
            "summarize": {"type": "boolean", "default": False, "description": "Return a short text summary"},
        }
    ),
}

CLOSE_SESSION_TOOL: dict[str, Any] = {
    "name": "close_session",
    "description": """Close this session's browser and forget its pages and history.
RESPONSE: {"closed": true, "sessionId": "default"}""",
    "inputSchema": _object({}),
}

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    NEW_PAGE_TOOL,
    LIST_PAGES_TOOL,
    SET_ACTIVE_PAGE_TOOL,
    GOTO_TOOL,
    CLOSE_PAGE_TOOL,
    SCREENSHOT_TOOL,
    ACT_TOOL,
    OBSERVE_TOOL,
    EXTRACT_TOOL,
    AGENT_TOOL,
    GENERATE_SCRIPT_TOOL,
    GET_HISTORY_TOOL,
    CLOSE_SESSION_TOOL,
]

TOOLS_BY_NAME: dict[str, dict[str, Any]] = {t["name"]: t for t in TOOL_DEFINITIONS}

# Tools whose `pageIndex` selects a target page (and is therefore gated).
PAGE_TARGETING_TOOLS = frozenset({"goto", "close_page", "screenshot", "act", "observe", "extract"})

__all__ = ["PAGE_TARGETING_TOOLS", "TOOLS_BY_NAME", "TOOL_DEFINITIONS"]
