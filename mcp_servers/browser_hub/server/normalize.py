"""
Input normalization and validation for tool calls.

Runs once per call, before any handler: coerce, alias, sanitize, apply the
capability gates, then check the tool's input schema. Nothing here touches a
session, so a rejected call has no side effects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

from ..errors import InvalidArgument
from .definitions import PAGE_TARGETING_TOOLS, TOOLS_BY_NAME

_ALIASES: dict[str, str] = {"index": "pageIndex"}
_TOOL_ALIASES: dict[str, dict[str, str]] = {"screenshot": {"format": "type"}}

_MODEL_FIELDS = ("model", "executionModel")
_URL_SCHEMES = frozenset({"http", "https"})

_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "object": (dict,),
    "array": (list,),
}


@dataclass
class NormalizedCall:
    tool: str
    arguments: dict[str, Any]
    ignored: list[str] = field(default_factory=list)


def sanitize_url(value: str) -> str:
    """Strip whitespace and stray backticks that LLM callers wrap URLs in."""
    return value.strip().strip("`").strip()


def _apply_aliases(tool: str, args: dict[str, Any]) -> None:
    aliases = {**_ALIASES, **_TOOL_ALIASES.get(tool, {})}
    for alias, canonical in aliases.items():
        if alias not in args:
            continue
        value = args.pop(alias)
        args.setdefault(canonical, value)


def _apply_gates(
    tool: str,
    args: dict[str, Any],
    *,
    enable_multi_page: bool,
    enable_model_override: bool,
) -> list[str]:
    ignored: list[str] = []
    if not enable_multi_page and tool in PAGE_TARGETING_TOOLS and "pageIndex" in args:
        args.pop("pageIndex")
        ignored.append("pageIndex")
    if not enable_model_override:
        for key in _MODEL_FIELDS:
            if key in args:
                args.pop(key)
                ignored.append(key)
        options = args.get("options")
        if isinstance(options, dict):
            for key in _MODEL_FIELDS:
                if key in options:
                    options.pop(key)
                    ignored.append(f"options.{key}")
    if tool == "screenshot" and "quality" in args and args.get("type") != "jpeg":
        args.pop("quality")
        ignored.append("quality")
    return ignored


def _type_ok(expected: str, value: Any) -> bool:
    if expected == "integer" and isinstance(value, float):
        return value.is_integer()
    if expected in ("integer", "number", "string", "object", "array") and isinstance(value, bool):
        return False
    return isinstance(value, _JSON_TYPES.get(expected, (object,)))


def _is_http_url(value: str) -> bool:
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return parts.scheme.lower() in _URL_SCHEMES and bool(parts.netloc)


def coerce_integers(schema: dict[str, Any], value: Any) -> Any:
    """Turn integral floats (`2.0`) into ints wherever the schema wants an integer."""
    if schema.get("type") == "integer" and isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        properties = schema.get("properties") or {}
        return {
            k: coerce_integers(properties[k], v) if isinstance(properties.get(k), dict) else v
            for k, v in value.items()
        }
    if isinstance(value, list) and isinstance(schema.get("items"), dict):
        return [coerce_integers(schema["items"], item) for item in value]
    return value


def validate(schema: dict[str, Any], value: Any, *, tool: str, path: str = "") -> None:
    """Check `value` against the subset of JSON schema our catalogue uses."""
    label = path or "arguments"
    expected = schema.get("type")
    if isinstance(expected, str) and not _type_ok(expected, value):
        raise InvalidArgument(
            f"{label} must be of type {expected}",
            tool=tool,
            details={"field": label, "expected": expected},
        )

    if schema.get("format") == "uri" and isinstance(value, str) and value and not _is_http_url(value):
        raise InvalidArgument(
            f"{label} must be an absolute http(s) URL",
            tool=tool,
            suggestion="Include the scheme, e.g. https://example.com",
            details={"field": label},
        )

    enum = schema.get("enum")
    if isinstance(enum, list) and value not in enum:
        raise InvalidArgument(
            f"{label} must be one of: {', '.join(map(str, enum))}",
            tool=tool,
            details={"field": label, "allowed": enum},
        )

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        minimum = schema.get("minimum")
        maximum = schema.get("maximum")
        if minimum is not None and value < minimum:
            raise InvalidArgument(f"{label} must be >= {minimum}", tool=tool, details={"field": label})
        if maximum is not None and value > maximum:
            raise InvalidArgument(f"{label} must be <= {maximum}", tool=tool, details={"field": label})

    if isinstance(value, dict):
        properties = schema.get("properties") or {}
        for name in schema.get("required") or []:
            present = value.get(name)
            if present is None:
                raise InvalidArgument(
                    f"Missing required argument: {name}",
                    tool=tool,
                    details={"field": f"{path}.{name}" if path else name},
                )
            if isinstance(present, str) and not present.strip():
                raise InvalidArgument(
                    f"{name} must be a non-empty string",
                    tool=tool,
                    details={"field": f"{path}.{name}" if path else name},
                )
        for name, sub in properties.items():
            if name in value and value[name] is not None and isinstance(sub, dict):
                validate(sub, value[name], tool=tool, path=f"{path}.{name}" if path else name)

    if isinstance(value, list) and isinstance(schema.get("items"), dict):
        for i, item in enumerate(value):
            validate(schema["items"], item, tool=tool, path=f"{label}[{i}]")


def normalize_arguments(
    tool: str,
    arguments: Any,
    *,
    enable_multi_page: bool = False,
    enable_model_override: bool = False,
) -> NormalizedCall:
    """Normalize and validate the raw arguments of one call.

    Raises InvalidArgument for unknown tools and schema violations.
    """
    definition = TOOLS_BY_NAME.get(tool)
    if definition is None:
        raise InvalidArgument(
            f"Unknown tool: {tool}" if tool else "Missing tool name",
            tool=tool or None,
            suggestion="Call tools/list to see available tools",
        )

    args = {k: v for k, v in arguments.items() if v is not None} if isinstance(arguments, dict) else {}
    if isinstance(args.get("options"), dict):
        args["options"] = {k: v for k, v in args["options"].items() if v is not None}

    _apply_aliases(tool, args)
    if isinstance(args.get("url"), str):
        args["url"] = sanitize_url(args["url"])

    ignored = _apply_gates(
        tool,
        args,
        enable_multi_page=enable_multi_page,
        enable_model_override=enable_model_override,
    )

    args = coerce_integers(definition["inputSchema"], args)
    validate(definition["inputSchema"], args, tool=tool)
    return NormalizedCall(tool=tool, arguments=args, ignored=ignored)


__all__ = ["NormalizedCall", "coerce_integers", "normalize_arguments", "sanitize_url", "validate"]
