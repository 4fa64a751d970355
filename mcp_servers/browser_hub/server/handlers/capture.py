"""
Capture handlers - page screenshots, returned by URL or inline.
"""

from __future__ import annotations

import base64
import io
from contextlib import suppress
from typing import Any

from ..types import ToolContext, ToolResult
from .common import engine_call


def image_size(data: bytes) -> dict[str, int]:
    """Width/height of an encoded image, empty when Pillow cannot read it."""
    with suppress(Exception):
        from PIL import Image

        with Image.open(io.BytesIO(data)) as img:
            return {"width": int(img.width), "height": int(img.height)}
    return {}


def _capture_options(args: dict[str, Any]) -> dict[str, Any]:
    options: dict[str, Any] = {
        "type": args.get("type", "png"),
        "full_page": bool(args.get("fullPage", False)),
    }
    if "quality" in args:
        options["quality"] = args["quality"]
    if isinstance(args.get("clip"), dict):
        clip = args["clip"]
        options["clip"] = {k: clip[k] for k in ("x", "y", "width", "height")}
    return options


async def handle_screenshot(ctx: ToolContext, args: dict[str, Any]) -> ToolResult:
    session = ctx.require_session()
    async with session.lock:
        resolved = await ctx.resolver.resolve(session, args.get("pageIndex"), tool=ctx.tool)

    options = _capture_options(args)
    data = await engine_call(ctx.tool, "screenshot", resolved.page.screenshot(**options))
    if isinstance(data, str):
        data = base64.b64decode(data)
    data = bytes(data or b"")

    image_type = options["type"]
    payload: dict[str, Any] = {"pageIndex": resolved.index, **image_size(data)}

    if args.get("returnMode", "url") == "url":
        asset = await ctx.assets.publish(data, image_type)
        return ctx.ok({"url": asset.url, **payload})

    mime = "image/jpeg" if image_type == "jpeg" else "image/png"
    data_b64 = base64.b64encode(data).decode("ascii")
    return ToolResult.with_image(
        ctx.with_ignored({"dataURL": f"data:{mime};base64,{data_b64}", **payload}),
        data_b64,
        mime,
    )


CAPTURE_HANDLERS: dict[str, tuple] = {
    "screenshot": (handle_screenshot, True),
}
