"""Helpers shared by the tool handlers."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TypeVar

from ...errors import EngineFailure, ToolError

logger = logging.getLogger("mcp.hub.engine")

T = TypeVar("T")


async def engine_call(tool: str, operation: str, awaitable: Awaitable[T]) -> T:
    """Await one delegated engine call, surfacing failures as EngineFailure.

    No retries. Structured errors raised underneath pass through unchanged.
    """
    try:
        return await awaitable
    except ToolError:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.info("engine_error tool=%s op=%s error=%s", tool, operation, exc)
        raise EngineFailure(
            f"{operation} failed: {exc}" if str(exc) else f"{operation} failed: {type(exc).__name__}",
            tool=tool,
            details={"operation": operation, "exception": type(exc).__name__},
        ) from exc


__all__ = ["engine_call"]
