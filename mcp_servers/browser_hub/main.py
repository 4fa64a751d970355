"""
Stdio entry point of the browser hub.

Reads line-delimited JSON-RPC from stdin and answers on stdout. Each
`tools/call` runs as its own task, so calls for different sessions overlap.
Tool dispatch lives in server/registry.py.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from functools import partial
from typing import Any

from .assets import AssetPublisher
from .config import HubConfig
from .engine import HandleFactory, create_stagehand_handle
from .pages import PageResolver
from .server.contract import (
    DEFAULT_PROTOCOL_VERSION,
    LATEST_PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    initialize_result,
    select_protocol,
    tools_list,
)
from .server.redaction import redact_jsonrpc_for_log, redact_tool_arguments
from .server.registry import create_default_registry
from .server.types import ToolContext, ToolResult
from .sessions import SessionRegistry

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(message)s",
)
logger = logging.getLogger("mcp.hub")

PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601

__all__ = [
    "SUPPORTED_PROTOCOL_VERSIONS",
    "LATEST_PROTOCOL_VERSION",
    "DEFAULT_PROTOCOL_VERSION",
    "McpServer",
    "main",
]


def _write_message(payload: dict[str, Any]) -> None:
    """One JSON-RPC frame per stdout line. Synchronous, so frames never interleave."""
    if os.environ.get("MCP_TRACE"):
        logger.info("send %s", redact_jsonrpc_for_log(payload))
    data = json.dumps(payload, ensure_ascii=False, default=str)
    sys.stdout.buffer.write((data + "\n").encode())
    sys.stdout.buffer.flush()


def _reply(request_id: Any, result: dict[str, Any]) -> None:
    _write_message({"jsonrpc": "2.0", "id": request_id, "result": result})


def _reply_error(request_id: Any, code: int, message: str) -> None:
    _write_message({"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}})


def _parse_message(line: bytes) -> dict[str, Any]:
    line = line.strip()
    if not line:
        return {}
    msg = json.loads(line.decode())
    if os.environ.get("MCP_TRACE"):
        logger.info("recv %s", redact_jsonrpc_for_log(msg))
    return msg if isinstance(msg, dict) else {}


async def _read_message() -> dict[str, Any] | None:
    """Next frame from stdin; None at EOF, {} for a line to skip."""
    line = await asyncio.to_thread(sys.stdin.buffer.readline)
    if not line:
        return None
    try:
        return _parse_message(line)
    except ValueError as exc:
        logger.info("parse_error %s", exc)
        _reply_error(None, PARSE_ERROR, "Parse error")
        return {}


class McpServer:
    """Composition root: owns the session registry, page resolver and asset publisher.

    Handlers reach them through a per-call ToolContext.
    """

    def __init__(
        self,
        config: HubConfig | None = None,
        *,
        handle_factory: HandleFactory | None = None,
        assets: AssetPublisher | None = None,
    ) -> None:
        self.config = config or HubConfig.from_env()
        factory = handle_factory or partial(create_stagehand_handle, self.config)
        self.sessions = SessionRegistry(factory, idle_ttl=self.config.session_idle_ttl)
        self.resolver = PageResolver()
        self.assets = assets or AssetPublisher.from_config(self.config)
        self.registry = create_default_registry()
        self._tasks: set[asyncio.Task[None]] = set()

    def session_id_for(self, params: dict[str, Any]) -> str:
        """Caller session: `_meta.sessionId`, then `sessionId`, then the default."""
        meta = params.get("_meta")
        candidates = [meta.get("sessionId") if isinstance(meta, dict) else None, params.get("sessionId")]
        for candidate in candidates:
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
        return self.config.default_session_id

    async def call_tool(self, name: str, arguments: Any, *, session_id: str | None = None) -> ToolResult:
        """Run one tool call in-process and return its result."""
        sid = session_id or self.config.default_session_id
        safe_args = redact_tool_arguments(name, arguments) if isinstance(arguments, dict) else {}
        logger.info("tool=%s session=%s args=%s", name, sid, safe_args)
        ctx = ToolContext(
            config=self.config,
            sessions=self.sessions,
            resolver=self.resolver,
            assets=self.assets,
            session_id=sid,
        )
        return await self.registry.dispatch(name, ctx, arguments)

    async def _answer_call(self, request_id: Any, name: str, arguments: Any, session_id: str) -> None:
        result = await self.call_tool(name, arguments, session_id=session_id)
        if request_id is None:
            return
        _reply(request_id, {"content": result.to_content_list(), "isError": result.is_error})

    def _schedule_call(self, request_id: Any, params: dict[str, Any]) -> None:
        name = params.get("name") or ""
        arguments = params.get("arguments") or params.get("args") or {}
        task = asyncio.get_running_loop().create_task(
            self._answer_call(request_id, name, arguments, self.session_id_for(params))
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def dispatch(self, message: dict[str, Any]) -> None:
        """Route one JSON-RPC frame. Call from inside the event loop."""
        if not message:
            return

        method = message.get("method")
        request_id = message.get("id")
        params = message.get("params")
        if not isinstance(params, dict):
            params = {}

        if method == "initialize":
            _reply(request_id, initialize_result(select_protocol(params.get("protocolVersion"))))
        elif method in ("tools/list", "list_tools"):
            _reply(request_id, {"tools": tools_list()})
        elif method in ("tools/call", "call_tool"):
            self._schedule_call(request_id, params)
        elif method == "ping":
            _reply(request_id, {"pong": True})
        elif request_id is None:
            # Notifications (including notifications/initialized) get no answer.
            return
        else:
            _reply_error(request_id, METHOD_NOT_FOUND, f"Method {method} not found")

    async def drain(self) -> None:
        """Wait for every in-flight tool call to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        await self.sessions.close_all()
        await self.assets.close()
        logger.info("server_stopped")

    async def serve(self) -> None:
        """Read stdin until EOF, then shut everything down."""
        logger.info(
            "server_started multi_page=%s model_override=%s idle_ttl=%s",
            self.config.enable_multi_page,
            self.config.enable_model_override,
            self.config.session_idle_ttl,
        )
        try:
            while (message := await _read_message()) is not None:
                self.dispatch(message)
        finally:
            await self.close()


def main() -> None:
    """Run the stdio server until stdin closes."""
    asyncio.run(McpServer().serve())


if __name__ == "__main__":
    main()
