"""Fake automation engine shared by the hub tests.

The fakes follow the engine protocols: pages are created and closed through
the handle, every AI call is recorded, and history goes through the real
HistoryRecorder.
"""

from __future__ import annotations

import base64
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from mcp_servers.browser_hub.config import HubConfig
from mcp_servers.browser_hub.engine import HistoryRecorder
from mcp_servers.browser_hub.providers import ModelSettings

# 1x1 transparent PNG.
PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


class FakePage:
    def __init__(self, handle: FakeHandle) -> None:
        self.handle = handle
        self.url: str | None = None
        self.closed = False
        self.screenshots: list[dict[str, Any]] = []

    async def goto(self, url: str) -> None:
        if "goto" in self.handle.fail:
            raise self.handle.fail["goto"]
        self.url = url
        self.handle.recorder.record("goto", action={"type": "goto", "url": url})

    async def close(self) -> None:
        self.closed = True
        self.handle._pages.remove(self)

    async def screenshot(self, **options: Any) -> bytes:
        self.screenshots.append(options)
        return PNG_1X1


class FakeAgent:
    def __init__(self, handle: FakeHandle, options: dict[str, Any]) -> None:
        self.handle = handle
        self.options = options

    async def execute(self, instruction: str, *, max_steps: int | None = None) -> Any:
        self.handle.calls.append(("agent", instruction, {"max_steps": max_steps, **self.options}))
        self.handle.recorder.record("agent", instruction=instruction)
        return self.handle.agent_result


class FakeHandle:
    def __init__(self) -> None:
        self._pages: list[FakePage] = []
        self.recorder = HistoryRecorder()
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.closed = False
        self.fail: dict[str, Exception] = {}
        self.act_result: Any = None
        self.extract_result: Any = {"title": "Example"}
        self.agent_result: Any = {"message": "done", "completed": True}
        self.observe_result: list[dict[str, Any]] = [
            {"selector": "xpath=/html/body/a[1]", "description": "Home link", "method": "click"},
            {"selector": "xpath=/html/body/input", "description": "Search box", "method": "fill"},
            {"selector": "xpath=/html/body/button", "description": "Submit", "method": "click"},
        ]

    def pages(self) -> list[FakePage]:
        return list(self._pages)

    async def new_page(self) -> FakePage:
        if "new_page" in self.fail:
            raise self.fail["new_page"]
        page = FakePage(self)
        self._pages.append(page)
        return page

    async def act(self, instruction: str, *, page: FakePage, **kwargs: Any) -> Any:
        if "act" in self.fail:
            raise self.fail["act"]
        self.calls.append(("act", instruction, {"page": page, **kwargs}))
        self.recorder.record("act", instruction=instruction, action=kwargs.get("action"))
        return self.act_result

    async def observe(self, instruction: str, *, page: FakePage, **kwargs: Any) -> list[dict[str, Any]]:
        self.calls.append(("observe", instruction, {"page": page, **kwargs}))
        self.recorder.record("observe", instruction=instruction)
        return list(self.observe_result)

    async def extract(self, instruction: str, *, page: FakePage, **kwargs: Any) -> Any:
        self.calls.append(("extract", instruction, {"page": page, **kwargs}))
        self.recorder.record("extract", instruction=instruction)
        return self.extract_result

    def agent(self, **options: Any) -> FakeAgent:
        return FakeAgent(self, options)

    def history(self) -> tuple:
        return self.recorder.entries()

    async def close(self) -> None:
        self.closed = True


class ForbiddenHandle(FakeHandle):
    """Any delegated call fails the test."""

    async def new_page(self) -> FakePage:
        raise AssertionError("new_page must not be called")

    async def act(self, instruction: str, **kwargs: Any) -> Any:
        raise AssertionError("act must not be called")

    async def extract(self, instruction: str, **kwargs: Any) -> Any:
        raise AssertionError("extract must not be called")


def hub_config(tmp_path: Path, **overrides: Any) -> HubConfig:
    values: dict[str, Any] = {
        "model": ModelSettings.resolve("deepseek/deepseek-chat"),
        "asset_dir": str(tmp_path / "public"),
        "asset_port": 4011,
    }
    values.update(overrides)
    return HubConfig(**values)


@pytest.fixture
def make_hub(tmp_path: Path):
    """Build an McpServer backed by FakeHandles: returns (server, handles by session id)."""
    from mcp_servers.browser_hub.main import McpServer

    def _make(handle_cls: type[FakeHandle] = FakeHandle, **overrides: Any):
        handles: dict[str, FakeHandle] = {}

        async def factory(session_id: str) -> FakeHandle:
            handle = handle_cls()
            handles[session_id] = handle
            return handle

        return McpServer(hub_config(tmp_path, **overrides), handle_factory=factory), handles

    return _make


@pytest.fixture
def fakes() -> SimpleNamespace:
    return SimpleNamespace(
        FakeHandle=FakeHandle,
        FakePage=FakePage,
        ForbiddenHandle=ForbiddenHandle,
        PNG_1X1=PNG_1X1,
        hub_config=hub_config,
    )
