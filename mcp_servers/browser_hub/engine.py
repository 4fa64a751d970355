"""Automation engine capabilities.

The hub only talks to the engine through the protocols below. The production
handle wraps the Stagehand Python SDK; tests plug in fakes.

Design goals:
- Page handles are opaque: the hub only navigates, closes and captures them.
- AI calls (act/observe/extract/agent) go through the handle, never the page.
- History is owned here, append-only; the hub only reads it.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .config import HubConfig

logger = logging.getLogger("mcp.hub.engine")


def _now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    method: str
    timestamp: str
    instruction: str | None = None
    action: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


class HistoryRecorder:
    """Append-only log of executed engine steps, in execution order."""

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []

    def record(self, method: str, *, instruction: str | None = None, action: dict[str, Any] | None = None) -> HistoryEntry:
        entry = HistoryEntry(
            method=method,
            timestamp=_now_iso(),
            instruction=instruction or None,
            action=dict(action) if isinstance(action, dict) else None,
        )
        self._entries.append(entry)
        return entry

    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class PageHandle(Protocol):
    async def goto(self, url: str) -> Any: ...

    async def close(self) -> None: ...

    async def screenshot(self, **options: Any) -> bytes: ...


class AgentCapability(Protocol):
    async def execute(self, instruction: str, *, max_steps: int | None = None) -> Any: ...


class AutomationHandle(Protocol):
    """One controlled browser context with AI-driven page operations."""

    def pages(self) -> list[PageHandle]: ...

    async def new_page(self) -> PageHandle: ...

    async def act(
        self,
        instruction: str,
        *,
        page: PageHandle,
        action: dict[str, Any] | None = None,
        timeout: float | None = None,
        variables: dict[str, Any] | None = None,
        model: Any | None = None,
    ) -> Any: ...

    async def observe(
        self,
        instruction: str,
        *,
        page: PageHandle,
        selector: str | None = None,
        timeout: float | None = None,
        model: Any | None = None,
    ) -> list[Any]: ...

    async def extract(
        self,
        instruction: str,
        *,
        page: PageHandle,
        schema: dict[str, Any] | None = None,
        selector: str | None = None,
        timeout: float | None = None,
        model: Any | None = None,
    ) -> Any: ...

    def agent(self, **options: Any) -> AgentCapability: ...

    def history(self) -> Sequence[HistoryEntry]: ...

    async def close(self) -> None: ...


HandleFactory = Callable[[str], Awaitable[AutomationHandle]]


# ─────────────────────────────────────────────────────────────────────────────
# Stagehand adapter
# ─────────────────────────────────────────────────────────────────────────────


def _import_stagehand():
    try:
        import stagehand  # type: ignore[import-not-found]

        return stagehand
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(
            "The automation engine requires the 'stagehand' Python package. "
            "Install it (pip install 'browser-hub[engine]')."
        ) from exc


def to_plain(value: Any) -> Any:
    """Convert engine result models (pydantic) into JSON-friendly values."""
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    dump = getattr(value, "model_dump", None)
    if callable(dump):
        return dump()
    return value


def _timeout_ms(timeout: float | None) -> dict[str, Any]:
    return {"timeout_ms": int(timeout)} if isinstance(timeout, (int, float)) else {}


class _StagehandAgent:
    def __init__(self, agent: Any, recorder: HistoryRecorder) -> None:
        self._agent = agent
        self._recorder = recorder

    async def execute(self, instruction: str, *, max_steps: int | None = None) -> Any:
        kwargs: dict[str, Any] = {}
        if max_steps is not None:
            kwargs["max_steps"] = max_steps
        result = await self._agent.execute(instruction, **kwargs)
        self._recorder.record("agent", instruction=instruction)
        return to_plain(result)


class _RecordingPage:
    """Engine page proxy that records navigations into history."""

    def __init__(self, page: Any, recorder: HistoryRecorder) -> None:
        self.raw = page
        self._recorder = recorder

    async def goto(self, url: str) -> Any:
        result = await self.raw.goto(url)
        self._recorder.record("goto", action={"type": "goto", "url": url})
        return result

    def __getattr__(self, name: str) -> Any:
        return getattr(self.raw, name)


class StagehandHandle:
    """AutomationHandle over one initialized Stagehand client."""

    def __init__(self, client: Any, *, recorder: HistoryRecorder | None = None) -> None:
        self._client = client
        self._recorder = recorder or HistoryRecorder()
        # id(raw page) -> proxy; keeps page identity stable across pages() calls.
        self._proxies: dict[int, _RecordingPage] = {}

    def _wrap(self, page: Any) -> _RecordingPage:
        proxy = self._proxies.get(id(page))
        if proxy is None or proxy.raw is not page:
            proxy = _RecordingPage(page, self._recorder)
            self._proxies[id(page)] = proxy
        return proxy

    def pages(self) -> list[Any]:
        context = self._client.context
        page_map = getattr(context, "page_map", None) or {}
        live = [page_map.get(p, p) for p in list(context.pages)]
        alive = {id(p) for p in live}
        for key in [k for k in self._proxies if k not in alive]:
            del self._proxies[key]
        return [self._wrap(p) for p in live]

    async def new_page(self) -> Any:
        return self._wrap(await self._client.context.new_page())

    async def act(
        self,
        instruction: str,
        *,
        page: Any,
        action: dict[str, Any] | None = None,
        timeout: float | None = None,
        variables: dict[str, Any] | None = None,
        model: Any | None = None,
    ) -> Any:
        kwargs: dict[str, Any] = {**_timeout_ms(timeout)}
        if variables:
            kwargs["variables"] = variables
        if model is not None:
            kwargs["model_name"] = model
        target: Any = instruction
        if action:
            observe_cls = getattr(_import_stagehand(), "ObserveResult", None)
            target = observe_cls(**action) if observe_cls is not None else action
        result = await _raw(page).act(target, **kwargs)
        recorded = _act_action(action or result) or (dict(action) if action else None)
        self._recorder.record("act", instruction=instruction, action=recorded)
        return to_plain(result)

    async def observe(
        self,
        instruction: str,
        *,
        page: Any,
        selector: str | None = None,
        timeout: float | None = None,
        model: Any | None = None,
    ) -> list[Any]:
        kwargs: dict[str, Any] = {**_timeout_ms(timeout)}
        if selector:
            kwargs["selector"] = selector
        if model is not None:
            kwargs["model_name"] = model
        result = await _raw(page).observe(instruction, **kwargs)
        self._recorder.record("observe", instruction=instruction)
        return to_plain(list(result or []))

    async def extract(
        self,
        instruction: str,
        *,
        page: Any,
        schema: dict[str, Any] | None = None,
        selector: str | None = None,
        timeout: float | None = None,
        model: Any | None = None,
    ) -> Any:
        kwargs: dict[str, Any] = {**_timeout_ms(timeout)}
        if schema is not None:
            kwargs["schema_definition"] = schema
        if selector:
            kwargs["selector"] = selector
        if model is not None:
            kwargs["model_name"] = model
        result = await _raw(page).extract(instruction, **kwargs)
        self._recorder.record("extract", instruction=instruction)
        return to_plain(result)

    def agent(self, **options: Any) -> _StagehandAgent:
        renames = {
            "model": "model",
            "executionModel": "execution_model",
            "systemPrompt": "instructions",
            "cua": "cua",
            "integrations": "integrations",
        }
        kwargs = {renames[k]: v for k, v in options.items() if k in renames}
        return _StagehandAgent(self._client.agent(**kwargs), self._recorder)

    def history(self) -> tuple[HistoryEntry, ...]:
        return self._recorder.entries()

    async def close(self) -> None:
        self._proxies.clear()
        await self._client.close()


def _raw(page: Any) -> Any:
    return page.raw if isinstance(page, _RecordingPage) else page


def _act_action(result: Any) -> dict[str, Any] | None:
    """Deterministic action recovered from an act result, when it names one."""
    plain = to_plain(result)
    if not isinstance(plain, dict):
        return None
    method = plain.get("method")
    selector = plain.get("selector")
    if not (isinstance(method, str) and isinstance(selector, str)):
        return None
    action: dict[str, Any] = {"type": method, "selector": selector}
    args = plain.get("arguments")
    if isinstance(args, list) and args:
        action["key" if method == "press" else "value"] = args[0]
    return action


async def create_stagehand_handle(config: HubConfig, session_id: str) -> StagehandHandle:
    """Construct and initialize one engine client for a session."""
    sh = _import_stagehand()
    model = config.model
    options: dict[str, Any] = {
        "env": config.engine_env,
        "model_name": model.model_name,
        "model_api_key": model.api_key(),
        "model_client_options": model.client_options(),
        "local_browser_launch_options": {"headless": config.headless},
        **config.engine_options,
    }
    client = sh.Stagehand(sh.StagehandConfig(**options))
    await client.init()
    logger.info(
        "engine_ready session=%s provider=%s model=%s env=%s",
        session_id,
        model.provider.value,
        model.model_name,
        config.engine_env,
    )
    return StagehandHandle(client)


__all__ = [
    "AgentCapability",
    "AutomationHandle",
    "HandleFactory",
    "HistoryEntry",
    "HistoryRecorder",
    "PageHandle",
    "StagehandHandle",
    "create_stagehand_handle",
    "to_plain",
]
