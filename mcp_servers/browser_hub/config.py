from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .providers import ModelSettings

DEFAULT_MODEL_NAME = "deepseek/deepseek-chat"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def expand_path(raw: str) -> str:
    return str(Path(raw).expanduser())


def parse_flag(raw: str | None) -> bool | None:
    """Parse a boolean env value; None when unset or unrecognized."""
    value = (raw or "").strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return None


def load_engine_file(path: str | None) -> dict[str, Any]:
    if not path:
        return {}
    data = json.loads(Path(expand_path(path)).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Engine config {path} must contain a JSON object")
    return data


@dataclass
class HubConfig:
    model: ModelSettings
    enable_model_override: bool = False
    enable_multi_page: bool = False
    default_session_id: str = "default"
    session_idle_ttl: float = 0.0
    asset_host: str = "127.0.0.1"
    asset_port: int = 4001
    asset_public_host: str = "localhost"
    asset_dir: str = "public"
    engine_env: str = "LOCAL"
    headless: bool = True
    engine_options: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def normalize_engine_env(raw: str | None) -> str:
        env = (raw or "").strip().upper()
        if env in {"BROWSERBASE", "REMOTE", "CLOUD"}:
            return "BROWSERBASE"
        return "LOCAL"

    @classmethod
    def from_env(cls) -> HubConfig:
        engine_options = load_engine_file(os.environ.get("MCP_ENGINE_CONFIG"))
        # Gate flags in the engine file are a fallback; the environment wins.
        model_override = parse_flag(os.environ.get("MCP_ENABLE_MODEL_OVERRIDE"))
        if model_override is None:
            model_override = bool(engine_options.pop("enableModelOverride", False))
        else:
            engine_options.pop("enableModelOverride", None)
        multi_page = parse_flag(os.environ.get("MCP_ENABLE_MULTI_PAGE"))
        if multi_page is None:
            multi_page = bool(engine_options.pop("enableMultiPage", False))
        else:
            engine_options.pop("enableMultiPage", None)

        model = ModelSettings.resolve(
            os.environ.get("MCP_MODEL_NAME") or DEFAULT_MODEL_NAME,
            provider=os.environ.get("MCP_MODEL_PROVIDER"),
            base_url=os.environ.get("MCP_MODEL_BASE_URL"),
        )
        headless = parse_flag(os.environ.get("MCP_HEADLESS"))
        return cls(
            model=model,
            enable_model_override=model_override,
            enable_multi_page=multi_page,
            default_session_id=(os.environ.get("MCP_DEFAULT_SESSION") or "default").strip() or "default",
            session_idle_ttl=max(0.0, float(os.environ.get("MCP_SESSION_IDLE_TTL", "0") or 0)),
            asset_host=os.environ.get("MCP_ASSET_HOST", "127.0.0.1"),
            asset_port=int(os.environ.get("MCP_ASSET_PORT", "4001")),
            asset_public_host=os.environ.get("MCP_ASSET_PUBLIC_HOST", "localhost"),
            asset_dir=expand_path(os.environ.get("MCP_ASSET_DIR", "public")),
            engine_env=cls.normalize_engine_env(os.environ.get("MCP_ENGINE_ENV")),
            headless=True if headless is None else headless,
            engine_options=engine_options,
        )
