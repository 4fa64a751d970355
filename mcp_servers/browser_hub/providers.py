"""LLM provider profiles for the automation engine.

The provider is resolved once, at config load, into `ModelProvider`. Engine
construction reads the resolved profile and never inspects the model name
again.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ModelProvider(str, Enum):
    DEEPSEEK = "deepseek"
    CHATU = "chatu"
    JIUTIAN = "jiutian"
    OPENAI = "openai"


@dataclass(frozen=True, slots=True)
class ProviderProfile:
    provider: ModelProvider
    api_key_env: str
    default_base_url: str | None = None


PROVIDER_PROFILES: dict[ModelProvider, ProviderProfile] = {
    ModelProvider.DEEPSEEK: ProviderProfile(
        ModelProvider.DEEPSEEK, "DEEPSEEK_API_KEY", "https://api.deepseek.com/v1"
    ),
    ModelProvider.CHATU: ProviderProfile(ModelProvider.CHATU, "CHATU_API_KEY"),
    ModelProvider.JIUTIAN: ProviderProfile(ModelProvider.JIUTIAN, "JIUTIAN_API_KEY"),
    ModelProvider.OPENAI: ProviderProfile(ModelProvider.OPENAI, "OPENAI_API_KEY"),
}

# Unknown prefixes are served by an OpenAI-compatible client with DeepSeek credentials.
FALLBACK_PROVIDER = ModelProvider.DEEPSEEK


def parse_provider(raw: str | None) -> ModelProvider | None:
    value = (raw or "").strip().lower()
    if not value:
        return None
    try:
        return ModelProvider(value)
    except ValueError as exc:
        known = ", ".join(p.value for p in ModelProvider)
        raise ValueError(f"Unknown model provider {raw!r} (expected one of: {known})") from exc


def infer_provider(model_name: str) -> ModelProvider:
    """Map `provider/model` names to a provider tag."""
    prefix, sep, _rest = (model_name or "").partition("/")
    if sep:
        try:
            return ModelProvider(prefix.strip().lower())
        except ValueError:
            pass
    return FALLBACK_PROVIDER


@dataclass(frozen=True, slots=True)
class ModelSettings:
    provider: ModelProvider
    model_name: str
    base_url: str | None = None

    @property
    def profile(self) -> ProviderProfile:
        return PROVIDER_PROFILES[self.provider]

    def api_key(self) -> str:
        return os.environ.get(self.profile.api_key_env, "")

    def client_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {"apiKey": self.api_key()}
        base_url = self.base_url or self.profile.default_base_url
        if base_url:
            options["baseURL"] = base_url
        return options

    @classmethod
    def resolve(cls, model_name: str, *, provider: str | None = None, base_url: str | None = None) -> ModelSettings:
        tag = parse_provider(provider) or infer_provider(model_name)
        return cls(provider=tag, model_name=model_name, base_url=(base_url or "").strip() or None)


__all__ = [
    "FALLBACK_PROVIDER",
    "PROVIDER_PROFILES",
    "ModelProvider",
    "ModelSettings",
    "ProviderProfile",
    "infer_provider",
    "parse_provider",
]
