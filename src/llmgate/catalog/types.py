"""Catalog Types - Provider and model definitions.

This module defines the data structures produced by provider builders and
consumed by the resolver and the stream adapters.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Optional

# API protocol identifiers
OPENAI_COMPLETIONS = "openai-completions"
ANTHROPIC_MESSAGES = "anthropic-messages"
OLLAMA = "ollama"


@dataclass(frozen=True)
class ModelCost:
    """Per-million-token pricing.

    Attributes:
        input: Prompt token price
        output: Completion token price
        cache_read: Cached prompt read price
        cache_write: Cache write price
    """

    input: float = 0.0
    output: float = 0.0
    cache_read: float = 0.0
    cache_write: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "input": self.input,
            "output": self.output,
            "cacheRead": self.cache_read,
            "cacheWrite": self.cache_write,
        }


FREE = ModelCost()


@dataclass(frozen=True)
class ModelDefinition:
    """A model offered by a provider.

    Attributes:
        id: Model id sent to the provider (unique per provider)
        name: Display name
        reasoning: Whether the model emits reasoning/thinking output
        input: Supported input modalities
        context_window: Context window in tokens
        max_tokens: Maximum output tokens
        cost: Pricing
    """

    id: str
    name: str
    reasoning: bool = False
    input: tuple[str, ...] = ("text",)
    context_window: int = 128000
    max_tokens: int = 8192
    cost: ModelCost = FREE

    def with_id(self, model_id: str) -> ModelDefinition:
        return replace(self, id=model_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "reasoning": self.reasoning,
            "input": list(self.input),
            "contextWindow": self.context_window,
            "maxTokens": self.max_tokens,
            "cost": self.cost.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ModelDefinition:
        """Build from a config table (camelCase or snake_case keys)."""
        model_id = str(data.get("id", "")).strip()
        if not model_id:
            raise ValueError("model definition requires a non-empty 'id'")
        cost_data = data.get("cost") or {}
        return cls(
            id=model_id,
            name=str(data.get("name") or model_id),
            reasoning=bool(data.get("reasoning", False)),
            input=tuple(data.get("input") or ("text",)),
            context_window=int(data.get("context_window", data.get("contextWindow", 128000))),
            max_tokens=int(data.get("max_tokens", data.get("maxTokens", 8192))),
            cost=ModelCost(
                input=float(cost_data.get("input", 0)),
                output=float(cost_data.get("output", 0)),
                cache_read=float(cost_data.get("cache_read", cost_data.get("cacheRead", 0))),
                cache_write=float(cost_data.get("cache_write", cost_data.get("cacheWrite", 0))),
            ),
        )


def dedupe_models(models: Iterable[ModelDefinition]) -> tuple[ModelDefinition, ...]:
    """Drop repeated model ids, keeping the first occurrence."""
    seen: set[str] = set()
    result = []
    for model in models:
        if model.id in seen:
            continue
        seen.add(model.id)
        result.append(model)
    return tuple(result)


@dataclass(frozen=True)
class ProviderConfig:
    """Effective configuration of one provider for the lifetime of a run.

    Attributes:
        base_url: API base URL
        api: API protocol identifier (selects the stream protocol)
        models: Model catalog
        api_key: Resolved secret. Either a literal secret or the name of
            the environment variable holding it.
        auth: Optional auth mode (e.g. "aws-sdk")
    """

    base_url: str
    api: str
    models: tuple[ModelDefinition, ...] = field(default_factory=tuple)
    api_key: Optional[str] = None
    auth: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "models", dedupe_models(self.models))

    @property
    def needs_login(self) -> bool:
        """True when no usable secret was resolved."""
        return not (self.api_key or "").strip()

    def with_secret(self, api_key: Optional[str]) -> ProviderConfig:
        return replace(self, api_key=api_key)

    def with_models(self, models: Iterable[ModelDefinition]) -> ProviderConfig:
        return replace(self, models=tuple(models))

    def find_model(self, model_id: str) -> Optional[ModelDefinition]:
        for model in self.models:
            if model.id == model_id:
                return model
        return None

    def to_dict(self, *, redact: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "baseUrl": self.base_url,
            "api": self.api,
            "models": [m.to_dict() for m in self.models],
        }
        if self.api_key is not None:
            data["apiKey"] = _redact(self.api_key) if redact else self.api_key
        if self.auth:
            data["auth"] = self.auth
        return data


def _redact(secret: str) -> str:
    if not secret:
        return ""
    if secret.isupper() and secret.replace("_", "").isalnum():
        # Environment variable names are not secret
        return secret
    return "***"


__all__ = [
    "OPENAI_COMPLETIONS",
    "ANTHROPIC_MESSAGES",
    "OLLAMA",
    "ModelCost",
    "FREE",
    "ModelDefinition",
    "ProviderConfig",
    "dedupe_models",
]
