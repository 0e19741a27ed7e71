"""Catalog module - Provider configs and model definitions.

- types: ModelDefinition, ModelCost, ProviderConfig
- builtin: static builders for every known provider
"""

from .builtin import WEB_PROVIDER_BUILDERS, is_web_provider
from .types import (
    ANTHROPIC_MESSAGES,
    OLLAMA,
    OPENAI_COMPLETIONS,
    ModelCost,
    ModelDefinition,
    ProviderConfig,
    dedupe_models,
)

__all__ = [
    "ANTHROPIC_MESSAGES",
    "OLLAMA",
    "OPENAI_COMPLETIONS",
    "ModelCost",
    "ModelDefinition",
    "ProviderConfig",
    "dedupe_models",
    "WEB_PROVIDER_BUILDERS",
    "is_web_provider",
]
