"""Live model discovery.

Each adapter performs one bounded HTTP call and returns the provider's live
model list. ``discover_or_fallback`` wraps an adapter so that any failure
(network error, non-2xx status, timeout, empty or malformed body) is logged
and the static catalog is returned instead.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence

import httpx
from opentelemetry import trace

from .catalog.builtin import (
    CHATGPT_WEB_BASE_URL,
    HUGGINGFACE_BASE_URL,
    OLLAMA_BASE_URL,
    VENICE_BASE_URL,
)
from .catalog.types import ModelDefinition

# Get tracer for discovery spans
tracer = trace.get_tracer(__name__)

DEFAULT_DISCOVERY_TIMEOUT = 5.0

OLLAMA_DEFAULT_CONTEXT_WINDOW = 128000
OLLAMA_DEFAULT_MAX_TOKENS = 8192
VLLM_DEFAULT_CONTEXT_WINDOW = 128000
VLLM_DEFAULT_MAX_TOKENS = 8192

_TRUTHY = {"1", "true", "yes", "on"}


class DiscoveryError(Exception):
    """Discovery returned no usable models."""


def discovery_enabled(env: Mapping[str, str], discover: Optional[bool] = None) -> bool:
    """Whether live discovery should run.

    Discovery is off in test/CI mode unless ``discover=True`` forces it.
    """
    if discover is not None:
        return discover
    if (env.get("LLMGATE_SKIP_DISCOVERY") or "").strip().lower() in _TRUTHY:
        return False
    if (env.get("LLMGATE_ENV") or "").strip().lower() == "test":
        return False
    if (env.get("CI") or "").strip().lower() in _TRUTHY:
        return False
    return True


def resolve_ollama_api_base(configured_base_url: Optional[str] = None) -> str:
    """Native Ollama API root for a configured (possibly /v1) base URL."""
    if not configured_base_url:
        return OLLAMA_BASE_URL
    trimmed = configured_base_url.rstrip("/")
    return re.sub(r"/v1$", "", trimmed, flags=re.IGNORECASE)


def _looks_reasoning(model_id: str, markers: Sequence[str] = ("r1", "reasoning")) -> bool:
    lower = model_id.lower()
    return any(marker in lower for marker in markers)


def _auth_headers(api_key: Optional[str]) -> dict[str, str]:
    token = (api_key or "").strip()
    return {"Authorization": f"Bearer {token}"} if token else {}


async def _get_json(
    url: str,
    *,
    timeout: float,
    headers: Optional[dict[str, str]] = None,
    params: Optional[dict[str, str]] = None,
) -> Any:
    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.get(url, headers=headers or {}, params=params)
        response.raise_for_status()
        return response.json()


def _openai_model_ids(data: Any) -> list[str]:
    items = data.get("data") if isinstance(data, dict) else None
    if not isinstance(items, list):
        raise DiscoveryError("response has no 'data' list")
    ids = []
    for item in items:
        if isinstance(item, dict) and isinstance(item.get("id"), str) and item["id"].strip():
            ids.append(item["id"].strip())
    return ids


# ============================================================================
# Adapters
# ============================================================================


async def discover_ollama_models(
    base_url: Optional[str] = None, *, timeout: float = DEFAULT_DISCOVERY_TIMEOUT
) -> list[ModelDefinition]:
    """List models from a local Ollama instance (``GET /api/tags``)."""
    api_base = resolve_ollama_api_base(base_url)
    data = await _get_json(f"{api_base}/api/tags", timeout=timeout)
    models = data.get("models") if isinstance(data, dict) else None
    if not models:
        raise DiscoveryError("no Ollama models found on local instance")
    result = []
    for model in models:
        name = model.get("name") if isinstance(model, dict) else None
        if not isinstance(name, str) or not name:
            continue
        result.append(
            ModelDefinition(
                id=name,
                name=name,
                reasoning=_looks_reasoning(name),
                context_window=OLLAMA_DEFAULT_CONTEXT_WINDOW,
                max_tokens=OLLAMA_DEFAULT_MAX_TOKENS,
            )
        )
    return result


async def discover_openai_compatible_models(
    base_url: str,
    api_key: Optional[str] = None,
    *,
    timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
    params: Optional[dict[str, str]] = None,
    context_window: int = VLLM_DEFAULT_CONTEXT_WINDOW,
    max_tokens: int = VLLM_DEFAULT_MAX_TOKENS,
) -> list[ModelDefinition]:
    """List models from an OpenAI-compatible ``/models`` endpoint.

    Used for vLLM, SiliconFlow and the Hugging Face router.
    """
    url = f"{base_url.strip().rstrip('/')}/models"
    data = await _get_json(url, timeout=timeout, headers=_auth_headers(api_key), params=params)
    return [
        ModelDefinition(
            id=model_id,
            name=model_id,
            reasoning=_looks_reasoning(model_id, ("r1", "reasoning", "think")),
            context_window=context_window,
            max_tokens=max_tokens,
        )
        for model_id in _openai_model_ids(data)
    ]


async def discover_siliconflow_models(
    base_url: str, api_key: Optional[str], *, timeout: float = DEFAULT_DISCOVERY_TIMEOUT
) -> list[ModelDefinition]:
    return await discover_openai_compatible_models(
        base_url,
        api_key,
        timeout=timeout,
        params={"type": "text", "sub_type": "chat"},
    )


async def discover_huggingface_models(
    api_key: str, *, timeout: float = DEFAULT_DISCOVERY_TIMEOUT
) -> list[ModelDefinition]:
    if not api_key:
        raise DiscoveryError("Hugging Face discovery requires a token")
    return await discover_openai_compatible_models(HUGGINGFACE_BASE_URL, api_key, timeout=timeout)


async def discover_venice_models(
    api_key: Optional[str] = None, *, timeout: float = DEFAULT_DISCOVERY_TIMEOUT
) -> list[ModelDefinition]:
    """List Venice text models; ``model_spec`` carries context size and capabilities."""
    data = await _get_json(
        f"{VENICE_BASE_URL}/models", timeout=timeout, headers=_auth_headers(api_key)
    )
    items = data.get("data") if isinstance(data, dict) else None
    if not isinstance(items, list):
        raise DiscoveryError("response has no 'data' list")
    result = []
    for item in items:
        if not isinstance(item, dict) or not item.get("id"):
            continue
        if item.get("type", "text") != "text":
            continue
        spec = item.get("model_spec") or {}
        caps = spec.get("capabilities") or {}
        result.append(
            ModelDefinition(
                id=str(item["id"]),
                name=str(spec.get("name") or item["id"]),
                reasoning=bool(caps.get("supportsReasoning", False)),
                input=("text", "image") if caps.get("supportsVision") else ("text",),
                context_window=int(spec.get("availableContextTokens") or 128000),
                max_tokens=8192,
            )
        )
    return result


async def discover_chatgpt_web_models(
    access_token: str, *, timeout: float = DEFAULT_DISCOVERY_TIMEOUT
) -> list[ModelDefinition]:
    """List models available to a ChatGPT web session (``GET /backend-api/models``)."""
    if not access_token:
        raise DiscoveryError("ChatGPT web discovery requires an access token")
    data = await _get_json(
        f"{CHATGPT_WEB_BASE_URL}/backend-api/models",
        timeout=timeout,
        headers=_auth_headers(access_token),
    )
    items = data.get("models") if isinstance(data, dict) else None
    if not isinstance(items, list):
        raise DiscoveryError("response has no 'models' list")
    result = []
    for item in items:
        if not isinstance(item, dict) or not item.get("slug"):
            continue
        slug = str(item["slug"])
        result.append(
            ModelDefinition(
                id=slug,
                name=f"{item.get('title') or slug} (Web)",
                context_window=int(item.get("max_tokens") or 128000),
                max_tokens=4096,
            )
        )
    return result


# ============================================================================
# Fallback wrapper
# ============================================================================


async def discover_or_fallback(
    provider: str,
    fetch: Callable[[], Awaitable[list[ModelDefinition]]],
    fallback: Sequence[ModelDefinition],
    *,
    timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
) -> tuple[ModelDefinition, ...]:
    """Run one discovery adapter, bounded by ``timeout``.

    Never raises for a discovery failure; the static ``fallback`` catalog is
    returned instead and a warning is logged.
    """
    with tracer.start_as_current_span(
        "llmgate.discovery",
        attributes={"llmgate.provider": provider, "llmgate.discovery.timeout": timeout},
    ) as span:
        try:
            models = await asyncio.wait_for(fetch(), timeout=timeout)
            if not models:
                raise DiscoveryError("discovery returned no models")
            span.set_attribute("llmgate.discovery.models", len(models))
            span.set_attribute("llmgate.discovery.source", "live")
            return tuple(models)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            reason = "timed out" if isinstance(e, asyncio.TimeoutError) else str(e) or type(e).__name__
            logging.warning(
                "[llmgate.discovery] %s discovery failed (%s); using built-in catalog", provider, reason
            )
            span.set_attribute("llmgate.discovery.source", "fallback")
            span.set_status(trace.Status(trace.StatusCode.ERROR, f"discovery failed: {reason}"))
            span.record_exception(e)
            return tuple(fallback)


__all__ = [
    "DEFAULT_DISCOVERY_TIMEOUT",
    "DiscoveryError",
    "discovery_enabled",
    "resolve_ollama_api_base",
    "discover_ollama_models",
    "discover_openai_compatible_models",
    "discover_siliconflow_models",
    "discover_huggingface_models",
    "discover_venice_models",
    "discover_chatgpt_web_models",
    "discover_or_fallback",
]
