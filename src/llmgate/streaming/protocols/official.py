"""Official API protocols: OpenAI-compatible, Anthropic Messages, Ollama."""

from __future__ import annotations

from typing import Any, Optional

from ...catalog.types import ANTHROPIC_MESSAGES, OLLAMA, OPENAI_COMPLETIONS
from ...errors import ErrorCode, StreamError
from ..transport import TransportRequest
from .base import InvocationContext, ProviderProtocol, classify_error_text, error_message, message_text

ANTHROPIC_VERSION = "2023-06-01"


def _plain_messages(messages: list[dict[str, Any]], *, skip_system: bool = False) -> list[dict[str, str]]:
    result = []
    for message in messages:
        role = message.get("role")
        if not role or (skip_system and role == "system"):
            continue
        text = message_text(message)
        if text:
            result.append({"role": role, "content": text})
    return result


def _in_band_error(payload: dict[str, Any]) -> Optional[StreamError]:
    error = payload.get("error")
    if not error:
        return None
    text = error_message(error)
    return StreamError(classify_error_text(text), text)


class OpenAICompletionsProtocol(ProviderProtocol):
    """``POST {base}/chat/completions`` with ``stream: true``; SSE deltas."""

    api = OPENAI_COMPLETIONS

    def build_request(self, ctx: InvocationContext) -> TransportRequest:
        headers = {"Accept": "text/event-stream"}
        if ctx.secret:
            headers["Authorization"] = f"Bearer {ctx.secret}"
        payload = {
            "model": ctx.model,
            "messages": _plain_messages(ctx.messages),
            "stream": True,
        }
        return TransportRequest.json(f"{ctx.base_url}/chat/completions", payload, headers)

    def extract_text(self, payload: dict[str, Any]) -> Optional[str]:
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return None
        delta = choices[0].get("delta") if isinstance(choices[0], dict) else None
        content = delta.get("content") if isinstance(delta, dict) else None
        return content if isinstance(content, str) else None

    def check_payload(self, payload: dict[str, Any]) -> Optional[StreamError]:
        return _in_band_error(payload)


class AnthropicMessagesProtocol(ProviderProtocol):
    """``POST {base}/v1/messages`` with ``stream: true``; typed SSE events."""

    api = ANTHROPIC_MESSAGES

    def build_request(self, ctx: InvocationContext) -> TransportRequest:
        model = ctx.config.find_model(ctx.model)
        system = "\n\n".join(
            message_text(m) for m in ctx.messages if m.get("role") == "system" and message_text(m)
        )
        payload: dict[str, Any] = {
            "model": ctx.model,
            "max_tokens": model.max_tokens if model else 4096,
            "messages": _plain_messages(ctx.messages, skip_system=True),
            "stream": True,
        }
        if system:
            payload["system"] = system
        headers = {
            "Accept": "text/event-stream",
            "anthropic-version": ANTHROPIC_VERSION,
        }
        if ctx.secret:
            headers["x-api-key"] = ctx.secret
        return TransportRequest.json(f"{ctx.base_url}/v1/messages", payload, headers)

    def extract_text(self, payload: dict[str, Any]) -> Optional[str]:
        if payload.get("type") != "content_block_delta":
            return None
        delta = payload.get("delta") or {}
        if delta.get("type", "text_delta") != "text_delta":
            return None
        text = delta.get("text")
        return text if isinstance(text, str) else None

    def check_payload(self, payload: dict[str, Any]) -> Optional[StreamError]:
        if payload.get("type") != "error":
            return None
        error = payload.get("error") or {}
        text = error_message(error)
        if isinstance(error, dict) and error.get("type") in ("rate_limit_error", "overloaded_error"):
            return StreamError(ErrorCode.RATE_LIMITED_OR_BLOCKED, text)
        if isinstance(error, dict) and error.get("type") == "authentication_error":
            return StreamError(ErrorCode.AUTHENTICATION_EXPIRED, text)
        return StreamError(classify_error_text(text), text)

    def is_done(self, payload: dict[str, Any]) -> bool:
        return payload.get("type") == "message_stop"


class OllamaProtocol(ProviderProtocol):
    """``POST {base}/api/chat``; newline-delimited JSON with ``done``."""

    api = OLLAMA
    require_data_prefix = False

    def build_request(self, ctx: InvocationContext) -> TransportRequest:
        payload = {
            "model": ctx.model,
            "messages": _plain_messages(ctx.messages),
            "stream": True,
        }
        headers = {"Authorization": f"Bearer {ctx.secret}"} if ctx.secret else {}
        return TransportRequest.json(f"{ctx.base_url}/api/chat", payload, headers)

    def extract_text(self, payload: dict[str, Any]) -> Optional[str]:
        message = payload.get("message")
        content = message.get("content") if isinstance(message, dict) else None
        return content if isinstance(content, str) else None

    def check_payload(self, payload: dict[str, Any]) -> Optional[StreamError]:
        return _in_band_error(payload)

    def is_done(self, payload: dict[str, Any]) -> bool:
        return bool(payload.get("done"))


__all__ = ["OpenAICompletionsProtocol", "AnthropicMessagesProtocol", "OllamaProtocol"]
