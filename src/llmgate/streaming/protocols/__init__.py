"""Provider protocols keyed by API identifier."""

from __future__ import annotations

from typing import Optional

from .base import (
    DELTA,
    FRAMES,
    LINES,
    SNAPSHOT,
    InvocationContext,
    ProviderProtocol,
    extract_prompt,
    message_text,
)
from .chat_api_web import GeminiWebProtocol, GrokWebProtocol, ZWebProtocol
from .chatgpt_web import ChatGPTWebProtocol
from .claude_web import ClaudeWebProtocol
from .kimi_web import KimiWebProtocol
from .official import AnthropicMessagesProtocol, OllamaProtocol, OpenAICompletionsProtocol
from .qwen_web import QwenWebProtocol

PROTOCOLS: dict[str, type[ProviderProtocol]] = {
    cls.api: cls
    for cls in (
        OpenAICompletionsProtocol,
        AnthropicMessagesProtocol,
        OllamaProtocol,
        ChatGPTWebProtocol,
        ClaudeWebProtocol,
        QwenWebProtocol,
        KimiWebProtocol,
        GrokWebProtocol,
        GeminiWebProtocol,
        ZWebProtocol,
    )
}


def get_protocol(api: str) -> Optional[ProviderProtocol]:
    """Protocol instance for an API identifier, or None if unsupported."""
    cls = PROTOCOLS.get(api)
    return cls() if cls else None


__all__ = [
    "PROTOCOLS",
    "get_protocol",
    "LINES",
    "FRAMES",
    "DELTA",
    "SNAPSHOT",
    "InvocationContext",
    "ProviderProtocol",
    "extract_prompt",
    "message_text",
    "AnthropicMessagesProtocol",
    "ChatGPTWebProtocol",
    "ClaudeWebProtocol",
    "GeminiWebProtocol",
    "GrokWebProtocol",
    "KimiWebProtocol",
    "OllamaProtocol",
    "OpenAICompletionsProtocol",
    "QwenWebProtocol",
    "ZWebProtocol",
]
