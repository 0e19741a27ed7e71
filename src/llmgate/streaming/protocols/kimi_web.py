"""Kimi web protocol.

Kimi's chat service speaks Connect streaming: request and response bodies are
length-prefixed JSON frames. The bearer token is the ``kimi-auth`` cookie of
the logged-in session.
"""

from __future__ import annotations

from typing import Any, Optional

from ...errors import ErrorCode, StreamError
from ..continuity import ConversationRef
from ..parsers import encode_frame
from ..transport import TransportRequest
from .base import FRAMES, InvocationContext, ProviderProtocol, classify_error_text, error_message

KIMI_ORIGIN = "https://www.kimi.com"
CHAT_PATH = "/apiv2/kimi.gateway.chat.v1.ChatService/Chat"
AUTH_COOKIE = "kimi-auth"

# "research" is checked before "search"
_SCENARIOS = {
    "research": "SCENARIO_RESEARCH",
    "search": "SCENARIO_SEARCH",
    "k1": "SCENARIO_K1",
}


def scenario_for(model: str) -> str:
    """Map a model id onto Kimi's chat scenario."""
    lower = model.lower()
    for marker, scenario in _SCENARIOS.items():
        if marker in lower:
            return scenario
    return "SCENARIO_K2"


class KimiWebProtocol(ProviderProtocol):
    api = "kimi-web"
    framing = FRAMES
    uses_browser = True

    async def prepare(self, ctx: InvocationContext) -> Optional[ConversationRef]:
        token = ctx.auth.cookie_value(AUTH_COOKIE)
        if not token and ctx.transport is not None:
            for cookie in await ctx.transport.cookies(ctx.provider):
                if cookie.get("name") == AUTH_COOKIE and cookie.get("value"):
                    token = cookie["value"]
                    break
        token = token or ctx.auth.token
        if not token:
            raise StreamError(
                ErrorCode.AUTHENTICATION_EXPIRED,
                "kimi-web: kimi-auth cookie not found; log in to www.kimi.com",
            )
        ctx.extras["token"] = token
        return None

    def build_request(self, ctx: InvocationContext) -> TransportRequest:
        scenario = scenario_for(ctx.model)
        body: dict[str, Any] = {
            "scenario": scenario,
            "message": {
                "role": "user",
                "blocks": [{"message_id": "", "text": {"content": ctx.prompt}}],
                "scenario": scenario,
            },
            "options": {"thinking": False},
        }
        if ctx.conversation_id:
            body["chat_id"] = ctx.conversation_id

        headers = {
            "Content-Type": "application/connect+json",
            "Connect-Protocol-Version": "1",
            "Accept": "*/*",
            "Origin": KIMI_ORIGIN,
            "Referer": f"{KIMI_ORIGIN}/",
            "X-Msh-Platform": "web",
            "Authorization": f"Bearer {ctx.extras.get('token', '')}",
        }
        return TransportRequest(
            url=f"{KIMI_ORIGIN}{CHAT_PATH}",
            headers=headers,
            content=encode_frame(body),
        )

    def extract_text(self, payload: dict[str, Any]) -> Optional[str]:
        op = payload.get("op")
        if op not in ("set", "append"):
            return None
        block = payload.get("block")
        text = block.get("text") if isinstance(block, dict) else None
        content = text.get("content") if isinstance(text, dict) else None
        return content if isinstance(content, str) else None

    def extract_ref(self, payload: dict[str, Any]) -> Optional[ConversationRef]:
        chat = payload.get("chat")
        chat_id = chat.get("id") if isinstance(chat, dict) else None
        if isinstance(chat_id, str) and chat_id:
            return ConversationRef(conversation_id=chat_id)
        return None

    def check_payload(self, payload: dict[str, Any]) -> Optional[StreamError]:
        error = payload.get("error")
        if not error:
            return None
        text = error_message(error)
        return StreamError(classify_error_text(text), f"kimi-web: {text}")

    def is_done(self, payload: dict[str, Any]) -> bool:
        return bool(payload.get("done"))


__all__ = ["KimiWebProtocol", "KIMI_ORIGIN", "scenario_for"]
