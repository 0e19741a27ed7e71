"""Gateway - Resolution and streaming behind one object.

    gateway = await Gateway.create(load_gateway_config(), os.environ)
    async for event in gateway.stream_completion("ollama", "llama3.3", "s1", prompt="Hi"):
        ...

The gateway owns the ContinuityStore shared by all invocations and, lazily,
the browser session used by web providers.
"""

from __future__ import annotations

import os
from typing import Any, AsyncIterator, Mapping, Optional

from .auth.credentials import CredentialStore
from .auth.env import dereference_secret
from .config import GatewayConfig
from .catalog.types import ProviderConfig
from .errors import ErrorCode, StreamError
from .resolver import resolve_providers
from .streaming.abort import AbortSignal
from .streaming.adapter import CompletionRequest, StreamAdapter
from .streaming.browser import BrowserSession, PlaywrightBrowserSession
from .streaming.continuity import ContinuityStore
from .streaming.events import AssistantMessage, Done, ErrorEvent, NormalizedEvent
from .streaming.protocols import get_protocol
from .streaming.protocols.kimi_web import KIMI_ORIGIN
from .streaming.transport import BrowserTransport, HttpTransport, Transport

# Pages that must be open for in-page requests, where they differ from base_url
BROWSER_ORIGIN_OVERRIDES = {"kimi-web": KIMI_ORIGIN}


class Gateway:
    """Entry point for the agent runtime.

    Args:
        providers: Resolved provider map (see ``resolve_providers``)
        env: Environment used to dereference secrets (defaults to os.environ)
        store: Credential store (kept for re-resolution)
        browser: Browser session for web providers; created on first use
        continuity: Continuity store; a fresh one by default
        http_timeout: Timeout for direct HTTP requests in seconds
    """

    def __init__(
        self,
        providers: Mapping[str, ProviderConfig],
        env: Optional[Mapping[str, str]] = None,
        store: Optional[CredentialStore] = None,
        browser: Optional[BrowserSession] = None,
        continuity: Optional[ContinuityStore] = None,
        http_timeout: float = 120.0,
    ):
        self.providers = dict(providers)
        self.env = env if env is not None else os.environ
        self.store = store
        self.continuity = continuity or ContinuityStore()
        self.http_timeout = http_timeout
        self._browser = browser

    @classmethod
    async def create(
        cls,
        config: GatewayConfig,
        env: Optional[Mapping[str, str]] = None,
        store: Optional[CredentialStore] = None,
        **kwargs: Any,
    ) -> Gateway:
        """Resolve providers from configuration and build a gateway."""
        env = env if env is not None else os.environ
        providers = await resolve_providers(
            config.providers,
            env,
            store,
            discover=config.discovery.enabled,
            discovery_timeout=config.discovery.timeout_sec,
        )
        return cls(providers, env=env, store=store, **kwargs)

    @property
    def browser(self) -> BrowserSession:
        if self._browser is None:
            origins = {}
            for provider, config in self.providers.items():
                protocol = get_protocol(config.api)
                if protocol is not None and protocol.uses_browser:
                    origins[provider] = BROWSER_ORIGIN_OVERRIDES.get(provider, config.base_url)
            self._browser = PlaywrightBrowserSession(origins)
        return self._browser

    def _transport(self, provider: str, uses_browser: bool) -> Transport:
        if uses_browser:
            return BrowserTransport(self.browser, provider)
        return HttpTransport(timeout=self.http_timeout)

    def stream_completion(
        self,
        provider: str,
        model: str,
        session: str = "default",
        prompt: Optional[str] = None,
        messages: Optional[list[dict[str, Any]]] = None,
        abort: Optional[AbortSignal] = None,
    ) -> AsyncIterator[NormalizedEvent]:
        """Stream a completion as normalized events.

        Args:
            provider: Provider id from the resolved map
            model: Model id
            session: Continuity key; turns sharing it continue one conversation
            prompt: User message text (appended to ``messages`` when both given)
            messages: Conversation history
            abort: Signal that cancels the invocation

        Returns:
            Async iterator of TextStart/TextDelta events ending with Done or
            ErrorEvent (neither when cancelled)

        Raises:
            ValueError: If the provider is unknown or its API has no protocol
        """
        config = self.providers.get(provider)
        if config is None:
            raise ValueError(f"Unknown provider: {provider}")
        protocol = get_protocol(config.api)
        if protocol is None:
            raise ValueError(f"Provider {provider} uses unsupported api {config.api!r}")

        history = list(messages or [])
        if prompt is not None:
            history.append({"role": "user", "content": prompt})

        request = CompletionRequest(
            provider=provider,
            model=model,
            config=config,
            messages=history,
            session_key=session,
            secret=dereference_secret(config.api_key, self.env),
        )
        adapter = StreamAdapter(protocol, self._transport(provider, protocol.uses_browser), self.continuity)
        return adapter.stream(request, abort)

    async def complete(
        self,
        provider: str,
        model: str,
        session: str = "default",
        prompt: Optional[str] = None,
        messages: Optional[list[dict[str, Any]]] = None,
        abort: Optional[AbortSignal] = None,
    ) -> Optional[AssistantMessage]:
        """Run a completion to the end.

        Returns:
            The final message, or None if the invocation was cancelled

        Raises:
            StreamError: If the stream ended with an error event
        """
        async for event in self.stream_completion(provider, model, session, prompt, messages, abort):
            if isinstance(event, Done):
                return event.message
            if isinstance(event, ErrorEvent):
                raise StreamError(ErrorCode(event.code), event.message)
        return None

    def reset_session(self, session: Optional[str] = None) -> None:
        """Forget continuity for one session (or all of them)."""
        self.continuity.clear(session)

    async def close(self) -> None:
        close = getattr(self._browser, "close", None)
        if close is not None:
            await close()
        self._browser = None

    async def __aenter__(self) -> Gateway:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()


__all__ = ["Gateway", "BROWSER_ORIGIN_OVERRIDES"]
