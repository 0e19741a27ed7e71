"""Browser Session - Requests issued from inside an authenticated browser.

Web providers reject plain HTTP clients, so their requests run as ``fetch``
calls in a page that already carries the user's login. Launching the browser
and logging in are out of scope here; PlaywrightBrowserSession attaches to a
Chrome instance started with ``--remote-debugging-port``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol, TypeVar
from urllib.parse import urlparse

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

T = TypeVar("T")

DEFAULT_CDP_URL = "http://127.0.0.1:9222"


class BrowserSession(Protocol):
    """Collaborator running work inside a logged-in page for a provider."""

    async def run_in_session(self, provider: str, fn: Callable[[Any], Awaitable[T]]) -> T:
        """Run ``fn(page)`` in the provider's page and return its result."""
        ...

    async def get_cookies(self, provider: str) -> list[dict[str, Any]]: ...


class PlaywrightBrowserSession:
    """BrowserSession attached to a running Chrome over CDP.

    One page per provider is reused across calls. All calls for a provider
    are serialized with an asyncio.Lock because a page cannot safely carry
    parallel requests.

    Args:
        origins: Provider id -> site origin (e.g. {"chatgpt-web": "https://chatgpt.com"})
        cdp_url: Chrome remote debugging endpoint
        navigation_timeout: Seconds allowed for opening a provider page
    """

    def __init__(
        self,
        origins: dict[str, str],
        cdp_url: str = DEFAULT_CDP_URL,
        navigation_timeout: float = 30.0,
    ):
        self.origins = dict(origins)
        self.cdp_url = cdp_url
        self.navigation_timeout = navigation_timeout
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._pages: dict[str, Page] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._connect_lock = asyncio.Lock()

    async def connect(self) -> BrowserContext:
        """Attach to Chrome once; later calls reuse the connection."""
        async with self._connect_lock:
            if self._context is not None and self._browser is not None and self._browser.is_connected():
                return self._context
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            logging.info("[llmgate.browser] Connecting to Chrome at %s", self.cdp_url)
            self._browser = await self._playwright.chromium.connect_over_cdp(self.cdp_url)
            contexts = self._browser.contexts
            self._context = contexts[0] if contexts else await self._browser.new_context()
            self._pages.clear()
            return self._context

    def _origin(self, provider: str) -> str:
        origin = self.origins.get(provider)
        if not origin:
            raise ValueError(f"No browser origin configured for provider: {provider}")
        return origin

    async def _page_for(self, provider: str) -> Page:
        page = self._pages.get(provider)
        if page is not None and not page.is_closed():
            return page
        context = await self.connect()
        origin = self._origin(provider)
        host = urlparse(origin).netloc
        for candidate in context.pages:
            if host and host in candidate.url:
                logging.info("[llmgate.browser] Reusing open %s page", provider)
                self._pages[provider] = candidate
                return candidate
        page = await context.new_page()
        await page.goto(
            origin + "/",
            wait_until="domcontentloaded",
            timeout=self.navigation_timeout * 1000,
        )
        self._pages[provider] = page
        return page

    def _lock(self, provider: str) -> asyncio.Lock:
        lock = self._locks.get(provider)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[provider] = lock
        return lock

    async def run_in_session(self, provider: str, fn: Callable[[Any], Awaitable[T]]) -> T:
        async with self._lock(provider):
            page = await self._page_for(provider)
            return await fn(page)

    async def get_cookies(self, provider: str) -> list[dict[str, Any]]:
        context = await self.connect()
        cookies = await context.cookies([self._origin(provider)])
        return [dict(cookie) for cookie in cookies]

    async def close(self) -> None:
        """Detach from Chrome. The browser itself keeps running."""
        async with self._connect_lock:
            self._pages.clear()
            self._context = None
            self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None

    async def __aenter__(self) -> PlaywrightBrowserSession:
        await self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()


__all__ = ["BrowserSession", "PlaywrightBrowserSession", "DEFAULT_CDP_URL"]
