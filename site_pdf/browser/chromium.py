# File: site_pdf/browser/chromium.py
"""Playwright (Chromium) implementation of the automation interface."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from site_pdf.browser.base import Response

__all__ = [
    "PDF_CHUNK_SIZE",
    "PlaywrightTab",
    "PlaywrightContext",
    "PlaywrightConnection",
    "launch_browser",
]

logger = logging.getLogger("SitePDF")

#: size of the slices handed to the writer while streaming a rendered PDF
PDF_CHUNK_SIZE: int = 64 * 1024


class PlaywrightTab:
    """Wraps :class:`playwright.async_api.Page`."""

    def __init__(self, page: Page) -> None:
        self.page = page

    def current_url(self) -> str:
        return self.page.url

    def on(self, event: str, listener: Callable[[Any], None]) -> None:
        self.page.on(event, listener)

    def off(self, event: str, listener: Callable[[Any], None]) -> None:
        self.page.remove_listener(event, listener)

    async def set_viewport(self, viewport: Dict[str, Any]) -> None:
        # device scale factor is a context option in Playwright
        await self.page.set_viewport_size(
            {"width": int(viewport["width"]), "height": int(viewport["height"])}
        )

    def set_navigation_timeout(self, timeout: float) -> None:
        self.page.set_default_navigation_timeout(timeout)

    async def emulate_media(self, media: str) -> None:
        await self.page.emulate_media(media=media)

    async def navigate(
        self, url: str, wait_until: str, timeout: Optional[float] = None
    ) -> Optional[Response]:
        kwargs: Dict[str, Any] = {"wait_until": wait_until}
        if timeout is not None:
            kwargs["timeout"] = timeout
        return await self.page.goto(url, **kwargs)

    async def render_to_stream(self, options: Dict[str, Any]) -> AsyncIterator[bytes]:
        data = await self.page.pdf(**options)
        view = memoryview(data)
        for offset in range(0, len(view), PDF_CHUNK_SIZE):
            yield bytes(view[offset:offset + PDF_CHUNK_SIZE])

    async def close(self) -> None:
        await self.page.close()


class PlaywrightContext:
    """Isolated browsing context owned by one task."""

    def __init__(self, context: BrowserContext) -> None:
        self.context = context

    async def new_tab(self) -> PlaywrightTab:
        return PlaywrightTab(await self.context.new_page())

    async def close(self) -> None:
        await self.context.close()


class PlaywrightConnection:
    """Shared browser connection with one default context for non-isolated tabs."""

    def __init__(self, browser: Browser, *, context_options: Optional[Dict[str, Any]] = None) -> None:
        self.browser = browser
        self._context_options = dict(context_options or {})
        self._default_context: Optional[BrowserContext] = None
        self._context_lock = asyncio.Lock()

    def is_alive(self) -> bool:
        return self.browser.is_connected()

    async def default_context(self) -> BrowserContext:
        """Shared context of all non-isolated tabs, created on first use."""
        if self._default_context is None:
            async with self._context_lock:
                if self._default_context is None:
                    self._default_context = await self.browser.new_context(**self._context_options)
        return self._default_context

    async def new_tab(self) -> PlaywrightTab:
        context = await self.default_context()
        return PlaywrightTab(await context.new_page())

    async def new_isolated_context(self) -> PlaywrightContext:
        return PlaywrightContext(await self.browser.new_context(**self._context_options))

    def on_disconnected(self, callback: Callable[[], None]) -> None:
        self.browser.on("disconnected", lambda _browser: callback())

    async def close(self) -> None:
        if self._default_context is not None:
            try:
                await self._default_context.close()
            except Exception as exc:
                logger.warning("Failed to close default browser context cleanly: %s", exc)
            self._default_context = None
        if self.browser.is_connected():
            await self.browser.close()


@asynccontextmanager
async def launch_browser(
    *,
    headless: bool = True,
    executable_path: Optional[str] = None,
    channel: Optional[str] = None,
    args: Optional[list[str]] = None,
    context_options: Optional[Dict[str, Any]] = None,
) -> AsyncIterator[PlaywrightConnection]:
    """Launch Chromium and yield a :class:`PlaywrightConnection`.

    Installing a browser is not handled here; run ``playwright install
    chromium`` or point ``executable_path`` at an existing binary.
    """
    launch_kwargs: Dict[str, Any] = {"headless": headless}
    if executable_path:
        launch_kwargs["executable_path"] = executable_path
    if channel:
        launch_kwargs["channel"] = channel
    if args:
        launch_kwargs["args"] = list(args)

    async with async_playwright() as p:
        browser = await p.chromium.launch(**launch_kwargs)
        logger.debug("Launched browser %s", browser.version)
        connection = PlaywrightConnection(browser, context_options=context_options)
        try:
            yield connection
        finally:
            await connection.close()
