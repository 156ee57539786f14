# File: site_pdf/render/navigation.py
"""
Navigation tracking for a single tab.

The browser's own navigation call only reports the *final* response. To fail
fast on an error page, and to know where redirects went, the tracker also
listens to every response and failed request of the tab and follows the
current redirect target:

1. a failed request for the target ends navigation with the network error;
2. a 4xx/5xx response for the target ends navigation with ``"<status> <text>"``;
3. a 3xx response with a ``Location`` header moves the target and keeps waiting
   (a 3xx without ``Location`` is treated like rule 2);
4. a 2xx response for the target detaches the listeners, after which the
   navigation call's own result decides.

Whichever terminal event comes first resolves a single future, so duplicate
resolution cannot happen.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional
from urllib.parse import urljoin

from site_pdf.abort import AbortSignal
from site_pdf.browser.base import BLANK_URL, Request, Response, Tab
from site_pdf.errors import PageErrorKind, RunAborted
from site_pdf.render.models import NavigationFailure, NavigationOutcome, NavigationSuccess
from site_pdf.utils import build_url, call_hook, normalize_url, relative_location

__all__ = ["NavigationTracker", "NOT_NAVIGATED_DETAIL"]

logger = logging.getLogger("SitePDF")

NOT_NAVIGATED_DETAIL = (
    "the navigation returned no response. this could mean navigation to "
    "about:blank or to the same URL with a different hash."
)

PreNavigationHook = Callable[[Tab], Any]


def _status_title(response: Response) -> str:
    text = response.status_text or ""
    return f"{response.status} {text}" if text else str(response.status)


class NavigationTracker:
    """Drives one fresh tab to a terminal :data:`NavigationOutcome`."""

    def __init__(
        self,
        tab: Tab,
        *,
        base_url: Optional[str] = None,
        signal: Optional[AbortSignal] = None,
    ) -> None:
        self.tab = tab
        self.base_url = base_url
        self.signal = signal
        self._target: Optional[str] = None
        self._location: str = ""
        self._terminal: Optional[asyncio.Future[NavigationOutcome]] = None
        self._attached = False

    # ------------------------------------------------------------------ #
    # public API                                                         #
    # ------------------------------------------------------------------ #

    @property
    def target(self) -> Optional[str]:
        """Current redirect target (absolute URL)."""
        return self._target

    async def navigate(
        self,
        location: str,
        wait_until: str = "load",
        *,
        viewport: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
        pre_navigation: Optional[PreNavigationHook] = None,
    ) -> NavigationOutcome:
        """Navigate to *location* and classify the outcome.

        Raises :class:`RuntimeError` if the tab has already navigated and
        :class:`~site_pdf.errors.RunAborted` if the abort signal fires.
        """
        if self.tab.current_url() != BLANK_URL:
            raise RuntimeError("internal error: navigation expects a new tab")
        if self.signal is not None:
            self.signal.raise_if_aborted()

        self._location = location
        try:
            url = build_url(location, self.base_url)
        except ValueError as exc:
            return NavigationFailure(
                PageErrorKind.INVALID_LOCATION, location, "invalid location", cause=exc
            )

        if viewport:
            await self.tab.set_viewport(viewport)
        if timeout is not None:
            self.tab.set_navigation_timeout(timeout)
        if pre_navigation is not None:
            try:
                await self._guarded(call_hook(pre_navigation, self.tab))
            except RunAborted:
                raise
            except Exception as exc:
                return NavigationFailure(
                    PageErrorKind.HOOK_FAILED,
                    location,
                    f"error when running pre_callback: {exc}",
                    hook="pre_callback",
                    cause=exc,
                )

        loop = asyncio.get_running_loop()
        self._terminal = loop.create_future()
        self._target = url
        self._attach()
        navigation = asyncio.ensure_future(self.tab.navigate(url, wait_until, timeout))
        waiters = {navigation, self._terminal}
        abort_waiter: Optional[asyncio.Future[Any]] = None
        if self.signal is not None:
            abort_waiter = asyncio.ensure_future(self.signal.wait())
            waiters.add(abort_waiter)
        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            if self.signal is not None and self.signal.aborted:
                raise RunAborted(self.signal.reason)
            if self._terminal.done():
                return self._terminal.result()
            return self._finish(navigation)
        finally:
            self._detach()
            if abort_waiter is not None and not abort_waiter.done():
                abort_waiter.cancel()
            await self._discard(navigation)

    # ------------------------------------------------------------------ #
    # listeners                                                          #
    # ------------------------------------------------------------------ #

    def _attach(self) -> None:
        self.tab.on("response", self._on_response)
        self.tab.on("requestfailed", self._on_request_failed)
        self._attached = True

    def _detach(self) -> None:
        if not self._attached:
            return
        self.tab.off("response", self._on_response)
        self.tab.off("requestfailed", self._on_request_failed)
        self._attached = False

    def _settle(self, outcome: NavigationOutcome) -> None:
        if self._terminal is not None and not self._terminal.done():
            self._terminal.set_result(outcome)
        self._detach()

    def _is_target(self, url: str) -> bool:
        return self._target is not None and normalize_url(url) == self._target

    def _on_request_failed(self, request: Request) -> None:
        if not self._is_target(request.url):
            return
        self._settle(
            NavigationFailure(
                PageErrorKind.NAVIGATION_FAILED,
                self._relative(self._target),
                request.failure or "request failed",
                source_location=self._location,
            )
        )

    def _on_response(self, response: Response) -> None:
        if not self._is_target(response.url):
            return
        status = response.status
        if 200 <= status < 300:
            self._detach()
        elif 300 <= status < 400:
            redirect = response.headers.get("location")
            if redirect:
                self._target = normalize_url(urljoin(response.url, redirect))
                logger.debug("redirect %s -> %s", response.url, self._target)
            else:
                self._settle(self._response_failure(response))
        elif 400 <= status < 600:
            self._settle(self._response_failure(response))

    # ------------------------------------------------------------------ #
    # helpers                                                            #
    # ------------------------------------------------------------------ #

    def _relative(self, url: Optional[str]) -> str:
        return relative_location(url or self._location, self.base_url)

    def _response_failure(self, response: Response) -> NavigationFailure:
        return NavigationFailure(
            PageErrorKind.NAVIGATION_FAILED,
            self._relative(normalize_url(response.url)),
            _status_title(response),
            status=response.status,
            source_location=self._location,
        )

    def _finish(self, navigation: asyncio.Future[Optional[Response]]) -> NavigationOutcome:
        exc = navigation.exception()
        if exc is not None:
            return NavigationFailure(
                PageErrorKind.NAVIGATION_FAILED,
                self._relative(self._target),
                str(exc).splitlines()[0] if str(exc) else "error while navigating",
                source_location=self._location,
                cause=exc,
            )
        response = navigation.result()
        if response is None:
            return NavigationFailure(
                PageErrorKind.NAVIGATION_FAILED,
                self._location,
                "did not navigate",
                detail=NOT_NAVIGATED_DETAIL,
            )
        if not 200 <= response.status < 300:
            return self._response_failure(response)
        final = normalize_url(self.tab.current_url())
        return NavigationSuccess(self._relative(final), self.tab, response)

    async def _guarded(self, aw: Awaitable[Any]) -> Any:
        if self.signal is None:
            return await aw
        return await self.signal.guard(aw)

    @staticmethod
    async def _discard(task: asyncio.Future[Any]) -> None:
        """Cancel *task* if still pending and wait for it to unwind."""
        if not task.done():
            task.cancel()
            await asyncio.wait({task})
        if not task.cancelled():
            # mark the exception as retrieved; it was classified above or is moot
            task.exception()
