# File: site_pdf/browser/base.py
"""Interface of the browser automation layer consumed by the renderer.

The renderer never talks to Playwright directly; it sees a connection that
opens tabs (optionally inside an isolated context), tabs that navigate and
render to a byte stream, and the response / failed-request events a tab emits
while navigating.
"""
from __future__ import annotations

from typing import (
    Any,
    AsyncIterator,
    Callable,
    Dict,
    Literal,
    Mapping,
    Optional,
    Protocol,
    runtime_checkable,
)

__all__ = [
    "BLANK_URL",
    "TabEvent",
    "Response",
    "Request",
    "Tab",
    "Context",
    "Connection",
]

BLANK_URL = "about:blank"

TabEvent = Literal["response", "requestfailed"]


@runtime_checkable
class Response(Protocol):
    """HTTP response observed by a tab."""

    @property
    def url(self) -> str: ...

    @property
    def status(self) -> int: ...

    @property
    def status_text(self) -> str: ...

    @property
    def headers(self) -> Mapping[str, str]:
        """Header mapping with lower-cased names."""
        ...


@runtime_checkable
class Request(Protocol):
    """Request that failed at the network level."""

    @property
    def url(self) -> str: ...

    @property
    def failure(self) -> Optional[str]:
        """Network error text, e.g. ``net::ERR_NAME_NOT_RESOLVED``."""
        ...


@runtime_checkable
class Tab(Protocol):
    """A single browser page, exclusively owned by one task."""

    def current_url(self) -> str: ...

    def on(self, event: TabEvent, listener: Callable[[Any], None]) -> None: ...

    def off(self, event: TabEvent, listener: Callable[[Any], None]) -> None: ...

    async def set_viewport(self, viewport: Dict[str, Any]) -> None: ...

    def set_navigation_timeout(self, timeout: float) -> None:
        """Default navigation timeout in milliseconds."""
        ...

    async def emulate_media(self, media: str) -> None: ...

    async def navigate(
        self, url: str, wait_until: str, timeout: Optional[float] = None
    ) -> Optional[Response]:
        """Navigate and return the final response (``None`` if nothing loaded)."""
        ...

    def render_to_stream(self, options: Dict[str, Any]) -> AsyncIterator[bytes]: ...

    async def close(self) -> None: ...


@runtime_checkable
class Context(Protocol):
    """Browsing context (cookies, cache) owned by the task that created it."""

    async def new_tab(self) -> Tab: ...

    async def close(self) -> None: ...


@runtime_checkable
class Connection(Protocol):
    """Shared browser connection."""

    def is_alive(self) -> bool: ...

    async def new_tab(self) -> Tab:
        """Open a tab in the shared default context."""
        ...

    async def new_isolated_context(self) -> Context: ...
