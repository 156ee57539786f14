# File: site_pdf/utils.py
"""site_pdf.utils: URL helpers and hook invocation shared by the renderer and the page map."""

from __future__ import annotations

import inspect
from typing import Any, Callable, Optional, Sequence
from urllib.parse import urljoin, urlsplit, urlunsplit

__all__: Sequence[str] = (
    "build_url",
    "normalize_url",
    "url_origin",
    "relative_location",
    "call_hook",
)

_HIERARCHICAL = ("http", "https", "file")


def normalize_url(url: str) -> str:
    """Canonical form used to compare request/response URLs.

    Scheme and host are lower-cased and an empty HTTP path becomes ``/``,
    matching what the browser reports for the same address.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    if scheme not in _HIERARCHICAL:
        return url
    path = parts.path or "/"
    return urlunsplit((scheme, parts.netloc.lower(), path, parts.query, parts.fragment))


def build_url(location: str, base_url: Optional[str] = None) -> str:
    """Resolve *location* against *base_url*.

    Raises :class:`ValueError` when the result is not an absolute URL
    (relative location without a base, malformed host, bad port, …).
    """
    url = urljoin(base_url, location) if base_url else location
    parts = urlsplit(url)
    # accessing these validates bracketed hosts and ports
    parts.hostname
    parts.port
    if not parts.scheme:
        raise ValueError(f"not an absolute URL: {url!r}")
    if parts.scheme.lower() in ("http", "https") and not parts.hostname:
        raise ValueError(f"missing host: {url!r}")
    return normalize_url(url)


def url_origin(url: str) -> str:
    parts = urlsplit(url)
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), "", "", ""))


def relative_location(url: str, base_url: Optional[str] = None) -> str:
    """Strip the base URL's origin from *url* when it is on the same site."""
    if not base_url:
        return url
    origin = url_origin(base_url)
    if url == origin or url.startswith(origin + "/"):
        return url[len(origin):] or "/"
    return url


async def call_hook(hook: Callable[..., Any], *args: Any) -> Any:
    """Call a sync or async user hook and return its result."""
    result = hook(*args)
    if inspect.isawaitable(result):
        result = await result
    return result
