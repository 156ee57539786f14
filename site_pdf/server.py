# File: site_pdf/server.py
"""site_pdf.server: static preview server over the built output directory.

Used when no ``base_url`` is configured, so that relative page locations have
something to resolve against. Directory URLs serve ``index.html``; extensionless
URLs also try ``<name>.html``. Missing files get ``404.html`` (if present) with
status 404.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Union

from aiohttp import web

from site_pdf.render.paths import pathname_to_filepath

__all__ = ["ServerOutput", "make_app", "start_preview_server"]

logger = logging.getLogger("SitePDF")

_ROOT_KEY = web.AppKey("root", Path)


@dataclass(slots=True)
class ServerOutput:
    """URL of a running server and the coroutine function that stops it."""

    url: Optional[str]
    close: Optional[Callable[[], Awaitable[None]]] = None


def _candidates(root: Path, pathname: str) -> List[Path]:
    target = pathname_to_filepath(pathname, root)
    if pathname.endswith("/") or target == root:
        return [target / "index.html"]
    return [target, target / "index.html", target.with_name(target.name + ".html")]


async def _handle(request: web.Request) -> web.StreamResponse:
    root: Path = request.app[_ROOT_KEY]
    for candidate in _candidates(root, request.path):
        if candidate.is_file():
            return web.FileResponse(candidate)
    not_found = root / "404.html"
    if not_found.is_file():
        return web.FileResponse(not_found, status=404)
    raise web.HTTPNotFound()


def make_app(root: Union[str, Path]) -> web.Application:
    app = web.Application()
    app[_ROOT_KEY] = Path(root).expanduser().resolve()
    app.router.add_get("/{tail:.*}", _handle)
    return app


async def start_preview_server(
    root: Union[str, Path], host: str = "localhost", port: int = 0
) -> ServerOutput:
    """Serve *root* on ``host:port`` (``port=0`` picks a free port)."""
    runner = web.AppRunner(make_app(root))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    try:
        await site.start()
    except OSError:
        await runner.cleanup()
        raise
    bound_port = runner.addresses[0][1] if runner.addresses else port
    url = f"http://{host}:{bound_port}"
    logger.debug("Preview server for %s listening on %s", root, url)
    return ServerOutput(url=url, close=runner.cleanup)
