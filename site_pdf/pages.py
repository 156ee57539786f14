# File: site_pdf/pages.py
"""site_pdf.pages: turning built pages and the page map into a worklist.

A page-map entry may be

* a mapping of :class:`~site_pdf.config.PageOptions` fields,
* a string (shorthand for ``{"path": ...}``),
* ``True`` (base options unchanged),
* ``False`` / ``None`` (no output for this location),
* a list of the above, producing one task per item (fan-out).

Locations come from the map keys and from the built pathnames. A location
listed in the map uses its map entry; every other location uses the fallback.
"""
from __future__ import annotations

import logging
import os
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union
from urllib.parse import unquote, urlsplit, urlunsplit

from site_pdf.config import PageOptions
from site_pdf.render.models import PageTask
from site_pdf.utils import normalize_url

__all__ = [
    "PageMap",
    "normalize_location",
    "default_path_function",
    "merge_pages",
    "get_page_options",
    "discover_pages",
    "build_tasks",
]

logger = logging.getLogger("SitePDF")

PagesEntry = Any
Fallback = Union[Callable[[str], PagesEntry], PagesEntry]

PATHNAME_PLACEHOLDER = "[pathname]"


@dataclass(slots=True)
class PageMap:
    locations: List[str]
    entries: Dict[str, PagesEntry]
    fallback: Callable[[str], PagesEntry]


def normalize_location(location: str) -> str:
    """Key under which *location* is looked up in the page map.

    Absolute http(s) URLs keep their full form; anything else becomes a
    ``/``-prefixed path (plus query) without a trailing slash.
    """
    parts = urlsplit(location)
    if parts.scheme.lower() in ("http", "https"):
        return normalize_url(location)
    path = posixpath.normpath("/" + parts.path.replace("\\", "/").lstrip("/"))
    return urlunsplit(("", "", path, parts.query, ""))


def default_path_function(path: str) -> Callable[[str], str]:
    """``[pathname]`` in *path* is replaced with the URL path (``/index`` for ``/``)."""

    def _path(url: str) -> str:
        pathname = unquote(urlsplit(url).path).rstrip("/") or "/index"
        return path.replace(PATHNAME_PLACEHOLDER, pathname)

    return _path


def _as_fallback(fallback: Fallback) -> Callable[[str], PagesEntry]:
    if callable(fallback):
        return fallback
    return lambda _location: fallback


def merge_pages(
    pathnames: Iterable[str],
    pages: Optional[Mapping[str, PagesEntry]] = None,
    fallback: Fallback = True,
) -> PageMap:
    entries: Dict[str, PagesEntry] = {}
    for key, entry in (pages or {}).items():
        if entry is None:
            continue
        entries[normalize_location(key)] = entry
    locations: Dict[str, None] = dict.fromkeys(entries)
    for pathname in pathnames:
        locations.setdefault(normalize_location(pathname))
    return PageMap(list(locations), entries, _as_fallback(fallback))


def _overrides(entry: PagesEntry) -> Dict[str, Any]:
    if entry is True:
        return {}
    if isinstance(entry, str):
        return {"path": entry}
    if isinstance(entry, PageOptions):
        return {name: getattr(entry, name) for name in entry.model_fields_set}
    if isinstance(entry, Mapping):
        return dict(entry)
    raise TypeError(f"invalid page entry: {entry!r}")


def get_page_options(
    location: str,
    base_options: PageOptions,
    entries: Mapping[str, PagesEntry],
    fallback: Callable[[str], PagesEntry],
) -> List[PageOptions]:
    """Resolve the options of every task produced for *location*."""
    entry = entries[location] if location in entries else fallback(location)
    items: Sequence[PagesEntry] = entry if isinstance(entry, (list, tuple)) else [entry]
    result: List[PageOptions] = []
    for item in items:
        if item is None or item is False:
            continue
        options = base_options.merged(_overrides(item))
        if isinstance(options.path, str) and PATHNAME_PLACEHOLDER in options.path:
            options = options.model_copy(update={"path": default_path_function(options.path)})
        result.append(options)
    return result


def discover_pages(out_dir: Union[str, Path]) -> List[str]:
    """Pathnames of the ``.html`` files under *out_dir* (``about/index.html`` → ``/about``)."""
    root = Path(out_dir)
    found: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            if not name.endswith(".html"):
                continue
            rel = (Path(dirpath) / name).relative_to(root).as_posix()
            if rel == "index.html" or rel.endswith("/index.html"):
                rel = rel[: -len("index.html")]
            else:
                rel = rel[: -len(".html")]
            found.append("/" + rel.rstrip("/"))
    logger.debug("Found %d built pages in %s", len(found), root)
    return found


def build_tasks(
    pathnames: Iterable[str],
    *,
    base_options: Optional[PageOptions] = None,
    pages: Optional[Mapping[str, PagesEntry]] = None,
    fallback: Fallback = True,
) -> List[PageTask]:
    """Expand built pathnames and the page map into a flat list of tasks."""
    base = base_options if base_options is not None else PageOptions()
    page_map = merge_pages(pathnames, pages, fallback)
    tasks: List[PageTask] = []
    for location in page_map.locations:
        for options in get_page_options(location, base, page_map.entries, page_map.fallback):
            tasks.append(PageTask(location, options, index=len(tasks)))
    return tasks
