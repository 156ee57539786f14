# File: site_pdf/render/paths.py
"""
Output path resolution.

Logical output paths (``docs/page.pdf``, ``/a/../b.pdf``, ``C:\\x.pdf``) are
always rooted at the output directory; ``..`` segments are normalised away so
nothing is ever written outside the root. Files are created exclusively:
collisions get a numeric suffix (``name.pdf`` → ``name-1.pdf`` → …).
"""
from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Tuple, Union

import aiofiles

__all__ = [
    "ResolvedPath",
    "pathname_to_filepath",
    "filepath_to_pathname",
    "resolve_pathname",
    "open_exclusive",
]

logger = logging.getLogger("SitePDF")

_PathLike = Union[str, Path]

#: consecutive unexpected OS errors tolerated while searching for a free name
MAX_OPEN_ERRORS: int = 10


@dataclass(slots=True, frozen=True)
class ResolvedPath:
    """Absolute file path inside the output root and its site pathname."""

    path: Path
    pathname: str
    is_directory: bool = False


def _root_path(root: _PathLike) -> Path:
    return Path(root).expanduser().resolve()


def _contained(pathname: str) -> str:
    """Normalise *pathname* against a virtual ``/``; result has no leading slash."""
    clean = pathname.replace("\\", "/")
    norm = posixpath.normpath("/" + clean)
    return norm.lstrip("/")


def pathname_to_filepath(pathname: str, root: _PathLike) -> Path:
    """Map a logical pathname onto a file path confined to *root*."""
    relative = _contained(pathname)
    base = _root_path(root)
    return base / relative if relative else base


def filepath_to_pathname(path: _PathLike, root: _PathLike) -> str:
    """Inverse of :func:`pathname_to_filepath`: ``/``-prefixed, no trailing slash."""
    relative = Path(path).expanduser().resolve().relative_to(_root_path(root))
    pathname = "/" + relative.as_posix()
    if pathname == "/.":
        return "/"
    return pathname.rstrip("/") or "/"


def resolve_pathname(pathname: str, root: _PathLike) -> ResolvedPath:
    path = pathname_to_filepath(pathname, root)
    is_directory = pathname.replace("\\", "/").endswith("/") or path.is_dir()
    return ResolvedPath(path, filepath_to_pathname(path, root), is_directory)


def _candidate(path: Path, index: int) -> Path:
    if not index:
        return path
    return path.with_name(f"{path.stem}-{index}{path.suffix}")


async def open_exclusive(
    path: _PathLike,
    *,
    exact: bool = False,
    max_errors: int = MAX_OPEN_ERRORS,
) -> Tuple[Any, Path]:
    """Create a new file at *path* (or the first free ``-N`` variant).

    The file is opened with ``xb`` so creation, not scheduling, is the point
    where two writers targeting the same name are serialised.

    Raises
    ------
    FileExistsError
        *exact* is set and *path* already exists.
    OSError
        *max_errors* consecutive unexpected errors occurred.
    """
    base = Path(path)
    index = 0
    errors = 0
    while True:
        candidate = _candidate(base, index)
        try:
            handle = await aiofiles.open(candidate, "xb")
            return handle, candidate
        except FileExistsError:
            if exact:
                raise
            errors = 0
        except OSError as exc:
            errors += 1
            logger.debug("open_exclusive: %s", exc)
            if errors >= max_errors:
                logger.warning(
                    "Giving up on %s after %d consecutive errors: %s", base, errors, exc
                )
                raise
        index += 1
