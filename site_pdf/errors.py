# File: site_pdf/errors.py
"""site_pdf.errors: error taxonomy for page generation.

Two disjoint kinds of failure exist:

* :class:`PageError` – task-scoped and retryable (bad location, HTTP error,
  hook failure, write failure …). Returned as a value by the task runner.
* :class:`FatalError` – run-scoped and never retried (browser connection lost,
  tab cannot be created). Raised, and always aborts the whole run.

:class:`RunAborted` is raised inside tasks that observe an aborted run; it is
neither a page failure nor a fatal error of its own.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

__all__ = [
    "PageErrorKind",
    "PageError",
    "FatalErrorKind",
    "FatalError",
    "RunAborted",
]


class PageErrorKind(Enum):
    """Classification of recoverable, task-scoped failures."""
    INVALID_LOCATION = "invalid_location"
    NAVIGATION_FAILED = "navigation_failed"
    HOOK_FAILED = "hook_failed"
    WRITE_FAILED = "write_failed"
    PATH_IS_DIRECTORY = "path_is_directory"


class PageError(Exception):
    """A page could not be converted. The run may retry it or move on."""

    def __init__(
        self,
        location: str,
        title: str,
        *,
        kind: PageErrorKind = PageErrorKind.NAVIGATION_FAILED,
        status: Optional[int] = None,
        detail: Optional[str] = None,
        source_location: Optional[str] = None,
        hook: Optional[str] = None,
    ) -> None:
        message = f"Failed to load `{location}`: {title}"
        if detail:
            message += "\n" + detail
        super().__init__(message)
        self.location = location
        self.title = title
        self.kind = kind
        self.status = status
        self.detail = detail
        self.hook = hook
        self.source_location = (
            source_location if source_location and source_location != location else None
        )

    @property
    def cause(self) -> Optional[BaseException]:
        return self.__cause__

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PageError):
            return NotImplemented
        return (
            self.kind is other.kind
            and self.location == other.location
            and self.title == other.title
            and self.status == other.status
            and self.source_location == other.source_location
        )

    __hash__ = Exception.__hash__


class FatalErrorKind(Enum):
    """Classification of run-scoped failures."""
    CONNECTION_LOST = "connection_lost"
    TAB_CREATION_FAILED = "tab_creation_failed"
    UNEXPECTED = "unexpected"


class FatalError(Exception):
    """The run cannot continue. Never retried."""

    def __init__(self, kind: FatalErrorKind, message: str = "") -> None:
        self.kind = kind
        super().__init__(message or f"Fatal error: {kind.value}")


class RunAborted(Exception):
    """Raised in a task that observed the run's abort signal."""

    def __init__(self, reason: Optional[BaseException] = None) -> None:
        self.reason = reason
        super().__init__(f"run aborted: {reason}" if reason else "run aborted")
