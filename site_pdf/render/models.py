# site_pdf/render/models.py
"""
Data models passed between the navigation tracker, task runner and scheduler.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from site_pdf.errors import PageError, PageErrorKind

if TYPE_CHECKING:
    from site_pdf.browser.base import Response, Tab
    from site_pdf.config import PageOptions


@dataclass(slots=True)
class PageTask:
    """One (location, options) pair to be turned into one output file."""

    location: str
    options: PageOptions
    index: int = 0
    attempt: int = 0

    @property
    def max_attempts(self) -> int:
        return max(self.options.max_retries, 0) + 1

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.max_attempts


@dataclass(slots=True, frozen=True)
class TaskResult:
    """Successful conversion of one task."""

    requested_location: str
    resolved_location: str
    output_path: Path
    output_pathname: str
    source_location: Optional[str] = None


@dataclass(slots=True)
class NavigationSuccess:
    """Terminal state: the tab shows the final page."""

    final_location: str
    tab: Tab
    response: Optional[Response] = None


@dataclass(slots=True)
class NavigationFailure:
    """Terminal state: navigation failed and was classified."""

    kind: PageErrorKind
    location: str
    title: str
    status: Optional[int] = None
    detail: Optional[str] = None
    source_location: Optional[str] = None
    hook: Optional[str] = None
    cause: Optional[BaseException] = field(default=None, repr=False)

    def to_error(self) -> PageError:
        error = PageError(
            self.location,
            self.title,
            kind=self.kind,
            status=self.status,
            detail=self.detail,
            source_location=self.source_location,
            hook=self.hook,
        )
        error.__cause__ = self.cause
        return error


NavigationOutcome = Union[NavigationSuccess, NavigationFailure]
TaskOutcome = Union[TaskResult, PageError]

__all__ = [
    "PageTask",
    "TaskResult",
    "NavigationSuccess",
    "NavigationFailure",
    "NavigationOutcome",
    "TaskOutcome",
]
