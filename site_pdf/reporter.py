# File: site_pdf/reporter.py
"""site_pdf.reporter: progress callbacks of a generation run.

The scheduler and task runner never log progress themselves; they call the
reporter they were given. :class:`LoggingReporter` writes the familiar
``▶ location`` / ``✖ location (title)`` lines to the ``SitePDF`` logger.
"""
from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Optional, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from site_pdf.errors import PageError
    from site_pdf.render.models import PageTask, TaskResult
    from site_pdf.scheduler import RunOutcome

__all__ = ["Reporter", "LoggingReporter", "NullReporter"]


@runtime_checkable
class Reporter(Protocol):
    def debug(self, message: str) -> None: ...

    def attempt_started(self, task: PageTask) -> None: ...

    def attempt_succeeded(
        self, task: PageTask, result: TaskResult, elapsed: float, done: int, total: int
    ) -> None: ...

    def attempt_failed(
        self, task: PageTask, error: PageError, elapsed: float, will_retry: bool
    ) -> None: ...

    def run_finished(self, outcome: RunOutcome) -> None: ...


class NullReporter:
    """Reporter that ignores everything (library use, tests)."""

    def debug(self, message: str) -> None:
        pass

    def attempt_started(self, task: PageTask) -> None:
        pass

    def attempt_succeeded(
        self, task: PageTask, result: TaskResult, elapsed: float, done: int, total: int
    ) -> None:
        pass

    def attempt_failed(
        self, task: PageTask, error: PageError, elapsed: float, will_retry: bool
    ) -> None:
        pass

    def run_finished(self, outcome: RunOutcome) -> None:
        pass


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"


class LoggingReporter:
    """Writes run progress to the project logger."""

    def __init__(self, logger: Union[logging.Logger, str, None] = None) -> None:
        if logger is None or isinstance(logger, str):
            logger = logging.getLogger(logger or "SitePDF")
        self.logger = logger

    @staticmethod
    def _attempts(task: PageTask) -> str:
        if task.max_attempts <= 1:
            return ""
        return f" (attempt {task.attempt}/{task.max_attempts})"

    def debug(self, message: str) -> None:
        self.logger.debug(message)

    def attempt_started(self, task: PageTask) -> None:
        self.logger.debug("processing %s%s", task.location, self._attempts(task))

    def attempt_succeeded(
        self, task: PageTask, result: TaskResult, elapsed: float, done: int, total: int
    ) -> None:
        src = f" ← {result.source_location}" if result.source_location else ""
        attempts = self._attempts(task) if task.attempt > 1 else ""
        self.logger.info("▶ %s%s%s", result.resolved_location, src, attempts)
        self.logger.info(
            "  └─ %s (+%dms) (%d/%d)", result.output_pathname, elapsed * 1000, done, total
        )

    def attempt_failed(
        self, task: PageTask, error: PageError, elapsed: float, will_retry: bool
    ) -> None:
        src = f" ← {error.source_location}" if error.source_location else ""
        self.logger.info(
            "✖ %s (%s) (+%dms)%s%s",
            error.location,
            error.title,
            elapsed * 1000,
            src,
            self._attempts(task),
        )
        if will_retry:
            self.logger.debug("retrying %s", task.location)
        self.logger.debug("error while processing %s", task.location, exc_info=error)

    def run_finished(self, outcome: RunOutcome) -> None:
        generated = [r.output_pathname for r in outcome.results]
        no_ext = sum(1 for p in generated if PurePosixPath(p).suffix != ".pdf")
        if no_ext:
            self.logger.warning("%s generated without .pdf extension", _plural(no_ext, "file"))
        if outcome.not_generated:
            self.logger.error("Failed to generate %s", _plural(outcome.not_generated, "file"))
        fatal: Optional[BaseException] = outcome.fatal
        if fatal is not None:
            self.logger.error("Run aborted: %s", fatal)
