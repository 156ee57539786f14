# File: site_pdf/scheduler.py
"""
Scheduler: runs the whole worklist under a concurrency bound.

Every task is put on an :class:`asyncio.Queue`; ``min(C, len(tasks))`` workers
pull from it. A worker keeps its task for all attempts, so a retry re-enters
the slot it already holds and never takes extra concurrency. Any
:class:`~site_pdf.errors.FatalError`, or the final failure of a hard-fail
task, aborts the run: the shared :class:`~site_pdf.abort.AbortSignal` is set,
in-flight tasks unwind through their own cleanup, and no queued task starts.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Protocol, Union

from site_pdf.abort import AbortSignal
from site_pdf.errors import FatalError, FatalErrorKind, PageError, RunAborted
from site_pdf.render.models import PageTask, TaskOutcome, TaskResult
from site_pdf.reporter import NullReporter, Reporter

__all__ = ["RunOutcome", "Scheduler", "run"]


class Runner(Protocol):
    async def run(self, task: PageTask) -> TaskOutcome: ...


@dataclass(slots=True)
class RunOutcome:
    """Everything a run produced.

    ``fatal`` is the terminal error of an aborted run: a :class:`FatalError`,
    or the :class:`PageError` of the hard-fail task that triggered the abort.
    """

    requested: int = 0
    results: List[TaskResult] = field(default_factory=list)
    failures: List[PageError] = field(default_factory=list)
    fatal: Optional[Union[FatalError, PageError]] = None

    @property
    def not_generated(self) -> int:
        return self.requested - len(self.results)

    @property
    def ok(self) -> bool:
        return self.fatal is None and not self.failures


class Scheduler:
    def __init__(
        self,
        runner: Runner,
        *,
        max_concurrent: Optional[int] = None,
        hard_fail: bool = False,
        reporter: Optional[Reporter] = None,
        signal: Optional[AbortSignal] = None,
    ) -> None:
        if max_concurrent is not None and max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        self.runner = runner
        self.max_concurrent = max_concurrent
        self.hard_fail = hard_fail
        self.reporter = reporter if reporter is not None else NullReporter()
        if signal is None:
            signal = getattr(runner, "signal", None) or AbortSignal()
        self.signal = signal
        self.running = 0
        self.max_running = 0

    async def run(self, tasks: Iterable[PageTask]) -> RunOutcome:
        """Run *tasks* to completion or abort. Never raises for task failures."""
        worklist = list(tasks)
        outcome = RunOutcome(requested=len(worklist))
        queue: asyncio.Queue[PageTask] = asyncio.Queue()
        for index, task in enumerate(worklist):
            task.index = index
            queue.put_nowait(task)

        n_workers = len(worklist)
        if self.max_concurrent is not None:
            n_workers = min(self.max_concurrent, n_workers)
        workers = [asyncio.create_task(self._worker(queue, outcome)) for _ in range(n_workers)]
        try:
            await asyncio.gather(*workers)
        finally:
            for w in workers:
                if not w.done():
                    w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        if self.signal.aborted and outcome.fatal is None:
            outcome.fatal = self._as_terminal(self.signal.reason)
        self.reporter.run_finished(outcome)
        return outcome

    async def _worker(self, queue: asyncio.Queue[PageTask], outcome: RunOutcome) -> None:
        while not self.signal.aborted:
            try:
                task = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                await self._run_task(task, outcome)
            finally:
                queue.task_done()

    async def _run_task(self, task: PageTask, outcome: RunOutcome) -> None:
        hard_fail = self.hard_fail if task.options.throw_on_fail is None else task.options.throw_on_fail
        while not self.signal.aborted:
            task.attempt += 1
            self.reporter.attempt_started(task)
            start = time.monotonic()
            self.running += 1
            self.max_running = max(self.max_running, self.running)
            try:
                result = await self.runner.run(task)
            except RunAborted:
                return
            except FatalError as exc:
                self._abort(outcome, exc)
                return
            except Exception as exc:
                fatal = FatalError(
                    FatalErrorKind.UNEXPECTED,
                    f"An unexpected error occurred while processing `{task.location}`: {exc}",
                )
                fatal.__cause__ = exc
                self._abort(outcome, fatal)
                return
            finally:
                self.running -= 1
            elapsed = time.monotonic() - start

            if isinstance(result, PageError):
                will_retry = not task.exhausted and not self.signal.aborted
                self.reporter.attempt_failed(task, result, elapsed, will_retry)
                if will_retry:
                    continue
                if self.signal.aborted:
                    return
                if hard_fail:
                    self._abort(outcome, result)
                else:
                    outcome.failures.append(result)
                return

            outcome.results.append(result)
            total = outcome.requested - len(outcome.failures)
            self.reporter.attempt_succeeded(task, result, elapsed, len(outcome.results), total)
            return

    def _abort(self, outcome: RunOutcome, error: Union[FatalError, PageError]) -> None:
        if self.signal.abort(error):
            outcome.fatal = error
        elif outcome.fatal is None:
            outcome.fatal = self._as_terminal(self.signal.reason)

    @staticmethod
    def _as_terminal(reason: Optional[BaseException]) -> Union[FatalError, PageError]:
        if isinstance(reason, (FatalError, PageError)):
            return reason
        fatal = FatalError(FatalErrorKind.UNEXPECTED, f"run aborted: {reason}")
        fatal.__cause__ = reason
        return fatal


async def run(
    tasks: Iterable[PageTask],
    runner: Runner,
    *,
    concurrency: Optional[int] = None,
    hard_fail: bool = False,
    reporter: Optional[Reporter] = None,
) -> RunOutcome:
    """Shortcut for ``Scheduler(runner, ...).run(tasks)``."""
    scheduler = Scheduler(runner, max_concurrent=concurrency, hard_fail=hard_fail, reporter=reporter)
    return await scheduler.run(tasks)
