# File: site_pdf/render/task.py
"""
TaskRunner: one page task from tab acquisition to a written PDF.

The runner returns a tagged result – :class:`~site_pdf.render.models.TaskResult`
on success, :class:`~site_pdf.errors.PageError` on a classified task failure –
and *raises* only :class:`~site_pdf.errors.FatalError` (the run cannot go on)
and :class:`~site_pdf.errors.RunAborted` (another task aborted the run).
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Mapping, Optional, Tuple, TypeVar, Union

from site_pdf.abort import AbortSignal
from site_pdf.browser.base import Connection, Context, Tab
from site_pdf.errors import FatalError, FatalErrorKind, PageError, PageErrorKind, RunAborted
from site_pdf.render.models import NavigationFailure, PageTask, TaskOutcome, TaskResult
from site_pdf.render.navigation import NavigationTracker
from site_pdf.render.paths import filepath_to_pathname, open_exclusive, resolve_pathname
from site_pdf.reporter import NullReporter, Reporter
from site_pdf.utils import call_hook

__all__ = ["TaskRunner"]

logger = logging.getLogger("SitePDF")

T = TypeVar("T")


def _pdf_options(value: Any) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise TypeError(f"expected a mapping of pdf options, got {type(value).__name__}")
    return dict(value)


async def _next_chunk(stream: AsyncIterator[bytes]) -> Optional[bytes]:
    try:
        return await stream.__anext__()
    except StopAsyncIteration:
        return None


class TaskRunner:
    """Executes :class:`PageTask` objects against a shared browser connection."""

    def __init__(
        self,
        connection: Connection,
        *,
        out_dir: Union[str, Path],
        base_url: Optional[str] = None,
        signal: Optional[AbortSignal] = None,
        reporter: Optional[Reporter] = None,
    ) -> None:
        self.connection = connection
        self.out_dir = Path(out_dir)
        self.base_url = base_url
        self.signal = signal if signal is not None else AbortSignal()
        self.reporter = reporter if reporter is not None else NullReporter()

    async def run(self, task: PageTask) -> TaskOutcome:
        self.signal.raise_if_aborted()
        self.reporter.debug(f"starting processing of {task.location}")
        context, tab = await self._acquire(task.options.isolated)
        try:
            return await self._process(task, tab)
        except PageError as err:
            return err
        finally:
            await self._release(tab, context)

    # ------------------------------------------------------------------ #
    # tab lifecycle                                                      #
    # ------------------------------------------------------------------ #

    def _connection_lost(self) -> FatalError:
        return FatalError(
            FatalErrorKind.CONNECTION_LOST, "Fatal error: Browser disconnected unexpectedly"
        )

    async def _acquire(self, isolated: bool) -> Tuple[Optional[Context], Tab]:
        if not self.connection.is_alive():
            raise self._connection_lost()
        context: Optional[Context] = None
        try:
            if isolated:
                context = await self.connection.new_isolated_context()
                tab = await context.new_tab()
            else:
                tab = await self.connection.new_tab()
        except Exception as exc:
            if context is not None:
                await self._close_quietly("isolated context", context.close)
            if not self.connection.is_alive():
                raise self._connection_lost() from exc
            raise FatalError(
                FatalErrorKind.TAB_CREATION_FAILED, f"Fatal error: could not open a new tab: {exc}"
            ) from exc
        return context, tab

    async def _release(self, tab: Tab, context: Optional[Context]) -> None:
        await self._close_quietly("tab", tab.close)
        if context is not None:
            await self._close_quietly("isolated context", context.close)

    @staticmethod
    async def _close_quietly(what: str, close: Callable[[], Awaitable[Any]]) -> None:
        try:
            await close()
        except Exception as exc:
            logger.warning("Failed to close %s cleanly: %s", what, exc)

    # ------------------------------------------------------------------ #
    # processing                                                         #
    # ------------------------------------------------------------------ #

    async def _guard(self, aw: Awaitable[T]) -> T:
        return await self.signal.guard(aw)

    async def _hook(
        self,
        name: str,
        hook: Callable[..., Any],
        arg: Any,
        location: str,
        convert: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        self.reporter.debug(f"running {name} hook for {location}")
        try:
            result = await self._guard(call_hook(hook, arg))
            return convert(result) if convert is not None else result
        except RunAborted:
            raise
        except Exception as exc:
            raise PageError(
                location,
                f"error when running {name}: {exc}",
                kind=PageErrorKind.HOOK_FAILED,
                hook=name,
            ) from exc

    async def _process(self, task: PageTask, tab: Tab) -> TaskResult:
        options = task.options
        tracker = NavigationTracker(tab, base_url=self.base_url, signal=self.signal)
        outcome = await tracker.navigate(
            task.location,
            options.wait_until,
            viewport=options.viewport.model_dump() if options.viewport else None,
            timeout=options.navigation_timeout,
            pre_navigation=options.pre_callback,
        )
        if isinstance(outcome, NavigationFailure):
            raise outcome.to_error()
        location = outcome.final_location

        if options.screen:
            await self._guard(tab.emulate_media("screen"))
        if options.callback is not None:
            await self._hook("callback", options.callback, tab, location)

        if isinstance(options.path, str):
            raw_path = options.path
        else:
            raw_path = await self._hook("path", options.path, tab.current_url(), location)
        if isinstance(options.pdf, dict):
            pdf_options = dict(options.pdf)
        else:
            pdf_options = await self._hook("pdf", options.pdf, tab, location, convert=_pdf_options)
        pdf_options.pop("path", None)

        resolved = resolve_pathname(str(raw_path), self.out_dir)
        if resolved.is_directory:
            raise PageError(
                location,
                "output path is a directory",
                kind=PageErrorKind.PATH_IS_DIRECTORY,
                detail=f"`{raw_path}` resolves to the directory {resolved.path}",
            )

        path = await self._write(tab, resolved.path, pdf_options, options.exact_path, location)
        return TaskResult(
            requested_location=task.location,
            resolved_location=location,
            output_path=path,
            output_pathname=filepath_to_pathname(path, self.out_dir),
            source_location=task.location if task.location != location else None,
        )

    async def _write(
        self,
        tab: Tab,
        path: Path,
        pdf_options: dict[str, Any],
        exact: bool,
        location: str,
    ) -> Path:
        try:
            await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
            handle, final_path = await open_exclusive(path, exact=exact)
        except FileExistsError as exc:
            raise PageError(
                location,
                "output file already exists",
                kind=PageErrorKind.WRITE_FAILED,
                detail=str(path),
            ) from exc
        except OSError as exc:
            raise PageError(
                location, f"failed to open output file: {exc}", kind=PageErrorKind.WRITE_FAILED
            ) from exc

        self.reporter.debug(f"writing {final_path}")
        stream = tab.render_to_stream(pdf_options)
        try:
            while True:
                chunk = await self._guard(_next_chunk(stream))
                if chunk is None:
                    break
                await self._guard(handle.write(chunk))
        except BaseException as exc:
            await handle.close()
            await asyncio.to_thread(final_path.unlink, missing_ok=True)
            if isinstance(exc, (PageError, FatalError, RunAborted)) or not isinstance(exc, Exception):
                raise
            raise PageError(
                location, "failed to write pdf", kind=PageErrorKind.WRITE_FAILED
            ) from exc
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
        await handle.close()
        return final_path
