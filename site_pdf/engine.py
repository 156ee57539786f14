# File: site_pdf/engine.py
"""site_pdf.engine: Orchestration layer: сервер, браузер, планировщик и отчёты."""

from __future__ import annotations

import asyncio
import time
from contextlib import AbstractAsyncContextManager
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from site_pdf.abort import AbortSignal
from site_pdf.browser.base import Connection
from site_pdf.browser.chromium import launch_browser
from site_pdf.config import SitePdfConfig, load_config
from site_pdf.errors import FatalError, FatalErrorKind
from site_pdf.logger import logger
from site_pdf.pages import build_tasks, discover_pages
from site_pdf.render.task import TaskRunner
from site_pdf.report import render_html, render_json
from site_pdf.reporter import LoggingReporter, Reporter
from site_pdf.scheduler import RunOutcome, Scheduler
from site_pdf.server import ServerOutput, start_preview_server
from site_pdf.utils import call_hook

__all__ = ["Engine", "start_generation"]

Launcher = Callable[[], AbstractAsyncContextManager[Connection]]
ServerFactory = Callable[[SitePdfConfig], Awaitable[ServerOutput]]


class Engine:
    """Фасад для CLI и тестов: загрузка конфига, запуск генерации PDF и отчёты."""

    @staticmethod
    def load_config(path: Optional[str], **overrides: Any) -> SitePdfConfig:
        """Загружает конфиг из YAML/JSON."""
        return load_config(path, **overrides)

    def __init__(
        self,
        config: SitePdfConfig,
        *,
        reporter: Optional[Reporter] = None,
        launcher: Optional[Launcher] = None,
        server: Optional[ServerFactory] = None,
        run_before: Optional[Callable[[Path], Any]] = None,
        run_after: Optional[Callable[[Path, List[str]], Any]] = None,
        browser_callback: Optional[Callable[[Connection], Any]] = None,
    ) -> None:
        """
        launcher: фабрика async-контекста с подключением к браузеру
        (по умолчанию Chromium через Playwright); server: фабрика
        предварительного сервера (по умолчанию статический aiohttp-сервер
        над out_dir). Хуки могут быть как обычными, так и async функциями.
        """
        self.config = config
        self.reporter = reporter if reporter is not None else LoggingReporter(logger)
        self.launcher = launcher
        self.server = server
        self.run_before = run_before
        self.run_after = run_after
        self.browser_callback = browser_callback

    def start(self, pathnames: Optional[Iterable[str]] = None) -> RunOutcome:
        """Синхронная обёртка над generate() для CLI."""
        return asyncio.run(self.generate(pathnames))

    async def generate(self, pathnames: Optional[Iterable[str]] = None) -> RunOutcome:
        """
        Генерирует PDF для собранных страниц.

        pathnames: список путей собранных страниц; если не задан, берутся все
        ``.html`` файлы из out_dir. Если запуск прерван и throw_errors включён,
        итоговая ошибка пробрасывается после освобождения всех ресурсов.
        """
        start = time.monotonic()
        outcome: Optional[RunOutcome] = None
        try:
            outcome = await self._generate(pathnames)
            if outcome.fatal is not None:
                raise outcome.fatal
        except Exception as exc:
            logger.info("✖ Failed after %dms.", (time.monotonic() - start) * 1000)
            if self.config.throw_errors:
                raise
            logger.error("Generation failed: %s", exc, exc_info=exc)
            if outcome is None:
                outcome = RunOutcome(fatal=_as_fatal(exc))
            return outcome

        if self.run_after is not None:
            logger.info("running run_after hook...")
            hook_start = time.monotonic()
            await call_hook(self.run_after, self.config.out_dir, [r.output_pathname for r in outcome.results])
            logger.debug("finished running run_after hook in %dms", (time.monotonic() - hook_start) * 1000)

        logger.info("✓ Completed in %dms.", (time.monotonic() - start) * 1000)
        return outcome

    # ------------------------------------------------------------------ #

    async def _generate(self, pathnames: Optional[Iterable[str]]) -> RunOutcome:
        cfg = self.config
        if self.run_before is not None:
            logger.info("running run_before hook...")
            await call_hook(self.run_before, cfg.out_dir)

        built = list(pathnames) if pathnames is not None else discover_pages(cfg.out_dir)
        tasks = build_tasks(
            built, base_options=cfg.base_options, pages=cfg.pages, fallback=cfg.fallback
        )
        logger.debug("%d tasks for %d built pages", len(tasks), len(built))

        server = await self._start_server()
        try:
            outcome = await self._run(tasks, server.url)
        finally:
            if server.close is not None:
                await server.close()

        self._write_reports(outcome)
        return outcome

    async def _start_server(self) -> ServerOutput:
        cfg = self.config
        if cfg.base_url is not None:
            logger.info("using server at %s", cfg.base_url_str)
            return ServerOutput(url=cfg.base_url_str)
        if self.server is None and not cfg.serve:
            logger.debug("running without server")
            logger.warning("no base URL configured. all locations must be full URLs.")
            return ServerOutput(url=None)
        try:
            if self.server is not None:
                server = await self.server(cfg)
            else:
                server = await start_preview_server(cfg.out_dir, cfg.host, cfg.port)
        except Exception as exc:
            raise RuntimeError(f"error when setting up server: {exc}") from exc
        if server.url:
            logger.info("using server at %s", server.url)
        else:
            logger.warning("no url returned from server. all locations must be full URLs.")
        return server

    def _launch(self) -> AbstractAsyncContextManager[Connection]:
        if self.launcher is not None:
            return self.launcher()
        launch = self.config.launch
        context_options = {}
        viewport = self.config.base_options.viewport
        if viewport is not None:
            context_options["device_scale_factor"] = viewport.device_scale_factor
        return launch_browser(
            headless=launch.headless,
            executable_path=launch.executable_path,
            channel=launch.channel,
            args=launch.args,
            context_options=context_options,
        )

    async def _run(self, tasks: list, base_url: Optional[str]) -> RunOutcome:
        cfg = self.config
        signal = AbortSignal()
        finished = asyncio.Event()

        def on_disconnected() -> None:
            if finished.is_set():
                return
            logger.error("browser disconnected")
            signal.abort(
                FatalError(
                    FatalErrorKind.CONNECTION_LOST,
                    "Fatal error: Browser disconnected unexpectedly",
                )
            )

        async with self._launch() as connection:
            register = getattr(connection, "on_disconnected", None)
            if register is not None:
                register(on_disconnected)
            try:
                if self.browser_callback is not None:
                    await call_hook(self.browser_callback, connection)
                runner = TaskRunner(
                    connection,
                    out_dir=cfg.out_dir,
                    base_url=base_url,
                    signal=signal,
                    reporter=self.reporter,
                )
                scheduler = Scheduler(
                    runner,
                    max_concurrent=cfg.max_concurrent,
                    hard_fail=cfg.hard_fail,
                    reporter=self.reporter,
                    signal=signal,
                )
                return await scheduler.run(tasks)
            finally:
                finished.set()

    def _write_reports(self, outcome: RunOutcome) -> None:
        cfg = self.config
        if cfg.json_report is not None:
            path = render_json(outcome, cfg.json_report)
            logger.info("JSON report saved to %s", path)
        if cfg.html_report is not None:
            path = render_html(outcome, cfg.html_report)
            logger.info("HTML report saved to %s", path)


def _as_fatal(exc: Exception) -> Any:
    if isinstance(exc, FatalError):
        return exc
    fatal = FatalError(FatalErrorKind.UNEXPECTED, str(exc))
    fatal.__cause__ = exc
    return fatal


async def start_generation(
    config: SitePdfConfig, pathnames: Optional[Iterable[str]] = None, **kwargs: Any
) -> RunOutcome:
    """Запускает генерацию: ``await start_generation(cfg, ["/", "/about"])``."""
    return await Engine(config, **kwargs).generate(pathnames)
