# File: tests/test_task_runner.py
"""Tests for TaskRunner: hooks, output files, cleanup of tabs and contexts."""
from __future__ import annotations

import pytest

from fakes import PDF_BYTES, FakeConnection, FakeSite
from site_pdf.config import PageOptions
from site_pdf.errors import FatalError, FatalErrorKind, PageError, PageErrorKind, RunAborted
from site_pdf.render.models import PageTask, TaskResult
from site_pdf.render.task import TaskRunner


@pytest.mark.asyncio()
async def test_writes_pdf(runner, options, connection, out_dir):
    result = await runner.run(PageTask("/about", options))
    assert isinstance(result, TaskResult)
    assert result.output_pathname == "/about.pdf"
    assert result.resolved_location == "/about"
    assert result.source_location is None
    assert (out_dir / "about.pdf").read_bytes() == PDF_BYTES
    assert connection.open_tabs == 0


@pytest.mark.asyncio()
async def test_index_page_name(runner, options, out_dir):
    result = await runner.run(PageTask("/", options))
    assert result.output_pathname == "/index.pdf"
    assert (out_dir / "index.pdf").exists()


@pytest.mark.asyncio()
async def test_redirect_sets_source_location(runner, options, out_dir):
    result = await runner.run(PageTask("/redirect", options))
    assert result.requested_location == "/redirect"
    assert result.resolved_location == "/final"
    assert result.source_location == "/redirect"
    assert result.output_pathname == "/final.pdf"


@pytest.mark.asyncio()
async def test_navigation_failure_is_returned(runner, options, connection, out_dir):
    result = await runner.run(PageTask("/missing", options))
    assert isinstance(result, PageError)
    assert result.status == 404
    assert connection.open_tabs == 0
    assert list(out_dir.iterdir()) == []


@pytest.mark.asyncio()
async def test_screen_media_and_hooks(runner, connection, out_dir):
    calls = []

    async def callback(tab):
        calls.append(("callback", tab.media))

    def path(url):
        calls.append(("path", url))
        return "docs/out.pdf"

    def pdf(tab):
        calls.append(("pdf",))
        return {"format": "A4", "path": "ignored.pdf"}

    options = PageOptions(screen=True, callback=callback, path=path, pdf=pdf, wait_until="load")
    result = await runner.run(PageTask("/page", options))
    assert result.output_pathname == "/docs/out.pdf"
    assert calls == [("callback", "screen"), ("path", "http://site.test/page"), ("pdf",)]
    assert connection.tabs[0].pdf_options == {"format": "A4"}
    assert (out_dir / "docs" / "out.pdf").exists()


@pytest.mark.parametrize("hook", ["callback", "path", "pdf"])
@pytest.mark.asyncio()
async def test_hook_failure(runner, options, connection, hook):
    def broken(_):
        raise RuntimeError("hook exploded")

    task = PageTask("/page", options.merged({hook: broken}))
    result = await runner.run(task)
    assert isinstance(result, PageError)
    assert result.kind is PageErrorKind.HOOK_FAILED
    assert result.hook == hook
    assert result.title == f"error when running {hook}: hook exploded"
    assert isinstance(result.cause, RuntimeError)
    assert connection.open_tabs == 0


@pytest.mark.parametrize("value", ["A4", 42, ["format", "A4"]])
@pytest.mark.asyncio()
async def test_pdf_hook_must_return_mapping(runner, options, connection, out_dir, value):
    result = await runner.run(PageTask("/page", options.merged({"pdf": lambda tab: value})))
    assert isinstance(result, PageError)
    assert result.kind is PageErrorKind.HOOK_FAILED
    assert result.hook == "pdf"
    assert isinstance(result.cause, TypeError)
    assert list(out_dir.iterdir()) == []
    assert connection.open_tabs == 0


@pytest.mark.asyncio()
async def test_pdf_hook_may_return_none(runner, options, connection):
    result = await runner.run(PageTask("/page", options.merged({"pdf": lambda tab: None})))
    assert isinstance(result, TaskResult)
    assert connection.tabs[0].pdf_options == {}


@pytest.mark.asyncio()
async def test_directory_output_path(runner, options, out_dir):
    (out_dir / "sub").mkdir()
    for path in ("sub/", "sub"):
        result = await runner.run(PageTask("/page", options.merged({"path": path})))
        assert isinstance(result, PageError)
        assert result.kind is PageErrorKind.PATH_IS_DIRECTORY


@pytest.mark.asyncio()
async def test_traversal_stays_in_out_dir(runner, options, out_dir):
    result = await runner.run(PageTask("/page", options.merged({"path": "../../escape.pdf"})))
    assert result.output_pathname == "/escape.pdf"
    assert (out_dir / "escape.pdf").exists()


@pytest.mark.asyncio()
async def test_collision_gets_suffix(runner, options, out_dir):
    (out_dir / "page.pdf").write_bytes(b"existing")
    result = await runner.run(PageTask("/page", options))
    assert result.output_pathname == "/page-1.pdf"
    assert (out_dir / "page.pdf").read_bytes() == b"existing"


@pytest.mark.asyncio()
async def test_exact_path_collision_fails(runner, options, out_dir):
    (out_dir / "page.pdf").write_bytes(b"existing")
    result = await runner.run(PageTask("/page", options.merged({"exact_path": True})))
    assert isinstance(result, PageError)
    assert result.kind is PageErrorKind.WRITE_FAILED
    assert result.title == "output file already exists"
    assert (out_dir / "page.pdf").read_bytes() == b"existing"


@pytest.mark.asyncio()
async def test_partial_file_removed_on_render_error(runner, options, connection, out_dir):
    connection.on_new_tab = lambda tab: setattr(tab, "render_error", OSError("renderer crashed"))
    result = await runner.run(PageTask("/page", options))
    assert isinstance(result, PageError)
    assert result.kind is PageErrorKind.WRITE_FAILED
    assert not (out_dir / "page.pdf").exists()
    assert connection.open_tabs == 0


@pytest.mark.asyncio()
async def test_abort_between_chunks_removes_partial_file(runner, options, connection, out_dir, signal):
    reason = FatalError(FatalErrorKind.CONNECTION_LOST, "Fatal error: Browser disconnected unexpectedly")
    connection.on_new_tab = lambda tab: setattr(tab, "between_chunks", lambda: signal.abort(reason))
    with pytest.raises(RunAborted) as info:
        await runner.run(PageTask("/page", options))
    assert info.value.reason is reason
    assert list(out_dir.iterdir()) == []
    assert connection.open_tabs == 0


@pytest.mark.asyncio()
async def test_isolated_context_is_closed(runner, options, connection):
    result = await runner.run(PageTask("/page", options.merged({"isolated": True})))
    assert isinstance(result, TaskResult)
    assert len(connection.contexts) == 1
    assert connection.contexts[0].closed
    assert connection.open_contexts == 0
    assert connection.open_tabs == 0


@pytest.mark.asyncio()
async def test_close_failure_is_not_a_task_failure(runner, options, connection):
    connection.on_new_tab = lambda tab: setattr(tab, "close_error", RuntimeError("already gone"))
    result = await runner.run(PageTask("/page", options))
    assert isinstance(result, TaskResult)


@pytest.mark.asyncio()
async def test_dead_connection_is_fatal(runner, options, connection):
    connection.disconnect()
    with pytest.raises(FatalError) as info:
        await runner.run(PageTask("/page", options))
    assert info.value.kind is FatalErrorKind.CONNECTION_LOST


@pytest.mark.asyncio()
async def test_tab_creation_failure_is_fatal(out_dir, options):
    class NoTabs(FakeConnection):
        async def new_tab(self):
            raise RuntimeError("too many tabs")

    runner = TaskRunner(NoTabs(FakeSite()), out_dir=out_dir)
    with pytest.raises(FatalError) as info:
        await runner.run(PageTask("http://site.test/page", options))
    assert info.value.kind is FatalErrorKind.TAB_CREATION_FAILED
    assert isinstance(info.value.__cause__, RuntimeError)
