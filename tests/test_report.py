# File: tests/test_report.py
"""Tests for run reports (JSON, HTML) and the logging reporter."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from site_pdf.config import PageOptions
from site_pdf.errors import FatalError, FatalErrorKind, PageError, PageErrorKind
from site_pdf.render.models import PageTask, TaskResult
from site_pdf.report import render_html, render_json, report_data
from site_pdf.reporter import LoggingReporter
from site_pdf.scheduler import RunOutcome


@pytest.fixture()
def outcome(tmp_path) -> RunOutcome:
    results = [
        TaskResult(
            requested_location="/redirect",
            resolved_location="http://site.test/final",
            output_path=tmp_path / "final.pdf",
            output_pathname="/final.pdf",
            source_location="http://site.test/redirect",
        ),
        TaskResult(
            requested_location="/notes",
            resolved_location="http://site.test/notes",
            output_path=tmp_path / "notes.txt",
            output_pathname="/notes.txt",
        ),
    ]
    failures = [
        PageError("http://site.test/missing", "404 Not Found", status=404),
        PageError(
            "http://site.test/hooked",
            "error when running callback: boom",
            kind=PageErrorKind.HOOK_FAILED,
            hook="callback",
        ),
    ]
    return RunOutcome(requested=4, results=results, failures=failures)


def test_report_data(outcome):
    data = report_data(outcome)
    assert data["requested"] == 4
    assert data["generated"] == 2
    assert data["not_generated"] == 2
    assert data["results"][0] == {
        "location": "http://site.test/final",
        "requested_location": "/redirect",
        "source_location": "http://site.test/redirect",
        "output": "/final.pdf",
    }
    assert data["failures"][1]["kind"] == "hook_failed"
    assert data["failures"][1]["hook"] == "callback"
    assert data["fatal"] is None


def test_render_json(outcome, tmp_path):
    path = render_json(outcome, tmp_path / "nested" / "run.json")
    assert path.exists()
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["failures"][0]["status"] == 404
    assert data["failures"][0]["type"] == "PageError"


def test_render_json_fatal(tmp_path):
    fatal = FatalError(FatalErrorKind.CONNECTION_LOST, "browser connection lost")
    data = json.loads(render_json(RunOutcome(requested=1, fatal=fatal), tmp_path / "run.json").read_text())
    assert data["fatal"] == {
        "type": "FatalError",
        "message": "browser connection lost",
        "kind": "connection_lost",
    }


def test_render_html(outcome, tmp_path):
    path = render_html(outcome, tmp_path / "run.html")
    html = path.read_text(encoding="utf-8")
    assert "2 of 4 files generated" in html
    assert "http://site.test/redirect" in html
    assert "error when running callback: boom" in html
    assert "Run aborted" not in html


def test_render_html_custom_template(outcome, tmp_path):
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "report.html.j2").write_text("{{ generated }}/{{ requested }}", encoding="utf-8")
    path = render_html(outcome, tmp_path / "run.html", template_dir=templates)
    assert Path(path).read_text(encoding="utf-8") == "2/4"


def test_logging_reporter(outcome, caplog):
    reporter = LoggingReporter(logging.getLogger("site_pdf.tests"))
    task = PageTask("/redirect", PageOptions(max_retries=1), attempt=2)
    with caplog.at_level(logging.DEBUG, logger="site_pdf.tests"):
        reporter.attempt_succeeded(task, outcome.results[0], 0.25, 1, 4)
        reporter.attempt_failed(task, outcome.failures[0], 0.01, will_retry=False)
        reporter.run_finished(outcome)

    messages = [r.getMessage() for r in caplog.records]
    assert "▶ http://site.test/final ← http://site.test/redirect (attempt 2/2)" in messages
    assert "  └─ /final.pdf (+250ms) (1/4)" in messages
    assert "✖ http://site.test/missing (404 Not Found) (+10ms) (attempt 2/2)" in messages
    assert "1 file generated without .pdf extension" in messages
    assert "Failed to generate 2 files" in messages
