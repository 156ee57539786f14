# File: tests/test_cli.py
"""Тесты для CLI (`site_pdf/cli.py`) с использованием click.testing.CliRunner.
Проверяют команды `generate`, `config`, `--version`, а также обработку ошибок.
"""
import importlib
import json

import pytest
from click.testing import CliRunner
from site_pdf.cli import cli
from site_pdf.errors import PageError, PageErrorKind
from site_pdf.render.models import TaskResult
from site_pdf.scheduler import RunOutcome

# `site_pdf/__init__.py` re-exports the `cli` Group, shadowing the submodule attribute.
cli_module = importlib.import_module("site_pdf.cli")


@pytest.fixture()
def cfg_file(tmp_path):
    (tmp_path / "dist").mkdir()
    path = tmp_path / "site_pdf.yaml"
    path.write_text("out_dir: dist\nbase_url: http://localhost:4321\n", encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def calls(monkeypatch):
    """Патчим start_generation, чтобы не запускать браузер."""
    seen = []

    async def fake_generation(cfg, pathnames=None):
        seen.append((cfg, pathnames))
        result = TaskResult(
            requested_location="/",
            resolved_location="http://localhost:4321/",
            output_pathname="/index.pdf",
            output_path=cfg.out_dir / "index.pdf",
        )
        return RunOutcome(requested=1, results=[result])

    monkeypatch.setattr(cli_module, "start_generation", fake_generation)
    return seen


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "SitePDF" in result.output


def test_show_config(cfg_file):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["base_url"] == "http://localhost:4321/"
    assert data["hard_fail"] is False


def test_generate(cfg_file, calls):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "generate"])
    assert result.exit_code == 0
    assert "Generated 1 of 1 files" in result.output
    cfg, pathnames = calls[0]
    assert pathnames is None
    assert cfg.hard_fail is False


def test_generate_overrides(cfg_file, calls, tmp_path):
    other = tmp_path / "other"
    other.mkdir()
    report = tmp_path / "run.json"
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "--config", str(cfg_file), "generate", "/", "/about",
            "--out-dir", str(other), "--max-concurrent", "3", "--hard-fail", "--json", str(report),
        ],
    )
    assert result.exit_code == 0
    assert f"JSON report: {report}" in result.output
    cfg, pathnames = calls[0]
    assert pathnames == ["/", "/about"]
    assert cfg.out_dir == other
    assert cfg.max_concurrent == 3
    assert cfg.hard_fail is True
    assert cfg.json_report == report


def test_generate_rejects_zero_concurrency(cfg_file):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "generate", "--max-concurrent", "0"])
    assert result.exit_code != 0


def test_generate_fatal_exit_code(cfg_file, monkeypatch):
    async def failing(cfg, pathnames=None):
        error = PageError("/missing", "404 Not Found", kind=PageErrorKind.NAVIGATION_FAILED, status=404)
        return RunOutcome(requested=2, fatal=error)

    monkeypatch.setattr(cli_module, "start_generation", failing)
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "generate"])
    assert result.exit_code == 1
    assert "Generated 0 of 2 files" in result.output


def test_generate_unexpected_error(cfg_file, monkeypatch):
    async def broken(cfg, pathnames=None):
        raise RuntimeError("error when setting up server: port in use")

    monkeypatch.setattr(cli_module, "start_generation", broken)
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "generate"])
    assert result.exit_code == 1


def test_bad_config(tmp_path):
    cfg_file = tmp_path / "broken.yaml"
    cfg_file.write_text("out_dir: missing-dir\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1
