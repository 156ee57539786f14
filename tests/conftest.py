# File: tests/conftest.py
from pathlib import Path
from typing import Dict

import pytest

from fakes import BASE_URL, FakeConnection, FakeSite, Route
from site_pdf.abort import AbortSignal
from site_pdf.config import PageOptions
from site_pdf.pages import default_path_function
from site_pdf.render.task import TaskRunner


@pytest.fixture()
def routes() -> Dict[str, Route]:
    """
    Default routes of the fake site. Tests add their own entries.
    """
    return {
        "/": Route(),
        "/page": Route(),
        "/about": Route(),
        "/redirect": Route(302, "Found", location="/redirect-2"),
        "/redirect-2": Route(302, "Found", location="/final"),
        "/final": Route(),
        "/missing": Route(404, "Not Found", hang=True),
        "/broken": Route(failure="net::ERR_CONNECTION_REFUSED"),
        "/slow": Route(delay=0.05),
        "/forever": Route(delay=30),
    }


@pytest.fixture()
def site(routes) -> FakeSite:
    return FakeSite(routes)


@pytest.fixture()
def connection(site) -> FakeConnection:
    return FakeConnection(site)


@pytest.fixture()
def out_dir(tmp_path) -> Path:
    path = tmp_path / "dist"
    path.mkdir()
    return path


@pytest.fixture()
def signal() -> AbortSignal:
    return AbortSignal()


@pytest.fixture()
def runner(connection, out_dir, signal) -> TaskRunner:
    """
    TaskRunner over the fake connection, resolving locations against the fake site.
    """
    return TaskRunner(connection, out_dir=out_dir, base_url=BASE_URL, signal=signal)


@pytest.fixture()
def options() -> PageOptions:
    """
    Options as the page map would resolve them: one PDF per URL path.
    """
    return PageOptions(path=default_path_function("[pathname].pdf"), wait_until="load")
