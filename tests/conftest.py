"""Shared test fixtures for crudkit.

Provides reusable fixtures for faking the network, isolating config
directories, managing output state, and running CLI commands.  These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from crudkit.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches Rich consoles bound to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during a
    test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------


def json_response(data: Any, status_code: int = 200) -> httpx.Response:
    """Build an httpx.Response with a JSON body."""
    return httpx.Response(status_code=status_code, json=data)


class FakeApi:
    """Route table for :class:`httpx.MockTransport` that records every request.

    Routes map ``"METHOD /path"`` to either a response or a list of
    responses, served in order (the last one repeats).  Unknown routes get a
    404.
    """

    def __init__(self) -> None:
        self.routes: dict[str, list[Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, route: str, *responses: Any) -> None:
        self.routes[route] = list(responses)

    def calls(self, route: str) -> int:
        method, _, path = route.partition(" ")
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get(f"{request.method} {request.url.path}")
        if not queue:
            return json_response({"message": "not found"}, 404)
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        if isinstance(response, httpx.Response):
            # A response object must not be sent twice.
            return httpx.Response(response.status_code, headers=response.headers, content=response.content)
        return json_response(response)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def api() -> FakeApi:
    """An empty fake API; add routes with ``api.add("GET /users", [...])``."""
    return FakeApi()


@pytest.fixture
def body_of() -> Callable[[httpx.Request], Any]:
    """Decode the JSON body of a recorded request."""

    def _decode(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None

    return _decode


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user config.
    Clears all CRUDKIT_* environment variables and changes the working
    directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("crudkit.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["CRUDKIT_PROFILE", "CRUDKIT_BASE_URL"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
