"""Tests for kiln.reactive.livereload and the dev server."""

from __future__ import annotations

import json
import urllib.request
from collections.abc import Iterator
from pathlib import Path

import pytest

from kiln.reactive.livereload import (
    RELOAD_ENDPOINT,
    SCRIPT_ENDPOINT,
    SCRIPT_TAG,
    LiveReloadState,
    inject_livereload,
)
from kiln.server import DevServer
from tests.conftest import write


class TestLiveReloadState:
    """LiveReloadState — monotonic build version."""

    def test_starts_at_zero(self) -> None:
        assert LiveReloadState().version == 0

    def test_mark_rebuilt_increments(self) -> None:
        state = LiveReloadState()
        before = state.timestamp
        assert state.mark_rebuilt() == 1
        assert state.mark_rebuilt() == 2
        assert state.timestamp >= before

    def test_snapshot(self) -> None:
        state = LiveReloadState()
        state.mark_rebuilt()
        snapshot = state.snapshot()
        assert snapshot["version"] == 1
        assert isinstance(snapshot["timestamp"], float)


class TestInjectLivereload:
    """inject_livereload — script placement."""

    def test_before_body_close(self) -> None:
        assert inject_livereload("<body>x</body>") == f"<body>x{SCRIPT_TAG}</body>"

    def test_appended_without_body(self) -> None:
        assert inject_livereload("<p>x</p>") == f"<p>x</p>{SCRIPT_TAG}"


@pytest.fixture
def server(tmp_path: Path) -> Iterator[tuple[DevServer, LiveReloadState]]:
    write(tmp_path / "index.html", "<p>home</p>")
    state = LiveReloadState()
    dev_server = DevServer(tmp_path, state, port=0)
    dev_server.start()
    yield dev_server, state
    dev_server.shutdown()


def _get(url: str) -> tuple[str, str]:
    with urllib.request.urlopen(url, timeout=5) as response:  # noqa: S310
        return response.headers.get("Content-Type", ""), response.read().decode()


class TestDevServer:
    """DevServer — static files plus the reload endpoints."""

    def test_serves_output(self, server: tuple[DevServer, LiveReloadState]) -> None:
        dev_server, _ = server
        _, body = _get(f"{dev_server.url}/")
        assert body == "<p>home</p>"

    def test_reload_endpoint(self, server: tuple[DevServer, LiveReloadState]) -> None:
        dev_server, state = server
        state.mark_rebuilt()
        content_type, body = _get(dev_server.url + RELOAD_ENDPOINT)
        assert content_type.startswith("application/json")
        assert json.loads(body)["version"] == 1

    def test_script_endpoint(self, server: tuple[DevServer, LiveReloadState]) -> None:
        dev_server, _ = server
        content_type, body = _get(dev_server.url + SCRIPT_ENDPOINT)
        assert content_type.startswith("application/javascript")
        assert RELOAD_ENDPOINT in body
