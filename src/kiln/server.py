"""Dev server — serve the output directory with live-reload endpoints.

A threaded ``http.server`` serves files from the build output.  Two extra
routes back live reload:

- ``/__kiln__/reload`` returns the current build version as JSON.
- ``/__kiln__/livereload.js`` returns the polling client script.
"""

from __future__ import annotations

import json
import threading
from functools import partial
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from typing import TYPE_CHECKING, Any

from kiln.reactive.livereload import LIVERELOAD_JS, RELOAD_ENDPOINT, SCRIPT_ENDPOINT

if TYPE_CHECKING:
    from pathlib import Path

    from kiln.reactive.livereload import LiveReloadState


class DevRequestHandler(SimpleHTTPRequestHandler):
    """Static file handler that also answers the live-reload routes."""

    def __init__(self, *args: Any, state: LiveReloadState, **kwargs: Any) -> None:
        self._state = state
        super().__init__(*args, **kwargs)

    def do_GET(self) -> None:
        route = self.path.split("?", 1)[0]
        if route == RELOAD_ENDPOINT:
            self._send(json.dumps(self._state.snapshot()).encode(), "application/json")
            return
        if route == SCRIPT_ENDPOINT:
            self._send(LIVERELOAD_JS.encode(), "application/javascript")
            return
        super().do_GET()

    def _send(self, body: bytes, content_type: str) -> None:
        self.send_response(HTTPStatus.OK)
        self.send_header("Content-Type", f"{content_type}; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def end_headers(self) -> None:
        # Pages change on every rebuild
        self.send_header("Cache-Control", "no-cache")
        super().end_headers()

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        # Request logging drowns out rebuild output
        return


class DevServer:
    """Threaded HTTP server over *directory*.

    Args:
        directory: Build output directory to serve.
        state: Live-reload version source.
        host: Bind address.
        port: Bind port (0 picks a free port).

    """

    def __init__(
        self,
        directory: Path,
        state: LiveReloadState,
        *,
        host: str = "127.0.0.1",
        port: int = 3000,
    ) -> None:
        handler = partial(DevRequestHandler, directory=str(directory), state=state)
        self._httpd = ThreadingHTTPServer((host, port), handler)
        self._httpd.daemon_threads = True
        self._thread: threading.Thread | None = None

    @property
    def address(self) -> tuple[str, int]:
        host, port = self._httpd.server_address[:2]
        return str(host), int(port)

    @property
    def url(self) -> str:
        host, port = self.address
        return f"http://{host}:{port}"

    def serve_forever(self) -> None:
        """Serve on the calling thread until ``shutdown()``."""
        self._httpd.serve_forever()

    def start(self) -> None:
        """Serve on a background daemon thread."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._httpd.serve_forever, name="kiln-server", daemon=True,
        )
        self._thread.start()

    def shutdown(self) -> None:
        """Stop serving and release the socket."""
        if self._thread is not None:
            self._httpd.shutdown()
            self._thread.join(timeout=5.0)
            self._thread = None
        self._httpd.server_close()
