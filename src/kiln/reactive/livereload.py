"""Live reload — build counter plus a polling client script for dev mode.

Rendered pages get a ``<script src="/__kiln__/livereload.js">`` tag before
``</body>``.  The script polls ``/__kiln__/reload`` and reloads the page
when the build version advances.
"""

from __future__ import annotations

import threading
import time
from typing import Any

from kiln.templating.html import insert_before_body_close

RELOAD_ENDPOINT = "/__kiln__/reload"
SCRIPT_ENDPOINT = "/__kiln__/livereload.js"

SCRIPT_TAG = f'<script src="{SCRIPT_ENDPOINT}"></script>\n'

LIVERELOAD_JS = """\
(function() {
  var version = null;
  function poll() {
    fetch('%s', {cache: 'no-store'})
      .then(function(r) { return r.json(); })
      .then(function(d) {
        if (version !== null && d.version !== version) {
          location.reload();
          return;
        }
        version = d.version;
        setTimeout(poll, 1000);
      })
      .catch(function() { setTimeout(poll, 2000); });
  }
  poll();
})();
""" % RELOAD_ENDPOINT


class LiveReloadState:
    """Monotonic build version and the time of the last successful build.

    Writers serialise through a lock; readers take plain attribute reads,
    which are atomic for ints and floats.

    """

    __slots__ = ("_lock", "timestamp", "version")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.version = 0
        self.timestamp = time.time()

    def mark_rebuilt(self) -> int:
        """Advance the version after a successful rebuild; returns the new version."""
        with self._lock:
            self.version += 1
            self.timestamp = time.time()
            return self.version

    def snapshot(self) -> dict[str, Any]:
        """Payload served by the reload endpoint."""
        return {"version": self.version, "timestamp": self.timestamp}


def inject_livereload(html: str) -> str:
    """Insert the live-reload script tag before ``</body>`` (or append it)."""
    return insert_before_body_close(html, SCRIPT_TAG)
