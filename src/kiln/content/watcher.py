"""File watcher — feed filesystem changes to the rebuild debouncer.

Watches the content, template and asset directories plus the site config
file.  Each batch reported by watchfiles is handed to the debouncer as a
set of absolute paths; classification happens later, on the rebuild
worker.
"""

from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from watchfiles import Change, DefaultFilter, watch

if TYPE_CHECKING:
    from kiln.config import KilnConfig
    from kiln.reactive.debouncer import Debouncer

# watchfiles' own grouping window (ms) and poll step (ms)
WATCH_DEBOUNCE_MS = 50
WATCH_STEP_MS = 50


class SiteFilter(DefaultFilter):
    """DefaultFilter that also drops everything inside the output directory."""

    def __init__(self, config: KilnConfig) -> None:
        super().__init__()
        self._output = config.output_path

    def __call__(self, change: Change, path: str) -> bool:
        if Path(path).is_relative_to(self._output):
            return False
        return super().__call__(change, path)


def watch_targets(config: KilnConfig) -> tuple[Path, ...]:
    """Existing directories (and the config file) to watch.

    Missing directories are reported and skipped.

    """
    targets: list[Path] = []
    for path in dict.fromkeys(config.watch_paths):
        if path.is_dir():
            targets.append(path)
        else:
            print(f"  Warning: not watching missing directory {path}", file=sys.stderr)
    if config.config_path.is_file():
        targets.append(config.config_path)
    return tuple(targets)


class WatchLoop:
    """Runs watchfiles on a daemon thread and submits batches to a debouncer.

    Args:
        config: Site configuration.
        debouncer: Receives every non-empty batch of changed paths.

    """

    def __init__(self, config: KilnConfig, debouncer: Debouncer) -> None:
        self._config = config
        self._debouncer = debouncer
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        """Whether the watcher background thread is active."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start watching for file changes in a background thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._watch_loop,
            name="kiln-watcher",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the watcher to stop and wait for the thread to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None

    def dispatch(self, raw_changes: set[tuple[Change, str]]) -> None:
        """Forward one watchfiles batch to the debouncer."""
        paths = {Path(path_str) for _, path_str in raw_changes}
        if paths:
            self._debouncer.submit(paths)

    def _watch_loop(self) -> None:
        """Background thread: run watchfiles until stopped."""
        targets = watch_targets(self._config)
        if not targets:
            print("  Warning: nothing to watch", file=sys.stderr)
            return

        for raw_changes in watch(
            *targets,
            watch_filter=SiteFilter(self._config),
            stop_event=self._stop_event,
            debounce=WATCH_DEBOUNCE_MS,
            step=WATCH_STEP_MS,
        ):
            self.dispatch(raw_changes)
