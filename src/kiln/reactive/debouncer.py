"""Debouncer — coalesce bursts of file changes into one serial rebuild.

A single save often produces several filesystem events (write, rename,
metadata touch).  Each ``submit()`` supersedes the previous *pending*
rebuild, and a rebuild only starts once its quiet period has passed
without being superseded.  Superseded batches are dropped, not merged.

Rebuilds run one at a time on a dedicated single-worker executor.  A
rebuild that has started is never interrupted.
"""

from __future__ import annotations

import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from kiln._types import RebuildFunc
    from kiln.observability.collector import BuildCollector

DEFAULT_QUIET_PERIOD = 0.2


@dataclass(slots=True)
class PendingRebuild:
    """The single outstanding, not-yet-started rebuild."""

    paths: frozenset[Path]
    cancelled: threading.Event = field(default_factory=threading.Event)
    started: bool = False
    future: Future[Any] | None = None


class Debouncer:
    """Schedules rebuilds after a quiet period on a serial worker.

    Args:
        rebuild: Called with the changed paths of the winning batch.
        quiet_period: Seconds a batch must go unsuperseded before it runs.
        on_complete: Called with the rebuild's return value after it returns
            without raising.
        collector: Optional event collector for cancellation events.

    """

    def __init__(
        self,
        rebuild: RebuildFunc,
        *,
        quiet_period: float = DEFAULT_QUIET_PERIOD,
        on_complete: Callable[[Any], Any] | None = None,
        collector: BuildCollector | None = None,
    ) -> None:
        self._rebuild = rebuild
        self._quiet_period = quiet_period
        self._on_complete = on_complete
        self._collector = collector
        self._lock = threading.Lock()
        self._pending: PendingRebuild | None = None
        self._completed = 0
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="kiln-rebuild")

    @property
    def completed(self) -> int:
        """Number of rebuilds that finished without raising."""
        return self._completed

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def submit(self, paths: Iterable[Path | str]) -> Future[Any] | None:
        """Schedule a rebuild for *paths*, superseding any pending one.

        Returns:
            The future of the scheduled rebuild (resolving to the rebuild's
            return value, or None if it was superseded or failed), or None
            when *paths* is empty.

        """
        batch = frozenset(Path(p) for p in paths)
        if not batch:
            return None

        with self._lock:
            previous = self._pending
            if previous is not None and not previous.started:
                previous.cancelled.set()
                if previous.future is not None:
                    previous.future.cancel()
                if self._collector is not None:
                    self._collector.record_cancelled(len(previous.paths))

            pending = PendingRebuild(paths=batch)
            pending.future = self._executor.submit(self._run, pending)
            self._pending = pending
            return pending.future

    def _run(self, pending: PendingRebuild) -> Any:
        # Returns True when the token is set, i.e. a newer batch arrived.
        if pending.cancelled.wait(self._quiet_period):
            return None

        with self._lock:
            if pending.cancelled.is_set():
                return None
            pending.started = True
            if self._pending is pending:
                self._pending = None

        try:
            result = self._rebuild(pending.paths)
        except Exception as exc:
            print(f"  Rebuild failed: {type(exc).__name__}: {exc}", file=sys.stderr)
            return None

        self._completed += 1
        if self._on_complete is not None:
            self._on_complete(result)
        return result

    def shutdown(self, wait: bool = True, *, cancel_pending: bool = False) -> None:
        """Stop accepting work and (optionally) wait for queued rebuilds."""
        if cancel_pending:
            with self._lock:
                if self._pending is not None and not self._pending.started:
                    self._pending.cancelled.set()
                self._pending = None
        self._executor.shutdown(wait=wait, cancel_futures=cancel_pending)
