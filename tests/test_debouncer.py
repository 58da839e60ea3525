"""Tests for kiln.reactive.debouncer — coalescing and serial rebuilds."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from kiln.observability import BuildCollector, EventLog, RebuildCancelled
from kiln.reactive.debouncer import Debouncer

QUIET = 0.05


class Recorder:
    """Rebuild callback that records every batch it receives."""

    def __init__(self, gate: threading.Event | None = None) -> None:
        self.calls: list[frozenset[Path]] = []
        self.started = threading.Event()
        self._gate = gate

    def __call__(self, paths: frozenset[Path]) -> int:
        self.started.set()
        if self._gate is not None:
            self._gate.wait(5)
        self.calls.append(paths)
        return len(self.calls)


class TestDebouncer:
    """Debouncer — supersede pending batches, never interrupt running ones."""

    def test_single_batch_runs(self) -> None:
        recorder = Recorder()
        debouncer = Debouncer(recorder, quiet_period=QUIET)
        future = debouncer.submit(["a.md"])
        assert future is not None
        assert future.result(timeout=5) == 1
        assert recorder.calls == [frozenset({Path("a.md")})]
        assert debouncer.completed == 1
        debouncer.shutdown()

    def test_burst_coalesces_to_last_batch(self) -> None:
        recorder = Recorder()
        log = EventLog()
        debouncer = Debouncer(recorder, quiet_period=0.3, collector=BuildCollector(log))
        first = debouncer.submit(["a.md"])
        second = debouncer.submit(["b.md"])
        assert second is not None
        second.result(timeout=5)
        assert first is not None
        assert first.cancelled() or first.result(timeout=5) is None
        assert recorder.calls == [frozenset({Path("b.md")})]
        assert len(log.query(event_type=RebuildCancelled)) == 1
        debouncer.shutdown()

    def test_empty_submit_ignored(self) -> None:
        debouncer = Debouncer(Recorder(), quiet_period=QUIET)
        assert debouncer.submit([]) is None
        assert not debouncer.has_pending
        debouncer.shutdown()

    def test_running_rebuild_not_interrupted(self) -> None:
        gate = threading.Event()
        recorder = Recorder(gate)
        debouncer = Debouncer(recorder, quiet_period=QUIET)
        first = debouncer.submit(["a.md"])
        assert recorder.started.wait(5)
        second = debouncer.submit(["b.md"])
        gate.set()
        assert first is not None
        assert second is not None
        assert first.result(timeout=5) == 1
        assert second.result(timeout=5) == 2
        assert recorder.calls == [frozenset({Path("a.md")}), frozenset({Path("b.md")})]
        debouncer.shutdown()

    def test_failure_reported_and_worker_survives(
        self, capsys: pytest.CaptureFixture[str],
    ) -> None:
        calls: list[frozenset[Path]] = []

        def rebuild(paths: frozenset[Path]) -> None:
            calls.append(paths)
            if len(calls) == 1:
                raise RuntimeError("boom")

        debouncer = Debouncer(rebuild, quiet_period=QUIET)
        failed = debouncer.submit(["a.md"])
        assert failed is not None
        assert failed.result(timeout=5) is None
        assert debouncer.completed == 0
        assert "Rebuild failed: RuntimeError: boom" in capsys.readouterr().err

        ok = debouncer.submit(["b.md"])
        assert ok is not None
        ok.result(timeout=5)
        assert debouncer.completed == 1
        debouncer.shutdown()

    def test_on_complete_called(self) -> None:
        results: list[int] = []
        debouncer = Debouncer(Recorder(), quiet_period=QUIET, on_complete=results.append)
        future = debouncer.submit(["a.md"])
        assert future is not None
        future.result(timeout=5)
        assert results == [1]
        debouncer.shutdown()

    def test_shutdown_cancels_pending(self) -> None:
        recorder = Recorder()
        debouncer = Debouncer(recorder, quiet_period=5.0)
        future = debouncer.submit(["a.md"])
        debouncer.shutdown(cancel_pending=True)
        assert future is not None
        assert future.cancelled() or future.result(timeout=5) is None
        assert recorder.calls == []
