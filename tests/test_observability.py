"""Tests for kiln.observability — events, log, collector."""

from __future__ import annotations

import threading

import pytest

from kiln.observability import (
    BuildCollector,
    BuildEvent,
    ContentLoaded,
    EventLog,
    RebuildCancelled,
    RebuildCompleted,
    now_ns,
)


def _build_event(
    source: str = "hello",
    target: str = "/out/hello/index.html",
    timestamp_ns: int | None = None,
) -> BuildEvent:
    return BuildEvent(
        kind="render",
        source=source,
        target=target,
        duration_ms=1.0,
        timestamp_ns=now_ns() if timestamp_ns is None else timestamp_ns,
    )


class TestEvents:
    """Event dataclasses are frozen."""

    def test_frozen(self) -> None:
        event = ContentLoaded(kind="post", count=1, load_ms=0.1, timestamp_ns=now_ns())
        with pytest.raises(AttributeError):
            event.count = 2  # type: ignore[misc]

    def test_now_ns_monotonic(self) -> None:
        assert now_ns() <= now_ns()


class TestEventLog:
    """EventLog — bounded, queryable store."""

    def test_append_and_len(self) -> None:
        log = EventLog()
        log.append(_build_event())
        log.append_many([_build_event(), _build_event()])
        assert len(log) == 3

    def test_bounded(self) -> None:
        log = EventLog(max_events=2)
        for i in range(5):
            log.append(_build_event(source=str(i)))
        assert [e.source for e in log.recent()] == ["3", "4"]

    def test_query_by_type_most_recent_first(self) -> None:
        log = EventLog()
        log.append(_build_event(source="a"))
        log.append(RebuildCancelled(dropped_paths=1, timestamp_ns=now_ns()))
        log.append(_build_event(source="b"))
        events = log.query(event_type=BuildEvent)
        assert [e.source for e in events] == ["b", "a"]

    def test_query_by_path(self) -> None:
        log = EventLog()
        log.append(_build_event(source="hello"))
        log.append(_build_event(source="other", target="/out/other/index.html"))
        log.append(RebuildCancelled(dropped_paths=1, timestamp_ns=now_ns()))
        assert [e.source for e in log.query(path="hello")] == ["hello"]

    def test_query_since_and_limit(self) -> None:
        log = EventLog()
        log.append(_build_event(source="old", timestamp_ns=100))
        log.append(_build_event(source="new1", timestamp_ns=200))
        log.append(_build_event(source="new2", timestamp_ns=300))
        assert [e.source for e in log.query(since_ns=200)] == ["new2", "new1"]
        assert len(log.query(limit=1)) == 1

    def test_clear_and_stats(self) -> None:
        log = EventLog(max_events=10)
        log.append(_build_event())
        log.append(RebuildCancelled(dropped_paths=1, timestamp_ns=now_ns()))
        stats = log.stats()
        assert stats == {
            "total": 2,
            "max_events": 10,
            "by_type": {"BuildEvent": 1, "RebuildCancelled": 1},
        }
        assert log.clear() == 2
        assert len(log) == 0

    def test_concurrent_appends(self) -> None:
        log = EventLog()

        def worker() -> None:
            for _ in range(200):
                log.append(_build_event())

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(log) == 800


class TestBuildCollector:
    """BuildCollector — typed record_* helpers."""

    def test_default_log(self) -> None:
        assert isinstance(BuildCollector().log, EventLog)

    def test_records(self) -> None:
        log = EventLog()
        collector = BuildCollector(log)
        collector.record_load("page", 4, load_ms=2.0)
        collector.record_build("write_feed", "posts", "/out/feed.xml", duration_ms=1.0)
        collector.record_rebuild("incremental", trigger_count=2, files_written=3)
        collector.record_cancelled(5)

        loaded, built, completed, cancelled = log.recent()
        assert isinstance(loaded, ContentLoaded)
        assert loaded.count == 4
        assert isinstance(built, BuildEvent)
        assert built.kind == "write_feed"
        assert isinstance(completed, RebuildCompleted)
        assert completed.strategy == "incremental"
        assert completed.files_written == 3
        assert isinstance(cancelled, RebuildCancelled)
        assert cancelled.dropped_paths == 5
