"""Build observability — structured events for loads, writes and rebuilds.

All events are frozen dataclasses with nanosecond timestamps, safe for
concurrent production from the watcher, the rebuild worker, and the dev
server.

Quick Start:
    >>> from kiln.observability import BuildCollector, EventLog
    >>> log = EventLog()
    >>> collector = BuildCollector(log)
    >>> collector.record_load("post", 3, load_ms=1.5)
    >>> len(log)
    1

"""

from kiln.observability.collector import BuildCollector
from kiln.observability.events import (
    BuildEvent,
    ContentLoaded,
    RebuildCancelled,
    RebuildCompleted,
    StackEvent,
    now_ns,
)
from kiln.observability.log import EventLog

__all__ = [
    "BuildCollector",
    "BuildEvent",
    "ContentLoaded",
    "EventLog",
    "RebuildCancelled",
    "RebuildCompleted",
    "StackEvent",
    "now_ns",
]
