"""Event log — bounded, thread-safe record of build activity.

The watcher thread, the rebuild worker and the initial build all append
here; tests and the dev session read it back to see what each cycle did.

Thread Safety:
    Appends and snapshots happen under a ``threading.Lock``.  Filtering
    runs on a snapshot, outside the lock.

"""

import threading
from collections import Counter, deque
from collections.abc import Iterable
from typing import Any

from kiln.observability.events import StackEvent


def _touches(event: StackEvent, fragment: str) -> bool:
    """Whether *fragment* occurs in the event's source or target path."""
    source = getattr(event, "source", "")
    target = getattr(event, "target", "")
    return fragment in source or fragment in target


class EventLog:
    """Ring buffer of build events; the oldest are dropped when full.

    Args:
        max_events: Capacity of the buffer.

    """

    __slots__ = ("_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[StackEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: StackEvent) -> None:
        with self._lock:
            self._events.append(event)

    def append_many(self, events: Iterable[StackEvent]) -> None:
        batch = list(events)
        with self._lock:
            self._events.extend(batch)

    def _snapshot(self) -> list[StackEvent]:
        with self._lock:
            return list(self._events)

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        path: str | None = None,
        limit: int = 100,
    ) -> list[StackEvent]:
        """Return up to *limit* matching events, newest first.

        Args:
            event_type: Keep only instances of this class.
            since_ns: Keep only events stamped at or after this time.
            path: Keep only events whose ``source`` or ``target`` contains
                this substring.  Events with neither never match.
            limit: Maximum number of events returned.

        """
        found: list[StackEvent] = []
        for event in reversed(self._snapshot()):
            if len(found) >= limit:
                break
            if event_type is not None and not isinstance(event, event_type):
                continue
            if event.timestamp_ns < since_ns:
                continue
            if path is not None and not _touches(event, path):
                continue
            found.append(event)
        return found

    def recent(self, n: int = 20) -> list[StackEvent]:
        """The last *n* events, oldest first."""
        return self._snapshot()[-n:]

    def clear(self) -> int:
        """Drop every event; returns how many there were."""
        with self._lock:
            dropped = len(self._events)
            self._events.clear()
        return dropped

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def stats(self) -> dict[str, Any]:
        """Totals per event class name."""
        events = self._snapshot()
        return {
            "total": len(events),
            "max_events": self._max_events,
            "by_type": dict(Counter(type(event).__name__ for event in events)),
        }
