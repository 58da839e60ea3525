"""Build collector — typed recording API over the event log.

The store, orchestrator, and debouncer each hold a collector and call its
``record_*`` methods; the collector stamps and stores the event.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

from kiln.observability.events import (
    BuildEvent,
    ContentLoaded,
    RebuildCancelled,
    RebuildCompleted,
    now_ns,
)
from kiln.observability.log import EventLog


class BuildCollector:
    """Unified event collector for a kiln process.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Content -----

    def record_load(self, kind: str, count: int, *, load_ms: float = 0.0) -> None:
        """Record a tier reload."""
        self._log.append(
            ContentLoaded(kind=kind, count=count, load_ms=load_ms, timestamp_ns=now_ns())
        )

    # ----- Output -----

    def record_build(
        self,
        kind: str,
        source: str,
        target: str,
        *,
        duration_ms: float = 0.0,
    ) -> None:
        """Record one written output file."""
        self._log.append(
            BuildEvent(
                kind=kind,  # type: ignore[arg-type]
                source=source,
                target=target,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Rebuild cycles -----

    def record_rebuild(
        self,
        strategy: str,
        *,
        trigger_count: int = 0,
        files_written: int = 0,
        duration_ms: float = 0.0,
    ) -> None:
        """Record the end of a build cycle."""
        self._log.append(
            RebuildCompleted(
                strategy=strategy,  # type: ignore[arg-type]
                trigger_count=trigger_count,
                files_written=files_written,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_cancelled(self, dropped_paths: int) -> None:
        """Record a superseded pending rebuild."""
        self._log.append(RebuildCancelled(dropped_paths=dropped_paths, timestamp_ns=now_ns()))
