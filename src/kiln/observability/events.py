"""Unified event model for build observability.

Defines event types for content loading, output writes, and rebuild
cycles driven by the watcher.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal


# ---------------------------------------------------------------------------
# Content events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ContentLoaded:
    """A content tier was (re)loaded from disk.

    Attributes:
        kind: Which tier was loaded (``"post"`` or ``"page"``).
        count: Number of documents in the reloaded tier.
        load_ms: Time spent scanning and parsing in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    kind: str
    count: int
    load_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Build events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BuildEvent:
    """A single output artifact was written.

    Attributes:
        kind: The type of build action.
        source: Source file path (or description).
        target: Output file path.
        duration_ms: Time taken in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    kind: Literal["render", "copy_asset", "write_feed", "write_datasource"]
    source: str
    target: str
    duration_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Rebuild cycle events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RebuildCompleted:
    """A build cycle finished.

    Attributes:
        strategy: ``"full"``, ``"incremental"`` or ``"skipped"``.
        trigger_count: Number of changed paths that triggered the cycle.
        files_written: Number of output files written.
        duration_ms: Wall-clock time of the cycle.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    strategy: Literal["full", "incremental", "skipped"]
    trigger_count: int
    files_written: int
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class RebuildCancelled:
    """A pending rebuild was superseded before it started.

    Attributes:
        dropped_paths: Number of changed paths discarded with it.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    dropped_paths: int
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type StackEvent = (
    ContentLoaded
    | BuildEvent
    | RebuildCompleted
    | RebuildCancelled
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
