"""Content layer — discovery, parsing, caching and change classification.

Posts and pages are discovered on disk, parsed into documents, and cached
per kind by the ContentStore.  The watcher reports changed paths, which
the change classifier buckets for the build orchestrator.
"""

from kiln.content.changes import ChangeBatch, classify_changes
from kiln.content.models import ContentDocument, ContentKind, Page, Post
from kiln.content.store import ContentStore
from kiln.content.watcher import WatchLoop

__all__ = [
    "ChangeBatch",
    "ContentDocument",
    "ContentKind",
    "ContentStore",
    "Page",
    "Post",
    "WatchLoop",
    "classify_changes",
]
