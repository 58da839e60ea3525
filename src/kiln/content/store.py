"""Content store — cached posts and pages with whole-tier invalidation.

Each tier (posts, pages) is either absent or a complete, sorted list.
There is no single-document read path: a cache miss or an invalidation
re-scans the whole tier so that ordering is always recomputed from disk.
"""

from __future__ import annotations

import sys
import time
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from kiln._errors import ContentError
from kiln.content.discovery import discover
from kiln.content.models import ContentKind, Page, Post, page_sort_key, post_sort_key
from kiln.content.parser import TEMPLATE_SOURCE_SUFFIX, ContentParser

if TYPE_CHECKING:
    from kiln.config import KilnConfig
    from kiln.content.discovery import DiscoveredFile
    from kiln.content.models import ContentDocument
    from kiln.observability.collector import BuildCollector

_DATE_KEYS = ("published", "date")
_NAV_ORDER_KEYS = ("nav_order", "navOrder")


def _to_datetime(value: Any) -> datetime | None:
    """Coerce a front-matter date value to a naive local datetime."""
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        try:
            result = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if result.tzinfo is not None:
        result = result.astimezone().replace(tzinfo=None)
    return result


def _to_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


class ContentStore:
    """Loads and caches content documents per kind.

    Not thread-safe on its own; the build orchestrator holds a lock around
    every call.

    Args:
        config: Site configuration (content roots).
        parser: Content parser; a fresh one is created if omitted.
        collector: Optional event collector for reload events.

    """

    def __init__(
        self,
        config: KilnConfig,
        parser: ContentParser | None = None,
        collector: BuildCollector | None = None,
    ) -> None:
        self._config = config
        self._parser = parser if parser is not None else ContentParser()
        self._collector = collector
        self._tiers: dict[ContentKind, list[Any] | None] = {
            ContentKind.POST: None,
            ContentKind.PAGE: None,
        }

    @property
    def parser(self) -> ContentParser:
        return self._parser

    def is_cached(self, kind: ContentKind) -> bool:
        """True if the tier for *kind* is populated."""
        return self._tiers[kind] is not None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load_all(self, kind: ContentKind, use_cache: bool = True) -> list[Any]:
        """Return every document of *kind*, sorted.

        Posts are ordered by date, newest first.  Pages are ordered by
        ``nav_order`` (missing values last), then title, case-insensitive.
        Files that cannot be read or parsed are reported and left out.

        Args:
            kind: Which tier to load.
            use_cache: Return the cached tier when populated.

        """
        cached = self._tiers[kind]
        if use_cache and cached is not None:
            return cached

        t0 = time.perf_counter()
        docs = []
        for found in discover(kind, self._config):
            try:
                docs.append(self._build_document(kind, found))
            except ContentError as exc:
                print(f"  Warning: skipping {found.source}: {exc}", file=sys.stderr)
        if kind is ContentKind.POST:
            docs.sort(key=post_sort_key, reverse=True)
        else:
            docs.sort(key=page_sort_key)
        self._tiers[kind] = docs

        if self._collector is not None:
            elapsed = (time.perf_counter() - t0) * 1000
            self._collector.record_load(kind.value, len(docs), load_ms=elapsed)
        return docs

    def load_all_posts(self, use_cache: bool = True) -> list[Post]:
        return self.load_all(ContentKind.POST, use_cache)

    def load_all_pages(self, use_cache: bool = True) -> list[Page]:
        return self.load_all(ContentKind.PAGE, use_cache)

    def load_by_id(
        self,
        kind: ContentKind,
        doc_id: str,
        use_cache: bool = True,
    ) -> ContentDocument | None:
        """Look up one document; a cache miss reloads the whole tier."""
        if use_cache:
            cached = self._tiers[kind]
            if cached is not None:
                for doc in cached:
                    if doc.id == doc_id:
                        return doc
        for doc in self.load_all(kind, use_cache=False):
            if doc.id == doc_id:
                return doc
        return None

    def invalidate(self, kind: ContentKind, doc_id: str) -> ContentDocument | None:
        """Drop the entire tier for *kind*, reload it, and return *doc_id*."""
        self._tiers[kind] = None
        return self.load_by_id(kind, doc_id, use_cache=False)

    def clear_cache(self) -> None:
        """Drop both tiers."""
        for kind in self._tiers:
            self._tiers[kind] = None

    # ------------------------------------------------------------------
    # Document construction
    # ------------------------------------------------------------------

    def _build_document(self, kind: ContentKind, found: DiscoveredFile) -> ContentDocument:
        parsed = self._parser.parse(found.source)
        metadata = parsed.metadata
        title = str(metadata.get("title") or found.source.stem)
        is_template = found.source.suffix.lower() == TEMPLATE_SOURCE_SUFFIX

        if kind is ContentKind.POST:
            published = None
            for key in _DATE_KEYS:
                if key in metadata:
                    published = _to_datetime(metadata[key])
                    if published is None:
                        print(
                            f"  Warning: unreadable {key!r} in {found.source}, using file time",
                            file=sys.stderr,
                        )
                    break
            if published is None:
                published = datetime.fromtimestamp(found.source.stat().st_mtime)
            return Post(
                id=found.doc_id,
                title=title,
                content=parsed.body,
                metadata=metadata,
                output_path=found.output_path,
                is_template_source=is_template,
                date=published,
            )

        nav_order = None
        for key in _NAV_ORDER_KEYS:
            if key in metadata:
                nav_order = _to_int(metadata[key])
                break
        return Page(
            id=found.doc_id,
            title=title,
            content=parsed.body,
            metadata=metadata,
            output_path=found.output_path,
            is_template_source=is_template,
            nav_order=nav_order,
        )
