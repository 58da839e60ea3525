"""Build orchestrator — full and incremental builds of the output tree.

Routing for an incremental batch (first matching row wins):

==================  =====================================================
config changed      clear the content cache, full build
templates changed   full build
posts changed       per post: invalidate, re-render it, home, post index,
                    feed, and the datasource bundle
pages changed       per page: invalidate, re-render it, datasource bundle
assets changed      copy just those files
nothing relevant    no-op
==================  =====================================================

A document that disappears between detection and rendering is reported
and skipped.  Rendering failures are reported per document and never
abort the rest of the build.
"""

from __future__ import annotations

import sys
import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from kiln._errors import BuildError, TemplateError
from kiln.content.changes import ChangeBatch, classify_changes
from kiln.content.discovery import id_for_path
from kiln.content.models import ContentKind
from kiln.content.store import ContentStore
from kiln.export.assets import AssetManager
from kiln.export.datasource import DatasourceGenerator
from kiln.export.feed import FeedGenerator
from kiln.export.output import ExportedFile, url_to_filepath, write_text_atomic
from kiln.reactive.livereload import inject_livereload
from kiln.templating.composer import TemplateComposer

if TYPE_CHECKING:
    from collections.abc import Callable

    from kiln._types import BuildStrategy
    from kiln.config import KilnConfig
    from kiln.content.models import Page, Post
    from kiln.observability.collector import BuildCollector

# URL-relative path of the post listing
POSTS_INDEX_PATH = "posts"

_PAGE_TYPES = frozenset({"post", "page", "home", "index"})


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Outcome of one build cycle.

    Attributes:
        strategy: ``"full"``, ``"incremental"`` or ``"skipped"``.
        files: Every file written during the cycle.
        errors: One message per document or file that failed.
        duration_ms: Wall-clock time of the cycle.

    """

    strategy: BuildStrategy
    files: tuple[ExportedFile, ...] = ()
    errors: tuple[str, ...] = ()
    duration_ms: float = 0.0

    @property
    def total_pages(self) -> int:
        return sum(1 for f in self.files if f.source_type in _PAGE_TYPES)

    @property
    def total_assets(self) -> int:
        return sum(1 for f in self.files if f.source_type == "asset")

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(slots=True)
class _Cycle:
    """Mutable accumulator for one build cycle."""

    files: list[ExportedFile] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class BuildOrchestrator:
    """Owns the content store and drives rendering, feed, datasource and assets.

    All builds are serialised by a re-entrant lock, so direct callers and
    the rebuild worker never build concurrently.

    Args:
        config: Site configuration.
        collector: Optional event collector.
        inject_livereload: Add the live-reload script to rendered pages.

    """

    def __init__(
        self,
        config: KilnConfig,
        *,
        collector: BuildCollector | None = None,
        inject_livereload: bool = False,
    ) -> None:
        self._config = config
        self._collector = collector
        self._inject_livereload = inject_livereload
        self._lock = threading.RLock()
        self._store = ContentStore(config, collector=collector)
        self._composer = TemplateComposer(config, parser=self._store.parser)
        self._assets = AssetManager(config, collector=collector)
        self._feed = FeedGenerator(config, collector=collector)
        self._datasource = DatasourceGenerator(config, self._store.parser, collector=collector)

    @property
    def store(self) -> ContentStore:
        return self._store

    @property
    def composer(self) -> TemplateComposer:
        return self._composer

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def build_full(self) -> BuildResult:
        """Render everything, write the feed and datasource, copy all assets."""
        with self._lock:
            return self._timed("full", 0, self._full)

    def build_incremental(self, changes: ChangeBatch | Iterable[Path | str]) -> BuildResult:
        """Rebuild only what *changes* affects (see module docstring)."""
        batch = changes if isinstance(changes, ChangeBatch) else classify_changes(changes, self._config)
        trigger_count = len(batch.paths)

        with self._lock:
            if batch.config_changed:
                self._store.clear_cache()
                self._composer.reload()
                return self._timed("full", trigger_count, self._full)
            if batch.template_files:
                self._composer.reload()
                return self._timed("full", trigger_count, self._full)
            if batch.is_empty:
                return self._timed("skipped", trigger_count, lambda cycle: None)
            return self._timed(
                "incremental", trigger_count, lambda cycle: self._incremental(batch, cycle),
            )

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _timed(
        self,
        strategy: BuildStrategy,
        trigger_count: int,
        run: Callable[[_Cycle], None],
    ) -> BuildResult:
        t0 = time.perf_counter()
        cycle = _Cycle()
        run(cycle)
        elapsed = (time.perf_counter() - t0) * 1000
        if self._collector is not None:
            self._collector.record_rebuild(
                strategy,
                trigger_count=trigger_count,
                files_written=len(cycle.files),
                duration_ms=elapsed,
            )
        return BuildResult(
            strategy=strategy,
            files=tuple(cycle.files),
            errors=tuple(cycle.errors),
            duration_ms=elapsed,
        )

    def _full(self, cycle: _Cycle) -> None:
        posts = self._store.load_all_posts()
        pages = self._store.load_all_pages()
        bundle = self._datasource.build_bundle(posts, pages)
        datasource = bundle.to_template_context()

        self._render_listings(posts, pages, datasource, cycle)
        for post in posts:
            self._render_post(post, posts, pages, datasource, cycle)
        for page in pages:
            self._render_page(page, posts, pages, datasource, cycle)
        self._attempt(cycle, "feed", lambda: self._feed.generate(posts))
        cycle.files.extend(self._assets.copy_all(cycle.errors))
        cycle.files.extend(
            self._attempt(cycle, "datasource", lambda: self._datasource.write_bundle(bundle)) or ()
        )

    def _incremental(self, batch: ChangeBatch, cycle: _Cycle) -> None:
        for path in batch.post_files:
            doc_id = id_for_path(path, ContentKind.POST, self._config)
            post = self._store.invalidate(ContentKind.POST, doc_id) if doc_id else None
            posts = self._store.load_all_posts()
            pages = self._store.load_all_pages()
            bundle = self._datasource.build_bundle(posts, pages)
            datasource = bundle.to_template_context()
            if post is None:
                print(f"  Warning: post {doc_id!r} not found, skipping", file=sys.stderr)
            else:
                self._render_post(post, posts, pages, datasource, cycle)
            self._render_listings(posts, pages, datasource, cycle)
            self._attempt(cycle, "feed", lambda: self._feed.generate(posts))
            cycle.files.extend(
                self._attempt(cycle, "datasource", lambda: self._datasource.write_bundle(bundle))
                or ()
            )

        for path in batch.page_files:
            doc_id = id_for_path(path, ContentKind.PAGE, self._config)
            page = self._store.invalidate(ContentKind.PAGE, doc_id) if doc_id else None
            posts = self._store.load_all_posts()
            pages = self._store.load_all_pages()
            bundle = self._datasource.build_bundle(posts, pages)
            if page is None:
                print(f"  Warning: page {doc_id!r} not found, skipping", file=sys.stderr)
            else:
                self._render_page(page, posts, pages, bundle.to_template_context(), cycle)
            cycle.files.extend(
                self._attempt(cycle, "datasource", lambda: self._datasource.write_bundle(bundle))
                or ()
            )

        for path in batch.asset_files:
            self._attempt(cycle, str(path), lambda: self._assets.copy_single(path))

    # ------------------------------------------------------------------
    # Rendering helpers
    # ------------------------------------------------------------------

    def _attempt(self, cycle: _Cycle, label: str, action: Callable[[], Any]) -> Any:
        """Run *action*; record a single ExportedFile result or the failure."""
        try:
            result = action()
        except (TemplateError, BuildError) as exc:
            print(f"  Error: {label}: {exc}", file=sys.stderr)
            cycle.errors.append(f"{label}: {exc}")
            return None
        if isinstance(result, ExportedFile):
            cycle.files.append(result)
        return result

    def _write_page(self, source: str, output_path: str, source_type: str, html: str) -> ExportedFile:
        t0 = time.perf_counter()
        if self._inject_livereload:
            html = inject_livereload(html)
        filepath = url_to_filepath(output_path, self._config.output_path)
        size = write_text_atomic(filepath, html)
        elapsed = (time.perf_counter() - t0) * 1000
        if self._collector is not None:
            self._collector.record_build("render", source, str(filepath), duration_ms=elapsed)
        return ExportedFile(
            source_path=source,
            output_path=filepath,
            source_type=source_type,  # type: ignore[arg-type]
            size_bytes=size,
            duration_ms=elapsed,
        )

    def _render_post(
        self,
        post: Post,
        posts: list[Post],
        pages: list[Page],
        datasource: dict[str, Any],
        cycle: _Cycle,
    ) -> None:
        self._attempt(
            cycle,
            f"post {post.id!r}",
            lambda: self._write_page(
                post.id, post.output_path, "post",
                self._composer.render_post(post, posts, pages, datasource),
            ),
        )

    def _render_page(
        self,
        page: Page,
        posts: list[Post],
        pages: list[Page],
        datasource: dict[str, Any],
        cycle: _Cycle,
    ) -> None:
        self._attempt(
            cycle,
            f"page {page.id!r}",
            lambda: self._write_page(
                page.id, page.output_path, "page",
                self._composer.render_page(page, posts, pages, datasource),
            ),
        )

    def _render_listings(
        self,
        posts: list[Post],
        pages: list[Page],
        datasource: dict[str, Any],
        cycle: _Cycle,
    ) -> None:
        """Write the home page and the posts index, unless a page owns that URL."""
        owned = {page.output_path.strip("/") for page in pages}
        if "" not in owned:
            self._attempt(
                cycle,
                "home",
                lambda: self._write_page(
                    "home", "", "home", self._composer.render_home(posts, pages, datasource),
                ),
            )
        if POSTS_INDEX_PATH not in owned:
            self._attempt(
                cycle,
                "posts index",
                lambda: self._write_page(
                    "posts", POSTS_INDEX_PATH, "index",
                    self._composer.render_posts_index(posts, pages, datasource),
                ),
            )
