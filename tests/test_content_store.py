"""Tests for kiln.content.store — tier caching and invalidation."""

from __future__ import annotations

from datetime import datetime

import pytest

from kiln.config import KilnConfig
from kiln.content.models import ContentKind
from kiln.content.store import ContentStore
from kiln.observability import BuildCollector, ContentLoaded, EventLog
from tests.conftest import write


class TestLoadAll:
    """load_all — sorting and caching."""

    def test_posts_newest_first(self, site_config: KilnConfig) -> None:
        posts = ContentStore(site_config).load_all_posts()
        assert [p.id for p in posts] == ["second", "hello"]
        assert posts[0].date == datetime(2024, 3, 4)

    def test_pages_by_nav_order(self, site_config: KilnConfig) -> None:
        write(site_config.pages_paths[0] / "faq.md", "---\ntitle: FAQ\n---\nQ\n")
        pages = ContentStore(site_config).load_all_pages()
        assert [p.id for p in pages] == ["about", "contact", "faq"]

    def test_cached_until_invalidated(self, site_config: KilnConfig) -> None:
        store = ContentStore(site_config)
        first = store.load_all_posts()
        write(site_config.posts_path / "third.md", "---\ndate: 2025-01-01\n---\nNew\n")
        assert store.load_all_posts() is first
        assert len(store.load_all_posts(use_cache=False)) == 3

    def test_is_cached(self, site_config: KilnConfig) -> None:
        store = ContentStore(site_config)
        assert not store.is_cached(ContentKind.POST)
        store.load_all_posts()
        assert store.is_cached(ContentKind.POST)
        assert not store.is_cached(ContentKind.PAGE)

    def test_missing_date_uses_file_time(self, site_config: KilnConfig) -> None:
        write(site_config.posts_path / "undated.md", "No date\n")
        posts = ContentStore(site_config).load_all_posts()
        undated = next(p for p in posts if p.id == "undated")
        assert undated.date > datetime(2024, 3, 4)

    def test_unreadable_date_warns(
        self, site_config: KilnConfig, capsys: pytest.CaptureFixture[str],
    ) -> None:
        write(site_config.posts_path / "bad.md", "---\ndate: someday\n---\nx\n")
        ContentStore(site_config).load_all_posts()
        assert "unreadable 'date'" in capsys.readouterr().err

    def test_undecodable_file_skipped(
        self, site_config: KilnConfig, capsys: pytest.CaptureFixture[str],
    ) -> None:
        (site_config.posts_path / "bad.md").write_bytes(b"\xff\xfe")
        posts = ContentStore(site_config).load_all_posts()
        assert [p.id for p in posts] == ["second", "hello"]
        assert "skipping" in capsys.readouterr().err

    def test_template_source_flag(self, site_config: KilnConfig) -> None:
        write(site_config.pages_paths[0] / "raw.jinja", "{{ site_name }}")
        pages = ContentStore(site_config).load_all_pages()
        raw = next(p for p in pages if p.id == "raw")
        assert raw.is_template_source
        assert raw.content == "{{ site_name }}"

    def test_title_defaults_to_stem(self, site_config: KilnConfig) -> None:
        write(site_config.posts_path / "untitled-note.md", "x\n")
        posts = ContentStore(site_config).load_all_posts()
        assert any(p.title == "untitled-note" for p in posts)

    def test_records_load_events(self, site_config: KilnConfig) -> None:
        log = EventLog()
        ContentStore(site_config, collector=BuildCollector(log)).load_all_posts()
        events = log.query(event_type=ContentLoaded)
        assert len(events) == 1
        assert events[0].kind == "post"
        assert events[0].count == 2


class TestLoadById:
    """load_by_id, invalidate, clear_cache."""

    def test_cache_hit(self, site_config: KilnConfig) -> None:
        store = ContentStore(site_config)
        posts = store.load_all_posts()
        assert store.load_by_id(ContentKind.POST, "hello") is posts[1]

    def test_miss_reloads_tier(self, site_config: KilnConfig) -> None:
        store = ContentStore(site_config)
        store.load_all_posts()
        write(site_config.posts_path / "fresh.md", "---\ntitle: Fresh\n---\nNew\n")
        fresh = store.load_by_id(ContentKind.POST, "fresh")
        assert fresh is not None
        assert fresh.title == "Fresh"

    def test_absent_id(self, site_config: KilnConfig) -> None:
        assert ContentStore(site_config).load_by_id(ContentKind.PAGE, "nope") is None

    def test_invalidate_then_reload_converges(self, site_config: KilnConfig) -> None:
        store = ContentStore(site_config)
        store.load_all_posts()
        write(
            site_config.posts_path / "hello.md",
            "---\ntitle: Hello Again\ndate: 2024-01-02\n---\nEdited\n",
        )
        updated = store.invalidate(ContentKind.POST, "hello")
        assert updated is not None
        assert updated.title == "Hello Again"
        assert store.load_all_posts() == ContentStore(site_config).load_all_posts()

    def test_invalidate_only_touches_one_tier(self, site_config: KilnConfig) -> None:
        store = ContentStore(site_config)
        pages = store.load_all_pages()
        store.load_all_posts()
        store.invalidate(ContentKind.POST, "hello")
        assert store.load_all_pages() is pages

    def test_invalidate_deleted_document(self, site_config: KilnConfig) -> None:
        store = ContentStore(site_config)
        store.load_all_posts()
        (site_config.posts_path / "hello.md").unlink()
        assert store.invalidate(ContentKind.POST, "hello") is None
        assert [p.id for p in store.load_all_posts()] == ["second"]

    def test_clear_cache(self, site_config: KilnConfig) -> None:
        store = ContentStore(site_config)
        store.load_all_posts()
        store.load_all_pages()
        store.clear_cache()
        assert not store.is_cached(ContentKind.POST)
        assert not store.is_cached(ContentKind.PAGE)
