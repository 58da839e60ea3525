"""Tests for kiln.templating.filters."""

from __future__ import annotations

from datetime import date, datetime

import jinja2

from kiln.content.models import Page
from kiln.templating.filters import (
    TEMPLATE_FILTERS,
    debug,
    excerpt,
    format_date,
    group_by,
    limit,
    sort_by,
)


def _page(doc_id: str, **metadata: object) -> Page:
    return Page(id=doc_id, title=doc_id, content="", metadata=dict(metadata))


class TestFormatDate:
    """format_date — strftime with a readable default."""

    def test_default_format(self) -> None:
        assert format_date(datetime(2024, 3, 4, 10, 0)) == "March 04, 2024"

    def test_custom_format(self) -> None:
        assert format_date(date(2024, 3, 4), "%Y-%m-%d") == "2024-03-04"

    def test_iso_string(self) -> None:
        assert format_date("2024-03-04", "%d/%m") == "04/03"

    def test_unparseable_string_returned(self) -> None:
        assert format_date("soon") == "soon"

    def test_none(self) -> None:
        assert format_date(None) == ""


class TestCollections:
    """limit, sort_by, group_by, excerpt."""

    def test_limit(self) -> None:
        assert limit([1, 2, 3], 2) == [1, 2]
        assert limit([1, 2], 0) == []
        assert limit(None, 3) == []

    def test_sort_by_numeric_metadata(self) -> None:
        pages = [_page("c", order=3), _page("none"), _page("a", order="1"), _page("b", order=2)]
        assert [p.id for p in sort_by(pages, "order")] == ["none", "a", "b", "c"]

    def test_sort_by_dicts(self) -> None:
        items = [{"metadata": {"w": 2}}, {"metadata": {"w": 1}}]
        assert sort_by(items, "w") == [{"metadata": {"w": 1}}, {"metadata": {"w": 2}}]

    def test_group_by_first_seen_order(self) -> None:
        pages = [_page("a", cat="x"), _page("b", cat="y"), _page("c", cat="x"), _page("d")]
        groups = group_by(pages, "cat")
        assert [g["name"] for g in groups] == ["x", "y", ""]
        assert [p.id for p in groups[0]["items"]] == ["a", "c"]

    def test_excerpt(self) -> None:
        assert excerpt("<p>one two three</p>", 2) == "one two..."
        assert excerpt(None) == ""


class TestInEnvironment:
    """Filters and debug() registered on a Jinja environment."""

    def test_filters_chain(self) -> None:
        env = jinja2.Environment(autoescape=True)
        env.filters.update(TEMPLATE_FILTERS)
        out = env.from_string(
            "{% for p in pages | sort_by('n') | limit(2) %}{{ p.id }}{% endfor %}"
        ).render(pages=[_page("b", n=2), _page("a", n=1), _page("c", n=3)])
        assert out == "ab"

    def test_debug_dump(self) -> None:
        env = jinja2.Environment(autoescape=True)
        env.globals["debug"] = debug
        out = env.from_string("{{ debug() }}").render(title="<T>", items=[1, 2])
        assert out.startswith('<pre class="kiln-debug">')
        assert "items: [2 items]" in out
        assert "&lt;T&gt;" in out
