"""Template filters and globals for site templates.

Registered on every environment the composer builds::

    {{ post.date | format_date("%Y-%m-%d") }}
    {{ post.content | excerpt(20) }}
    {% for post in posts | limit(5) %}
    {% for page in pages | sort_by("order") %}
    {% for group in pages | group_by("category") %}{{ group.name }}{% endfor %}
    {{ debug() }}
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

from jinja2 import pass_context
from jinja2.runtime import Context
from markupsafe import Markup

from kiln.content.models import SUMMARY_WORDS
from kiln.content.models import excerpt as _excerpt
from kiln.templating.html import describe_value

DEFAULT_DATE_FORMAT = "%B %d, %Y"


def _metadata_value(item: Any, key: str) -> Any:
    if isinstance(item, dict):
        metadata = item.get("metadata")
    else:
        metadata = getattr(item, "metadata", None)
    if isinstance(metadata, dict):
        return metadata.get(key)
    return None


def format_date(value: Any, fmt: str = DEFAULT_DATE_FORMAT) -> str:
    """Format a date or datetime with a strftime pattern."""
    if isinstance(value, (date, datetime)):
        return value.strftime(fmt)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value).strftime(fmt)
        except ValueError:
            return value
    return "" if value is None else str(value)


def excerpt(value: Any, words: int = SUMMARY_WORDS) -> str:
    """First *words* words of the text, tags stripped."""
    if value is None:
        return ""
    return _excerpt(str(value), words)


def limit(items: Iterable[Any] | None, count: int) -> list[Any]:
    """First *count* items; an empty list for non-positive counts."""
    if items is None or count <= 0:
        return []
    return list(items)[:count]


def sort_by(items: Iterable[Any] | None, key: str) -> list[Any]:
    """Stable sort by an integer metadata value; missing or non-numeric is 0."""
    if items is None:
        return []

    def numeric(item: Any) -> int:
        value = _metadata_value(item, key)
        if isinstance(value, bool):
            return 0
        if isinstance(value, (int, float)):
            return int(value)
        try:
            return int(str(value).strip())
        except (TypeError, ValueError):
            return 0

    return sorted(items, key=numeric)


def group_by(items: Iterable[Any] | None, key: str) -> list[dict[str, Any]]:
    """Group items by a metadata value, in first-seen order.

    Returns a list of ``{"name": value, "items": [...]}`` mappings.  Items
    without the key are grouped under ``""``.

    """
    groups: dict[str, list[Any]] = {}
    for item in items or ():
        value = _metadata_value(item, key)
        name = "" if value is None else str(value)
        groups.setdefault(name, []).append(item)
    return [{"name": name, "items": members} for name, members in groups.items()]


@pass_context
def debug(context: Context) -> Markup:
    """Dump the visible template variables as a ``<pre>`` block."""
    lines = []
    for key, value in sorted(context.get_all().items()):
        if key.startswith("__") or callable(value):
            continue
        lines.append(f"{key}: {describe_value(value)}")
    return Markup('<pre class="kiln-debug">{}</pre>').format("\n".join(lines))


TEMPLATE_FILTERS = {
    "format_date": format_date,
    "excerpt": excerpt,
    "limit": limit,
    "sort_by": sort_by,
    "group_by": group_by,
}
