"""Content documents — posts and pages as immutable records.

Each document carries its rendered body, raw front-matter metadata, and
the URL-relative path it is written to.  Derived values (tags, summary,
description, url) are computed on access so they always agree with the
stored metadata.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, ClassVar

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")

# Plain-text length used for the description fallback
DESCRIPTION_LENGTH = 160

# Word count used for the summary fallback
SUMMARY_WORDS = 30


class ContentKind(StrEnum):
    """The two independent content tiers."""

    POST = "post"
    PAGE = "page"


def plain_text(html: str) -> str:
    """Strip tags and collapse whitespace."""
    return _WS_RE.sub(" ", _TAG_RE.sub(" ", html)).strip()


def excerpt(text: str, words: int = SUMMARY_WORDS) -> str:
    """Return the first *words* words of *text*, with ``...`` when truncated."""
    parts = plain_text(text).split(" ")
    if len(parts) <= words:
        return " ".join(parts)
    return " ".join(parts[:words]) + "..."


def metadata_list(value: object) -> list[str]:
    """Normalise a list-or-comma-separated metadata value to a list of strings."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = [str(v).strip() for v in value if v is not None]
    else:
        items = [part.strip() for part in str(value).split(",")]
    return [item for item in items if item]


@dataclass(frozen=True, slots=True)
class ContentDocument:
    """A parsed source document.

    Attributes:
        id: Stable identifier, unique within its kind.  The source path
            relative to the content root, POSIX separators, no extension.
        title: Front-matter ``title`` or the file stem.
        content: Rendered HTML body, or the raw template source when
            ``is_template_source`` is set.
        metadata: Front-matter values, exposed to templates unchanged.
        output_path: URL-relative output path (``""`` for the site root).
        is_template_source: True when the body is itself a template.
        kind: Which tier the document belongs to; set by each subclass.

    """

    id: str
    title: str
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    output_path: str = ""
    is_template_source: bool = False

    kind: ClassVar[ContentKind]

    @property
    def path(self) -> str:
        """Alias of ``output_path`` for templates."""
        return self.output_path

    @property
    def url(self) -> str:
        """Site-relative URL with a trailing slash."""
        if not self.output_path:
            return "/"
        return f"/{self.output_path.strip('/')}/"

    @property
    def tags(self) -> list[str]:
        return metadata_list(self.metadata.get("tags"))

    @property
    def description(self) -> str:
        value = self.metadata.get("description")
        if value:
            return str(value).strip()
        return plain_text(self.content)[:DESCRIPTION_LENGTH]

    @property
    def summary(self) -> str:
        value = self.metadata.get("summary")
        if value:
            return str(value).strip()
        return excerpt(self.content)


@dataclass(frozen=True, slots=True)
class Post(ContentDocument):
    """A dated entry in the posts tier."""

    kind: ClassVar[ContentKind] = ContentKind.POST

    date: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True, slots=True)
class Page(ContentDocument):
    """A standalone page, ordered by ``nav_order`` in navigation."""

    kind: ClassVar[ContentKind] = ContentKind.PAGE

    nav_order: int | None = None


def post_sort_key(post: Post) -> datetime:
    return post.date


def page_sort_key(page: Page) -> tuple[bool, int, str]:
    """Order by nav_order ascending (missing last), then title, case-insensitive."""
    return (page.nav_order is None, page.nav_order or 0, page.title.lower())
