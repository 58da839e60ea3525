"""Content discovery — find source documents under the configured roots.

Walks each content root recursively and yields eligible files together
with the identifiers and output paths derived from their location.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from kiln.config import CONTENT_EXTENSIONS
from kiln.content.models import ContentKind

if TYPE_CHECKING:
    from collections.abc import Iterator

    from kiln.config import KilnConfig

# File stems skipped in the posts tier (listing pages live elsewhere)
EXCLUDED_POST_STEMS = frozenset({"index"})


@dataclass(frozen=True, slots=True)
class DiscoveredFile:
    """A content file found on disk.

    Attributes:
        source: Absolute path to the file.
        root: Content root the file was found under.
        doc_id: Identifier derived from the path relative to ``root``.
        output_path: URL-relative output path for the rendered document.

    """

    source: Path
    root: Path
    doc_id: str
    output_path: str


def is_content_file(path: Path) -> bool:
    """True if *path* has a content extension (md, html, jinja)."""
    return path.suffix.lower().lstrip(".") in CONTENT_EXTENSIONS


def document_id(path: Path, root: Path) -> str:
    """Derive a document id: relative POSIX path without its extension.

    ``posts/hello.md`` -> ``hello``; ``pages/guides/setup.md`` -> ``guides/setup``.

    """
    return path.relative_to(root).with_suffix("").as_posix()


def output_path_for(doc_id: str, *, strip_index: bool) -> str:
    """Map a document id to its URL-relative output path.

    With ``strip_index``, ``index`` becomes ``""`` and ``a/index`` becomes ``a``.

    """
    if not strip_index:
        return doc_id
    if doc_id == "index":
        return ""
    if doc_id.endswith("/index"):
        return doc_id.removesuffix("/index")
    return doc_id


def roots_for(kind: ContentKind, config: KilnConfig) -> tuple[Path, ...]:
    if kind is ContentKind.POST:
        return (config.posts_path,)
    return config.pages_paths


def discover(kind: ContentKind, config: KilnConfig) -> Iterator[DiscoveredFile]:
    """Yield every eligible content file for *kind*, in sorted path order.

    Missing roots are skipped.  Posts named ``index`` are excluded; pages
    keep them and map them to their directory URL.

    """
    is_post = kind is ContentKind.POST
    for root in roots_for(kind, config):
        if not root.is_dir():
            continue
        for path in sorted(root.rglob("*")):
            if not path.is_file() or not is_content_file(path):
                continue
            if path.name.startswith("."):
                continue
            if is_post and path.stem in EXCLUDED_POST_STEMS:
                continue
            doc_id = document_id(path, root)
            yield DiscoveredFile(
                source=path,
                root=root,
                doc_id=doc_id,
                output_path=output_path_for(doc_id, strip_index=not is_post),
            )


def id_for_path(path: Path, kind: ContentKind, config: KilnConfig) -> str | None:
    """Return the document id for a changed path, or None if outside every root."""
    for root in roots_for(kind, config):
        try:
            return document_id(path, root)
        except ValueError:
            continue
    return None
