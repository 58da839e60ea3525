"""Static datasource — JSON extracts of site content for client-side use.

Three kinds of data are extracted from non-template posts and pages:

- **images**: every ``<img src>`` with its alt/title and source document.
- **collectables**: elements carrying the collect attribute
  (``data-collect="quote"``), grouped by type into ``<type>.json``.
- **datasets**: named entity lists defined in ``datasource-config.json``,
  fed from a folder of documents and/or posts/pages whose metadata
  matches a key (and optional value).

The bundle is also exposed to templates as ``datasource``.
"""

from __future__ import annotations

import json
import re
import sys
import time
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Any

from bs4 import BeautifulSoup

from kiln._errors import ContentError
from kiln.export.output import ExportedFile, write_text_atomic

if TYPE_CHECKING:
    from kiln.config import KilnConfig
    from kiln.content.models import ContentDocument, Page, Post
    from kiln.content.parser import ContentParser
    from kiln.observability.collector import BuildCollector

_ENTITY_EXTENSIONS = frozenset({".md", ".markdown", ".html", ".jinja"})
_SOURCES = ("posts", "pages")


@dataclass(frozen=True, slots=True)
class DatasetDefinition:
    """One entry of ``datasource-config.json``'s ``datasets`` list."""

    name: str
    output: str = "entity-datasource.json"
    folder: str | None = None
    metadata_key: str | None = None
    metadata_value: str | None = None
    include_sources: tuple[str, ...] = _SOURCES


@dataclass(frozen=True, slots=True)
class DatasetResult:
    name: str
    output: str
    items: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DatasourceBundle:
    """Everything extracted in one build."""

    images: list[dict[str, Any]] = field(default_factory=list)
    collectables: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    datasets: list[DatasetResult] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return (
            not self.images
            and all(not items for items in self.collectables.values())
            and all(not d.items for d in self.datasets)
        )

    def to_template_context(self) -> dict[str, Any]:
        """Shape exposed to templates as ``datasource``."""
        return {
            "images": self.images,
            "collectables": self.collectables,
            "entities": {d.name: d.items for d in self.datasets},
            "datasets": self.datasets,
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def sanitize_type(value: str) -> str:
    """Lowercase, replace unsafe characters with ``-``, collapse runs."""
    normalized = re.sub(r"[^a-z0-9_-]", "-", value.lower())
    collapsed = re.sub(r"-+", "-", normalized).strip("-")
    return collapsed or "collectable"


def url_path(path: str) -> str:
    """``""`` -> ``/``; ``a/b`` -> ``/a/b/``."""
    if not path:
        return "/"
    normalized = path if path.startswith("/") else f"/{path}"
    return normalized if normalized.endswith("/") else f"{normalized}/"


def metadata_as_strings(metadata: dict[str, Any]) -> dict[str, str]:
    """Flatten metadata values to strings (nested values as compact JSON)."""
    result: dict[str, str] = {}
    for key, value in metadata.items():
        if value is None:
            result[key] = ""
        elif isinstance(value, bool):
            result[key] = str(value).lower()
        elif isinstance(value, (dict, list)):
            result[key] = json.dumps(value, default=str, separators=(",", ":"))
        elif isinstance(value, date):
            result[key] = value.isoformat()
        else:
            result[key] = str(value).strip()
    return result


def _metadata_string(metadata: dict[str, Any], key: str) -> str | None:
    value = metadata.get(key)
    if value is None:
        return None
    return metadata_as_strings({key: value})[key]


def _source(kind: str, doc_id: str, path: str, title: str) -> dict[str, str]:
    return {"type": kind, "id": doc_id, "path": url_path(path), "title": title}


def load_dataset_definitions(path: Path) -> list[DatasetDefinition]:
    """Read dataset definitions; missing or unreadable files yield none."""
    if not path.is_file():
        return []
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        print(f"  Warning: unable to read {path}: {exc}", file=sys.stderr)
        return []

    definitions: list[DatasetDefinition] = []
    for entry in raw.get("datasets", []) if isinstance(raw, dict) else []:
        if not isinstance(entry, dict) or not entry.get("name"):
            continue
        sources = entry.get("includeSources") or list(_SOURCES)
        definitions.append(
            DatasetDefinition(
                name=str(entry["name"]),
                output=str(entry.get("output", "entity-datasource.json")),
                folder=entry.get("folder"),
                metadata_key=entry.get("metadataKey"),
                metadata_value=entry.get("metadataValue"),
                include_sources=tuple(str(s).lower() for s in sources),
            )
        )
    return definitions


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class DatasourceGenerator:
    """Builds and writes the datasource bundle.

    Args:
        config: Site configuration.
        parser: Parser used for dataset folder documents.
        collector: Optional event collector.

    """

    def __init__(
        self,
        config: KilnConfig,
        parser: ContentParser,
        collector: BuildCollector | None = None,
    ) -> None:
        self._config = config
        self._parser = parser
        self._collector = collector

    def build_bundle(self, posts: list[Post], pages: list[Page]) -> DatasourceBundle:
        """Extract images, collectables and datasets from the content."""
        settings = self._config.datasource
        if not settings.enabled:
            return DatasourceBundle()

        documents: list[tuple[str, ContentDocument]] = [
            *(("post", p) for p in posts if not p.is_template_source),
            *(("page", p) for p in pages if not p.is_template_source),
        ]
        attribute = settings.collect_attribute.strip()

        images: list[dict[str, Any]] = []
        collectables: dict[str, list[dict[str, Any]]] = {}
        for kind, doc in documents:
            soup = BeautifulSoup(doc.content, "html.parser")
            source = _source(kind, doc.id, doc.path, doc.title)
            for img in soup.find_all("img", src=True):
                src = str(img["src"]).strip()
                if not src:
                    continue
                images.append({
                    "src": src,
                    "alt": (img.get("alt") or "").strip() or None,
                    "title": (img.get("title") or "").strip() or None,
                    "source": source,
                })
            if not attribute:
                continue
            for element in soup.find_all(attrs={attribute: True}):
                type_name = str(element.get(attribute, "")).strip()
                if not type_name:
                    continue
                attrs = {
                    k: " ".join(v) if isinstance(v, list) else str(v)
                    for k, v in element.attrs.items()
                    if k != attribute and k.startswith("data-")
                }
                text = element.get_text().strip()
                collectables.setdefault(type_name, []).append({
                    "source": source,
                    "html": str(element),
                    "text": text or None,
                    "attributes": attrs,
                })

        datasets = [
            DatasetResult(
                name=definition.name,
                output=definition.output,
                items=[
                    *self._entities_from_folder(definition),
                    *self._entities_from_metadata(definition, posts, pages),
                ],
            )
            for definition in load_dataset_definitions(self._config.datasource_config_path)
        ]
        return DatasourceBundle(images=images, collectables=collectables, datasets=datasets)

    def _entities_from_folder(self, definition: DatasetDefinition) -> list[dict[str, Any]]:
        if not definition.folder:
            return []
        folder = self._config.root / definition.folder
        if not folder.is_dir():
            return []

        prefix = definition.folder.replace("\\", "/").strip("/")
        items: list[dict[str, Any]] = []
        for path in sorted(folder.rglob("*")):
            if not path.is_file() or path.suffix.lower() not in _ENTITY_EXTENSIONS:
                continue
            if path.stem.lower() == "index":
                continue
            try:
                parsed = self._parser.parse(path)
            except ContentError as exc:
                print(f"  Warning: skipping entity file {path}: {exc}", file=sys.stderr)
                continue

            slug = "/".join(
                part for part in (prefix, path.relative_to(folder).with_suffix("").as_posix()) if part
            )
            entity_id = _metadata_string(parsed.metadata, "id") or slug.replace("/", "-") or path.stem
            title = _metadata_string(parsed.metadata, "title") or entity_id
            items.append({
                "dataset": definition.name,
                "id": entity_id,
                "title": title,
                "content": parsed.body,
                "metadata": metadata_as_strings(parsed.metadata),
                "source": _source(definition.name, entity_id, slug, title),
            })
        return items

    def _entities_from_metadata(
        self,
        definition: DatasetDefinition,
        posts: list[Post],
        pages: list[Page],
    ) -> list[dict[str, Any]]:
        key = (definition.metadata_key or "").strip()
        if not key:
            return []
        expected = (definition.metadata_value or "").strip() or None
        sources = set(definition.include_sources) & set(_SOURCES) or set(_SOURCES)

        candidates: list[tuple[str, ContentDocument]] = []
        if "posts" in sources:
            candidates.extend(("post", p) for p in posts)
        if "pages" in sources:
            candidates.extend(("page", p) for p in pages)

        items: list[dict[str, Any]] = []
        for kind, doc in candidates:
            value = _metadata_string(doc.metadata, key)
            if value is None or (expected is not None and value != expected):
                continue
            items.append({
                "dataset": definition.name,
                "id": _metadata_string(doc.metadata, "id") or doc.id,
                "title": doc.title,
                "content": doc.content,
                "metadata": metadata_as_strings(doc.metadata),
                "source": _source(kind, doc.id, doc.path, doc.title),
            })
        return items

    def write_bundle(self, bundle: DatasourceBundle) -> tuple[ExportedFile, ...]:
        """Write the non-empty parts of *bundle* under the datasource dir."""
        settings = self._config.datasource
        if not settings.enabled or bundle.is_empty:
            return ()

        root = self._config.output_path / settings.output_dir
        targets: list[tuple[Path, Any]] = []
        if bundle.images:
            targets.append((root / settings.images_file_name, bundle.images))
        for type_name, items in bundle.collectables.items():
            if items:
                targets.append((root / f"{sanitize_type(type_name)}.json", items))
        for dataset in bundle.datasets:
            if dataset.items:
                targets.append((root / dataset.output, dataset.items))

        written: list[ExportedFile] = []
        for target, payload in targets:
            t0 = time.perf_counter()
            size = write_text_atomic(target, json.dumps(payload, indent=2, ensure_ascii=False))
            elapsed = (time.perf_counter() - t0) * 1000
            if self._collector is not None:
                self._collector.record_build(
                    "write_datasource", settings.output_dir, str(target), duration_ms=elapsed,
                )
            written.append(ExportedFile(
                source_path=target.name,
                output_path=target,
                source_type="datasource",
                size_bytes=size,
                duration_ms=elapsed,
            ))
        return tuple(written)
