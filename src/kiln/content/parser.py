"""Content parser — front matter, Markdown, and semantic HTML rewrites.

Turns a source file into ``(body, metadata)``:

- ``.md``: front matter stripped, body converted with Markdown
  (tables, footnotes, fenced code), then post-processed.
- ``.html``: front matter stripped, body post-processed.
- ``.jinja``: front matter stripped, body returned untouched so it can be
  rendered later as a template.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import markdown
import yaml
from bs4 import BeautifulSoup

from kiln._errors import ContentError

_FRONT_MATTER_RE = re.compile(
    r"^---\s*\r?\n(.*?)\r?\n---\s*\r?\n?(.*)$",
    re.DOTALL,
)

_MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "footnotes"]

TEMPLATE_SOURCE_SUFFIX = ".jinja"


@dataclass(frozen=True, slots=True)
class ParsedContent:
    """Body and metadata extracted from one source file."""

    body: str
    metadata: dict[str, Any] = field(default_factory=dict)


def split_front_matter(text: str) -> ParsedContent:
    """Separate a leading ``---`` YAML block from the body.

    Malformed YAML (or YAML that is not a mapping) yields empty metadata;
    the body is preserved either way.

    """
    match = _FRONT_MATTER_RE.match(text)
    if match is None:
        return ParsedContent(body=text)

    raw_yaml, body = match.group(1), match.group(2)
    if not raw_yaml.strip():
        return ParsedContent(body=body)
    try:
        loaded = yaml.safe_load(raw_yaml)
    except yaml.YAMLError:
        return ParsedContent(body=body)
    if not isinstance(loaded, dict):
        return ParsedContent(body=body)
    return ParsedContent(body=body, metadata=_normalize(loaded))


def _normalize(data: dict[Any, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in data.items():
        if key is None:
            continue
        if isinstance(value, str):
            value = value.strip()
        elif isinstance(value, dict):
            value = _normalize(value)
        result[str(key).strip()] = value
    return result


def attribute_blockquotes(html: str) -> str:
    """Wrap ``<blockquote data-author>`` in ``<figure>`` with a caption."""
    if "data-author" not in html:
        return html
    soup = BeautifulSoup(html, "html.parser")
    for quote in soup.find_all("blockquote", attrs={"data-author": True}):
        author = str(quote.get("data-author", "")).strip()
        if not author:
            continue
        if quote.find_parent("figure"):
            continue
        figure = soup.new_tag("figure")
        quote.replace_with(figure)
        figure.append(quote)
        caption = soup.new_tag("figcaption")
        caption.string = f"— {author}"
        figure.append(caption)
    return str(soup)


class ContentParser:
    """Parse content files by extension.

    Holds one Markdown converter, reset between documents.  Not safe for
    concurrent use; the build orchestrator serialises access.

    """

    def __init__(self) -> None:
        self._md = markdown.Markdown(extensions=_MARKDOWN_EXTENSIONS)

    def render_markdown(self, text: str) -> str:
        """Convert a Markdown string to HTML."""
        try:
            return self._md.convert(text)
        finally:
            self._md.reset()

    def parse(self, path: Path) -> ParsedContent:
        """Parse *path* into body and metadata.

        Raises:
            ContentError: If the extension is not a content extension or the
                file cannot be read.

        """
        suffix = path.suffix.lower()
        if suffix not in (".md", ".markdown", ".html", TEMPLATE_SOURCE_SUFFIX):
            msg = f"Unsupported file type: {path.suffix or '(none)'} ({path})"
            raise ContentError(msg)

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Failed to read {path}: {exc}"
            raise ContentError(msg) from exc

        parsed = split_front_matter(text)
        if suffix == TEMPLATE_SOURCE_SUFFIX:
            return parsed
        if suffix in (".md", ".markdown"):
            body = self.render_markdown(parsed.body)
        else:
            body = parsed.body
        return ParsedContent(body=attribute_blockquotes(body), metadata=parsed.metadata)
