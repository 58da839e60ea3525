"""Tests for kiln.content.parser — front matter and body conversion."""

from __future__ import annotations

from pathlib import Path

import pytest

from kiln._errors import ContentError
from kiln.content.parser import ContentParser, attribute_blockquotes, split_front_matter
from tests.conftest import write


class TestSplitFrontMatter:
    """split_front_matter — YAML header extraction."""

    def test_metadata_and_body(self) -> None:
        parsed = split_front_matter("---\ntitle: Hi\ntags: [a, b]\n---\nBody\n")
        assert parsed.metadata == {"title": "Hi", "tags": ["a", "b"]}
        assert parsed.body == "Body\n"

    def test_no_front_matter(self) -> None:
        parsed = split_front_matter("Just text")
        assert parsed.metadata == {}
        assert parsed.body == "Just text"

    def test_malformed_yaml_keeps_body(self) -> None:
        parsed = split_front_matter("---\ntitle: [unclosed\n---\nBody\n")
        assert parsed.metadata == {}
        assert parsed.body == "Body\n"

    def test_non_mapping_yaml(self) -> None:
        parsed = split_front_matter("---\n- a\n- b\n---\nBody")
        assert parsed.metadata == {}
        assert parsed.body == "Body"

    def test_strings_are_stripped(self) -> None:
        parsed = split_front_matter("---\ntitle: '  Spaced  '\n---\n")
        assert parsed.metadata["title"] == "Spaced"


class TestAttributeBlockquotes:
    """attribute_blockquotes — semantic quote attribution."""

    def test_wraps_in_figure(self) -> None:
        html = attribute_blockquotes('<blockquote data-author="Ada">Hi</blockquote>')
        assert html.startswith("<figure>")
        assert "<figcaption>— Ada</figcaption>" in html

    def test_without_author_untouched(self) -> None:
        source = "<blockquote>Hi</blockquote>"
        assert attribute_blockquotes(source) == source


class TestContentParser:
    """ContentParser.parse — per-extension behavior."""

    def test_markdown(self, tmp_path: Path) -> None:
        path = write(tmp_path / "a.md", "---\ntitle: A\n---\n# Heading\n\n| x |\n|---|\n| 1 |\n")
        parsed = ContentParser().parse(path)
        assert parsed.metadata["title"] == "A"
        assert "<h1>Heading</h1>" in parsed.body
        assert "<table>" in parsed.body

    def test_markdown_state_reset_between_documents(self, tmp_path: Path) -> None:
        parser = ContentParser()
        first = write(tmp_path / "a.md", "Text[^1]\n\n[^1]: Note one\n")
        second = write(tmp_path / "b.md", "Plain\n")
        parser.parse(first)
        assert "Note one" not in parser.parse(second).body

    def test_html_passthrough(self, tmp_path: Path) -> None:
        path = write(tmp_path / "a.html", "---\ntitle: A\n---\n<p>raw</p>")
        assert ContentParser().parse(path).body == "<p>raw</p>"

    def test_template_source_untouched(self, tmp_path: Path) -> None:
        path = write(tmp_path / "a.jinja", "---\nlayout: none\n---\n{{ site_name }}")
        parsed = ContentParser().parse(path)
        assert parsed.body == "{{ site_name }}"
        assert parsed.metadata == {"layout": "none"}

    def test_unsupported_extension(self, tmp_path: Path) -> None:
        path = write(tmp_path / "a.txt", "text")
        with pytest.raises(ContentError, match="Unsupported file type"):
            ContentParser().parse(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ContentError, match="Failed to read"):
            ContentParser().parse(tmp_path / "gone.md")

    def test_render_markdown(self) -> None:
        assert ContentParser().render_markdown("*hi*") == "<p><em>hi</em></p>"
