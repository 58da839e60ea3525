"""Shared test fixtures for kiln."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from kiln.config_loader import load_config

if TYPE_CHECKING:
    from kiln.config import KilnConfig

SITE_CONFIG: dict[str, Any] = {
    "siteName": "Test Site",
    "baseUrl": "https://example.com",
    "description": "A site for tests",
    "author": "Test Author",
}


def write(path: Path, text: str) -> Path:
    """Write *text* to *path*, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def write_config(root: Path, **extra: Any) -> Path:
    """Write ``config.json`` with the required keys plus *extra* sections."""
    return write(root / "config.json", json.dumps({**SITE_CONFIG, **extra}, indent=2))


def make_config(root: Path, **extra: Any) -> KilnConfig:
    """Write a config file under *root* and load it."""
    write_config(root, **extra)
    return load_config(root)


@pytest.fixture
def tmp_site(tmp_path: Path) -> Path:
    """Create a minimal site structure for testing.

    Two dated posts, two pages, a layout with a ``head`` block, a post
    template that overrides it, and one static asset.
    """
    write_config(tmp_path)

    write(
        tmp_path / "posts" / "hello.md",
        "---\ntitle: Hello World\ndate: 2024-01-02\ntags: [intro, news]\n---\n\n"
        "# Hello\n\nFirst post.\n",
    )
    write(
        tmp_path / "posts" / "second.md",
        "---\ntitle: Second Post\ndate: 2024-03-04\n---\n\nSecond post body.\n",
    )

    write(
        tmp_path / "pages" / "about.md",
        "---\ntitle: About\nnav_order: 1\n---\n\nAbout this site.\n",
    )
    write(
        tmp_path / "pages" / "contact.html",
        "---\ntitle: Contact\nnav_order: 2\n---\n<p>Write to us.</p>\n",
    )

    write(
        tmp_path / "templates" / "layouts" / "default.html",
        "<html><head>{% call block('head') %}<title>default</title>{% endcall %}</head>"
        "<body>{{ content }}</body></html>\n",
    )
    write(
        tmp_path / "templates" / "post.html",
        "{% call content('head') %}<title>{{ post.title }}</title>{% endcall %}"
        "<article>{{ post.content | safe }}</article>",
    )

    write(tmp_path / "static" / "css" / "site.css", "body { margin: 0; }\n")

    return tmp_path


@pytest.fixture
def site_config(tmp_site: Path) -> KilnConfig:
    """Loaded KilnConfig for ``tmp_site``."""
    return load_config(tmp_site)
