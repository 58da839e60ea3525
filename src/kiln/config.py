"""Kiln configuration.

KilnConfig is the central configuration object, frozen after creation.
Nested sections mirror the ``config.json`` layout one-to-one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

CONFIG_FILE_NAME = "config.json"

# Content file extensions (``.jinja`` documents are templates themselves)
CONTENT_EXTENSIONS = frozenset({"md", "html", "jinja"})


@dataclass(frozen=True, slots=True)
class ThemeConfig:
    """Template, asset and output locations, relative to the site root.

    Attributes:
        templates: Directory containing Jinja templates and ``layouts/``.
        assets: Asset roots copied verbatim into the output tree.
        output: Build output directory.
        flatten_assets: Asset root names whose contents land directly
            under the output root instead of under ``<output>/<name>/``.

    """

    templates: str = "templates"
    assets: tuple[str, ...] = ("static",)
    output: str = "build"
    flatten_assets: frozenset[str] = frozenset({"public", "static"})


@dataclass(frozen=True, slots=True)
class PathConfig:
    """Content roots, relative to the site root."""

    posts: str = "posts"
    pages: tuple[str, ...] = ("pages",)


@dataclass(frozen=True, slots=True)
class RssConfig:
    """RSS feed generation settings."""

    enabled: bool = True
    file_name: str = "feed.xml"
    title: str | None = None
    description: str | None = None
    language: str = "en-us"
    max_items: int = 20
    include_full_content: bool = True


@dataclass(frozen=True, slots=True)
class HtmlConfig:
    """Post-processing applied to every rendered page."""

    format: Literal["default", "minify", "beautify"] = "default"
    indent_size: int = 2


@dataclass(frozen=True, slots=True)
class DebugConfig:
    """Debug output settings."""

    enabled: bool = False


@dataclass(frozen=True, slots=True)
class DevServerConfig:
    """Development server settings."""

    host: str = "127.0.0.1"
    port: int = 3000


@dataclass(frozen=True, slots=True)
class DatasourceConfig:
    """Static datasource extraction settings.

    Attributes:
        enabled: Write the datasource bundle during builds.
        output_dir: Directory under the output root for the JSON files.
        collect_attribute: HTML attribute marking collectable elements.
        images_file_name: File name of the extracted image list.
        config_file: Optional dataset definitions, relative to the site root.

    """

    enabled: bool = True
    output_dir: str = "datasource"
    collect_attribute: str = "data-collect"
    images_file_name: str = "images.json"
    config_file: str = "datasource-config.json"


@dataclass(frozen=True, slots=True)
class KilnConfig:
    """Configuration for a kiln site.

    Attributes:
        site_name: Human-readable site name.
        base_url: Absolute site URL used for feeds and links.
        description: Site description.
        author: Default author for feed items.
        root: Path to the site root directory (contains config.json).
              Always resolved to an absolute path on construction.
        theme: Template, asset and output locations.
        paths: Content roots.
        rss: Feed settings.
        html: HTML post-processing settings.
        debug: Debug trace settings.
        dev_server: Development server settings.
        datasource: Datasource extraction settings.
        config_file: Name of the config file (used for change detection).

    """

    site_name: str
    base_url: str
    description: str
    author: str
    root: Path = field(default_factory=Path.cwd)
    theme: ThemeConfig = field(default_factory=ThemeConfig)
    paths: PathConfig = field(default_factory=PathConfig)
    rss: RssConfig = field(default_factory=RssConfig)
    html: HtmlConfig = field(default_factory=HtmlConfig)
    debug: DebugConfig = field(default_factory=DebugConfig)
    dev_server: DevServerConfig = field(default_factory=DevServerConfig)
    datasource: DatasourceConfig = field(default_factory=DatasourceConfig)
    config_file: str = CONFIG_FILE_NAME

    def __post_init__(self) -> None:
        # Resolve root to absolute so that watchfiles (which returns
        # absolute paths) can be compared via Path.relative_to().
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())

    @property
    def templates_path(self) -> Path:
        """Absolute path to the templates directory."""
        return self.root / self.theme.templates

    @property
    def layouts_path(self) -> Path:
        """Absolute path to the layouts directory."""
        return self.templates_path / "layouts"

    @property
    def posts_path(self) -> Path:
        """Absolute path to the posts directory."""
        return self.root / self.paths.posts

    @property
    def pages_paths(self) -> tuple[Path, ...]:
        """Absolute paths to every pages directory."""
        return tuple(self.root / p for p in self.paths.pages)

    @property
    def asset_paths(self) -> tuple[Path, ...]:
        """Absolute paths to every asset root."""
        return tuple(self.root / a for a in self.theme.assets)

    @property
    def output_path(self) -> Path:
        """Absolute path to the output directory."""
        output = Path(self.theme.output)
        if output.is_absolute():
            return output
        return self.root / output

    @property
    def config_path(self) -> Path:
        """Absolute path to the config file."""
        return self.root / self.config_file

    @property
    def datasource_config_path(self) -> Path:
        """Absolute path to the datasource dataset definitions."""
        return self.root / self.datasource.config_file

    @property
    def watch_paths(self) -> tuple[Path, ...]:
        """Every directory a dev-mode watcher should observe."""
        return (
            self.posts_path,
            *self.pages_paths,
            self.templates_path,
            *self.asset_paths,
        )
