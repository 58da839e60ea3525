"""Change classification — bucket changed paths by what they affect.

Each path lands in exactly one bucket, first match wins:

1. the config file              -> ``config_changed``
2. under the templates root     -> ``template_files``
3. under the posts root (content extension)  -> ``post_files``
4. under a pages root (content extension)    -> ``page_files``
5. under an asset root          -> ``asset_files``
6. anything else                -> logged and dropped
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from kiln.content.discovery import is_content_file

if TYPE_CHECKING:
    from collections.abc import Iterable

    from kiln.config import KilnConfig


@dataclass(frozen=True, slots=True)
class ChangeBatch:
    """One rebuild cycle's classified input.

    Attributes:
        paths: Every absolute path in the batch, classified or not.
        config_changed: The site config file changed.
        template_files: Changed templates or layouts.
        post_files: Changed post sources.
        page_files: Changed page sources.
        asset_files: Changed asset files.
        unrecognized: Paths that matched no rule.

    """

    paths: frozenset[Path]
    config_changed: bool = False
    template_files: tuple[Path, ...] = ()
    post_files: tuple[Path, ...] = ()
    page_files: tuple[Path, ...] = ()
    asset_files: tuple[Path, ...] = ()
    unrecognized: tuple[Path, ...] = ()

    @property
    def is_empty(self) -> bool:
        """True when nothing in the batch requires a rebuild."""
        return not (
            self.config_changed
            or self.template_files
            or self.post_files
            or self.page_files
            or self.asset_files
        )


def _is_under(path: Path, root: Path) -> bool:
    return path.is_relative_to(root)


def classify_changes(paths: Iterable[Path | str], config: KilnConfig) -> ChangeBatch:
    """Classify *paths* into a single ChangeBatch.

    Args:
        paths: Absolute paths reported by the watcher.
        config: Site configuration (directory layout).

    """
    all_paths = frozenset(Path(p) for p in paths)
    config_changed = False
    templates: list[Path] = []
    posts: list[Path] = []
    pages: list[Path] = []
    assets: list[Path] = []
    unrecognized: list[Path] = []

    for path in sorted(all_paths):
        if path.name == config.config_file:
            config_changed = True
        elif _is_under(path, config.templates_path):
            templates.append(path)
        elif _is_under(path, config.posts_path) and is_content_file(path):
            posts.append(path)
        elif any(_is_under(path, root) for root in config.pages_paths) and is_content_file(path):
            pages.append(path)
        elif any(_is_under(path, root) for root in config.asset_paths):
            assets.append(path)
        else:
            print(f"  Ignoring change outside watched content: {path}", file=sys.stderr)
            unrecognized.append(path)

    return ChangeBatch(
        paths=all_paths,
        config_changed=config_changed,
        template_files=tuple(templates),
        post_files=tuple(posts),
        page_files=tuple(pages),
        asset_files=tuple(assets),
        unrecognized=tuple(unrecognized),
    )
