"""Asset handling — copy static files into the build tree.

Each configured asset root is mirrored into the output directory.  Roots
whose name is in ``theme.flatten_assets`` (``public`` and ``static`` by
default) are copied directly under the output root::

    static/css/site.css  -> build/css/site.css
    media/logo.png       -> build/media/logo.png
"""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

from kiln._errors import BuildError
from kiln.export.output import ExportedFile, copy_file_atomic

if TYPE_CHECKING:
    from kiln.config import KilnConfig
    from kiln.observability.collector import BuildCollector

# Files/directories skipped during asset copying
_HIDDEN_PREFIXES = (".", "_")


def _is_hidden(path: Path, root: Path) -> bool:
    rel = path.relative_to(root)
    if "__pycache__" in rel.parts:
        return True
    return path.name.startswith(_HIDDEN_PREFIXES)


class AssetManager:
    """Copies asset files to their mirrored output locations.

    Args:
        config: Site configuration (asset roots, output dir, flatten names).
        collector: Optional event collector for copy events.

    """

    def __init__(self, config: KilnConfig, collector: BuildCollector | None = None) -> None:
        self._config = config
        self._collector = collector

    def root_for(self, path: Path) -> Path | None:
        """Return the asset root containing *path*, if any."""
        for root in self._config.asset_paths:
            if path.is_relative_to(root):
                return root
        return None

    def destination_for(self, path: Path, root: Path) -> Path:
        """Output location for asset *path* found under *root*."""
        relative = path.relative_to(root)
        output = self._config.output_path
        if root.name in self._config.theme.flatten_assets:
            return output / relative
        return output / root.name / relative

    def copy_single(self, path: Path) -> ExportedFile | None:
        """Copy one asset file.

        Paths outside every asset root, deleted files, directories, and
        hidden files are skipped (a warning is printed for the first case).

        """
        root = self.root_for(path)
        if root is None:
            print(f"  Warning: {path} is not under any asset directory", file=sys.stderr)
            return None
        if not path.is_file() or _is_hidden(path, root):
            return None

        t0 = time.perf_counter()
        destination = self.destination_for(path, root)
        size = copy_file_atomic(path, destination)
        elapsed = (time.perf_counter() - t0) * 1000

        relative = path.relative_to(self._config.root).as_posix()
        if self._collector is not None:
            self._collector.record_build(
                "copy_asset", relative, str(destination), duration_ms=elapsed,
            )
        return ExportedFile(
            source_path=relative,
            output_path=destination,
            source_type="asset",
            size_bytes=size,
            duration_ms=elapsed,
        )

    def copy_all(self, errors: list[str] | None = None) -> tuple[ExportedFile, ...]:
        """Copy every file under every asset root.

        A file that fails to copy is reported, appended to *errors* when
        given, and does not stop the remaining copies.

        """
        results: list[ExportedFile] = []
        for root in self._config.asset_paths:
            if not root.is_dir():
                continue
            for path in sorted(root.rglob("*")):
                if not path.is_file():
                    continue
                try:
                    exported = self.copy_single(path)
                except BuildError as exc:
                    label = path.relative_to(self._config.root).as_posix()
                    print(f"  Error: {label}: {exc}", file=sys.stderr)
                    if errors is not None:
                        errors.append(f"{label}: {exc}")
                    continue
                if exported is not None:
                    results.append(exported)
        return tuple(results)
