"""Output records and file writing for the build tree."""

from __future__ import annotations

import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from kiln._errors import BuildError

type OutputType = Literal["post", "page", "home", "index", "asset", "feed", "datasource"]


@dataclass(frozen=True, slots=True)
class ExportedFile:
    """Record of a single file written during a build.

    Attributes:
        source_path: Logical source (document id, asset path, or file name).
        output_path: Absolute filesystem path to the written file.
        source_type: Category of the written file.
        size_bytes: Size of the written file in bytes.
        duration_ms: Time taken to produce and write this file.

    """

    source_path: str
    output_path: Path
    source_type: OutputType
    size_bytes: int
    duration_ms: float


def url_to_filepath(output_path: str, output_dir: Path) -> Path:
    """Convert a URL-relative document path to its ``index.html`` file.

    Clean URL convention:
        ``""``            -> ``output/index.html``
        ``"about"``       -> ``output/about/index.html``
        ``"docs/intro"``  -> ``output/docs/intro/index.html``

    """
    clean = output_path.strip("/")
    if not clean:
        return output_dir / "index.html"
    return output_dir / clean / "index.html"


def write_bytes_atomic(filepath: Path, data: bytes) -> int:
    """Write *data* to *filepath* via a sibling temp file and ``os.replace``.

    Parent directories are created as needed.  Readers see either the old
    file or the complete new one.

    Returns:
        The number of bytes written.

    Raises:
        BuildError: If the file cannot be written.

    """
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=filepath.parent, prefix=f".{filepath.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            # mkstemp creates 0600 files
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, filepath)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        msg = f"Failed to write {filepath}: {exc}"
        raise BuildError(msg) from exc
    return len(data)


def write_text_atomic(filepath: Path, text: str) -> int:
    """UTF-8 encode *text* and write it atomically."""
    return write_bytes_atomic(filepath, text.encode("utf-8"))


def copy_file_atomic(source: Path, destination: Path) -> int:
    """Copy *source* (with metadata) to *destination* atomically.

    Returns:
        The size of the copied file in bytes.

    Raises:
        BuildError: If the copy fails.

    """
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=destination.parent, prefix=f".{destination.name}.", suffix=".tmp",
        )
        os.close(fd)
        try:
            shutil.copy2(source, tmp_name)
            os.replace(tmp_name, destination)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return destination.stat().st_size
    except OSError as exc:
        msg = f"Failed to copy {source} to {destination}: {exc}"
        raise BuildError(msg) from exc
