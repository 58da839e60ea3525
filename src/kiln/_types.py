"""Shared type definitions for kiln."""

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from pathlib import Path

# Mode of operation
type KilnMode = Literal["dev", "build"]

# How a build cycle was carried out
type BuildStrategy = Literal["full", "incremental", "skipped"]

# Stable per-kind document identifier (e.g. "hello", "guides/setup")
type DocumentId = str

# Template block name
type BlockName = str

# Data map handed to a template render
type RenderData = dict[str, Any]

# Callback that runs one rebuild for a set of changed paths
type RebuildFunc = Callable[[Iterable[Path]], Any]
