"""Reactive layer — debounced rebuilds and browser live reload.

File changes are coalesced by the Debouncer into one serial rebuild at a
time; each successful rebuild advances the LiveReloadState version that
the dev server exposes to open pages.
"""

from kiln.reactive.debouncer import Debouncer, PendingRebuild
from kiln.reactive.livereload import LiveReloadState, inject_livereload

__all__ = [
    "Debouncer",
    "LiveReloadState",
    "PendingRebuild",
    "inject_livereload",
]
