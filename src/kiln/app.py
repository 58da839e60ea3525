"""Kiln application — the build and dev entry points.

``build()`` runs one full build and prints a summary.  ``dev()`` does a
full build with live reload injected, then runs the watcher, the rebuild
debouncer and the dev server until interrupted.
"""

import sys
import threading
import time
from collections.abc import Callable
from pathlib import Path

from kiln.config import KilnConfig
from kiln.config_loader import load_config
from kiln.export.orchestrator import BuildOrchestrator, BuildResult
from kiln.reactive.livereload import LiveReloadState


def _print_summary(result: BuildResult, config: KilnConfig) -> None:
    """Print a build summary to stderr."""
    total_bytes = sum(f.size_bytes for f in result.files)
    size_label = (
        f"{total_bytes / 1024:.1f} KB" if total_bytes < 1_048_576
        else f"{total_bytes / 1_048_576:.1f} MB"
    )
    print(
        f"  Built {result.total_pages} pages, {result.total_assets} assets "
        f"({size_label}) in {result.duration_ms:.0f}ms",
        file=sys.stderr,
    )
    print(f"  Output: {config.output_path}", file=sys.stderr)
    if result.errors:
        label = "error" if len(result.errors) == 1 else "errors"
        print(f"  {len(result.errors)} {label} during build", file=sys.stderr)


def _rebuild_handler(
    orchestrator: BuildOrchestrator,
) -> Callable[[frozenset[Path]], BuildResult]:
    """Return the debouncer callback for *orchestrator*."""

    def rebuild(paths: frozenset[Path]) -> BuildResult:
        result = orchestrator.build_incremental(paths)
        if result.strategy != "skipped":
            print(
                f"  Rebuilt ({result.strategy}) {len(result.files)} files "
                f"in {result.duration_ms:.0f}ms",
                file=sys.stderr,
            )
        return result

    return rebuild


def _reload_on_success(state: LiveReloadState) -> Callable[[BuildResult], None]:
    """Return the debouncer completion hook that bumps *state*.

    Skipped cycles and cycles with per-document errors leave the version
    alone.
    """

    def complete(result: BuildResult) -> None:
        if result.strategy != "skipped" and result.ok:
            state.mark_rebuilt()

    return complete


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build(root: str | Path = ".", *, base_url: str | None = None) -> BuildResult:
    """Run a full build of the site at *root*.

    Args:
        root: Site root directory (contains ``config.json``).
        base_url: Overrides ``baseUrl`` from the config file.

    Returns:
        The build result, including per-document errors.

    Raises:
        ConfigError: If the config file is missing or invalid.

    """
    from kiln.banner import print_banner

    config = load_config(root, base_url=base_url)
    start = time.perf_counter()
    orchestrator = BuildOrchestrator(config)
    posts = orchestrator.store.load_all_posts()
    pages = orchestrator.store.load_all_pages()
    load_ms = (time.perf_counter() - start) * 1000
    print_banner(config, len(posts), len(pages), "build", load_ms=load_ms)

    result = orchestrator.build_full()
    _print_summary(result, config)
    return result


def dev(
    root: str | Path = ".",
    *,
    host: str | None = None,
    port: int | None = None,
    stop_event: threading.Event | None = None,
) -> None:
    """Build the site, then watch, rebuild and serve it with live reload.

    Blocks until interrupted (or until *stop_event* is set).

    Args:
        root: Site root directory.
        host: Bind address; overrides ``devServer.host``.
        port: Bind port; overrides ``devServer.port``.
        stop_event: Optional event that ends the session when set.

    Raises:
        ConfigError: If the config file is missing or invalid.

    """
    from kiln.banner import print_banner
    from kiln.content.watcher import WatchLoop
    from kiln.observability import BuildCollector, EventLog
    from kiln.reactive.debouncer import Debouncer
    from kiln.server import DevServer

    base = load_config(root, host=host, port=port)
    # Links must point at the local server, not the production site
    config = load_config(
        root,
        host=host,
        port=port,
        base_url=f"http://{base.dev_server.host}:{base.dev_server.port}",
    )

    collector = BuildCollector(EventLog())
    orchestrator = BuildOrchestrator(config, collector=collector, inject_livereload=True)

    start = time.perf_counter()
    initial = orchestrator.build_full()
    load_ms = (time.perf_counter() - start) * 1000

    state = LiveReloadState()
    debouncer = Debouncer(
        _rebuild_handler(orchestrator),
        on_complete=_reload_on_success(state),
        collector=collector,
    )
    watcher = WatchLoop(config, debouncer)
    server = DevServer(
        config.output_path, state, host=config.dev_server.host, port=config.dev_server.port,
    )

    print_banner(
        config,
        len(orchestrator.store.load_all_posts()),
        len(orchestrator.store.load_all_pages()),
        "dev",
        load_ms=load_ms,
        warnings=list(initial.errors),
    )

    server.start()
    watcher.start()
    waiter = stop_event or threading.Event()
    try:
        while not waiter.wait(0.5):
            pass
    except KeyboardInterrupt:
        print("\n  Stopping...", file=sys.stderr)
    finally:
        watcher.stop()
        debouncer.shutdown(cancel_pending=True)
        server.shutdown()
