"""Startup banner — mode-aware status output.

Prints a startup banner with content counts, timing and locations.
Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kiln.config import KilnConfig


# ---------------------------------------------------------------------------
# ANSI helpers — respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_CYAN = "\033[36m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""
_RED = "\033[38;5;202m" if _COLOR else ""


# ---------------------------------------------------------------------------
# Mode badges
# ---------------------------------------------------------------------------

_MODE_STYLES: dict[str, tuple[str, str]] = {
    "dev": (_GREEN, "dev"),
    "build": (_YELLOW, "build"),
}


def _mode_badge(mode: str) -> str:
    """Return a styled [mode] badge."""
    color, label = _MODE_STYLES.get(mode, (_DIM, mode))
    return f"{color}[{label}]{_RESET}"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


# ---------------------------------------------------------------------------
# Clickable URL (OSC 8 hyperlink escape)
# ---------------------------------------------------------------------------

def _clickable_url(url: str) -> str:
    """Wrap *url* in an OSC 8 hyperlink escape if the terminal supports it."""
    if not _COLOR:
        return url
    # OSC 8 ;; url ST  visible text  OSC 8 ;; ST
    return f"\033]8;;{url}\033\\{_BOLD}{_CYAN}{url}{_RESET}\033]8;;\033\\"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def print_banner(
    config: KilnConfig,
    post_count: int,
    page_count: int,
    mode: str,
    *,
    load_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> None:
    """Print the kiln startup banner to stderr.

    Args:
        config: Resolved KilnConfig.
        post_count: Number of posts loaded.
        page_count: Number of pages loaded.
        mode: ``"dev"`` or ``"build"``.
        load_ms: Time spent loading (or building) the site in milliseconds.
        warnings: Optional list of warning messages to display.

    """
    from kiln import __version__

    badge = _mode_badge(mode)
    header = f"  {_RED}{_BOLD}▲{_RESET}  Kiln {_DIM}v{__version__}{_RESET}  {badge}"

    lines: list[str] = [
        "",
        header,
        f"  {_DIM}{'─' * 43}{_RESET}",
    ]

    timing = f" {_DIM}in {load_ms:.0f}ms{_RESET}" if load_ms > 0 else ""
    lines.append(
        f"  {_DIM}├─{_RESET} {config.site_name}: "
        f"{_plural(post_count, 'post')}, {_plural(page_count, 'page')} loaded{timing}"
    )
    lines.append(f"  {_DIM}├─{_RESET} templates: {_DIM}{config.templates_path}{_RESET}")

    if mode == "dev":
        lines.append(
            f"  {_DIM}├─{_RESET} {_GREEN}live reload{_RESET} "
            f"on {_DIM}/__kiln__/reload{_RESET}"
        )
    lines.append(f"  {_DIM}└─{_RESET} output: {_DIM}{config.output_path}{_RESET}")

    if mode == "dev":
        url = f"http://{config.dev_server.host}:{config.dev_server.port}"
        lines.append("")
        lines.append(f"  {_clickable_url(url)}")
        lines.append("")
        lines.append(f"  {_DIM}Watching for changes...{_RESET}")

    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)

    lines.append("")

    print("\n".join(lines), file=sys.stderr)
