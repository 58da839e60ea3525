"""HTML output processing — minify, beautify, and snippet injection."""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

import htmlmin
from bs4 import BeautifulSoup
from bs4.formatter import HTMLFormatter

if TYPE_CHECKING:
    from kiln.config import HtmlConfig

_BODY_CLOSE_RE = re.compile(r"</body>", re.IGNORECASE)


def minify(html: str) -> str:
    """Drop comments and blank runs between tags; ``<pre>``/``<textarea>`` kept as is."""
    return htmlmin.minify(
        html,
        remove_comments=True,
        remove_empty_space=True,
        reduce_boolean_attributes=True,
    )


def beautify(html: str, indent_size: int = 2) -> str:
    """Re-indent markup with BeautifulSoup."""
    soup = BeautifulSoup(html, "html.parser")
    return soup.prettify(formatter=HTMLFormatter(indent=indent_size))


def html_processor(config: HtmlConfig) -> Callable[[str], str]:
    """Return the post-processing function selected by ``html.format``."""
    if config.format == "minify":
        return minify
    if config.format == "beautify":
        indent = config.indent_size
        return lambda html: beautify(html, indent)
    return lambda html: html


def insert_before_body_close(html: str, snippet: str) -> str:
    """Insert *snippet* before the last ``</body>``, or append it."""
    matches = list(_BODY_CLOSE_RE.finditer(html))
    if not matches:
        return html + snippet
    idx = matches[-1].start()
    return html[:idx] + snippet + html[idx:]


def describe_value(value: Any) -> str:
    """Short one-line description of a template value for debug output."""
    if isinstance(value, str):
        return repr(value[:50] + "..." if len(value) > 50 else value)
    if isinstance(value, (list, tuple)):
        return f"[{len(value)} items]"
    if isinstance(value, dict):
        return f"{{{len(value)} entries}}"
    if value is None or isinstance(value, (bool, int, float)):
        return repr(value)
    return f"[{type(value).__name__}]"


def debug_comment(template: str, layout: str | None, data: dict[str, Any]) -> str:
    """Build the dev-mode trace comment for a rendered page."""
    lines = [
        "",
        "<!--",
        "  kiln debug",
        f"  generated: {datetime.now().isoformat(timespec='seconds')}",
        f"  template: {template}",
        f"  layout: {layout or 'none'}",
        "  context:",
    ]
    for key, value in data.items():
        if key.startswith("__"):
            continue
        if key in ("content", "datasource"):
            lines.append(f"    {key}: [omitted]")
        else:
            lines.append(f"    {key}: {describe_value(value)}")
    lines.append("-->")
    # "--" is not allowed inside a comment body
    body = "\n".join(lines[2:-1]).replace("--", "- -")
    return "\n".join([*lines[:2], body, lines[-1]]) + "\n"
