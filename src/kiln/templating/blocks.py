"""Block protocol — content overrides for named layout regions.

A content template declares overrides with::

    {% call content("head") %}<title>{{ post.title }}</title>{% endcall %}

and the layout declares the region with a default body::

    {% call block("head") %}<meta name="x">{% endcall %}

Overrides are collected into a ``BlockRegistry`` that lives in the render
data under a private key.  Each ``render_with_layout`` call creates its
own registry, so nested or concurrent renders never share one.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from jinja2 import pass_context
from jinja2.runtime import Context
from markupsafe import Markup

# Render-data key holding the active registry
REGISTRY_KEY = "__kiln_blocks__"


class BlockRegistry:
    """Ordered override fragments per block name, for one render pass."""

    __slots__ = ("_blocks",)

    def __init__(self) -> None:
        self._blocks: dict[str, list[str]] = {}

    def add(self, name: str, fragment: str) -> None:
        """Append *fragment* to block *name*, creating the slot if needed."""
        self._blocks.setdefault(name, []).append(fragment)

    def has(self, name: str) -> bool:
        """True if *name* was overridden, even with an empty body."""
        return name in self._blocks

    def get(self, name: str) -> str | None:
        """Joined fragments for *name*, or None when not overridden."""
        fragments = self._blocks.get(name)
        if fragments is None:
            return None
        return "".join(fragments)

    def names(self) -> list[str]:
        return list(self._blocks)

    def clear(self) -> None:
        self._blocks.clear()

    def __len__(self) -> int:
        return len(self._blocks)


def _registry(context: Context) -> BlockRegistry | None:
    registry = context.get(REGISTRY_KEY)
    return registry if isinstance(registry, BlockRegistry) else None


@pass_context
def content_override(
    context: Context,
    name: str,
    caller: Callable[[], str] | None = None,
) -> Markup:
    """Record the call body as an override for block *name*; render nothing.

    Outside a layout render pass there is nowhere to collect the body, so
    it is dropped.

    """
    registry = _registry(context)
    if registry is not None and caller is not None:
        registry.add(str(name), str(caller()))
    return Markup("")


@pass_context
def block_region(
    context: Context,
    name: str,
    caller: Callable[[], str] | None = None,
) -> Markup:
    """Emit the overrides collected for *name*, else the call body."""
    registry = _registry(context)
    if registry is not None:
        override = registry.get(str(name))
        if override is not None:
            return Markup(override)
    if caller is None:
        return Markup("")
    return Markup(caller())


def block_globals() -> dict[str, Any]:
    """Globals registered on the template environment."""
    return {"content": content_override, "block": block_region}
