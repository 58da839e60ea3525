"""Kiln — a static site builder for posts and pages.

Content lives in Markdown, HTML or Jinja files; templates compose it into
shared layouts; ``kiln dev`` rebuilds only what changed and reloads the
browser.

Quick start::

    import kiln

    kiln.build("my-site/")        # Full build into the output directory
    kiln.dev("my-site/")          # Watch, rebuild, serve with live reload

"""

# PEP 703: Declare this module as free-threading safe
_Py_mod_gil = 0

__version__ = "0.1.0-dev"
__all__ = [
    "KilnConfig",
    "__version__",
    "build",
    "dev",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import kiln`` fast while providing a clean top-level API.
    """
    if name == "KilnConfig":
        from kiln.config import KilnConfig

        return KilnConfig

    if name == "dev":
        from kiln.app import dev

        return dev

    if name == "build":
        from kiln.app import build

        return build

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
