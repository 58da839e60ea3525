"""Kiln error hierarchy.

All kiln-specific errors inherit from KilnError for easy catching.
"""


class KilnError(Exception):
    """Base error for all kiln operations."""


class ConfigError(KilnError):
    """Invalid or missing configuration."""


class ContentError(KilnError):
    """Error in content processing (discovery, parsing)."""


class TemplateError(KilnError):
    """Error while resolving or rendering a template."""


class BuildError(KilnError):
    """Error while writing build output."""
