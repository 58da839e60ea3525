"""Templating layer — Jinja content templates composed into layouts."""

from kiln.templating.blocks import BlockRegistry
from kiln.templating.composer import TemplateComposer

__all__ = ["BlockRegistry", "TemplateComposer"]
