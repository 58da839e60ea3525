"""Export layer — write the built site to the output directory.

The BuildOrchestrator renders posts, pages and listings, writes the RSS
feed and the datasource bundle, and mirrors asset directories.
"""

from kiln.export.orchestrator import BuildOrchestrator, BuildResult
from kiln.export.output import ExportedFile

__all__ = ["BuildOrchestrator", "BuildResult", "ExportedFile"]
