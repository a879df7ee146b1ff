"""
wipman - plain-text task manager.

Keeps a directory of Task files and View files consistent: an edit to any
file is reconciled into in-memory stores and propagated to every other file
it affects.
"""

__version__ = "0.4.0-dev"

# Re-export core models for convenience
from wipman.core.config.models import WipmanConfig
from wipman.core.tasks.models import Task
from wipman.core.views.models import View, ViewLine

__all__ = ["WipmanConfig", "Task", "View", "ViewLine", "__version__"]
