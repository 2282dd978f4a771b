"""Fatal pipeline errors.

Anything raised from here aborts the whole export. Per-image pull, save and
scan failures are recorded on their outcomes instead.
"""


class ExportError(RuntimeError):
    """Base class for fatal export conditions."""


class ToolUnavailableError(ExportError):
    """A required external tool is not reachable."""

    def __init__(self, tool: str, message: str):
        super().__init__(message)
        self.tool = tool


class ResolutionError(ExportError):
    """Image references could not be resolved (cluster, helm or manifest)."""


class NoImagesFoundError(ExportError):
    """The resolver produced zero images."""


class BuildError(ExportError):
    """The batch build of compose services failed."""
