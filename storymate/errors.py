"""
Reportable failures for StoryMate.

Only the persistence boundary and the preview start raise these; graph
mutations that do not apply are silent no-ops.
"""


class StoryMateError(Exception):
    """Base class for errors that are shown to the user."""


class PersistenceError(StoryMateError):
    """Loading or saving a flowchart failed."""

    def __init__(self, message: str, project_id: str = None):
        super().__init__(message)
        self.project_id = project_id


class PreviewError(StoryMateError):
    """The preview walker cannot proceed."""


class NoStartNodeError(PreviewError):
    """The graph has no Start node to begin the preview from."""

    def __init__(self, message: str = "No starting node found"):
        super().__init__(message)
