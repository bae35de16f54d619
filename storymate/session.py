"""
Editor session - one project's flowchart open in the editor.

Ties together the graph, the EditorController, the preview walker and a
storage backend, and turns the reportable failures (persistence, missing
Start node, dead ends) into user-facing messages.

Load and save are blocking calls; the UI host runs them off its event
loop. Save serializes a snapshot taken at call time, so edits made while
a save is in flight are not part of it (last write wins). Load replaces
the graph wholesale when it completes.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from storymate.edit.controller import EditorController
from storymate.errors import NoStartNodeError, PersistenceError
from storymate.flowchart.graph import FlowchartGraph
from storymate.flowchart.interpreter import PreviewStep, StoryWalker
from storymate.flowchart.validation import Issue, validate_flowchart
from storymate.storage.protocol import FlowchartStore

logger = logging.getLogger(__name__)

# Notification levels, named after NiceGUI notify types
POSITIVE = "positive"
WARNING = "warning"
NEGATIVE = "negative"

SAVE_SUCCESS_MESSAGE = "Your flowchart has been saved successfully!"
LOAD_FALLBACK_MESSAGE = "Could not load the saved flowchart; starting from a new one."

SOURCE_STORED = "stored"
SOURCE_DEFAULT = "default"
SOURCE_FALLBACK = "fallback"


@dataclass
class LoadResult:
    graph: FlowchartGraph
    source: str
    message: Optional[str] = None


@dataclass
class SaveResult:
    ok: bool
    message: str


class EditorSession:
    """
    Usage:
        session = EditorSession("project-1", FileBackend("db/flowcharts"))
        session.load()
        session.controller.add_story_node()
        session.save()
    """

    def __init__(self, project_id: str, store: FlowchartStore,
                 controller: Optional[EditorController] = None):
        self.project_id = project_id
        self.store = store
        self.controller = controller or EditorController()
        self.walker = StoryWalker()
        self.preview_message: Optional[str] = None
        self._listeners: List[Callable[[str, str], None]] = []

    @property
    def graph(self) -> FlowchartGraph:
        return self.controller.graph

    def add_listener(self, callback: Callable[[str, str], None]) -> None:
        """Register a callback receiving (level, message) notifications."""
        self._listeners.append(callback)

    def _notify(self, level: str, message: str) -> None:
        for callback in self._listeners:
            callback(level, message)

    # --- Persistence ---

    def load(self) -> LoadResult:
        """Load the project's flowchart; fall back to the default graph when absent or unreadable."""
        return self.apply_load(self.fetch())

    def fetch(self) -> LoadResult:
        """Read from the store without touching the open graph (safe to run off the UI loop)."""
        try:
            graph = self.store.load_flowchart(self.project_id)
        except PersistenceError as e:
            logger.warning(f"Load failed for project {self.project_id}: {e}")
            return LoadResult(FlowchartGraph.bootstrap(), SOURCE_FALLBACK,
                              f"{LOAD_FALLBACK_MESSAGE} ({e})")
        if graph is None:
            return LoadResult(FlowchartGraph.bootstrap(), SOURCE_DEFAULT)
        return LoadResult(graph, SOURCE_STORED)

    def apply_load(self, result: LoadResult) -> LoadResult:
        """Replace the open graph with a fetched one."""
        self.controller.load_graph(result.graph)
        self.walker = StoryWalker()
        self.preview_message = None
        if result.message:
            self._notify(NEGATIVE, result.message)
        return result

    def snapshot(self) -> FlowchartGraph:
        return self.graph.copy()

    def save(self, snapshot: Optional[FlowchartGraph] = None) -> SaveResult:
        """
        Save a snapshot of the graph. Failures are reported, not retried.

        Pass a snapshot taken earlier to save the graph as it was at that
        moment; by default the snapshot is taken now.
        """
        return self.report_save(self.write(snapshot))

    def write(self, snapshot: Optional[FlowchartGraph] = None) -> SaveResult:
        """Store a snapshot and return the outcome without notifying."""
        snapshot = snapshot if snapshot is not None else self.snapshot()
        try:
            self.store.save_flowchart(self.project_id, snapshot)
        except PersistenceError as e:
            logger.warning(f"Save failed for project {self.project_id}: {e}")
            return SaveResult(False, f"Saving failed: {e}")
        return SaveResult(True, SAVE_SUCCESS_MESSAGE)

    def report_save(self, result: SaveResult) -> SaveResult:
        self._notify(POSITIVE if result.ok else NEGATIVE, result.message)
        return result

    # --- Preview ---

    def toggle_preview(self) -> Optional[PreviewStep]:
        """Switch between editing and previewing; entering preview starts at Start."""
        state = self.controller.toggle_preview()
        if state.is_preview:
            return self.start_preview()
        self.preview_message = None
        return None

    def start_preview(self) -> Optional[PreviewStep]:
        try:
            step = self.walker.start(self.graph)
        except NoStartNodeError as e:
            self.preview_message = str(e)
            self._notify(NEGATIVE, self.preview_message)
            return None
        return self._report(step)

    def restart_preview(self) -> Optional[PreviewStep]:
        return self.start_preview()

    def choose(self, node_id: str) -> Optional[PreviewStep]:
        return self._report(self.walker.advance(self.graph, node_id))

    def back(self) -> Optional[PreviewStep]:
        return self._report(self.walker.back(self.graph))

    def current_step(self) -> Optional[PreviewStep]:
        return self.walker.step(self.graph)

    def _report(self, step: Optional[PreviewStep]) -> Optional[PreviewStep]:
        self.preview_message = step.warning if step is not None else None
        if step is not None and step.warning:
            self._notify(WARNING, step.warning)
        return step

    # --- Validation ---

    def validate(self) -> List[Issue]:
        return validate_flowchart(self.graph)
