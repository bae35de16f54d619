"""
Editor Controller - Single source of truth for flowchart editing state.

This controller manages selection, drags, canvas pan/zoom and the preview
mode flag, and is the only path through which UI events mutate the graph:
- Taps and drags from the UI arrive as explicit begin/update/end calls
- Connection attempts go through the connection rules
- Observers get a fresh EditorState after every change

Drags always work from a position snapshotted at gesture start, so
repeated update events never compound their deltas.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Tuple

from storymate.edit.constants import (
    CUT_BUTTON_RADIUS,
    EDGE_HIT_TOLERANCE,
    MAX_ZOOM,
    MIN_ZOOM,
    NEW_NODE_X_STEP,
    NEW_NODE_Y,
    SNAP_RADIUS,
)
from storymate.edit.geometry import (
    CubicBezier,
    Viewport,
    distance_to_curve,
    edge_path,
    input_handle,
    node_contains,
)
from storymate.flowchart.graph import FlowchartGraph
from storymate.flowchart.models import Connection, FlowNode, NodeKind, Point
from storymate.flowchart.rules import has_input_handle, has_output_handle

logger = logging.getLogger(__name__)

MODE_IDLE = "idle"
MODE_NODE_SELECTED = "node_selected"
MODE_EDGE_SELECTED = "edge_selected"
MODE_CONNECTING = "connecting"


@dataclass(frozen=True)
class EditorState:
    """Immutable snapshot of current editor state."""
    selected_node_id: Optional[str] = None
    selected_edge: Optional[Connection] = None
    hovered_node_id: Optional[str] = None
    dragging_node_id: Optional[str] = None
    connection_from_id: Optional[str] = None
    connection_start: Optional[Point] = None
    connection_current: Optional[Point] = None
    pan: Point = Point(0.0, 0.0)
    zoom: float = 1.0
    is_preview: bool = False

    @property
    def is_connecting(self) -> bool:
        return self.connection_from_id is not None

    @property
    def mode(self) -> str:
        if self.is_connecting:
            return MODE_CONNECTING
        if self.selected_node_id is not None:
            return MODE_NODE_SELECTED
        if self.selected_edge is not None:
            return MODE_EDGE_SELECTED
        return MODE_IDLE

    @property
    def viewport(self) -> Viewport:
        return Viewport(pan=self.pan, zoom=self.zoom)


class EditorController:
    """Mediates every edit of a FlowchartGraph and tracks interaction state."""

    def __init__(self, graph: Optional[FlowchartGraph] = None):
        self._graph = graph if graph is not None else FlowchartGraph.bootstrap()
        self._state = EditorState()
        self._on_state_change: Optional[Callable[[EditorState], None]] = None

        # Gesture-start snapshots
        self._node_drag_start: Optional[Point] = None
        self._pan_start: Optional[Point] = None
        self._zoom_start: Optional[float] = None

    @property
    def state(self) -> EditorState:
        return self._state

    @property
    def graph(self) -> FlowchartGraph:
        return self._graph

    def set_on_state_change(self, callback: Callable[[EditorState], None]):
        self._on_state_change = callback

    def _set_state(self, **changes) -> EditorState:
        new_state = replace(self._state, **changes)
        if new_state != self._state:
            self._state = new_state
            self._notify_change()
        return self._state

    def _notify_change(self):
        if self._on_state_change:
            self._on_state_change(self._state)

    def load_graph(self, graph: FlowchartGraph) -> EditorState:
        """Swap in a whole new graph (e.g. a finished load). Transient state is dropped."""
        self._graph = graph
        self._node_drag_start = None
        self._pan_start = None
        self._zoom_start = None
        self._state = EditorState(pan=self._state.pan, zoom=self._state.zoom,
                                  is_preview=self._state.is_preview)
        self._notify_change()
        return self._state

    # --- Node creation ---

    def add_story_node(self) -> Optional[FlowNode]:
        return self._add_node(NodeKind.STORY)

    def add_decision_node(self) -> Optional[FlowNode]:
        return self._add_node(NodeKind.DECISION)

    def _add_node(self, kind: NodeKind) -> Optional[FlowNode]:
        if self._state.is_preview:
            return None
        rightmost = self._graph.rightmost_x()
        x = (rightmost if rightmost is not None else 0.0) + NEW_NODE_X_STEP
        node = FlowNode.create(kind, position=Point(x, NEW_NODE_Y))
        self._graph.add_node(node)
        logger.debug(f"Added {kind.value} node {node.id} at {node.position}")
        self._set_state(selected_node_id=node.id, selected_edge=None)
        return node

    def edit_node(self, node_id: str, text: Optional[str] = None,
                  image_data: Optional[str] = None, clear_image: bool = False) -> bool:
        """Apply the node edit sheet: new text and/or image."""
        if self._state.is_preview or self._graph.find_node(node_id) is None:
            return False
        if text is not None:
            self._graph.set_text(node_id, text)
        if image_data is not None or clear_image:
            self._graph.set_image(node_id, None if clear_image else image_data)
        return True

    # --- Selection ---

    def select_node(self, node_id: str) -> EditorState:
        if self._state.is_preview or self._graph.find_node(node_id) is None:
            return self._state
        return self._set_state(selected_node_id=node_id, selected_edge=None)

    def select_edge(self, from_id: str, to_id: str) -> EditorState:
        if self._state.is_preview or not self._graph.has_connection(from_id, to_id):
            return self._state
        return self._set_state(selected_edge=Connection(from_id, to_id), selected_node_id=None)

    def deselect_all(self) -> EditorState:
        return self._set_state(selected_node_id=None, selected_edge=None)

    # --- Deletion ---

    def delete_selected_node(self) -> bool:
        """Delete the selected node unless it is Start or End."""
        node_id = self._state.selected_node_id
        if self._state.is_preview or node_id is None:
            return False

        node = self._graph.find_node(node_id)
        if node is not None and node.kind in (NodeKind.START, NodeKind.END):
            return False

        removed = self._graph.remove_node(node_id)
        changes = {"selected_node_id": None}
        if self._state.hovered_node_id == node_id:
            changes["hovered_node_id"] = None
        self._set_state(**changes)
        return removed

    def delete_selected_edge(self) -> bool:
        edge = self._state.selected_edge
        if self._state.is_preview or edge is None:
            return False
        removed = self._graph.disconnect(edge.from_id, edge.to_id)
        self._set_state(selected_edge=None)
        return removed

    # --- Node drag ---

    def begin_node_drag(self, node_id: str) -> EditorState:
        node = self._graph.find_node(node_id)
        if self._state.is_preview or node is None:
            return self._state
        self._node_drag_start = node.position
        return self._set_state(dragging_node_id=node_id)

    def update_node_drag(self, node_id: str, delta: Point) -> EditorState:
        """Move the node to its drag-start position plus the total gesture delta."""
        if self._state.is_preview:
            return self._state
        if self._state.dragging_node_id != node_id or self._node_drag_start is None:
            self.begin_node_drag(node_id)
            if self._node_drag_start is None:
                return self._state
        self._graph.move_node(node_id, self._node_drag_start + delta)
        return self._state

    def end_node_drag(self) -> EditorState:
        self._node_drag_start = None
        return self._set_state(dragging_node_id=None)

    # --- Canvas pan / zoom ---

    def begin_canvas_drag(self) -> EditorState:
        self._pan_start = self._state.pan
        return self._state

    def update_canvas_drag(self, delta: Point) -> EditorState:
        if self._pan_start is None:
            self._pan_start = self._state.pan
        return self._set_state(pan=self._pan_start + delta)

    def end_canvas_drag(self) -> EditorState:
        self._pan_start = None
        return self._state

    def begin_zoom(self) -> EditorState:
        self._zoom_start = self._state.zoom
        return self._state

    def update_zoom(self, factor: float) -> EditorState:
        """Scale the zoom at gesture start by the gesture's total magnification."""
        if self._zoom_start is None:
            self._zoom_start = self._state.zoom
        return self.set_zoom(self._zoom_start * factor)

    def end_zoom(self) -> EditorState:
        self._zoom_start = None
        return self._state

    def set_zoom(self, scale: float) -> EditorState:
        return self._set_state(zoom=max(MIN_ZOOM, min(MAX_ZOOM, scale)))

    # --- Connection drag ---

    def begin_connection_drag(self, from_id: str, at_point: Point) -> EditorState:
        node = self._graph.find_node(from_id)
        if self._state.is_preview or node is None or not has_output_handle(node):
            return self._state
        return self._set_state(
            connection_from_id=from_id,
            connection_start=at_point,
            connection_current=at_point,
            hovered_node_id=None,
        )

    def update_connection_drag(self, to_point: Point) -> EditorState:
        if self._state.is_preview or not self._state.is_connecting:
            return self._state
        hovered = self._find_hover_target(to_point, exclude=self._state.connection_from_id)
        return self._set_state(connection_current=to_point, hovered_node_id=hovered)

    def end_connection_drag(self) -> bool:
        """
        Finish a connection drag. Connects to the hovered node if the rules
        allow; a rejected or target-less drag is simply dropped.
        While previewing the drag is suspended: nothing connects and the
        connecting state is kept for when editing resumes.
        """
        if self._state.is_preview:
            return False
        from_id = self._state.connection_from_id
        to_id = self._state.hovered_node_id
        connected = False
        if from_id is not None and to_id is not None:
            connected = self._graph.connect(from_id, to_id)
            if not connected:
                logger.debug(f"Dropped connection {from_id} -> {to_id}")
        self._set_state(
            connection_from_id=None,
            connection_start=None,
            connection_current=None,
            hovered_node_id=None,
        )
        return connected

    def _find_hover_target(self, point: Point, exclude: Optional[str] = None) -> Optional[str]:
        viewport = self._state.viewport
        closest_id = None
        closest_dist = float('inf')

        for node in self._graph:
            if node.id == exclude or not has_input_handle(node):
                continue
            dist = input_handle(node, viewport).distance_to(point)
            if dist < SNAP_RADIUS and dist < closest_dist:
                closest_dist = dist
                closest_id = node.id
        return closest_id

    # --- Taps ---

    def tap(self, point: Point) -> EditorState:
        """Select whatever is under a screen point, or clear the selection."""
        if self._state.is_preview:
            return self._state
        node = self.find_node_at(point)
        if node is not None:
            return self.select_node(node.id)
        edge = self.find_edge_at(point)
        if edge is not None:
            return self.select_edge(edge.from_id, edge.to_id)
        return self.deselect_all()

    def cut_edge_at(self, point: Point) -> bool:
        """Delete the edge whose midpoint cut button is under the point."""
        if self._state.is_preview:
            return False
        for connection in self._graph.connections():
            mid = self.connection_midpoint(connection)
            if mid is not None and mid.distance_to(point) <= CUT_BUTTON_RADIUS:
                self._graph.disconnect(connection.from_id, connection.to_id)
                if self._state.selected_edge == connection:
                    self._set_state(selected_edge=None)
                return True
        return False

    def find_node_at(self, point: Point) -> Optional[FlowNode]:
        # Later nodes are drawn on top
        for node in reversed(self._graph.nodes):
            if node_contains(node, point, self._state.viewport):
                return node
        return None

    def find_edge_at(self, point: Point, tolerance: float = EDGE_HIT_TOLERANCE) -> Optional[Connection]:
        closest = None
        closest_dist = float('inf')
        for connection in self._graph.connections():
            curve = self.connection_path(connection)
            if curve is None:
                continue
            dist = distance_to_curve(point, curve)
            if dist <= tolerance and dist < closest_dist:
                closest_dist = dist
                closest = connection
        return closest

    # --- Preview ---

    def toggle_preview(self) -> EditorState:
        """Flip preview mode. Entering preview clears the selection."""
        if self._state.is_preview:
            return self._set_state(is_preview=False)
        return self._set_state(is_preview=True, selected_node_id=None, selected_edge=None)

    # --- Rendering helpers ---

    def connection_path(self, connection: Connection) -> Optional[CubicBezier]:
        from_node = self._graph.find_node(connection.from_id)
        to_node = self._graph.find_node(connection.to_id)
        if from_node is None or to_node is None:
            return None
        return edge_path(from_node, to_node, self._state.viewport)

    def connection_midpoint(self, connection: Connection) -> Optional[Point]:
        curve = self.connection_path(connection)
        return curve.midpoint() if curve is not None else None

    def dragging_connection_line(self) -> Optional[Tuple[Point, Point]]:
        """Straight rubber-band line for an in-progress connection drag."""
        start, current = self._state.connection_start, self._state.connection_current
        if start is None or current is None:
            return None
        return start, current

    def all_connection_paths(self) -> List[Tuple[Connection, CubicBezier]]:
        paths = []
        for connection in self._graph.connections():
            curve = self.connection_path(connection)
            if curve is not None:
                paths.append((connection, curve))
        return paths
