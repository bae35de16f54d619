"""
FlowchartGraph - the node store for a branching story.

The graph owns every node, keyed by id and kept in insertion order.
Edges are never stored on their own: the edge set is exactly the union
of each node's `outgoing` list paired with that node's id.
"""

import logging
from typing import Callable, Dict, Iterator, List, Optional

import networkx as nx

from storymate.flowchart.models import Connection, FlowNode, NodeKind, Point
from storymate.flowchart import rules

logger = logging.getLogger(__name__)

# Default bootstrap positions for a brand new flowchart
BOOTSTRAP_START_POSITION = Point(100.0, 100.0)
BOOTSTRAP_END_POSITION = Point(400.0, 150.0)


class FlowchartGraph:
    """
    Ordered collection of FlowNodes with consistent edge bookkeeping.

    Usage:
        graph = FlowchartGraph.bootstrap()
        story = FlowNode.create(NodeKind.STORY)
        graph.add_node(story)
        graph.connect(graph.start_node().id, story.id)
    """

    def __init__(self, nodes: Optional[List[FlowNode]] = None):
        self._nodes: Dict[str, FlowNode] = {}
        self._on_change: Optional[Callable[["FlowchartGraph"], None]] = None
        for node in nodes or []:
            self.add_node(node, notify=False)

    @classmethod
    def bootstrap(cls) -> "FlowchartGraph":
        """Default graph used when nothing has been saved: one Start, one End."""
        return cls([
            FlowNode.create(NodeKind.START, position=BOOTSTRAP_START_POSITION),
            FlowNode.create(NodeKind.END, position=BOOTSTRAP_END_POSITION),
        ])

    # --- Change notification ---

    def set_on_change(self, callback: Optional[Callable[["FlowchartGraph"], None]]):
        self._on_change = callback

    def _notify_change(self):
        if self._on_change:
            self._on_change(self)

    # --- Queries ---

    @property
    def nodes(self) -> List[FlowNode]:
        return list(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[FlowNode]:
        return iter(list(self._nodes.values()))

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    def find_node(self, node_id: str) -> Optional[FlowNode]:
        return self._nodes.get(node_id)

    def nodes_of_kind(self, kind: NodeKind) -> List[FlowNode]:
        return [n for n in self._nodes.values() if n.kind is kind]

    def start_node(self) -> Optional[FlowNode]:
        """First Start node in insertion order, or None for a malformed graph."""
        starts = self.nodes_of_kind(NodeKind.START)
        return starts[0] if starts else None

    def rightmost_x(self) -> Optional[float]:
        if not self._nodes:
            return None
        return max(n.position.x for n in self._nodes.values())

    def connections(self) -> List[Connection]:
        """All edges, ordered by source insertion order then `outgoing` order."""
        return [
            Connection(node.id, target_id)
            for node in self._nodes.values()
            for target_id in node.outgoing
        ]

    def has_connection(self, from_id: str, to_id: str) -> bool:
        node = self._nodes.get(from_id)
        return node is not None and to_id in node.outgoing

    def successors(self, node_id: str) -> List[FlowNode]:
        """Targets of a node's outgoing edges that exist, in `outgoing` order."""
        node = self._nodes.get(node_id)
        if node is None:
            return []
        return [self._nodes[t] for t in node.outgoing if t in self._nodes]

    def predecessors(self, node_id: str) -> List[FlowNode]:
        return [n for n in self._nodes.values() if node_id in n.outgoing]

    # --- Mutations ---

    def add_node(self, node: FlowNode, notify: bool = True) -> None:
        """Append a node. Its id must be new to this graph."""
        if node.id in self._nodes:
            raise ValueError(f"Node id already present: {node.id}")
        self._nodes[node.id] = node
        if notify:
            self._notify_change()

    def update_node(self, node: FlowNode, notify: bool = True) -> bool:
        """Replace the stored node that has the same id. Unknown ids are ignored."""
        if node.id not in self._nodes:
            return False
        self._nodes[node.id] = node
        if notify:
            self._notify_change()
        return True

    def remove_node(self, node_id: str) -> bool:
        """Remove a node and strip it from every other node's `outgoing`."""
        if node_id not in self._nodes:
            return False
        del self._nodes[node_id]
        for other in self._nodes.values():
            if node_id in other.outgoing:
                other.outgoing = [t for t in other.outgoing if t != node_id]
        self._notify_change()
        return True

    def connect(self, from_id: str, to_id: str) -> bool:
        """
        Add the edge from_id -> to_id if the connection rules allow it.

        Applies the replacement policy from `rules.plan_connection`.
        Connecting an existing pair again changes nothing.
        Returns True if the edge exists afterwards.
        """
        before = self.connections()
        connected = rules.apply_connection(self, from_id, to_id)
        if not connected:
            logger.debug(f"Rejected connection {from_id} -> {to_id}")
            return False
        if self.connections() != before:
            self._notify_change()
        return True

    def disconnect(self, from_id: str, to_id: str) -> bool:
        node = self._nodes.get(from_id)
        if node is None or to_id not in node.outgoing:
            return False
        node.outgoing.remove(to_id)
        self._notify_change()
        return True

    def move_node(self, node_id: str, position: Point, notify: bool = True) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            return False
        node.position = position
        if notify:
            self._notify_change()
        return True

    def set_text(self, node_id: str, text: str) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            return False
        node.text = text
        self._notify_change()
        return True

    def set_image(self, node_id: str, image_data: Optional[str]) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            return False
        node.image_data = image_data or None
        self._notify_change()
        return True

    # --- Snapshots ---

    def copy(self) -> "FlowchartGraph":
        """Deep copy without the change listener."""
        return FlowchartGraph([n.copy() for n in self._nodes.values()])

    def to_networkx(self) -> nx.DiGraph:
        """DiGraph view with `kind` and `text` node attributes; dangling targets are skipped."""
        G = nx.DiGraph()
        for node in self._nodes.values():
            G.add_node(node.id, kind=node.kind, text=node.text)
        for node in self._nodes.values():
            for target_id in node.outgoing:
                if target_id in self._nodes:
                    G.add_edge(node.id, target_id)
        return G
