"""
Connection legality for the story flowchart.

The table below is the authoring model: linear story beats that branch
only through explicit Decision nodes and terminate at End.

    from \\ to   Start  Story  Decision  End
    Start         -      yes     yes      -
    Story         -      yes     yes     yes
    Decision      -      yes      -      yes
    End           -       -       -       -

`can_connect` is pure. `plan_connection` works out which existing edges a
new connection replaces; `apply_connection` carries the plan out.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, FrozenSet, List, Optional

from storymate.flowchart.models import Connection, FlowNode, NodeKind

if TYPE_CHECKING:
    from storymate.flowchart.graph import FlowchartGraph


ALLOWED_TARGETS: Dict[NodeKind, FrozenSet[NodeKind]] = {
    NodeKind.START: frozenset({NodeKind.STORY, NodeKind.DECISION}),
    NodeKind.STORY: frozenset({NodeKind.STORY, NodeKind.DECISION, NodeKind.END}),
    NodeKind.DECISION: frozenset({NodeKind.STORY, NodeKind.END}),
    NodeKind.END: frozenset(),
}


def can_connect(from_node: FlowNode, to_node: FlowNode) -> bool:
    """Return True if a directed edge from_node -> to_node is permitted."""
    if from_node.id == to_node.id:
        return False
    if to_node.kind is NodeKind.START:
        return False
    if from_node.kind is NodeKind.END:
        return False
    return to_node.kind in ALLOWED_TARGETS[from_node.kind]


def has_output_handle(node: FlowNode) -> bool:
    return node.kind is not NodeKind.END


def has_input_handle(node: FlowNode) -> bool:
    return node.kind is not NodeKind.START


@dataclass
class ConnectionPlan:
    """What committing a legal connection does to the graph."""
    connection: Connection
    already_present: bool = False
    removed: List[Connection] = field(default_factory=list)

    @property
    def changes_graph(self) -> bool:
        return not self.already_present


def plan_connection(graph: "FlowchartGraph", from_id: str, to_id: str) -> Optional[ConnectionPlan]:
    """
    Work out the effect of connecting from_id -> to_id without mutating.

    Returns None when either node is missing or the edge is illegal.
    A pair that already exists yields a plan with no removals.
    """
    from_node = graph.find_node(from_id)
    to_node = graph.find_node(to_id)
    if from_node is None or to_node is None:
        return None
    if not can_connect(from_node, to_node):
        return None

    plan = ConnectionPlan(connection=Connection(from_id, to_id))
    if to_id in from_node.outgoing:
        plan.already_present = True
        return plan

    # A Story keeps at most one non-Decision continuation.
    if from_node.kind is NodeKind.STORY:
        for target_id in from_node.outgoing:
            target = graph.find_node(target_id)
            if target is None or target.kind is not NodeKind.DECISION:
                plan.removed.append(Connection(from_id, target_id))

    # A Story target keeps at most one Story predecessor.
    if to_node.kind is NodeKind.STORY:
        for other in graph.nodes:
            if other.id == from_id or other.kind is not NodeKind.STORY:
                continue
            if to_id in other.outgoing:
                plan.removed.append(Connection(other.id, to_id))

    return plan


def apply_connection(graph: "FlowchartGraph", from_id: str, to_id: str) -> bool:
    """
    Commit a connection with its replacement side effects.

    Returns True if the edge exists afterwards (including the idempotent
    case), False if the attempt was rejected.
    """
    plan = plan_connection(graph, from_id, to_id)
    if plan is None:
        return False
    if not plan.changes_graph:
        return True

    touched = {}
    for edge in plan.removed:
        node = graph.find_node(edge.from_id)
        if node is not None and edge.to_id in node.outgoing:
            node.outgoing.remove(edge.to_id)
            touched[node.id] = node

    from_node = graph.find_node(from_id)
    from_node.outgoing.append(to_id)
    touched[from_node.id] = from_node

    for node in touched.values():
        graph.update_node(node, notify=False)
    return True
