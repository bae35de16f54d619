"""
Story preview walker.

Walks a FlowchartGraph the way a reader experiences the story: Start and
Story nodes offer their connected Decisions (or a single "continue"),
Decisions offer every option in `outgoing` order, End is terminal.

The walker only reads the graph; it never mutates it.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from storymate.errors import NoStartNodeError
from storymate.flowchart.graph import FlowchartGraph
from storymate.flowchart.models import FlowNode, NodeKind

# Preview actions offered for the current node
ACTION_CHOOSE = "choose"
ACTION_CONTINUE = "continue"
ACTION_DEAD_END = "dead_end"
ACTION_END = "end"

NO_FOLLOW_UP_WARNING = "No follow-up connected"
NO_CHOICES_WARNING = "No choices connected"


def available_choices(graph: FlowchartGraph, node_id: str) -> List[FlowNode]:
    """
    Nodes the reader can move to from node_id.

    Start/Story: connected Decisions if any, else the first existing target
    as a single "continue". Decision: every existing target in order.
    End (or an unknown id): nothing.
    """
    node = graph.find_node(node_id)
    if node is None:
        return []

    targets = graph.successors(node_id)

    if node.kind in (NodeKind.START, NodeKind.STORY):
        decisions = [t for t in targets if t.kind is NodeKind.DECISION]
        if decisions:
            return decisions
        return targets[:1]

    if node.kind is NodeKind.DECISION:
        return targets

    return []


@dataclass
class PreviewStep:
    """Everything a preview pane needs to render the current position."""
    node: FlowNode
    choices: List[FlowNode] = field(default_factory=list)
    action: str = ACTION_END
    warning: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.action == ACTION_END

    @property
    def is_dead_end(self) -> bool:
        return self.action == ACTION_DEAD_END


def describe_step(graph: FlowchartGraph, node: FlowNode) -> PreviewStep:
    choices = available_choices(graph, node.id)

    if node.kind is NodeKind.END:
        return PreviewStep(node=node, action=ACTION_END)

    if not choices:
        warning = NO_CHOICES_WARNING if node.kind is NodeKind.DECISION else NO_FOLLOW_UP_WARNING
        return PreviewStep(node=node, action=ACTION_DEAD_END, warning=warning)

    if node.kind is NodeKind.DECISION or choices[0].kind is NodeKind.DECISION:
        return PreviewStep(node=node, choices=choices, action=ACTION_CHOOSE)

    return PreviewStep(node=node, choices=choices, action=ACTION_CONTINUE)


class StoryWalker:
    """
    Tracks the reader's position in a graph.

    Usage:
        walker = StoryWalker()
        step = walker.start(graph)
        while not step.is_terminal and step.choices:
            step = walker.advance(graph, step.choices[0].id)
    """

    def __init__(self):
        self.current_node_id: Optional[str] = None
        self.history: List[str] = []

    def start(self, graph: FlowchartGraph) -> PreviewStep:
        """Jump to the Start node. Raises NoStartNodeError for a malformed graph."""
        start = graph.start_node()
        if start is None:
            self.current_node_id = None
            self.history = []
            raise NoStartNodeError()
        self.current_node_id = start.id
        self.history = [start.id]
        return describe_step(graph, start)

    def restart(self, graph: FlowchartGraph) -> PreviewStep:
        return self.start(graph)

    def advance(self, graph: FlowchartGraph, chosen_node_id: str) -> Optional[PreviewStep]:
        """
        Move to chosen_node_id. Edges were checked when they were made,
        so the choice is not validated again here.
        """
        self.current_node_id = chosen_node_id
        self.history.append(chosen_node_id)
        return self.step(graph)

    def back(self, graph: FlowchartGraph) -> Optional[PreviewStep]:
        """Return to the previously visited node; stays put at the first one."""
        if len(self.history) > 1:
            self.history.pop()
            self.current_node_id = self.history[-1]
        return self.step(graph)

    def current_node(self, graph: FlowchartGraph) -> Optional[FlowNode]:
        if self.current_node_id is None:
            return None
        return graph.find_node(self.current_node_id)

    def step(self, graph: FlowchartGraph) -> Optional[PreviewStep]:
        """Describe the current node, or None if it no longer exists."""
        node = self.current_node(graph)
        if node is None:
            return None
        return describe_step(graph, node)
