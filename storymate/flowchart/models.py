"""
Data types for the branching-story flowchart.

Nodes are plain values owned by a FlowchartGraph; anything outside the
graph refers to a node by its id.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class NodeKind(str, Enum):
    """Narrative role of a node. Values are the wire strings."""
    START = "Start"
    STORY = "Story"
    DECISION = "Decision"
    END = "End"

    @classmethod
    def parse(cls, value) -> "NodeKind":
        """Decode a wire string, falling back to STORY for anything unknown."""
        if isinstance(value, NodeKind):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.STORY

    @property
    def title(self) -> str:
        return _TITLES[self]

    @property
    def placeholder(self) -> str:
        """Default text for a freshly created node of this kind."""
        return _PLACEHOLDERS[self]

    @property
    def is_terminal(self) -> bool:
        return self is NodeKind.END


_TITLES = {
    NodeKind.START: "START",
    NodeKind.STORY: "STORY",
    NodeKind.DECISION: "CHOICE",
    NodeKind.END: "END",
}

_PLACEHOLDERS = {
    NodeKind.START: "You awake",
    NodeKind.STORY: "Story",
    NodeKind.DECISION: "Choice",
    NodeKind.END: "End of route",
}


@dataclass(frozen=True)
class Point:
    """2D point; used for world positions, screen positions and deltas."""
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def scaled(self, factor: float) -> "Point":
        return Point(self.x * factor, self.y * factor)

    def distance_to(self, other: "Point") -> float:
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5

    def as_tuple(self):
        return (self.x, self.y)


@dataclass
class FlowNode:
    """
    A single unit of narrative content.

    `outgoing` is the node's own adjacency list; its order is the order
    in which a Decision offers its options.
    """
    id: str
    kind: NodeKind
    text: str = ""
    position: Point = field(default_factory=lambda: Point(100.0, 100.0))
    image_data: Optional[str] = None
    outgoing: List[str] = field(default_factory=list)

    @classmethod
    def create(cls, kind: NodeKind, text: Optional[str] = None,
               position: Optional[Point] = None,
               image_data: Optional[str] = None) -> "FlowNode":
        """Create a node with a fresh uuid4 id and the kind's placeholder text."""
        return cls(
            id=str(uuid.uuid4()),
            kind=kind,
            text=kind.placeholder if text is None else text,
            position=position or Point(100.0, 100.0),
            image_data=image_data,
        )

    @property
    def display_text(self) -> str:
        return self.text or self.kind.placeholder

    def copy(self) -> "FlowNode":
        return FlowNode(
            id=self.id,
            kind=self.kind,
            text=self.text,
            position=self.position,
            image_data=self.image_data,
            outgoing=list(self.outgoing),
        )


@dataclass(frozen=True)
class Connection:
    """A directed edge. The (from_id, to_id) pair is its identity."""
    from_id: str
    to_id: str

    @property
    def key(self) -> str:
        """Stable string id, used by renderers to address an edge."""
        return f"{self.from_id}->{self.to_id}"

    @classmethod
    def from_key(cls, key: str) -> Optional["Connection"]:
        if not key or "->" not in key:
            return None
        from_id, to_id = key.split("->", 1)
        return cls(from_id, to_id)
