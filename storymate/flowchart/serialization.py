"""
Wire format for flowcharts.

Shape (order preserving):
{
  "projectId": "abc",
  "updatedAt": 1760000000000,        # epoch milliseconds
  "nodes": [
    {
      "id": "uuid",
      "kind": "Start" | "Story" | "Decision" | "End",
      "text": "You awake",
      "positionX": 100.0,
      "positionY": 100.0,
      "imageData": "<base64>",         # omitted when absent
      "outgoingIds": ["uuid", ...]
    }
  ]
}

Decoding is lenient: an unknown kind becomes Story, `type` is read as an
alias of `kind`, `connections` is read as an alias of `outgoingIds`, and
edges to ids missing from the payload are dropped so the loaded graph has
no dangling references.
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional

from storymate.flowchart.graph import FlowchartGraph
from storymate.flowchart.models import FlowNode, NodeKind, Point

logger = logging.getLogger(__name__)


def _now_millis() -> int:
    return int(time.time() * 1000)


def node_to_dict(node: FlowNode) -> Dict[str, Any]:
    data = {
        "id": node.id,
        "kind": node.kind.value,
        "text": node.text,
        "positionX": float(node.position.x),
        "positionY": float(node.position.y),
        "outgoingIds": list(node.outgoing),
    }
    if node.image_data:
        data["imageData"] = node.image_data
    return data


def graph_to_dict(graph: FlowchartGraph, project_id: str,
                  updated_at: Optional[int] = None) -> Dict[str, Any]:
    return {
        "projectId": project_id,
        "updatedAt": _now_millis() if updated_at is None else int(updated_at),
        "nodes": [node_to_dict(node) for node in graph],
    }


def node_from_dict(data: Dict[str, Any]) -> FlowNode:
    outgoing = data.get("outgoingIds")
    if outgoing is None:
        outgoing = data.get("connections") or []

    deduped: List[str] = []
    for target_id in outgoing:
        target_id = str(target_id)
        if target_id not in deduped:
            deduped.append(target_id)

    return FlowNode(
        id=str(data["id"]),
        kind=NodeKind.parse(data.get("kind", data.get("type"))),
        text=data.get("text") or "",
        position=Point(float(data.get("positionX") or 0.0), float(data.get("positionY") or 0.0)),
        image_data=data.get("imageData") or None,
        outgoing=deduped,
    )


def graph_from_dict(data: Dict[str, Any]) -> FlowchartGraph:
    """
    Build a graph from a wire payload.

    Raises ValueError for payloads that are not flowcharts at all
    (not a mapping, nodes not a list, node without id).
    """
    if not isinstance(data, dict):
        raise ValueError("Flowchart payload must be a JSON object")
    raw_nodes = data.get("nodes") or []
    if not isinstance(raw_nodes, list):
        raise ValueError("Flowchart 'nodes' must be a list")

    graph = FlowchartGraph()
    for raw in raw_nodes:
        if not isinstance(raw, dict) or "id" not in raw:
            raise ValueError(f"Invalid node entry: {raw!r}")
        node = node_from_dict(raw)
        if node.id in graph:
            logger.warning(f"Skipping duplicate node id {node.id}")
            continue
        graph.add_node(node, notify=False)

    for node in graph:
        missing = [t for t in node.outgoing if t not in graph]
        if missing:
            logger.warning(f"Dropping dangling edges from {node.id}: {missing}")
            node.outgoing = [t for t in node.outgoing if t in graph]

    return graph


def dumps(graph: FlowchartGraph, project_id: str, updated_at: Optional[int] = None) -> str:
    return json.dumps(graph_to_dict(graph, project_id, updated_at), indent=2, ensure_ascii=False)


def loads(text: str) -> FlowchartGraph:
    return graph_from_dict(json.loads(text))
