"""Static structural checks for a story flowchart.

The editor never builds an illegal edge, but graphs loaded from storage
can contain anything; these checks report what the preview would trip on.
"""

from dataclasses import dataclass, field
from typing import Dict, List

import networkx as nx

from storymate.flowchart.graph import FlowchartGraph
from storymate.flowchart.models import NodeKind
from storymate.flowchart.rules import can_connect

ERROR = "ERROR"
WARNING = "WARNING"


@dataclass(frozen=True)
class Issue:
    severity: str
    code: str
    message: str
    context: Dict[str, str] = field(default_factory=dict)


def format_issue(issue: Issue) -> str:
    context = " ".join(f"{key}={value}" for key, value in issue.context.items())
    suffix = f" ({context})" if context else ""
    return f"[{issue.severity}] {issue.code}: {issue.message}{suffix}"


def has_errors(issues: List[Issue]) -> bool:
    return any(issue.severity == ERROR for issue in issues)


def validate_flowchart(graph: FlowchartGraph) -> List[Issue]:
    issues: List[Issue] = []
    _validate_terminals(graph, issues)
    _validate_edges(graph, issues)

    start = graph.start_node()
    if start is None:
        return issues

    G = graph.to_networkx()
    _validate_reachability(graph, G, start.id, issues)
    _validate_endings(graph, G, issues)
    return issues


def _validate_terminals(graph: FlowchartGraph, issues: List[Issue]) -> None:
    starts = graph.nodes_of_kind(NodeKind.START)
    if not starts:
        issues.append(Issue(ERROR, "MISSING_START", "Flowchart has no Start node."))
    elif len(starts) > 1:
        issues.append(
            Issue(
                ERROR,
                "MULTIPLE_START",
                "Flowchart has more than one Start node.",
                {"node_ids": ",".join(n.id for n in starts)},
            )
        )
    if not graph.nodes_of_kind(NodeKind.END):
        issues.append(Issue(WARNING, "MISSING_END", "Flowchart has no End node."))


def _validate_edges(graph: FlowchartGraph, issues: List[Issue]) -> None:
    for node in graph:
        seen = set()
        non_decision_targets = 0
        for target_id in node.outgoing:
            if target_id in seen:
                issues.append(
                    Issue(WARNING, "DUPLICATE_EDGE", "Edge listed twice.",
                          {"from": node.id, "to": target_id})
                )
                continue
            seen.add(target_id)

            target = graph.find_node(target_id)
            if target is None:
                issues.append(
                    Issue(ERROR, "DANGLING_EDGE", "Edge points at a missing node.",
                          {"from": node.id, "to": target_id})
                )
                continue
            if not can_connect(node, target):
                issues.append(
                    Issue(
                        ERROR,
                        "ILLEGAL_EDGE",
                        f"{node.kind.value} may not connect to {target.kind.value}.",
                        {"from": node.id, "to": target_id},
                    )
                )
            if target.kind is not NodeKind.DECISION:
                non_decision_targets += 1

        if node.kind is NodeKind.STORY and non_decision_targets > 1:
            issues.append(
                Issue(
                    WARNING,
                    "STORY_FANOUT",
                    "Story node continues to more than one non-Decision node; "
                    "only the first is reachable in preview.",
                    {"node_id": node.id},
                )
            )


def _validate_reachability(graph: FlowchartGraph, G: nx.DiGraph, start_id: str,
                           issues: List[Issue]) -> None:
    reachable = nx.descendants(G, start_id) | {start_id}
    for node in graph:
        if node.id not in reachable and node.kind is not NodeKind.START:
            issues.append(
                Issue(WARNING, "UNREACHABLE_NODE", "Node cannot be reached from Start.",
                      {"node_id": node.id, "kind": node.kind.value})
            )


def _validate_endings(graph: FlowchartGraph, G: nx.DiGraph, issues: List[Issue]) -> None:
    end_ids = {n.id for n in graph.nodes_of_kind(NodeKind.END)}
    can_finish = set(end_ids)
    for end_id in end_ids:
        can_finish |= nx.ancestors(G, end_id)

    for node in graph:
        if node.kind is NodeKind.END:
            continue
        if G.out_degree(node.id) == 0:
            issues.append(
                Issue(WARNING, "DEAD_END", "Node has no outgoing connection.",
                      {"node_id": node.id, "kind": node.kind.value})
            )
        elif node.id not in can_finish:
            issues.append(
                Issue(WARNING, "NO_PATH_TO_END", "No path from this node reaches an End node.",
                      {"node_id": node.id, "kind": node.kind.value})
            )
