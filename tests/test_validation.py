"""
Tests for structural flowchart validation.
"""

from storymate.flowchart import FlowchartGraph, FlowNode, NodeKind, Point, format_issue, validate_flowchart
from storymate.flowchart.validation import ERROR, WARNING, Issue, has_errors


def node(node_id, kind, outgoing=None):
    return FlowNode(id=node_id, kind=kind, text=node_id, position=Point(0, 0), outgoing=list(outgoing or []))


def codes(issues):
    return sorted(issue.code for issue in issues)


def test_well_formed_graph_has_no_issues():
    graph = FlowchartGraph([
        node("start", NodeKind.START, ["s"]),
        node("s", NodeKind.STORY, ["d1", "d2"]),
        node("d1", NodeKind.DECISION, ["end"]),
        node("d2", NodeKind.DECISION, ["end"]),
        node("end", NodeKind.END),
    ])
    assert validate_flowchart(graph) == []


def test_bootstrap_graph_only_has_dead_start():
    issues = validate_flowchart(FlowchartGraph.bootstrap())
    assert codes(issues) == ["DEAD_END", "UNREACHABLE_NODE"]
    assert not has_errors(issues)


def test_missing_start_skips_reachability():
    graph = FlowchartGraph([node("s", NodeKind.STORY)])
    issues = validate_flowchart(graph)
    assert codes(issues) == ["MISSING_END", "MISSING_START"]
    assert has_errors(issues)


def test_multiple_starts():
    graph = FlowchartGraph([
        node("a", NodeKind.START, ["end"]),
        node("b", NodeKind.START, ["end"]),
        node("end", NodeKind.END),
    ])
    issues = validate_flowchart(graph)
    assert "MULTIPLE_START" in codes(issues)
    multiple = next(i for i in issues if i.code == "MULTIPLE_START")
    assert multiple.context["node_ids"] == "a,b"


def test_bad_edges_from_loaded_data():
    graph = FlowchartGraph([
        node("start", NodeKind.START, ["s", "s"]),
        node("s", NodeKind.STORY, ["ghost", "start", "end"]),
        node("end", NodeKind.END),
    ])
    found = codes(validate_flowchart(graph))
    assert "DUPLICATE_EDGE" in found
    assert "DANGLING_EDGE" in found
    assert "ILLEGAL_EDGE" in found


def test_story_fanout_warning():
    graph = FlowchartGraph([
        node("start", NodeKind.START, ["s"]),
        node("s", NodeKind.STORY, ["a", "end"]),
        node("a", NodeKind.STORY, ["end"]),
        node("end", NodeKind.END),
    ])
    assert codes(validate_flowchart(graph)) == ["STORY_FANOUT"]


def test_dead_end_and_no_path_to_end():
    graph = FlowchartGraph([
        node("start", NodeKind.START, ["a"]),
        node("a", NodeKind.STORY, ["d"]),
        node("d", NodeKind.DECISION, ["b"]),
        node("b", NodeKind.STORY),
        node("end", NodeKind.END),
    ])
    issues = validate_flowchart(graph)
    by_node = {(i.code, i.context.get("node_id")) for i in issues}
    assert ("DEAD_END", "b") in by_node
    assert ("NO_PATH_TO_END", "a") in by_node
    assert ("NO_PATH_TO_END", "d") in by_node
    assert ("UNREACHABLE_NODE", "end") in by_node


def test_format_issue():
    issue = Issue(ERROR, "DANGLING_EDGE", "Edge points at a missing node.", {"from": "a", "to": "b"})
    assert format_issue(issue) == "[ERROR] DANGLING_EDGE: Edge points at a missing node. (from=a to=b)"
    assert format_issue(Issue(WARNING, "MISSING_END", "No End.")) == "[WARNING] MISSING_END: No End."
