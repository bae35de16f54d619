"""
Tests for connection legality and the replacement policy.
"""

import pytest

from storymate.flowchart import FlowchartGraph, FlowNode, NodeKind, Point, Connection
from storymate.flowchart.rules import can_connect, plan_connection, has_input_handle, has_output_handle

S, D, E, ST = NodeKind.STORY, NodeKind.DECISION, NodeKind.END, NodeKind.START

# (from kind, to kind) -> expected result for two distinct nodes
LEGALITY_TABLE = {
    (ST, ST): False, (ST, S): True, (ST, D): True, (ST, E): False,
    (S, ST): False, (S, S): True, (S, D): True, (S, E): True,
    (D, ST): False, (D, S): True, (D, D): False, (D, E): True,
    (E, ST): False, (E, S): False, (E, D): False, (E, E): False,
}


def node(node_id, kind, outgoing=None):
    return FlowNode(id=node_id, kind=kind, text="", position=Point(0, 0), outgoing=list(outgoing or []))


@pytest.mark.parametrize("pair,expected", sorted(LEGALITY_TABLE.items(), key=lambda i: (i[0][0].value, i[0][1].value)))
def test_legality_table_for_distinct_nodes(pair, expected):
    from_kind, to_kind = pair
    assert can_connect(node("a", from_kind), node("b", to_kind)) is expected


@pytest.mark.parametrize("kind", list(NodeKind))
def test_self_loops_are_never_allowed(kind):
    same = node("a", kind)
    assert can_connect(same, same) is False


def test_handles_follow_node_kind():
    assert not has_input_handle(node("a", ST))
    assert not has_output_handle(node("a", E))
    assert has_input_handle(node("a", E)) and has_output_handle(node("a", ST))


class TestReplacementPolicy:

    def test_story_replaces_non_decision_successor(self):
        graph = FlowchartGraph([node("s", S), node("t1", S), node("t2", E)])
        assert graph.connect("s", "t1")
        assert graph.connect("s", "t2")
        assert graph.find_node("s").outgoing == ["t2"]

    def test_story_accumulates_decisions(self):
        graph = FlowchartGraph([node("s", S), node("d1", D), node("d2", D)])
        assert graph.connect("s", "d1")
        assert graph.connect("s", "d2")
        assert graph.find_node("s").outgoing == ["d1", "d2"]

    def test_story_keeps_decisions_when_replacing_continuation(self):
        graph = FlowchartGraph([node("s", S), node("d1", D), node("t1", S), node("t2", S)])
        graph.connect("s", "d1")
        graph.connect("s", "t1")
        graph.connect("s", "t2")
        assert graph.find_node("s").outgoing == ["d1", "t2"]

    def test_decision_accumulates_options(self):
        graph = FlowchartGraph([node("d", D), node("a", S), node("b", S), node("e", E)])
        for target in ("a", "b", "e"):
            assert graph.connect("d", target)
        assert graph.find_node("d").outgoing == ["a", "b", "e"]

    def test_reconnect_severs_other_story_predecessor(self):
        """S1 -> T is removed once S2 -> T is established."""
        graph = FlowchartGraph([node("s1", S), node("s2", S), node("t", S)])
        assert graph.connect("s1", "t")
        assert graph.connect("s2", "t")

        assert graph.find_node("s1").outgoing == []
        assert graph.find_node("s2").outgoing == ["t"]
        assert graph.connections() == [Connection("s2", "t")]

    def test_decision_predecessors_are_not_severed(self):
        graph = FlowchartGraph([node("d", D), node("s", S), node("t", S)])
        graph.connect("d", "t")
        graph.connect("s", "t")
        assert graph.find_node("d").outgoing == ["t"]
        assert graph.find_node("s").outgoing == ["t"]

    def test_story_predecessor_severed_when_decision_connects_to_target(self):
        graph = FlowchartGraph([node("s", S), node("d", D), node("t", S)])
        graph.connect("s", "t")
        graph.connect("d", "t")
        assert graph.find_node("s").outgoing == []
        assert graph.find_node("d").outgoing == ["t"]

    def test_end_target_keeps_many_story_predecessors(self):
        graph = FlowchartGraph([node("s1", S), node("s2", S), node("e", E)])
        graph.connect("s1", "e")
        graph.connect("s2", "e")
        assert graph.find_node("s1").outgoing == ["e"]
        assert graph.find_node("s2").outgoing == ["e"]

    def test_connect_is_idempotent(self):
        graph = FlowchartGraph([node("st", ST), node("d1", D), node("s", S)])
        graph.connect("st", "d1")
        graph.connect("st", "s")
        once = list(graph.find_node("st").outgoing)
        assert graph.connect("st", "s") is True
        assert graph.find_node("st").outgoing == once == ["d1", "s"]

    def test_duplicate_connect_triggers_no_side_effects(self):
        graph = FlowchartGraph([node("s1", S), node("t", S)])
        graph.connect("s1", "t")
        plan = plan_connection(graph, "s1", "t")
        assert plan.already_present
        assert plan.removed == []
        assert not plan.changes_graph


class TestPlanConnection:

    def test_plan_lists_removed_edges_without_mutating(self):
        graph = FlowchartGraph([node("s1", S, ["t"]), node("s2", S, ["x"]), node("t", S), node("x", E)])
        plan = plan_connection(graph, "s2", "t")

        assert plan.connection == Connection("s2", "t")
        assert plan.removed == [Connection("s2", "x"), Connection("s1", "t")]
        assert graph.find_node("s1").outgoing == ["t"]
        assert graph.find_node("s2").outgoing == ["x"]

    def test_plan_is_none_for_illegal_or_missing(self):
        graph = FlowchartGraph([node("e", E), node("s", S)])
        assert plan_connection(graph, "e", "s") is None
        assert plan_connection(graph, "s", "ghost") is None
