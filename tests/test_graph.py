"""
Tests for the FlowchartGraph node store.
"""

import networkx as nx
import pytest

from storymate.flowchart import FlowchartGraph, FlowNode, NodeKind, Point, Connection


def make_node(node_id, kind, x=0.0, y=0.0, outgoing=None):
    return FlowNode(id=node_id, kind=kind, text=node_id, position=Point(x, y), outgoing=list(outgoing or []))


@pytest.fixture
def graph():
    """Start -> s1 -> d1 -> end, plus an unconnected s2."""
    return FlowchartGraph([
        make_node("start", NodeKind.START, 100, 100, ["s1"]),
        make_node("s1", NodeKind.STORY, 300, 150, ["d1"]),
        make_node("d1", NodeKind.DECISION, 500, 150, ["end"]),
        make_node("s2", NodeKind.STORY, 500, 300),
        make_node("end", NodeKind.END, 700, 150),
    ])


class TestQueries:

    def test_find_node_returns_none_for_unknown_id(self, graph):
        assert graph.find_node("nope") is None
        assert graph.find_node("s1").kind is NodeKind.STORY

    def test_insertion_order_is_preserved(self, graph):
        assert [n.id for n in graph.nodes] == ["start", "s1", "d1", "s2", "end"]

    def test_connections_are_derived_from_outgoing(self, graph):
        assert graph.connections() == [
            Connection("start", "s1"),
            Connection("s1", "d1"),
            Connection("d1", "end"),
        ]

    def test_predecessors_and_successors(self, graph):
        assert [n.id for n in graph.predecessors("d1")] == ["s1"]
        assert [n.id for n in graph.successors("s1")] == ["d1"]
        assert graph.successors("missing") == []

    def test_start_node_and_rightmost_x(self, graph):
        assert graph.start_node().id == "start"
        assert graph.rightmost_x() == 700
        assert FlowchartGraph().rightmost_x() is None
        assert FlowchartGraph().start_node() is None


class TestMutations:

    def test_add_node_rejects_duplicate_id(self, graph):
        with pytest.raises(ValueError):
            graph.add_node(make_node("s1", NodeKind.STORY))

    def test_remove_node_strips_dangling_edges(self, graph):
        """No remaining node may reference a removed id."""
        graph.find_node("start").outgoing.append("d1")
        assert graph.remove_node("d1") is True

        assert "d1" not in graph
        for node in graph:
            assert "d1" not in node.outgoing
        assert graph.find_node("start").outgoing == ["s1"]

    def test_remove_unknown_node_is_noop(self, graph):
        before = graph.connections()
        assert graph.remove_node("ghost") is False
        assert graph.connections() == before
        assert len(graph) == 5

    def test_update_node_replaces_by_id(self, graph):
        replacement = make_node("s2", NodeKind.STORY, 1, 2)
        replacement.text = "Rewritten"
        assert graph.update_node(replacement) is True
        assert graph.find_node("s2").text == "Rewritten"
        assert graph.update_node(make_node("ghost", NodeKind.STORY)) is False

    def test_disconnect(self, graph):
        assert graph.disconnect("s1", "d1") is True
        assert graph.find_node("s1").outgoing == []
        assert graph.disconnect("s1", "d1") is False

    def test_connect_rejects_illegal_edge(self, graph):
        assert graph.connect("end", "s2") is False
        assert graph.connect("s2", "start") is False
        assert graph.connect("s2", "s2") is False
        assert graph.find_node("s2").outgoing == []

    def test_connect_unknown_nodes_is_rejected(self, graph):
        assert graph.connect("ghost", "s1") is False
        assert graph.connect("s1", "ghost") is False

    def test_move_and_edit_node(self, graph):
        graph.move_node("s2", Point(10, 20))
        graph.set_text("s2", "Hello")
        graph.set_image("s2", "aGVsbG8=")
        node = graph.find_node("s2")
        assert node.position == Point(10, 20)
        assert node.text == "Hello"
        assert node.image_data == "aGVsbG8="
        graph.set_image("s2", "")
        assert graph.find_node("s2").image_data is None


class TestChangeNotification:

    def test_each_mutation_notifies_once(self, graph):
        calls = []
        graph.set_on_change(lambda g: calls.append(g))

        graph.add_node(make_node("s3", NodeKind.STORY))
        graph.connect("s2", "s3")
        graph.disconnect("s2", "s3")
        graph.remove_node("s3")

        assert len(calls) == 4
        assert all(c is graph for c in calls)

    def test_noop_operations_do_not_notify(self, graph):
        calls = []
        graph.set_on_change(lambda g: calls.append(g))

        graph.remove_node("ghost")
        graph.disconnect("s2", "end")
        graph.connect("end", "s1")
        graph.connect("start", "s1")  # already present

        assert calls == []


class TestSnapshots:

    def test_bootstrap_has_start_and_end(self):
        graph = FlowchartGraph.bootstrap()
        kinds = [n.kind for n in graph]
        assert kinds == [NodeKind.START, NodeKind.END]
        start, end = graph.nodes
        assert start.position == Point(100, 100)
        assert end.position == Point(400, 150)
        assert start.text == "You awake"
        assert end.text == "End of route"
        assert start.id != end.id

    def test_copy_is_independent(self, graph):
        clone = graph.copy()
        clone.find_node("s2").text = "changed"
        clone.connect("s2", "end")

        assert graph.find_node("s2").text == "s2"
        assert graph.find_node("s2").outgoing == []

    def test_to_networkx(self, graph):
        G = graph.to_networkx()
        assert isinstance(G, nx.DiGraph)
        assert set(G.nodes) == {"start", "s1", "d1", "s2", "end"}
        assert set(G.edges) == {("start", "s1"), ("s1", "d1"), ("d1", "end")}
        assert G.nodes["d1"]["kind"] is NodeKind.DECISION
