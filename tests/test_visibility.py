"""Tests for the analysis-mode visibility filter."""

from __future__ import annotations

from stashgraph.graph.models import Edge, Node, attribute_node_id
from stashgraph.graph.visibility import apply_visibility_filter, highlight_paths


def _item(iid: str) -> Node:
    return Node(id=iid, type="item", label=iid)


def _attr(name: str) -> Node:
    return Node(id=attribute_node_id(name), type="attribute", label=name, count=1)


def _has(iid: str, name: str) -> Edge:
    return Edge(iid, attribute_node_id(name), "has_attribute", 1)


def _shared(a: str, b: str, *names: str) -> Edge:
    return Edge(a, b, "shared_attributes", len(names), {"shared_attributes": list(names)})


def _graph():
    """A{x,y}  B{y,z}  C{z}  D{w}, plus a temporal edge A-D."""
    nodes = [_item("A"), _item("B"), _item("C"), _item("D"), _attr("x"), _attr("y"), _attr("z"), _attr("w")]
    edges = [
        _has("A", "x"), _has("A", "y"),
        _has("B", "y"), _has("B", "z"),
        _has("C", "z"),
        _has("D", "w"),
        _shared("A", "B", "y"),
        _shared("B", "C", "z"),
        Edge("A", "D", "temporal_proximity", 0.5),
    ]
    return nodes, edges


def _ids(result) -> set[str]:
    return {n.id for n in result.nodes}


class TestNoRoots:
    def test_only_items_and_shared_edges(self) -> None:
        nodes, edges = _graph()
        result = apply_visibility_filter(nodes, edges, roots=set())
        assert _ids(result) == {"A", "B", "C", "D"}
        assert {e.type for e in result.edges} == {"shared_attributes"}
        assert len(result.edges) == 2

    def test_unknown_roots_behave_like_none(self) -> None:
        nodes, edges = _graph()
        result = apply_visibility_filter(nodes, edges, roots={"ghost"})
        assert _ids(result) == {"A", "B", "C", "D"}

    def test_node_objects_pass_through(self) -> None:
        nodes, edges = _graph()
        result = apply_visibility_filter(nodes, edges, roots=set())
        assert result.nodes[0] is nodes[0]


class TestWithRoots:
    def test_depth_one_with_relation_closure(self) -> None:
        nodes, edges = _graph()
        result = apply_visibility_filter(nodes, edges, roots={"A"}, depth=1)
        # x, y are one hop; B via shared edge; C via closure over shared edges.
        assert _ids(result) == {"A", "B", "C", attribute_node_id("x"), attribute_node_id("y")}
        assert "D" not in _ids(result)

    def test_membership_edges_only_touch_roots(self) -> None:
        nodes, edges = _graph()
        result = apply_visibility_filter(nodes, edges, roots={"A"}, depth=2)
        for e in result.edges:
            if e.type == "has_attribute":
                assert e.source == "A"

    def test_temporal_edges_do_not_expand(self) -> None:
        nodes, edges = _graph()
        result = apply_visibility_filter(nodes, edges, roots={"A"}, depth=3)
        assert "D" not in _ids(result)

    def test_ignored_attribute_kept_dimmed_on_root(self) -> None:
        nodes, edges = _graph()
        result = apply_visibility_filter(nodes, edges, roots={"A"}, ignored={"y"}, depth=1)
        y = attribute_node_id("y")
        assert y in _ids(result)
        assert result.dimmed == {y}
        # With y ignored, A-B no longer relate and B is unreachable.
        assert "B" not in _ids(result)
        assert _has("A", "y") in result.edges

    def test_shared_edge_survives_partial_ignore(self) -> None:
        nodes = [_item("A"), _item("B"), _attr("p"), _attr("q")]
        edges = [_has("A", "p"), _has("A", "q"), _has("B", "p"), _has("B", "q"), _shared("A", "B", "p", "q")]
        result = apply_visibility_filter(nodes, edges, roots={"A"}, ignored={"p"})
        assert "B" in _ids(result)
        assert any(e.type == "shared_attributes" for e in result.edges)

    def test_shared_edge_without_metadata_dropped_when_ignoring(self) -> None:
        nodes = [_item("A"), _item("B"), _attr("p")]
        edges = [Edge("A", "B", "shared_attributes", 1)]
        assert apply_visibility_filter(nodes, edges, roots=set(), ignored={"p"}).edges == []
        assert len(apply_visibility_filter(nodes, edges, roots=set()).edges) == 1

    def test_monotonic_in_depth(self) -> None:
        nodes, edges = _graph()
        previous: set[str] = set()
        for depth in range(1, 5):
            current = _ids(apply_visibility_filter(nodes, edges, roots={"C"}, depth=depth))
            assert previous <= current
            previous = current


class TestHighlightPaths:
    def test_root_to_other_carriers(self) -> None:
        _, edges = _graph()
        paths = highlight_paths(edges, {attribute_node_id("y")}, roots={"A"}, visible={"A", "B", "C"})
        assert paths == [("A", "B")]

    def test_invisible_targets_skipped(self) -> None:
        _, edges = _graph()
        assert highlight_paths(edges, {attribute_node_id("y")}, roots={"A"}, visible={"A"}) == []

    def test_no_roots_no_paths(self) -> None:
        _, edges = _graph()
        assert highlight_paths(edges, {attribute_node_id("y")}, roots=set(), visible={"A", "B"}) == []
