"""Tests for the typed item graph builder."""

from __future__ import annotations

import sqlite3
from typing import Generator

import pytest

from stashgraph.db.connection import get_connection
from stashgraph.db.items import create_item, update_item
from stashgraph.db.migrations import init_db
from stashgraph.db.models import ItemSummary
from stashgraph.graph.builder import build_relation_graph, temporal_proximity_edges
from stashgraph.graph.models import (
    GraphQuery,
    RelationGraph,
    attribute_node_id,
)

HOUR = 3600


@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


def _summary(item_id: str, created_at: int) -> ItemSummary:
    return ItemSummary(
        id=item_id, name=item_id, attributes=[], version=1,
        created_at=created_at, updated_at=created_at, file_count=0, total_size=0,
    )


def _edges_of(graph: RelationGraph, edge_type: str) -> list:
    return [e for e in graph.edges if e.type == edge_type]


class TestTemporalProximity:
    def test_weight_falls_with_distance(self) -> None:
        edges = temporal_proximity_edges(
            [_summary("a", 0), _summary("b", 6 * HOUR)], window_seconds=24 * HOUR
        )
        (edge,) = edges
        assert edge.weight == pytest.approx(0.75)
        assert edge.metadata == {"time_delta_hours": 6.0}

    def test_weight_floor(self) -> None:
        (edge,) = temporal_proximity_edges(
            [_summary("a", 0), _summary("b", 23 * HOUR + 59 * 60)], window_seconds=24 * HOUR
        )
        assert edge.weight == pytest.approx(0.1)

    def test_outside_window_not_linked(self) -> None:
        assert temporal_proximity_edges([_summary("a", 0), _summary("b", 25 * HOUR)], 24 * HOUR) == []

    def test_identical_timestamps_not_linked(self) -> None:
        assert temporal_proximity_edges([_summary("a", 10), _summary("b", 10)], 24 * HOUR) == []


class TestBuildRelationGraph:
    def test_empty_store(self, conn: sqlite3.Connection) -> None:
        graph = build_relation_graph(conn)
        assert graph.nodes == []
        assert graph.edges == []
        assert graph.total_items == 0
        assert graph.time_range == (None, None)

    def test_nodes_and_membership_edges(self, conn: sqlite3.Connection) -> None:
        create_item(conn, "A", ["x", "y"], item_id="A", created_at=1000)
        create_item(conn, "B", ["y", "z"], item_id="B", created_at=1000 + 48 * HOUR)
        graph = build_relation_graph(conn)

        by_id = {n.id: n for n in graph.nodes}
        assert by_id["A"].type == "item"
        assert by_id[attribute_node_id("y")].count == 2
        assert by_id[attribute_node_id("x")].count == 1
        assert len(_edges_of(graph, "has_attribute")) == 4

        (shared,) = _edges_of(graph, "shared_attributes")
        assert {shared.source, shared.target} == {"A", "B"}
        assert shared.metadata == {"shared_attributes": ["y"]}
        assert _edges_of(graph, "temporal_proximity") == []
        assert graph.time_range == (1000, 1000 + 48 * HOUR)

    def test_temporal_edges_only_in_relation_modes(self, conn: sqlite3.Connection) -> None:
        create_item(conn, "A", ["x"], created_at=0)
        create_item(conn, "B", ["y"], created_at=HOUR)
        assert len(_edges_of(build_relation_graph(conn, GraphQuery(mode="timeline")), "temporal_proximity")) == 1
        assert _edges_of(build_relation_graph(conn, GraphQuery(mode="versions")), "temporal_proximity") == []

    def test_total_items_ignores_limit(self, conn: sqlite3.Connection) -> None:
        for i in range(5):
            create_item(conn, f"item {i}", ["x"], created_at=i * 100 * HOUR)
        graph = build_relation_graph(conn, GraphQuery(limit=2))
        items = [n for n in graph.nodes if n.type == "item"]
        assert len(items) == 2
        assert graph.total_items == 5
        # shared edges only between fetched items
        for e in _edges_of(graph, "shared_attributes"):
            assert e.source in {n.id for n in items} and e.target in {n.id for n in items}

    def test_attribute_filter_without_match(self, conn: sqlite3.Connection) -> None:
        create_item(conn, "A", ["x"])
        graph = build_relation_graph(conn, GraphQuery(attribute="nope"))
        assert graph.nodes == []
        assert graph.total_items == 1

    def test_min_shared_weight(self, conn: sqlite3.Connection) -> None:
        create_item(conn, "A", ["x", "y"], created_at=0)
        create_item(conn, "B", ["x", "y"], created_at=100 * HOUR)
        create_item(conn, "C", ["x"], created_at=200 * HOUR)
        graph = build_relation_graph(conn, GraphQuery(min_shared_weight=2))
        assert [e.weight for e in _edges_of(graph, "shared_attributes")] == [2]

    def test_untitled_label(self, conn: sqlite3.Connection) -> None:
        create_item(conn, "", item_id="A")
        graph = build_relation_graph(conn)
        assert graph.nodes[0].label == "Untitled"

    def test_version_chain(self, conn: sqlite3.Connection) -> None:
        create_item(conn, "v1", ["x"], item_id="A")
        update_item(conn, "A", name="v2")
        update_item(conn, "A", name="v3")

        graph = build_relation_graph(conn, GraphQuery(include_versions=True))
        versions = [n for n in graph.nodes if n.type == "version"]
        assert sorted(n.label for n in versions) == ["v1", "v2"]

        chain = {e.source: e.target for e in _edges_of(graph, "version_of")}
        v1 = next(n.id for n in versions if n.version_number == 1)
        v2 = next(n.id for n in versions if n.version_number == 2)
        assert chain == {v2: "A", v1: v2}

    def test_roundtrip_dict(self, conn: sqlite3.Connection) -> None:
        create_item(conn, "A", ["x"], created_at=0)
        create_item(conn, "B", ["x"], created_at=HOUR)
        graph = build_relation_graph(conn)
        assert RelationGraph.from_dict(graph.to_dict()) == graph
