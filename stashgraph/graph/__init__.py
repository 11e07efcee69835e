"""Graph construction: builder, subgraph extraction, clustering, visibility."""

from stashgraph.graph.builder import build_relation_graph
from stashgraph.graph.clusters import assign_clusters
from stashgraph.graph.models import (
    AttributeGraph,
    AttributeQuery,
    Edge,
    GraphQuery,
    Node,
    RelationGraph,
)
from stashgraph.graph.subgraph import build_attribute_graph, extract_subgraph
from stashgraph.graph.visibility import VisibleGraph, apply_visibility_filter

__all__ = [
    "build_relation_graph",
    "build_attribute_graph",
    "extract_subgraph",
    "assign_clusters",
    "apply_visibility_filter",
    "VisibleGraph",
    "AttributeGraph",
    "AttributeQuery",
    "Edge",
    "GraphQuery",
    "Node",
    "RelationGraph",
]
