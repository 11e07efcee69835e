"""Read-only source of graph snapshots.

Implementations must be idempotent: the same query against unchanged data
yields an equal snapshot.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from stashgraph.graph.models import AttributeGraph, AttributeQuery, GraphQuery, RelationGraph


class GraphDataProvider(ABC):
    """Abstract base class for a graph snapshot provider."""

    @abstractmethod
    async def get_attribute_graph(self, query: AttributeQuery) -> AttributeGraph:
        """Return the attribute co-occurrence graph for *query*."""

    @abstractmethod
    async def get_relation_graph(self, query: GraphQuery) -> RelationGraph:
        """Return the typed item relation graph for *query*."""
