"""Provider backed by the local SQLite store."""

from __future__ import annotations

import asyncio
from pathlib import Path

from stashgraph.db.connection import get_connection
from stashgraph.graph.builder import build_relation_graph
from stashgraph.graph.models import AttributeGraph, AttributeQuery, GraphQuery, RelationGraph
from stashgraph.graph.subgraph import build_attribute_graph
from stashgraph.providers.base import GraphDataProvider


class LocalGraphProvider(GraphDataProvider):
    """Builds snapshots in a worker thread, one connection per request.

    SQLite connections are bound to the thread that opened them, so each
    call opens and closes its own.
    """

    def __init__(self, db_path: Path | str | None = None) -> None:
        self.db_path = db_path

    def _attribute_graph(self, query: AttributeQuery) -> AttributeGraph:
        conn = get_connection(self.db_path)
        try:
            return build_attribute_graph(conn, query)
        finally:
            conn.close()

    def _relation_graph(self, query: GraphQuery) -> RelationGraph:
        conn = get_connection(self.db_path)
        try:
            return build_relation_graph(conn, query)
        finally:
            conn.close()

    async def get_attribute_graph(self, query: AttributeQuery) -> AttributeGraph:
        return await asyncio.to_thread(self._attribute_graph, query)

    async def get_relation_graph(self, query: GraphQuery) -> RelationGraph:
        return await asyncio.to_thread(self._relation_graph, query)
