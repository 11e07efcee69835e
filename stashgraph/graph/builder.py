"""GraphBuilder: assembles the typed item/attribute/version graph.

The graph is rebuilt from storage on every query; only the
``shared_attributes`` edges are precomputed (by the RelationStore).
"""

from __future__ import annotations

import sqlite3
from collections import Counter
from typing import Iterable, Sequence

from stashgraph.config import settings
from stashgraph.db.items import count_items, list_item_summaries, list_versions
from stashgraph.db.models import ItemSummary
from stashgraph.db.relations import list_relations
from stashgraph.graph.models import (
    ATTRIBUTE,
    HAS_ATTRIBUTE,
    ITEM,
    SHARED_ATTRIBUTES,
    TEMPORAL_PROXIMITY,
    VERSION,
    VERSION_OF,
    Edge,
    GraphQuery,
    Node,
    RelationGraph,
    attribute_node_id,
    version_node_id,
)


def attribute_counts(items: Iterable[ItemSummary]) -> Counter[str]:
    """Number of *items* carrying each attribute, in first-seen order."""
    counts: Counter[str] = Counter()
    for item in items:
        counts.update(set(item.attributes))
    return counts


def temporal_proximity_edges(
    items: Sequence[ItemSummary], window_seconds: int
) -> list[Edge]:
    """Link every pair of items created within *window_seconds* of each other.

    Weight falls linearly from 1 to a floor of 0.1 across the window.  Items
    with identical creation timestamps (bulk imports) are not linked.
    """
    edges: list[Edge] = []
    for i, a in enumerate(items):
        for b in items[i + 1:]:
            delta = abs(a.created_at - b.created_at)
            if 0 < delta < window_seconds:
                edges.append(
                    Edge(
                        source=a.id,
                        target=b.id,
                        type=TEMPORAL_PROXIMITY,
                        weight=max(0.1, 1 - delta / window_seconds),
                        metadata={"time_delta_hours": round(delta / 3600, 1)},
                    )
                )
    return edges


def _item_node(item: ItemSummary) -> Node:
    return Node(
        id=item.id,
        type=ITEM,
        label=item.name or "Untitled",
        created_at=item.created_at,
        updated_at=item.updated_at,
        version=item.version,
        file_count=item.file_count,
        total_size=item.total_size,
        attributes=list(item.attributes),
    )


def build_relation_graph(conn: sqlite3.Connection, query: GraphQuery | None = None) -> RelationGraph:
    """Build the item relation graph for *query*.

    Returns an empty graph (with the true population size) when no item
    matches the filter.
    """
    query = query or GraphQuery()
    items = list_item_summaries(
        conn,
        since=query.since,
        until=query.until,
        attribute=query.attribute,
        limit=query.limit,
    )
    total = count_items(conn)
    if not items:
        return RelationGraph(total_items=total)

    item_ids = {item.id for item in items}
    created = [item.created_at for item in items]
    nodes: list[Node] = [_item_node(item) for item in items]
    edges: list[Edge] = []

    for attr, count in attribute_counts(items).items():
        nodes.append(Node(id=attribute_node_id(attr), type=ATTRIBUTE, label=attr, count=count))

    for item in items:
        for attr in dict.fromkeys(item.attributes):
            edges.append(Edge(source=item.id, target=attribute_node_id(attr), type=HAS_ATTRIBUTE, weight=1))

    for rel in list_relations(conn, min_weight=query.min_shared_weight):
        if rel.source_id in item_ids and rel.target_id in item_ids:
            edges.append(
                Edge(
                    source=rel.source_id,
                    target=rel.target_id,
                    type=SHARED_ATTRIBUTES,
                    weight=rel.weight,
                    metadata={"shared_attributes": rel.metadata.get("shared_attributes", [])},
                )
            )

    if query.mode in ("relations", "timeline"):
        edges.extend(temporal_proximity_edges(items, settings.temporal_window_seconds))

    if query.include_versions:
        for item in items:
            # Newest snapshot points at the live item, older ones chain behind it.
            head = item.id
            for v in reversed(list_versions(conn, item.id)):
                vid = version_node_id(v.id)
                nodes.append(
                    Node(
                        id=vid,
                        type=VERSION,
                        label=f"v{v.version}",
                        version_number=v.version,
                        created_by=v.created_by,
                        created_at=v.created_at,
                        change_summary=v.change_summary,
                    )
                )
                edges.append(Edge(source=vid, target=head, type=VERSION_OF, weight=1))
                head = vid

    return RelationGraph(
        nodes=nodes,
        edges=edges,
        time_range=(min(created), max(created)),
        total_items=total,
    )
