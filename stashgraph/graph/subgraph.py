"""SubgraphExtractor: bounded BFS over the attribute co-occurrence graph."""

from __future__ import annotations

import sqlite3
from collections import Counter
from itertools import combinations
from typing import Iterable, Mapping, Optional

from stashgraph.config import settings
from stashgraph.db.items import list_attribute_sets
from stashgraph.graph.models import (
    AppliedFilter,
    AttributeEdge,
    AttributeGraph,
    AttributeNode,
    AttributeQuery,
)


def clamp_depth(depth: Optional[int]) -> int:
    """Clamp a requested BFS depth to ``[1, settings.max_depth]``."""
    if depth is None:
        return 1
    return max(1, min(int(depth), settings.max_depth))


def cooccurrence(attribute_sets: Iterable[Iterable[str]]) -> tuple[Counter[str], Counter[tuple[str, str]]]:
    """Count attribute usage and pairwise co-occurrence.

    Returns:
        ``(counts, pairs)`` where ``pairs`` is keyed by the sorted attribute
        pair and holds the number of items carrying both.
    """
    counts: Counter[str] = Counter()
    pairs: Counter[tuple[str, str]] = Counter()
    for attrs in attribute_sets:
        unique = sorted(set(attrs))
        counts.update(unique)
        pairs.update(combinations(unique, 2))
    return counts, pairs


def bfs_reachable(
    edges: Iterable[AttributeEdge],
    focus: str,
    depth: int,
    min_weight: float = 0,
) -> set[str]:
    """Nodes within *depth* hops of *focus* over edges meeting *min_weight*."""
    adjacency: dict[str, set[str]] = {}
    for e in edges:
        if e.weight < min_weight:
            continue
        adjacency.setdefault(e.source, set()).add(e.target)
        adjacency.setdefault(e.target, set()).add(e.source)

    included: set[str] = set()
    frontier = {focus}
    for d in range(depth + 1):
        included |= frontier
        if d == depth:
            break
        frontier = {n for f in frontier for n in adjacency.get(f, ())} - included
        if not frontier:
            break
    return included


def extract_subgraph(
    counts: Mapping[str, int],
    edges: list[AttributeEdge],
    focus: Optional[str] = None,
    depth: Optional[int] = 1,
    min_weight: float = 0,
    min_count: int = 0,
    limit: int = 0,
    total_items: int = 0,
) -> AttributeGraph:
    """Filter an attribute graph down to a focus-centred, bounded subgraph.

    An unknown *focus* is not an error: the result is empty and carries the
    applied filter so callers can render "no matches".
    """
    clamped = clamp_depth(depth)
    applied = AppliedFilter(focus=focus, depth=clamped) if focus else None

    if focus and focus not in counts:
        return AttributeGraph(total_items=total_items, applied_filter=applied)

    included = bfs_reachable(edges, focus, clamped, min_weight) if focus else None

    nodes = [
        AttributeNode(label=label, count=count)
        for label, count in counts.items()
        if (included is None or label in included) and count >= min_count
    ]
    nodes.sort(key=lambda n: (-n.count, n.label))
    if limit and limit > 0:
        nodes = nodes[:limit]

    kept = {n.label for n in nodes}
    result_edges = [
        e for e in edges
        if e.source in kept and e.target in kept and e.weight >= min_weight
    ]
    result_edges.sort(key=lambda e: (-e.weight, e.source, e.target))

    return AttributeGraph(
        nodes=nodes,
        edges=result_edges,
        total_items=total_items,
        applied_filter=applied,
    )


def build_attribute_graph(
    conn: sqlite3.Connection, query: AttributeQuery | None = None
) -> AttributeGraph:
    """Build the attribute co-occurrence graph from storage and filter it."""
    query = query or AttributeQuery()
    attribute_sets = list_attribute_sets(conn)
    counts, pairs = cooccurrence(attribute_sets)
    edges = [AttributeEdge(source=a, target=b, weight=w) for (a, b), w in pairs.items()]
    return extract_subgraph(
        counts,
        edges,
        focus=query.focus,
        depth=query.depth,
        min_weight=query.min_weight,
        min_count=query.min_count,
        limit=query.limit,
        total_items=len(attribute_sets),
    )
