"""ClusterDetector: connected components via union-find.

Nodes are addressed by their index in the node list; the disjoint-set forest
is a flat ``parent`` array.  Cluster ids only drive layout grouping and
colouring, never visibility.
"""

from __future__ import annotations

from typing import Iterable, Sequence


class DisjointSet:
    """Union-find over ``0..n-1`` with path halving."""

    def __init__(self, size: int) -> None:
        self.parent = list(range(size))

    def find(self, x: int) -> int:
        parent = self.parent
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    def union(self, a: int, b: int) -> bool:
        """Merge the sets of *a* and *b*.  Returns ``False`` if already joined."""
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return False
        self.parent[ra] = rb
        return True


def assign_clusters(
    node_ids: Sequence[str], edges: Iterable[tuple[str, str]]
) -> list[int]:
    """Return a cluster id per node, numbered in first-discovery order.

    Edges referencing ids not in *node_ids* are ignored.
    """
    index = {nid: i for i, nid in enumerate(node_ids)}
    ds = DisjointSet(len(node_ids))
    for source, target in edges:
        a, b = index.get(source), index.get(target)
        if a is not None and b is not None:
            ds.union(a, b)

    ids: dict[int, int] = {}
    clusters: list[int] = []
    for i in range(len(node_ids)):
        root = ds.find(i)
        if root not in ids:
            ids[root] = len(ids)
        clusters.append(ids[root])
    return clusters


def cluster_count(clusters: Iterable[int]) -> int:
    return len(set(clusters))
