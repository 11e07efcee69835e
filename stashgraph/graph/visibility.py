"""Visibility filter for analysis mode.

Re-derives the visible node/edge set of an already fetched snapshot from the
set of root items, the ignored attributes and the BFS depth, without going
back to storage.  Node objects are passed through untouched, so layout state
carried on them (positions, velocities) survives re-filtering.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import AbstractSet, Generic, Iterable, Protocol, Sequence, TypeVar

from stashgraph.graph.models import ATTRIBUTE, HAS_ATTRIBUTE, ITEM, SHARED_ATTRIBUTES, Edge


class GraphNodeLike(Protocol):
    id: str
    type: str
    label: str


N = TypeVar("N", bound=GraphNodeLike)


@dataclass
class VisibleGraph(Generic[N]):
    nodes: list[N] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    # Ignored attribute nodes kept because a root carries them.
    dimmed: set[str] = field(default_factory=set)


def _ignored_attribute_ids(nodes: Iterable[GraphNodeLike], ignored: AbstractSet[str]) -> set[str]:
    return {n.id for n in nodes if n.type == ATTRIBUTE and n.label in ignored}


def _active_edges(edges: Iterable[Edge], ignored_ids: set[str], ignored: AbstractSet[str]) -> list[Edge]:
    """Edges not touching an ignored attribute.

    A ``shared_attributes`` edge survives only while at least one of the
    attributes it stands for is not ignored.
    """
    active = []
    for e in edges:
        if e.source in ignored_ids or e.target in ignored_ids:
            continue
        if ignored and e.type == SHARED_ATTRIBUTES:
            names = (e.metadata or {}).get("shared_attributes") or []
            if not any(name not in ignored for name in names):
                continue
        active.append(e)
    return active


def apply_visibility_filter(
    nodes: Sequence[N],
    edges: Sequence[Edge],
    roots: AbstractSet[str],
    ignored: AbstractSet[str] = frozenset(),
    depth: int = 1,
) -> VisibleGraph[N]:
    """Compute the visible subset of a snapshot.

    Without roots only item nodes and the ``shared_attributes`` edges between
    them are visible.  With roots, nodes within *depth* hops over
    ``has_attribute``/``shared_attributes`` edges are visible, plus every item
    reachable through further ``shared_attributes`` edges (not counted
    against *depth*), plus ignored attributes carried by a root (dimmed).
    """
    types = {n.id: n.type for n in nodes}
    ignored_ids = _ignored_attribute_ids(nodes, ignored)
    active = _active_edges(edges, ignored_ids, ignored)
    roots = {r for r in roots if types.get(r) == ITEM}

    if not roots:
        visible_nodes = [n for n in nodes if n.type == ITEM]
        ids = {n.id for n in visible_nodes}
        return VisibleGraph(
            nodes=visible_nodes,
            edges=[e for e in active if e.type == SHARED_ATTRIBUTES and e.source in ids and e.target in ids],
        )

    membership = [e for e in active if e.type in (HAS_ATTRIBUTE, SHARED_ATTRIBUTES)]
    adjacency: dict[str, list[str]] = {}
    for e in membership:
        adjacency.setdefault(e.source, []).append(e.target)
        adjacency.setdefault(e.target, []).append(e.source)

    visible: set[str] = set(roots)
    queue = deque((r, 0) for r in roots)
    while queue:
        node_id, d = queue.popleft()
        if d >= depth:
            continue
        for neighbour in adjacency.get(node_id, ()):
            if neighbour not in visible:
                visible.add(neighbour)
                queue.append((neighbour, d + 1))

    # Close over item<->item relations among what is already visible.
    relation_adj: dict[str, list[str]] = {}
    for e in membership:
        if e.type == SHARED_ATTRIBUTES:
            relation_adj.setdefault(e.source, []).append(e.target)
            relation_adj.setdefault(e.target, []).append(e.source)
    stack = [n for n in visible if n in relation_adj]
    while stack:
        for neighbour in relation_adj[stack.pop()]:
            if neighbour not in visible:
                visible.add(neighbour)
                stack.append(neighbour)

    ignored_root_edges = []
    for e in edges:
        if e.type != HAS_ATTRIBUTE:
            continue
        if e.source in ignored_ids and e.target in roots:
            ignored_root_edges.append(e)
        elif e.target in ignored_ids and e.source in roots:
            ignored_root_edges.append(e)
    dimmed = set()
    for e in ignored_root_edges:
        dimmed.add(e.source if e.source in ignored_ids else e.target)
    visible |= dimmed

    def _shown(e: Edge) -> bool:
        if e.source not in visible or e.target not in visible:
            return False
        if e.type == HAS_ATTRIBUTE:
            item_end = e.source if types.get(e.source) == ITEM else e.target
            return item_end in roots
        return True

    return VisibleGraph(
        nodes=[n for n in nodes if n.id in visible],
        edges=[e for e in active if _shown(e)] + ignored_root_edges,
        dimmed=dimmed,
    )


def highlight_paths(
    edges: Iterable[Edge],
    attribute_ids: AbstractSet[str],
    roots: AbstractSet[str],
    visible: AbstractSet[str],
) -> list[tuple[str, str]]:
    """``(root, item)`` pairs linked through one of *attribute_ids*.

    Used to draw tracked (or hovered) attributes as paths from each root
    carrying the attribute to every other visible item carrying it.
    """
    if not attribute_ids or not roots:
        return []
    carriers: dict[str, tuple[list[str], list[str]]] = {a: ([], []) for a in attribute_ids}
    for e in edges:
        if e.type != HAS_ATTRIBUTE:
            continue
        attr, item = (e.source, e.target) if e.source in carriers else (e.target, e.source)
        if attr not in carriers:
            continue
        root_side, other_side = carriers[attr]
        (root_side if item in roots else other_side).append(item)

    paths: list[tuple[str, str]] = []
    for root_side, other_side in carriers.values():
        for root in root_side:
            paths.extend((root, item) for item in other_side if item in visible)
    return paths
