"""Render nodes: graph nodes annotated with layout state.

A ``RenderNode`` wraps a snapshot ``Node`` with position, velocity, radius,
degree and cluster id.  Degrees and clusters are computed once per snapshot
from the full edge list; re-filtering reuses the same objects.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Literal, Optional, Sequence

from stashgraph.graph.clusters import assign_clusters
from stashgraph.graph.models import (
    ATTRIBUTE,
    CO_OCCURRENCE,
    ITEM,
    AttributeGraph,
    Edge,
    Node,
)

GraphKind = Literal["relations", "attributes"]

# Starting circle for the typed item graph.
RELATION_INITIAL_RADIUS = 200.0


@dataclass(eq=False)
class RenderNode:
    id: str
    type: str
    label: str
    radius: float
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    degree: int = 0
    cluster: int = 0
    node: Optional[Node] = None

    def contains(self, wx: float, wy: float) -> bool:
        """Hit test in world coordinates, with a small grab margin."""
        hit = self.radius + 4
        if self.type == ITEM:
            hit = max(self.radius * 1.1, hit)
        dx, dy = self.x - wx, self.y - wy
        return dx * dx + dy * dy <= hit * hit


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def compute_radius(node: Node, kind: GraphKind = "relations") -> float:
    """Display radius of *node*.

    Items scale with their file count, attributes with their usage count,
    version snapshots are a fixed size.  Attribute nodes of the co-occurrence
    graph are drawn slightly larger than in the item graph.
    """
    if node.type == ITEM:
        return _clamp(10 + math.sqrt(node.file_count or 1) * 4, 10, 28)
    if node.type == ATTRIBUTE:
        if kind == "attributes":
            return _clamp(6 + math.sqrt(node.count or 1) * 4, 6, 24)
        return _clamp(6 + math.sqrt(node.count or 1) * 3, 6, 20)
    return 5.0


def compute_degrees(nodes: Iterable[RenderNode], edges: Iterable[Edge]) -> None:
    degrees: dict[str, int] = {}
    for e in edges:
        degrees[e.source] = degrees.get(e.source, 0) + 1
        degrees[e.target] = degrees.get(e.target, 0) + 1
    for n in nodes:
        n.degree = degrees.get(n.id, 0)


def circle_layout(nodes: Sequence[RenderNode], radius: float) -> None:
    count = len(nodes)
    for i, n in enumerate(nodes):
        angle = 2 * math.pi * i / count
        n.x = math.cos(angle) * radius
        n.y = math.sin(angle) * radius


def cluster_sector_layout(nodes: Sequence[RenderNode]) -> None:
    """Place each cluster in its own sector around the origin.

    The highest-degree node of a cluster sits at the sector centre and the
    rest form a ring around it.
    """
    clusters: dict[int, list[RenderNode]] = {}
    for n in nodes:
        clusters.setdefault(n.cluster, []).append(n)

    spacing = max(120, len(clusters) * 60)
    for ci, members in enumerate(clusters.values()):
        angle = 2 * math.pi * ci / len(clusters)
        cx, cy = math.cos(angle) * spacing, math.sin(angle) * spacing
        members = sorted(members, key=lambda n: -n.degree)
        hub, ring = members[0], members[1:]
        hub.x, hub.y = cx, cy
        inner = max(25, len(members) * 10)
        for ni, n in enumerate(ring):
            a = 2 * math.pi * ni / len(ring)
            n.x = cx + math.cos(a) * inner
            n.y = cy + math.sin(a) * inner


def initial_layout(nodes: Sequence[RenderNode]) -> None:
    if not nodes:
        return
    if len({n.cluster for n in nodes}) <= 1:
        circle_layout(nodes, max(60, len(nodes) * 8))
    else:
        cluster_sector_layout(nodes)


def build_render_nodes(
    nodes: Sequence[Node], edges: Sequence[Edge], kind: GraphKind = "relations"
) -> list[RenderNode]:
    """Wrap snapshot nodes for layout and give them fresh starting positions."""
    render = [
        RenderNode(id=n.id, type=n.type, label=n.label, radius=compute_radius(n, kind), node=n)
        for n in nodes
    ]
    compute_degrees(render, edges)
    clusters = assign_clusters([n.id for n in render], ((e.source, e.target) for e in edges))
    for n, cluster in zip(render, clusters):
        n.cluster = cluster

    if kind == "attributes":
        initial_layout(render)
    elif render:
        circle_layout(render, RELATION_INITIAL_RADIUS)
    return render


def attribute_graph_elements(graph: AttributeGraph) -> tuple[list[Node], list[Edge]]:
    """Express a co-occurrence graph as generic nodes and edges.

    Attribute labels double as node ids.
    """
    nodes = [Node(id=n.label, type=ATTRIBUTE, label=n.label, count=n.count) for n in graph.nodes]
    edges = [Edge(source=e.source, target=e.target, type=CO_OCCURRENCE, weight=e.weight) for e in graph.edges]
    return nodes, edges
