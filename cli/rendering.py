"""Plain-text rendering of graph snapshots and layouts for the CLI."""

from __future__ import annotations

from typing import Iterable

from stashgraph.graph.models import AttributeGraph, RelationGraph
from stashgraph.layout.render import RenderNode


def render_attribute_graph(graph: AttributeGraph) -> str:
    """Attribute counts followed by co-occurrence pairs, strongest first."""
    lines = []
    if graph.applied_filter:
        f = graph.applied_filter
        lines.append(f"Focus: {f.focus!r}  depth={f.depth}")
    if not graph.nodes:
        lines.append("No attributes match.")
        return "\n".join(lines)
    lines.append(f"{len(graph.nodes)} attribute(s) across {graph.total_items} item(s)")
    width = max(len(n.label) for n in graph.nodes)
    for n in graph.nodes:
        lines.append(f"  {n.label:<{width}}  {n.count}")
    if graph.edges:
        lines.append("Co-occurrence:")
        for e in graph.edges:
            lines.append(f"  {e.source} -- {e.target}  ×{e.weight}")
    return "\n".join(lines)


def render_relation_graph(graph: RelationGraph) -> str:
    """Node/edge counts per type and the observed time range."""
    if not graph.nodes:
        return f"No items match ({graph.total_items} stored)."
    node_types: dict[str, int] = {}
    for n in graph.nodes:
        node_types[n.type] = node_types.get(n.type, 0) + 1
    edge_types: dict[str, int] = {}
    for e in graph.edges:
        edge_types[e.type] = edge_types.get(e.type, 0) + 1
    lines = [f"{len(graph.nodes)} node(s), {len(graph.edges)} edge(s)  (population {graph.total_items})"]
    lines.extend(f"  node  {t:<20} {c}" for t, c in sorted(node_types.items()))
    lines.extend(f"  edge  {t:<20} {c}" for t, c in sorted(edge_types.items()))
    lo, hi = graph.time_range
    lines.append(f"Created between {lo} and {hi}")
    return "\n".join(lines)


def render_layout(nodes: Iterable[RenderNode]) -> str:
    """One line per node: id, type, cluster and settled coordinates."""
    rows = [(n.id, n.type, n.cluster, n.x, n.y) for n in nodes]
    if not rows:
        return "Nothing to lay out."
    width = max(len(r[0]) for r in rows)
    return "\n".join(
        f"  {nid:<{width}}  {ntype:<9}  c{cluster:<3} {x:9.1f} {y:9.1f}"
        for nid, ntype, cluster, x, y in rows
    )
