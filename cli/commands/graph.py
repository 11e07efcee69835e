"""Graph commands: inspect snapshots and run the layout to convergence."""

from __future__ import annotations

import json
from typing import Optional

import typer

from cli.rendering import render_attribute_graph, render_layout, render_relation_graph
from stashgraph.config import settings
from stashgraph.db import get_connection, init_db
from stashgraph.graph.clusters import cluster_count
from stashgraph.graph.builder import build_relation_graph
from stashgraph.graph.models import AttributeQuery, GraphQuery
from stashgraph.graph.subgraph import build_attribute_graph
from stashgraph.layout.camera import Viewport
from stashgraph.session.session import InteractionSession

graph_app = typer.Typer(help="Build graph snapshots and layouts.", no_args_is_help=True)


@graph_app.command("attributes")
def graph_attributes(
    focus: Optional[str] = typer.Option(None, help="Centre the graph on this attribute."),
    depth: int = typer.Option(1, help="BFS depth from the focus (clamped to 1..5)."),
    min_weight: float = typer.Option(0, help="Minimum co-occurrence count for an edge."),
    min_count: int = typer.Option(0, help="Minimum usage count for an attribute."),
    limit: int = typer.Option(0, help="Keep at most this many attributes (0 = all)."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw snapshot as JSON."),
) -> None:
    """Print the attribute co-occurrence graph."""
    conn = get_connection()
    init_db(conn)
    try:
        graph = build_attribute_graph(
            conn,
            AttributeQuery(focus=focus, depth=depth, min_weight=min_weight, min_count=min_count, limit=limit),
        )
    finally:
        conn.close()
    typer.echo(json.dumps(graph.to_dict(), indent=2) if as_json else render_attribute_graph(graph))


@graph_app.command("items")
def graph_items(
    mode: str = typer.Option("relations", help="relations | timeline | versions"),
    attribute: Optional[str] = typer.Option(None, "--attr", "-a", help="Only items carrying this attribute."),
    limit: int = typer.Option(settings.graph_default_limit, help="Maximum number of items."),
    versions: bool = typer.Option(False, "--versions", help="Include version snapshot nodes."),
    min_shared_weight: float = typer.Option(1, help="Minimum shared-attribute weight."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw snapshot as JSON."),
) -> None:
    """Print the typed item relation graph."""
    if mode not in ("relations", "timeline", "versions"):
        typer.echo(f"❌ Unknown mode {mode!r}. Use: relations | timeline | versions")
        raise typer.Exit(code=1)
    conn = get_connection()
    init_db(conn)
    try:
        graph = build_relation_graph(
            conn,
            GraphQuery(
                mode=mode,  # type: ignore[arg-type]
                attribute=attribute,
                limit=limit,
                include_versions=versions,
                min_shared_weight=min_shared_weight,
            ),
        )
    finally:
        conn.close()
    typer.echo(json.dumps(graph.to_dict(), indent=2) if as_json else render_relation_graph(graph))


@graph_app.command("layout")
def graph_layout(
    kind: str = typer.Option("items", help="items | attributes"),
    root: list[str] = typer.Option([], "--root", "-r", help="Analyse from this item (repeatable)."),
    ignore: list[str] = typer.Option([], "--ignore", help="Ignore this attribute (repeatable)."),
    depth: int = typer.Option(1, help="Analysis depth from the roots."),
    as_json: bool = typer.Option(False, "--json", help="Print coordinates as JSON."),
) -> None:
    """Run the force simulation to convergence and print node coordinates."""
    conn = get_connection()
    init_db(conn)
    try:
        if kind == "attributes":
            snapshot = build_attribute_graph(conn)
        elif kind == "items":
            snapshot = build_relation_graph(conn)
        else:
            typer.echo(f"❌ Unknown kind {kind!r}. Use: items | attributes")
            raise typer.Exit(code=1)
    finally:
        conn.close()

    session = InteractionSession(Viewport(1200, 800))
    session.load(snapshot)
    session.set_depth(depth)
    for attr in ignore:
        session.toggle_ignored(attr)
    for item_id in root:
        if not session.toggle_root(item_id):
            typer.echo(f"⚠️  Unknown root item: {item_id}")
    ticks = session.simulator.run()

    if as_json:
        payload = [
            {"id": n.id, "type": n.type, "label": n.label, "cluster": n.cluster, "x": n.x, "y": n.y}
            for n in session.nodes
        ]
        typer.echo(json.dumps(payload, indent=2))
        return
    clusters = cluster_count(n.cluster for n in session.nodes)
    typer.echo(
        f"[graph layout] settled after {ticks} ticks, {len(session.nodes)} node(s) in {clusters} cluster(s)"
    )
    typer.echo(render_layout(session.nodes))
