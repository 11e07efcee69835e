"""Item commands: add, update, remove and list stored items."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import typer

from stashgraph.db import get_connection, init_db
from stashgraph.db.items import attribute_usage, create_item, delete_item, get_item, list_item_summaries, update_item
from stashgraph.db.relations import get_relations

item_app = typer.Typer(help="Create, update and inspect items.", no_args_is_help=True)


def _read_files(paths: list[Path]) -> list[dict[str, Any]]:
    files = []
    for i, path in enumerate(paths):
        if not path.is_file():
            typer.echo(f"❌ File not found: {path}")
            raise typer.Exit(code=1)
        files.append({"filename": path.name, "content": path.read_text(encoding="utf-8"), "sort_order": i})
    return files


def _format_ts(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")


@item_app.command("add")
def item_add(
    name: str = typer.Argument(..., help="Item name."),
    attribute: list[str] = typer.Option([], "--attr", "-a", help="Attribute (repeatable)."),
    description: str = typer.Option("", help="Free-text description."),
    file: list[Path] = typer.Option([], "--file", "-f", help="Attach a text file (repeatable)."),
    metadata: Optional[str] = typer.Option(None, help="JSON object of extra metadata."),
) -> None:
    """Create an item; its relations are recomputed in the same transaction."""
    extra = None
    if metadata:
        try:
            extra = json.loads(metadata)
        except json.JSONDecodeError as exc:
            typer.echo(f"❌ Invalid --metadata JSON: {exc}")
            raise typer.Exit(code=1)
        if not isinstance(extra, dict):
            typer.echo("❌ --metadata must be a JSON object.")
            raise typer.Exit(code=1)
    files = _read_files(file)

    conn = get_connection()
    init_db(conn)
    try:
        item = create_item(
            conn,
            name=name,
            attributes=attribute,
            description=description,
            metadata=extra,
            files=files,
        )
        relations = get_relations(conn, item.id)
    finally:
        conn.close()
    typer.echo(f"✅ Created item {item.id}  name={item.name!r}  attributes={item.attributes}")
    typer.echo(f"   {len(relations)} related item(s)")


@item_app.command("update")
def item_update(
    item_id: str = typer.Argument(..., help="Item id."),
    name: Optional[str] = typer.Option(None, help="New name."),
    attribute: Optional[list[str]] = typer.Option(None, "--attr", "-a", help="Replace attributes (repeatable)."),
    description: Optional[str] = typer.Option(None, help="New description."),
    file: Optional[list[Path]] = typer.Option(None, "--file", "-f", help="Replace files (repeatable)."),
    by: str = typer.Option("cli", "--by", help="Recorded author of the version snapshot."),
) -> None:
    """Update an item, snapshotting its previous state as a version."""
    updates: dict[str, Any] = {}
    if name is not None:
        updates["name"] = name
    if attribute:
        updates["attributes"] = attribute
    if description is not None:
        updates["description"] = description
    if file:
        updates["files"] = _read_files(file)

    conn = get_connection()
    init_db(conn)
    try:
        item = update_item(conn, item_id, created_by=by, **updates)
    except ValueError as exc:
        typer.echo(f"❌ {exc}")
        raise typer.Exit(code=1)
    finally:
        conn.close()
    typer.echo(f"✅ Updated item {item.id} to v{item.version}  attributes={item.attributes}")


@item_app.command("rm")
def item_rm(item_id: str = typer.Argument(..., help="Item id.")) -> None:
    """Delete an item together with its files, versions and relations."""
    conn = get_connection()
    init_db(conn)
    try:
        deleted = delete_item(conn, item_id)
    finally:
        conn.close()
    if not deleted:
        typer.echo(f"❌ Item not found: {item_id}")
        raise typer.Exit(code=1)
    typer.echo(f"🗑️  Deleted item {item_id}")


@item_app.command("list")
def item_list(
    attribute: Optional[str] = typer.Option(None, "--attr", "-a", help="Only items carrying this attribute."),
    limit: int = typer.Option(50, help="Maximum number of items."),
) -> None:
    """List items, newest first."""
    conn = get_connection()
    init_db(conn)
    try:
        items = list_item_summaries(conn, attribute=attribute, limit=limit)
    finally:
        conn.close()
    if not items:
        typer.echo("No items found.")
        return
    for it in items:
        attrs = ", ".join(it.attributes) or "-"
        typer.echo(f"  {it.id}  v{it.version}  {_format_ts(it.updated_at)}  {it.name!r}  [{attrs}]")


@item_app.command("attributes")
def item_attributes() -> None:
    """List attributes by how many items carry them."""
    conn = get_connection()
    init_db(conn)
    try:
        usage = attribute_usage(conn)
    finally:
        conn.close()
    if not usage:
        typer.echo("No attributes found.")
        return
    width = max(len(name) for name, _ in usage)
    for name, count in usage:
        typer.echo(f"  {name:<{width}}  {count}")


@item_app.command("show")
def item_show(item_id: str = typer.Argument(..., help="Item id.")) -> None:
    """Show one item with its files and related items."""
    conn = get_connection()
    init_db(conn)
    try:
        item = get_item(conn, item_id)
        relations = get_relations(conn, item_id) if item else []
    finally:
        conn.close()
    if item is None:
        typer.echo(f"❌ Item not found: {item_id}")
        raise typer.Exit(code=1)
    typer.echo(f"{item.name}  ({item.id}, v{item.version})")
    typer.echo(f"Attributes: {', '.join(item.attributes) or '-'}")
    for f in item.files:
        typer.echo(f"  📄 {f.filename}  {f.size} chars")
    for rel in relations:
        shared = ", ".join(rel.metadata.get("shared_attributes", []))
        typer.echo(f"  ↔ {rel.other(item.id)}  weight={rel.weight:g}  [{shared}]")
