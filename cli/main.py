"""stashgraph CLI: entry-point for store, graph and layout operations.

Usage:
    python cli/main.py --help

Command groups:
    db        → schema and relation maintenance
    item      → item CRUD (relations recomputed on every write)
    graph     → attribute / item graph snapshots and layouts
    serve     → run the HTTP API
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from stashgraph.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from typing import Optional

import typer

from cli.commands.graph import graph_app
from cli.commands.item import item_app
from stashgraph.config import configure_logging, settings
from stashgraph.db import get_connection, init_db
from stashgraph.db.migrations import current_version
from stashgraph.db.relations import rebuild_all

app = typer.Typer(
    name="stashgraph",
    help="stashgraph CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override STASHGRAPH_LOG_LEVEL."),
) -> None:
    configure_logging(log_level)


# ---------------------------------------------------------------------------
# DB commands
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables, run migrations)."""
    conn = get_connection()
    init_db(conn)
    version = current_version(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path} (schema v{version})")


@db_app.command("rebuild-relations")
def db_rebuild_relations() -> None:
    """Recompute every shared-attribute relation from the attribute index."""
    conn = get_connection()
    init_db(conn)
    try:
        with conn:
            count = rebuild_all(conn)
    finally:
        conn.close()
    typer.echo(f"[db rebuild-relations] {count} relation(s)")


app.add_typer(item_app, name="item")
app.add_typer(graph_app, name="graph")


# ---------------------------------------------------------------------------
# HTTP API
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Port."),
) -> None:
    """Run the graph HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("stashgraph.api.app:app", host=host, port=port)


if __name__ == "__main__":
    app()
