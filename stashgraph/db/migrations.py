"""Schema setup and versioned migrations for the item store.

The base schema lives in ``schema.sql``; later changes (SQL or Python
backfills) are numbered steps recorded in ``schema_version``.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Callable, Union

from stashgraph.config import settings
from stashgraph.db.relations import rebuild_all

logger = logging.getLogger(__name__)

Migration = tuple[int, Union[str, Callable[[sqlite3.Connection], None]]]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _read_schema() -> str:
    """Load schema.sql bundled with the package."""
    return settings.schema_path.read_text(encoding="utf-8")


def _backfill_relations(conn: sqlite3.Connection) -> None:
    count = rebuild_all(conn)
    logger.info("Backfilled %d item relation(s)", count)


# Applied in version order and recorded in ``schema_version``.  A step is
# either a SQL string or a callable receiving the open connection; both run
# inside the same transaction as the version bookkeeping.
MIGRATIONS: list[Migration] = [
    (1, _backfill_relations),
]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def init_db(conn: sqlite3.Connection) -> None:
    """Apply ``schema.sql`` and any pending migrations.  Safe to re-run."""
    # executescript() commits first; the script holds DDL only.
    conn.executescript(_read_schema())
    _ensure_version_table(conn)
    migrate(conn)


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    """Create the internal schema-version tracking table if absent."""
    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version  INTEGER PRIMARY KEY,
                applied_at INTEGER DEFAULT (CAST(strftime('%s', 'now') AS INTEGER))
            )
            """
        )


def current_version(conn: sqlite3.Connection) -> int:
    """Return the highest applied migration version (0 if none applied)."""
    row = conn.execute(
        "SELECT COALESCE(MAX(version), 0) FROM schema_version"
    ).fetchone()
    return row[0] if row else 0


def migrate(conn: sqlite3.Connection, migrations: list[Migration] | None = None) -> None:
    """Run any pending incremental migrations."""
    applied = current_version(conn)
    for version, step in sorted(migrations if migrations is not None else MIGRATIONS, key=lambda m: m[0]):
        if version <= applied:
            continue
        logger.info("Running migration %d", version)
        with conn:
            if callable(step):
                step(conn)
            else:
                conn.execute(step)
            conn.execute(
                "INSERT INTO schema_version(version) VALUES (?)", (version,)
            )
