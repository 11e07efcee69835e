"""RelationStore: precomputed ``shared_attributes`` edges between items.

Relations are recomputed for one item whenever that item is written.  The
recompute never commits on its own: callers run it inside the same
``with conn:`` block as the item write so both land (or roll back) together.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections import defaultdict
from typing import Iterable

from stashgraph.db.models import Relation

logger = logging.getLogger(__name__)

SHARED_ATTRIBUTES = "shared_attributes"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_relation(row: sqlite3.Row) -> Relation:
    return Relation(
        source_id=row["source_id"],
        target_id=row["target_id"],
        relation_type=row["relation_type"],
        weight=row["weight"],
        metadata=json.loads(row["metadata"] or "{}"),
    )


def pair_key(a: str, b: str) -> tuple[str, str]:
    """Order-independent key for an item pair."""
    return (a, b) if a < b else (b, a)


def shared_attributes(a: Iterable[str], b: Iterable[str]) -> list[str]:
    """Sorted intersection of two attribute collections."""
    return sorted(set(a) & set(b))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def replace_attribute_index(
    conn: sqlite3.Connection, item_id: str, attributes: Iterable[str]
) -> None:
    """Rewrite the ``item_attributes`` rows for *item_id*.  Does not commit."""
    conn.execute("DELETE FROM item_attributes WHERE item_id = ?", (item_id,))
    conn.executemany(
        "INSERT OR IGNORE INTO item_attributes (item_id, attribute) VALUES (?, ?)",
        [(item_id, a) for a in set(attributes)],
    )


def drop_relations(conn: sqlite3.Connection, item_id: str) -> None:
    """Delete every relation touching *item_id*.  Does not commit."""
    conn.execute(
        "DELETE FROM item_relations WHERE source_id = ? OR target_id = ?",
        (item_id, item_id),
    )


def recompute_relations(
    conn: sqlite3.Connection, item_id: str, attributes: Iterable[str]
) -> int:
    """Recompute the ``shared_attributes`` relations of one item.

    Candidate partners come from the ``item_attributes`` inverted index, so
    only items sharing at least one attribute are visited.  The attribute
    index for *item_id* must already reflect *attributes*.

    Returns:
        The number of relation rows written.
    """
    own = set(attributes)
    drop_relations(conn, item_id)
    if not own:
        return 0

    placeholders = ",".join("?" for _ in own)
    rows = conn.execute(
        f"""
        SELECT item_id, attribute
        FROM   item_attributes
        WHERE  attribute IN ({placeholders}) AND item_id != ?
        """,  # noqa: S608
        (*own, item_id),
    ).fetchall()

    shared: dict[str, set[str]] = defaultdict(set)
    for r in rows:
        shared[r["item_id"]].add(r["attribute"])

    params = []
    for other_id, common in shared.items():
        source, target = pair_key(item_id, other_id)
        names = sorted(common)
        params.append(
            (source, target, SHARED_ATTRIBUTES, len(names), json.dumps({SHARED_ATTRIBUTES: names}))
        )
    conn.executemany(
        """
        INSERT OR REPLACE INTO item_relations (source_id, target_id, relation_type, weight, metadata)
        VALUES (?, ?, ?, ?, ?)
        """,
        params,
    )
    logger.debug("Recomputed %d relation(s) for item %s", len(params), item_id)
    return len(params)


def get_relations(conn: sqlite3.Connection, item_id: str) -> list[Relation]:
    """Return all relations where *item_id* is either endpoint."""
    rows = conn.execute(
        """
        SELECT source_id, target_id, relation_type, weight, metadata
        FROM   item_relations
        WHERE  source_id = ?
        UNION ALL
        SELECT source_id, target_id, relation_type, weight, metadata
        FROM   item_relations
        WHERE  target_id = ?
        """,
        (item_id, item_id),
    ).fetchall()
    return [_row_to_relation(r) for r in rows]


def get_relation(conn: sqlite3.Connection, a: str, b: str) -> Relation | None:
    """Return the relation between *a* and *b* regardless of argument order."""
    source, target = pair_key(a, b)
    row = conn.execute(
        """
        SELECT source_id, target_id, relation_type, weight, metadata
        FROM   item_relations
        WHERE  source_id = ? AND target_id = ? AND relation_type = ?
        """,
        (source, target, SHARED_ATTRIBUTES),
    ).fetchone()
    return _row_to_relation(row) if row else None


def list_relations(conn: sqlite3.Connection, min_weight: float = 1) -> list[Relation]:
    """Return every relation with ``weight >= min_weight``."""
    rows = conn.execute(
        """
        SELECT source_id, target_id, relation_type, weight, metadata
        FROM   item_relations
        WHERE  relation_type = ? AND weight >= ?
        ORDER  BY weight DESC, source_id, target_id
        """,
        (SHARED_ATTRIBUTES, min_weight),
    ).fetchall()
    return [_row_to_relation(r) for r in rows]


def rebuild_all(conn: sqlite3.Connection) -> int:
    """Rebuild the attribute index and every relation from the items table.

    Used by the backfill migration.  Does not commit.

    Returns:
        The number of relation rows in the table afterwards.
    """
    conn.execute("DELETE FROM item_relations")
    conn.execute("DELETE FROM item_attributes")
    items = [
        (r["id"], json.loads(r["attributes"] or "[]"))
        for r in conn.execute("SELECT id, attributes FROM items").fetchall()
    ]
    for item_id, attributes in items:
        replace_attribute_index(conn, item_id, attributes)
    for item_id, attributes in items:
        recompute_relations(conn, item_id, attributes)
    return conn.execute("SELECT COUNT(*) FROM item_relations").fetchone()[0]
