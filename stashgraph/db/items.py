"""CRUD operations for the ``items`` table.

Every write runs in a single transaction together with the attribute-index
rewrite and the relation recompute for the written item, so a failed write
leaves the previous relation set untouched.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from time import time
from typing import Any, Iterable, Optional

from stashgraph.db.models import Item, ItemFile, ItemSummary, ItemVersion
from stashgraph.db.relations import drop_relations, recompute_relations, replace_attribute_index


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_item(row: sqlite3.Row, files: list[ItemFile]) -> Item:
    return Item(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        attributes=json.loads(row["attributes"] or "[]"),
        metadata=json.loads(row["metadata"] or "{}"),
        version=row["version"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        files=files,
    )


def _row_to_summary(row: sqlite3.Row) -> ItemSummary:
    return ItemSummary(
        id=row["id"],
        name=row["name"],
        attributes=json.loads(row["attributes"] or "[]"),
        version=row["version"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        file_count=row["file_count"],
        total_size=row["total_size"],
    )


def _normalise_attributes(attributes: Optional[Iterable[str]]) -> list[str]:
    """Strip, drop empties and de-duplicate while preserving order."""
    seen: set[str] = set()
    result: list[str] = []
    for raw in attributes or []:
        attr = raw.strip()
        if attr and attr not in seen:
            seen.add(attr)
            result.append(attr)
    return result


def _load_files(conn: sqlite3.Connection, item_id: str) -> list[ItemFile]:
    rows = conn.execute(
        "SELECT filename, content, sort_order FROM item_files WHERE item_id = ? ORDER BY sort_order",
        (item_id,),
    ).fetchall()
    return [ItemFile(r["filename"], r["content"], r["sort_order"]) for r in rows]


def _insert_files(conn: sqlite3.Connection, item_id: str, files: Iterable[dict[str, Any]]) -> None:
    for i, f in enumerate(files):
        conn.execute(
            """
            INSERT INTO item_files (id, item_id, filename, content, sort_order)
            VALUES (?, ?, ?, ?, ?)
            """,
            (str(uuid.uuid4()), item_id, f["filename"], f.get("content", ""), i),
        )


def _change_summary(existing: Item, updates: dict[str, Any]) -> dict[str, Any]:
    summary: dict[str, Any] = {}
    for key in ("name", "description"):
        if key in updates and updates[key] != getattr(existing, key):
            summary[key] = True
    if "attributes" in updates:
        old, new = set(existing.attributes), set(updates["attributes"])
        added = [a for a in updates["attributes"] if a not in old]
        removed = [a for a in existing.attributes if a not in new]
        if added or removed:
            summary["attributes"] = True
            summary["attributes_added"] = added
            summary["attributes_removed"] = removed
    if "files" in updates:
        summary["files"] = True
    if "metadata" in updates:
        summary["metadata"] = True
    return summary


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def create_item(
    conn: sqlite3.Connection,
    name: str,
    attributes: Optional[Iterable[str]] = None,
    description: str = "",
    metadata: Optional[dict[str, Any]] = None,
    files: Optional[list[dict[str, Any]]] = None,
    item_id: Optional[str] = None,
    created_at: Optional[int] = None,
) -> Item:
    """Insert a new item and return it.

    Args:
        conn: Open DB connection.
        name: Human-readable display name.
        attributes: Tag names; whitespace is stripped and duplicates dropped.
        description: Free text.
        metadata: Arbitrary key/value pairs stored as a JSON blob.
        files: ``[{"filename": ..., "content": ...}, ...]``.
        item_id: Explicit UUID override (auto-generated when omitted).
        created_at: Explicit creation timestamp, e.g. for imports.

    Returns:
        The newly created :class:`~stashgraph.db.models.Item`.
    """
    iid = item_id or str(uuid.uuid4())
    now = created_at if created_at is not None else int(time())
    attrs = _normalise_attributes(attributes)

    with conn:
        conn.execute(
            """
            INSERT INTO items (id, name, description, attributes, metadata, version, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, 1, ?, ?)
            """,
            (iid, name, description, json.dumps(attrs), json.dumps(metadata or {}), now, now),
        )
        _insert_files(conn, iid, files or [])
        replace_attribute_index(conn, iid, attrs)
        recompute_relations(conn, iid, attrs)

    return get_item(conn, iid)  # type: ignore[return-value]


def get_item(conn: sqlite3.Connection, item_id: str) -> Optional[Item]:
    """Fetch a single item (with files) by its UUID.  Returns ``None`` if not found."""
    row = conn.execute("SELECT * FROM items WHERE id = ?", (item_id,)).fetchone()
    return _row_to_item(row, _load_files(conn, item_id)) if row else None


def update_item(
    conn: sqlite3.Connection,
    item_id: str,
    created_by: str = "system",
    **kwargs: Any,
) -> Item:
    """Update one or more fields on an item.

    Allowed keyword arguments: ``name``, ``description``, ``attributes``
    (list), ``metadata`` (dict), ``files`` (list of dicts, replaces all files).
    The pre-update state is snapshotted into ``item_versions`` and the live
    version number is bumped.  ``updated_at`` is always refreshed.

    Raises:
        ValueError: If ``item_id`` does not exist or no valid fields are given.
        sqlite3.IntegrityError: If the new files or the version snapshot
            violate a constraint; the whole update (including relations) is
            rolled back.
    """
    existing = get_item(conn, item_id)
    if existing is None:
        raise ValueError(f"Item not found: {item_id!r}")

    allowed = {"name", "description", "attributes", "metadata", "files"}
    for key in kwargs:
        if key not in allowed:
            raise ValueError(f"Cannot update field {key!r}")
    if not kwargs:
        raise ValueError("No valid fields provided to update_item()")

    if "attributes" in kwargs:
        kwargs["attributes"] = _normalise_attributes(kwargs["attributes"])

    now = int(time())
    columns: dict[str, Any] = {"updated_at": now, "version": existing.version + 1}
    for key in ("name", "description"):
        if key in kwargs:
            columns[key] = kwargs[key]
    if "attributes" in kwargs:
        columns["attributes"] = json.dumps(kwargs["attributes"])
    if "metadata" in kwargs:
        columns["metadata"] = json.dumps(kwargs["metadata"])

    set_clause = ", ".join(f"{col} = ?" for col in columns)
    values = list(columns.values()) + [item_id]
    final_attributes = kwargs.get("attributes", existing.attributes)

    with conn:
        conn.execute(
            """
            INSERT INTO item_versions
                (id, item_id, name, attributes, version, created_by, created_at, change_summary)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                str(uuid.uuid4()), item_id, existing.name, json.dumps(existing.attributes),
                existing.version, created_by, now, json.dumps(_change_summary(existing, kwargs)),
            ),
        )
        conn.execute(f"UPDATE items SET {set_clause} WHERE id = ?", values)  # noqa: S608
        if "files" in kwargs:
            conn.execute("DELETE FROM item_files WHERE item_id = ?", (item_id,))
            _insert_files(conn, item_id, kwargs["files"])
        replace_attribute_index(conn, item_id, final_attributes)
        recompute_relations(conn, item_id, final_attributes)

    return get_item(conn, item_id)  # type: ignore[return-value]


def delete_item(conn: sqlite3.Connection, item_id: str) -> bool:
    """Delete an item together with its files, versions and relations.

    Returns ``False`` (a no-op) if the item does not exist.
    """
    with conn:
        drop_relations(conn, item_id)
        cur = conn.execute("DELETE FROM items WHERE id = ?", (item_id,))
    return cur.rowcount > 0


def list_item_summaries(
    conn: sqlite3.Connection,
    since: Optional[int] = None,
    until: Optional[int] = None,
    attribute: Optional[str] = None,
    limit: int = 0,
) -> list[ItemSummary]:
    """Return items with file statistics, newest update first.

    Args:
        since / until: Inclusive bounds on ``created_at``.
        attribute: Only items carrying this exact attribute.
        limit: Maximum rows; ``0`` or negative means unlimited.
    """
    conditions: list[str] = []
    params: list[Any] = []
    if since is not None:
        conditions.append("i.created_at >= ?")
        params.append(since)
    if until is not None:
        conditions.append("i.created_at <= ?")
        params.append(until)
    if attribute:
        conditions.append(
            "EXISTS (SELECT 1 FROM item_attributes a WHERE a.item_id = i.id AND a.attribute = ?)"
        )
        params.append(attribute)

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    query = f"""
        SELECT i.id, i.name, i.attributes, i.version, i.created_at, i.updated_at,
               COUNT(f.id) AS file_count,
               COALESCE(SUM(LENGTH(f.content)), 0) AS total_size
        FROM   items i
        LEFT JOIN item_files f ON f.item_id = i.id
        {where}
        GROUP  BY i.id
        ORDER  BY i.updated_at DESC, i.id
    """  # noqa: S608
    if limit > 0:
        query += " LIMIT ?"
        params.append(limit)

    return [_row_to_summary(r) for r in conn.execute(query, params).fetchall()]


def count_items(conn: sqlite3.Connection) -> int:
    """Total number of stored items."""
    return conn.execute("SELECT COUNT(*) FROM items").fetchone()[0]


def list_attribute_sets(conn: sqlite3.Connection) -> list[list[str]]:
    """Return the attribute list of every item."""
    rows = conn.execute("SELECT attributes FROM items").fetchall()
    return [json.loads(r["attributes"] or "[]") for r in rows]


def attribute_usage(conn: sqlite3.Connection) -> list[tuple[str, int]]:
    """Return ``(attribute, item count)`` pairs, most used first."""
    rows = conn.execute(
        """
        SELECT attribute, COUNT(*) AS count
        FROM   item_attributes
        GROUP  BY attribute
        ORDER  BY count DESC, attribute
        """
    ).fetchall()
    return [(r["attribute"], r["count"]) for r in rows]


def list_versions(conn: sqlite3.Connection, item_id: str) -> list[ItemVersion]:
    """Return stored version snapshots of an item, oldest first."""
    rows = conn.execute(
        """
        SELECT id, item_id, name, attributes, version, created_by, created_at, change_summary
        FROM   item_versions
        WHERE  item_id = ?
        ORDER  BY version ASC
        """,
        (item_id,),
    ).fetchall()
    return [
        ItemVersion(
            id=r["id"],
            item_id=r["item_id"],
            name=r["name"],
            attributes=json.loads(r["attributes"] or "[]"),
            version=r["version"],
            created_by=r["created_by"],
            created_at=r["created_at"],
            change_summary=json.loads(r["change_summary"] or "{}"),
        )
        for r in rows
    ]
