"""Connection factory for the item store."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional

from stashgraph.config import settings


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """Return a connection to *db_path* (default ``settings.db_path``).

    Rows come back as :class:`sqlite3.Row`.  Foreign keys are enforced so
    deleting an item cascades to its files, versions, attribute index rows
    and relations; the journal runs in WAL mode so readers do not block the
    writer.  ``":memory:"`` is accepted for tests.
    """
    path = db_path or settings.db_path
    if str(path) != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")
    return conn
