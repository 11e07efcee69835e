"""Database layer package.

Public re-exports so callers can write::

    from stashgraph.db import get_connection, init_db
    from stashgraph.db import items, relations
"""

from stashgraph.db.connection import get_connection
from stashgraph.db.migrations import init_db
from stashgraph.db import items, relations

__all__ = ["get_connection", "init_db", "items", "relations"]
