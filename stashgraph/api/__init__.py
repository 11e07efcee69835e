"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from stashgraph.api import app

    uvicorn stashgraph.api:app --reload
"""

from stashgraph.api.app import app

__all__ = ["app"]
