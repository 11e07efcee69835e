"""HTTP surface for graph snapshots.

The lifespan hook configures logging and opens one SQLite connection for
the whole process, exposed to routers as ``request.app.state.db``.  Only
read endpoints are mounted:

    /graph/attributes   attribute co-occurrence graph
    /graph/items        typed item relation graph
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stashgraph.api.routers import graph as graph_router
from stashgraph.config import configure_logging
from stashgraph.db import get_connection, init_db


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    conn = get_connection()
    init_db(conn)
    app.state.db = conn
    try:
        yield
    finally:
        conn.close()


def create_app() -> FastAPI:
    """Build the app with CORS enabled and the graph router mounted."""
    app = FastAPI(
        title="stashgraph",
        description="Attribute and item relation graphs computed from the local item store.",
        version="0.1.0",
        lifespan=lifespan,
    )
    # Snapshots are read-only, so any origin may fetch them.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.include_router(graph_router.router, prefix="/graph", tags=["graph"])
    return app


# uvicorn stashgraph.api.app:app
app = create_app()
