"""Graph snapshot endpoints.

Routes
------
GET /graph/attributes   Attribute co-occurrence graph (optional focus + BFS depth)
GET /graph/items        Typed item graph (items, attributes, versions)
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from stashgraph.config import settings
from stashgraph.graph.builder import build_relation_graph
from stashgraph.graph.models import AttributeQuery, GraphQuery
from stashgraph.graph.subgraph import build_attribute_graph

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class AttributeNodeResponse(BaseModel):
    label: str
    count: int


class AttributeEdgeResponse(BaseModel):
    source: str
    target: str
    weight: int


class AppliedFilterResponse(BaseModel):
    focus: str
    depth: int


class AttributeGraphResponse(BaseModel):
    nodes: list[AttributeNodeResponse]
    edges: list[AttributeEdgeResponse]
    total_items: int
    applied_filter: Optional[AppliedFilterResponse] = None


class NodeResponse(BaseModel):
    id: str
    type: Literal["item", "attribute", "version"]
    label: str
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    version: Optional[int] = None
    file_count: Optional[int] = None
    total_size: Optional[int] = None
    attributes: Optional[list[str]] = None
    count: Optional[int] = None
    version_number: Optional[int] = None
    created_by: Optional[str] = None
    change_summary: Optional[dict[str, Any]] = None


class EdgeResponse(BaseModel):
    source: str
    target: str
    type: Literal["has_attribute", "shared_attributes", "version_of", "temporal_proximity"]
    weight: float
    metadata: Optional[dict[str, Any]] = None


class TimeRange(BaseModel):
    min: Optional[int] = None
    max: Optional[int] = None


class RelationGraphResponse(BaseModel):
    nodes: list[NodeResponse]
    edges: list[EdgeResponse]
    time_range: TimeRange
    total_items: int


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/attributes", response_model=AttributeGraphResponse, response_model_exclude_none=True)
def attribute_graph(
    request: Request,
    focus: Optional[str] = None,
    depth: int = Query(1, ge=0),
    min_weight: float = Query(0, ge=0),
    min_count: int = Query(0, ge=0),
    limit: int = Query(0, ge=0),
) -> dict[str, Any]:
    """Return the attribute co-occurrence graph.

    An unknown ``focus`` yields an empty graph echoing the applied filter.
    """
    conn = request.app.state.db
    query = AttributeQuery(
        focus=focus or None,
        depth=depth,
        min_weight=min_weight,
        min_count=min_count,
        limit=limit,
    )
    return build_attribute_graph(conn, query).to_dict()


@router.get("/items", response_model=RelationGraphResponse, response_model_exclude_none=True)
def item_graph(
    request: Request,
    mode: Literal["relations", "timeline", "versions"] = "relations",
    since: Optional[int] = None,
    until: Optional[int] = None,
    attribute: Optional[str] = None,
    limit: int = Query(settings.graph_default_limit, ge=0),
    include_versions: bool = False,
    min_shared_weight: float = Query(1, ge=0),
) -> dict[str, Any]:
    """Return the typed item graph for the requested window."""
    if since is not None and until is not None and since > until:
        raise HTTPException(status_code=422, detail="'since' must not be after 'until'.")
    conn = request.app.state.db
    query = GraphQuery(
        mode=mode,
        since=since,
        until=until,
        attribute=attribute or None,
        limit=limit,
        include_versions=include_versions,
        min_shared_weight=min_shared_weight,
    )
    return build_relation_graph(conn, query).to_dict()
