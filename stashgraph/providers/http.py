"""Provider talking to a running stashgraph HTTP API."""

from __future__ import annotations

from typing import Any, Optional

import httpx

from stashgraph.config import settings
from stashgraph.graph.models import AttributeGraph, AttributeQuery, GraphQuery, RelationGraph
from stashgraph.providers.base import GraphDataProvider


def _params(values: dict[str, Any]) -> dict[str, Any]:
    """Drop unset values and render booleans the way query strings expect."""
    params: dict[str, Any] = {}
    for key, value in values.items():
        if value is None:
            continue
        params[key] = str(value).lower() if isinstance(value, bool) else value
    return params


class HttpGraphProvider(GraphDataProvider):
    """Fetches snapshots from ``/graph/attributes`` and ``/graph/items``.

    Args:
        base_url: API root; defaults to ``settings.provider_url``.
        client:   Optional pre-built ``httpx.AsyncClient`` (the provider does
                  not close clients it did not create).

    Raises:
        httpx.HTTPStatusError: If the server returns a 4xx/5xx status code.
    """

    def __init__(self, base_url: str | None = None, client: Optional[httpx.AsyncClient] = None) -> None:
        self.base_url = (base_url or settings.provider_url).rstrip("/")
        self._client = client

    async def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        if self._client is not None:
            response = await self._client.get(f"{self.base_url}{path}", params=params)
            response.raise_for_status()
            return response.json()
        async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
            response = await client.get(f"{self.base_url}{path}", params=params)
            response.raise_for_status()
            return response.json()

    async def get_attribute_graph(self, query: AttributeQuery) -> AttributeGraph:
        data = await self._get(
            "/graph/attributes",
            _params(
                {
                    "focus": query.focus,
                    "depth": query.depth,
                    "min_weight": query.min_weight,
                    "min_count": query.min_count,
                    "limit": query.limit,
                }
            ),
        )
        return AttributeGraph.from_dict(data)

    async def get_relation_graph(self, query: GraphQuery) -> RelationGraph:
        data = await self._get(
            "/graph/items",
            _params(
                {
                    "mode": query.mode,
                    "since": query.since,
                    "until": query.until,
                    "attribute": query.attribute,
                    "limit": query.limit,
                    "include_versions": query.include_versions,
                    "min_shared_weight": query.min_shared_weight,
                }
            ),
        )
        return RelationGraph.from_dict(data)
