"""GraphFetcher: asynchronous snapshot loading with supersession.

Every request takes a fresh token.  When a response arrives and a newer
request has been issued in the meantime, the response is dropped instead of
being installed, so a slow old query never overwrites a fast new one.
"""

from __future__ import annotations

import itertools
import logging
from typing import Awaitable, Optional, TypeVar

from stashgraph.graph.models import AttributeGraph, AttributeQuery, GraphQuery, RelationGraph
from stashgraph.providers.base import GraphDataProvider
from stashgraph.session.session import InteractionSession

logger = logging.getLogger(__name__)

S = TypeVar("S", RelationGraph, AttributeGraph)


class GraphFetcher:
    def __init__(self, provider: GraphDataProvider, session: Optional[InteractionSession] = None) -> None:
        self.provider = provider
        self.session = session
        self._tokens = itertools.count(1)
        self.latest_token = 0

    def _issue(self) -> int:
        self.latest_token = next(self._tokens)
        return self.latest_token

    async def _resolve(self, token: int, pending: Awaitable[S]) -> Optional[S]:
        """Await *pending*; install it only if *token* is still the latest.

        A superseded request is dropped whether it succeeded or failed.
        """
        try:
            graph = await pending
        except Exception:
            if token != self.latest_token:
                logger.debug("Discarding failed superseded graph request %d (latest %d)", token, self.latest_token)
                return None
            raise
        if token != self.latest_token:
            logger.debug("Discarding superseded graph response %d (latest %d)", token, self.latest_token)
            return None
        if self.session is not None:
            self.session.load(graph)
        return graph

    async def fetch_relations(self, query: GraphQuery | None = None) -> Optional[RelationGraph]:
        """Fetch and install an item graph.  Returns ``None`` if superseded."""
        token = self._issue()
        return await self._resolve(token, self.provider.get_relation_graph(query or GraphQuery()))

    async def fetch_attributes(self, query: AttributeQuery | None = None) -> Optional[AttributeGraph]:
        """Fetch and install an attribute graph.  Returns ``None`` if superseded."""
        token = self._issue()
        return await self._resolve(token, self.provider.get_attribute_graph(query or AttributeQuery()))
