"""Tests for GraphFetcher supersession."""

from __future__ import annotations

import asyncio

import pytest

from stashgraph.graph.models import AttributeGraph, AttributeQuery, GraphQuery, Node, RelationGraph
from stashgraph.providers.base import GraphDataProvider
from stashgraph.session.fetch import GraphFetcher
from stashgraph.session.session import InteractionSession


class GatedProvider(GraphDataProvider):
    """Returns a graph labelled by the query's attribute once its gate opens."""

    def __init__(self) -> None:
        self.gates: dict[str, asyncio.Event] = {}
        self.failing: set[str] = set()

    def gate(self, name: str) -> asyncio.Event:
        return self.gates.setdefault(name, asyncio.Event())

    async def get_relation_graph(self, query: GraphQuery) -> RelationGraph:
        await self.gate(query.attribute or "").wait()
        if query.attribute in self.failing:
            raise RuntimeError(f"request {query.attribute!r} failed")
        return RelationGraph(nodes=[Node(query.attribute or "", "item", query.attribute or "")], total_items=1)

    async def get_attribute_graph(self, query: AttributeQuery) -> AttributeGraph:
        await self.gate(query.focus or "").wait()
        return AttributeGraph(total_items=0)


class TestSupersession:
    async def test_latest_response_wins_even_if_it_arrives_first(self) -> None:
        provider = GatedProvider()
        session = InteractionSession()
        fetcher = GraphFetcher(provider, session)

        slow = asyncio.create_task(fetcher.fetch_relations(GraphQuery(attribute="old")))
        await asyncio.sleep(0)
        fast = asyncio.create_task(fetcher.fetch_relations(GraphQuery(attribute="new")))
        await asyncio.sleep(0)

        provider.gate("new").set()
        assert (await fast) is not None
        provider.gate("old").set()
        assert (await slow) is None

        assert [n.id for n in session.nodes] == ["new"]

    async def test_single_fetch_installs(self) -> None:
        provider = GatedProvider()
        provider.gate("").set()
        session = InteractionSession()
        graph = await GraphFetcher(provider, session).fetch_relations()
        assert graph is not None
        assert [n.id for n in session.nodes] == [""]

    async def test_tokens_increase(self) -> None:
        provider = GatedProvider()
        provider.gate("").set()
        fetcher = GraphFetcher(provider)
        await fetcher.fetch_attributes()
        first = fetcher.latest_token
        await fetcher.fetch_relations()
        assert fetcher.latest_token == first + 1

    async def test_mixed_kinds_supersede_each_other(self) -> None:
        provider = GatedProvider()
        fetcher = GraphFetcher(provider)
        items = asyncio.create_task(fetcher.fetch_relations(GraphQuery(attribute="i")))
        await asyncio.sleep(0)
        attrs = asyncio.create_task(fetcher.fetch_attributes(AttributeQuery(focus="a")))
        await asyncio.sleep(0)
        provider.gate("i").set()
        provider.gate("a").set()
        assert (await items) is None
        assert (await attrs) is not None


class TestFailures:
    async def test_failed_superseded_request_is_dropped(self) -> None:
        provider = GatedProvider()
        provider.failing.add("old")
        session = InteractionSession()
        fetcher = GraphFetcher(provider, session)

        old = asyncio.create_task(fetcher.fetch_relations(GraphQuery(attribute="old")))
        await asyncio.sleep(0)
        new = asyncio.create_task(fetcher.fetch_relations(GraphQuery(attribute="new")))
        await asyncio.sleep(0)

        provider.gate("new").set()
        assert (await new) is not None
        provider.gate("old").set()
        assert (await old) is None
        assert [n.id for n in session.nodes] == ["new"]

    async def test_failed_latest_request_raises(self) -> None:
        provider = GatedProvider()
        provider.failing.add("only")
        provider.gate("only").set()
        session = InteractionSession()
        with pytest.raises(RuntimeError, match="failed"):
            await GraphFetcher(provider, session).fetch_relations(GraphQuery(attribute="only"))
        assert session.nodes == []
