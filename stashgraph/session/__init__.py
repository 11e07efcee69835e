"""Interactive exploration: event state machine, analysis filters, fetching."""

from stashgraph.session.events import InteractionState
from stashgraph.session.fetch import GraphFetcher
from stashgraph.session.session import FilterState, Frame, InteractionSession, SessionState

__all__ = [
    "FilterState",
    "Frame",
    "GraphFetcher",
    "InteractionSession",
    "InteractionState",
    "SessionState",
]
