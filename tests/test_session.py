"""Tests for the interaction state machine and analysis filters."""

from __future__ import annotations

import pytest

from stashgraph.graph.models import (
    AttributeEdge,
    AttributeGraph,
    AttributeNode,
    Edge,
    Node,
    RelationGraph,
    attribute_node_id,
)
from stashgraph.layout.camera import Viewport
from stashgraph.session.events import (
    Click,
    InteractionState,
    PinchEnd,
    PinchMove,
    PinchStart,
    PointerDown,
    PointerMove,
    PointerUp,
    Wheel,
)
from stashgraph.session.session import InteractionSession


def _relation_graph() -> RelationGraph:
    """A{x,y}  B{y,z}  C{z}."""
    nodes = [
        Node("A", "item", "Alpha", file_count=1),
        Node("B", "item", "Beta", file_count=1),
        Node("C", "item", "Gamma", file_count=1),
        Node(attribute_node_id("x"), "attribute", "x", count=1),
        Node(attribute_node_id("y"), "attribute", "y", count=2),
        Node(attribute_node_id("z"), "attribute", "z", count=2),
    ]
    edges = [
        Edge("A", attribute_node_id("x"), "has_attribute", 1),
        Edge("A", attribute_node_id("y"), "has_attribute", 1),
        Edge("B", attribute_node_id("y"), "has_attribute", 1),
        Edge("B", attribute_node_id("z"), "has_attribute", 1),
        Edge("C", attribute_node_id("z"), "has_attribute", 1),
        Edge("A", "B", "shared_attributes", 1, {"shared_attributes": ["y"]}),
        Edge("B", "C", "shared_attributes", 3, {"shared_attributes": ["z"]}),
    ]
    return RelationGraph(nodes=nodes, edges=edges, time_range=(0, 0), total_items=3)


@pytest.fixture()
def session() -> InteractionSession:
    s = InteractionSession(Viewport(800, 600))
    s.load(_relation_graph())
    return s


def _screen_of(session: InteractionSession, node_id: str) -> tuple[float, float]:
    node = session.node_by_id(node_id)
    assert node is not None
    return session.camera.world_to_screen(node.x, node.y, session.viewport)


def _empty_point(session: InteractionSession) -> tuple[float, float]:
    # The origin is inside the initial circle, away from every node.
    return session.camera.world_to_screen(0, 0, session.viewport)


class TestLoad:
    def test_initial_view_shows_items_only(self, session: InteractionSession) -> None:
        assert {n.id for n in session.nodes} == {"A", "B", "C"}
        assert {e.type for e in session.edges} == {"shared_attributes"}
        assert session.simulator.alpha == 1.0
        assert session.needs_tick

    def test_attribute_graph_uses_attribute_forces(self) -> None:
        s = InteractionSession()
        s.load(AttributeGraph(nodes=[AttributeNode("x", 2), AttributeNode("y", 1)], edges=[AttributeEdge("x", "y", 1)]))
        assert s.kind == "attributes"
        assert s.simulator.params.kind == "attributes"
        assert len(s.nodes) == 2

    def test_reload_drops_vanished_roots(self, session: InteractionSession) -> None:
        session.toggle_root("A")
        graph = _relation_graph()
        graph.nodes = [n for n in graph.nodes if n.id != "A"]
        graph.edges = [e for e in graph.edges if not e.touches("A")]
        session.load(graph)
        assert session.filters.roots == set()


class TestPointer:
    def test_drag_node(self, session: InteractionSession) -> None:
        session.simulator.alpha = 0.01
        session.camera.target_zoom = 2.0
        sx, sy = _screen_of(session, "A")

        session.handle(PointerDown(sx, sy))
        assert session.state.interaction is InteractionState.DRAGGING_NODE
        assert session.state.drag_node_id == "A"
        assert session.simulator.alpha == pytest.approx(0.3)
        assert not session.camera.is_animating

        session.simulator.alpha = 0.01
        session.handle(PointerMove(sx + 50, sy + 20))
        node = session.node_by_id("A")
        wx, wy = session.camera.screen_to_world(sx + 50, sy + 20, session.viewport)
        assert (node.x, node.y) == pytest.approx((wx, wy))
        assert (node.vx, node.vy) == (0.0, 0.0)
        assert session.simulator.alpha == pytest.approx(0.1)
        assert session.needs_tick

        session.handle(PointerUp())
        assert session.state.interaction is InteractionState.IDLE

    def test_pan_on_empty_space(self, session: InteractionSession) -> None:
        sx, sy = _empty_point(session)
        session.handle(PointerDown(sx, sy))
        assert session.state.interaction is InteractionState.PANNING
        session.handle(PointerMove(sx + 30, sy - 10))
        assert (session.camera.pan_x, session.camera.pan_y) == (30, -10)
        session.handle(PointerUp())
        assert session.state.interaction is InteractionState.IDLE

    def test_hover_updates_only_when_idle(self, session: InteractionSession) -> None:
        sx, sy = _screen_of(session, "B")
        session.handle(PointerMove(sx, sy))
        assert session.state.hovered_id == "B"
        session.handle(PointerMove(*_empty_point(session)))
        assert session.state.hovered_id is None

    def test_click_opens_popup_with_connections(self, session: InteractionSession) -> None:
        sx, sy = _screen_of(session, "B")
        session.handle(PointerDown(sx, sy))
        session.handle(PointerUp())
        session.handle(Click(sx, sy))
        popup = session.state.popup
        assert popup is not None
        assert popup.node_id == "B"
        assert [c.id for c in popup.connections] == ["C", "A"]

    def test_click_after_drag_does_nothing(self, session: InteractionSession) -> None:
        sx, sy = _screen_of(session, "B")
        session.handle(PointerDown(sx, sy))
        session.handle(PointerMove(sx + 5, sy))
        session.handle(PointerUp())
        session.handle(Click(sx + 5, sy))
        assert session.state.popup is None

    def test_pan_closes_popup(self, session: InteractionSession) -> None:
        sx, sy = _screen_of(session, "B")
        session.handle(Click(sx, sy))
        assert session.state.popup is not None
        session.handle(PointerDown(*_empty_point(session)))
        assert session.state.popup is None


class TestZoomEvents:
    def test_wheel_cancels_animation(self, session: InteractionSession) -> None:
        session.camera.target_zoom = 0.5
        session.handle(Wheel(400, 300, delta_y=-1))
        assert not session.camera.is_animating
        assert session.camera.zoom == pytest.approx(1.1)

    def test_pinch(self, session: InteractionSession) -> None:
        session.handle(PinchStart(distance=100, mid_x=400, mid_y=300))
        assert session.state.interaction is InteractionState.PINCH_ZOOMING
        session.handle(PinchMove(distance=150, mid_x=400, mid_y=300))
        assert session.camera.zoom == pytest.approx(1.5)
        session.handle(PinchEnd())
        assert session.state.interaction is InteractionState.IDLE


class TestConnections:
    def test_top_k_by_weight(self) -> None:
        nodes = [Node("hub", "item", "hub")] + [Node(f"n{i}", "item", f"n{i}") for i in range(10)]
        edges = [Edge("hub", f"n{i}", "shared_attributes", i + 1, {"shared_attributes": ["t"]}) for i in range(10)]
        s = InteractionSession()
        s.load(RelationGraph(nodes=nodes, edges=edges))
        conns = s.connections("hub")
        assert len(conns) == 8
        assert [c.weight for c in conns] == [10, 9, 8, 7, 6, 5, 4, 3]


class TestAnalysis:
    def test_toggle_root_refilters_and_keeps_positions(self, session: InteractionSession) -> None:
        before = {n.id: (n.x, n.y) for n in session.nodes}
        session.simulator.alpha = 0.01
        assert session.toggle_root("A") is True
        ids = {n.id for n in session.nodes}
        assert {"A", "B", "C", attribute_node_id("x"), attribute_node_id("y")} <= ids
        for nid, pos in before.items():
            node = session.node_by_id(nid)
            assert (node.x, node.y) == pos
        assert session.simulator.alpha == 1.0
        assert session.simulator.autofit_done is False

    def test_toggle_unknown_root(self, session: InteractionSession) -> None:
        assert session.toggle_root("ghost") is False
        assert session.toggle_root(attribute_node_id("x")) is False

    def test_ignored_attribute(self, session: InteractionSession) -> None:
        session.toggle_root("A")
        session.toggle_ignored("y")
        assert attribute_node_id("y") in session.dimmed_attributes
        assert session.node_by_id("B") is None
        frame = session.frame()
        y_view = next(v for v in frame.nodes if v.id == attribute_node_id("y"))
        assert y_view.ignored
        assert y_view.dimmed
        assert not next(v for v in frame.nodes if v.id == "A").dimmed
        assert any(e.dimmed for e in frame.edges)

    def test_tracked_attribute_paths(self, session: InteractionSession) -> None:
        session.toggle_root("A")
        session.toggle_tracked("y")
        frame = session.frame()
        assert frame.paths == [("A", "B")]
        assert next(v for v in frame.nodes if v.id == attribute_node_id("y")).tracked

    def test_set_depth_clamps(self, session: InteractionSession) -> None:
        session.set_depth(42)
        assert session.filters.depth == 5

    def test_clear_analysis(self, session: InteractionSession) -> None:
        session.toggle_root("A")
        session.toggle_ignored("x")
        session.clear_analysis()
        assert session.filters.roots == set()
        assert session.filters.ignored == set()
        assert {n.id for n in session.nodes} == {"A", "B", "C"}


class TestTicking:
    def test_tick_returns_frames_until_idle(self, session: InteractionSession) -> None:
        frames = 0
        while (frame := session.tick()) is not None:
            frames += 1
            assert len(frame.nodes) == 3
            if frames > 5000:
                pytest.fail("session never became idle")
        assert frames >= 984
        assert not session.needs_tick
        assert session.tick() is None

    def test_autofit_sets_camera_targets(self, session: InteractionSession) -> None:
        while session.simulator.alpha >= 0.7:
            session.tick()
        assert session.simulator.autofit_done
        assert session.camera.is_animating or session.camera.zoom != 1.0

    def test_hover_flags(self, session: InteractionSession) -> None:
        session.state.hovered_id = "A"
        frame = session.frame()
        views = {v.id: v for v in frame.nodes}
        assert views["A"].hovered
        assert views["B"].connected
        assert views["C"].dimmed
        assert [e.active for e in frame.edges if {e.source, e.target} == {"A", "B"}] == [True]

    def test_dragging_keeps_ticking_when_settled(self, session: InteractionSession) -> None:
        session.simulator.alpha = 0.0
        session.camera.cancel_animation()
        assert not session.needs_tick
        session.handle(PointerDown(*_screen_of(session, "A")))
        session.simulator.alpha = 0.0
        assert session.needs_tick
