"""InteractionSession: pointer/touch state machine driving layout and camera.

The session owns one graph snapshot at a time.  Structural changes (a new
snapshot, a different analysis filter) go through :meth:`load` or a
re-filter; pointer events only move the camera or the dragged node.  An
external scheduler calls :meth:`tick` while :attr:`needs_tick` is true and
hands the returned :class:`Frame` to a renderer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from stashgraph.graph.models import (
    ATTRIBUTE,
    HAS_ATTRIBUTE,
    ITEM,
    AttributeGraph,
    Edge,
    RelationGraph,
)
from stashgraph.graph.subgraph import clamp_depth
from stashgraph.graph.visibility import apply_visibility_filter, highlight_paths
from stashgraph.layout.camera import Camera, Viewport, wheel_factor
from stashgraph.layout.render import (
    GraphKind,
    RenderNode,
    attribute_graph_elements,
    build_render_nodes,
)
from stashgraph.layout.simulator import ATTRIBUTE_FORCES, RELATION_FORCES, LayoutSimulator
from stashgraph.session.events import (
    Click,
    Event,
    InteractionState,
    PinchEnd,
    PinchMove,
    PinchStart,
    PointerDown,
    PointerMove,
    PointerUp,
    Wheel,
)

logger = logging.getLogger(__name__)

DRAG_START_ALPHA = 0.3
DRAG_MOVE_ALPHA = 0.1
POPUP_CONNECTIONS = 8


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

@dataclass
class Connection:
    id: str
    label: str
    type: str
    weight: float


@dataclass
class Popup:
    node_id: str
    label: str
    type: str
    screen_x: float
    screen_y: float
    connections: list[Connection] = field(default_factory=list)


@dataclass
class SessionState:
    interaction: InteractionState = InteractionState.IDLE
    drag_node_id: Optional[str] = None
    drag_offset: tuple[float, float] = (0.0, 0.0)
    # (screen x, screen y, pan x, pan y) at the start of a pan.
    pan_anchor: Optional[tuple[float, float, float, float]] = None
    pinch_distance: float = 0.0
    pinch_mid: tuple[float, float] = (0.0, 0.0)
    hovered_id: Optional[str] = None
    moved: bool = False
    popup: Optional[Popup] = None


@dataclass
class FilterState:
    roots: set[str] = field(default_factory=set)
    ignored: set[str] = field(default_factory=set)
    tracked: set[str] = field(default_factory=set)
    depth: int = 1


# ---------------------------------------------------------------------------
# Renderer contract
# ---------------------------------------------------------------------------

@dataclass
class NodeView:
    id: str
    type: str
    label: str
    x: float
    y: float
    radius: float
    cluster: int
    hovered: bool = False
    connected: bool = False
    dimmed: bool = False
    root: bool = False
    ignored: bool = False
    tracked: bool = False


@dataclass
class EdgeView:
    source: str
    target: str
    type: str
    weight: float
    active: bool = False
    dimmed: bool = False
    highlighted: bool = False


@dataclass
class Frame:
    nodes: list[NodeView]
    edges: list[EdgeView]
    paths: list[tuple[str, str]]
    pan_x: float
    pan_y: float
    zoom: float
    alpha: float
    popup: Optional[Popup] = None


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class InteractionSession:
    def __init__(self, viewport: Viewport | None = None) -> None:
        self.viewport = viewport or Viewport(800, 600)
        self.camera = Camera()
        self.simulator = LayoutSimulator(on_autofit=self._autofit)
        self.state = SessionState()
        self.filters = FilterState()
        self.kind: GraphKind = "relations"
        self.all_nodes: list[RenderNode] = []
        self.all_edges: list[Edge] = []
        self.dimmed_attributes: set[str] = set()

    # ------------------------------------------------------------------
    # Snapshot and filters
    # ------------------------------------------------------------------

    def load(self, graph: Union[RelationGraph, AttributeGraph]) -> None:
        """Install a new snapshot with fresh starting positions."""
        if isinstance(graph, AttributeGraph):
            self.kind = "attributes"
            nodes, edges = attribute_graph_elements(graph)
            self.simulator.params = ATTRIBUTE_FORCES
        else:
            self.kind = "relations"
            nodes, edges = graph.nodes, graph.edges
            self.simulator.params = RELATION_FORCES

        self.all_nodes = build_render_nodes(nodes, edges, self.kind)
        self.all_edges = list(edges)
        item_ids = {n.id for n in self.all_nodes if n.type == ITEM}
        self.filters.roots &= item_ids
        self.state = SessionState()
        logger.debug("Loaded %s snapshot: %d nodes, %d edges", self.kind, len(nodes), len(edges))
        self._refilter()

    def _refilter(self) -> None:
        if self.kind == "attributes":
            self.simulator.replace(self.all_nodes, self.all_edges)
            self.dimmed_attributes = set()
        else:
            visible = apply_visibility_filter(
                self.all_nodes,
                self.all_edges,
                self.filters.roots,
                self.filters.ignored,
                self.filters.depth,
            )
            self.simulator.replace(visible.nodes, visible.edges)
            self.dimmed_attributes = visible.dimmed
        visible_ids = {n.id for n in self.simulator.nodes}
        if self.state.hovered_id not in visible_ids:
            self.state.hovered_id = None
        if self.state.popup and self.state.popup.node_id not in visible_ids:
            self.state.popup = None
        self.simulator.reheat()

    def toggle_root(self, item_id: str) -> bool:
        """Add or remove an analysis root.  Unknown ids are ignored."""
        if not any(n.id == item_id and n.type == ITEM for n in self.all_nodes):
            return False
        self.filters.roots ^= {item_id}
        self._refilter()
        return True

    def toggle_ignored(self, attribute: str) -> None:
        self.filters.ignored ^= {attribute}
        self._refilter()

    def toggle_tracked(self, attribute: str) -> None:
        self.filters.tracked ^= {attribute}
        self._refilter()

    def set_depth(self, depth: int) -> None:
        self.filters.depth = clamp_depth(depth)
        self._refilter()

    def clear_analysis(self) -> None:
        self.filters = FilterState(depth=self.filters.depth)
        self._refilter()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> list[RenderNode]:
        return self.simulator.nodes

    @property
    def edges(self) -> list[Edge]:
        return self.simulator.edges

    def node_by_id(self, node_id: str) -> Optional[RenderNode]:
        return next((n for n in self.simulator.nodes if n.id == node_id), None)

    def node_at(self, sx: float, sy: float) -> Optional[RenderNode]:
        """Top-most visible node under a screen point."""
        wx, wy = self.camera.screen_to_world(sx, sy, self.viewport)
        for n in reversed(self.simulator.nodes):
            if n.contains(wx, wy):
                return n
        return None

    def connections(self, node_id: str, k: int = POPUP_CONNECTIONS) -> list[Connection]:
        """Strongest *k* visible connections of *node_id*."""
        by_id = {n.id: n for n in self.simulator.nodes}
        found = []
        for e in self.simulator.edges:
            other = by_id.get(e.other(node_id) or "")
            if other is not None:
                found.append(Connection(id=other.id, label=other.label, type=e.type, weight=e.weight))
        found.sort(key=lambda c: -c.weight)
        return found[:k]

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def handle(self, event: Event) -> None:
        if isinstance(event, PointerDown):
            self._pointer_down(event)
        elif isinstance(event, PointerMove):
            self._pointer_move(event)
        elif isinstance(event, PointerUp):
            self.state.interaction = InteractionState.IDLE
            self.state.drag_node_id = None
            self.state.pan_anchor = None
        elif isinstance(event, Click):
            self._click(event)
        elif isinstance(event, Wheel):
            self.camera.cancel_animation()
            self.camera.zoom_at(wheel_factor(event.delta_y), event.x, event.y, self.viewport)
        elif isinstance(event, PinchStart):
            self.camera.cancel_animation()
            self.state.interaction = InteractionState.PINCH_ZOOMING
            self.state.drag_node_id = None
            self.state.pinch_distance = event.distance
            self.state.pinch_mid = (event.mid_x, event.mid_y)
        elif isinstance(event, PinchMove):
            self._pinch_move(event)
        elif isinstance(event, PinchEnd):
            self.state.interaction = InteractionState.IDLE
            self.state.pinch_distance = 0.0
        else:
            raise TypeError(f"Unsupported event: {event!r}")

    def _pointer_down(self, event: PointerDown) -> None:
        self.camera.cancel_animation()
        self.state.moved = False
        node = self.node_at(event.x, event.y)
        if node is not None:
            wx, wy = self.camera.screen_to_world(event.x, event.y, self.viewport)
            self.state.interaction = InteractionState.DRAGGING_NODE
            self.state.drag_node_id = node.id
            self.state.drag_offset = (wx - node.x, wy - node.y)
            node.vx = node.vy = 0.0
            self.simulator.kick(DRAG_START_ALPHA)
        else:
            self.state.interaction = InteractionState.PANNING
            self.state.pan_anchor = (event.x, event.y, self.camera.pan_x, self.camera.pan_y)
            self.state.popup = None

    def _pointer_move(self, event: PointerMove) -> None:
        interaction = self.state.interaction
        if interaction is InteractionState.DRAGGING_NODE:
            node = self.node_by_id(self.state.drag_node_id or "")
            if node is None:
                return
            self.state.moved = True
            wx, wy = self.camera.screen_to_world(event.x, event.y, self.viewport)
            ox, oy = self.state.drag_offset
            node.x, node.y = wx - ox, wy - oy
            node.vx = node.vy = 0.0
            self.simulator.kick(DRAG_MOVE_ALPHA)
        elif interaction is InteractionState.PANNING and self.state.pan_anchor:
            self.state.moved = True
            sx, sy, pan_x, pan_y = self.state.pan_anchor
            self.camera.pan_x = pan_x + (event.x - sx)
            self.camera.pan_y = pan_y + (event.y - sy)
        elif interaction is InteractionState.IDLE:
            node = self.node_at(event.x, event.y)
            self.state.hovered_id = node.id if node else None

    def _pinch_move(self, event: PinchMove) -> None:
        if self.state.interaction is not InteractionState.PINCH_ZOOMING:
            return
        if self.state.pinch_distance > 0:
            mx, my = self.state.pinch_mid
            self.camera.zoom_at(event.distance / self.state.pinch_distance, mx, my, self.viewport)
        self.state.pinch_distance = event.distance
        self.state.pinch_mid = (event.mid_x, event.mid_y)

    def _click(self, event: Click) -> None:
        if self.state.moved:
            self.state.moved = False
            return
        node = self.node_at(event.x, event.y)
        if node is None:
            return
        self.state.popup = Popup(
            node_id=node.id,
            label=node.label,
            type=node.type,
            screen_x=event.x,
            screen_y=event.y,
            connections=self.connections(node.id),
        )

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def _autofit(self, nodes: list[RenderNode]) -> None:
        self.camera.fit_to_nodes(nodes, self.viewport)

    @property
    def needs_tick(self) -> bool:
        return (
            not self.simulator.is_settled
            or self.camera.is_animating
            or self.state.interaction is InteractionState.DRAGGING_NODE
        )

    def tick(self) -> Optional[Frame]:
        """Advance simulation and camera one step; ``None`` when idle."""
        if not self.needs_tick:
            return None
        self.simulator.tick()
        self.camera.animate()
        return self.frame()

    def frame(self) -> Frame:
        nodes = self.simulator.nodes
        edges = self.simulator.edges
        roots = self.filters.roots
        hovered = self.state.hovered_id
        types = {n.id: n.type for n in nodes}
        labels = {n.id: n.label for n in nodes}

        ignored_ids = {nid for nid, t in types.items() if t == ATTRIBUTE and labels[nid] in self.filters.ignored}
        tracked_ids = {nid for nid, t in types.items() if t == ATTRIBUTE and labels[nid] in self.filters.tracked}

        highlight_ids = set(tracked_ids)
        if hovered and types.get(hovered) == ATTRIBUTE:
            highlight_ids.add(hovered)
        paths = highlight_paths(self.all_edges, highlight_ids, roots, set(types)) if roots else []

        connected: set[str] = set()
        if hovered:
            for e in edges:
                other = e.other(hovered)
                if other is not None:
                    connected.add(other)
            for root, item in paths:
                connected.update((root, item))

        node_views = []
        for n in nodes:
            is_hovered = n.id == hovered
            is_connected = n.id in connected
            node_views.append(
                NodeView(
                    id=n.id,
                    type=n.type,
                    label=n.label,
                    x=n.x,
                    y=n.y,
                    radius=n.radius,
                    cluster=n.cluster,
                    hovered=is_hovered,
                    connected=is_connected,
                    dimmed=n.id in self.dimmed_attributes
                    or (hovered is not None and not is_hovered and not is_connected),
                    root=n.id in roots,
                    ignored=n.id in ignored_ids,
                    tracked=n.id in tracked_ids,
                )
            )

        edge_views = []
        for e in edges:
            active = hovered is not None and e.touches(hovered)
            edge_views.append(
                EdgeView(
                    source=e.source,
                    target=e.target,
                    type=e.type,
                    weight=e.weight,
                    active=active,
                    dimmed=e.source in ignored_ids or e.target in ignored_ids,
                    highlighted=(active and types.get(hovered) == ATTRIBUTE)
                    or (e.type == HAS_ATTRIBUTE and (e.source in tracked_ids or e.target in tracked_ids)),
                )
            )

        return Frame(
            nodes=node_views,
            edges=edge_views,
            paths=paths,
            pan_x=self.camera.pan_x,
            pan_y=self.camera.pan_y,
            zoom=self.camera.zoom,
            alpha=self.simulator.alpha,
            popup=self.state.popup,
        )
