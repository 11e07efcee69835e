"""LayoutSimulator: alpha-annealed force-directed layout.

Each tick applies gravity, cluster cohesion, pairwise repulsion and edge
attraction to the current node list, integrates with damping and a speed
cap, then decays ``alpha``.  Motion stops once ``alpha`` reaches
``alpha_min``; interactions raise it again with :meth:`kick`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from stashgraph.config import settings
from stashgraph.graph.models import HAS_ATTRIBUTE, SHARED_ATTRIBUTES, VERSION_OF, Edge
from stashgraph.layout.render import GraphKind, RenderNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EdgeForce:
    """Spring parameters for one edge type.

    ``base_distance`` is the rest length; with ``include_radii`` both node
    radii are added to it, and with ``shrink_with_weight`` it is divided by
    ``1 + ln(weight)`` for weights above 1.
    """

    base_distance: float
    strength: float
    include_radii: bool = False
    shrink_with_weight: bool = False

    def ideal_distance(self, a: RenderNode, b: RenderNode, weight: float) -> float:
        ideal = self.base_distance
        if self.include_radii:
            ideal += a.radius + b.radius
        if self.shrink_with_weight and weight > 1:
            ideal /= 1 + math.log(weight)
        return ideal


@dataclass(frozen=True)
class ForceParams:
    kind: GraphKind
    gravity: float
    gravity_per_degree: float
    repulsion: float
    overlap_gap: float
    default_edge: EdgeForce
    edge_forces: dict[str, EdgeForce] = field(default_factory=dict)
    cluster_cohesion: float = 0.0
    cross_cluster_boost: float = 1.0
    damping: float = 0.55
    max_speed: float = 12.0

    def edge_force(self, edge_type: str) -> EdgeForce:
        return self.edge_forces.get(edge_type, self.default_edge)


# Attribute co-occurrence graph: clusters pulled together and pushed apart.
ATTRIBUTE_FORCES = ForceParams(
    kind="attributes",
    gravity=0.008,
    gravity_per_degree=0.3,
    repulsion=40.0,
    overlap_gap=20.0,
    default_edge=EdgeForce(80.0, 0.008, include_radii=True, shrink_with_weight=True),
    cluster_cohesion=0.015,
    cross_cluster_boost=2.0,
)

# Typed item graph: fixed rest lengths per edge type.
RELATION_FORCES = ForceParams(
    kind="relations",
    gravity=0.006,
    gravity_per_degree=0.2,
    repulsion=15.0,
    overlap_gap=8.0,
    default_edge=EdgeForce(50.0, 0.002),
    edge_forces={
        HAS_ATTRIBUTE: EdgeForce(20.0, 0.012),
        SHARED_ATTRIBUTES: EdgeForce(50.0, 0.01),
        VERSION_OF: EdgeForce(20.0, 0.02),
    },
)


def ticks_to_settle(
    alpha0: float = 1.0, decay: float | None = None, epsilon: float | None = None
) -> int:
    """Number of ticks until ``alpha0 * decay**n`` drops to *epsilon*."""
    decay = settings.alpha_decay if decay is None else decay
    epsilon = settings.alpha_min if epsilon is None else epsilon
    if alpha0 <= epsilon:
        return 0
    return math.ceil(math.log(epsilon / alpha0) / math.log(decay))


class LayoutSimulator:
    """Owns the render-node list and advances it one tick at a time."""

    def __init__(
        self,
        nodes: Sequence[RenderNode] = (),
        edges: Sequence[Edge] = (),
        params: ForceParams = RELATION_FORCES,
        on_autofit: Optional[Callable[[list[RenderNode]], None]] = None,
    ) -> None:
        self.nodes: list[RenderNode] = list(nodes)
        self.edges: list[Edge] = list(edges)
        self.params = params
        self.on_autofit = on_autofit
        self.alpha = 1.0
        self.alpha_decay = settings.alpha_decay
        self.alpha_min = settings.alpha_min
        self.autofit_threshold = settings.autofit_threshold
        self.autofit_done = False

    # ------------------------------------------------------------------
    # Annealing control
    # ------------------------------------------------------------------

    @property
    def is_settled(self) -> bool:
        return self.alpha <= self.alpha_min

    def kick(self, alpha: float) -> None:
        """Raise alpha to at least *alpha*; positions are untouched."""
        self.alpha = max(self.alpha, alpha)

    def reheat(self) -> None:
        self.alpha = 1.0
        self.autofit_done = False

    def replace(self, nodes: Sequence[RenderNode], edges: Sequence[Edge]) -> None:
        """Swap node/edge membership; surviving nodes keep their positions."""
        self.nodes = list(nodes)
        self.edges = list(edges)

    def tick(self) -> bool:
        """Advance one step.  Returns ``False`` once the layout has settled."""
        if self.is_settled:
            return False
        self.step(self.alpha)
        self.alpha *= self.alpha_decay
        if not self.autofit_done and self.alpha < self.autofit_threshold:
            self.autofit_done = True
            if self.on_autofit is not None:
                self.on_autofit(self.nodes)
        if self.is_settled:
            logger.debug("Layout settled: %d nodes, %d edges", len(self.nodes), len(self.edges))
        return True

    def run(self, max_ticks: int | None = None) -> int:
        """Tick until settled (or *max_ticks*).  Returns the ticks taken."""
        ticks = 0
        while (max_ticks is None or ticks < max_ticks) and self.tick():
            ticks += 1
        return ticks

    # ------------------------------------------------------------------
    # Force pass
    # ------------------------------------------------------------------

    def step(self, alpha: float) -> None:
        p = self.params
        nodes = self.nodes
        multi_cluster = len({n.cluster for n in nodes}) > 1

        for n in nodes:
            g = p.gravity * (1 + n.degree * p.gravity_per_degree) * alpha
            n.vx -= n.x * g
            n.vy -= n.y * g

        if multi_cluster and p.cluster_cohesion:
            self._apply_cohesion(alpha)

        for i, a in enumerate(nodes):
            for b in nodes[i + 1:]:
                dx, dy = b.x - a.x, b.y - a.y
                dist = math.hypot(dx, dy) or 1.0
                boost = p.cross_cluster_boost if multi_cluster and a.cluster != b.cluster else 1.0
                force = boost * (a.degree + 1) * (b.degree + 1) * p.repulsion * alpha / dist
                fx, fy = dx / dist * force, dy / dist * force
                a.vx -= fx
                a.vy -= fy
                b.vx += fx
                b.vy += fy

                min_dist = a.radius + b.radius + p.overlap_gap
                if dist < min_dist:
                    overlap = (min_dist - dist) * 0.5
                    ox, oy = dx / dist * overlap, dy / dist * overlap
                    a.x -= ox
                    a.y -= oy
                    b.x += ox
                    b.y += oy

        by_id = {n.id: n for n in nodes}
        for e in self.edges:
            a, b = by_id.get(e.source), by_id.get(e.target)
            if a is None or b is None:
                continue
            dx, dy = b.x - a.x, b.y - a.y
            dist = math.hypot(dx, dy) or 1.0
            spring = p.edge_force(e.type)
            ideal = spring.ideal_distance(a, b, e.weight)
            force = (dist - ideal) * spring.strength * alpha * math.sqrt(e.weight)
            fx, fy = dx / dist * force, dy / dist * force
            a.vx += fx
            a.vy += fy
            b.vx -= fx
            b.vy -= fy

        for n in nodes:
            n.vx *= p.damping
            n.vy *= p.damping
            speed = math.hypot(n.vx, n.vy)
            if speed > p.max_speed:
                n.vx = n.vx / speed * p.max_speed
                n.vy = n.vy / speed * p.max_speed
            n.x += n.vx
            n.y += n.vy

    def _apply_cohesion(self, alpha: float) -> None:
        sums: dict[int, list[float]] = {}
        for n in self.nodes:
            s = sums.setdefault(n.cluster, [0.0, 0.0, 0])
            s[0] += n.x
            s[1] += n.y
            s[2] += 1
        k = self.params.cluster_cohesion * alpha
        for n in self.nodes:
            sx, sy, count = sums[n.cluster]
            n.vx += (sx / count - n.x) * k
            n.vy += (sy / count - n.y) * k
