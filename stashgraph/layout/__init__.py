"""Force-directed layout: render nodes, simulator and camera."""

from stashgraph.layout.camera import Camera, Viewport
from stashgraph.layout.render import RenderNode, attribute_graph_elements, build_render_nodes
from stashgraph.layout.simulator import (
    ATTRIBUTE_FORCES,
    RELATION_FORCES,
    EdgeForce,
    ForceParams,
    LayoutSimulator,
    ticks_to_settle,
)

__all__ = [
    "Camera",
    "Viewport",
    "RenderNode",
    "attribute_graph_elements",
    "build_render_nodes",
    "ATTRIBUTE_FORCES",
    "RELATION_FORCES",
    "EdgeForce",
    "ForceParams",
    "LayoutSimulator",
    "ticks_to_settle",
]
