"""Camera: pan/zoom with smooth animation toward fit targets.

Screen coordinates have their origin at the top-left of the viewport; the
world origin is drawn at the viewport centre offset by ``(pan_x, pan_y)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from stashgraph.layout.render import RenderNode

LERP = 0.08
ZOOM_SNAP = 0.001
PAN_SNAP = 0.5

MIN_ZOOM = 0.2
MAX_ZOOM = 5.0
MAX_FIT_ZOOM = 1.5
FIT_MARGIN = 60.0
FIT_NODE_PADDING = 25.0


@dataclass
class Viewport:
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return self.width / 2, self.height / 2


def wheel_factor(delta_y: float) -> float:
    """Zoom factor for one wheel notch: scrolling down zooms out."""
    return 0.9 if delta_y > 0 else 1.1


@dataclass
class Camera:
    pan_x: float = 0.0
    pan_y: float = 0.0
    zoom: float = 1.0
    target_zoom: Optional[float] = None
    target_pan: Optional[tuple[float, float]] = None

    @property
    def is_animating(self) -> bool:
        return self.target_zoom is not None or self.target_pan is not None

    def cancel_animation(self) -> None:
        self.target_zoom = None
        self.target_pan = None

    def screen_to_world(self, sx: float, sy: float, viewport: Viewport) -> tuple[float, float]:
        cx, cy = viewport.center
        return (sx - cx - self.pan_x) / self.zoom, (sy - cy - self.pan_y) / self.zoom

    def world_to_screen(self, wx: float, wy: float, viewport: Viewport) -> tuple[float, float]:
        cx, cy = viewport.center
        return wx * self.zoom + cx + self.pan_x, wy * self.zoom + cy + self.pan_y

    def fit_to_nodes(self, nodes: Iterable[RenderNode], viewport: Viewport) -> bool:
        """Set animation targets framing every node.

        Returns ``False`` (targets untouched) when there is nothing to frame
        or the viewport has no area.
        """
        if viewport.width <= 0 or viewport.height <= 0:
            return False
        min_x = min_y = float("inf")
        max_x = max_y = float("-inf")
        for n in nodes:
            pad = n.radius + FIT_NODE_PADDING
            min_x, max_x = min(min_x, n.x - pad), max(max_x, n.x + pad)
            min_y, max_y = min(min_y, n.y - pad), max(max_y, n.y + pad)
        graph_w, graph_h = max_x - min_x, max_y - min_y
        if not graph_w > 0 or not graph_h > 0:
            return False

        zoom = min(
            (viewport.width - FIT_MARGIN * 2) / graph_w,
            (viewport.height - FIT_MARGIN * 2) / graph_h,
            MAX_FIT_ZOOM,
        )
        zoom = max(MIN_ZOOM, zoom)
        cx, cy = (min_x + max_x) / 2, (min_y + max_y) / 2
        self.target_zoom = zoom
        self.target_pan = (-cx * zoom, -cy * zoom)
        return True

    def animate(self) -> bool:
        """Move one step toward the targets.  Returns ``True`` while animating."""
        if self.target_zoom is not None:
            dz = self.target_zoom - self.zoom
            if abs(dz) < ZOOM_SNAP:
                self.zoom = self.target_zoom
                self.target_zoom = None
            else:
                self.zoom += dz * LERP
        if self.target_pan is not None:
            tx, ty = self.target_pan
            dx, dy = tx - self.pan_x, ty - self.pan_y
            if abs(dx) < PAN_SNAP and abs(dy) < PAN_SNAP:
                self.pan_x, self.pan_y = tx, ty
                self.target_pan = None
            else:
                self.pan_x += dx * LERP
                self.pan_y += dy * LERP
        return self.is_animating

    def zoom_at(self, factor: float, sx: float, sy: float, viewport: Viewport) -> None:
        """Zoom by *factor* keeping the world point under ``(sx, sy)`` fixed."""
        new_zoom = max(MIN_ZOOM, min(MAX_ZOOM, self.zoom * factor))
        cx, cy = viewport.center
        wx, wy = sx - cx - self.pan_x, sy - cy - self.pan_y
        self.pan_x -= wx * (new_zoom / self.zoom - 1)
        self.pan_y -= wy * (new_zoom / self.zoom - 1)
        self.zoom = new_zoom
