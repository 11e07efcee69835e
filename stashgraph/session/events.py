"""Input events consumed by :class:`~stashgraph.session.session.InteractionSession`.

All coordinates are in screen space relative to the viewport's top-left.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union


class InteractionState(enum.Enum):
    IDLE = "idle"
    DRAGGING_NODE = "dragging_node"
    PANNING = "panning"
    PINCH_ZOOMING = "pinch_zooming"


@dataclass(frozen=True)
class PointerDown:
    x: float
    y: float


@dataclass(frozen=True)
class PointerMove:
    x: float
    y: float


@dataclass(frozen=True)
class PointerUp:
    pass


@dataclass(frozen=True)
class Wheel:
    x: float
    y: float
    delta_y: float


@dataclass(frozen=True)
class PinchStart:
    """Two touch points went down; *distance* is the gap between them."""

    distance: float
    mid_x: float
    mid_y: float


@dataclass(frozen=True)
class PinchMove:
    distance: float
    mid_x: float
    mid_y: float


@dataclass(frozen=True)
class PinchEnd:
    pass


@dataclass(frozen=True)
class Click:
    x: float
    y: float


Event = Union[PointerDown, PointerMove, PointerUp, Wheel, PinchStart, PinchMove, PinchEnd, Click]
