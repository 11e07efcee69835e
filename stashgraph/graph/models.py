"""Typed graph snapshot models shared by the builder, extractor and layout."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Optional

NodeType = Literal["item", "attribute", "version"]
EdgeType = Literal[
    "has_attribute", "shared_attributes", "version_of", "temporal_proximity", "co_occurrence"
]
GraphMode = Literal["relations", "timeline", "versions"]

ITEM: NodeType = "item"
ATTRIBUTE: NodeType = "attribute"
VERSION: NodeType = "version"

HAS_ATTRIBUTE: EdgeType = "has_attribute"
SHARED_ATTRIBUTES: EdgeType = "shared_attributes"
VERSION_OF: EdgeType = "version_of"
TEMPORAL_PROXIMITY: EdgeType = "temporal_proximity"
# Attribute-to-attribute edges of the co-occurrence graph.
CO_OCCURRENCE: EdgeType = "co_occurrence"


def attribute_node_id(name: str) -> str:
    return f"attribute:{name}"


def version_node_id(version_row_id: str) -> str:
    return f"version:{version_row_id}"


@dataclass
class Node:
    id: str
    type: NodeType
    label: str
    # item
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    version: Optional[int] = None
    file_count: Optional[int] = None
    total_size: Optional[int] = None
    attributes: Optional[list[str]] = None
    # attribute
    count: Optional[int] = None
    # version
    version_number: Optional[int] = None
    created_by: Optional[str] = None
    change_summary: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise, omitting fields that do not apply to this node type."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Node:
        return cls(**data)


@dataclass
class Edge:
    source: str
    target: str
    type: EdgeType
    weight: float
    metadata: Optional[dict[str, Any]] = None

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id

    def other(self, node_id: str) -> Optional[str]:
        """The opposite endpoint, or ``None`` if *node_id* is not an endpoint."""
        if self.source == node_id:
            return self.target
        if self.target == node_id:
            return self.source
        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "source": self.source,
            "target": self.target,
            "type": self.type,
            "weight": self.weight,
        }
        if self.metadata:
            data["metadata"] = self.metadata
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Edge:
        return cls(**data)


# ---------------------------------------------------------------------------
# Item relation graph
# ---------------------------------------------------------------------------

@dataclass
class GraphQuery:
    mode: GraphMode = "relations"
    since: Optional[int] = None
    until: Optional[int] = None
    attribute: Optional[str] = None
    limit: int = 200
    include_versions: bool = False
    min_shared_weight: float = 1


@dataclass
class RelationGraph:
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    time_range: tuple[Optional[int], Optional[int]] = (None, None)
    total_items: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "time_range": {"min": self.time_range[0], "max": self.time_range[1]},
            "total_items": self.total_items,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RelationGraph:
        tr = data.get("time_range") or {}
        return cls(
            nodes=[Node.from_dict(n) for n in data.get("nodes", [])],
            edges=[Edge.from_dict(e) for e in data.get("edges", [])],
            time_range=(tr.get("min"), tr.get("max")),
            total_items=data.get("total_items", 0),
        )


# ---------------------------------------------------------------------------
# Attribute co-occurrence graph
# ---------------------------------------------------------------------------

@dataclass
class AttributeQuery:
    focus: Optional[str] = None
    depth: int = 1
    min_weight: float = 0
    min_count: int = 0
    limit: int = 0


@dataclass
class AttributeNode:
    label: str
    count: int


@dataclass
class AttributeEdge:
    source: str
    target: str
    weight: int


@dataclass
class AppliedFilter:
    focus: str
    depth: int


@dataclass
class AttributeGraph:
    nodes: list[AttributeNode] = field(default_factory=list)
    edges: list[AttributeEdge] = field(default_factory=list)
    total_items: int = 0
    applied_filter: Optional[AppliedFilter] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.applied_filter is None:
            data.pop("applied_filter")
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AttributeGraph:
        applied = data.get("applied_filter")
        return cls(
            nodes=[AttributeNode(**n) for n in data.get("nodes", [])],
            edges=[AttributeEdge(**e) for e in data.get("edges", [])],
            total_items=data.get("total_items", 0),
            applied_filter=AppliedFilter(**applied) if applied else None,
        )
