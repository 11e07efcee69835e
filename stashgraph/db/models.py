"""Dataclass models representing DB rows.

These are plain Python objects – not ORM models.  The DB layer serialises /
deserialises to and from these types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ItemFile:
    filename: str
    content: str
    sort_order: int = 0

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class Item:
    id: str
    name: str
    description: str
    attributes: list[str]
    metadata: dict[str, Any]
    version: int
    created_at: int
    updated_at: int
    files: list[ItemFile] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.files)


@dataclass
class ItemSummary:
    """An item row joined with its file statistics (no file contents)."""

    id: str
    name: str
    attributes: list[str]
    version: int
    created_at: int
    updated_at: int
    file_count: int
    total_size: int


@dataclass
class ItemVersion:
    id: str
    item_id: str
    name: str
    attributes: list[str]
    version: int
    created_by: str
    created_at: int
    change_summary: dict[str, Any]


@dataclass
class Relation:
    """A precomputed ``shared_attributes`` row.  ``source_id < target_id``."""

    source_id: str
    target_id: str
    relation_type: str
    weight: float
    metadata: dict[str, Any]

    def other(self, item_id: str) -> str:
        """Return the endpoint that is not *item_id*."""
        return self.target_id if self.source_id == item_id else self.source_id
