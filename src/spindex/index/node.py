"""Tree node model shared by spatial index implementations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from ..core.vector import RealVector
from .mbr import HyperBoundingBox


class Entry:
    """Base class of everything stored in a node."""

    @property
    def mbr(self) -> Optional[HyperBoundingBox]:
        raise NotImplementedError

    @property
    def is_leaf_entry(self) -> bool:
        return False


@dataclass(eq=False)
class LeafEntry(Entry):
    """A data record stored in a leaf node."""

    vector: RealVector

    @property
    def vector_id(self) -> int:
        return self.vector.vector_id

    @property
    def mbr(self) -> HyperBoundingBox:
        return HyperBoundingBox.from_point(self.vector)

    @property
    def is_leaf_entry(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"LeafEntry({self.vector!r})"


@dataclass(eq=False)
class DirectoryEntry(Entry):
    """Reference from a directory node to a child node."""

    node_id: int
    bounds: Optional[HyperBoundingBox] = None

    @property
    def mbr(self) -> Optional[HyperBoundingBox]:
        return self.bounds

    def __repr__(self) -> str:
        return f"{type(self).__name__}(node_id={self.node_id}, mbr={self.bounds!r})"


class RootEntry(DirectoryEntry):
    """Entry denoting the root node.

    Gives callers the root id and bounding region without materializing the
    root node. ``mbr`` is None while the tree is empty.
    """


@dataclass
class SpatialNode:
    """A node page of a tree-structured spatial index."""

    node_id: int
    is_leaf: bool
    capacity: int
    entries: list[Union[LeafEntry, DirectoryEntry]] = field(default_factory=list)

    @property
    def num_entries(self) -> int:
        return len(self.entries)

    def is_full(self) -> bool:
        return len(self.entries) >= self.capacity

    def is_overflow(self) -> bool:
        return len(self.entries) > self.capacity

    def is_underflow(self, min_entries: int) -> bool:
        return len(self.entries) < min_entries

    def mbr(self) -> Optional[HyperBoundingBox]:
        """Bounding box of all entries, None for an empty node."""
        if not self.entries:
            return None
        return HyperBoundingBox.union_all(e.mbr for e in self.entries)

    def children_ids(self) -> list[int]:
        if self.is_leaf:
            return []
        return [e.node_id for e in self.entries]

    def __repr__(self) -> str:
        kind = "leaf" if self.is_leaf else "dir"
        return f"SpatialNode({self.node_id}, {kind}, entries={len(self.entries)})"
