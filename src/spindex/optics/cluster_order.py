"""Cluster order entries and the cluster order produced by OPTICS."""

from __future__ import annotations

import math
from typing import Any, Iterator, Optional, Union

import numpy as np

from ..core.distance import DoubleDistance


class InvalidReachabilityError(ValueError):
    """Raised when a reachability value is NaN."""


def _check_reachability(value: Union[float, DoubleDistance], object_id: int) -> float:
    if isinstance(value, DoubleDistance):
        return value.value
    value = float(value)
    if math.isnan(value):
        raise InvalidReachabilityError(
            f"Reachability of object {object_id} must not be NaN"
        )
    return value


class ClusterOrderEntry:
    """Position of one object in a cluster ordering.

    Holds the object id, the id of the object it was reached from (None for
    a seed) and the reachability distance. An infinite reachability means
    the object was not reachable from any earlier object.

    Entries order by ascending reachability; equal reachabilities order by
    descending object id. Equality and hashing consider the object id only,
    so an updatable heap can find an entry regardless of its current
    reachability.

    Example:
        >>> ClusterOrderEntry(5, 1.0) < ClusterOrderEntry(3, 1.0)
        True
        >>> ClusterOrderEntry(3, 1.0) == ClusterOrderEntry(3, 7.5, predecessor_id=1)
        True
    """

    __slots__ = ("_object_id", "_reachability", "_predecessor_id")

    def __init__(
        self,
        object_id: int,
        reachability: Union[float, DoubleDistance],
        predecessor_id: Optional[int] = None,
    ):
        self._object_id = int(object_id)
        self._reachability = _check_reachability(reachability, self._object_id)
        self._predecessor_id = predecessor_id

    @property
    def object_id(self) -> int:
        return self._object_id

    @property
    def reachability(self) -> float:
        return self._reachability

    @property
    def predecessor_id(self) -> Optional[int]:
        return self._predecessor_id

    def get_id(self) -> int:
        return self._object_id

    def get_predecessor_id(self) -> Optional[int]:
        return self._predecessor_id

    def get_reachability(self) -> DoubleDistance:
        return DoubleDistance(self._reachability)

    def update(
        self, reachability: Union[float, DoubleDistance], predecessor_id: Optional[int]
    ) -> None:
        """Replace reachability and predecessor in place.

        Raises:
            InvalidReachabilityError: If ``reachability`` is NaN
        """
        self._reachability = _check_reachability(reachability, self._object_id)
        self._predecessor_id = predecessor_id

    def compare_to(self, other: ClusterOrderEntry) -> int:
        """Three-way comparison: negative if this entry sorts first."""
        if self._reachability < other._reachability:
            return -1
        if self._reachability > other._reachability:
            return 1
        # Larger ids first on equal reachability
        if self._object_id > other._object_id:
            return -1
        if self._object_id < other._object_id:
            return 1
        return 0

    def __lt__(self, other: ClusterOrderEntry) -> bool:
        if not isinstance(other, ClusterOrderEntry):
            return NotImplemented
        return self.compare_to(other) < 0

    def __le__(self, other: ClusterOrderEntry) -> bool:
        if not isinstance(other, ClusterOrderEntry):
            return NotImplemented
        return self.compare_to(other) <= 0

    def __gt__(self, other: ClusterOrderEntry) -> bool:
        if not isinstance(other, ClusterOrderEntry):
            return NotImplemented
        return self.compare_to(other) > 0

    def __ge__(self, other: ClusterOrderEntry) -> bool:
        if not isinstance(other, ClusterOrderEntry):
            return NotImplemented
        return self.compare_to(other) >= 0

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, ClusterOrderEntry):
            return NotImplemented
        return self._object_id == other._object_id

    def __hash__(self) -> int:
        return hash(self._object_id)

    def __repr__(self) -> str:
        return f"{self._object_id}({self._predecessor_id},{self._reachability})"

    def copy(self) -> ClusterOrderEntry:
        return ClusterOrderEntry(self._object_id, self._reachability, self._predecessor_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "object_id": self._object_id,
            "reachability": self._reachability,
            "predecessor_id": self._predecessor_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClusterOrderEntry:
        """Create from dictionary."""
        return cls(
            object_id=data["object_id"],
            reachability=data["reachability"],
            predecessor_id=data.get("predecessor_id"),
        )


class ClusterOrder:
    """The ordered output of a reachability-ordering run.

    Entries are appended in processing order. Each added entry is copied,
    so later changes to the caller's object do not alter the order.
    """

    def __init__(self):
        self._entries: list[ClusterOrderEntry] = []
        self._by_id: dict[int, ClusterOrderEntry] = {}

    def add(self, entry: ClusterOrderEntry) -> None:
        """Append an entry.

        Raises:
            ValueError: If the object is already part of the order
        """
        if entry.object_id in self._by_id:
            raise ValueError(f"Object {entry.object_id} is already in the cluster order")
        frozen = entry.copy()
        self._entries.append(frozen)
        self._by_id[frozen.object_id] = frozen

    def __iter__(self) -> Iterator[ClusterOrderEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, position: int) -> ClusterOrderEntry:
        return self._entries[position]

    def __contains__(self, object_id: object) -> bool:
        if isinstance(object_id, ClusterOrderEntry):
            object_id = object_id.object_id
        return object_id in self._by_id

    def get(self, object_id: int) -> ClusterOrderEntry:
        """Entry of the given object.

        Raises:
            KeyError: If the object is not part of the order
        """
        return self._by_id[object_id]

    def ids(self) -> list[int]:
        """Object ids in processing order."""
        return [e.object_id for e in self._entries]

    def reachabilities(self) -> np.ndarray:
        """Reachability of each entry in processing order (inf for seeds)."""
        return np.array([e.reachability for e in self._entries], dtype=np.float64)

    def predecessor_of(self, object_id: int) -> Optional[int]:
        return self._by_id[object_id].predecessor_id

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"entries": [e.to_dict() for e in self._entries]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClusterOrder:
        """Create from dictionary."""
        order = cls()
        for item in data.get("entries", []):
            order.add(ClusterOrderEntry.from_dict(item))
        return order

    def __repr__(self) -> str:
        return f"ClusterOrder({len(self._entries)} entries)"
