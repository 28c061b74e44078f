"""Spatial index interface.

Clustering and outlier algorithms use a spatial index to answer neighborhood
queries. Implementations keep a tree of SpatialNode pages and count every page
they touch so callers can compare index configurations by IO cost.

Thread safety: mutations (insert, delete) must be exclusive; queries may run
concurrently with other queries. Implementations in this package enforce that
with a reader/writer lock.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, TypeVar

from ..core.distance import DoubleDistance, SpatialDistanceFunction
from ..core.vector import RealVector
from .node import RootEntry, SpatialNode

T = TypeVar("T", bound=RealVector)


@dataclass(frozen=True, order=True)
class QueryResult:
    """A query hit: record id and its distance to the query object.

    Results order by distance, then by ascending record id.
    """

    distance: float
    vector_id: int

    def as_distance(self) -> DoubleDistance:
        """Distance as a typed distance value."""
        return DoubleDistance(self.distance)

    def __repr__(self) -> str:
        return f"QueryResult(vector_id={self.vector_id}, distance={self.distance})"


class SpatialIndex(ABC, Generic[T]):
    """Requirements for a spatial index over vector records."""

    @abstractmethod
    def insert(self, o: T) -> None:
        """Insert a record into the index.

        Raises:
            DimensionalityError: If the record's dimensionality does not match
        """
        pass

    @abstractmethod
    def delete(self, o: T) -> bool:
        """Delete the record with ``o``'s id.

        Returns:
            True if the index contained the record, False otherwise
        """
        pass

    @abstractmethod
    def range_query(
        self,
        obj: T,
        epsilon: float,
        distance_function: SpatialDistanceFunction,
    ) -> list[QueryResult]:
        """Find every record within ``epsilon`` of ``obj``.

        Args:
            obj: Query record
            epsilon: Query radius, in the distance function's units
            distance_function: Distance between records

        Returns:
            Results in ascending order of distance to the query object
        """
        pass

    @abstractmethod
    def knn_query(
        self,
        obj: T,
        k: int,
        distance_function: SpatialDistanceFunction,
    ) -> list[QueryResult]:
        """Find the ``k`` nearest neighbors of ``obj``.

        Args:
            obj: Query record
            k: Number of neighbors, must be positive
            distance_function: Distance between records

        Returns:
            Up to ``k`` results in ascending order of distance
        """
        pass

    @abstractmethod
    def get_io_access(self) -> int:
        """Number of node pages accessed since the index was created."""
        pass

    @abstractmethod
    def get_root(self) -> SpatialNode:
        pass

    @abstractmethod
    def get_leaf_nodes(self) -> list[SpatialNode]:
        pass

    @abstractmethod
    def get_node(self, node_id: int) -> SpatialNode:
        """Return the node with the given id.

        Raises:
            KeyError: If no such node exists in the current tree
        """
        pass

    @abstractmethod
    def get_root_entry(self) -> RootEntry:
        pass

    @abstractmethod
    def vectors(self) -> list[T]:
        """All indexed records, ordered by id."""
        pass
