"""OPTICS reachability ordering on top of a spatial index."""

from __future__ import annotations

import logging
import math
from numbers import Integral
from typing import Iterable, Optional

from ..config.schema import OpticsConfig
from ..core.distance import SpatialDistanceFunction, get_distance_function
from ..core.vector import RealVector
from ..index.base import QueryResult, SpatialIndex
from .cluster_order import ClusterOrder, ClusterOrderEntry
from .updatable_heap import UpdatableHeap

logger = logging.getLogger(__name__)


class OPTICS:
    """
    Ordering Points To Identify the Clustering Structure.

    Produces a cluster order: every record exactly once, each with the
    reachability distance at which it was reached from an earlier record.
    Neighborhoods come from range queries against the index.

    Parameters:
        epsilon: Neighborhood radius (inf considers all records)
        min_pts: Neighbors, the record itself included, needed for a core point
        distance_function: Distance used for range queries

    Example:
        >>> tree = RTree.from_vectors(vectors_from_array(data))
        >>> order = OPTICS(epsilon=2.0, min_pts=3, distance_function=EuclideanDistance()).run(tree)
        >>> order.reachabilities()
    """

    def __init__(
        self,
        epsilon: float,
        min_pts: int,
        distance_function: SpatialDistanceFunction,
    ):
        epsilon = float(epsilon)
        if math.isnan(epsilon) or epsilon < 0:
            raise ValueError(f"epsilon must be non-negative, got {epsilon}")
        if isinstance(min_pts, bool) or not isinstance(min_pts, Integral) or min_pts < 1:
            raise ValueError(f"min_pts must be an integer >= 1, got {min_pts!r}")
        self.epsilon = epsilon
        self.min_pts = int(min_pts)
        self.distance_function = distance_function

    @classmethod
    def from_config(cls, config: OpticsConfig) -> OPTICS:
        return cls(
            epsilon=config.epsilon,
            min_pts=config.min_pts,
            distance_function=get_distance_function(config.distance),
        )

    def run(
        self, index: SpatialIndex, vectors: Optional[Iterable[RealVector]] = None
    ) -> ClusterOrder:
        """Compute the cluster order of the records in ``index``.

        Args:
            index: Spatial index holding the records
            vectors: Records to order; defaults to every record in the index.
                Neighbors outside this set are ignored, both for core
                distances and for expansion

        Returns:
            ClusterOrder with one entry per record
        """
        records = list(vectors) if vectors is not None else index.vectors()
        by_id = {v.vector_id: v for v in records}
        io_before = index.get_io_access()

        order = ClusterOrder()
        heap = UpdatableHeap()
        processed: set[int] = set()
        num_core = 0

        for vector_id in sorted(by_id):
            if vector_id in processed:
                continue
            logger.debug(f"Starting expansion from seed {vector_id}")
            heap.add(ClusterOrderEntry(vector_id, math.inf))

            while heap:
                current = heap.poll()
                processed.add(current.object_id)
                order.add(current)

                neighbors = [
                    n
                    for n in index.range_query(
                        by_id[current.object_id], self.epsilon, self.distance_function
                    )
                    if n.vector_id in by_id
                ]
                core = self._core_distance(neighbors)
                if core is None:
                    continue
                num_core += 1
                for neighbor in neighbors:
                    if neighbor.vector_id in processed:
                        continue
                    reachability = max(core, neighbor.distance)
                    heap.add(
                        ClusterOrderEntry(neighbor.vector_id, reachability, current.object_id)
                    )

        logger.info(
            f"OPTICS ordered {len(order)} records "
            f"(epsilon={self.epsilon}, min_pts={self.min_pts}, core={num_core}, "
            f"io={index.get_io_access() - io_before})"
        )
        return order

    def _core_distance(self, neighbors: list[QueryResult]) -> Optional[float]:
        """Distance to the ``min_pts``-th neighbor, None if not a core point."""
        if len(neighbors) < self.min_pts:
            return None
        return neighbors[self.min_pts - 1].distance

    def __repr__(self) -> str:
        return (
            f"OPTICS(epsilon={self.epsilon}, min_pts={self.min_pts}, "
            f"distance_function={self.distance_function!r})"
        )
