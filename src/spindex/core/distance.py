"""Distance values and spatial distance functions.

Distance functions operate on RealVector records (or raw coordinate arrays)
and additionally provide a lower bound on the distance from a point to any
point inside a bounding box. The lower bound drives subtree pruning in
range and k-nearest-neighbor queries.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

import numpy as np
from scipy.spatial.distance import chebyshev, cityblock, euclidean

from .vector import ArrayLike, DimensionalityError, RealVector, as_array

if TYPE_CHECKING:
    from ..index.mbr import HyperBoundingBox


@dataclass(frozen=True, order=True)
class DoubleDistance:
    """A typed, totally ordered distance value."""

    value: float

    def __post_init__(self) -> None:
        if isinstance(self.value, DoubleDistance):
            object.__setattr__(self, "value", self.value.value)
        if math.isnan(self.value):
            raise ValueError("Distance value must not be NaN")
        object.__setattr__(self, "value", float(self.value))

    @classmethod
    def infinite(cls) -> DoubleDistance:
        """The distance used for undefined reachability."""
        return cls(math.inf)

    def is_infinite(self) -> bool:
        return math.isinf(self.value)

    def __float__(self) -> float:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


class SpatialDistanceFunction(ABC):
    """Base class for distance functions usable with spatial indices.

    Subclasses implement ``_point_distance``; the bounding-box lower bound is
    derived by clamping the query point into the box, which is exact for any
    Minkowski metric.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry name of the distance function."""
        pass

    @abstractmethod
    def _point_distance(self, a: np.ndarray, b: np.ndarray) -> float:
        pass

    def distance(
        self,
        a: Union[RealVector, ArrayLike],
        b: Union[RealVector, ArrayLike],
    ) -> float:
        """Compute the distance between two records.

        Args:
            a: First record or coordinate array
            b: Second record or coordinate array

        Returns:
            Non-negative distance

        Raises:
            DimensionalityError: If the inputs differ in dimensionality
        """
        x = as_array(a)
        y = as_array(b)
        if x.size != y.size:
            raise DimensionalityError(x.size, y.size, "second operand")
        return float(self._point_distance(x, y))

    def min_dist(
        self, box: HyperBoundingBox, point: Union[RealVector, ArrayLike]
    ) -> float:
        """Lower bound of the distance from ``point`` to any point in ``box``.

        Args:
            box: Bounding box of a subtree
            point: Query record or coordinate array

        Returns:
            Minimum possible distance, 0.0 if the point lies inside the box
        """
        p = as_array(point)
        if p.size != box.dimensionality:
            raise DimensionalityError(box.dimensionality, p.size, "query point")
        nearest = np.clip(p, box.min, box.max)
        return float(self._point_distance(p, nearest))

    def __call__(
        self,
        a: Union[RealVector, ArrayLike],
        b: Union[RealVector, ArrayLike],
    ) -> float:
        return self.distance(a, b)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class EuclideanDistance(SpatialDistanceFunction):
    """L2 distance."""

    @property
    def name(self) -> str:
        return "euclidean"

    def _point_distance(self, a: np.ndarray, b: np.ndarray) -> float:
        return euclidean(a, b)


class ManhattanDistance(SpatialDistanceFunction):
    """L1 distance."""

    @property
    def name(self) -> str:
        return "manhattan"

    def _point_distance(self, a: np.ndarray, b: np.ndarray) -> float:
        return cityblock(a, b)


class MaximumDistance(SpatialDistanceFunction):
    """L-infinity distance."""

    @property
    def name(self) -> str:
        return "maximum"

    def _point_distance(self, a: np.ndarray, b: np.ndarray) -> float:
        return chebyshev(a, b)


# Distance registry for lookup by name
DISTANCE_FUNCTIONS = {
    "euclidean": EuclideanDistance,
    "manhattan": ManhattanDistance,
    "maximum": MaximumDistance,
}


def get_distance_function(name: str) -> SpatialDistanceFunction:
    """
    Get a distance function by name.

    Args:
        name: Distance name ('euclidean', 'manhattan', 'maximum')

    Returns:
        Distance function instance

    Raises:
        ValueError: If the name is not recognized
    """
    if name not in DISTANCE_FUNCTIONS:
        raise ValueError(
            f"Unknown distance function: {name}. "
            f"Available distance functions: {list(DISTANCE_FUNCTIONS.keys())}"
        )
    return DISTANCE_FUNCTIONS[name]()
