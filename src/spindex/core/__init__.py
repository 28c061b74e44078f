"""Core record and distance abstractions"""

from spindex.core.distance import (
    DISTANCE_FUNCTIONS,
    DoubleDistance,
    EuclideanDistance,
    ManhattanDistance,
    MaximumDistance,
    SpatialDistanceFunction,
    get_distance_function,
)
from spindex.core.vector import DimensionalityError, RealVector, vectors_from_array

__all__ = [
    # Records
    "RealVector",
    "DimensionalityError",
    "vectors_from_array",
    # Distances
    "DoubleDistance",
    "SpatialDistanceFunction",
    "EuclideanDistance",
    "ManhattanDistance",
    "MaximumDistance",
    "DISTANCE_FUNCTIONS",
    "get_distance_function",
]
