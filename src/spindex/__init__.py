"""
spindex: R-tree spatial index and OPTICS cluster ordering
"""

__version__ = "0.1.0"

from spindex.config import (
    IndexConfig,
    OpticsConfig,
    SpindexConfig,
    get_default_config,
    load_config,
    validate_config,
)
from spindex.core.distance import (
    DoubleDistance,
    EuclideanDistance,
    ManhattanDistance,
    MaximumDistance,
    SpatialDistanceFunction,
    get_distance_function,
)
from spindex.core.vector import DimensionalityError, RealVector, vectors_from_array
from spindex.index.base import QueryResult, SpatialIndex
from spindex.index.rtree import RTree
from spindex.optics import (
    OPTICS,
    ClusterOrder,
    ClusterOrderEntry,
    InvalidReachabilityError,
    UpdatableHeap,
)

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
    "get_distance_function",
    # Index
    "SpatialIndex",
    "QueryResult",
    "RTree",
    # OPTICS
    "OPTICS",
    "ClusterOrder",
    "ClusterOrderEntry",
    "InvalidReachabilityError",
    "UpdatableHeap",
    # Configuration
    "SpindexConfig",
    "IndexConfig",
    "OpticsConfig",
    "load_config",
    "get_default_config",
    "validate_config",
]
