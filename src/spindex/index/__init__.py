"""Spatial indices over vector records"""

from spindex.index.base import QueryResult, SpatialIndex
from spindex.index.mbr import HyperBoundingBox
from spindex.index.node import DirectoryEntry, LeafEntry, RootEntry, SpatialNode
from spindex.index.rtree import RTree

__all__ = [
    # Contract
    "SpatialIndex",
    "QueryResult",
    # Structure
    "HyperBoundingBox",
    "SpatialNode",
    "LeafEntry",
    "DirectoryEntry",
    "RootEntry",
    # Implementations
    "RTree",
]
