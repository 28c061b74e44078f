"""
Reachability ordering (OPTICS)

The cluster order records, for every object, the reachability distance at
which it was first reached and the object it was reached from. Plotting the
reachabilities in order gives the reachability plot; valleys are clusters.

Example Usage:
    from spindex.core import EuclideanDistance, vectors_from_array
    from spindex.index import RTree
    from spindex.optics import OPTICS

    tree = RTree.from_vectors(vectors_from_array(data))
    order = OPTICS(epsilon=1.5, min_pts=4, distance_function=EuclideanDistance()).run(tree)
    for entry in order:
        print(entry)  # "id(predecessor,reachability)"
"""

from .cluster_order import ClusterOrder, ClusterOrderEntry, InvalidReachabilityError
from .optics import OPTICS
from .updatable_heap import UpdatableHeap

__all__ = [
    "OPTICS",
    "ClusterOrder",
    "ClusterOrderEntry",
    "InvalidReachabilityError",
    "UpdatableHeap",
]
