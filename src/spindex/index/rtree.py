"""
In-memory R-tree implementing the SpatialIndex contract.

Node pages live in a page table keyed by node id. Every page read or write
made by insert, delete, bulk load and the queries goes through
``_read_node`` / ``_write_node`` and increments the IO-access counter, so
the counter reflects the page traffic a disk-backed tree would see.

Features:
- Guttman insertion with quadratic or linear node splits
- Deletion with condense-tree reinsertion and root shortening
- Sort-Tile-Recursive bulk loading
- Range queries and best-first k-nearest-neighbor queries with
  bounding-box pruning
- Reader/writer locking: mutations are exclusive, queries run concurrently
"""

from __future__ import annotations

import heapq
import logging
import math
from numbers import Integral, Real
from typing import Iterable, Iterator, Optional, Union

import numpy as np

from ..config.schema import IndexConfig, SplitStrategy
from ..core.distance import SpatialDistanceFunction
from ..core.vector import ArrayLike, RealVector, check_dimensionality
from ..utils.thread_safety import ReadWriteLock, ThreadSafeCounter
from .base import QueryResult, SpatialIndex
from .mbr import HyperBoundingBox
from .node import DirectoryEntry, LeafEntry, RootEntry, SpatialNode

logger = logging.getLogger(__name__)

NodeEntry = Union[LeafEntry, DirectoryEntry]


class RTree(SpatialIndex[RealVector]):
    """R-tree over RealVector records.

    Example:
        >>> tree = RTree(dimensionality=2)
        >>> tree.insert(RealVector(0, [0.0, 0.0]))
        >>> tree.insert(RealVector(1, [1.0, 0.0]))
        >>> tree.knn_query(RealVector(-1, [0.0, 0.0]), 1, EuclideanDistance())
        [QueryResult(vector_id=0, distance=0.0)]
    """

    def __init__(self, dimensionality: int, config: Optional[IndexConfig] = None):
        """Create an empty tree.

        Args:
            dimensionality: Dimensionality of every indexed record
            config: Page layout settings
        """
        if dimensionality < 1:
            raise ValueError("dimensionality must be at least 1")
        self.dimensionality = int(dimensionality)
        self.config = config or IndexConfig()
        self._max_entries = self.config.max_entries
        self._min_entries = self.config.min_entries

        self._nodes: dict[int, SpatialNode] = {}
        self._next_node_id = 0
        self._vectors: dict[int, RealVector] = {}
        self._io = ThreadSafeCounter()
        self._lock = ReadWriteLock()

        root = self._allocate_node(is_leaf=True)
        self._nodes[root.node_id] = root
        self._root_id = root.node_id
        self._height = 1

    @classmethod
    def from_vectors(
        cls,
        vectors: Iterable[RealVector],
        dimensionality: Optional[int] = None,
        config: Optional[IndexConfig] = None,
    ) -> RTree:
        """Create a tree bulk loaded with ``vectors``.

        Args:
            vectors: Initial records
            dimensionality: Required when ``vectors`` is empty
            config: Page layout settings
        """
        vectors = list(vectors)
        if dimensionality is None:
            if not vectors:
                raise ValueError("dimensionality is required for an empty data set")
            dimensionality = vectors[0].dimensionality
        tree = cls(dimensionality, config)
        tree.bulk_load(vectors)
        return tree

    # ---------- page access ----------

    def _allocate_node(self, is_leaf: bool) -> SpatialNode:
        node = SpatialNode(
            node_id=self._next_node_id, is_leaf=is_leaf, capacity=self._max_entries
        )
        self._next_node_id += 1
        return node

    def _read_node(self, node_id: int) -> SpatialNode:
        self._io.increment()
        return self._nodes[node_id]

    def _write_node(self, node: SpatialNode) -> None:
        self._io.increment()
        self._nodes[node.node_id] = node

    def _free_node(self, node_id: int) -> None:
        del self._nodes[node_id]

    # ---------- input checks ----------

    def _check_record(self, o: RealVector) -> None:
        if not isinstance(o, RealVector):
            raise TypeError(f"Expected a RealVector, got {type(o).__name__}")
        check_dimensionality(o, self.dimensionality, f"vector {o.vector_id}")

    def _check_query(self, obj: Union[RealVector, ArrayLike]) -> np.ndarray:
        return check_dimensionality(obj, self.dimensionality, "query object")

    # ---------- insertion ----------

    def insert(self, o: RealVector) -> None:
        """Insert a record.

        Raises:
            TypeError: If ``o`` is not a RealVector
            DimensionalityError: If ``o`` has the wrong dimensionality
            ValueError: If a record with the same id is already indexed
        """
        self._check_record(o)
        with self._lock.write_locked():
            if o.vector_id in self._vectors:
                raise ValueError(f"Vector {o.vector_id} is already indexed")
            self._insert_entry(LeafEntry(o), level=0)
            self._vectors[o.vector_id] = o
        logger.debug(f"Inserted vector {o.vector_id} (height={self._height})")

    def _insert_entry(self, entry: NodeEntry, level: int) -> None:
        """Place ``entry`` into a node at ``level`` (0 = leaves)."""
        path = self._choose_path(entry.mbr, level)
        path[-1].entries.append(entry)
        self._adjust_path(path)

    def _choose_path(self, mbr: HyperBoundingBox, level: int) -> list[SpatialNode]:
        """Descend from the root to the best node at ``level``.

        At each directory node follow the entry needing the least enlargement,
        ties broken by the smaller area.
        """
        node = self._read_node(self._root_id)
        path = [node]
        current_level = self._height - 1
        while current_level > level:
            best = min(
                node.entries,
                key=lambda e: (e.mbr.enlargement(mbr), e.mbr.area()),
            )
            node = self._read_node(best.node_id)
            path.append(node)
            current_level -= 1
        return path

    def _adjust_path(self, path: list[SpatialNode]) -> None:
        """Write back ``path`` bottom-up, splitting overflowing nodes."""
        sibling: Optional[SpatialNode] = None
        for i in range(len(path) - 1, -1, -1):
            node = path[i]
            if sibling is not None:
                node.entries.append(DirectoryEntry(sibling.node_id, sibling.mbr()))
                sibling = None
            if node.is_overflow():
                sibling = self._split(node)
            else:
                self._write_node(node)
            if i > 0:
                self._entry_for(path[i - 1], node.node_id).bounds = node.mbr()

        if sibling is not None:
            old_root = path[0]
            new_root = self._allocate_node(is_leaf=False)
            new_root.entries = [
                DirectoryEntry(old_root.node_id, old_root.mbr()),
                DirectoryEntry(sibling.node_id, sibling.mbr()),
            ]
            self._write_node(new_root)
            self._root_id = new_root.node_id
            self._height += 1
            logger.debug(f"Root split, tree height is now {self._height}")

    @staticmethod
    def _entry_for(parent: SpatialNode, child_id: int) -> DirectoryEntry:
        for entry in parent.entries:
            if entry.node_id == child_id:
                return entry
        raise RuntimeError(f"Node {parent.node_id} has no entry for child {child_id}")

    # ---------- splitting ----------

    def _split(self, node: SpatialNode) -> SpatialNode:
        """Split an overflowing node; returns the new sibling."""
        if self.config.split == SplitStrategy.LINEAR.value:
            seeds = self._linear_pick_seeds(node.entries)
        else:
            seeds = self._quadratic_pick_seeds(node.entries)
        group1, group2 = self._distribute(node.entries, *seeds)

        sibling = self._allocate_node(is_leaf=node.is_leaf)
        node.entries = group1
        sibling.entries = group2
        self._write_node(node)
        self._write_node(sibling)
        logger.debug(
            f"Split node {node.node_id} into {node.node_id}/{sibling.node_id} "
            f"({len(group1)}/{len(group2)} entries)"
        )
        return sibling

    @staticmethod
    def _quadratic_pick_seeds(entries: list[NodeEntry]) -> tuple[int, int]:
        """Pick the pair of entries wasting the most space if grouped together."""
        boxes = [e.mbr for e in entries]
        best: Optional[tuple[float, float]] = None
        seeds = (0, 1)
        for i in range(len(boxes)):
            for j in range(i + 1, len(boxes)):
                union = boxes[i].union(boxes[j])
                waste = union.area() - boxes[i].area() - boxes[j].area()
                key = (waste, union.margin())
                if best is None or key > best:
                    best = key
                    seeds = (i, j)
        return seeds

    @staticmethod
    def _linear_pick_seeds(entries: list[NodeEntry]) -> tuple[int, int]:
        """Pick the pair with the greatest normalized separation along any axis."""
        lows = np.vstack([e.mbr.min for e in entries])
        highs = np.vstack([e.mbr.max for e in entries])
        best_sep = -math.inf
        seeds = (0, len(entries) - 1)
        for dim in range(lows.shape[1]):
            highest_low = int(np.argmax(lows[:, dim]))
            lowest_high = int(np.argmin(highs[:, dim]))
            if highest_low == lowest_high:
                continue
            width = float(highs[:, dim].max() - lows[:, dim].min())
            sep = float(lows[highest_low, dim] - highs[lowest_high, dim])
            if width > 0:
                sep /= width
            if sep > best_sep:
                best_sep = sep
                seeds = (lowest_high, highest_low)
        return seeds

    def _distribute(
        self, entries: list[NodeEntry], seed1: int, seed2: int
    ) -> tuple[list[NodeEntry], list[NodeEntry]]:
        """Assign entries to two groups starting from the given seeds.

        Each round picks the entry with the strongest preference for one group
        and assigns it to the group needing the least enlargement. A group is
        filled with the remainder once it needs every remaining entry to reach
        the minimum fill.
        """
        group1 = [entries[seed1]]
        group2 = [entries[seed2]]
        box1 = entries[seed1].mbr
        box2 = entries[seed2].mbr
        remaining = [e for i, e in enumerate(entries) if i not in (seed1, seed2)]

        while remaining:
            if len(group1) + len(remaining) <= self._min_entries:
                group1.extend(remaining)
                break
            if len(group2) + len(remaining) <= self._min_entries:
                group2.extend(remaining)
                break

            best_idx = 0
            best_diff = -1.0
            for idx, entry in enumerate(remaining):
                diff = abs(
                    self._growth(box1, entry.mbr)[0] - self._growth(box2, entry.mbr)[0]
                )
                if diff > best_diff:
                    best_diff = diff
                    best_idx = idx
            entry = remaining.pop(best_idx)

            pref1 = self._growth(box1, entry.mbr) + (box1.area(), len(group1))
            pref2 = self._growth(box2, entry.mbr) + (box2.area(), len(group2))
            if pref1 <= pref2:
                group1.append(entry)
                box1 = box1.union(entry.mbr)
            else:
                group2.append(entry)
                box2 = box2.union(entry.mbr)

        return group1, group2

    @staticmethod
    def _growth(box: HyperBoundingBox, other: HyperBoundingBox) -> tuple[float, float]:
        """Area and margin increase of ``box`` when extended by ``other``.

        The margin term separates candidates when every area is zero, which
        is common for point data.
        """
        union = box.union(other)
        return (union.area() - box.area(), union.margin() - box.margin())

    # ---------- deletion ----------

    def delete(self, o: RealVector) -> bool:
        """Delete the record with ``o``'s id.

        Returns:
            True if the record was indexed, False otherwise
        """
        self._check_record(o)
        with self._lock.write_locked():
            stored = self._vectors.get(o.vector_id)
            if stored is None:
                return False

            path, index = self._find_leaf(stored)
            if path is None:
                raise RuntimeError(
                    f"Vector {stored.vector_id} is registered but not found in the tree"
                )
            del path[-1].entries[index]
            del self._vectors[stored.vector_id]
            self._condense_tree(path)
        logger.debug(f"Deleted vector {o.vector_id} (height={self._height})")
        return True

    def _find_leaf(
        self, vector: RealVector
    ) -> tuple[Optional[list[SpatialNode]], Optional[int]]:
        """Locate the leaf holding ``vector``; returns (root-to-leaf path, slot)."""
        stack: list[tuple[list[SpatialNode], int]] = [([], self._root_id)]
        while stack:
            path, node_id = stack.pop()
            node = self._read_node(node_id)
            path = path + [node]
            if node.is_leaf:
                for i, entry in enumerate(node.entries):
                    if entry.vector_id == vector.vector_id:
                        return path, i
            else:
                for entry in node.entries:
                    if entry.mbr.contains_point(vector):
                        stack.append((path, entry.node_id))
        return None, None

    def _condense_tree(self, path: list[SpatialNode]) -> None:
        """Dissolve underfull nodes along ``path`` and reinsert their entries."""
        orphans: list[tuple[NodeEntry, int]] = []

        for i in range(len(path) - 1, 0, -1):
            node = path[i]
            parent = path[i - 1]
            level = self._height - 1 - i
            entry = self._entry_for(parent, node.node_id)
            if node.is_underflow(self._min_entries):
                parent.entries.remove(entry)
                orphans.extend((e, level) for e in node.entries)
                self._free_node(node.node_id)
                logger.debug(f"Dissolved underfull node {node.node_id} at level {level}")
            else:
                self._write_node(node)
                entry.bounds = node.mbr()
        self._write_node(path[0])
        self._shorten_root()

        # Higher levels first so subtrees land before their leaf entries
        for entry, level in sorted(orphans, key=lambda t: -t[1]):
            if level > self._height - 1:
                for leaf_entry in self._collect_leaf_entries(entry.node_id):
                    self._insert_entry(leaf_entry, level=0)
            else:
                self._insert_entry(entry, level)
        self._shorten_root()

    def _shorten_root(self) -> None:
        root = self._nodes[self._root_id]
        while not root.is_leaf and len(root.entries) == 1:
            child_id = root.entries[0].node_id
            self._free_node(root.node_id)
            self._root_id = child_id
            self._height -= 1
            root = self._read_node(child_id)
        if not root.is_leaf and not root.entries:
            self._free_node(root.node_id)
            new_root = self._allocate_node(is_leaf=True)
            self._write_node(new_root)
            self._root_id = new_root.node_id
            self._height = 1

    def _collect_leaf_entries(self, node_id: int) -> list[LeafEntry]:
        """Remove the subtree at ``node_id`` and return its leaf entries."""
        node = self._read_node(node_id)
        self._free_node(node_id)
        if node.is_leaf:
            return list(node.entries)
        collected: list[LeafEntry] = []
        for entry in node.entries:
            collected.extend(self._collect_leaf_entries(entry.node_id))
        return collected

    # ---------- bulk loading ----------

    def bulk_load(self, vectors: Iterable[RealVector]) -> None:
        """Pack ``vectors`` into an empty tree with Sort-Tile-Recursive.

        Raises:
            ValueError: If the tree is not empty or ids repeat
            DimensionalityError: If any vector has the wrong dimensionality
        """
        vectors = list(vectors)
        for v in vectors:
            self._check_record(v)
        ids = [v.vector_id for v in vectors]
        if len(set(ids)) != len(ids):
            raise ValueError("bulk_load received duplicate vector ids")

        with self._lock.write_locked():
            if self._vectors:
                raise ValueError("bulk_load requires an empty index")
            if not vectors:
                return

            self._free_node(self._root_id)
            entries: list[NodeEntry] = [LeafEntry(v) for v in vectors]
            is_leaf = True
            height = 0
            while True:
                groups = self._pack(entries)
                nodes = []
                for group in groups:
                    node = self._allocate_node(is_leaf=is_leaf)
                    node.entries = group
                    self._write_node(node)
                    nodes.append(node)
                height += 1
                if len(nodes) == 1:
                    break
                entries = [DirectoryEntry(n.node_id, n.mbr()) for n in nodes]
                is_leaf = False

            self._root_id = nodes[0].node_id
            self._height = height
            self._vectors = {v.vector_id: v for v in vectors}
        logger.info(f"Bulk loaded {len(vectors)} vectors (height={self._height})")

    def _pack(self, entries: list[NodeEntry]) -> list[list[NodeEntry]]:
        """Order entries by STR tiles and cut them into node-sized groups."""
        centers = np.vstack([e.mbr.center() for e in entries])
        order = self._str_order(np.arange(len(entries)), centers, 0)
        ordered = [entries[i] for i in order]

        capacity = self._max_entries
        groups = [ordered[i : i + capacity] for i in range(0, len(ordered), capacity)]
        if len(groups) > 1 and len(groups[-1]) < self._min_entries:
            combined = groups[-2] + groups[-1]
            half = len(combined) // 2
            groups[-2:] = [combined[:half], combined[half:]]
        return groups

    def _str_order(self, idx: np.ndarray, centers: np.ndarray, dim: int) -> list[int]:
        """Sort-Tile-Recursive ordering of ``idx`` starting at axis ``dim``."""
        sorted_idx = idx[np.argsort(centers[idx, dim], kind="stable")]
        dims_left = self.dimensionality - dim
        if dims_left <= 1 or len(sorted_idx) <= self._max_entries:
            return sorted_idx.tolist()

        pages = math.ceil(len(sorted_idx) / self._max_entries)
        slabs = math.ceil(pages ** (1.0 / dims_left))
        slab_size = self._max_entries * math.ceil(pages / slabs)
        order: list[int] = []
        for start in range(0, len(sorted_idx), slab_size):
            order.extend(
                self._str_order(sorted_idx[start : start + slab_size], centers, dim + 1)
            )
        return order

    # ---------- queries ----------

    def range_query(
        self,
        obj: Union[RealVector, ArrayLike],
        epsilon: float,
        distance_function: SpatialDistanceFunction,
    ) -> list[QueryResult]:
        """Find every record within ``epsilon`` of ``obj``.

        Subtrees whose bounding box lies farther than ``epsilon`` are skipped.

        Raises:
            TypeError: If ``epsilon`` is not a number
            ValueError: If ``epsilon`` is negative or NaN, or ``obj`` has
                non-finite coordinates
            DimensionalityError: If ``obj`` has the wrong dimensionality
        """
        if isinstance(epsilon, bool) or not isinstance(epsilon, Real):
            raise TypeError(f"epsilon must be a number, got {type(epsilon).__name__}")
        epsilon = float(epsilon)
        if math.isnan(epsilon) or epsilon < 0:
            raise ValueError(f"epsilon must be non-negative, got {epsilon}")
        query = self._check_query(obj)

        results: list[QueryResult] = []
        with self._lock.read_locked():
            stack = [self._root_id]
            while stack:
                node = self._read_node(stack.pop())
                if node.is_leaf:
                    for entry in node.entries:
                        dist = distance_function.distance(query, entry.vector)
                        if dist <= epsilon:
                            results.append(QueryResult(distance=dist, vector_id=entry.vector_id))
                else:
                    for entry in node.entries:
                        if distance_function.min_dist(entry.mbr, query) <= epsilon:
                            stack.append(entry.node_id)
        results.sort()
        return results

    def knn_query(
        self,
        obj: Union[RealVector, ArrayLike],
        k: int,
        distance_function: SpatialDistanceFunction,
    ) -> list[QueryResult]:
        """Find the ``k`` nearest neighbors of ``obj``.

        Best-first traversal: nodes are queued by the minimum distance of
        their bounding box, records by their exact distance. A node whose key
        equals a record's distance is expanded first, so equal distances come
        out in ascending id order.

        Raises:
            ValueError: If ``k`` is not a positive integer, or ``obj`` has
                non-finite coordinates
            DimensionalityError: If ``obj`` has the wrong dimensionality
        """
        if isinstance(k, bool) or not isinstance(k, Integral) or k <= 0:
            raise ValueError(f"k must be a positive integer, got {k!r}")
        query = self._check_query(obj)

        results: list[QueryResult] = []
        with self._lock.read_locked():
            # (distance, kind, id): kind 0 = node, 1 = record
            queue: list[tuple[float, int, int]] = [(0.0, 0, self._root_id)]
            while queue and len(results) < k:
                dist, kind, item_id = heapq.heappop(queue)
                if kind == 1:
                    results.append(QueryResult(distance=dist, vector_id=item_id))
                    continue
                node = self._read_node(item_id)
                if node.is_leaf:
                    for entry in node.entries:
                        d = distance_function.distance(query, entry.vector)
                        heapq.heappush(queue, (d, 1, entry.vector_id))
                else:
                    for entry in node.entries:
                        d = distance_function.min_dist(entry.mbr, query)
                        heapq.heappush(queue, (d, 0, entry.node_id))
        return results

    # ---------- instrumentation ----------

    def get_io_access(self) -> int:
        return self._io.get()

    def reset_io_access(self) -> None:
        """Reset the IO-access counter; only for explicit benchmarking."""
        self._io.reset()

    # ---------- introspection ----------

    def get_root(self) -> SpatialNode:
        with self._lock.read_locked():
            return self._nodes[self._root_id]

    def get_node(self, node_id: int) -> SpatialNode:
        with self._lock.read_locked():
            try:
                return self._nodes[node_id]
            except KeyError:
                raise KeyError(f"No node with id {node_id} in the tree") from None

    def get_leaf_nodes(self) -> list[SpatialNode]:
        with self._lock.read_locked():
            return [n for n in self._iter_nodes() if n.is_leaf]

    def get_root_entry(self) -> RootEntry:
        with self._lock.read_locked():
            root = self._nodes[self._root_id]
            return RootEntry(root.node_id, root.mbr())

    def _iter_nodes(self) -> Iterator[SpatialNode]:
        """Breadth-first iteration over the nodes reachable from the root."""
        queue = [self._root_id]
        while queue:
            node = self._nodes[queue.pop(0)]
            yield node
            queue.extend(node.children_ids())

    @property
    def height(self) -> int:
        return self._height

    def get_vector(self, vector_id: int) -> RealVector:
        """Return the indexed record with the given id.

        Raises:
            KeyError: If no such record is indexed
        """
        with self._lock.read_locked():
            return self._vectors[vector_id]

    def vectors(self) -> list[RealVector]:
        """All indexed records, ordered by id."""
        with self._lock.read_locked():
            return [self._vectors[i] for i in sorted(self._vectors)]

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, RealVector):
            item = item.vector_id
        return item in self._vectors

    def get_stats(self) -> dict[str, Union[int, float]]:
        """Get index statistics."""
        with self._lock.read_locked():
            nodes = list(self._iter_nodes())
            leaves = [n for n in nodes if n.is_leaf]
            total_entries = sum(n.num_entries for n in nodes)
            return {
                "num_vectors": len(self._vectors),
                "dimensionality": self.dimensionality,
                "height": self._height,
                "num_nodes": len(nodes),
                "num_leaves": len(leaves),
                "max_entries": self._max_entries,
                "min_entries": self._min_entries,
                "avg_fill": total_entries / (len(nodes) * self._max_entries) if nodes else 0.0,
                "io_access": self._io.get(),
            }

    def __repr__(self) -> str:
        return (
            f"RTree(dimensionality={self.dimensionality}, size={len(self._vectors)}, "
            f"height={self._height})"
        )
