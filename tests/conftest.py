"""Shared fixtures for the spindex test suite."""

import numpy as np
import pytest

from spindex.config import IndexConfig
from spindex.core.vector import RealVector, vectors_from_array
from spindex.index.rtree import RTree


def assert_tree_invariants(tree: RTree) -> None:
    """Check the structural invariants of an R-tree through its public API."""
    root = tree.get_root()
    max_entries = tree.config.max_entries
    min_entries = tree.config.min_entries

    assert root.num_entries <= max_entries

    leaf_depths = set()
    childless = set()
    record_ids = []
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        if node.node_id != root.node_id:
            assert min_entries <= node.num_entries <= max_entries, node
        if node.is_leaf:
            leaf_depths.add(depth)
            childless.add(node.node_id)
            record_ids.extend(e.vector_id for e in node.entries)
            for entry in node.entries:
                assert entry.is_leaf_entry
        else:
            assert node.num_entries > 0
            for entry in node.entries:
                child = tree.get_node(entry.node_id)
                assert entry.mbr == child.mbr()
                stack.append((child, depth + 1))

    assert len(leaf_depths) <= 1
    if leaf_depths:
        assert leaf_depths.pop() == tree.height - 1
    assert {n.node_id for n in tree.get_leaf_nodes()} == childless
    assert sorted(record_ids) == sorted(v.vector_id for v in tree.vectors())
    assert len(record_ids) == len(tree)


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def points_2d(rng):
    """200 random points in the unit square."""
    return rng.random((200, 2))


@pytest.fixture
def vectors_2d(points_2d):
    return vectors_from_array(points_2d)


@pytest.fixture
def small_config():
    """Small pages so modest data sets build multi-level trees."""
    return IndexConfig(max_entries=4, min_fill=0.5)


@pytest.fixture
def scenario_tree():
    """Three records: A=(0,0), B=(1,0), C=(5,5)."""
    tree = RTree(dimensionality=2)
    tree.insert(RealVector(0, [0.0, 0.0]))
    tree.insert(RealVector(1, [1.0, 0.0]))
    tree.insert(RealVector(2, [5.0, 5.0]))
    return tree
