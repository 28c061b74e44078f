"""Tests for the OPTICS cluster ordering."""

import logging
import math

import numpy as np
import pytest

from spindex.config import OpticsConfig
from spindex.core.distance import EuclideanDistance, ManhattanDistance
from spindex.core.vector import RealVector, vectors_from_array
from spindex.index.base import SpatialIndex
from spindex.index.rtree import RTree
from spindex.optics import OPTICS, ClusterOrder


class DelegatingIndex(SpatialIndex[RealVector]):
    """SpatialIndex that forwards every call to an RTree."""

    def __init__(self, tree):
        self.tree = tree

    def insert(self, o):
        self.tree.insert(o)

    def delete(self, o):
        return self.tree.delete(o)

    def range_query(self, obj, epsilon, distance_function):
        return self.tree.range_query(obj, epsilon, distance_function)

    def knn_query(self, obj, k, distance_function):
        return self.tree.knn_query(obj, k, distance_function)

    def get_io_access(self):
        return self.tree.get_io_access()

    def get_root(self):
        return self.tree.get_root()

    def get_leaf_nodes(self):
        return self.tree.get_leaf_nodes()

    def get_node(self, node_id):
        return self.tree.get_node(node_id)

    def get_root_entry(self):
        return self.tree.get_root_entry()

    def vectors(self):
        return self.tree.vectors()


@pytest.fixture
def line_tree():
    """Records at 0, 1, 2, 10 and 11 on a line."""
    return RTree.from_vectors(vectors_from_array([0.0, 1.0, 2.0, 10.0, 11.0]))


class TestOPTICS:
    """Tests for OPTICS."""

    def test_unbounded_epsilon(self, line_tree):
        order = OPTICS(math.inf, 2, EuclideanDistance()).run(line_tree)

        assert isinstance(order, ClusterOrder)
        assert order.ids() == [0, 1, 2, 3, 4]
        np.testing.assert_array_equal(order.reachabilities(), [np.inf, 1.0, 1.0, 8.0, 1.0])
        assert [order.predecessor_of(i) for i in order.ids()] == [None, 0, 1, 2, 3]

    def test_bounded_epsilon_starts_new_seed(self, line_tree):
        order = OPTICS(1.5, 2, EuclideanDistance()).run(line_tree)

        assert order.ids() == [0, 1, 2, 3, 4]
        np.testing.assert_array_equal(order.reachabilities(), [np.inf, 1.0, 1.0, np.inf, 1.0])
        assert order.predecessor_of(3) is None
        assert order.predecessor_of(4) == 3

    def test_non_core_points_do_not_expand(self, line_tree):
        order = OPTICS(1.5, 3, EuclideanDistance()).run(line_tree)

        np.testing.assert_array_equal(
            order.reachabilities(), [np.inf, np.inf, 1.0, np.inf, np.inf]
        )
        assert order.predecessor_of(2) == 1

    def test_equal_reachability_larger_id_first(self):
        tree = RTree(dimensionality=2)
        tree.insert(RealVector(0, [0.0, 0.0]))
        tree.insert(RealVector(1, [1.0, 0.0]))
        tree.insert(RealVector(2, [-1.0, 0.0]))

        order = OPTICS(math.inf, 1, EuclideanDistance()).run(tree)
        assert order.ids() == [0, 2, 1]
        assert order.predecessor_of(1) == 0

    def test_every_record_once(self, rng):
        points = np.vstack([rng.normal(0, 0.3, (60, 2)), rng.normal(5, 0.3, (60, 2))])
        tree = RTree.from_vectors(vectors_from_array(points))
        order = OPTICS(1.0, 4, EuclideanDistance()).run(tree)

        assert len(order) == 120
        assert sorted(order.ids()) == list(range(120))

    def test_separated_clusters(self, rng):
        """Two well separated blobs yield exactly one large reachability jump."""
        points = np.vstack([rng.normal(0, 0.2, (50, 2)), rng.normal(10, 0.2, (50, 2))])
        tree = RTree.from_vectors(vectors_from_array(points))
        order = OPTICS(math.inf, 5, EuclideanDistance()).run(tree)

        reach = order.reachabilities()
        assert math.isinf(reach[0])
        assert np.sum(reach[1:] > 5.0) == 1
        first_blob = set(order.ids()[: int(np.argmax(reach[1:] > 5.0)) + 1])
        assert first_blob == set(range(50))

    def test_reachability_at_least_core_distance(self, rng):
        points = rng.random((80, 2))
        tree = RTree.from_vectors(vectors_from_array(points))
        min_pts = 4
        order = OPTICS(math.inf, min_pts, EuclideanDistance()).run(tree)

        for entry in order:
            pred = entry.predecessor_id
            if pred is None:
                continue
            neighbors = tree.knn_query(points[pred], min_pts, EuclideanDistance())
            core = neighbors[-1].distance
            dist = EuclideanDistance().distance(points[pred], points[entry.object_id])
            assert entry.reachability >= core - 1e-12
            assert entry.reachability >= dist - 1e-12

    def test_subset_of_records(self, line_tree):
        vectors = [line_tree.get_vector(i) for i in (3, 4)]
        order = OPTICS(math.inf, 2, EuclideanDistance()).run(line_tree, vectors)
        assert order.ids() == [3, 4]

    def test_subset_ignores_outside_neighbors(self, line_tree):
        """Records outside the subset do not make a subset record a core point."""
        vectors = [line_tree.get_vector(i) for i in (0, 3)]
        order = OPTICS(math.inf, 3, EuclideanDistance()).run(line_tree, vectors)

        assert order.ids() == [0, 3]
        np.testing.assert_array_equal(order.reachabilities(), [np.inf, np.inf])
        assert order.predecessor_of(3) is None

    def test_any_spatial_index(self, line_tree):
        expected = OPTICS(1.5, 2, EuclideanDistance()).run(line_tree)
        order = OPTICS(1.5, 2, EuclideanDistance()).run(DelegatingIndex(line_tree))

        assert order.ids() == expected.ids()
        np.testing.assert_array_equal(order.reachabilities(), expected.reachabilities())

    def test_other_distance(self):
        tree = RTree.from_vectors(vectors_from_array([[0.0, 0.0], [1.0, 1.0]]))
        order = OPTICS(math.inf, 2, ManhattanDistance()).run(tree)
        np.testing.assert_array_equal(order.reachabilities(), [np.inf, 2.0])

    def test_empty_index(self):
        order = OPTICS(1.0, 2, EuclideanDistance()).run(RTree(dimensionality=2))
        assert len(order) == 0

    @pytest.mark.parametrize("min_pts", [0, -3, 1.5])
    def test_invalid_min_pts(self, min_pts):
        with pytest.raises(ValueError):
            OPTICS(1.0, min_pts, EuclideanDistance())

    @pytest.mark.parametrize("epsilon", [-1.0, float("nan")])
    def test_invalid_epsilon(self, epsilon):
        with pytest.raises(ValueError):
            OPTICS(epsilon, 2, EuclideanDistance())

    def test_from_config(self):
        optics = OPTICS.from_config(OpticsConfig(epsilon=2.0, min_pts=3, distance="maximum"))
        assert optics.epsilon == 2.0
        assert optics.min_pts == 3
        assert optics.distance_function.name == "maximum"

    def test_logs_summary(self, line_tree, caplog):
        with caplog.at_level(logging.DEBUG, logger="spindex"):
            OPTICS(1.5, 2, EuclideanDistance()).run(line_tree)
        messages = [r.getMessage() for r in caplog.records]
        assert any("OPTICS ordered 5 records" in m for m in messages)
        assert sum("Starting expansion from seed" in m for m in messages) == 2
