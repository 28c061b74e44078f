"""Tests for bounding boxes."""

import numpy as np
import pytest

from spindex.core.vector import DimensionalityError, RealVector
from spindex.index.mbr import HyperBoundingBox


class TestHyperBoundingBox:
    """Tests for HyperBoundingBox."""

    def test_creation(self):
        box = HyperBoundingBox([0.0, 1.0], [2.0, 3.0])
        assert box.dimensionality == 2
        np.testing.assert_array_equal(box.min, [0.0, 1.0])
        np.testing.assert_array_equal(box.max, [2.0, 3.0])

    def test_invalid_corners(self):
        with pytest.raises(ValueError):
            HyperBoundingBox([1.0, 0.0], [0.0, 1.0])
        with pytest.raises(DimensionalityError):
            HyperBoundingBox([0.0, 0.0], [1.0, 1.0, 1.0])

    def test_from_point(self):
        box = HyperBoundingBox.from_point(RealVector(0, [1.0, 2.0]))
        assert box.area() == 0.0
        assert box.contains_point([1.0, 2.0])

    def test_union(self):
        a = HyperBoundingBox([0.0, 0.0], [1.0, 1.0])
        b = HyperBoundingBox([2.0, -1.0], [3.0, 0.5])
        union = a.union(b)
        assert union == HyperBoundingBox([0.0, -1.0], [3.0, 1.0])
        assert HyperBoundingBox.union_all([a, b]) == union

    def test_union_all_empty(self):
        with pytest.raises(ValueError):
            HyperBoundingBox.union_all([])

    def test_measures(self):
        box = HyperBoundingBox([0.0, 0.0, 0.0], [1.0, 2.0, 3.0])
        assert box.area() == 6.0
        assert box.margin() == 6.0
        np.testing.assert_array_equal(box.center(), [0.5, 1.0, 1.5])

    def test_enlargement(self):
        box = HyperBoundingBox([0.0, 0.0], [1.0, 1.0])
        assert box.enlargement(HyperBoundingBox.from_point([0.5, 0.5])) == 0.0
        assert box.enlargement(HyperBoundingBox.from_point([2.0, 1.0])) == 1.0

    def test_overlap_and_intersects(self):
        a = HyperBoundingBox([0.0, 0.0], [2.0, 2.0])
        b = HyperBoundingBox([1.0, 1.0], [3.0, 3.0])
        c = HyperBoundingBox([5.0, 5.0], [6.0, 6.0])
        assert a.overlap(b) == 1.0
        assert a.intersects(b)
        assert a.overlap(c) == 0.0
        assert not a.intersects(c)

    def test_contains_point_on_boundary(self):
        box = HyperBoundingBox([0.0, 0.0], [1.0, 1.0])
        assert box.contains_point([1.0, 0.0])
        assert not box.contains_point([1.0, 1.0001])

    def test_immutable(self):
        box = HyperBoundingBox([0.0], [1.0])
        with pytest.raises(ValueError):
            box.min[0] = -1.0

    def test_equality_and_hash(self):
        a = HyperBoundingBox([0.0, 0.0], [1.0, 1.0])
        b = HyperBoundingBox([0.0, 0.0], [1.0, 1.0])
        assert a == b
        assert hash(a) == hash(b)
        assert a != HyperBoundingBox([0.0, 0.0], [1.0, 2.0])
