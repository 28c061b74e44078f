"""Tests for cluster order entries and cluster orders."""

import json
import math

import numpy as np
import pytest

from spindex.core.distance import DoubleDistance
from spindex.optics.cluster_order import (
    ClusterOrder,
    ClusterOrderEntry,
    InvalidReachabilityError,
)


class TestClusterOrderEntry:
    """Tests for ClusterOrderEntry."""

    def test_accessors(self):
        entry = ClusterOrderEntry(4, 2.5, predecessor_id=1)
        assert entry.get_id() == 4
        assert entry.object_id == 4
        assert entry.get_predecessor_id() == 1
        assert entry.get_reachability() == DoubleDistance(2.5)
        assert entry.reachability == 2.5

    def test_seed_entry(self):
        entry = ClusterOrderEntry(0, math.inf)
        assert entry.get_predecessor_id() is None
        assert entry.get_reachability().is_infinite()

    def test_accepts_double_distance(self):
        assert ClusterOrderEntry(1, DoubleDistance(0.75)).reachability == 0.75

    def test_nan_rejected(self):
        with pytest.raises(InvalidReachabilityError):
            ClusterOrderEntry(1, float("nan"))
        entry = ClusterOrderEntry(1, 1.0)
        with pytest.raises(InvalidReachabilityError):
            entry.update(float("nan"), 2)
        assert entry.reachability == 1.0
        assert issubclass(InvalidReachabilityError, ValueError)

    def test_ordering_by_reachability(self):
        assert ClusterOrderEntry(1, 0.5) < ClusterOrderEntry(0, 1.0)
        assert ClusterOrderEntry(0, 1.0) < ClusterOrderEntry(9, math.inf)
        assert ClusterOrderEntry(0, 2.0) > ClusterOrderEntry(1, 1.0)

    def test_equal_reachability_larger_id_first(self):
        """Ties sort by descending object id."""
        a = ClusterOrderEntry(5, 1.0)
        b = ClusterOrderEntry(3, 1.0)
        assert a < b
        assert not b < a
        assert a.compare_to(b) < 0
        assert b.compare_to(a) > 0
        assert a.compare_to(ClusterOrderEntry(5, 1.0)) == 0
        assert sorted([b, a]) == [a, b]
        assert [e.object_id for e in sorted([b, a])] == [5, 3]

    def test_sorting_mixed(self):
        entries = [
            ClusterOrderEntry(1, 2.0),
            ClusterOrderEntry(2, 1.0),
            ClusterOrderEntry(7, 1.0),
            ClusterOrderEntry(3, math.inf),
            ClusterOrderEntry(4, 0.0),
        ]
        assert [e.object_id for e in sorted(entries)] == [4, 7, 2, 1, 3]

    def test_identity_equality(self):
        """Entries with the same id are equal whatever their reachability."""
        a = ClusterOrderEntry(3, 1.0, predecessor_id=0)
        b = ClusterOrderEntry(3, 7.0, predecessor_id=2)
        assert a == b
        assert hash(a) == hash(b)
        assert a != ClusterOrderEntry(4, 1.0)
        assert len({a, b}) == 1

    def test_update(self):
        entry = ClusterOrderEntry(3, math.inf)
        entry.update(0.5, 7)
        assert entry.reachability == 0.5
        assert entry.get_predecessor_id() == 7
        assert entry.get_id() == 3

    def test_repr(self):
        assert repr(ClusterOrderEntry(3, 1.5, predecessor_id=2)) == "3(2,1.5)"
        assert str(ClusterOrderEntry(0, math.inf)) == "0(None,inf)"

    def test_serialization(self):
        entry = ClusterOrderEntry(3, 1.5, predecessor_id=2)
        restored = ClusterOrderEntry.from_dict(entry.to_dict())
        assert restored == entry
        assert restored.reachability == 1.5
        assert restored.predecessor_id == 2


class TestClusterOrder:
    """Tests for ClusterOrder."""

    @pytest.fixture
    def order(self):
        order = ClusterOrder()
        order.add(ClusterOrderEntry(2, math.inf))
        order.add(ClusterOrderEntry(0, 1.0, predecessor_id=2))
        order.add(ClusterOrderEntry(1, 0.5, predecessor_id=0))
        return order

    def test_sequence_protocol(self, order):
        assert len(order) == 3
        assert order[0].object_id == 2
        assert [e.object_id for e in order] == [2, 0, 1]
        assert 0 in order
        assert 5 not in order

    def test_ids_and_reachabilities(self, order):
        assert order.ids() == [2, 0, 1]
        np.testing.assert_array_equal(order.reachabilities(), [np.inf, 1.0, 0.5])

    def test_predecessor_of(self, order):
        assert order.predecessor_of(2) is None
        assert order.predecessor_of(1) == 0
        with pytest.raises(KeyError):
            order.predecessor_of(9)

    def test_duplicate_rejected(self, order):
        with pytest.raises(ValueError):
            order.add(ClusterOrderEntry(0, 0.1))

    def test_added_entries_are_frozen(self):
        order = ClusterOrder()
        entry = ClusterOrderEntry(0, 3.0)
        order.add(entry)
        entry.update(1.0, 5)
        assert order.get(0).reachability == 3.0
        assert order.get(0).predecessor_id is None

    def test_round_trip_through_json(self, order):
        restored = ClusterOrder.from_dict(json.loads(json.dumps(order.to_dict())))
        assert restored.ids() == order.ids()
        np.testing.assert_array_equal(restored.reachabilities(), order.reachabilities())
