"""Tests for vector records."""

import numpy as np
import pytest

from spindex.core.vector import (
    DimensionalityError,
    RealVector,
    as_array,
    check_dimensionality,
    vectors_from_array,
)


class TestRealVector:
    """Tests for RealVector."""

    def test_creation(self):
        v = RealVector(7, [1.0, 2.0, 3.0])
        assert v.vector_id == 7
        assert v.dimensionality == 3
        assert len(v) == 3
        assert v[1] == 2.0
        assert list(v) == [1.0, 2.0, 3.0]

    def test_values_are_read_only(self):
        """Coordinates cannot be changed after construction."""
        v = RealVector(0, [1.0, 2.0])
        with pytest.raises(ValueError):
            v.values[0] = 5.0

    def test_input_is_copied(self):
        data = np.array([1.0, 2.0])
        v = RealVector(0, data)
        data[0] = 99.0
        assert v[0] == 1.0

    def test_to_array_is_writable_copy(self):
        v = RealVector(0, [1.0, 2.0])
        arr = v.to_array()
        arr[0] = 10.0
        assert v[0] == 1.0

    @pytest.mark.parametrize(
        "values",
        [[], [[1.0, 2.0]], [1.0, np.nan], [np.inf, 0.0]],
    )
    def test_invalid_values_rejected(self, values):
        with pytest.raises(ValueError):
            RealVector(0, values)

    def test_identity_by_id(self):
        """Equality and hashing use the record id only."""
        a = RealVector(1, [0.0, 0.0])
        b = RealVector(1, [5.0, 5.0])
        c = RealVector(2, [0.0, 0.0])
        assert a == b
        assert hash(a) == hash(b)
        assert a != c
        assert len({a, b, c}) == 2

    def test_serialization(self):
        v = RealVector(3, [0.5, -1.5])
        restored = RealVector.from_dict(v.to_dict())
        assert restored == v
        np.testing.assert_array_equal(restored.values, v.values)

    def test_repr(self):
        assert repr(RealVector(4, [1.0, 2.5])) == "RealVector(4, [1, 2.5])"


class TestHelpers:
    """Tests for array helpers."""

    def test_as_array_accepts_vectors_and_sequences(self):
        np.testing.assert_array_equal(as_array(RealVector(0, [1.0, 2.0])), [1.0, 2.0])
        np.testing.assert_array_equal(as_array((3, 4)), [3.0, 4.0])

    def test_as_array_rejects_matrices(self):
        with pytest.raises(ValueError):
            as_array([[1.0, 2.0], [3.0, 4.0]])

    def test_check_dimensionality(self):
        arr = check_dimensionality([1.0, 2.0], 2)
        assert arr.shape == (2,)

        with pytest.raises(DimensionalityError) as exc_info:
            check_dimensionality([1.0, 2.0, 3.0], 2, "query")
        assert exc_info.value.expected == 2
        assert exc_info.value.actual == 3
        assert "query" in str(exc_info.value)

    @pytest.mark.parametrize("values", [[1.0, np.nan], [np.inf, 0.0], [0.0, -np.inf]])
    def test_check_dimensionality_rejects_non_finite(self, values):
        with pytest.raises(ValueError, match="query object has non-finite coordinates"):
            check_dimensionality(values, 2, "query object")

    def test_dimensionality_error_is_value_error(self):
        assert issubclass(DimensionalityError, ValueError)

    def test_vectors_from_array(self):
        vectors = vectors_from_array(np.arange(6.0).reshape(3, 2), start_id=10)
        assert [v.vector_id for v in vectors] == [10, 11, 12]
        assert vectors[2][1] == 5.0

    def test_vectors_from_array_1d(self):
        """A flat array is treated as one-dimensional records."""
        vectors = vectors_from_array([1.0, 2.0, 3.0])
        assert len(vectors) == 3
        assert all(v.dimensionality == 1 for v in vectors)
