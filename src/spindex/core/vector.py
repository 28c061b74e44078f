"""Vector records stored in spatial indices.

A RealVector is a fixed-dimension numeric tuple with a unique integer id.
Indices identify records by id, so two vectors carrying the same id are the
same record for insert and delete purposes even if their coordinates differ.
"""

from __future__ import annotations

from typing import Any, Iterator, Union

import numpy as np

ArrayLike = Union[np.ndarray, list, tuple]


class DimensionalityError(ValueError):
    """Raised when a vector's dimensionality does not match what is expected."""

    def __init__(self, expected: int, actual: int, context: str = "vector"):
        super().__init__(
            f"{context} has dimensionality {actual}, expected {expected}"
        )
        self.expected = expected
        self.actual = actual


class RealVector:
    """An immutable real-valued vector with a unique record id.

    Example:
        >>> a = RealVector(0, [0.0, 0.0])
        >>> a.dimensionality
        2
        >>> a == RealVector(0, [9.0, 9.0])  # identity is by id
        True
    """

    __slots__ = ("_id", "_values")

    def __init__(self, vector_id: int, values: ArrayLike):
        """Create a vector record.

        Args:
            vector_id: Unique record identifier
            values: Coordinates (converted to a 1-d float64 array)
        """
        arr = np.array(values, dtype=np.float64)
        if arr.ndim != 1:
            raise ValueError(f"Vector values must be 1-dimensional, got shape {arr.shape}")
        if arr.size == 0:
            raise ValueError("Vector must have at least one coordinate")
        if not np.all(np.isfinite(arr)):
            raise ValueError(f"Vector {vector_id} has non-finite coordinates")
        arr.setflags(write=False)
        self._id = int(vector_id)
        self._values = arr

    @property
    def vector_id(self) -> int:
        """Unique record identifier."""
        return self._id

    @property
    def values(self) -> np.ndarray:
        """Read-only coordinate array."""
        return self._values

    @property
    def dimensionality(self) -> int:
        return self._values.size

    def to_array(self) -> np.ndarray:
        """Return a writable copy of the coordinates."""
        return self._values.copy()

    def __len__(self) -> int:
        return self._values.size

    def __getitem__(self, dim: int) -> float:
        return float(self._values[dim])

    def __iter__(self) -> Iterator[float]:
        return (float(v) for v in self._values)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, RealVector):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        coords = ", ".join(f"{v:g}" for v in self._values)
        return f"RealVector({self._id}, [{coords}])"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"vector_id": self._id, "values": self._values.tolist()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RealVector:
        """Create from dictionary."""
        return cls(data["vector_id"], data["values"])


def as_array(obj: Union[RealVector, ArrayLike]) -> np.ndarray:
    """Return the coordinates of a record or raw array as a 1-d float array."""
    if isinstance(obj, RealVector):
        return obj.values
    arr = np.asarray(obj, dtype=np.float64)
    if arr.ndim != 1:
        raise ValueError(f"Expected a 1-dimensional vector, got shape {arr.shape}")
    return arr


def check_dimensionality(
    obj: Union[RealVector, ArrayLike], expected: int, context: str = "vector"
) -> np.ndarray:
    """Return ``obj`` as an array, raising DimensionalityError on mismatch.

    Raises:
        DimensionalityError: If ``obj`` does not have ``expected`` coordinates
        ValueError: If a coordinate is NaN or infinite
    """
    arr = as_array(obj)
    if arr.size != expected:
        raise DimensionalityError(expected, arr.size, context)
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{context} has non-finite coordinates: {arr.tolist()}")
    return arr


def vectors_from_array(data: ArrayLike, start_id: int = 0) -> list[RealVector]:
    """Build records from an ``(n, d)`` matrix.

    Args:
        data: Matrix with one record per row
        start_id: Id assigned to the first row; ids increase by one per row

    Returns:
        List of RealVector records
    """
    matrix = np.asarray(data, dtype=np.float64)
    if matrix.ndim == 1:
        matrix = matrix.reshape(-1, 1)
    if matrix.ndim != 2:
        raise ValueError(f"Expected a 2-dimensional matrix, got shape {matrix.shape}")
    return [RealVector(start_id + i, row) for i, row in enumerate(matrix)]
