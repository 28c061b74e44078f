"""Axis-aligned minimum bounding rectangles."""

from __future__ import annotations

from typing import Iterable, Union

import numpy as np

from ..core.vector import ArrayLike, DimensionalityError, RealVector, as_array


class HyperBoundingBox:
    """An axis-aligned bounding box in ``d`` dimensions.

    Boxes are immutable; every combining operation returns a new box.
    """

    __slots__ = ("_min", "_max")

    def __init__(self, min_values: ArrayLike, max_values: ArrayLike):
        lo = np.array(min_values, dtype=np.float64)
        hi = np.array(max_values, dtype=np.float64)
        if lo.ndim != 1 or hi.ndim != 1:
            raise ValueError("Bounding box corners must be 1-dimensional")
        if lo.size != hi.size:
            raise DimensionalityError(lo.size, hi.size, "max corner")
        if np.any(lo > hi):
            raise ValueError(f"Bounding box min {lo} exceeds max {hi}")
        lo.setflags(write=False)
        hi.setflags(write=False)
        self._min = lo
        self._max = hi

    @classmethod
    def from_point(cls, point: Union[RealVector, ArrayLike]) -> HyperBoundingBox:
        """Degenerate box containing a single point."""
        p = as_array(point)
        return cls(p, p)

    @classmethod
    def union_all(cls, boxes: Iterable[HyperBoundingBox]) -> HyperBoundingBox:
        """Smallest box enclosing every box in ``boxes``."""
        boxes = list(boxes)
        if not boxes:
            raise ValueError("Cannot compute the union of no boxes")
        lo = np.min(np.vstack([b._min for b in boxes]), axis=0)
        hi = np.max(np.vstack([b._max for b in boxes]), axis=0)
        return cls(lo, hi)

    @property
    def min(self) -> np.ndarray:
        return self._min

    @property
    def max(self) -> np.ndarray:
        return self._max

    @property
    def dimensionality(self) -> int:
        return self._min.size

    def union(self, other: HyperBoundingBox) -> HyperBoundingBox:
        return HyperBoundingBox(
            np.minimum(self._min, other._min), np.maximum(self._max, other._max)
        )

    def area(self) -> float:
        """Volume of the box (zero for degenerate boxes)."""
        return float(np.prod(self._max - self._min))

    def margin(self) -> float:
        """Sum of the edge lengths."""
        return float(np.sum(self._max - self._min))

    def enlargement(self, other: HyperBoundingBox) -> float:
        """Volume increase needed for this box to also enclose ``other``."""
        return self.union(other).area() - self.area()

    def overlap(self, other: HyperBoundingBox) -> float:
        """Volume of the intersection with ``other``."""
        lo = np.maximum(self._min, other._min)
        hi = np.minimum(self._max, other._max)
        if np.any(lo > hi):
            return 0.0
        return float(np.prod(hi - lo))

    def intersects(self, other: HyperBoundingBox) -> bool:
        return bool(np.all(self._min <= other._max) and np.all(other._min <= self._max))

    def contains_point(self, point: Union[RealVector, ArrayLike]) -> bool:
        p = as_array(point)
        return bool(np.all(self._min <= p) and np.all(p <= self._max))

    def center(self) -> np.ndarray:
        return (self._min + self._max) / 2.0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HyperBoundingBox):
            return NotImplemented
        return bool(
            np.array_equal(self._min, other._min) and np.array_equal(self._max, other._max)
        )

    def __hash__(self) -> int:
        return hash((self._min.tobytes(), self._max.tobytes()))

    def __repr__(self) -> str:
        return f"HyperBoundingBox(min={self._min.tolist()}, max={self._max.tolist()})"
