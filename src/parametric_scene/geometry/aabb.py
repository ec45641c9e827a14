"""Axis-aligned bounding boxes.

AABB values are immutable: every operation returns a new box. The empty
box has inverted infinite corners so that it is the identity for union.

Example:
    >>> from parametric_scene.geometry.aabb import AABB
    >>> a = AABB((0, 0, 0), (1, 1, 1))
    >>> b = AABB((2, 0, 0), (3, 1, 1))
    >>> a.union(b)
    AABB(min=(0, 0, 0), max=(3, 1, 1))
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from parametric_scene.core.vector import Vec3

_INF = math.inf


@dataclass(frozen=True)
class AABB:
    """An axis-aligned bounding box.

    Attributes:
        min: The minimum corner (x, y, z).
        max: The maximum corner (x, y, z).
    """

    min: Vec3
    max: Vec3

    @classmethod
    def empty(cls) -> "AABB":
        """Create an empty box (identity element for union)."""
        return cls((_INF, _INF, _INF), (-_INF, -_INF, -_INF))

    @classmethod
    def around(cls, center: Vec3, half_extents: Vec3) -> "AABB":
        """Create a box centered at `center` with the given half-extents."""
        return cls(
            (center[0] - half_extents[0], center[1] - half_extents[1], center[2] - half_extents[2]),
            (center[0] + half_extents[0], center[1] + half_extents[1], center[2] + half_extents[2]),
        )

    @classmethod
    def from_points(cls, points: Iterable[Vec3] | npt.ArrayLike, padding: float = 0.0) -> "AABB":
        """Create the tightest box containing all points, grown by `padding`.

        Args:
            points: Any array-like of shape (N, 3), N >= 1.
            padding: Distance to push every face outward.

        Raises:
            ValueError: If no points are given.
        """
        if not isinstance(points, np.ndarray):
            points = list(points)
        arr = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if arr.shape[0] == 0:
            raise ValueError("Cannot compute bounds of an empty point set")
        lo = arr.min(axis=0) - padding
        hi = arr.max(axis=0) + padding
        return cls(_to_vec3(lo), _to_vec3(hi))

    @classmethod
    def from_array(cls, arr: npt.ArrayLike) -> "AABB":
        """Create a box from a (2, 3) array of [min, max] rows."""
        a = np.asarray(arr, dtype=np.float64).reshape(2, 3)
        return cls(_to_vec3(a[0]), _to_vec3(a[1]))

    def is_empty(self) -> bool:
        """Return True if the box contains no points."""
        return any(self.min[i] > self.max[i] for i in range(3))

    def union(self, other: "AABB") -> "AABB":
        """Return the smallest box containing both boxes."""
        return AABB(
            (
                min(self.min[0], other.min[0]),
                min(self.min[1], other.min[1]),
                min(self.min[2], other.min[2]),
            ),
            (
                max(self.max[0], other.max[0]),
                max(self.max[1], other.max[1]),
                max(self.max[2], other.max[2]),
            ),
        )

    def padded(self, amount: float) -> "AABB":
        """Return the box with every face pushed outward by `amount`."""
        return AABB(
            (self.min[0] - amount, self.min[1] - amount, self.min[2] - amount),
            (self.max[0] + amount, self.max[1] + amount, self.max[2] + amount),
        )

    def extent(self) -> Vec3:
        """Return the size of the box along each axis."""
        return (
            self.max[0] - self.min[0],
            self.max[1] - self.min[1],
            self.max[2] - self.min[2],
        )

    def diagonal(self) -> float:
        """Return the length of the box diagonal."""
        ex, ey, ez = self.extent()
        return math.sqrt(ex * ex + ey * ey + ez * ez)

    def centroid(self) -> Vec3:
        """Return the center point of the box."""
        return (
            (self.min[0] + self.max[0]) * 0.5,
            (self.min[1] + self.max[1]) * 0.5,
            (self.min[2] + self.max[2]) * 0.5,
        )

    def longest_axis(self) -> int:
        """Return the index (0=x, 1=y, 2=z) of the largest extent.

        Ties resolve toward x, then z.
        """
        ex, ey, ez = self.extent()
        if ey > ex and ey > ez:
            return 1
        if ez > ex:
            return 2
        return 0

    def contains(self, other: "AABB", tolerance: float = 0.0) -> bool:
        """Return True if `other` lies inside this box (grown by `tolerance`)."""
        return all(
            self.min[i] - tolerance <= other.min[i] and other.max[i] <= self.max[i] + tolerance
            for i in range(3)
        )

    def as_array(self) -> npt.NDArray[np.float64]:
        """Return the box as a (2, 3) array of [min, max] rows."""
        return np.array([self.min, self.max], dtype=np.float64)


def union_all(boxes: Iterable[AABB]) -> AABB:
    """Return the union of any number of boxes (empty box for none)."""
    result = AABB.empty()
    for box in boxes:
        result = result.union(box)
    return result


def _to_vec3(arr: npt.NDArray[np.float64]) -> Vec3:
    return (float(arr[0]), float(arr[1]), float(arr[2]))
