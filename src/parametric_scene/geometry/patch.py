"""Bicubic Bezier patches and adaptive de Casteljau subdivision.

A patch is a 4x4 grid of control points stored row-major: index
``row * 4 + col``. The U parameter runs along a row (column index), V
along a column (row index).

Subdivision splits a patch at u=0.5 and then each half at v=0.5, giving
four quadrants that together describe exactly the same surface. The
recursion stops per branch when the depth budget is used up or the
quadrant's padded bounding box diagonal drops below the flatness
threshold, so curved regions end up split deeper than flat ones. The
same padded AABB is stored on each emitted SubPatch so neighbouring
sub-patches overlap.

Example:
    >>> from parametric_scene.geometry.patch import Patch, subdivide_patches
    >>> flat = Patch.from_grid([[(c, r, 0.0) for c in range(4)] for r in range(4)])
    >>> len(subdivide_patches([flat], max_depth=1, flatness=0.0))
    4
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from parametric_scene.core.config import DEFAULT_PATCH_FLATNESS, DEFAULT_PATCH_MAX_DEPTH, DEFAULT_PATCH_PADDING
from parametric_scene.core.vector import Vec3
from parametric_scene.geometry.aabb import AABB

CONTROL_POINT_COUNT = 16


@dataclass(frozen=True)
class Patch:
    """A bicubic Bezier patch.

    Attributes:
        control_points: 16 control points, row-major 4x4.
    """

    control_points: tuple[Vec3, ...]

    def __post_init__(self) -> None:
        if len(self.control_points) != CONTROL_POINT_COUNT:
            raise ValueError(
                f"A bicubic patch needs {CONTROL_POINT_COUNT} control points, "
                f"got {len(self.control_points)}"
            )

    @classmethod
    def from_points(cls, points: Iterable[Iterable[float]]) -> "Patch":
        """Create a patch from 16 row-major (x, y, z) points."""
        return cls(tuple(_as_point(p) for p in points))

    @classmethod
    def from_grid(cls, grid: Sequence[Sequence[Iterable[float]]]) -> "Patch":
        """Create a patch from a 4x4 nested grid indexed [row][col]."""
        return cls.from_points(p for row in grid for p in row)

    @classmethod
    def from_array(cls, arr: npt.ArrayLike) -> "Patch":
        """Create a patch from any array reshapeable to (16, 3)."""
        a = np.asarray(arr, dtype=np.float64).reshape(CONTROL_POINT_COUNT, 3)
        return cls(tuple((float(x), float(y), float(z)) for x, y, z in a))

    def at(self, row: int, col: int) -> Vec3:
        """Return the control point at (row, col)."""
        return self.control_points[row * 4 + col]

    def as_array(self) -> npt.NDArray[np.float64]:
        """Return the control points as a (4, 4, 3) array indexed [row, col]."""
        return np.array(self.control_points, dtype=np.float64).reshape(4, 4, 3)

    def bounds(self, padding: float = 0.0) -> AABB:
        """Bounds of the control net (which contains the surface)."""
        return AABB.from_points(self.control_points, padding=padding)


@dataclass(frozen=True)
class SubPatch:
    """A leaf patch produced by subdivision, with precomputed padded bounds."""

    control_points: tuple[Vec3, ...]
    bounds: AABB

    def as_patch(self) -> Patch:
        return Patch(self.control_points)


def _as_point(p: Iterable[float]) -> Vec3:
    x, y, z = p
    return (float(x), float(y), float(z))


# =============================================================================
# De Casteljau splitting
# =============================================================================


def split_cubic(points: npt.ArrayLike) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Split cubic Bezier curves at t=0.5.

    Args:
        points: Array of shape (4, ...) holding the four control points
            along the first axis. Extra trailing axes are split together,
            so a whole row or column of a patch is handled in one call.

    Returns:
        (first_half, second_half), each with the input's shape. The
        halves share the curve midpoint.
    """
    p = np.asarray(points, dtype=np.float64)
    q0 = (p[0] + p[1]) * 0.5
    q1 = (p[1] + p[2]) * 0.5
    q2 = (p[2] + p[3]) * 0.5
    r0 = (q0 + q1) * 0.5
    r1 = (q1 + q2) * 0.5
    s = (r0 + r1) * 0.5
    return np.stack([p[0], q0, r0, s]), np.stack([s, r1, q2, p[3]])


def _split_u(grid: npt.NDArray[np.float64]) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    # Columns along the first axis, then back to [row, col]
    left, right = split_cubic(grid.transpose(1, 0, 2))
    return left.transpose(1, 0, 2), right.transpose(1, 0, 2)


def _split_v(grid: npt.NDArray[np.float64]) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    return split_cubic(grid)


def _quadrants(grid: npt.NDArray[np.float64]) -> tuple[npt.NDArray[np.float64], ...]:
    left, right = _split_u(grid)
    bottom_left, top_left = _split_v(left)
    bottom_right, top_right = _split_v(right)
    return bottom_left, top_left, bottom_right, top_right


def subdivide_patch(patch: Patch) -> tuple[Patch, Patch, Patch, Patch]:
    """Split a patch into four quadrants.

    Returns:
        Quadrants ordered (u-low v-low, u-low v-high, u-high v-low,
        u-high v-high).
    """
    return tuple(Patch.from_array(q) for q in _quadrants(patch.as_array()))  # type: ignore[return-value]


def evaluate_patch(patch: Patch, u: float, v: float) -> Vec3:
    """Evaluate the surface point at parameters (u, v) in [0, 1]^2."""
    bu = _bernstein(u)
    bv = _bernstein(v)
    point = np.einsum("r,c,rck->k", bv, bu, patch.as_array())
    return (float(point[0]), float(point[1]), float(point[2]))


def _bernstein(t: float) -> npt.NDArray[np.float64]:
    s = 1.0 - t
    return np.array([s * s * s, 3.0 * s * s * t, 3.0 * s * t * t, t * t * t])


# =============================================================================
# Adaptive subdivision
# =============================================================================


def _subdivide_recursive(
    grid: npt.NDArray[np.float64],
    depth: int,
    max_depth: int,
    flatness: float,
    padding: float,
    result: list[SubPatch],
) -> None:
    points = grid.reshape(CONTROL_POINT_COUNT, 3)
    bounds = AABB.from_points(points, padding=padding)

    if depth >= max_depth or bounds.diagonal() < flatness:
        result.append(
            SubPatch(
                control_points=tuple((float(x), float(y), float(z)) for x, y, z in points),
                bounds=bounds,
            )
        )
        return

    for quadrant in _quadrants(grid):
        _subdivide_recursive(quadrant, depth + 1, max_depth, flatness, padding, result)


def subdivide(
    patch: Patch,
    max_depth: int = DEFAULT_PATCH_MAX_DEPTH,
    flatness: float = DEFAULT_PATCH_FLATNESS,
    padding: float = DEFAULT_PATCH_PADDING,
) -> list[SubPatch]:
    """Adaptively subdivide one patch.

    Args:
        patch: The patch to subdivide.
        max_depth: Maximum recursion depth (0 emits the patch as-is).
        flatness: Stop splitting once the padded AABB diagonal is
            below this value.
        padding: Outward padding of each sub-patch AABB, applied before the
            flatness test.

    Returns:
        Between 1 and 4**max_depth sub-patches, in depth-first order.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")
    result: list[SubPatch] = []
    _subdivide_recursive(patch.as_array(), 0, max_depth, flatness, padding, result)
    return result


def subdivide_patches(
    patches: Iterable[Patch],
    max_depth: int = DEFAULT_PATCH_MAX_DEPTH,
    flatness: float = DEFAULT_PATCH_FLATNESS,
    padding: float = DEFAULT_PATCH_PADDING,
) -> list[SubPatch]:
    """Subdivide every patch and concatenate the results in input order."""
    result: list[SubPatch] = []
    for patch in patches:
        result.extend(subdivide(patch, max_depth, flatness, padding))
    return result
