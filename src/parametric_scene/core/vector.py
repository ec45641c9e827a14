"""Vector utilities for the CPU-side scene pipeline.

Vectors are represented as plain ``(x, y, z)`` tuples of floats. The
helpers here cover what the loader and the CSG graph need; anything that
touches many points at once (patch subdivision, bound unions) goes
through numpy instead.

Example:
    >>> from parametric_scene.core.vector import vec3, length, normalize
    >>> v = vec3(3, 0, 4)
    >>> length(v)
    5.0
    >>> normalize(v)
    (0.6, 0.0, 0.8)
"""

import math
from collections.abc import Iterable

# Type alias for 3D vectors
Vec3 = tuple[float, float, float]

ZERO: Vec3 = (0.0, 0.0, 0.0)


def vec3(x: float, y: float, z: float) -> Vec3:
    """Create a vector, coercing each component to float."""
    return (float(x), float(y), float(z))


def as_vec3(values: Iterable[float]) -> Vec3:
    """Convert any 3-element iterable to a Vec3.

    Raises:
        ValueError: If the iterable does not have exactly three elements.
    """
    items = tuple(float(v) for v in values)
    if len(items) != 3:
        raise ValueError(f"Expected 3 components, got {len(items)}")
    return items  # type: ignore[return-value]


def add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def sub(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def scale(v: Vec3, s: float) -> Vec3:
    return (v[0] * s, v[1] * s, v[2] * s)


def dot(a: Vec3, b: Vec3) -> float:
    """Compute the dot product a . b."""
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross(a: Vec3, b: Vec3) -> Vec3:
    """Compute the cross product a x b."""
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def length(v: Vec3) -> float:
    """Compute the Euclidean length of a vector."""
    return math.sqrt(dot(v, v))


def normalize(v: Vec3) -> Vec3:
    """Normalize a vector to unit length.

    Returns:
        A unit vector in the same direction as v.
        If v is zero-length, returns a zero vector.
    """
    n = length(v)
    if n == 0.0:
        return ZERO
    return (v[0] / n, v[1] / n, v[2] / n)


def lerp(a: Vec3, b: Vec3, t: float) -> Vec3:
    """Linearly interpolate between a (t=0) and b (t=1)."""
    return (
        a[0] + (b[0] - a[0]) * t,
        a[1] + (b[1] - a[1]) * t,
        a[2] + (b[2] - a[2]) * t,
    )


def deg_to_rad(v: Vec3) -> Vec3:
    """Convert a vector of Euler angles from degrees to radians."""
    return (math.radians(v[0]), math.radians(v[1]), math.radians(v[2]))
