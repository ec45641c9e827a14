"""Analytic CSG primitives: shape records, transforms, bounds and areas.

Each primitive stores a center point, a type tag and up to three shape
parameters. Its placement beyond the center (Euler rotation and uniform
scale) lives in a separate CSGTransform so renderers can animate
transforms without touching shape data.

Parameter conventions (shared with the GPU intersection code):

    ========  ==========  ==========  ========  ==============================
    Type      param0      param1      param2    Placement of `center`
    ========  ==========  ==========  ========  ==============================
    sphere    radius      -           -         sphere center
    box       half x      half y      half z    box center
    cylinder  radius      height      -         center of the base disc (+Y up)
    cone      radius      height      -         center of the base disc (+Y up)
    torus     major R     minor r     -         ring center (ring in XZ plane)
    ========  ==========  ==========  ========  ==============================

Rotation and scale pivot around `center`.
"""

import math
from dataclasses import dataclass, field
from enum import IntEnum

from parametric_scene.core.vector import ZERO, Vec3
from parametric_scene.geometry.aabb import AABB


class PrimitiveType(IntEnum):
    """Primitive type tags (values match the shader)."""

    SPHERE = 0
    BOX = 1
    CYLINDER = 2
    CONE = 3
    TORUS = 4


@dataclass(frozen=True)
class CSGPrimitive:
    """Immutable shape parameters for one primitive.

    Attributes:
        center: Anchor point of the primitive (see module table).
        type: The primitive type tag.
        params: Up to three shape parameters; unused slots are 0.
    """

    center: Vec3
    type: PrimitiveType
    params: tuple[float, float, float] = (0.0, 0.0, 0.0)


@dataclass
class CSGTransform:
    """Mutable placement of a primitive.

    Attributes:
        rotation: Euler angles in radians, applied in XYZ order.
        scale: Uniform scale factor (must be positive).
    """

    rotation: Vec3 = field(default=ZERO)
    scale: float = 1.0

    @property
    def is_rotated(self) -> bool:
        """True if any rotation angle is non-zero."""
        return any(angle != 0.0 for angle in self.rotation)


IDENTITY_TRANSFORM = CSGTransform()


def local_bounds(prim: CSGPrimitive) -> AABB:
    """Compute the tight, untransformed bounds of a primitive in world space.

    Args:
        prim: The primitive.

    Returns:
        The AABB at scale 1 with no rotation.
    """
    cx, cy, cz = prim.center
    p0, p1, p2 = prim.params
    if prim.type == PrimitiveType.SPHERE:
        return AABB.around(prim.center, (p0, p0, p0))
    if prim.type == PrimitiveType.BOX:
        return AABB.around(prim.center, (p0, p1, p2))
    if prim.type in (PrimitiveType.CYLINDER, PrimitiveType.CONE):
        return AABB((cx - p0, cy, cz - p0), (cx + p0, cy + p1, cz + p0))
    if prim.type == PrimitiveType.TORUS:
        outer = p0 + p1
        return AABB.around(prim.center, (outer, p1, outer))
    raise ValueError(f"Unknown primitive type: {prim.type!r}")


def primitive_bounds(prim: CSGPrimitive, transform: CSGTransform = IDENTITY_TRANSFORM) -> AABB:
    """Compute a conservative world-space AABB for a transformed primitive.

    Uniform scale is applied exactly around the center. Rotated primitives
    fall back to the box enclosing the sphere that reaches the farthest
    corner of the scaled local box, which holds for any rotation.

    Args:
        prim: The primitive.
        transform: Its transform (identity by default).

    Returns:
        The world-space bounds.
    """
    box = local_bounds(prim)
    c = prim.center
    s = transform.scale
    lo = tuple(c[i] + (box.min[i] - c[i]) * s for i in range(3))
    hi = tuple(c[i] + (box.max[i] - c[i]) * s for i in range(3))

    if not transform.is_rotated:
        return AABB(lo, hi)  # type: ignore[arg-type]

    reach = [max(abs(lo[i] - c[i]), abs(hi[i] - c[i])) for i in range(3)]
    radius = math.sqrt(reach[0] ** 2 + reach[1] ** 2 + reach[2] ** 2)
    return AABB.around(c, (radius, radius, radius))


def surface_area(prim: CSGPrimitive, scale: float = 1.0) -> float:
    """Compute the closed-form surface area of a primitive.

    Rotation never changes the area; uniform scale multiplies it by scale^2.
    Cylinders and cones include their cap discs.

    Args:
        prim: The primitive.
        scale: Uniform scale factor.

    Returns:
        The surface area.
    """
    p0, p1, p2 = prim.params
    if prim.type == PrimitiveType.SPHERE:
        area = 4.0 * math.pi * p0 * p0
    elif prim.type == PrimitiveType.BOX:
        area = 8.0 * (p0 * p1 + p1 * p2 + p2 * p0)
    elif prim.type == PrimitiveType.CYLINDER:
        area = 2.0 * math.pi * p0 * p1 + 2.0 * math.pi * p0 * p0
    elif prim.type == PrimitiveType.CONE:
        slant = math.sqrt(p0 * p0 + p1 * p1)
        area = math.pi * p0 * (p0 + slant)
    elif prim.type == PrimitiveType.TORUS:
        area = 4.0 * math.pi * math.pi * p0 * p1
    else:
        raise ValueError(f"Unknown primitive type: {prim.type!r}")
    return area * scale * scale
