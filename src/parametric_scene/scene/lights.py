"""Scene lights: the sun, point lights and emissive area lights.

The renderer consumes one light buffer with the sun first and the point
lights after it, plus a separate list of emissive CSG primitives used for
next-event estimation.
"""

import math
from dataclasses import dataclass, field
from enum import IntEnum

from parametric_scene.core.vector import Vec3, normalize

# Sun defaults: warm white, switched off until a scene sets an intensity
DEFAULT_SUN_AZIMUTH = 45.0
DEFAULT_SUN_ELEVATION = 45.0
DEFAULT_SUN_COLOR: Vec3 = (1.0, 0.98, 0.9)
DEFAULT_SUN_INTENSITY = 0.0
DEFAULT_SUN_ANGULAR_RADIUS = 0.53  # degrees, roughly the real sun

DEFAULT_POINT_POSITION: Vec3 = (0.0, 5.0, 0.0)
DEFAULT_POINT_COLOR: Vec3 = (1.0, 1.0, 1.0)
DEFAULT_POINT_INTENSITY = 1.0


class LightType(IntEnum):
    """Light kinds as numbered in the renderer's light buffer."""

    DIRECTIONAL = 0
    POINT = 1


@dataclass(frozen=True)
class Light:
    """One entry of the renderer light buffer.

    Attributes:
        vector: Direction towards the light (directional) or position (point).
        type: Light kind.
        color: RGB colour.
        intensity: Brightness multiplier.
    """

    vector: Vec3
    type: LightType
    color: Vec3 = DEFAULT_POINT_COLOR
    intensity: float = DEFAULT_POINT_INTENSITY

    @classmethod
    def point(
        cls,
        position: Vec3 = DEFAULT_POINT_POSITION,
        color: Vec3 = DEFAULT_POINT_COLOR,
        intensity: float = DEFAULT_POINT_INTENSITY,
    ) -> "Light":
        return cls(vector=position, type=LightType.POINT, color=color, intensity=intensity)


@dataclass(frozen=True)
class SunLight:
    """Directional sun light described by azimuth and elevation in degrees.

    Azimuth 0 points along +Z and 90 along +X; elevation 0 is the horizon
    and 90 the zenith.
    """

    azimuth: float = DEFAULT_SUN_AZIMUTH
    elevation: float = DEFAULT_SUN_ELEVATION
    color: Vec3 = DEFAULT_SUN_COLOR
    intensity: float = DEFAULT_SUN_INTENSITY
    angular_radius: float = DEFAULT_SUN_ANGULAR_RADIUS

    @property
    def direction(self) -> Vec3:
        """Unit vector pointing towards the sun."""
        az = math.radians(self.azimuth)
        el = math.radians(self.elevation)
        return (
            math.sin(az) * math.cos(el),
            math.sin(el),
            math.cos(az) * math.cos(el),
        )

    @staticmethod
    def angles_from_direction(direction: Vec3) -> tuple[float, float] | None:
        """Convert a direction vector to (azimuth, elevation) in degrees.

        Returns:
            The angles, or None if the vector is too short to normalize.
        """
        if math.sqrt(sum(c * c for c in direction)) < 0.001:
            return None
        x, y, z = normalize(direction)
        elevation = math.degrees(math.asin(max(-1.0, min(1.0, y))))
        azimuth = math.degrees(math.atan2(x, z))
        return azimuth, elevation

    def to_light(self) -> Light:
        return Light(vector=self.direction, type=LightType.DIRECTIONAL, color=self.color, intensity=self.intensity)


@dataclass(frozen=True)
class EmissiveLight:
    """A CSG primitive with an emissive material, sampled as an area light.

    Attributes:
        primitive_index: Index into the CSG primitive table.
        node_index: Index of the root node carrying the material.
        area: Closed-form surface area, used for the sampling PDF.
    """

    primitive_index: int
    node_index: int
    area: float


@dataclass
class LightList:
    """All lights of a scene."""

    sun: SunLight = field(default_factory=SunLight)
    point_lights: list[Light] = field(default_factory=list)
    emissive_lights: list[EmissiveLight] = field(default_factory=list)

    def build_buffer(self) -> list[Light]:
        """Return the renderer light buffer: sun first, then point lights."""
        return [self.sun.to_light(), *self.point_lights]

    def point_light_count(self) -> int:
        return len(self.point_lights)

    def emissive_count(self) -> int:
        return len(self.emissive_lights)

    def total_count(self) -> int:
        """Entries in the light buffer (the sun always occupies one)."""
        return 1 + len(self.point_lights)
