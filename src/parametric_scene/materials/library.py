"""Material records and the append-only material library.

Materials are referenced everywhere else by integer index. The library
never removes a record, so an index handed out once stays valid for the
lifetime of the library.

Example:
    >>> lib = MaterialLibrary()
    >>> red = lib.add(Material(albedo=(0.8, 0.1, 0.1)), name="red")
    >>> lib.find("red"), lib.count()
    (0, 1)
"""

import logging
from dataclasses import asdict, dataclass
from enum import IntEnum
from typing import Any

from parametric_scene.core.vector import Vec3

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Material kinds, numbered as the renderer's shading switch expects."""

    DIFFUSE = 0
    METAL = 1
    GLASS = 2
    EMISSIVE = 3
    CHECKER = 4

    @classmethod
    def from_name(cls, name: str) -> "MaterialType":
        """Look up a type by its scene-language name.

        Raises:
            KeyError: If the name is not a known material type.
        """
        return _TYPE_NAMES[name.lower()]


_TYPE_NAMES = {
    "diffuse": MaterialType.DIFFUSE,
    "metal": MaterialType.METAL,
    "glass": MaterialType.GLASS,
    "dielectric": MaterialType.GLASS,
    "emissive": MaterialType.EMISSIVE,
    "checker": MaterialType.CHECKER,
}

# Defaults applied before a `material` form's properties are merged in
DEFAULT_ALBEDO: Vec3 = (0.8, 0.8, 0.8)
DEFAULT_ROUGHNESS = 0.5
DEFAULT_METALLIC = 0.0
DEFAULT_IOR = 1.5
DEFAULT_EMISSIVE = 0.0
DEFAULT_ALBEDO2: Vec3 = (0.0, 0.0, 0.0)
DEFAULT_PATTERN_SCALE = 1.0


@dataclass(frozen=True)
class Material:
    """A single material record.

    Attributes:
        albedo: Base colour (RGB in [0, 1]).
        type: Shading model.
        roughness: Surface roughness for metals.
        metallic: Metalness blend factor.
        ior: Index of refraction for glass.
        emissive: Emission strength; emitted radiance is albedo * emissive.
        albedo2: Second colour of a checker pattern.
        pattern_scale: Checker cell size.
    """

    albedo: Vec3 = DEFAULT_ALBEDO
    type: MaterialType = MaterialType.DIFFUSE
    roughness: float = DEFAULT_ROUGHNESS
    metallic: float = DEFAULT_METALLIC
    ior: float = DEFAULT_IOR
    emissive: float = DEFAULT_EMISSIVE
    albedo2: Vec3 = DEFAULT_ALBEDO2
    pattern_scale: float = DEFAULT_PATTERN_SCALE

    @property
    def emission(self) -> Vec3:
        """Emitted radiance colour."""
        return (
            self.albedo[0] * self.emissive,
            self.albedo[1] * self.emissive,
            self.albedo[2] * self.emissive,
        )

    def is_emissive(self) -> bool:
        return self.type == MaterialType.EMISSIVE

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.name.lower()
        data["albedo"] = list(self.albedo)
        data["albedo2"] = list(self.albedo2)
        return data


class MaterialLibrary:
    """Append-only table of materials with a name -> index lookup.

    Attributes:
        materials: Records in insertion order.
    """

    def __init__(self) -> None:
        self.materials: list[Material] = []
        self._by_name: dict[str, int] = {}
        self._names: dict[int, str] = {}

    def add(self, material: Material, name: str | None = None) -> int:
        """Append a material, optionally binding a name to it.

        Re-using a name rebinds it to the new record; the old record keeps
        its index.

        Returns:
            Index of the new material.
        """
        index = len(self.materials)
        self.materials.append(material)
        if name is not None:
            if name in self._by_name:
                logger.debug("Material %r redefined (index %d -> %d)", name, self._by_name[name], index)
            self._by_name[name] = index
            self._names[index] = name
        return index

    def find(self, name: str) -> int:
        """Return the index bound to ``name``, or 0 if there is none."""
        return self._by_name.get(name, 0)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, index: int) -> Material:
        """Return the material at ``index``.

        Raises:
            IndexError: If the index is out of range.
        """
        if not 0 <= index < len(self.materials):
            raise IndexError(f"Material index {index} out of range (count={len(self.materials)})")
        return self.materials[index]

    def name_for_index(self, index: int) -> str:
        """Return the name bound to ``index``, or an empty string."""
        return self._names.get(index, "")

    def names(self) -> dict[str, int]:
        """Return a copy of the name -> index map."""
        return dict(self._by_name)

    def count(self) -> int:
        return len(self.materials)

    def clear(self) -> None:
        self.materials.clear()
        self._by_name.clear()
        self._names.clear()

    def __len__(self) -> int:
        return len(self.materials)
