"""The scene document produced by a successful load.

A SceneDocument gathers everything the renderer needs: the material
library, the CSG graph, named groups of raw Bezier patches, patch
instances, lights and the optional ground plane. It is assembled once by
the loader (or programmatically) and then only read.

Example:
    >>> from parametric_scene.scene.loader import load_string
    >>> doc = load_string('(material red (albedo 0.8 0.1 0.1)) (shape (sphere (r 1)) red)')
    >>> doc.summary()["roots"]
    1
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from parametric_scene.core.config import BuildConfig
from parametric_scene.core.vector import ZERO, Vec3
from parametric_scene.geometry.bvh import BVH, build_csg_bvh
from parametric_scene.geometry.csg import CSGScene, PrimitiveNode
from parametric_scene.geometry.patch import Patch
from parametric_scene.geometry.patch_group import BezierInstance, PatchGroup
from parametric_scene.materials.library import MaterialLibrary, MaterialType
from parametric_scene.scene.lights import EmissiveLight, LightList

logger = logging.getLogger(__name__)

DEFAULT_FLOOR_Y = -1.0


@dataclass(frozen=True)
class PatchInstance:
    """Placement of a named patch group, as written in the scene.

    Attributes:
        group: Name of the patch group.
        position: World-space translation.
        scale: Uniform scale.
        rotation: Euler angles in radians.
        material: Material name, resolved against the library on demand.
    """

    group: str
    position: Vec3 = ZERO
    scale: float = 1.0
    rotation: Vec3 = ZERO
    material: str = ""


@dataclass(frozen=True)
class FloorSettings:
    """Scene-defined ground plane; disabled unless a `floor` form appears."""

    enabled: bool = False
    y: float = DEFAULT_FLOOR_Y
    material: str = ""


def find_emissive_lights(csg: CSGScene, materials: MaterialLibrary) -> list[EmissiveLight]:
    """Derive area lights from roots that are single emissive primitives.

    Only roots whose node is a PrimitiveNode qualify; the area is the
    primitive's closed-form surface area times its scale squared.
    """
    lights: list[EmissiveLight] = []
    for root in csg.roots:
        node = csg.nodes[root]
        if not isinstance(node, PrimitiveNode):
            continue
        if not 0 <= node.material_id < materials.count():
            continue
        if materials.get(node.material_id).type != MaterialType.EMISSIVE:
            continue
        lights.append(
            EmissiveLight(
                primitive_index=node.primitive,
                node_index=root,
                area=csg.primitive_surface_area(node.primitive),
            )
        )
    return lights


@dataclass(frozen=True)
class SceneDocument:
    """Complete, self-contained scene description.

    Attributes:
        materials: Material library.
        csg: CSG graph with its roots.
        patch_groups: Raw patches by group name, in definition order.
        patch_instances: Placements of patch groups.
        lights: Sun, point and emissive lights.
        floor: Ground plane settings.
        source_files: Files read to build the document (root first).
    """

    materials: MaterialLibrary = field(default_factory=MaterialLibrary)
    csg: CSGScene = field(default_factory=CSGScene)
    patch_groups: Mapping[str, list[Patch]] = field(default_factory=dict)
    patch_instances: list[PatchInstance] = field(default_factory=list)
    lights: LightList = field(default_factory=LightList)
    floor: FloorSettings = field(default_factory=FloorSettings)
    source_files: tuple[str, ...] = ()

    # =========================================================================
    # Derived data
    # =========================================================================

    def build_instances(self) -> list[BezierInstance]:
        """Resolve instance material names to indices (unknown names map to 0)."""
        return [
            BezierInstance(
                position=inst.position,
                scale=inst.scale,
                rotation=inst.rotation,
                material_id=self.materials.find(inst.material),
                group=inst.group,
            )
            for inst in self.patch_instances
        ]

    def all_patches(self) -> list[Patch]:
        """Concatenate the patches of every group in definition order."""
        result: list[Patch] = []
        for patches in self.patch_groups.values():
            result.extend(patches)
        return result

    def emissive_lights(self) -> list[EmissiveLight]:
        return find_emissive_lights(self.csg, self.materials)

    def undefined_instance_groups(self) -> list[str]:
        """Names referenced by instances that no `patches` form defines."""
        missing: list[str] = []
        for inst in self.patch_instances:
            if inst.group not in self.patch_groups and inst.group not in missing:
                missing.append(inst.group)
        return missing

    def build_csg_bvh(self, config: BuildConfig | None = None) -> BVH:
        """Build the BVH over the CSG roots."""
        return build_csg_bvh(self.csg.root_aabbs(), config)

    def build_patch_groups(self, config: BuildConfig | None = None) -> dict[str, PatchGroup]:
        """Subdivide every named group and build its sub-patch BVH."""
        return {name: PatchGroup.build(patches, config) for name, patches in self.patch_groups.items()}

    # =========================================================================
    # Reporting
    # =========================================================================

    def summary(self) -> dict[str, int]:
        """Table sizes, as reported by the validation CLI."""
        return {
            "materials": self.materials.count(),
            "primitives": self.csg.primitive_count(),
            "nodes": self.csg.node_count(),
            "roots": self.csg.root_count(),
            "patch_groups": len(self.patch_groups),
            "patches": sum(len(p) for p in self.patch_groups.values()),
            "instances": len(self.patch_instances),
            "point_lights": self.lights.point_light_count(),
            "emissive_lights": self.lights.emissive_count(),
        }

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable view of every table."""
        csg = self.csg
        nodes: list[dict[str, Any]] = []
        for node in csg.nodes:
            entry: dict[str, Any] = {"type": node.type.name.lower(), "material": node.material_id}
            if isinstance(node, PrimitiveNode):
                entry["primitive"] = node.primitive
            else:
                entry["left"] = node.left
                entry["right"] = node.right
            nodes.append(entry)

        sun = self.lights.sun
        return {
            "materials": [
                {"name": self.materials.name_for_index(i), **m.to_dict()}
                for i, m in enumerate(self.materials.materials)
            ],
            "primitives": [
                {"type": p.type.name.lower(), "center": list(p.center), "params": list(p.params)}
                for p in csg.primitives
            ],
            "transforms": [{"rotation": list(t.rotation), "scale": t.scale} for t in csg.transforms],
            "nodes": nodes,
            "roots": list(csg.roots),
            "patch_groups": {
                name: [[list(cp) for cp in p.control_points] for p in patches]
                for name, patches in self.patch_groups.items()
            },
            "instances": [
                {
                    "group": inst.group,
                    "position": list(inst.position),
                    "scale": inst.scale,
                    "rotation": list(inst.rotation),
                    "material": inst.material,
                }
                for inst in self.patch_instances
            ],
            "lights": {
                "sun": {
                    "azimuth": sun.azimuth,
                    "elevation": sun.elevation,
                    "color": list(sun.color),
                    "intensity": sun.intensity,
                    "angular_radius": sun.angular_radius,
                },
                "point": [
                    {"position": list(l.vector), "color": list(l.color), "intensity": l.intensity}
                    for l in self.lights.point_lights
                ],
                "emissive": [
                    {"primitive": e.primitive_index, "node": e.node_index, "area": e.area}
                    for e in self.lights.emissive_lights
                ],
            },
            "floor": {"enabled": self.floor.enabled, "y": self.floor.y, "material": self.floor.material},
        }
