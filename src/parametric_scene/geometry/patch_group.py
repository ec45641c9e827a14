"""Groups of Bezier patches ready for direct GPU ray intersection.

A PatchGroup is built once from raw patches (subdivision followed by a
BVH over the sub-patches) and then instanced any number of times through
BezierInstance placement records.

Example:
    >>> from parametric_scene.geometry.patch_group import PatchGroup
    >>> group = PatchGroup.build(patches)  # doctest: +SKIP
    >>> group.sub_patch_count(), group.bvh_node_count()  # doctest: +SKIP
    (512, 255)
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from parametric_scene.core.config import BuildConfig
from parametric_scene.core.vector import ZERO, Vec3
from parametric_scene.geometry.bvh import BVH, BVHNode, build_patch_bvh
from parametric_scene.geometry.patch import CONTROL_POINT_COUNT, Patch, SubPatch, subdivide_patches

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BezierInstance:
    """Placement of a patch group in the scene.

    Attributes:
        position: World-space translation.
        scale: Uniform scale.
        rotation: Euler angles in radians, applied in XYZ order.
        material_id: Index into the material library.
        group: Name of the patch group being placed.
    """

    position: Vec3 = ZERO
    scale: float = 1.0
    rotation: Vec3 = ZERO
    material_id: int = 0
    group: str = ""


class PatchGroup:
    """Subdivided Bezier patches plus their BVH.

    Attributes:
        source_count: Number of patches the group was built from.
        sub_patches: Leaf sub-patches in subdivision order.
        bvh: Hierarchy over `sub_patches`.
    """

    def __init__(self, source_count: int, sub_patches: Sequence[SubPatch], bvh: BVH) -> None:
        self.source_count = source_count
        self.sub_patches: tuple[SubPatch, ...] = tuple(sub_patches)
        self.bvh = bvh

    @classmethod
    def build(cls, patches: Sequence[Patch], config: BuildConfig | None = None) -> "PatchGroup":
        """Subdivide patches and build the sub-patch BVH.

        Args:
            patches: Raw bicubic patches.
            config: Build settings (defaults to BuildConfig()).

        Returns:
            The built group.
        """
        config = config or BuildConfig()
        sub_patches = subdivide_patches(
            patches,
            max_depth=config.patch_max_depth,
            flatness=config.patch_flatness,
            padding=config.patch_padding,
        )
        bvh = build_patch_bvh([sp.bounds for sp in sub_patches], config)
        logger.info(
            "PatchGroup: %d patches -> %d sub-patches, %d BVH nodes",
            len(patches),
            len(sub_patches),
            bvh.node_count(),
        )
        return cls(len(patches), sub_patches, bvh)

    def sub_patch_count(self) -> int:
        return len(self.sub_patches)

    def bvh_node_count(self) -> int:
        return self.bvh.node_count()

    @property
    def bvh_nodes(self) -> tuple[BVHNode, ...]:
        return self.bvh.nodes

    @property
    def patch_indices(self) -> tuple[int, ...]:
        return self.bvh.indices

    def pack_patch_data(self) -> npt.NDArray[np.float32]:
        """Pack control points as 16 vec4 per sub-patch (w = 0).

        Returns:
            A float32 array of shape (sub_patch_count, 16, 4).
        """
        data = np.zeros((len(self.sub_patches), CONTROL_POINT_COUNT, 4), dtype=np.float32)
        if self.sub_patches:
            data[:, :, :3] = np.array([sp.control_points for sp in self.sub_patches], dtype=np.float32)
        return data
