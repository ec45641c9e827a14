"""Flat, fixed-layout arrays for bulk upload to the renderer.

Every table of a SceneDocument is packed into a numpy structured array
whose layout matches the renderer's std430 structs byte for byte. Records
hold only numbers and integer indices into sibling arrays, never
pointers, so each array can be copied to a GPU buffer as-is.

Layouts (bytes):

    MATERIAL_DTYPE        32  albedo[3] type roughness metallic ior emissive
    PRIMITIVE_DTYPE       32  center[3] type params[3] pad
    TRANSFORM_DTYPE       16  rotation[3] scale
    NODE_DTYPE            16  type left right material_id
    BVH_NODE_DTYPE        32  min[3] left_or_first max[3] right_or_count
    INSTANCE_DTYPE        48  position[3] scale rotation[3] material_id
                              group patch_first patch_count bvh_root
    PATCH_GROUP_DTYPE     16  patch_first patch_count bvh_root bvh_node_count
    LIGHT_DTYPE           32  vector[3] type color[3] intensity
    EMISSIVE_LIGHT_DTYPE  16  primitive_index node_index area pad
    ENVIRONMENT_DTYPE     16  floor_enabled floor_y floor_material sun_angular_radius

Checker materials reuse the scalar slots: the second colour goes into
roughness/metallic/ior and the pattern scale into emissive.

Each patch group is subdivided and given its own BVH. The groups are then
concatenated in definition order into one sub-patch buffer, one node
buffer and one index buffer, with every index shifted so it stays valid in
the combined arrays. A group's table entry (and every instance of it)
records where its sub-patches and BVH root live. An instance of an
undefined group has group NO_GROUP and patch_count 0.

Example:
    >>> from parametric_scene.export.arrays import pack_scene, save_npz
    >>> arrays = pack_scene(doc)  # doctest: +SKIP
    >>> save_npz(arrays, "scene.npz")  # doctest: +SKIP
"""

import logging
import os
from dataclasses import dataclass, fields

import numpy as np
import numpy.typing as npt

from parametric_scene.core.config import BuildConfig
from parametric_scene.geometry.bvh import BVH, LEAF_FLAG, BVHLeaf
from parametric_scene.geometry.csg import PrimitiveNode
from parametric_scene.geometry.patch_group import BezierInstance, PatchGroup
from parametric_scene.materials.library import Material, MaterialType
from parametric_scene.scene.document import SceneDocument

logger = logging.getLogger(__name__)

# =============================================================================
# Record layouts
# =============================================================================

MATERIAL_DTYPE = np.dtype(
    [
        ("albedo", np.float32, (3,)),
        ("type", np.uint32),
        ("roughness", np.float32),
        ("metallic", np.float32),
        ("ior", np.float32),
        ("emissive", np.float32),
    ],
    align=True,
)

PRIMITIVE_DTYPE = np.dtype(
    [
        ("center", np.float32, (3,)),
        ("type", np.uint32),
        ("params", np.float32, (3,)),
        ("_pad", np.float32),
    ],
    align=True,
)

TRANSFORM_DTYPE = np.dtype(
    [
        ("rotation", np.float32, (3,)),
        ("scale", np.float32),
    ],
    align=True,
)

NODE_DTYPE = np.dtype(
    [
        ("type", np.uint32),
        ("left", np.uint32),
        ("right", np.uint32),
        ("material_id", np.uint32),
    ],
    align=True,
)

BVH_NODE_DTYPE = np.dtype(
    [
        ("min", np.float32, (3,)),
        ("left_or_first", np.uint32),
        ("max", np.float32, (3,)),
        ("right_or_count", np.uint32),
    ],
    align=True,
)

INSTANCE_DTYPE = np.dtype(
    [
        ("position", np.float32, (3,)),
        ("scale", np.float32),
        ("rotation", np.float32, (3,)),
        ("material_id", np.uint32),
        ("group", np.uint32),
        ("patch_first", np.uint32),
        ("patch_count", np.uint32),
        ("bvh_root", np.uint32),
    ],
    align=True,
)

PATCH_GROUP_DTYPE = np.dtype(
    [
        ("patch_first", np.uint32),
        ("patch_count", np.uint32),
        ("bvh_root", np.uint32),
        ("bvh_node_count", np.uint32),
    ],
    align=True,
)

# Group index of an instance whose group is not defined
NO_GROUP = 0xFFFFFFFF

LIGHT_DTYPE = np.dtype(
    [
        ("vector", np.float32, (3,)),
        ("type", np.uint32),
        ("color", np.float32, (3,)),
        ("intensity", np.float32),
    ],
    align=True,
)

EMISSIVE_LIGHT_DTYPE = np.dtype(
    [
        ("primitive_index", np.uint32),
        ("node_index", np.uint32),
        ("area", np.float32),
        ("_pad", np.float32),
    ],
    align=True,
)

ENVIRONMENT_DTYPE = np.dtype(
    [
        ("floor_enabled", np.uint32),
        ("floor_y", np.float32),
        ("floor_material", np.uint32),
        ("sun_angular_radius", np.float32),
    ],
    align=True,
)


@dataclass
class SceneArrays:
    """Every renderer buffer for one scene."""

    materials: npt.NDArray[np.void]
    primitives: npt.NDArray[np.void]
    transforms: npt.NDArray[np.void]
    nodes: npt.NDArray[np.void]
    roots: npt.NDArray[np.uint32]
    csg_bvh_nodes: npt.NDArray[np.void]
    csg_bvh_indices: npt.NDArray[np.uint32]
    sub_patches: npt.NDArray[np.float32]
    patch_bvh_nodes: npt.NDArray[np.void]
    patch_bvh_indices: npt.NDArray[np.uint32]
    patch_groups: npt.NDArray[np.void]
    instances: npt.NDArray[np.void]
    lights: npt.NDArray[np.void]
    emissive_lights: npt.NDArray[np.void]
    environment: npt.NDArray[np.void]

    def as_dict(self) -> dict[str, np.ndarray]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def nbytes(self) -> int:
        """Total size of all buffers."""
        return sum(arr.nbytes for arr in self.as_dict().values())


# =============================================================================
# Packing
# =============================================================================


def _pack_material(mat: Material) -> tuple:
    if mat.type == MaterialType.CHECKER:
        r2, g2, b2 = mat.albedo2
        return (mat.albedo, int(mat.type), r2, g2, b2, mat.pattern_scale)
    return (mat.albedo, int(mat.type), mat.roughness, mat.metallic, mat.ior, mat.emissive)


def pack_materials(materials: list[Material]) -> npt.NDArray[np.void]:
    return np.array([_pack_material(m) for m in materials], dtype=MATERIAL_DTYPE)


def pack_bvh(
    bvh: BVH, node_offset: int = 0, item_offset: int = 0
) -> tuple[npt.NDArray[np.void], npt.NDArray[np.uint32]]:
    """Pack BVH nodes and the item permutation.

    Leaves store their first item in ``left_or_first`` and
    ``count | LEAF_FLAG`` in ``right_or_count``.

    Args:
        bvh: The built hierarchy.
        node_offset: Added to every child index, for a BVH placed after
            other nodes in a shared buffer.
        item_offset: Added to every leaf range start and every item index.

    Returns:
        (nodes, indices) arrays.
    """
    nodes = np.zeros(bvh.node_count(), dtype=BVH_NODE_DTYPE)
    for i, node in enumerate(bvh.nodes):
        nodes["min"][i] = node.bounds.min
        nodes["max"][i] = node.bounds.max
        if isinstance(node, BVHLeaf):
            nodes["left_or_first"][i] = node.first + item_offset
            nodes["right_or_count"][i] = node.count | LEAF_FLAG
        else:
            nodes["left_or_first"][i] = node.left + node_offset
            nodes["right_or_count"][i] = node.right + node_offset
    indices = np.asarray(bvh.indices, dtype=np.uint32) + np.uint32(item_offset)
    return nodes, indices


def pack_patch_groups(
    groups: dict[str, PatchGroup],
) -> tuple[npt.NDArray[np.float32], npt.NDArray[np.void], npt.NDArray[np.uint32], npt.NDArray[np.void]]:
    """Concatenate built patch groups into shared buffers.

    Each group's sub-patches follow the previous group's, and its BVH
    nodes follow the previous group's nodes. Child indices, leaf ranges
    and item indices are shifted to stay valid in the shared buffers.

    Returns:
        (sub_patches, bvh_nodes, bvh_indices, table) where table holds one
        PATCH_GROUP_DTYPE record per group in definition order.
    """
    patch_chunks = [np.zeros((0, 16, 4), dtype=np.float32)]
    node_chunks = [np.zeros(0, dtype=BVH_NODE_DTYPE)]
    index_chunks = [np.zeros(0, dtype=np.uint32)]
    table = np.zeros(len(groups), dtype=PATCH_GROUP_DTYPE)

    patch_first = 0
    node_first = 0
    for i, group in enumerate(groups.values()):
        nodes, indices = pack_bvh(group.bvh, node_offset=node_first, item_offset=patch_first)
        patch_chunks.append(group.pack_patch_data())
        node_chunks.append(nodes)
        index_chunks.append(indices)
        table[i] = (patch_first, group.sub_patch_count(), node_first, group.bvh_node_count())
        patch_first += group.sub_patch_count()
        node_first += group.bvh_node_count()

    return (
        np.concatenate(patch_chunks),
        np.concatenate(node_chunks),
        np.concatenate(index_chunks),
        table,
    )


def pack_instances(
    instances: list[BezierInstance],
    group_names: list[str],
    group_table: npt.NDArray[np.void],
) -> npt.NDArray[np.void]:
    """Pack instances with the sub-patch range and BVH root of their group.

    An instance naming an undefined group gets group NO_GROUP and an empty
    patch range, so the renderer skips it.
    """
    packed = np.zeros(len(instances), dtype=INSTANCE_DTYPE)
    for i, inst in enumerate(instances):
        packed["position"][i] = inst.position
        packed["scale"][i] = inst.scale
        packed["rotation"][i] = inst.rotation
        packed["material_id"][i] = inst.material_id
        if inst.group not in group_names:
            packed["group"][i] = NO_GROUP
            continue
        g = group_names.index(inst.group)
        packed["group"][i] = g
        packed["patch_first"][i] = group_table["patch_first"][g]
        packed["patch_count"][i] = group_table["patch_count"][g]
        packed["bvh_root"][i] = group_table["bvh_root"][g]
    return packed


def pack_scene(doc: SceneDocument, config: BuildConfig | None = None) -> SceneArrays:
    """Build both BVHs and pack every table of a document.

    Each patch group gets its own sub-patch range and BVH inside the
    shared patch buffers, and every instance points at its group's range
    and BVH root.

    Args:
        doc: The scene document.
        config: Build settings (defaults to BuildConfig()).

    Returns:
        The packed arrays.
    """
    config = config or BuildConfig()
    csg = doc.csg

    primitives = np.array(
        [(p.center, int(p.type), p.params, 0.0) for p in csg.primitives],
        dtype=PRIMITIVE_DTYPE,
    )
    transforms = np.array([(t.rotation, t.scale) for t in csg.transforms], dtype=TRANSFORM_DTYPE)

    nodes = np.zeros(csg.node_count(), dtype=NODE_DTYPE)
    for i, node in enumerate(csg.nodes):
        if isinstance(node, PrimitiveNode):
            nodes[i] = (int(node.type), node.primitive, 0, node.material_id)
        else:
            nodes[i] = (int(node.type), node.left, node.right, node.material_id)

    csg_bvh_nodes, csg_bvh_indices = pack_bvh(doc.build_csg_bvh(config))

    groups = doc.build_patch_groups(config)
    sub_patches, patch_bvh_nodes, patch_bvh_indices, group_table = pack_patch_groups(groups)
    instances = pack_instances(doc.build_instances(), list(groups), group_table)

    lights = np.array(
        [(l.vector, int(l.type), l.color, l.intensity) for l in doc.lights.build_buffer()],
        dtype=LIGHT_DTYPE,
    )
    emissive = np.array(
        [(e.primitive_index, e.node_index, e.area, 0.0) for e in doc.lights.emissive_lights],
        dtype=EMISSIVE_LIGHT_DTYPE,
    )
    environment = np.array(
        [
            (
                int(doc.floor.enabled),
                doc.floor.y,
                doc.materials.find(doc.floor.material),
                doc.lights.sun.angular_radius,
            )
        ],
        dtype=ENVIRONMENT_DTYPE,
    )

    arrays = SceneArrays(
        materials=pack_materials(doc.materials.materials),
        primitives=primitives,
        transforms=transforms,
        nodes=nodes,
        roots=np.asarray(csg.roots, dtype=np.uint32),
        csg_bvh_nodes=csg_bvh_nodes,
        csg_bvh_indices=csg_bvh_indices,
        sub_patches=sub_patches,
        patch_bvh_nodes=patch_bvh_nodes,
        patch_bvh_indices=patch_bvh_indices,
        patch_groups=group_table,
        instances=instances,
        lights=lights,
        emissive_lights=emissive,
        environment=environment,
    )
    logger.info("Packed scene: %d bytes", arrays.nbytes())
    return arrays


def save_npz(arrays: SceneArrays, path: str | os.PathLike[str]) -> None:
    """Write every buffer to a single uncompressed .npz archive."""
    np.savez(path, **arrays.as_dict())


def load_npz(path: str | os.PathLike[str]) -> dict[str, np.ndarray]:
    """Read an archive written by save_npz."""
    with np.load(path) as data:
        return {name: data[name] for name in data.files}
