"""Geometry module for primitives, Bezier surfaces and spatial acceleration.

This module provides the geometric data structures of the pipeline:

Components:
    aabb: Axis-aligned bounding boxes
    primitives: Analytic CSG primitives with closed-form bounds and areas
    csg: Arena-based CSG graph (primitives, transforms, boolean nodes, roots)
    bvh: Bounding Volume Hierarchy builder shared by CSG roots and patches
    patch: Bicubic Bezier patches and de Casteljau subdivision
    patch_group: Subdivided patch groups and their instances

Everything here is CPU-side and produces plain Python values; packing into
GPU layouts happens in parametric_scene.export.
"""

from .aabb import AABB, union_all
from .bvh import (
    BVH,
    LEAF_FLAG,
    BVHInterior,
    BVHLeaf,
    BVHNode,
    build_bvh,
    build_csg_bvh,
    build_patch_bvh,
)
from .csg import BooleanNode, CSGNode, CSGNodeType, CSGScene, PrimitiveNode
from .patch import (
    Patch,
    SubPatch,
    evaluate_patch,
    split_cubic,
    subdivide,
    subdivide_patch,
    subdivide_patches,
)
from .patch_group import BezierInstance, PatchGroup
from .primitives import (
    CSGPrimitive,
    CSGTransform,
    PrimitiveType,
    local_bounds,
    primitive_bounds,
    surface_area,
)

__all__ = [
    # AABB
    "AABB",
    "union_all",
    # Primitives
    "PrimitiveType",
    "CSGPrimitive",
    "CSGTransform",
    "local_bounds",
    "primitive_bounds",
    "surface_area",
    # CSG graph
    "CSGScene",
    "CSGNode",
    "CSGNodeType",
    "PrimitiveNode",
    "BooleanNode",
    # BVH
    "BVH",
    "BVHNode",
    "BVHLeaf",
    "BVHInterior",
    "LEAF_FLAG",
    "build_bvh",
    "build_csg_bvh",
    "build_patch_bvh",
    # Bezier
    "Patch",
    "SubPatch",
    "split_cubic",
    "subdivide_patch",
    "subdivide",
    "subdivide_patches",
    "evaluate_patch",
    "PatchGroup",
    "BezierInstance",
]
