"""Bounding volume hierarchy builder.

One top-down builder serves every call site. It takes an indexable
collection of AABBs and produces a flat node array (node 0 is the root)
plus a permutation of item indices; each leaf owns the contiguous range
``indices[first:first + count]``.

Build steps for the item range [start, start + count):

1. Union the item bounds.
2. Emit a leaf if count <= leaf_size or the depth limit is reached.
3. Otherwise pick the longest axis of the union, sort the range in place
   by item centroid on that axis, split at count // 2 and recurse left,
   then right.

The parent's slot is appended before recursing and filled in after both
children return, so node numbering is pre-order and the root is node 0.
Every emitted bound is padded by a small epsilon so box-edge precision
loss on the GPU never rejects a surface lying exactly on a face.

When packed for the GPU (see ``parametric_scene.export.arrays``) a leaf
stores ``count | LEAF_FLAG`` in its second index slot.

Example:
    >>> from parametric_scene.geometry.aabb import AABB
    >>> from parametric_scene.geometry.bvh import build_bvh
    >>> boxes = [AABB((i, 0, 0), (i + 1, 1, 1)) for i in range(8)]
    >>> bvh = build_bvh(boxes, leaf_size=2)
    >>> bvh.node_count()
    7
"""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from parametric_scene.core.config import BuildConfig
from parametric_scene.geometry.aabb import AABB

logger = logging.getLogger(__name__)

# High bit of the packed count field marks a leaf node
LEAF_FLAG = 0x80000000
MAX_LEAF_COUNT = LEAF_FLAG - 1

DEFAULT_MAX_DEPTH = BuildConfig().bvh_max_depth
DEFAULT_EPSILON = BuildConfig().bvh_epsilon


@dataclass(frozen=True)
class BVHLeaf:
    """Leaf node owning ``count`` items starting at ``first`` in the permutation."""

    bounds: AABB
    first: int
    count: int


@dataclass(frozen=True)
class BVHInterior:
    """Interior node with two child node indices."""

    bounds: AABB
    left: int
    right: int


BVHNode = BVHLeaf | BVHInterior


@dataclass(frozen=True)
class BVH:
    """A built hierarchy.

    Attributes:
        nodes: Flat node array; node 0 is the root. Empty if built from
            no items.
        indices: Permutation of item indices referenced by leaf ranges.
    """

    nodes: tuple[BVHNode, ...]
    indices: tuple[int, ...]

    def node_count(self) -> int:
        return len(self.nodes)

    def is_empty(self) -> bool:
        return not self.nodes

    def leaves(self) -> Iterator[BVHLeaf]:
        """Iterate over all leaf nodes in array order."""
        for node in self.nodes:
            if isinstance(node, BVHLeaf):
                yield node

    def leaf_items(self, leaf: BVHLeaf) -> tuple[int, ...]:
        """Return the original item indices owned by a leaf."""
        return self.indices[leaf.first : leaf.first + leaf.count]

    def depth(self) -> int:
        """Return the number of levels in the tree (0 if empty)."""
        if not self.nodes:
            return 0
        deepest = 0
        stack = [(0, 1)]
        while stack:
            idx, level = stack.pop()
            deepest = max(deepest, level)
            node = self.nodes[idx]
            if isinstance(node, BVHInterior):
                stack.append((node.left, level + 1))
                stack.append((node.right, level + 1))
        return deepest


class _Builder:
    """Recursive build state for a single call to build_bvh."""

    def __init__(
        self,
        boxes: Sequence[AABB],
        leaf_size: int,
        max_depth: int,
        epsilon: float,
    ) -> None:
        self.mins: npt.NDArray[np.float64] = np.array([b.min for b in boxes], dtype=np.float64)
        self.maxs: npt.NDArray[np.float64] = np.array([b.max for b in boxes], dtype=np.float64)
        self.centroids = (self.mins + self.maxs) * 0.5
        self.order: npt.NDArray[np.int64] = np.arange(len(boxes), dtype=np.int64)
        self.nodes: list[BVHNode | None] = []
        self.leaf_size = leaf_size
        self.max_depth = max_depth
        self.epsilon = epsilon

    def build(self, start: int, count: int, depth: int) -> int:
        node_idx = len(self.nodes)
        self.nodes.append(None)

        items = self.order[start : start + count]
        lo = self.mins[items].min(axis=0)
        hi = self.maxs[items].max(axis=0)
        tight = AABB(_vec(lo), _vec(hi))
        bounds = tight.padded(self.epsilon)

        if count <= self.leaf_size or depth >= self.max_depth:
            if count > MAX_LEAF_COUNT:
                raise ValueError(f"Leaf with {count} items cannot be encoded")
            self.nodes[node_idx] = BVHLeaf(bounds=bounds, first=start, count=count)
            return node_idx

        axis = tight.longest_axis()
        keys = self.centroids[items, axis]
        self.order[start : start + count] = items[np.argsort(keys, kind="stable")]

        mid = count // 2
        left = self.build(start, mid, depth + 1)
        right = self.build(start + mid, count - mid, depth + 1)

        self.nodes[node_idx] = BVHInterior(bounds=bounds, left=left, right=right)
        return node_idx


def build_bvh(
    boxes: Sequence[AABB],
    leaf_size: int,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    epsilon: float = DEFAULT_EPSILON,
) -> BVH:
    """Build a BVH over a collection of bounding boxes.

    Args:
        boxes: Item bounds, indexed by item id.
        leaf_size: Maximum items per leaf (before the depth limit applies).
        max_depth: Depth at which a leaf is emitted regardless of count.
        epsilon: Padding added to every node bound.

    Returns:
        The built BVH. Empty input gives an empty BVH.

    Raises:
        ValueError: If leaf_size is not positive.
    """
    if leaf_size < 1:
        raise ValueError(f"leaf_size must be >= 1, got {leaf_size}")
    if len(boxes) == 0:
        return BVH(nodes=(), indices=())

    builder = _Builder(boxes, leaf_size, max_depth, epsilon)
    builder.build(0, len(boxes), 0)
    nodes = tuple(node for node in builder.nodes if node is not None)
    return BVH(nodes=nodes, indices=tuple(int(i) for i in builder.order))


def build_csg_bvh(root_bounds: Sequence[AABB], config: BuildConfig | None = None) -> BVH:
    """Build the BVH over CSG root shapes.

    Item indices in the result are positions in the scene's root list.
    """
    config = config or BuildConfig()
    bvh = build_bvh(
        root_bounds,
        config.csg_leaf_size,
        max_depth=config.bvh_max_depth,
        epsilon=config.bvh_epsilon,
    )
    logger.info("CSG BVH: %d roots -> %d nodes", len(root_bounds), bvh.node_count())
    return bvh


def build_patch_bvh(patch_bounds: Sequence[AABB], config: BuildConfig | None = None) -> BVH:
    """Build the BVH over Bezier sub-patches.

    Item indices in the result are positions in the sub-patch list.
    """
    config = config or BuildConfig()
    return build_bvh(
        patch_bounds,
        config.patch_leaf_size,
        max_depth=config.bvh_max_depth,
        epsilon=config.bvh_epsilon,
    )


def _vec(arr: npt.NDArray[np.float64]) -> tuple[float, float, float]:
    return (float(arr[0]), float(arr[1]), float(arr[2]))
