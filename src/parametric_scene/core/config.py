"""Build configuration for subdivision and BVH construction.

All constants that shape the flattened output live in one dataclass so a
renderer can rebuild with different settings without touching the scene.

Example:
    >>> from parametric_scene.core.config import BuildConfig
    >>> config = BuildConfig(patch_max_depth=2)
    >>> config.csg_leaf_size
    2
"""

from dataclasses import asdict, dataclass
from typing import Any

# Default subdivision settings (depth 4 splits one patch into at most 256 leaves)
DEFAULT_PATCH_MAX_DEPTH = 4
DEFAULT_PATCH_FLATNESS = 0.05
DEFAULT_PATCH_PADDING = 0.01

# Leaf thresholds: CSG roots are few and expensive to intersect, sub-patches many
DEFAULT_PATCH_LEAF_SIZE = 4
DEFAULT_CSG_LEAF_SIZE = 2

DEFAULT_BVH_MAX_DEPTH = 20
DEFAULT_BVH_EPSILON = 1e-4


@dataclass(frozen=True)
class BuildConfig:
    """Parameters for building GPU acceleration data.

    Attributes:
        patch_max_depth: Maximum de Casteljau recursion depth per patch.
            0 disables subdivision.
        patch_flatness: AABB diagonal below which a sub-patch is considered
            flat enough to stop subdividing.
        patch_padding: Outward padding applied to every sub-patch AABB so
            adjacent sub-patches overlap instead of leaving cracks.
        patch_leaf_size: Maximum sub-patches per BVH leaf.
        csg_leaf_size: Maximum CSG roots per BVH leaf.
        bvh_max_depth: Depth at which the BVH builder emits a leaf regardless
            of item count.
        bvh_epsilon: Padding added to every emitted BVH node bound.
    """

    patch_max_depth: int = DEFAULT_PATCH_MAX_DEPTH
    patch_flatness: float = DEFAULT_PATCH_FLATNESS
    patch_padding: float = DEFAULT_PATCH_PADDING
    patch_leaf_size: int = DEFAULT_PATCH_LEAF_SIZE
    csg_leaf_size: int = DEFAULT_CSG_LEAF_SIZE
    bvh_max_depth: int = DEFAULT_BVH_MAX_DEPTH
    bvh_epsilon: float = DEFAULT_BVH_EPSILON

    def __post_init__(self) -> None:
        """Validate the configuration.

        Raises:
            ValueError: If a depth is negative, a leaf size is not positive,
                or a threshold or padding is negative.
        """
        if self.patch_max_depth < 0:
            raise ValueError(f"patch_max_depth must be >= 0, got {self.patch_max_depth}")
        if self.bvh_max_depth < 0:
            raise ValueError(f"bvh_max_depth must be >= 0, got {self.bvh_max_depth}")
        if self.patch_leaf_size < 1:
            raise ValueError(f"patch_leaf_size must be >= 1, got {self.patch_leaf_size}")
        if self.csg_leaf_size < 1:
            raise ValueError(f"csg_leaf_size must be >= 1, got {self.csg_leaf_size}")
        for name in ("patch_flatness", "patch_padding", "bvh_epsilon"):
            value = getattr(self, name)
            if value < 0.0:
                raise ValueError(f"{name} must be >= 0, got {value}")

    def to_dict(self) -> dict[str, Any]:
        """Export the configuration to a dictionary."""
        return asdict(self)
