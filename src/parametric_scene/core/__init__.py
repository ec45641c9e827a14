"""Core module shared by every stage of the pipeline.

Components:
    vector: Vec3 tuple alias and small vector utilities
    config: BuildConfig holding every tunable build constant

Vectors on the CPU side are plain tuples of floats. They are immutable,
hashable and compare by value, which keeps the scene tables trivially
serializable. Bulk math (subdivision, bound unions) converts to numpy
arrays locally and converts back.
"""

from .config import BuildConfig
from .vector import (
    Vec3,
    add,
    cross,
    deg_to_rad,
    dot,
    length,
    lerp,
    normalize,
    scale,
    sub,
    vec3,
)

__all__ = [
    "BuildConfig",
    "Vec3",
    "vec3",
    "add",
    "sub",
    "scale",
    "dot",
    "cross",
    "length",
    "normalize",
    "lerp",
    "deg_to_rad",
]
