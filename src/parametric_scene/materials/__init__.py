"""Materials module.

Components:
    library: MaterialType enum, immutable Material record and the
        append-only MaterialLibrary with name lookup

Materials are plain CPU-side records; packing into the renderer's fixed
layout happens in parametric_scene.export.arrays.
"""

from .library import Material, MaterialLibrary, MaterialType

__all__ = [
    "Material",
    "MaterialLibrary",
    "MaterialType",
]
