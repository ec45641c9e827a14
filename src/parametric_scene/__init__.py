"""CPU-side scene pipeline for GPU ray tracers.

This package turns a small parenthesized scene language into flat,
fixed-layout arrays that a GPU renderer can upload directly:
- S-expression parsing of `.scene` files (with includes)
- Material library with name lookup
- Constructive solid geometry (CSG) graphs over analytic primitives
- Adaptive de Casteljau subdivision of bicubic Bezier patches
- Bounding volume hierarchies over CSG roots and Bezier sub-patches

Subpackages:
    core: Vector helpers and build configuration
    geometry: AABBs, primitives, CSG graph, Bezier patches and the BVH builder
    materials: Material records and the material library
    scene: Parser, scene loader, lights and scene documents
    export: Packing into GPU layouts and human-readable dumps
"""

__version__ = "0.1.0"
