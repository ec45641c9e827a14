"""Export module for handing a scene to the renderer.

Components:
    arrays: numpy structured arrays with the renderer's fixed layouts,
        pack_scene() and .npz archives
    dump: Human-readable text reports of every table
"""

from .arrays import SceneArrays, load_npz, pack_bvh, pack_patch_groups, pack_scene, save_npz
from .dump import format_dump, format_summary

__all__ = [
    "SceneArrays",
    "pack_scene",
    "pack_bvh",
    "pack_patch_groups",
    "save_npz",
    "load_npz",
    "format_dump",
    "format_summary",
]
