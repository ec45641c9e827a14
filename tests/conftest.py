"""Pytest configuration for scene pipeline tests.

This module provides shared fixtures for all test modules: scene files
written to a temporary directory and a few reference Bezier patches.
"""

from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def write_scene(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a helper that writes scene source to tmp_path/<name>.

    Parent directories are created as needed, so names like
    "sub/part.scene" work.
    """

    def _write(name: str, source: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def flat_patch():
    """A planar 3x3 patch in the XY plane with control points on an integer grid."""
    from parametric_scene.geometry.patch import Patch

    return Patch.from_grid([[(float(c), float(r), 0.0) for c in range(4)] for r in range(4)])


@pytest.fixture
def tiny_patch():
    """A planar patch whose bounding box diagonal is far below the default flatness."""
    from parametric_scene.geometry.patch import Patch

    return Patch.from_grid([[(c * 0.001, r * 0.001, 0.0) for c in range(4)] for r in range(4)])


@pytest.fixture
def dome_patch():
    """A curved dome patch (heights peak in the middle of the control net)."""
    from parametric_scene.geometry.patch import Patch

    coords = (-1.5, -0.5, 0.5, 1.5)
    return Patch.from_grid([[(x, 1.0 - 0.2 * (x * x + z * z), z) for x in coords] for z in coords])


@pytest.fixture
def grid_vertices_source() -> str:
    """Scene-language vertex list of a 4x4 planar grid (16 vertices)."""
    rows = []
    for r in range(4):
        rows.append(" ".join(f"({c} {r} 0)" for c in range(4)))
    return "(vertices " + " ".join(rows) + ")"
