"""Unit tests for renderer buffer packing and text reports.

Tests cover:
- Record sizes of every packed layout
- Material, node and BVH packing (including the leaf flag)
- Whole-scene packing and .npz archives
- Per-group patch buffers and instance binding
- Summary and dump reports
"""

import numpy as np
import pytest

from parametric_scene.core.config import BuildConfig
from parametric_scene.export.arrays import (
    BVH_NODE_DTYPE,
    EMISSIVE_LIGHT_DTYPE,
    ENVIRONMENT_DTYPE,
    INSTANCE_DTYPE,
    LIGHT_DTYPE,
    MATERIAL_DTYPE,
    NO_GROUP,
    NODE_DTYPE,
    PATCH_GROUP_DTYPE,
    PRIMITIVE_DTYPE,
    TRANSFORM_DTYPE,
    load_npz,
    pack_bvh,
    pack_materials,
    pack_scene,
    save_npz,
)
from parametric_scene.export.dump import format_dump, format_summary
from parametric_scene.geometry.aabb import AABB
from parametric_scene.geometry.bvh import LEAF_FLAG, build_bvh
from parametric_scene.materials.library import Material, MaterialType
from parametric_scene.scene.loader import load_string

SCENE = """
(material white (albedo 0.7 0.7 0.7))
(material lamp (type emissive) (emissive 5))
(material tiles (type checker) (rgb 1 1 1) (rgb2 0.1 0.2 0.3) (scale 0.5))
(shape (subtract (box (half 1 1 1)) (sphere (r 1.2))) white)
(shape (sphere (at 0 4 0) (r 0.5)) lamp)
(sun (azimuth 0) (elevation 90) (intensity 2))
(light (at 0 5 0))
(floor (y 0) tiles)
"""


@pytest.fixture
def scene_doc(grid_vertices_source):
    """A small scene with CSG, a patch group, an instance and every light kind."""
    indices = " ".join(str(i) for i in range(16))
    patches = f"(patches grid {grid_vertices_source} (patch {indices}))"
    return load_string(SCENE + patches + "(instance grid (at 1 0 0) (scale 2) lamp)")


class TestLayouts:
    """Tests for record sizes."""

    @pytest.mark.parametrize(
        "dtype,size",
        [
            (MATERIAL_DTYPE, 32),
            (PRIMITIVE_DTYPE, 32),
            (TRANSFORM_DTYPE, 16),
            (NODE_DTYPE, 16),
            (BVH_NODE_DTYPE, 32),
            (INSTANCE_DTYPE, 48),
            (PATCH_GROUP_DTYPE, 16),
            (LIGHT_DTYPE, 32),
            (EMISSIVE_LIGHT_DTYPE, 16),
            (ENVIRONMENT_DTYPE, 16),
        ],
    )
    def test_itemsize(self, dtype, size):
        """Test that each record has the renderer's fixed size."""
        assert dtype.itemsize == size


class TestPacking:
    """Tests for individual table packing."""

    def test_material_slots(self):
        """Test that non-checker materials keep their scalar fields."""
        packed = pack_materials([Material(type=MaterialType.GLASS, ior=1.33)])
        assert packed["type"][0] == 2
        assert packed["ior"][0] == pytest.approx(1.33)

    def test_checker_slot_reuse(self):
        """Test that a checker stores colour 2 and scale in the scalar slots."""
        mat = Material(type=MaterialType.CHECKER, albedo2=(0.1, 0.2, 0.3), pattern_scale=0.5)
        packed = pack_materials([mat])[0]
        assert packed["type"] == 4
        assert packed["roughness"] == pytest.approx(0.1)
        assert packed["metallic"] == pytest.approx(0.2)
        assert packed["ior"] == pytest.approx(0.3)
        assert packed["emissive"] == pytest.approx(0.5)

    def test_bvh_leaf_flag(self):
        """Test leaf and interior encoding."""
        boxes = [AABB((float(i), 0.0, 0.0), (i + 1.0, 1.0, 1.0)) for i in range(4)]
        bvh = build_bvh(boxes, leaf_size=2)
        nodes, indices = pack_bvh(bvh)

        assert nodes["right_or_count"][0] & LEAF_FLAG == 0
        assert nodes["left_or_first"][0] == bvh.nodes[0].left
        for i, node in enumerate(bvh.nodes[1:], start=1):
            assert nodes["right_or_count"][i] == (2 | LEAF_FLAG)
            assert nodes["left_or_first"][i] == node.first
        assert indices.dtype == np.uint32
        assert sorted(indices) == [0, 1, 2, 3]

    def test_bvh_bounds(self):
        """Test that node bounds are copied."""
        bvh = build_bvh([AABB((0.0, 0.0, 0.0), (1.0, 2.0, 3.0))], leaf_size=1, epsilon=0.0)
        nodes, _ = pack_bvh(bvh)
        np.testing.assert_allclose(nodes["min"][0], [0.0, 0.0, 0.0])
        np.testing.assert_allclose(nodes["max"][0], [1.0, 2.0, 3.0])


class TestPackScene:
    """Tests for whole-scene packing."""

    def test_table_sizes(self, scene_doc):
        """Test the length of every packed table."""
        arrays = pack_scene(scene_doc, BuildConfig(patch_max_depth=1, patch_flatness=0.0))
        assert len(arrays.materials) == 3
        assert len(arrays.primitives) == 3
        assert len(arrays.transforms) == 3
        assert len(arrays.nodes) == 4
        assert list(arrays.roots) == [2, 3]
        assert arrays.sub_patches.shape == (4, 16, 4)
        assert len(arrays.instances) == 1
        assert len(arrays.lights) == 2
        assert len(arrays.emissive_lights) == 1
        assert len(arrays.environment) == 1

    def test_node_encoding(self, scene_doc):
        """Test primitive and boolean node records."""
        nodes = pack_scene(scene_doc).nodes
        assert tuple(nodes[0]) == (0, 0, 0, 0)
        assert tuple(nodes[2]) == (3, 0, 1, 0)
        assert tuple(nodes[3]) == (0, 2, 0, 1)

    def test_instances_and_environment(self, scene_doc):
        """Test resolved instance material and floor settings."""
        arrays = pack_scene(scene_doc)
        inst = arrays.instances[0]
        assert inst["material_id"] == 1
        assert inst["scale"] == pytest.approx(2.0)
        env = arrays.environment[0]
        assert env["floor_enabled"] == 1
        assert env["floor_material"] == 2
        assert env["sun_angular_radius"] == pytest.approx(0.53)

    def test_sun_first_in_light_buffer(self, scene_doc):
        """Test that the sun occupies light slot 0."""
        lights = pack_scene(scene_doc).lights
        assert lights["type"][0] == 0
        np.testing.assert_allclose(lights["vector"][0], [0.0, 1.0, 0.0], atol=1e-6)
        assert lights["type"][1] == 1

    def test_empty_scene(self):
        """Test that an empty document packs to empty tables."""
        arrays = pack_scene(load_string(""))
        assert len(arrays.primitives) == 0
        assert len(arrays.csg_bvh_nodes) == 0
        assert arrays.sub_patches.shape == (0, 16, 4)
        assert len(arrays.lights) == 1

    def test_npz_round_trip(self, scene_doc, tmp_path):
        """Test that an archive holds every buffer unchanged."""
        arrays = pack_scene(scene_doc)
        path = tmp_path / "scene.npz"
        save_npz(arrays, path)
        loaded = load_npz(path)
        assert set(loaded) == set(arrays.as_dict())
        assert loaded["materials"].dtype.names == MATERIAL_DTYPE.names
        assert loaded["materials"].dtype.itemsize == 32
        np.testing.assert_array_equal(loaded["sub_patches"], arrays.sub_patches)
        assert loaded["csg_bvh_nodes"].tobytes() == arrays.csg_bvh_nodes.tobytes()


def _grid_group(name, z):
    verts = " ".join(f"({c} {r} {z})" for r in range(4) for c in range(4))
    indices = " ".join(str(i) for i in range(16))
    return f"(patches {name} (vertices {verts}) (patch {indices}))"


class TestPatchGroupPacking:
    """Tests for per-group patch buffers and instance binding."""

    @pytest.fixture
    def two_groups(self):
        source = (
            "(material white (albedo 0.7 0.7 0.7))"
            + _grid_group("low", 0)
            + _grid_group("high", 50)
            + "(instance high (at 1 0 0) white)"
            + "(instance missing white)"
        )
        config = BuildConfig(patch_max_depth=1, patch_flatness=0.0, patch_leaf_size=1)
        return pack_scene(load_string(source), config)

    def test_group_table(self, two_groups):
        """Test that each group owns a contiguous sub-patch range and BVH."""
        table = two_groups.patch_groups
        assert len(table) == 2
        assert list(table["patch_first"]) == [0, 4]
        assert list(table["patch_count"]) == [4, 4]
        assert table["bvh_root"][0] == 0
        assert table["bvh_root"][1] == table["bvh_node_count"][0]
        assert len(two_groups.patch_bvh_nodes) == table["bvh_node_count"].sum()
        assert two_groups.sub_patches.shape == (8, 16, 4)

    def test_sub_patch_ranges(self, two_groups):
        """Test that each range holds only its own group's geometry."""
        subs = two_groups.sub_patches
        np.testing.assert_allclose(subs[0:4, :, 2], 0.0)
        np.testing.assert_allclose(subs[4:8, :, 2], 50.0)

    def test_instance_bound_to_group(self, two_groups):
        """Test that an instance carries its group's range and BVH root."""
        inst = two_groups.instances[0]
        table = two_groups.patch_groups
        assert inst["group"] == 1
        assert inst["patch_first"] == 4
        assert inst["patch_count"] == 4
        assert inst["bvh_root"] == table["bvh_root"][1]

    def test_undefined_group_is_empty(self, two_groups):
        """Test that an instance of an undefined group has no sub-patches."""
        inst = two_groups.instances[1]
        assert inst["group"] == NO_GROUP
        assert inst["patch_count"] == 0

    def test_second_bvh_indices_shifted(self, two_groups):
        """Test that the second group's BVH only reaches its own nodes and sub-patches."""
        table = two_groups.patch_groups
        root = int(table["bvh_root"][1])
        end = root + int(table["bvh_node_count"][1])
        nodes = two_groups.patch_bvh_nodes[root:end]
        leaf_items = []
        for node in nodes:
            packed = int(node["right_or_count"])
            if packed & LEAF_FLAG:
                first = int(node["left_or_first"])
                count = packed & ~LEAF_FLAG
                assert 4 <= first and first + count <= 8
                leaf_items.extend(two_groups.patch_bvh_indices[first : first + count])
            else:
                assert root < int(node["left_or_first"]) < end
                assert root < packed < end
        assert sorted(int(i) for i in leaf_items) == [4, 5, 6, 7]
        # The second root encloses only the raised group
        assert nodes[0]["min"][2] > 40.0


class TestReports:
    """Tests for text reports."""

    def test_summary(self, scene_doc):
        """Test summary counts and sections."""
        text = format_summary(scene_doc)
        assert text.startswith("Scene summary:")
        assert "  Materials:    3" in text
        assert "  Roots:        2" in text
        assert "  Patches:      1 groups (1 patches)" in text
        assert "  Enabled:  yes" in text
        assert "  Material: tiles" in text

    def test_dump(self, scene_doc):
        """Test dump rows for each table."""
        text = format_dump(scene_doc)
        assert '  [2] "tiles" checker rgb(1, 1, 1) rgb2(0.1, 0.2, 0.3) scale=0.5' in text
        assert "  [1] sphere at(0, 0, 0) r=1.2" in text
        assert "  [2] subtract left=0 right=1 mat=0" in text
        assert "Roots: 2 3" in text
        assert "  grid: 1 patches" in text
        assert "Point Lights:" in text
        assert "Emissive Lights:" in text
