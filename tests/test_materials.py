"""Unit tests for the material library.

Tests cover:
- Material defaults and derived values
- Material type names and aliases
- Append-only indexing and name lookup
"""

import pytest

from parametric_scene.materials.library import Material, MaterialLibrary, MaterialType


class TestMaterial:
    """Tests for the Material record."""

    def test_defaults(self):
        """Test the documented default values."""
        m = Material()
        assert m.albedo == (0.8, 0.8, 0.8)
        assert m.type == MaterialType.DIFFUSE
        assert m.roughness == 0.5
        assert m.metallic == 0.0
        assert m.ior == 1.5
        assert m.emissive == 0.0
        assert m.albedo2 == (0.0, 0.0, 0.0)
        assert m.pattern_scale == 1.0

    def test_type_values_match_renderer(self):
        """Test the numeric material type tags."""
        assert [int(t) for t in MaterialType] == [0, 1, 2, 3, 4]
        assert MaterialType.CHECKER == 4

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("diffuse", MaterialType.DIFFUSE),
            ("metal", MaterialType.METAL),
            ("glass", MaterialType.GLASS),
            ("dielectric", MaterialType.GLASS),
            ("emissive", MaterialType.EMISSIVE),
            ("checker", MaterialType.CHECKER),
            ("Metal", MaterialType.METAL),
        ],
    )
    def test_type_from_name(self, name, expected):
        """Test scene-language type names, including the dielectric alias."""
        assert MaterialType.from_name(name) == expected

    def test_unknown_type_name(self):
        """Test that unknown names raise KeyError."""
        with pytest.raises(KeyError):
            MaterialType.from_name("plasma")

    def test_emission(self):
        """Test that emission is albedo scaled by emissive strength."""
        m = Material(albedo=(1.0, 0.5, 0.0), type=MaterialType.EMISSIVE, emissive=4.0)
        assert m.emission == (4.0, 2.0, 0.0)
        assert m.is_emissive()
        assert not Material().is_emissive()

    def test_to_dict(self):
        """Test dictionary export uses the type name."""
        data = Material(type=MaterialType.METAL).to_dict()
        assert data["type"] == "metal"
        assert data["albedo"] == [0.8, 0.8, 0.8]


class TestMaterialLibrary:
    """Tests for MaterialLibrary indexing and lookup."""

    def test_add_returns_sequential_indices(self):
        """Test that indices follow insertion order."""
        lib = MaterialLibrary()
        assert lib.add(Material()) == 0
        assert lib.add(Material(), name="b") == 1
        assert lib.count() == 2
        assert len(lib) == 2

    def test_find_by_name(self):
        """Test name lookup."""
        lib = MaterialLibrary()
        lib.add(Material(), name="white")
        red = lib.add(Material(albedo=(0.8, 0.1, 0.1)), name="red")
        assert lib.find("red") == red
        assert lib.get(red).albedo == (0.8, 0.1, 0.1)
        assert "red" in lib
        assert "blue" not in lib

    def test_unknown_name_falls_back_to_zero(self):
        """Test that unknown names resolve to index 0."""
        lib = MaterialLibrary()
        lib.add(Material(), name="only")
        assert lib.find("missing") == 0

    def test_redefinition_rebinds_name(self):
        """Test that re-adding a name points it at the new record and keeps the old one."""
        lib = MaterialLibrary()
        first = lib.add(Material(roughness=0.1), name="m")
        second = lib.add(Material(roughness=0.9), name="m")
        assert lib.find("m") == second
        assert lib.get(first).roughness == 0.1
        assert lib.count() == 2

    def test_name_for_index(self):
        """Test reverse lookup; unnamed records have an empty name."""
        lib = MaterialLibrary()
        lib.add(Material())
        lib.add(Material(), name="named")
        assert lib.name_for_index(0) == ""
        assert lib.name_for_index(1) == "named"
        assert lib.name_for_index(99) == ""

    def test_get_out_of_range(self):
        """Test that get validates its index."""
        lib = MaterialLibrary()
        with pytest.raises(IndexError):
            lib.get(0)

    def test_clear(self):
        """Test that clear removes records and names."""
        lib = MaterialLibrary()
        lib.add(Material(), name="x")
        lib.clear()
        assert lib.count() == 0
        assert "x" not in lib
        assert lib.names() == {}
