"""Unit tests for CSG primitives and the CSG graph.

Tests cover:
- Primitive construction and parallel transforms
- Node construction, index validation and acyclicity
- Roots and convenience shape helpers
- Conservative AABBs (boolean, rotated, scaled)
- Closed-form surface areas
"""

import math

import pytest

from parametric_scene.geometry.aabb import AABB
from parametric_scene.geometry.csg import BooleanNode, CSGNodeType, CSGScene, PrimitiveNode
from parametric_scene.geometry.primitives import CSGPrimitive, PrimitiveType, local_bounds, surface_area


def _approx_box(box: AABB, lo, hi):
    assert box.min == pytest.approx(lo)
    assert box.max == pytest.approx(hi)


class TestPrimitives:
    """Tests for adding primitives."""

    def test_add_returns_indices(self):
        """Test that each add_* returns the next primitive index."""
        csg = CSGScene()
        assert csg.add_sphere((0, 0, 0), 1.0) == 0
        assert csg.add_box((0, 0, 0), (1, 2, 3)) == 1
        assert csg.add_cylinder((0, 0, 0), 1.0, 2.0) == 2
        assert csg.add_cone((0, 0, 0), 1.0, 2.0) == 3
        assert csg.add_torus((0, 0, 0), 2.0, 0.5) == 4
        assert csg.primitive_count() == 5
        assert [p.type for p in csg.primitives] == list(PrimitiveType)

    def test_parameters_stored(self):
        """Test that shape parameters land in the documented slots."""
        csg = CSGScene()
        csg.add_box((1, 2, 3), (0.5, 1.5, 2.5))
        csg.add_torus((0, 0, 0), 2.0, 0.5)
        assert csg.primitives[0].center == (1.0, 2.0, 3.0)
        assert csg.primitives[0].params == (0.5, 1.5, 2.5)
        assert csg.primitives[1].params == (2.0, 0.5, 0.0)

    def test_identity_transform_per_primitive(self):
        """Test that every primitive gets its own identity transform."""
        csg = CSGScene()
        csg.add_sphere((0, 0, 0), 1.0)
        csg.add_sphere((1, 0, 0), 1.0)
        assert len(csg.transforms) == 2
        assert csg.transforms[0].rotation == (0.0, 0.0, 0.0)
        assert csg.transforms[0].scale == 1.0
        assert csg.transforms[0] is not csg.transforms[1]

    def test_set_transform(self):
        """Test that transforms mutate without touching primitive parameters."""
        csg = CSGScene()
        p = csg.add_sphere((0, 0, 0), 1.0)
        before = csg.primitives[p]
        csg.set_transform(p, rotation=(0.0, math.pi / 2, 0.0), scale=2.0)
        assert csg.transforms[p].scale == 2.0
        assert csg.transforms[p].is_rotated
        assert csg.primitives[p] is before

    def test_set_transform_validation(self):
        """Test bad primitive indices and non-positive scales."""
        csg = CSGScene()
        p = csg.add_sphere((0, 0, 0), 1.0)
        with pytest.raises(IndexError):
            csg.set_transform(5, scale=2.0)
        with pytest.raises(ValueError):
            csg.set_transform(p, scale=0.0)


class TestNodes:
    """Tests for node construction and roots."""

    def test_primitive_node(self):
        """Test PrimitiveNode fields and type tag."""
        csg = CSGScene()
        n = csg.add_primitive_node(csg.add_sphere((0, 0, 0), 1.0), material_id=3)
        node = csg.nodes[n]
        assert isinstance(node, PrimitiveNode)
        assert node.type == CSGNodeType.PRIMITIVE
        assert node.primitive == 0
        assert node.material_id == 3

    @pytest.mark.parametrize(
        "method,op",
        [
            ("add_union", CSGNodeType.UNION),
            ("add_intersect", CSGNodeType.INTERSECT),
            ("add_subtract", CSGNodeType.SUBTRACT),
        ],
    )
    def test_boolean_nodes(self, method, op):
        """Test the three boolean constructors."""
        csg = CSGScene()
        a = csg.add_primitive_node(csg.add_sphere((0, 0, 0), 1.0), 0)
        b = csg.add_primitive_node(csg.add_sphere((1, 0, 0), 1.0), 0)
        n = getattr(csg, method)(a, b, 1)
        node = csg.nodes[n]
        assert isinstance(node, BooleanNode)
        assert node.type == op
        assert (node.left, node.right, node.material_id) == (a, b, 1)

    def test_children_precede_parents(self):
        """Test that child indices are validated, so parents always follow children."""
        csg = CSGScene()
        a = csg.add_primitive_node(csg.add_sphere((0, 0, 0), 1.0), 0)
        with pytest.raises(IndexError):
            csg.add_union(a, a + 1, 0)
        with pytest.raises(IndexError):
            csg.add_primitive_node(7, 0)
        with pytest.raises(IndexError):
            csg.add_root(3)

    def test_non_boolean_op_rejected(self):
        """Test that add_boolean refuses the PRIMITIVE tag."""
        csg = CSGScene()
        a = csg.add_primitive_node(csg.add_sphere((0, 0, 0), 1.0), 0)
        with pytest.raises(ValueError):
            csg.add_boolean(CSGNodeType.PRIMITIVE, a, a, 0)

    def test_shape_helpers(self):
        """Test that *_shape adds a primitive, a node and a root."""
        csg = CSGScene()
        csg.add_sphere_shape((0, 0, 0), 1.0, 0)
        csg.add_box_shape((0, 0, 0), (1, 1, 1), 0)
        csg.add_cylinder_shape((0, 0, 0), 1.0, 1.0, 0)
        csg.add_cone_shape((0, 0, 0), 1.0, 1.0, 0)
        node = csg.add_torus_shape((0, 0, 0), 1.0, 0.25, 2)
        assert csg.primitive_count() == 5
        assert csg.node_count() == 5
        assert csg.roots == [0, 1, 2, 3, 4]
        assert csg.nodes[node].material_id == 2

    def test_clear(self):
        """Test that clear empties every table."""
        csg = CSGScene()
        csg.add_sphere_shape((0, 0, 0), 1.0, 0)
        csg.clear()
        assert (csg.primitive_count(), csg.node_count(), csg.root_count()) == (0, 0, 0)
        assert csg.transforms == []


class TestBounds:
    """Tests for primitive and node AABBs."""

    def test_local_bounds_per_type(self):
        """Test tight bounds for each primitive convention."""
        c = (1.0, 2.0, 3.0)
        _approx_box(local_bounds(CSGPrimitive(c, PrimitiveType.SPHERE, (1, 0, 0))), (0, 1, 2), (2, 3, 4))
        _approx_box(local_bounds(CSGPrimitive(c, PrimitiveType.BOX, (1, 2, 3))), (0, 0, 0), (2, 4, 6))
        # Cylinders and cones extend +Y from their base centre
        _approx_box(local_bounds(CSGPrimitive(c, PrimitiveType.CYLINDER, (1, 5, 0))), (0, 2, 2), (2, 7, 4))
        _approx_box(local_bounds(CSGPrimitive(c, PrimitiveType.CONE, (1, 5, 0))), (0, 2, 2), (2, 7, 4))
        # Torus ring lies in XZ
        _approx_box(local_bounds(CSGPrimitive(c, PrimitiveType.TORUS, (2, 0.5, 0))), (-1.5, 1.5, 0.5), (3.5, 2.5, 5.5))

    def test_scaled_bounds(self):
        """Test that uniform scale grows the box about the centre."""
        csg = CSGScene()
        p = csg.add_sphere((1, 0, 0), 1.0)
        csg.set_transform(p, scale=2.0)
        _approx_box(csg.primitive_aabb(p), (-1, -2, -2), (3, 2, 2))

    def test_rotated_bounds_are_spherical(self):
        """Test that rotation falls back to a bound enclosing any orientation."""
        csg = CSGScene()
        p = csg.add_box((0, 0, 0), (1, 2, 2))
        csg.set_transform(p, rotation=(0.3, 0.0, 0.0))
        box = csg.primitive_aabb(p)
        _approx_box(box, (-3, -3, -3), (3, 3, 3))

    def test_boolean_bounds_are_union(self):
        """Test that every boolean node's bound is the union of its children."""
        csg = CSGScene()
        a = csg.add_primitive_node(csg.add_sphere((0, 0, 0), 1.0), 0)
        b = csg.add_primitive_node(csg.add_sphere((3, 0, 0), 1.0), 0)
        for op in (csg.add_union, csg.add_intersect, csg.add_subtract):
            n = op(a, b, 0)
            _approx_box(csg.node_aabb(n), (-1, -1, -1), (4, 1, 1))

    def test_root_aabbs(self):
        """Test root bounds in root order."""
        csg = CSGScene()
        csg.add_sphere_shape((5, 0, 0), 1.0, 0)
        csg.add_sphere_shape((0, 0, 0), 2.0, 0)
        boxes = csg.root_aabbs()
        assert len(boxes) == 2
        _approx_box(boxes[0], (4, -1, -1), (6, 1, 1))
        _approx_box(boxes[1], (-2, -2, -2), (2, 2, 2))


class TestSurfaceArea:
    """Tests for closed-form surface areas."""

    @pytest.mark.parametrize(
        "prim_type,params,expected",
        [
            (PrimitiveType.SPHERE, (2, 0, 0), 16 * math.pi),
            (PrimitiveType.BOX, (1, 2, 3), 8 * (2 + 6 + 3)),
            (PrimitiveType.CYLINDER, (1, 3, 0), 2 * math.pi * 3 + 2 * math.pi),
            (PrimitiveType.CONE, (3, 4, 0), math.pi * 3 * (3 + 5)),
            (PrimitiveType.TORUS, (2, 0.5, 0), 4 * math.pi**2),
        ],
    )
    def test_formulas(self, prim_type, params, expected):
        """Test the area formula for each primitive type."""
        prim = CSGPrimitive((0, 0, 0), prim_type, params)
        assert surface_area(prim) == pytest.approx(expected)

    def test_scale_squared_and_rotation_ignored(self):
        """Test that area scales with scale^2 and ignores rotation."""
        csg = CSGScene()
        p = csg.add_sphere((0, 0, 0), 1.0)
        base = csg.primitive_surface_area(p)
        csg.set_transform(p, rotation=(1.0, 2.0, 3.0), scale=3.0)
        assert csg.primitive_surface_area(p) == pytest.approx(9 * base)
