"""Constructive solid geometry graph.

The CSG scene is an arena: primitives, transforms and nodes live in
append-only lists and refer to each other only by integer index. A node
is either a PrimitiveNode (referencing a primitive) or a BooleanNode
(referencing two earlier nodes). Roots mark the nodes that are
independently visible shapes; the renderer intersects each root tree and
shades it with the root node's material.

Bounds are conservative: a boolean node's AABB is the union of its
children's AABBs whatever the operator, so Intersect and Subtract nodes
get looser bounds than their true extent. Bounds only accelerate
traversal, so a loose box never drops a hit.

Example:
    >>> from parametric_scene.geometry.csg import CSGScene
    >>> csg = CSGScene()
    >>> s = csg.add_primitive_node(csg.add_sphere((0, 1, 0), 1.2), material_id=0)
    >>> b = csg.add_primitive_node(csg.add_box((0, 1, 0), (0.5, 1.5, 0.5)), material_id=0)
    >>> csg.add_root(csg.add_subtract(s, b, material_id=0))
    >>> csg.primitive_count(), csg.node_count(), csg.root_count()
    (2, 3, 1)
"""

from dataclasses import dataclass
from enum import IntEnum

from parametric_scene.core.vector import Vec3, as_vec3
from parametric_scene.geometry.aabb import AABB
from parametric_scene.geometry.primitives import (
    CSGPrimitive,
    CSGTransform,
    PrimitiveType,
    primitive_bounds,
    surface_area,
)


class CSGNodeType(IntEnum):
    """Node type tags (values match the shader)."""

    PRIMITIVE = 0
    UNION = 1
    INTERSECT = 2
    SUBTRACT = 3


BOOLEAN_OPS = (CSGNodeType.UNION, CSGNodeType.INTERSECT, CSGNodeType.SUBTRACT)


@dataclass(frozen=True)
class PrimitiveNode:
    """Leaf node referencing a primitive.

    Attributes:
        primitive: Index into the primitive table.
        material_id: Material index, meaningful when this node is a root.
    """

    primitive: int
    material_id: int

    @property
    def type(self) -> CSGNodeType:
        return CSGNodeType.PRIMITIVE


@dataclass(frozen=True)
class BooleanNode:
    """Interior node combining two child nodes.

    Attributes:
        op: One of UNION, INTERSECT, SUBTRACT.
        left: Index of the left child node.
        right: Index of the right child node.
        material_id: Material index, meaningful when this node is a root.
    """

    op: CSGNodeType
    left: int
    right: int
    material_id: int

    @property
    def type(self) -> CSGNodeType:
        return self.op


CSGNode = PrimitiveNode | BooleanNode


class CSGScene:
    """Builder and container for primitive, transform, node and root tables.

    Every add_* method appends and returns the new element's index. Node
    constructors validate the indices they receive, so a child always has
    a smaller index than its parent and the node table can never contain
    a cycle.

    Attributes:
        primitives: Primitive table.
        transforms: Transform table, parallel to `primitives`.
        nodes: Node table.
        roots: Indices of root nodes, in insertion order.
    """

    def __init__(self) -> None:
        """Initialize an empty CSG scene."""
        self.primitives: list[CSGPrimitive] = []
        self.transforms: list[CSGTransform] = []
        self.nodes: list[CSGNode] = []
        self.roots: list[int] = []

    def clear(self) -> None:
        """Remove all primitives, transforms, nodes and roots."""
        self.primitives.clear()
        self.transforms.clear()
        self.nodes.clear()
        self.roots.clear()

    # =========================================================================
    # Primitives
    # =========================================================================

    def _add_primitive(
        self,
        prim_type: PrimitiveType,
        center: Vec3,
        params: tuple[float, float, float],
    ) -> int:
        idx = len(self.primitives)
        self.primitives.append(
            CSGPrimitive(
                center=as_vec3(center),
                type=prim_type,
                params=(float(params[0]), float(params[1]), float(params[2])),
            )
        )
        self.transforms.append(CSGTransform())
        return idx

    def add_sphere(self, center: Vec3, radius: float) -> int:
        """Add a sphere primitive and return its index."""
        return self._add_primitive(PrimitiveType.SPHERE, center, (radius, 0.0, 0.0))

    def add_box(self, center: Vec3, half_extents: Vec3) -> int:
        """Add a box primitive given its center and half-extents."""
        hx, hy, hz = half_extents
        return self._add_primitive(PrimitiveType.BOX, center, (hx, hy, hz))

    def add_cylinder(self, center: Vec3, radius: float, height: float) -> int:
        """Add a capped cylinder whose base disc is centered at `center`."""
        return self._add_primitive(PrimitiveType.CYLINDER, center, (radius, height, 0.0))

    def add_cone(self, center: Vec3, radius: float, height: float) -> int:
        """Add a cone whose base disc is centered at `center`, apex at +height."""
        return self._add_primitive(PrimitiveType.CONE, center, (radius, height, 0.0))

    def add_torus(self, center: Vec3, major_radius: float, minor_radius: float) -> int:
        """Add a torus lying in the XZ plane."""
        return self._add_primitive(PrimitiveType.TORUS, center, (major_radius, minor_radius, 0.0))

    def set_transform(self, primitive: int, rotation: Vec3 | None = None, scale: float | None = None) -> None:
        """Update a primitive's transform in place.

        Args:
            primitive: Primitive index.
            rotation: New Euler angles in radians, or None to keep.
            scale: New uniform scale, or None to keep.

        Raises:
            IndexError: If the primitive index is out of range.
            ValueError: If scale is not positive.
        """
        self._check_primitive(primitive)
        transform = self.transforms[primitive]
        if rotation is not None:
            transform.rotation = as_vec3(rotation)
        if scale is not None:
            if scale <= 0.0:
                raise ValueError(f"Scale must be positive, got {scale}")
            transform.scale = float(scale)

    # =========================================================================
    # Nodes
    # =========================================================================

    def add_primitive_node(self, primitive: int, material_id: int) -> int:
        """Add a leaf node referencing `primitive` and return its index.

        Raises:
            IndexError: If the primitive index is out of range.
        """
        self._check_primitive(primitive)
        idx = len(self.nodes)
        self.nodes.append(PrimitiveNode(primitive=primitive, material_id=material_id))
        return idx

    def add_boolean(self, op: CSGNodeType, left: int, right: int, material_id: int) -> int:
        """Add a boolean node combining two existing nodes.

        Raises:
            ValueError: If `op` is not a boolean operator.
            IndexError: If either child index is out of range.
        """
        if op not in BOOLEAN_OPS:
            raise ValueError(f"Not a boolean operator: {op!r}")
        self._check_node(left)
        self._check_node(right)
        idx = len(self.nodes)
        self.nodes.append(BooleanNode(op=CSGNodeType(op), left=left, right=right, material_id=material_id))
        return idx

    def add_union(self, left: int, right: int, material_id: int) -> int:
        return self.add_boolean(CSGNodeType.UNION, left, right, material_id)

    def add_intersect(self, left: int, right: int, material_id: int) -> int:
        return self.add_boolean(CSGNodeType.INTERSECT, left, right, material_id)

    def add_subtract(self, left: int, right: int, material_id: int) -> int:
        return self.add_boolean(CSGNodeType.SUBTRACT, left, right, material_id)

    def add_root(self, node: int) -> None:
        """Mark a node as an independently visible shape.

        Raises:
            IndexError: If the node index is out of range.
        """
        self._check_node(node)
        self.roots.append(node)

    # =========================================================================
    # Convenience: primitive + node + root in one call
    # =========================================================================

    def _add_shape(self, primitive: int, material_id: int) -> int:
        node = self.add_primitive_node(primitive, material_id)
        self.add_root(node)
        return node

    def add_sphere_shape(self, center: Vec3, radius: float, material_id: int) -> int:
        return self._add_shape(self.add_sphere(center, radius), material_id)

    def add_box_shape(self, center: Vec3, half_extents: Vec3, material_id: int) -> int:
        return self._add_shape(self.add_box(center, half_extents), material_id)

    def add_cylinder_shape(self, center: Vec3, radius: float, height: float, material_id: int) -> int:
        return self._add_shape(self.add_cylinder(center, radius, height), material_id)

    def add_cone_shape(self, center: Vec3, radius: float, height: float, material_id: int) -> int:
        return self._add_shape(self.add_cone(center, radius, height), material_id)

    def add_torus_shape(self, center: Vec3, major_radius: float, minor_radius: float, material_id: int) -> int:
        return self._add_shape(self.add_torus(center, major_radius, minor_radius), material_id)

    # =========================================================================
    # Queries
    # =========================================================================

    def primitive_count(self) -> int:
        return len(self.primitives)

    def node_count(self) -> int:
        return len(self.nodes)

    def root_count(self) -> int:
        return len(self.roots)

    def primitive_aabb(self, primitive: int) -> AABB:
        """Compute the world-space bounds of a primitive including its transform."""
        self._check_primitive(primitive)
        return primitive_bounds(self.primitives[primitive], self.transforms[primitive])

    def node_aabb(self, node: int) -> AABB:
        """Compute the conservative bounds of a node's subtree.

        Boolean nodes always return the union of their children's bounds.
        """
        self._check_node(node)
        entry = self.nodes[node]
        if isinstance(entry, PrimitiveNode):
            return self.primitive_aabb(entry.primitive)
        return self.node_aabb(entry.left).union(self.node_aabb(entry.right))

    def root_aabbs(self) -> list[AABB]:
        """Compute the bounds of every root, in root order."""
        return [self.node_aabb(root) for root in self.roots]

    def primitive_surface_area(self, primitive: int) -> float:
        """Closed-form surface area of a primitive, scaled by its transform."""
        self._check_primitive(primitive)
        return surface_area(self.primitives[primitive], self.transforms[primitive].scale)

    def _check_primitive(self, primitive: int) -> None:
        if not 0 <= primitive < len(self.primitives):
            raise IndexError(
                f"Primitive index {primitive} out of range (have {len(self.primitives)})"
            )

    def _check_node(self, node: int) -> None:
        if not 0 <= node < len(self.nodes):
            raise IndexError(f"Node index {node} out of range (have {len(self.nodes)})")
