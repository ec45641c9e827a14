"""Cornell box scene built entirely through the public CSG and material API.

The Cornell box is the standard global-illumination test scene:

- 5 walls forming an open box (left, right, back, floor, ceiling),
  each a thin CSG box
- Left wall: red diffuse
- Right wall: green diffuse
- Back, floor, ceiling: white diffuse
- 3 spheres with different materials (diffuse, metal, glass)
- Emissive light panel just below the ceiling

The box spans 0..box_size on every axis; the front (z = 0) is open.
All light-panel and sphere dimensions scale with box_size.

Example:
    >>> from parametric_scene.scene.cornell_box import create_cornell_box_scene
    >>> doc = create_cornell_box_scene()
    >>> doc.csg.root_count(), doc.materials.count()
    (9, 7)
    >>> len(doc.lights.emissive_lights)
    1
"""

from dataclasses import dataclass

from parametric_scene.geometry.csg import CSGScene
from parametric_scene.materials.library import Material, MaterialLibrary, MaterialType
from parametric_scene.scene.document import SceneDocument, find_emissive_lights
from parametric_scene.scene.lights import LightList

# =============================================================================
# Cornell Box Parameters
# =============================================================================


@dataclass
class CornellBoxParams:
    """Parameters for configuring a Cornell box scene.

    Attributes:
        light_intensity: Emission strength of the ceiling panel.
        light_color: RGB colour of the light (each component in [0, 1]).
        left_wall_color: RGB albedo of the left wall.
        right_wall_color: RGB albedo of the right wall.
        back_wall_color: RGB albedo of the back wall, floor and ceiling.

    Example:
        >>> params = CornellBoxParams()
        >>> params.light_intensity
        15.0
        >>> custom = CornellBoxParams(light_color=(1.0, 0.9, 0.8))
    """

    light_intensity: float = 15.0
    light_color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    left_wall_color: tuple[float, float, float] = (0.65, 0.05, 0.05)
    right_wall_color: tuple[float, float, float] = (0.12, 0.45, 0.15)
    back_wall_color: tuple[float, float, float] = (0.73, 0.73, 0.73)


# =============================================================================
# Cornell Box Constants
# =============================================================================

# Classic Cornell box dimensions (approximately 555x555x555 units)
BOX_SIZE = 555.0

# Wall slab thickness and light panel size at BOX_SIZE; scaled with the box
WALL_THICKNESS = 2.0
LIGHT_WIDTH = 130.0
LIGHT_DEPTH = 105.0
LIGHT_THICKNESS = 1.0
SPHERE_RADIUS = 80.0

DIFFUSE_SPHERE_ALBEDO = (0.73, 0.73, 0.73)
GLASS_SPHERE_IOR = 1.5

# Silver reflectance, slightly rough
METAL_SPHERE_ALBEDO = (0.95, 0.93, 0.88)
METAL_SPHERE_ROUGHNESS = 0.3


# =============================================================================
# Cornell Box Factory
# =============================================================================


def create_cornell_box_scene(
    box_size: float = BOX_SIZE,
    params: CornellBoxParams | None = None,
) -> SceneDocument:
    """Create a Cornell box scene document.

    The coordinate system places the box origin at (0, 0, 0) with:
    - X-axis: left to right (0 to box_size)
    - Y-axis: floor to ceiling (0 to box_size)
    - Z-axis: front to back (0 to box_size)

    Args:
        box_size: Size of the box in each dimension.
        params: Light and wall colours. Defaults to CornellBoxParams().

    Returns:
        A SceneDocument with 7 named materials, 9 root shapes and one
        emissive area light.

    Raises:
        ValueError: If box_size is not positive.
    """
    if box_size <= 0.0:
        raise ValueError(f"box_size must be positive, got {box_size}")
    if params is None:
        params = CornellBoxParams()

    k = box_size / BOX_SIZE
    half = box_size / 2.0
    t = WALL_THICKNESS * k / 2.0

    materials = MaterialLibrary()
    csg = CSGScene()

    # =========================================================================
    # Materials
    # =========================================================================

    red = materials.add(Material(albedo=params.left_wall_color), name="red")
    green = materials.add(Material(albedo=params.right_wall_color), name="green")
    white = materials.add(Material(albedo=params.back_wall_color), name="white")
    light = materials.add(
        Material(albedo=params.light_color, type=MaterialType.EMISSIVE, emissive=params.light_intensity),
        name="light",
    )
    diffuse = materials.add(Material(albedo=DIFFUSE_SPHERE_ALBEDO), name="diffuse")
    metal = materials.add(
        Material(albedo=METAL_SPHERE_ALBEDO, type=MaterialType.METAL, roughness=METAL_SPHERE_ROUGHNESS, metallic=1.0),
        name="metal",
    )
    glass = materials.add(
        Material(albedo=(1.0, 1.0, 1.0), type=MaterialType.GLASS, roughness=0.0, ior=GLASS_SPHERE_IOR),
        name="glass",
    )

    # =========================================================================
    # Walls (thin slabs whose inner faces lie on the box faces)
    # =========================================================================

    csg.add_box_shape((-t, half, half), (t, half, half), red)  # left, x = 0
    csg.add_box_shape((box_size + t, half, half), (t, half, half), green)  # right, x = box_size
    csg.add_box_shape((half, half, box_size + t), (half, half, t), white)  # back, z = box_size
    csg.add_box_shape((half, -t, half), (half, t, half), white)  # floor, y = 0
    csg.add_box_shape((half, box_size + t, half), (half, t, half), white)  # ceiling, y = box_size

    # =========================================================================
    # Area light (just below the ceiling)
    # =========================================================================

    info = get_light_info(box_size)
    csg.add_box_shape(info["center"], info["half_extents"], light)

    # =========================================================================
    # Spheres (resting on the floor)
    # =========================================================================

    r = SPHERE_RADIUS * k
    csg.add_sphere_shape((box_size * 0.27, r, box_size * 0.35), r, diffuse)
    csg.add_sphere_shape((box_size * 0.73, r, box_size * 0.35), r, metal)
    csg.add_sphere_shape((box_size * 0.5, r, box_size * 0.65), r, glass)

    lights = LightList(emissive_lights=find_emissive_lights(csg, materials))
    return SceneDocument(materials=materials, csg=csg, lights=lights)


def get_light_info(box_size: float = BOX_SIZE) -> dict[str, tuple[float, float, float]]:
    """Get the ceiling light panel geometry.

    Returns:
        A dictionary with keys:
        - 'center': Centre of the light box
        - 'half_extents': Half-extents of the light box
        - 'emitting_face': Area of the downward face as (area, 0, 0)
    """
    k = box_size / BOX_SIZE
    hw = LIGHT_WIDTH * k / 2.0
    hd = LIGHT_DEPTH * k / 2.0
    ht = LIGHT_THICKNESS * k / 2.0
    half = box_size / 2.0
    return {
        "center": (half, box_size - ht, half),
        "half_extents": (hw, ht, hd),
        "emitting_face": (4.0 * hw * hd, 0.0, 0.0),
    }


def get_cornell_box_bounds(box_size: float = BOX_SIZE) -> dict[str, tuple[float, float, float]]:
    """Get the interior bounds of the Cornell box.

    Returns:
        A dictionary with keys 'min', 'max', 'center' and 'size'.
    """
    return {
        "min": (0.0, 0.0, 0.0),
        "max": (box_size, box_size, box_size),
        "center": (box_size / 2.0, box_size / 2.0, box_size / 2.0),
        "size": (box_size, box_size, box_size),
    }
