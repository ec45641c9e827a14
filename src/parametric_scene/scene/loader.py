"""Scene loader: S-expression forms -> SceneDocument.

The loader drives the parser and feeds each top-level form to the same
public builder APIs a program would use (MaterialLibrary, CSGScene,
patch lists, lights). Top-level forms:

    (material NAME (type diffuse|metal|glass|dielectric|emissive|checker)
              (albedo|rgb R G B) (roughness X) (metallic X) (ior X)
              (emissive X) (color2|rgb2 R G B) (scale X))
    (shape GEOMETRY MATERIAL)
    (include "FILE")
    (patches|newell-patch NAME (vertices (X Y Z) ...) (patch I0 ... I15) ...)
    (instance GROUP (at X Y Z) (scale S) (rotate RX RY RZ) MATERIAL)
    (sun (azimuth DEG) (elevation DEG) (direction X Y Z)
         (color|rgb R G B) (intensity I) (radius DEG))
    (light (at|position X Y Z) (color|rgb R G B) (intensity I))
    (floor [(y Y)] MATERIAL)

Geometry expressions:

    (sphere (at|center X Y Z) (r|radius R))
    (box (at|center X Y Z) (half|size HX HY HZ))
    (cylinder (at|center X Y Z) (r|radius R) (h|height H))
    (cone (at|center X Y Z) (r|radius R) (h|height H))
    (torus (at|center X Y Z) (major|R R) (minor|r r))
    (union|intersect|intersection|subtract|difference GEOM GEOM ...)

Unknown top-level forms are ignored so older tools can read newer
scenes. Includes resolve relative to the including file and each
resolved path is read at most once per load.

A load is all-or-nothing: state is built privately and a SceneDocument
is returned only if every form was processed.

Example:
    >>> from parametric_scene.scene.loader import load_string
    >>> doc = load_string('''
    ...     (material "red" (type diffuse) (albedo 0.8 0.1 0.1))
    ...     (shape (sphere (at 0 1 0) (r 1)) "red")
    ... ''')
    >>> doc.materials.count(), doc.csg.primitive_count(), doc.csg.root_count()
    (1, 1, 1)
"""

import logging
import os
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from parametric_scene.core.vector import ZERO, Vec3, deg_to_rad
from parametric_scene.geometry.csg import CSGNodeType, CSGScene
from parametric_scene.geometry.patch import CONTROL_POINT_COUNT, Patch
from parametric_scene.materials.library import Material, MaterialLibrary, MaterialType
from parametric_scene.scene.document import (
    FloorSettings,
    PatchInstance,
    SceneDocument,
    find_emissive_lights,
)
from parametric_scene.scene.errors import (
    MissingPropertyError,
    SceneIOError,
    SceneLoadError,
    UnknownGeometryTypeError,
)
from parametric_scene.scene.lights import Light, LightList, SunLight
from parametric_scene.scene.sexp import Number, SExp, SList, Symbol, parse

logger = logging.getLogger(__name__)

PRIMITIVE_FORMS = ("sphere", "box", "cylinder", "cone", "torus")

BOOLEAN_FORMS = {
    "union": CSGNodeType.UNION,
    "intersect": CSGNodeType.INTERSECT,
    "intersection": CSGNodeType.INTERSECT,
    "subtract": CSGNodeType.SUBTRACT,
    "difference": CSGNodeType.SUBTRACT,
}


# =============================================================================
# Load context
# =============================================================================


@dataclass(frozen=True)
class LoadContext:
    """Where the loader currently is in the include chain.

    Attributes:
        directory: Base directory for relative includes.
        included: Resolved paths already read during this load.
        filename: File being processed, or None for in-memory source.
    """

    directory: Path
    included: frozenset[Path] = frozenset()
    filename: str | None = None

    def enter(self, path: Path) -> "LoadContext":
        """Context for processing the file at ``path``."""
        return LoadContext(directory=path.parent, included=self.included | {path}, filename=str(path))

    def resume(self, nested: "LoadContext") -> "LoadContext":
        """Return to this file, keeping what the nested file included."""
        return LoadContext(directory=self.directory, included=nested.included, filename=self.filename)


# =============================================================================
# Form helpers
# =============================================================================


def _form_name(form: SList) -> str:
    return form.head or "<list>"


def _as_name(value: SExp, what: str) -> str:
    if not isinstance(value, Symbol):
        raise SceneLoadError(f"{what} must be a name, got {value!r}")
    return value.name


def _as_number(value: SExp, what: str) -> float:
    if not isinstance(value, Number):
        raise SceneLoadError(f"{what} must be a number, got {value!r}")
    return value.value


def _properties(items: tuple[SExp, ...]) -> Iterator[tuple[str, SList]]:
    """Yield (key, property) for every list item that starts with a symbol."""
    for item in items:
        if isinstance(item, SList) and item.head is not None:
            yield item.head, item


def _scalar(prop: SList) -> float:
    if len(prop) < 2:
        raise SceneLoadError(f"'{prop.head}' expects a value")
    return _as_number(prop[1], f"'{prop.head}'")


def _vector(prop: SList) -> Vec3:
    if len(prop) < 4:
        raise SceneLoadError(f"'{prop.head}' expects 3 values")
    return (
        _as_number(prop[1], f"'{prop.head}'"),
        _as_number(prop[2], f"'{prop.head}'"),
        _as_number(prop[3], f"'{prop.head}'"),
    )


def _find(form: SList, keys: tuple[str, ...], min_length: int) -> SList | None:
    for key, prop in _properties(form.args):
        if key in keys and len(prop) >= min_length:
            return prop
    return None


def _get_center(form: SList) -> Vec3:
    prop = _find(form, ("at", "center"), 4)
    return ZERO if prop is None else _vector(prop)


def _get_float(form: SList, *keys: str) -> float:
    prop = _find(form, keys, 2)
    if prop is None:
        raise MissingPropertyError(keys[0], _form_name(form))
    return _scalar(prop)


def _get_vec3(form: SList, *keys: str) -> Vec3:
    prop = _find(form, keys, 4)
    if prop is None:
        raise MissingPropertyError(keys[0], _form_name(form))
    return _vector(prop)


# =============================================================================
# Loader
# =============================================================================


@dataclass
class _LoadState:
    """Tables under construction for a single load."""

    materials: MaterialLibrary = field(default_factory=MaterialLibrary)
    csg: CSGScene = field(default_factory=CSGScene)
    patch_groups: dict[str, list[Patch]] = field(default_factory=dict)
    patch_instances: list[PatchInstance] = field(default_factory=list)
    sun: SunLight = field(default_factory=SunLight)
    point_lights: list[Light] = field(default_factory=list)
    floor: FloorSettings = field(default_factory=FloorSettings)
    source_files: list[str] = field(default_factory=list)


class SceneLoader:
    """Interprets scene-language source into a SceneDocument.

    A loader instance keeps no state between loads; each call to
    load_file() or load_string() starts from empty tables.
    """

    def __init__(self) -> None:
        self._state = _LoadState()
        self._handlers: dict[str, Callable[[SList, LoadContext], LoadContext | None]] = {
            "material": self._process_material,
            "shape": self._process_shape,
            "include": self._process_include,
            "patches": self._process_patches,
            "newell-patch": self._process_patches,
            "instance": self._process_instance,
            "sun": self._process_sun,
            "light": self._process_light,
            "floor": self._process_floor,
        }

    # =========================================================================
    # Entry points
    # =========================================================================

    def load_file(self, path: str | os.PathLike[str]) -> SceneDocument:
        """Load a scene file; includes resolve relative to its directory.

        Raises:
            SceneIOError: If the file or an included file cannot be read.
            SceneSyntaxError: If any file is not well-formed.
            SceneLoadError: If a form cannot be interpreted.
        """
        self._state = _LoadState()
        resolved = Path(path).resolve()
        source = self._read(resolved)
        ctx = LoadContext(directory=resolved.parent).enter(resolved)
        self._process_source(source, ctx)
        return self._finish()

    def load_string(
        self,
        source: str,
        base_dir: str | os.PathLike[str] = ".",
        filename: str | None = None,
    ) -> SceneDocument:
        """Load scene source held in memory.

        Args:
            source: Scene-language text.
            base_dir: Directory that relative includes resolve against.
            filename: Optional name used in syntax error messages.
        """
        self._state = _LoadState()
        ctx = LoadContext(directory=Path(base_dir).resolve(), filename=filename)
        self._process_source(source, ctx)
        return self._finish()

    # =========================================================================
    # Driver
    # =========================================================================

    def _read(self, path: Path) -> str:
        try:
            with open(path, encoding="utf-8") as f:
                text = f.read()
        except OSError as err:
            raise SceneIOError(str(path)) from err
        self._state.source_files.append(str(path))
        return text

    def _process_source(self, source: str, ctx: LoadContext) -> LoadContext:
        for form in parse(source, ctx.filename):
            ctx = self._process_top_level(form, ctx)
        return ctx

    def _process_top_level(self, form: SExp, ctx: LoadContext) -> LoadContext:
        if not isinstance(form, SList) or len(form) == 0:
            return ctx
        head = form.head
        if head is None:
            raise SceneLoadError(f"Top-level form must start with a name: {form!r}")
        handler = self._handlers.get(head)
        if handler is None:
            logger.debug("Ignoring unknown form '%s'", head)
            return ctx
        return handler(form, ctx) or ctx

    def _finish(self) -> SceneDocument:
        state = self._state
        lights = LightList(
            sun=state.sun,
            point_lights=state.point_lights,
            emissive_lights=find_emissive_lights(state.csg, state.materials),
        )
        doc = SceneDocument(
            materials=state.materials,
            csg=state.csg,
            patch_groups=state.patch_groups,
            patch_instances=state.patch_instances,
            lights=lights,
            floor=state.floor,
            source_files=tuple(state.source_files),
        )
        for name in doc.undefined_instance_groups():
            logger.warning("Instance references undefined patch group '%s'", name)
        for inst in doc.patch_instances:
            if inst.material not in doc.materials:
                logger.warning("Instance of '%s' uses unknown material '%s', using 0", inst.group, inst.material)
        if state.floor.enabled and state.floor.material and state.floor.material not in doc.materials:
            logger.warning("Floor uses unknown material '%s', using 0", state.floor.material)
        self._state = _LoadState()
        return doc

    def _material_id(self, name: str) -> int:
        if name not in self._state.materials:
            logger.warning("Unknown material '%s', using 0", name)
        return self._state.materials.find(name)

    # =========================================================================
    # Top-level forms
    # =========================================================================

    def _process_include(self, form: SList, ctx: LoadContext) -> LoadContext:
        if len(form) < 2:
            raise SceneLoadError("include requires a filename")
        filename = _as_name(form[1], "include filename")
        path = (ctx.directory / filename).resolve()

        if path in ctx.included:
            logger.debug("Skipping already included file %s", path)
            return ctx

        logger.debug("Including %s", path)
        source = self._read(path)
        nested = self._process_source(source, ctx.enter(path))
        return ctx.resume(nested)

    def _process_material(self, form: SList, ctx: LoadContext) -> None:
        if len(form) < 2:
            raise SceneLoadError("material requires a name")
        name = _as_name(form[1], "material name")

        values: dict[str, object] = {}
        for key, prop in _properties(form.items[2:]):
            if key == "type":
                if len(prop) < 2:
                    raise SceneLoadError("'type' expects a material type")
                type_name = _as_name(prop[1], "material type")
                try:
                    values["type"] = MaterialType.from_name(type_name)
                except KeyError:
                    logger.warning("Material '%s': unknown type '%s', using diffuse", name, type_name)
            elif key in ("albedo", "rgb"):
                values["albedo"] = _vector(prop)
            elif key in ("color2", "rgb2"):
                values["albedo2"] = _vector(prop)
            elif key == "scale":
                values["pattern_scale"] = _scalar(prop)
            elif key in ("roughness", "metallic", "ior", "emissive"):
                values[key] = _scalar(prop)

        self._state.materials.add(Material(**values), name=name)  # type: ignore[arg-type]

    def _process_shape(self, form: SList, ctx: LoadContext) -> None:
        if len(form) < 3:
            raise SceneLoadError("shape requires geometry and material")
        material_id = self._material_id(_as_name(form[2], "shape material"))
        node = self._process_geometry(form[1], material_id)
        self._state.csg.add_root(node)

    def _process_patches(self, form: SList, ctx: LoadContext) -> None:
        if len(form) < 2:
            raise SceneLoadError(f"{form.head} requires a name")
        name = _as_name(form[1], "patch group name")

        vertices: list[Vec3] = []
        index_lists: list[list[int]] = []
        for key, item in _properties(form.items[2:]):
            if key == "vertices":
                for v in item.args:
                    if isinstance(v, SList) and len(v) >= 3:
                        vertices.append(
                            (
                                _as_number(v[0], "vertex"),
                                _as_number(v[1], "vertex"),
                                _as_number(v[2], "vertex"),
                            )
                        )
                    else:
                        logger.warning("Patch group '%s': skipping malformed vertex %r", name, v)
            elif key == "patch":
                if len(item) < CONTROL_POINT_COUNT + 1:
                    logger.warning(
                        "Patch group '%s': skipping patch with %d indices (need %d)",
                        name,
                        len(item) - 1,
                        CONTROL_POINT_COUNT,
                    )
                    continue
                index_lists.append(
                    [int(_as_number(v, "patch index")) for v in item.items[1 : CONTROL_POINT_COUNT + 1]]
                )

        patches: list[Patch] = []
        for indices in index_lists:
            points: list[Vec3] = []
            for idx in indices:
                if 0 <= idx < len(vertices):
                    points.append(vertices[idx])
                else:
                    logger.warning(
                        "Patch group '%s': vertex index %d out of range (%d vertices), using origin",
                        name,
                        idx,
                        len(vertices),
                    )
                    points.append(ZERO)
            patches.append(Patch(tuple(points)))

        if name in self._state.patch_groups:
            logger.debug("Patch group '%s' redefined", name)
        self._state.patch_groups[name] = patches
        logger.debug("Patch group '%s': %d vertices, %d patches", name, len(vertices), len(patches))

    def _process_instance(self, form: SList, ctx: LoadContext) -> None:
        if len(form) < 3:
            raise SceneLoadError("instance requires name and material")
        group = _as_name(form[1], "instance group")
        material = _as_name(form[-1], "instance material")

        position, scale, rotation = ZERO, 1.0, ZERO
        for key, prop in _properties(form.items[2:-1]):
            if key == "at":
                position = _vector(prop)
            elif key == "scale":
                scale = _scalar(prop)
            elif key == "rotate":
                rotation = deg_to_rad(_vector(prop))

        self._state.patch_instances.append(
            PatchInstance(group=group, position=position, scale=scale, rotation=rotation, material=material)
        )

    def _process_sun(self, form: SList, ctx: LoadContext) -> None:
        sun = self._state.sun
        values = {
            "azimuth": sun.azimuth,
            "elevation": sun.elevation,
            "color": sun.color,
            "intensity": sun.intensity,
            "angular_radius": sun.angular_radius,
        }
        for key, prop in _properties(form.args):
            if key in ("azimuth", "elevation", "intensity"):
                values[key] = _scalar(prop)
            elif key == "radius":
                values["angular_radius"] = _scalar(prop)
            elif key in ("color", "rgb"):
                values["color"] = _vector(prop)
            elif key == "direction":
                angles = SunLight.angles_from_direction(_vector(prop))
                if angles is None:
                    logger.warning("Ignoring zero-length sun direction")
                else:
                    values["azimuth"], values["elevation"] = angles
        self._state.sun = SunLight(**values)  # type: ignore[arg-type]

    def _process_light(self, form: SList, ctx: LoadContext) -> None:
        values: dict[str, object] = {}
        for key, prop in _properties(form.args):
            if key in ("at", "position"):
                values["position"] = _vector(prop)
            elif key in ("color", "rgb"):
                values["color"] = _vector(prop)
            elif key == "intensity":
                values["intensity"] = _scalar(prop)
        self._state.point_lights.append(Light.point(**values))  # type: ignore[arg-type]

    def _process_floor(self, form: SList, ctx: LoadContext) -> None:
        material = ""
        y = self._state.floor.y
        if len(form) >= 2:
            material = _as_name(form[-1], "floor material")
            for key, prop in _properties(form.items[1:-1]):
                if key == "y":
                    y = _scalar(prop)
        self._state.floor = FloorSettings(enabled=True, y=y, material=material)

    # =========================================================================
    # Geometry
    # =========================================================================

    def _process_geometry(self, expr: SExp, material_id: int) -> int:
        """Build the node tree for a geometry expression and return its index."""
        if not isinstance(expr, SList) or len(expr) == 0:
            raise SceneLoadError(f"Invalid geometry expression: {expr!r}")
        kind = expr.head
        if kind is None:
            raise SceneLoadError(f"Geometry expression must start with a name: {expr!r}")

        csg = self._state.csg
        if kind in PRIMITIVE_FORMS:
            center = _get_center(expr)
            if kind == "sphere":
                prim = csg.add_sphere(center, _get_float(expr, "r", "radius"))
            elif kind == "box":
                prim = csg.add_box(center, _get_vec3(expr, "half", "size"))
            elif kind == "cylinder":
                prim = csg.add_cylinder(center, _get_float(expr, "r", "radius"), _get_float(expr, "h", "height"))
            elif kind == "cone":
                prim = csg.add_cone(center, _get_float(expr, "r", "radius"), _get_float(expr, "h", "height"))
            else:
                prim = csg.add_torus(center, _get_float(expr, "major", "R"), _get_float(expr, "minor", "r"))
            return csg.add_primitive_node(prim, material_id)

        op = BOOLEAN_FORMS.get(kind)
        if op is None:
            raise UnknownGeometryTypeError(kind)
        if len(expr) < 3:
            raise SceneLoadError(f"CSG operation '{kind}' requires at least 2 children")

        # Left fold: ((a op b) op c) op d ...
        result = self._process_geometry(expr[1], material_id)
        for child in expr.items[2:]:
            right = self._process_geometry(child, material_id)
            result = csg.add_boolean(op, result, right, material_id)
        return result


# =============================================================================
# Convenience functions
# =============================================================================


def load_file(path: str | os.PathLike[str]) -> SceneDocument:
    """Load a scene file with a fresh SceneLoader."""
    return SceneLoader().load_file(path)


def load_string(source: str, base_dir: str | os.PathLike[str] = ".", filename: str | None = None) -> SceneDocument:
    """Load in-memory scene source with a fresh SceneLoader."""
    return SceneLoader().load_string(source, base_dir, filename)
