"""Human-readable text reports of a SceneDocument.

format_summary() prints table sizes plus sun and floor settings;
format_dump() prints every table row by row. Both return strings so the
CLI and tests can use them alike.
"""

from parametric_scene.geometry.csg import PrimitiveNode
from parametric_scene.geometry.primitives import CSGPrimitive, PrimitiveType
from parametric_scene.materials.library import Material, MaterialType
from parametric_scene.scene.document import SceneDocument


def _v(values: tuple[float, ...]) -> str:
    return "(" + ", ".join(f"{x:g}" for x in values) + ")"


def format_material(index: int, material: Material, name: str = "") -> str:
    line = f"  [{index}] "
    if name:
        line += f'"{name}" '
    line += f"{material.type.name.lower()} rgb{_v(material.albedo)}"
    if material.type == MaterialType.METAL:
        line += f" roughness={material.roughness:g}"
        if material.metallic > 0:
            line += f" metallic={material.metallic:g}"
    elif material.type == MaterialType.GLASS:
        line += f" ior={material.ior:g}"
    elif material.type == MaterialType.EMISSIVE:
        line += f" emissive={material.emissive:g}"
    elif material.type == MaterialType.CHECKER:
        line += f" rgb2{_v(material.albedo2)} scale={material.pattern_scale:g}"
    return line


def format_primitive(index: int, prim: CSGPrimitive) -> str:
    p0, p1, p2 = prim.params
    line = f"  [{index}] {prim.type.name.lower()} at{_v(prim.center)}"
    if prim.type == PrimitiveType.SPHERE:
        line += f" r={p0:g}"
    elif prim.type == PrimitiveType.BOX:
        line += f" half{_v((p0, p1, p2))}"
    elif prim.type in (PrimitiveType.CYLINDER, PrimitiveType.CONE):
        line += f" r={p0:g} h={p1:g}"
    else:
        line += f" major={p0:g} minor={p1:g}"
    return line


def format_summary(doc: SceneDocument) -> str:
    """Counts, sun and floor settings."""
    counts = doc.summary()
    sun = doc.lights.sun
    lines = [
        "Scene summary:",
        f"  Materials:    {counts['materials']}",
        f"  Primitives:   {counts['primitives']}",
        f"  Nodes:        {counts['nodes']}",
        f"  Roots:        {counts['roots']}",
        f"  Patches:      {counts['patch_groups']} groups ({counts['patches']} patches)",
        f"  Instances:    {counts['instances']}",
        f"  Point lights: {counts['point_lights']}",
        f"  Emissive:     {counts['emissive_lights']}",
        "",
        "Sun:",
        f"  Azimuth:    {sun.azimuth:g} deg",
        f"  Elevation:  {sun.elevation:g} deg",
        f"  Color:      {_v(sun.color)}",
        f"  Intensity:  {sun.intensity:g}",
        f"  Radius:     {sun.angular_radius:g} deg",
        "",
        "Floor:",
        f"  Enabled:  {'yes' if doc.floor.enabled else 'no'}",
    ]
    if doc.floor.enabled:
        lines.append(f"  Y:        {doc.floor.y:g}")
        lines.append(f"  Material: {doc.floor.material}")
    return "\n".join(lines)


def format_dump(doc: SceneDocument) -> str:
    """Every table of the document, one row per line."""
    csg = doc.csg
    lines = ["Materials:"]
    for i, m in enumerate(doc.materials.materials):
        lines.append(format_material(i, m, doc.materials.name_for_index(i)))

    lines += ["", "Primitives:"]
    for i, p in enumerate(csg.primitives):
        lines.append(format_primitive(i, p))

    lines += ["", "Transforms:"]
    for i, t in enumerate(csg.transforms):
        lines.append(f"  [{i}] rotate{_v(t.rotation)} scale={t.scale:g}")

    lines += ["", "Nodes:"]
    for i, node in enumerate(csg.nodes):
        if isinstance(node, PrimitiveNode):
            lines.append(f"  [{i}] primitive -> prim[{node.primitive}] mat={node.material_id}")
        else:
            lines.append(
                f"  [{i}] {node.type.name.lower()} left={node.left} right={node.right} mat={node.material_id}"
            )

    lines += ["", "Roots: " + " ".join(str(r) for r in csg.roots)]

    lines += ["", "Patch Groups:"]
    for name, patches in doc.patch_groups.items():
        lines.append(f"  {name}: {len(patches)} patches")

    lines += ["", "Instances:"]
    for inst in doc.patch_instances:
        lines.append(
            f"  {inst.group} at{_v(inst.position)} scale={inst.scale:g} "
            f"rotate{_v(inst.rotation)} mat={inst.material}"
        )

    if doc.lights.point_lights:
        lines += ["", "Point Lights:"]
        for i, light in enumerate(doc.lights.point_lights):
            lines.append(
                f"  [{i}] at{_v(light.vector)} color{_v(light.color)} intensity={light.intensity:g}"
            )

    if doc.lights.emissive_lights:
        lines += ["", "Emissive Lights:"]
        for i, e in enumerate(doc.lights.emissive_lights):
            lines.append(f"  [{i}] prim={e.primitive_index} node={e.node_index} area={e.area:g}")

    return "\n".join(lines)
