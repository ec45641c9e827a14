"""scenecheck: parse, load and validate a scene file.

Usage:
    scenecheck FILE [options]
    python -m parametric_scene FILE [options]

Options:
    --dump              Print every table of the loaded scene
    --build             Build the CSG and patch BVHs and report their sizes
    --max-depth N       Patch subdivision depth limit (default: 4)
    --flatness F        Patch flatness threshold (default: 0.05)
    --export OUT.npz    Write the packed renderer buffers to an archive
    --json              Print the scene as JSON instead of the text report
    -v, --verbose       Show debug logging

Exit status is 0 on success and 1 if the file cannot be read, parsed or
loaded.

Example:
    scenecheck examples/scenes/csg_showcase.scene --dump --build
"""

import argparse
import json
import logging
import sys
from collections.abc import Sequence

from parametric_scene.core.config import DEFAULT_PATCH_FLATNESS, DEFAULT_PATCH_MAX_DEPTH, BuildConfig
from parametric_scene.export.arrays import pack_scene, save_npz
from parametric_scene.export.dump import format_dump, format_summary
from parametric_scene.scene.errors import SceneError, SceneSyntaxError
from parametric_scene.scene.loader import load_file
from parametric_scene.scene.sexp import parse


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="scenecheck",
        description="Scene file parser and validator.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("file", help="Scene file to check")
    parser.add_argument(
        "--dump",
        action="store_true",
        help="Print parsed scene structure",
    )
    parser.add_argument(
        "--build",
        action="store_true",
        help="Build acceleration structures and report their sizes",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_PATCH_MAX_DEPTH,
        help=f"Patch subdivision depth limit (default: {DEFAULT_PATCH_MAX_DEPTH})",
    )
    parser.add_argument(
        "--flatness",
        type=float,
        default=DEFAULT_PATCH_FLATNESS,
        help=f"Patch flatness threshold (default: {DEFAULT_PATCH_FLATNESS})",
    )
    parser.add_argument(
        "--export",
        metavar="OUT.npz",
        help="Write packed renderer buffers to an .npz archive",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the scene as JSON instead of the text report",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = BuildConfig(patch_max_depth=args.max_depth, patch_flatness=args.flatness)
    except ValueError as e:
        parser.error(str(e))

    report = not args.json

    try:
        with open(args.file, encoding="utf-8") as f:
            source = f.read()
    except OSError:
        print(f"Error: Cannot open file: {args.file}", file=sys.stderr)
        return 1

    if report:
        print(f"Parsing {args.file}...")
    try:
        forms = parse(source, args.file)
    except SceneSyntaxError as e:
        print("  S-expression parse: FAILED", file=sys.stderr)
        print(f"  Error: {e}", file=sys.stderr)
        return 1
    if report:
        print(f"  S-expression parse: OK ({len(forms)} top-level forms)")

    try:
        doc = load_file(args.file)
    except SceneError as e:
        print("  Scene load: FAILED", file=sys.stderr)
        print(f"  Error: {e}", file=sys.stderr)
        return 1

    if not report:
        print(json.dumps(doc.to_dict(), indent=2))
    else:
        print("  Scene load: OK")
        print()
        print(format_summary(doc))
        if args.dump:
            print()
            print(format_dump(doc))

    if args.build:
        csg_bvh = doc.build_csg_bvh(config)
        groups = doc.build_patch_groups(config)
        if report:
            print()
            print("Build:")
            print(f"  CSG BVH:      {csg_bvh.node_count()} nodes (depth {csg_bvh.depth()})")
            for name, group in groups.items():
                print(
                    f"  {name}: {group.source_count} patches -> "
                    f"{group.sub_patch_count()} sub-patches, {group.bvh_node_count()} BVH nodes"
                )

    if args.export:
        arrays = pack_scene(doc, config)
        try:
            save_npz(arrays, args.export)
        except OSError as e:
            print(f"Error: Cannot write file: {args.export}: {e}", file=sys.stderr)
            return 1
        if report:
            print()
            print(f"Exported {arrays.nbytes()} bytes to {args.export}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
