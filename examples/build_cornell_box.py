#!/usr/bin/env python3
"""Build the Cornell box scene and export its renderer buffers.

This script demonstrates the programmatic path through the pipeline: it
creates the Cornell box through the CSG and material API, builds the
CSG-root BVH, packs every table into fixed-layout arrays and writes them
to an .npz archive a renderer can upload directly.

Usage:
    python examples/build_cornell_box.py [options]

Options:
    --size SIZE             Box size in scene units (default: 555)
    --light-intensity I     Ceiling light strength (default: 15)
    --output OUTPUT         Output file path (default: cornell_box.npz)
    --dump                  Print every table of the scene
    --quiet                 Suppress progress output

Example:
    python examples/build_cornell_box.py --size 10 --output box.npz --dump
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from parametric_scene.core.config import BuildConfig
from parametric_scene.export.arrays import pack_scene, save_npz
from parametric_scene.export.dump import format_dump, format_summary
from parametric_scene.scene.cornell_box import BOX_SIZE, CornellBoxParams, create_cornell_box_scene


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Build and export the Cornell box scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--size",
        type=float,
        default=BOX_SIZE,
        help=f"Box size in scene units (default: {BOX_SIZE:g})",
    )
    parser.add_argument(
        "--light-intensity",
        type=float,
        default=CornellBoxParams().light_intensity,
        help="Ceiling light strength (default: 15)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="cornell_box.npz",
        help="Output file path (default: cornell_box.npz)",
    )
    parser.add_argument(
        "--dump",
        action="store_true",
        help="Print every table of the scene",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def build_cornell_box(
    size: float = BOX_SIZE,
    light_intensity: float = 15.0,
    output_path: str = "cornell_box.npz",
    dump: bool = False,
    quiet: bool = False,
) -> Path:
    """Build the Cornell box and write its buffers.

    Args:
        size: Box size in scene units.
        light_intensity: Ceiling light strength.
        output_path: Where to write the .npz archive.
        dump: Print every table before exporting.
        quiet: Suppress progress output.

    Returns:
        Path to the written archive.
    """
    start_time = time.time()
    doc = create_cornell_box_scene(box_size=size, params=CornellBoxParams(light_intensity=light_intensity))

    if not quiet:
        print(format_summary(doc))
    if dump:
        print()
        print(format_dump(doc))

    arrays = pack_scene(doc, BuildConfig())

    output_file = Path(output_path)
    save_npz(arrays, output_file)

    if not quiet:
        print()
        print(f"CSG BVH nodes: {len(arrays.csg_bvh_nodes)}")
        print(f"Saved {arrays.nbytes()} bytes to: {output_file.absolute()}")
        print(f"Total time: {time.time() - start_time:.3f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    try:
        build_cornell_box(
            size=args.size,
            light_intensity=args.light_intensity,
            output_path=args.output,
            dump=args.dump,
            quiet=args.quiet,
        )
        return 0
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
