#!/usr/bin/env python3
"""
Bevel a polygon description and export the strip as OBJ.

The input is a JSON document:

    {
      "loops": [[[0, 0], [1, 0], [1, 1], [0, 1]]],
      "steps": [{"width": 0.1, "height": 0.2, "smooth": false}],
      "fill": true
    }

Usage:
    python -m polybevel shape.json -o shape.obj

RELEVANT FILES: python/polybevel/builder.py, python/polybevel/mesh.py, tests/test_cli.py
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Mapping, Optional

from .builder import BevelExplodedError, PolygonMeshBuilder
from .config import _to_bool, load_bevel_config
from .mesh import save_obj

logger = logging.getLogger(__name__)


def _load_job(path: Path) -> Mapping[str, Any]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, Mapping):
        raise ValueError("job file must contain a JSON object")
    if not data.get("loops"):
        raise ValueError("job file requires a non-empty 'loops' list")
    return data


def run_job(job: Mapping[str, Any], builder: PolygonMeshBuilder) -> PolygonMeshBuilder:
    """Apply a parsed job document to ``builder``."""

    builder.add_edge_loops(job["loops"])
    for i, step in enumerate(job.get("steps", [])):
        if not isinstance(step, Mapping):
            raise ValueError(f"steps[{i}] must be an object")
        if "faces" in step:
            builder.arc(
                float(step.get("width", 0.0)),
                float(step.get("height", 0.0)),
                int(step["faces"]),
                _to_bool(step.get("convex", True), f"steps[{i}].convex"),
            )
        else:
            builder.bevel(
                float(step.get("width", 0.0)),
                float(step.get("height", 0.0)),
                _to_bool(step.get("smooth", False), f"steps[{i}].smooth"),
            )
    if _to_bool(job.get("fill", False), "fill"):
        builder.fill(_to_bool(job.get("fill_smooth", False), "fill_smooth"))
    logger.info(
        f"Ran {len(job.get('steps', []))} steps on {len(job['loops'])} loops: "
        f"{builder.vertex_count} vertices, {builder.triangle_count} triangles"
    )
    return builder


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="polybevel",
        description="Bevel 2D polygon loops into a 3D triangle strip",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Bevel and write an OBJ next to the input
  python -m polybevel shape.json

  # Custom output path and smoothing angle
  python -m polybevel shape.json -o out.obj --max-smooth-angle 30
        """,
    )
    parser.add_argument("job", type=Path, help="JSON job file")
    parser.add_argument("-o", "--output", type=Path, default=None, help="OBJ output path")
    parser.add_argument("--config", type=Path, default=None, help="JSON bevel config file")
    parser.add_argument("--max-smooth-angle", type=float, default=None, help="Corner smoothing angle in degrees")
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log every sweep iteration",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(name)s: %(message)s")

    overrides = {}
    if args.max_smooth_angle is not None:
        overrides["max_smooth_angle"] = args.max_smooth_angle
    if args.verbose:
        overrides["debug"] = True

    output = args.output if args.output is not None else args.job.with_suffix(".obj")

    try:
        config = load_bevel_config(args.config, overrides)
        job = _load_job(args.job)
        builder = run_job(job, PolygonMeshBuilder(config))
        mesh = builder.to_mesh()
        save_obj(mesh, output, name=args.job.stem)
    except (OSError, ValueError, TypeError, BevelExplodedError) as exc:
        print(f"polybevel: {exc}", file=sys.stderr)
        return 1

    print(f"Wrote {mesh.vertex_count} vertices, {mesh.triangle_count} triangles to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
