# python/polybevel/mesh.py
# Append-only mesh sink plus the numpy buffers handed to mesh consumers
# Exists to collect bevel output and expose it as typed arrays, with validation and OBJ export
# RELEVANT FILES: python/polybevel/builder.py, tests/test_mesh.py, tests/test_bevel_square.py

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np

Vec3 = Tuple[float, float, float]


@dataclass
class BevelMesh:
    """Triangle mesh produced by one or more bevel calls."""

    positions: np.ndarray
    normals: np.ndarray
    indices: np.ndarray

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])

    @property
    def triangle_count(self) -> int:
        if self.indices.ndim == 2:
            return int(self.indices.shape[0])
        return int(self.indices.size // 3)

    def bounds(self) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        if self.positions.size == 0:
            return None
        return self.positions.min(axis=0), self.positions.max(axis=0)


def shade(facing: np.ndarray, angle: float) -> Vec3:
    """3D normal of a face leaning outward along ``facing`` at slope ``angle``.

    ``angle`` is ``atan2(width, height)``: zero for a vertical wall, a right
    angle for a flat band.
    """

    cos = math.cos(angle)
    nx = float(facing[0]) * cos
    ny = float(facing[1]) * cos
    nz = math.sin(angle)
    length = math.sqrt(nx * nx + ny * ny + nz * nz)
    if length < 1e-12:
        return (0.0, 0.0, 1.0)
    return (nx / length, ny / length, nz / length)


class MeshSink:
    """Growable vertex, normal and triangle buffers.

    Alongside each vertex the sink remembers the outward direction it was
    shaded with and how far through its bevel band it sits, so that chained
    smooth bevels can re-blend the normals of the band below.
    """

    def __init__(self) -> None:
        self._positions: List[Vec3] = []
        self._normals: List[Vec3] = []
        self._facing: List[Tuple[float, float]] = []
        self._band_t: List[float] = []
        self._indices: List[Tuple[int, int, int]] = []

    @property
    def vertex_count(self) -> int:
        return len(self._positions)

    @property
    def triangle_count(self) -> int:
        return len(self._indices)

    def clear(self) -> None:
        self._positions.clear()
        self._normals.clear()
        self._facing.clear()
        self._band_t.clear()
        self._indices.clear()

    def add_vertex(self, position: Vec3, facing: np.ndarray, angle: float, band_t: float) -> int:
        index = len(self._positions)
        self._positions.append((float(position[0]), float(position[1]), float(position[2])))
        self._normals.append(shade(facing, angle))
        self._facing.append((float(facing[0]), float(facing[1])))
        self._band_t.append(float(band_t))
        return index

    def duplicate_vertex(self, position_of: int, normal_of: int) -> int:
        """Append a copy of one vertex's position with another vertex's shading."""

        index = len(self._positions)
        self._positions.append(self._positions[position_of])
        self._normals.append(self._normals[normal_of])
        self._facing.append(self._facing[normal_of])
        self._band_t.append(self._band_t[position_of])
        return index

    def add_triangle(self, a: int, b: int, c: int) -> None:
        self._indices.append((a, b, c))

    def blend_normals(self, start: int, start_angle: float, end_angle: float) -> None:
        """Reshade vertices from ``start`` on, interpolating the slope angle by band position."""

        for i in range(start, len(self._positions)):
            t = self._band_t[i]
            angle = start_angle + (end_angle - start_angle) * t
            self._normals[i] = shade(self._facing[i], angle)

    def position(self, index: int) -> Vec3:
        return self._positions[index]

    def normal(self, index: int) -> Vec3:
        return self._normals[index]

    def to_mesh(self) -> BevelMesh:
        positions = np.asarray(self._positions, dtype=np.float32).reshape(-1, 3)
        normals = np.asarray(self._normals, dtype=np.float32).reshape(-1, 3)
        indices = np.asarray(self._indices, dtype=np.uint32).reshape(-1, 3)
        return BevelMesh(
            positions=np.ascontiguousarray(positions),
            normals=np.ascontiguousarray(normals),
            indices=np.ascontiguousarray(indices),
        )


def validate_mesh(positions: np.ndarray, indices: np.ndarray, tolerance: float = 1e-5) -> Dict[str, Any]:
    """Weld coincident positions and report connectivity problems.

    Open edges are edges used by exactly one triangle once welded; for a bevel
    strip those are the input and output boundary loops.
    """

    pos = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    idx = np.asarray(indices, dtype=np.int64).reshape(-1, 3)

    out_of_range = int(np.count_nonzero((idx < 0) | (idx >= pos.shape[0])))
    if out_of_range:
        return {
            "valid": False,
            "triangle_count": int(idx.shape[0]),
            "out_of_range": out_of_range,
            "degenerate_triangles": 0,
            "open_edges": [],
        }

    keys = np.round(pos / tolerance).astype(np.int64)
    _, weld = np.unique(keys, axis=0, return_inverse=True)
    weld = weld.reshape(-1)
    welded = weld[idx]

    degenerate = (
        (welded[:, 0] == welded[:, 1])
        | (welded[:, 1] == welded[:, 2])
        | (welded[:, 2] == welded[:, 0])
    )

    counts: Dict[Tuple[int, int], int] = {}
    for tri in welded[~degenerate]:
        for k in range(3):
            a, b = int(tri[k]), int(tri[(k + 1) % 3])
            key = (a, b) if a < b else (b, a)
            counts[key] = counts.get(key, 0) + 1

    open_edges = sorted(edge for edge, n in counts.items() if n == 1)
    return {
        "valid": True,
        "triangle_count": int(idx.shape[0]),
        "out_of_range": 0,
        "degenerate_triangles": int(np.count_nonzero(degenerate)),
        "open_edges": open_edges,
    }


def save_obj(mesh: BevelMesh, path: Union[str, Path], name: str = "bevel") -> Path:
    """Write ``mesh`` as a Wavefront OBJ file with per-vertex normals."""

    path = Path(path)
    lines = [f"o {name}"]
    for x, y, z in mesh.positions.tolist():
        lines.append(f"v {x:.6f} {y:.6f} {z:.6f}")
    for x, y, z in mesh.normals.tolist():
        lines.append(f"vn {x:.6f} {y:.6f} {z:.6f}")
    lines.append("s 0")
    for a, b, c in mesh.indices.reshape(-1, 3).tolist():
        lines.append(f"f {a + 1}//{a + 1} {b + 1}//{b + 1} {c + 1}//{c + 1}")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path
