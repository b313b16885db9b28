# python/polybevel/polygon.py
# Boundary loop preparation: validation, winding and per-segment tangents
# Exists to turn raw point arrays into loops the edge graph can consume
# RELEVANT FILES: python/polybevel/edges.py, python/polybevel/builder.py, tests/test_polygon.py

from __future__ import annotations

from typing import Any, Optional

import numpy as np


def as_loop(points: Any, offset: int = 0, count: Optional[int] = None) -> np.ndarray:
    """Validate a boundary loop and return it as a float64 ``(N, 2)`` array.

    A trailing point equal to the first one is treated as an explicit
    closing point and dropped.
    """

    arr = np.asarray(points, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError("loop points must have shape (N, 2)")
    if offset < 0:
        raise ValueError(f"offset must be non-negative, got {offset}")
    stop = arr.shape[0] if count is None else offset + int(count)
    if stop > arr.shape[0]:
        raise ValueError(f"loop range [{offset}, {stop}) exceeds {arr.shape[0]} points")
    arr = arr[offset:stop]
    if arr.shape[0] > 1 and np.array_equal(arr[0], arr[-1]):
        arr = arr[:-1]
    if arr.shape[0] < 3:
        raise ValueError("loop requires at least 3 distinct points")
    if not np.all(np.isfinite(arr)):
        raise ValueError("loop points must be finite")
    return np.ascontiguousarray(arr)


def signed_area(points: Any) -> float:
    """Shoelace area; positive for counter-clockwise loops."""

    arr = np.asarray(points, dtype=np.float64)
    if arr.shape[0] < 3:
        return 0.0
    x = arr[:, 0]
    y = arr[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))


def ensure_winding(points: Any, ccw: bool = True) -> np.ndarray:
    """Return the loop wound counter-clockwise (outer boundary) or clockwise (hole)."""

    arr = as_loop(points)
    area = signed_area(arr)
    if (area < 0.0) == ccw:
        arr = arr[::-1].copy()
    return arr


def loop_tangents(points: np.ndarray) -> np.ndarray:
    """Unit direction of each segment ``points[i] -> points[i + 1]`` (wrapping)."""

    delta = np.roll(points, -1, axis=0) - points
    lengths = np.linalg.norm(delta, axis=1)
    if np.any(lengths <= 0.0):
        bad = int(np.argmin(lengths))
        raise ValueError(f"loop has a zero-length segment starting at point {bad}")
    return delta / lengths[:, None]


def rotate90(vector: np.ndarray) -> np.ndarray:
    """Rotate a 2D vector a quarter turn counter-clockwise."""

    return np.array([-vector[1], vector[0]], dtype=np.float64)
