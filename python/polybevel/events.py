# python/polybevel/events.py
# Close and split event predicates for the offset sweep
# Exists to keep the numerically fragile geometry in pure functions that can be tested in isolation
# RELEVANT FILES: python/polybevel/edges.py, python/polybevel/builder.py, tests/test_events.py

from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np

from .edges import Edge

EPSILON_FRACTION = 1e-4
EPSILON_FLOOR = 1e-9

# Closing speeds at or below this are treated as parallel fronts.
_MIN_CLOSING_SPEED = 0.001


def get_epsilon(
    a: np.ndarray,
    b: np.ndarray,
    fraction: float = EPSILON_FRACTION,
    floor: float = EPSILON_FLOOR,
) -> float:
    """Tolerance scaled to the magnitude of the two vectors being compared."""

    scale = max(float(np.max(np.abs(a))), float(np.max(np.abs(b))))
    return max(scale * fraction, floor)


def close_distance(
    edge: Edge,
    next_edge: Edge,
    fraction: float = EPSILON_FRACTION,
    floor: float = EPSILON_FLOOR,
    front: float = -math.inf,
) -> float:
    """Sweep distance at which ``edge`` shrinks to nothing against ``next_edge``.

    Both corners are measured from ``front``, the distance the sweep has
    already reached, so the result is never behind it. Returns ``math.inf``
    when the two corners never meet.
    """

    if edge.next_edge == edge.prev_edge:
        return max(edge.distance, front)

    base_distance = max(edge.distance, next_edge.distance, front)
    this_origin = edge.project(base_distance)
    next_origin = next_edge.project(base_distance)

    pos_dist = float(np.dot(next_origin - this_origin, edge.tangent))
    epsilon = get_epsilon(this_origin, next_origin, fraction, floor)

    d_prev = float(np.dot(edge.velocity, edge.tangent))
    d_next = float(np.dot(next_edge.velocity, edge.tangent))

    if d_prev - d_next <= _MIN_CLOSING_SPEED:
        return base_distance if pos_dist <= epsilon else math.inf

    return base_distance + max(0.0, pos_dist / (d_prev - d_next))


def split_distance(
    edge: Edge,
    other: Edge,
    other_next: Edge,
    fraction: float = EPSILON_FRACTION,
    floor: float = EPSILON_FLOOR,
    front: float = -math.inf,
) -> Tuple[float, Optional[np.ndarray]]:
    """Sweep distance at which the corner of ``edge`` cuts the segment of ``other``.

    A corner that already crossed the segment before ``front`` does not count.
    Returns ``(distance, split_position)``, or ``(math.inf, None)`` when the
    corner never lands strictly inside the segment before either edge closes.
    """

    if other.index == edge.index or float(np.dot(edge.velocity, edge.velocity)) <= 0.0:
        return math.inf, None

    dv = float(np.dot(other.velocity - edge.velocity, other.normal))
    if dv <= get_epsilon(edge.velocity, other.velocity, fraction, floor):
        return math.inf, None

    base_distance = max(edge.distance, other.distance, other_next.distance, front)
    this_origin = edge.project(base_distance)
    edge_origin = other.project(base_distance)

    dx = float(np.dot(this_origin - edge_origin, other.normal))
    if dx <= -get_epsilon(this_origin, edge_origin, fraction, floor):
        return math.inf, None

    t = dx / dv
    if t < 0.0:
        return math.inf, None

    if base_distance + t >= edge.max_distance or base_distance + t >= other.max_distance:
        return math.inf, None

    split_pos = this_origin + edge.velocity * t

    prev_pos = edge_origin + other.velocity * t
    next_pos = other_next.project(base_distance + t)

    d_prev = float(np.dot(split_pos - prev_pos, other.tangent))
    d_next = float(np.dot(split_pos - next_pos, other.tangent))

    epsilon = get_epsilon(prev_pos, next_pos, fraction, floor)
    if d_prev <= epsilon or d_next >= -epsilon:
        return math.inf, None

    return base_distance + t, split_pos
