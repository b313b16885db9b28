# python/polybevel/edges.py
# Edge records and the append-only edge arena they live in
# Exists to hold the offsetting fronts as circular loops addressed by stable integer handles
# RELEVANT FILES: python/polybevel/events.py, python/polybevel/builder.py, tests/test_edges.py

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, NamedTuple

import numpy as np

from .polygon import loop_tangents, rotate90

# Below this squared length two neighbouring normals are treated as cancelling out.
_MIN_NORMAL_SUM_SQ = 1e-5


class VertexPair(NamedTuple):
    """Mesh vertex indices emitted for an edge origin.

    ``prev`` is shaded with the predecessor's face, ``next`` with the edge's own
    face. Both are the same index when the corner is smooth.
    """

    prev: int
    next: int


NO_VERTICES = VertexPair(-1, -1)


@dataclass
class Edge:
    """One boundary segment, starting at ``origin`` and ending at the next edge's origin.

    The origin is only meaningful at ``distance``; it moves with ``velocity``
    as the sweep advances.
    """

    index: int
    origin: np.ndarray
    tangent: np.ndarray
    normal: np.ndarray
    distance: float
    prev_edge: int = -1
    next_edge: int = -1
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(2, dtype=np.float64))
    max_distance: float = math.inf
    vertices: VertexPair = NO_VERTICES

    def project(self, distance: float) -> np.ndarray:
        if distance == self.distance:
            return self.origin.copy()
        return self.origin + self.velocity * (distance - self.distance)

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "origin": self.origin.tolist(),
            "tangent": self.tangent.tolist(),
            "velocity": self.velocity.tolist(),
            "distance": self.distance,
            "max_distance": self.max_distance,
            "prev_edge": self.prev_edge,
            "next_edge": self.next_edge,
        }


class EdgeGraph:
    """Arena of edges linked into circular loops, plus the set of active edges.

    Records are never removed. Deactivated edges stay in the arena as history.
    """

    def __init__(self) -> None:
        self._edges: List[Edge] = []
        # dict keeps insertion order, which keeps sweeps deterministic
        self._active: Dict[int, None] = {}

    def __len__(self) -> int:
        return len(self._edges)

    def __getitem__(self, index: int) -> Edge:
        return self._edges[index]

    def __iter__(self) -> Iterator[Edge]:
        return iter(self._edges)

    @property
    def active(self) -> Iterator[int]:
        return iter(self._active)

    @property
    def active_count(self) -> int:
        return len(self._active)

    def is_active(self, index: int) -> bool:
        return index in self._active

    def activate(self, index: int) -> None:
        self._active[index] = None

    def deactivate(self, index: int) -> None:
        self._active.pop(index, None)

    def clear_active(self) -> None:
        self._active.clear()

    def clear(self) -> None:
        self._edges.clear()
        self._active.clear()

    def add_edge(self, origin: np.ndarray, tangent: np.ndarray, distance: float) -> Edge:
        tangent = np.asarray(tangent, dtype=np.float64)
        edge = Edge(
            index=len(self._edges),
            origin=np.array(origin, dtype=np.float64),
            tangent=tangent,
            normal=rotate90(tangent),
            distance=float(distance),
        )
        self._edges.append(edge)
        return edge

    @staticmethod
    def connect(prev: Edge, next: Edge) -> None:
        """Link ``prev -> next`` and derive the corner velocity of ``next``.

        The velocity is the miter vector of the two face normals, so both
        faces advance at unit speed along their own normal.
        """

        prev.next_edge = next.index
        next.prev_edge = prev.index

        total = prev.normal + next.normal
        sqr_mag = float(np.dot(total, total))
        if sqr_mag < _MIN_NORMAL_SUM_SQ:
            next.velocity = np.zeros(2, dtype=np.float64)
        else:
            next.velocity = 2.0 * total / sqr_mag

    def add_loop(self, points: np.ndarray, distance: float) -> List[int]:
        """Create and activate one closed loop of edges from validated points."""

        tangents = loop_tangents(points)
        edges = [self.add_edge(p, t, distance) for p, t in zip(points, tangents)]
        for i, edge in enumerate(edges):
            self.connect(edges[i - 1], edge)
        for edge in edges:
            self.activate(edge.index)
        return [edge.index for edge in edges]

    def loops(self) -> List[List[int]]:
        """Walk the active set and return each closed loop as edge indices in order."""

        seen: set = set()
        out: List[List[int]] = []
        for start in self._active:
            if start in seen:
                continue
            loop: List[int] = []
            index = start
            while index not in seen:
                seen.add(index)
                loop.append(index)
                index = self._edges[index].next_edge
            out.append(loop)
        return out
