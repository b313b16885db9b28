# python/polybevel/builder.py
# Polygon mesh builder: offset sweep, event resolution and bevel strip emission
# Exists to turn 2D boundary loops into chained 3D bevel strips with sharp or smoothed corners
# RELEVANT FILES: python/polybevel/edges.py, python/polybevel/events.py, python/polybevel/mesh.py, tests/test_bevel_square.py

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Tuple

import numpy as np

from .candidates import CandidatePairTracker, Pair
from .config import BevelConfig, ConfigSource, load_bevel_config
from .edges import NO_VERTICES, Edge, EdgeGraph, VertexPair
from .events import close_distance, split_distance
from .mesh import BevelMesh, MeshSink, shade
from .polygon import as_loop

logger = logging.getLogger(__name__)

# Target distances closer to zero than this skip the sweep entirely.
_MIN_SWEEP_DISTANCE = 0.001
# Bands narrower than this are treated as having no width for height interpolation.
_MIN_BAND_WIDTH = 0.0001


class BevelExplodedError(RuntimeError):
    """The sweep hit its iteration cap with edges still active."""

    def __init__(self, iterations: int, active_edges: int):
        super().__init__(f"Exploded after {iterations} iterations with {active_edges} active edges")
        self.iterations = iterations
        self.active_edges = active_edges


@dataclass
class SweepScratch:
    """Reusable lists for one sweep at a time; cleared before every use."""

    cut_list: List[Pair] = field(default_factory=list)
    edge_list: List[int] = field(default_factory=list)


class PolygonMeshBuilder:
    """Builds bevelled strips by sweeping polygon loops inward.

    Each call to :meth:`bevel` offsets the active loops by ``width`` while
    rising by ``height``, appends the strip between the old and new loops to
    the mesh, and leaves the new loops active for the next call.

    Example:
        builder = PolygonMeshBuilder()
        builder.add_edge_loop([[0, 0], [1, 0], [1, 1], [0, 1]])
        builder.bevel(0.1, 0.1, smooth=False)
        mesh = builder.to_mesh()
    """

    def __init__(self, config: ConfigSource = None, **overrides: Any):
        self._config: BevelConfig = load_bevel_config(config, overrides)
        self._graph = EdgeGraph()
        self._candidates = CandidatePairTracker()
        self._sink = MeshSink()
        self._scratch = SweepScratch()
        self._reset_state()

    def _reset_state(self) -> None:
        self._prev_distance = 0.0
        self._next_distance = 0.0
        self._inv_distance = 0.0
        self._prev_height = 0.0
        self._next_height = 0.0
        self._prev_prev_angle = 0.0
        self._prev_angle = 0.0
        self._next_angle = 0.0
        self._min_smooth_normal_dot = self._config.min_smooth_normal_dot
        self._band_start = 0
        self._band_count = 0
        self._front = 0.0

    @property
    def config(self) -> BevelConfig:
        return self._config

    @property
    def debug(self) -> bool:
        return self._config.debug

    @debug.setter
    def debug(self, value: bool) -> None:
        self._config.debug = bool(value)

    @property
    def max_smooth_angle(self) -> float:
        return self._config.max_smooth_angle

    @max_smooth_angle.setter
    def max_smooth_angle(self, degrees: float) -> None:
        candidate = self._config.copy()
        candidate.max_smooth_angle = float(degrees)
        candidate.validate()
        self._config = candidate

    @property
    def edges(self) -> EdgeGraph:
        return self._graph

    @property
    def distance(self) -> float:
        return self._prev_distance

    @property
    def height(self) -> float:
        return self._prev_height

    @property
    def vertex_count(self) -> int:
        return self._sink.vertex_count

    @property
    def triangle_count(self) -> int:
        return self._sink.triangle_count

    def clear(self) -> None:
        self._graph.clear()
        self._candidates.clear()
        self._sink.clear()
        self._reset_state()

    def add_edge_loop(self, points: Any, offset: int = 0, count: Optional[int] = None) -> List[int]:
        """Register a closed boundary loop at the current distance.

        Outer boundaries wind counter-clockwise and holes clockwise, so the
        solid is always on the left.
        """

        loop = as_loop(points, offset, count)
        indices = self._graph.add_loop(loop, self._prev_distance)
        logger.debug(f"Added edge loop with {len(indices)} edges at distance {self._prev_distance}")
        return indices

    def add_edge_loops(self, loops: Iterable[Any]) -> None:
        for loop in loops:
            self.add_edge_loop(loop)

    def active_loops(self) -> List[np.ndarray]:
        graph = self._graph
        return [
            np.array([graph[index].origin for index in loop], dtype=np.float64).reshape(-1, 2)
            for loop in graph.loops()
        ]

    def to_mesh(self) -> BevelMesh:
        return self._sink.to_mesh()

    def extrude(self, depth: float) -> None:
        """Raise the active loops straight up by ``depth``."""

        self.bevel(0.0, depth, smooth=False)

    def arc(self, width: float, height: float, faces: int, convex: bool = True) -> None:
        """Approximate a rounded edge with ``faces`` chained bevels along a quarter ellipse."""

        if int(faces) != faces or faces < 1:
            raise ValueError(f"faces must be a positive integer, got {faces!r}")
        prev_width = 0.0
        prev_height = 0.0
        for i in range(int(faces)):
            theta = math.pi * 0.5 * (i + 1) / faces
            cos = math.cos(theta)
            sin = math.sin(theta)
            if convex:
                next_width, next_height = 1.0 - cos, sin
            else:
                next_width, next_height = sin, 1.0 - cos
            self.bevel((next_width - prev_width) * width, (next_height - prev_height) * height, smooth=i > 0)
            prev_width = next_width
            prev_height = next_height

    def fill(self, smooth: bool = False) -> None:
        """Collapse every active loop to its apex, capping it flat at the current height."""

        self.bevel(math.inf, 0.0, smooth)

    def bevel(self, width: float, height: float, smooth: bool, scratch: Optional[SweepScratch] = None) -> None:
        """Sweep the active loops inward by ``width`` while rising by ``height``."""

        width = float(width)
        height = float(height)
        if not width >= 0.0:
            raise ValueError(f"width must be non-negative, got {width!r}")
        if not math.isfinite(height):
            raise ValueError(f"height must be finite, got {height!r}")

        scratch = scratch if scratch is not None else self._scratch
        graph = self._graph

        self._next_distance = self._prev_distance + width
        self._next_height = self._prev_height + height
        self._next_angle = math.atan2(width, height)
        self._min_smooth_normal_dot = self._config.min_smooth_normal_dot
        self._inv_distance = 0.0 if width <= _MIN_BAND_WIDTH else 1.0 / (self._next_distance - self._prev_distance)

        if not smooth:
            self._prev_angle = self._next_angle
            for index in graph.active:
                graph[index].vertices = NO_VERTICES
        elif math.isinf(width):
            self._prev_angle = self._next_angle
            self._blend_previous_band()
        elif self._band_count > 0:
            self._prev_angle = (self._prev_angle + self._next_angle) * 0.5
            self._blend_previous_band()
        else:
            self._prev_angle = self._next_angle

        self._band_start = self._sink.vertex_count

        self._front = self._prev_distance
        self._candidates.clear()
        for index in graph.active:
            self._update_max_distance(graph[index])
        self._candidates.seed(graph)

        if abs(self._next_distance) > _MIN_SWEEP_DISTANCE:
            self._sweep(scratch)

        self._finalize(scratch)

        logger.debug(
            f"Bevel width={width} height={height} smooth={smooth}: "
            f"{graph.active_count} active edges, {self._sink.vertex_count} vertices, "
            f"{self._sink.triangle_count} triangles"
        )

        self._prev_distance = self._next_distance
        self._prev_height = self._next_height
        self._prev_prev_angle = self._prev_angle
        self._prev_angle = self._next_angle
        self._band_count += 1

    def _blend_previous_band(self) -> None:
        self._sink.blend_normals(self._band_start, self._prev_prev_angle, self._prev_angle)

    def _sweep(self, scratch: SweepScratch) -> None:
        graph = self._graph
        candidates = self._candidates
        fraction = self._config.epsilon_fraction
        floor = self._config.epsilon_floor

        max_iterations = self._config.iteration_limit
        if max_iterations is None:
            max_iterations = graph.active_count * graph.active_count

        iterations = 0
        while iterations < max_iterations and graph.active_count > 0:
            closed_edge: Optional[int] = None
            split_edge: Optional[int] = None
            splitting_edge: Optional[int] = None

            best_close_pos: Optional[np.ndarray] = None
            best_split_pos: Optional[np.ndarray] = None

            best_dist = self._next_distance

            for index in graph.active:
                edge = graph[index]
                if edge.max_distance >= best_dist:
                    continue
                best_dist = edge.max_distance
                closed_edge = index
                best_close_pos = edge.project(edge.max_distance)

            for index, other_index in candidates.snapshot(scratch.cut_list):
                if not graph.is_active(index) or not graph.is_active(other_index):
                    candidates.discard(index, other_index)
                    continue

                other = graph[other_index]
                split_dist, split_pos = split_distance(
                    graph[index], other, graph[other.next_edge], fraction, floor, front=self._front
                )

                if math.isinf(split_dist):
                    candidates.discard(index, other_index)
                    continue

                if split_dist >= best_dist:
                    continue

                best_dist = split_dist
                best_split_pos = split_pos
                closed_edge = None
                split_edge = other_index
                splitting_edge = index

            if self._config.debug:
                logger.info(
                    f"{iterations}: {graph.active_count}, {best_dist!r}, "
                    f"({splitting_edge}, {split_edge}, {closed_edge})"
                )

            if splitting_edge is not None:
                self._apply_split(split_edge, splitting_edge, best_split_pos, best_dist)
                iterations += 1
                continue

            if closed_edge is not None:
                self._apply_close(closed_edge, best_close_pos, best_dist)
                iterations += 1
                continue

            break

        if graph.active_count > 0 and iterations == max_iterations:
            raise BevelExplodedError(iterations, graph.active_count)

    def _apply_split(self, split_index: int, splitting_index: int, pos: np.ndarray, dist: float) -> None:
        # d's corner lands inside a's segment; a keeps the part before the cut,
        # b carries the rest and e replaces d on the other side.
        self._front = dist
        graph = self._graph
        sink = self._sink

        a = graph[split_index]
        d = graph[splitting_index]
        b = graph.add_edge(pos, a.tangent, dist)
        c = graph[d.prev_edge]
        e = graph.add_edge(pos, d.tangent, dist)
        a_next = graph[a.next_edge]
        d_next = graph[d.next_edge]

        ai = self._add_vertices(a).next
        fi = self._add_vertices(a_next).prev
        ci = self._add_vertices(c).next
        di = self._add_vertices(d)
        gi = self._add_vertices(d_next).prev

        graph.deactivate(d.index)
        graph.activate(b.index)
        graph.activate(e.index)

        graph.connect(a, e)
        graph.connect(e, d_next)

        graph.connect(c, b)
        graph.connect(b, a_next)

        self._update_max_distance(a)
        self._update_max_distance(e)
        self._update_max_distance(d_next)

        self._update_max_distance(c)
        self._update_max_distance(b)
        self._update_max_distance(a_next)

        bi = self._add_vertices(b)
        ei = self._add_vertices(e)

        sink.add_triangle(ai, fi, bi.next)
        sink.add_triangle(ci, di.prev, bi.prev)
        sink.add_triangle(di.next, gi, ei.next)

        # every edge whose links changed, including the cut edge a and c
        for edge in (a, b, c, e, d_next, a_next):
            self._candidates.add_all_for(edge.index, graph.active)

    def _apply_close(self, closed_index: int, pos: np.ndarray, dist: float) -> None:
        self._front = dist
        graph = self._graph
        sink = self._sink

        b = graph[closed_index]
        a = graph[b.prev_edge]
        c = graph[b.next_edge]
        c_next = graph[c.next_edge]

        graph.deactivate(b.index)
        graph.deactivate(c.index)

        if b.prev_edge == b.next_edge:
            # two-edge loop collapsed to its apex
            return

        d = graph.add_edge(pos, c.tangent, dist)
        graph.activate(d.index)

        graph.connect(a, d)
        graph.connect(d, c_next)

        self._update_max_distance(a)
        self._update_max_distance(d)
        self._update_max_distance(c_next)

        ai = self._add_vertices(a)
        bi = self._add_vertices(b)
        ci = self._add_vertices(c)
        ei = self._add_vertices(c_next)
        di = self._add_vertices(d)

        # b's face meets the apex on its own seam
        fi = sink.duplicate_vertex(di.prev, bi.next)

        sink.add_triangle(ai.next, bi.prev, di.prev)
        sink.add_triangle(bi.next, ci.prev, fi)
        sink.add_triangle(ci.next, ei.prev, di.next)

        for edge in (a, d, c_next):
            self._candidates.add_all_for(edge.index, graph.active)

    def _finalize(self, scratch: SweepScratch) -> None:
        graph = self._graph
        sink = self._sink

        edge_list = scratch.edge_list
        edge_list.clear()
        edge_list.extend(graph.active)

        graph.clear_active()

        if math.isinf(self._next_distance):
            if edge_list:
                logger.warning(f"{len(edge_list)} edges survived an unbounded sweep and were left uncapped")
            return

        for index in edge_list:
            b = graph[index]
            a = graph[b.prev_edge]
            c = graph[b.next_edge]
            d = graph.add_edge(b.project(self._next_distance), b.tangent, self._next_distance)

            ai = self._add_vertices(a)
            bi = self._add_vertices(b)
            ci = self._add_vertices(c)

            graph.connect(a, d)
            graph.connect(d, c)

            di = self._add_vertices(d, terminal=True)

            sink.add_triangle(ai.next, bi.prev, di.prev)
            sink.add_triangle(bi.next, ci.prev, di.next)

            graph.activate(d.index)

    def _update_max_distance(self, edge: Edge) -> None:
        edge.max_distance = close_distance(
            edge,
            self._graph[edge.next_edge],
            self._config.epsilon_fraction,
            self._config.epsilon_floor,
            front=self._front,
        )

    def _band_position(self, edge: Edge, terminal: bool) -> Tuple[float, float]:
        if terminal:
            return 1.0, self._next_height
        t = (edge.distance - self._prev_distance) * self._inv_distance
        t = min(max(t, 0.0), 1.0)
        return t, self._prev_height + (self._next_height - self._prev_height) * t

    def _add_vertices(self, edge: Edge, terminal: bool = False) -> VertexPair:
        if edge.vertices.prev > -1:
            return edge.vertices

        sink = self._sink
        t, z = self._band_position(edge, terminal)
        angle = self._prev_angle + (self._next_angle - self._prev_angle) * t
        position = (float(edge.origin[0]), float(edge.origin[1]), z)

        prev_facing = -self._graph[edge.prev_edge].normal
        next_facing = -edge.normal

        prev_normal = np.asarray(shade(prev_facing, angle))
        next_normal = np.asarray(shade(next_facing, angle))

        if float(np.dot(prev_normal, next_normal)) >= self._min_smooth_normal_dot:
            index = sink.add_vertex(position, (prev_facing + next_facing) * 0.5, angle, t)
            edge.vertices = VertexPair(index, index)
        else:
            prev_index = sink.add_vertex(position, prev_facing, angle, t)
            next_index = sink.add_vertex(position, next_facing, angle, t)
            edge.vertices = VertexPair(prev_index, next_index)

        return edge.vertices
