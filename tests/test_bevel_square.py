# tests/test_bevel_square.py
# Validates bevel sweeps on a unit square: plain offsets, full collapse and chaining
# Exists to ensure convex bevels stay watertight and deterministic
# RELEVANT FILES: python/polybevel/builder.py, python/polybevel/mesh.py, tests/test_bevel_split.py

import logging

import numpy as np
import pytest

from polybevel import BevelExplodedError, PolygonMeshBuilder, SweepScratch, validate_mesh
from polybevel.polygon import signed_area


def _builder(points, **overrides) -> PolygonMeshBuilder:
    builder = PolygonMeshBuilder(**overrides)
    builder.add_edge_loop(points)
    return builder


def test_flat_bevel_gives_concentric_square(unit_square, areas) -> None:
    builder = _builder(unit_square)
    builder.bevel(0.25, 0.0, smooth=False)

    loops = builder.active_loops()
    assert len(loops) == 1
    np.testing.assert_allclose(
        loops[0],
        [[0.25, 0.25], [0.75, 0.25], [0.75, 0.75], [0.25, 0.75]],
    )

    mesh = builder.to_mesh()
    assert mesh.triangle_count == 8
    assert mesh.vertex_count == 8
    # no events: four input edges plus four capped ones
    assert len(builder.edges) == 8

    tri_areas = areas(mesh)
    assert np.all(tri_areas > 0.0)
    assert tri_areas.sum() == pytest.approx(1.0 - 0.25, abs=1e-6)

    report = validate_mesh(mesh.positions, mesh.indices)
    assert report["degenerate_triangles"] == 0
    assert len(report["open_edges"]) == 8


def test_half_width_collapses_square_to_apex(unit_square, areas) -> None:
    builder = _builder(unit_square)
    builder.bevel(0.5, 0.0, smooth=False)

    mesh = builder.to_mesh()
    assert mesh.triangle_count == 8
    np.testing.assert_allclose(builder.active_loops()[0], np.full((4, 2), 0.5))
    assert areas(mesh).sum() == pytest.approx(1.0, abs=1e-6)


def test_overshoot_closes_every_edge(unit_square, areas) -> None:
    builder = _builder(unit_square)
    builder.bevel(1.0, 0.0, smooth=False)

    assert builder.active_loops() == []
    mesh = builder.to_mesh()
    assert mesh.triangle_count == 6
    tri_areas = areas(mesh)
    assert np.all(tri_areas >= -1e-9)
    assert tri_areas.sum() == pytest.approx(1.0, abs=1e-6)


def test_sloped_bevel_heights_and_normals(unit_square) -> None:
    builder = _builder(unit_square)
    builder.bevel(0.25, 0.5, smooth=False)

    mesh = builder.to_mesh()
    z = mesh.positions[:, 2]
    assert set(np.round(z, 6).tolist()) == {0.0, 0.5}
    # sharp corners keep one vertex per face on both rings
    assert mesh.vertex_count == 16
    assert np.all(mesh.normals[:, 2] > 0.0)
    np.testing.assert_allclose(np.linalg.norm(mesh.normals, axis=1), 1.0, atol=1e-6)

    tri = mesh.positions[mesh.indices.astype(np.int64)]
    face_normals = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
    vertex_normals = mesh.normals[mesh.indices[:, 0].astype(np.int64)]
    assert np.all(np.einsum("ij,ij->i", face_normals, vertex_normals) > 0.0)


def test_zero_width_keeps_loop_and_extrude_builds_walls(unit_square) -> None:
    builder = _builder(unit_square)
    builder.bevel(0.0, 0.0, smooth=False)
    np.testing.assert_allclose(builder.active_loops()[0], unit_square)

    builder = _builder(unit_square)
    builder.extrude(1.0)
    mesh = builder.to_mesh()
    np.testing.assert_allclose(builder.active_loops()[0], unit_square)
    assert mesh.triangle_count == 8
    assert set(np.round(mesh.positions[:, 2], 6).tolist()) == {0.0, 1.0}
    np.testing.assert_allclose(mesh.normals[:, 2], 0.0, atol=1e-6)
    assert builder.height == pytest.approx(1.0)


def test_chained_bevels_match_single_bevel(unit_square) -> None:
    chained = _builder(unit_square)
    chained.bevel(0.1, 0.0, smooth=False)
    chained.bevel(0.15, 0.0, smooth=False)

    single = _builder(unit_square)
    single.bevel(0.25, 0.0, smooth=False)

    np.testing.assert_allclose(chained.active_loops()[0], single.active_loops()[0], atol=1e-9)
    assert chained.distance == pytest.approx(0.25)


def test_negative_width_is_rejected_without_side_effects(unit_square) -> None:
    builder = _builder(unit_square)
    with pytest.raises(ValueError):
        builder.bevel(-0.1, 0.0, smooth=False)
    with pytest.raises(ValueError):
        builder.bevel(float("nan"), 0.0, smooth=False)

    assert builder.vertex_count == 0
    assert builder.distance == 0.0
    assert len(builder.edges) == 4


def test_iteration_cap_raises_exploded(unit_square) -> None:
    builder = _builder(unit_square, iteration_limit=2)
    with pytest.raises(BevelExplodedError) as excinfo:
        builder.bevel(1.0, 0.0, smooth=False)

    assert excinfo.value.iterations == 2
    assert excinfo.value.active_edges == 2
    assert "Exploded after 2 iterations" in str(excinfo.value)


def test_hole_grows_while_outline_shrinks(unit_square, areas) -> None:
    outer = unit_square * 4.0
    hole = (unit_square * 2.0 + 1.0)[::-1]
    builder = PolygonMeshBuilder()
    builder.add_edge_loops([outer, hole])
    builder.bevel(0.25, 0.0, smooth=False)

    loops = builder.active_loops()
    assert len(loops) == 2
    loop_area = sum(signed_area(loop) for loop in loops)
    assert loop_area == pytest.approx(3.5 ** 2 - 2.5 ** 2)
    assert areas(builder.to_mesh()).sum() + loop_area == pytest.approx(16.0 - 4.0, abs=1e-5)


def test_debug_mode_logs_each_iteration(unit_square, caplog) -> None:
    caplog.set_level(logging.INFO, logger="polybevel.builder")
    builder = _builder(unit_square, debug=True)
    builder.bevel(1.0, 0.0, smooth=False)

    messages = [r.getMessage() for r in caplog.records if r.name == "polybevel.builder"]
    assert messages[0] == "0: 4, 0.5, (None, None, 0)"
    assert len(messages) == 3


def test_explicit_scratch_is_reused(unit_square) -> None:
    scratch = SweepScratch(cut_list=[(99, 98)], edge_list=[42])
    builder = _builder(unit_square)
    builder.bevel(0.25, 0.0, smooth=False, scratch=scratch)

    assert scratch.cut_list == []
    assert sorted(scratch.edge_list) == [0, 1, 2, 3]


def test_clear_resets_builder(unit_square) -> None:
    builder = _builder(unit_square)
    builder.bevel(0.25, 0.1, smooth=False)
    builder.clear()

    assert builder.vertex_count == 0
    assert builder.triangle_count == 0
    assert len(builder.edges) == 0
    assert builder.distance == 0.0
    assert builder.height == 0.0
