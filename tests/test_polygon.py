# tests/test_polygon.py
# Validates boundary loop preparation helpers
# Exists to ensure malformed loops are rejected before they reach the edge graph
# RELEVANT FILES: python/polybevel/polygon.py, python/polybevel/builder.py

import numpy as np
import pytest

from polybevel.polygon import as_loop, ensure_winding, loop_tangents, rotate90, signed_area


def test_as_loop_drops_closing_point(unit_square) -> None:
    closed = np.vstack([unit_square, unit_square[:1]])
    loop = as_loop(closed)
    assert loop.shape == (4, 2)
    assert loop.dtype == np.float64


def test_as_loop_offset_and_count(unit_square) -> None:
    padded = np.vstack([[[9.0, 9.0]], unit_square, [[7.0, 7.0]]])
    loop = as_loop(padded, offset=1, count=4)
    np.testing.assert_array_equal(loop, unit_square)


@pytest.mark.parametrize(
    "points",
    [
        [[0.0, 0.0], [1.0, 0.0]],
        [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0]],
        [[0.0, 0.0], [1.0, np.nan], [1.0, 1.0]],
    ],
)
def test_as_loop_rejects_bad_input(points) -> None:
    with pytest.raises(ValueError):
        as_loop(points)


def test_as_loop_rejects_range_past_end(unit_square) -> None:
    with pytest.raises(ValueError):
        as_loop(unit_square, offset=2, count=4)


def test_signed_area_and_winding(unit_square) -> None:
    assert signed_area(unit_square) == pytest.approx(1.0)
    assert signed_area(unit_square[::-1]) == pytest.approx(-1.0)

    ccw = ensure_winding(unit_square[::-1])
    assert signed_area(ccw) == pytest.approx(1.0)

    hole = ensure_winding(unit_square, ccw=False)
    assert signed_area(hole) == pytest.approx(-1.0)


def test_loop_tangents_are_unit(unit_square) -> None:
    tangents = loop_tangents(unit_square * 3.0)
    np.testing.assert_allclose(np.linalg.norm(tangents, axis=1), 1.0)
    np.testing.assert_allclose(tangents[0], [1.0, 0.0])
    np.testing.assert_allclose(tangents[3], [0.0, -1.0])


def test_loop_tangents_reject_zero_length_segment() -> None:
    points = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 0.0], [0.0, 1.0]])
    with pytest.raises(ValueError, match="zero-length"):
        loop_tangents(points)


def test_rotate90_points_left() -> None:
    np.testing.assert_allclose(rotate90(np.array([1.0, 0.0])), [0.0, 1.0])
    np.testing.assert_allclose(rotate90(np.array([0.0, -1.0])), [1.0, 0.0])
