import numpy as np
import pytest


@pytest.fixture
def unit_square() -> np.ndarray:
    return np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]], dtype=np.float64)


@pytest.fixture
def notched_rect() -> np.ndarray:
    # 4x2 rectangle with a V notch cut down from the top edge to (2, 1)
    return np.array(
        [
            [0.0, 0.0],
            [4.0, 0.0],
            [4.0, 2.0],
            [2.5, 2.0],
            [2.0, 1.0],
            [1.5, 2.0],
            [0.0, 2.0],
        ],
        dtype=np.float64,
    )


def triangle_areas(mesh) -> np.ndarray:
    """Signed xy areas of every triangle, positive when counter-clockwise seen from +z."""
    pos = np.asarray(mesh.positions, dtype=np.float64)
    tri = pos[np.asarray(mesh.indices, dtype=np.int64).reshape(-1, 3)]
    ab = tri[:, 1, :2] - tri[:, 0, :2]
    ac = tri[:, 2, :2] - tri[:, 0, :2]
    return 0.5 * (ab[:, 0] * ac[:, 1] - ab[:, 1] * ac[:, 0])


@pytest.fixture
def areas():
    return triangle_areas
