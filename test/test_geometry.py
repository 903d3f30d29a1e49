"""
Tests for the homography solver and quadrilateral helpers.
"""

import numpy as np
import pytest

from scanlib.errors import InvalidGeometry
from scanlib.geometry import (apply_homography, as_quad, denormalize_quad, edge_lengths,
                              inset_quad, normalize_quad, order_points, rectangle,
                              solve_homography)

QUADS = [
    [(100, 100), (900, 150), (880, 950), (120, 900)],
    [(0, 0), (640, 20), (600, 500), (30, 460)],
    [(350, 10), (990, 300), (700, 990), (5, 600)],
]


def test_identity_mapping():
    rect = rectangle(400, 300)
    h = solve_homography(rect, rect)
    assert np.allclose(h, np.eye(3), atol=1e-9)


def test_maps_source_corners_onto_destination():
    rect = rectangle(800, 800)
    h = solve_homography(rect, QUADS[0])
    assert h[2, 2] == 1.0
    mapped = apply_homography(h, rect)
    assert np.allclose(mapped, QUADS[0], atol=1e-6)


@pytest.mark.parametrize("quad", QUADS)
def test_forward_and_inverse_round_trip(quad):
    rect = rectangle(500, 700)
    forward = solve_homography(rect, quad)
    backward = solve_homography(quad, rect)

    there = apply_homography(forward, rect)
    back = apply_homography(backward, there)
    assert np.allclose(back, rect, atol=1e-6)


def test_collinear_corners_are_rejected():
    collinear = [(0, 0), (100, 100), (200, 200), (300, 300)]
    with pytest.raises(InvalidGeometry):
        solve_homography(rectangle(100, 100), collinear)


def test_coincident_corners_are_rejected():
    with pytest.raises(InvalidGeometry):
        solve_homography(rectangle(100, 100), [(5, 5)] * 4)


def test_invalid_geometry_is_a_value_error():
    with pytest.raises(ValueError):
        as_quad([(0, 0), (1, 1), (2, 2)])


def test_non_finite_corners_are_rejected():
    with pytest.raises(InvalidGeometry):
        as_quad([(0, 0), (1, 0), (1, float('nan')), (0, 1)])


def test_edge_lengths():
    top, right, bottom, left = edge_lengths(QUADS[0])
    assert top == pytest.approx(np.hypot(800, 50))
    assert right == pytest.approx(np.hypot(20, 800))
    assert bottom == pytest.approx(np.hypot(760, 50))
    assert left == pytest.approx(np.hypot(20, 800))


def test_order_points_from_any_order():
    shuffled = [(880, 950), (100, 100), (120, 900), (900, 150)]
    assert order_points(shuffled) == as_quad(QUADS[0])


def test_inset_quad():
    assert inset_quad(1000, 500) == as_quad([(100, 50), (900, 50), (900, 450), (100, 450)])


def test_normalize_clamps_to_unit_square():
    corners = normalize_quad([(-10, 0), (110, 0), (100, 60), (0, 50)], 100, 50)
    assert corners[0].x == 0.0
    assert corners[1].x == 1.0
    assert corners[2].y == 1.0
    assert denormalize_quad(corners, 100, 50)[3] == (0.0, 50.0)
