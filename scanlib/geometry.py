"""
Quadrilateral geometry and the homography solver.

Corner quadruples are always ordered top-left, top-right, bottom-right,
bottom-left. Every consumer (solver, warp engine, crop editor) relies on it.
"""

from collections import namedtuple

import numpy as np

from .errors import InvalidGeometry

Point = namedtuple('Point', ['x', 'y'])

# Relative pivot magnitude below which the 8x8 system counts as singular
PIVOT_EPSILON = 1e-12


def as_quad(points):
    """
    Normalize four (x, y) pairs into a tuple of Points.

    Raises:
        InvalidGeometry: If there are not exactly four finite points
    """
    points = [Point(float(x), float(y)) for x, y in points]
    if len(points) != 4:
        raise InvalidGeometry(f"Expected 4 corner points, got {len(points)}")
    if not all(np.isfinite(p.x) and np.isfinite(p.y) for p in points):
        raise InvalidGeometry("Corner points must be finite")
    return tuple(points)


def rectangle(width, height):
    """Corners of the axis-aligned rectangle (0, 0)-(width, height)"""
    return (Point(0.0, 0.0), Point(float(width), 0.0),
            Point(float(width), float(height)), Point(0.0, float(height)))


def inset_quad(width, height, inset=0.1):
    """Rectangle inset from each edge by a fraction of that dimension"""
    margin_x = width * inset
    margin_y = height * inset
    return (Point(margin_x, margin_y), Point(width - margin_x, margin_y),
            Point(width - margin_x, height - margin_y), Point(margin_x, height - margin_y))


def order_points(pts):
    """
    Order points in consistent clockwise order.

    Args:
        pts: Four (x, y) pairs in any order

    Returns:
        Tuple of Points ordered as: [top-left, top-right, bottom-right, bottom-left]
    """
    pts = np.array(pts, dtype=np.float64)

    # Sort by y-coordinate (top to bottom)
    sorted_by_y = pts[np.argsort(pts[:, 1], kind='stable')]

    # Top two points
    top_pts = sorted_by_y[:2]
    top_pts = top_pts[np.argsort(top_pts[:, 0], kind='stable')]  # Sort by x
    tl, tr = top_pts

    # Bottom two points
    bottom_pts = sorted_by_y[2:]
    bottom_pts = bottom_pts[np.argsort(bottom_pts[:, 0], kind='stable')]  # Sort by x
    bl, br = bottom_pts

    return as_quad([tl, tr, br, bl])


def edge_lengths(corners):
    """
    Euclidean lengths of the four edges of a quadrilateral.

    Returns:
        (top, right, bottom, left)
    """
    tl, tr, br, bl = as_quad(corners)
    top = np.hypot(tr.x - tl.x, tr.y - tl.y)
    right = np.hypot(br.x - tr.x, br.y - tr.y)
    bottom = np.hypot(br.x - bl.x, br.y - bl.y)
    left = np.hypot(bl.x - tl.x, bl.y - tl.y)
    return float(top), float(right), float(bottom), float(left)


def _solve_linear_system(a, b):
    """
    Gaussian elimination with partial pivoting, then back-substitution.

    The largest remaining value in each column is swapped into the pivot
    position. A pivot that is negligible relative to the largest matrix
    entry means the system has no unique solution.
    """
    a = np.array(a, dtype=np.float64)
    b = np.array(b, dtype=np.float64)
    n = len(b)
    tolerance = PIVOT_EPSILON * max(1.0, float(np.abs(a).max()))

    for i in range(n):
        pivot_row = i + int(np.argmax(np.abs(a[i:, i])))
        if abs(a[pivot_row, i]) < tolerance:
            raise InvalidGeometry(
                "Corner points are degenerate (three or more are collinear or coincide)")

        if pivot_row != i:
            a[[i, pivot_row]] = a[[pivot_row, i]]
            b[[i, pivot_row]] = b[[pivot_row, i]]

        factors = a[i + 1:, i] / a[i, i]
        a[i + 1:, i:] -= factors[:, np.newaxis] * a[i, i:]
        a[i + 1:, i] = 0.0
        b[i + 1:] -= factors * b[i]

    x = np.zeros(n)
    for i in range(n - 1, -1, -1):
        x[i] = (b[i] - np.dot(a[i, i + 1:], x[i + 1:])) / a[i, i]
    return x


def solve_homography(src, dst):
    """
    Compute the projective matrix mapping four source points onto four
    destination points.

    Two equations per correspondence give an 8x8 linear system in the first
    eight matrix coefficients; the ninth is fixed to 1.

    Args:
        src: Four (x, y) source points
        dst: Four (x, y) destination points, same order as src

    Returns:
        3x3 numpy array H with H[2, 2] == 1

    Raises:
        InvalidGeometry: If the points do not define a unique mapping
    """
    src = as_quad(src)
    dst = as_quad(dst)

    a = []
    b = []
    for (x, y), (u, v) in zip(src, dst):
        a.append([x, y, 1, 0, 0, 0, -x * u, -y * u])
        a.append([0, 0, 0, x, y, 1, -x * v, -y * v])
        b.append(u)
        b.append(v)

    coefficients = _solve_linear_system(a, b)
    return np.append(coefficients, 1.0).reshape(3, 3)


def apply_homography(h, points):
    """
    Map points through a homography, including the perspective divide.

    Raises:
        InvalidGeometry: If a point maps to infinity
    """
    h = np.asarray(h, dtype=np.float64).ravel()
    mapped = []
    for x, y in points:
        denominator = h[6] * x + h[7] * y + h[8]
        if abs(denominator) < PIVOT_EPSILON:
            raise InvalidGeometry(f"Point ({x}, {y}) maps to infinity")
        mapped.append(Point((h[0] * x + h[1] * y + h[2]) / denominator,
                            (h[3] * x + h[4] * y + h[5]) / denominator))
    return mapped


def normalize_quad(corners, width, height):
    """Convert absolute pixel corners into [0, 1] coordinates"""
    return tuple(Point(min(1.0, max(0.0, x / width)), min(1.0, max(0.0, y / height)))
                 for x, y in as_quad(corners))


def denormalize_quad(corners, width, height):
    """Convert [0, 1] corners into absolute pixel coordinates"""
    return tuple(Point(x * width, y * height) for x, y in as_quad(corners))
