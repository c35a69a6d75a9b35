"""
Planar geometry primitives for layer cross-sections.

A polygon is an (N, 2) float64 array of vertices in millimeters. It is
implicitly closed: the first vertex is not repeated at the end. Outer
boundaries wind counter-clockwise and holes wind clockwise, so a list of
polygons (a SliceGeometry) describes a region by winding number: a point is
inside when the polygons wind around it a positive number of times, so
overlapping boundaries merge and a hole left without its boundary is empty.

Functions:
    as_polygon: Normalize any vertex sequence to an (N, 2) array
    signed_area: Shoelace area (positive = counter-clockwise)
    circle_polygon: Regular N-gon approximating a circle
    ellipse_polygon: Axis-aligned (optionally rotated) ellipse
    rectangle_polygon: Rectangle centered on a point
    winding_number: Winding number of points against a region
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

Polygon = NDArray[np.float64]
SliceGeometry = list[Polygon]


class Point2D(NamedTuple):
    x: float
    y: float


class Point3D(NamedTuple):
    x: float
    y: float
    z: float


def as_polygon(points) -> Polygon:
    """Convert a vertex sequence to an (N, 2) float64 array.

    A duplicated closing vertex is dropped so the result is implicitly closed.
    """
    poly = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(poly) > 1 and np.allclose(poly[0], poly[-1]):
        poly = poly[:-1]
    return poly


def signed_area(polygon: Polygon) -> float:
    """Shoelace area; positive for counter-clockwise winding."""
    if len(polygon) < 3:
        return 0.0
    x = polygon[:, 0]
    y = polygon[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y))


def is_ccw(polygon: Polygon) -> bool:
    return signed_area(polygon) > 0


def orient(polygon: Polygon, ccw: bool = True) -> Polygon:
    """Return the polygon with the requested winding."""
    if is_ccw(polygon) != ccw:
        return polygon[::-1].copy()
    return polygon


def perimeter_length(polygon: Polygon) -> float:
    """Length of the closed loop through all vertices."""
    if len(polygon) < 2:
        return 0.0
    closed = np.vstack([polygon, polygon[:1]])
    return float(np.sum(np.linalg.norm(np.diff(closed, axis=0), axis=1)))


def centroid(polygon: Polygon) -> Point2D:
    """Area centroid, falling back to the vertex mean for degenerate input."""
    area = signed_area(polygon)
    if abs(area) < 1e-12:
        mean = polygon.mean(axis=0)
        return Point2D(float(mean[0]), float(mean[1]))
    x = polygon[:, 0]
    y = polygon[:, 1]
    x1 = np.roll(x, -1)
    y1 = np.roll(y, -1)
    cross = x * y1 - x1 * y
    cx = float(np.sum((x + x1) * cross) / (6 * area))
    cy = float(np.sum((y + y1) * cross) / (6 * area))
    return Point2D(cx, cy)


def geometry_extent(geometry: SliceGeometry) -> tuple[float, float, float, float] | None:
    """Return (min_x, min_y, max_x, max_y) over all polygons, or None if empty."""
    stacked = [p for p in geometry if len(p) > 0]
    if not stacked:
        return None
    pts = np.vstack(stacked)
    min_x, min_y = pts.min(axis=0)
    max_x, max_y = pts.max(axis=0)
    return float(min_x), float(min_y), float(max_x), float(max_y)


def fit_circle(polygon: Polygon, rel_tol: float = 1e-3) -> tuple[Point2D, float] | None:
    """Return (center, radius) if every vertex lies on one circle, else None.

    Only regular-looking loops of 8 or more vertices qualify; this is how
    round cross-sections are recognized after slicing.
    """
    if len(polygon) < 8:
        return None
    center = polygon.mean(axis=0)
    dist = np.linalg.norm(polygon - center, axis=1)
    radius = float(dist.mean())
    if radius <= 0 or np.ptp(dist) > rel_tol * radius:
        return None
    return Point2D(float(center[0]), float(center[1])), radius


def rotate_points(points: NDArray[np.float64], angle: float, origin=(0.0, 0.0)) -> NDArray[np.float64]:
    """Rotate (N, 2) points counter-clockwise by angle (radians) about origin."""
    c, s = np.cos(angle), np.sin(angle)
    rot = np.array([[c, -s], [s, c]])
    origin = np.asarray(origin, dtype=np.float64)
    return (np.asarray(points, dtype=np.float64) - origin) @ rot.T + origin


# === Shape constructors ===


def circle_polygon(
    center: tuple[float, float],
    radius: float,
    segments: int = 36,
    clockwise: bool = False,
) -> Polygon:
    """Regular polygon with vertices on a circle, starting at angle 0."""
    angles = np.arange(segments) * (2 * np.pi / segments)
    if clockwise:
        angles = -angles
    return np.stack(
        [center[0] + radius * np.cos(angles), center[1] + radius * np.sin(angles)],
        axis=1,
    )


def ellipse_polygon(
    center: tuple[float, float],
    radius_x: float,
    radius_y: float,
    segments: int = 36,
    rotation: float = 0.0,
) -> Polygon:
    """Counter-clockwise ellipse polygon; rotation in radians about the center."""
    angles = np.arange(segments) * (2 * np.pi / segments)
    pts = np.stack(
        [center[0] + radius_x * np.cos(angles), center[1] + radius_y * np.sin(angles)],
        axis=1,
    )
    if rotation:
        pts = rotate_points(pts, rotation, center)
    return pts


def rectangle_polygon(
    center: tuple[float, float],
    width: float,
    depth: float,
    rotation: float = 0.0,
) -> Polygon:
    """Counter-clockwise rectangle starting at the (-x, -y) corner."""
    hw, hd = width / 2, depth / 2
    cx, cy = center
    pts = np.array(
        [
            [cx - hw, cy - hd],
            [cx + hw, cy - hd],
            [cx + hw, cy + hd],
            [cx - hw, cy + hd],
        ],
        dtype=np.float64,
    )
    if rotation:
        pts = rotate_points(pts, rotation, center)
    return pts


# === Region queries ===


def winding_number(geometry: SliceGeometry, points: NDArray[np.float64]) -> NDArray[np.int64]:
    """Winding number of each point with respect to all polygons.

    Counter-clockwise loops add +1 around enclosed points and clockwise loops
    add -1, so holes cancel their enclosing boundary.

    Args:
        geometry: Polygons making up the region
        points: (M, 2) query points

    Returns:
        (M,) integer winding numbers (positive = inside)
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    total = np.zeros(len(points), dtype=np.int64)
    px = points[:, 0][:, np.newaxis]
    py = points[:, 1][:, np.newaxis]
    for polygon in geometry:
        if len(polygon) < 3:
            continue
        a = polygon
        b = np.roll(polygon, -1, axis=0)
        ax, ay = a[:, 0][np.newaxis, :], a[:, 1][np.newaxis, :]
        bx, by = b[:, 0][np.newaxis, :], b[:, 1][np.newaxis, :]
        # Which side of each edge the point lies on
        side = (bx - ax) * (py - ay) - (px - ax) * (by - ay)
        upward = (ay <= py) & (by > py) & (side > 0)
        downward = (ay > py) & (by <= py) & (side < 0)
        total += upward.sum(axis=1) - downward.sum(axis=1)
    return total


def contains_points(geometry: SliceGeometry, points: NDArray[np.float64]) -> NDArray[np.bool_]:
    """True where the region winds positively around the point."""
    return winding_number(geometry, points) > 0
