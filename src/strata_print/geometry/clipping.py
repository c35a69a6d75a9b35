"""
Clipping of infill paths against a slice region.

A region is a SliceGeometry interpreted by winding number, so a
clockwise hole inside a counter-clockwise boundary removes material and a
scanline passing through the hole comes back as two disjoint segments.

Functions:
    scanline_segments: Parallel raster lines clipped to the region
    clip_polyline: Inside pieces of an arbitrary polyline
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from strata_print.geometry.polygon import SliceGeometry, contains_points, rotate_points

MIN_SEGMENT_LENGTH = 1e-3

Segment = NDArray[np.float64]


def _edges(region: SliceGeometry) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Stack every polygon edge as (start, end) arrays."""
    starts, ends = [], []
    for polygon in region:
        if len(polygon) < 3:
            continue
        starts.append(polygon)
        ends.append(np.roll(polygon, -1, axis=0))
    if not starts:
        empty = np.zeros((0, 2))
        return empty, empty
    return np.vstack(starts), np.vstack(ends)


def scanline_segments(
    region: SliceGeometry,
    angle: float,
    spacing: float,
    phase: float = 0.0,
) -> list[list[Segment]]:
    """Clip a family of parallel lines to the region.

    Lines run along direction ``angle`` (radians from +X) and sit at
    perpendicular offsets ``phase + k * spacing`` measured in a frame rotated
    by ``angle`` about the origin, so the same family lines up from layer to
    layer regardless of the region's position.

    Args:
        region: Polygons making up the region
        angle: Line direction in radians
        spacing: Distance between adjacent lines (mm)
        phase: Offset of the line family (mm)

    Returns:
        One entry per scanline that touches the region, ordered by offset.
        Each entry lists the (2, 2) [start, end] segments in order along the
        line direction.
    """
    if spacing <= 0:
        raise ValueError(f"spacing must be positive, got {spacing}")

    a, b = _edges(region)
    if len(a) == 0:
        return []

    # Work in a frame where the scanlines are horizontal
    a = rotate_points(a, -angle)
    b = rotate_points(b, -angle)
    ay, by = a[:, 1], b[:, 1]
    min_y = min(ay.min(), by.min())
    max_y = max(ay.max(), by.max())

    k0 = int(np.ceil((min_y - phase) / spacing))
    k1 = int(np.floor((max_y - phase) / spacing))

    rows: list[list[Segment]] = []
    for k in range(k0, k1 + 1):
        y = phase + k * spacing
        up = (ay <= y) & (by > y)
        down = (by <= y) & (ay > y)
        crossing = up | down
        if not crossing.any():
            continue
        ea, eb = a[crossing], b[crossing]
        xs = ea[:, 0] + (y - ea[:, 1]) * (eb[:, 0] - ea[:, 0]) / (eb[:, 1] - ea[:, 1])
        # Winding to the right of a crossing: a downward edge enters a CCW loop
        dirs = np.where(up[crossing], -1, 1)
        order = np.argsort(xs, kind="stable")
        xs, dirs = xs[order], dirs[order]

        row: list[Segment] = []
        winding = 0
        start_x = 0.0
        for x, d in zip(xs, dirs):
            was_inside = winding > 0
            winding += int(d)
            if not was_inside and winding > 0:
                start_x = x
            elif was_inside and winding <= 0 and x - start_x >= MIN_SEGMENT_LENGTH:
                seg = np.array([[start_x, y], [x, y]])
                row.append(rotate_points(seg, angle))
        if row:
            rows.append(row)
    return rows


def clip_polyline(region: SliceGeometry, points: NDArray[np.float64]) -> list[NDArray[np.float64]]:
    """Keep the pieces of a polyline that lie inside the region.

    Every segment is split where it crosses a region edge; each piece is
    classified by testing its midpoint. Consecutive inside pieces are joined
    into one run so continuous paths stay continuous.

    Args:
        region: Polygons making up the region
        points: (N, 2) polyline vertices

    Returns:
        List of (K, 2) inside runs, in path order
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 2:
        return []
    ea, eb = _edges(region)
    if len(ea) == 0:
        return []

    p = pts[:-1]
    r = pts[1:] - p
    s = eb - ea

    # Segment/edge intersection parameters, (segments, edges)
    denom = r[:, np.newaxis, 0] * s[np.newaxis, :, 1] - r[:, np.newaxis, 1] * s[np.newaxis, :, 0]
    qp = ea[np.newaxis, :, :] - p[:, np.newaxis, :]
    with np.errstate(divide="ignore", invalid="ignore"):
        t = (qp[..., 0] * s[np.newaxis, :, 1] - qp[..., 1] * s[np.newaxis, :, 0]) / denom
        u = (qp[..., 0] * r[:, np.newaxis, 1] - qp[..., 1] * r[:, np.newaxis, 0]) / denom
    hit = (np.abs(denom) > 1e-12) & (t > 0) & (t < 1) & (u >= 0) & (u <= 1)

    pieces_start = []
    pieces_end = []
    for i in range(len(p)):
        ts = np.unique(np.concatenate([[0.0], t[i][hit[i]], [1.0]]))
        for t0, t1 in zip(ts[:-1], ts[1:]):
            pieces_start.append(p[i] + t0 * r[i])
            pieces_end.append(p[i] + t1 * r[i])
    starts = np.array(pieces_start)
    ends = np.array(pieces_end)
    inside = contains_points(region, (starts + ends) / 2)

    runs: list[NDArray[np.float64]] = []
    current: list[NDArray[np.float64]] = []
    for start, end, keep in zip(starts, ends, inside):
        if keep:
            if not current:
                current.append(start)
            current.append(end)
        elif current:
            runs.append(np.array(current))
            current = []
    if current:
        runs.append(np.array(current))

    return [run for run in runs if _path_length(run) >= MIN_SEGMENT_LENGTH]


def _path_length(run: NDArray[np.float64]) -> float:
    return float(np.sum(np.linalg.norm(np.diff(run, axis=0), axis=1)))
