"""Brim and raft outlines for first-layer adhesion."""

from __future__ import annotations

import math

from strata_print.geometry.polygon import Polygon, SliceGeometry, geometry_extent, is_ccw, rectangle_polygon
from strata_print.toolpath.settings import PrinterSettings
from strata_print.toolpath.support import from_shapely, to_shapely

RAFT_MARGIN = 3.0


def brim_loops(geometry: SliceGeometry, settings: PrinterSettings) -> list[Polygon]:
    """Outward loops around the first-layer footprint, innermost first.

    Loop ``i`` (1-based) is the footprint grown by ``i * extrusion_width``;
    as many loops are printed as fit in ``brim_width``. Overlapping outlines
    are merged so each loop is printed once.
    """
    w = settings.extrusion_width
    count = math.floor(settings.brim_width / w + 1e-9)
    if count <= 0 or not geometry:
        return []
    footprint = to_shapely(geometry)
    if footprint.is_empty:
        return []
    loops = []
    for i in range(1, count + 1):
        grown = footprint.buffer(i * w, join_style="mitre")
        loops.extend(p for p in from_shapely(grown) if is_ccw(p))
    return loops


def raft_outline(layers: list[SliceGeometry], margin: float = RAFT_MARGIN) -> SliceGeometry:
    """Rectangle covering every layer's footprint plus ``margin``."""
    extents = [geometry_extent(g) for g in layers if g]
    extents = [e for e in extents if e is not None]
    if not extents:
        return []
    min_x = min(e[0] for e in extents) - margin
    min_y = min(e[1] for e in extents) - margin
    max_x = max(e[2] for e in extents) + margin
    max_y = max(e[3] for e in extents) + margin
    center = ((min_x + max_x) / 2, (min_y + max_y) / 2)
    return [rectangle_polygon(center, max_x - min_x, max_y - min_y)]
