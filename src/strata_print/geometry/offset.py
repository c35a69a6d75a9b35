"""
Polygon offsetting for perimeter shells and infill regions.

Distances follow the material: a positive distance grows material and a
negative distance shrinks it. Because the edge normal used here is the
right-hand normal of each edge, it points away from material for both
counter-clockwise outer boundaries and clockwise holes. Shrinking a torus
slice therefore pulls the outer wall in and pushes the hole wall out.

Classes:
    PolygonOffsetter: Protocol shared by all offset implementations
    BisectorOffsetter: Vertex-bisector offset (fast, approximate)
    ShapelyOffsetter: Buffer-based offset backed by shapely (robust)
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

import numpy as np
import shapely
from shapely.geometry import MultiPolygon
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.validation import make_valid

from strata_print.geometry.polygon import Polygon, orient, signed_area

logger = logging.getLogger(__name__)

MIN_OFFSET_AREA = 1e-6


@runtime_checkable
class PolygonOffsetter(Protocol):
    """Anything that can offset a single closed polygon."""

    def offset(self, polygon: Polygon, distance: float) -> Polygon | None:
        """Offset ``polygon`` by ``distance`` (positive grows material).

        Returns None when the result degenerates (inverts, collapses, or
        has fewer than 3 vertices).
        """
        ...


def _dedupe(polygon: Polygon, tol: float = 1e-9) -> Polygon:
    """Drop consecutive duplicate vertices, including the wrap-around pair."""
    if len(polygon) == 0:
        return polygon
    nxt = np.roll(polygon, -1, axis=0)
    keep = np.linalg.norm(nxt - polygon, axis=1) > tol
    return polygon[keep]


class BisectorOffsetter:
    """Offset vertices along the bisector of adjacent edge normals.

    Each vertex moves by ``distance / sin(theta / 2)`` where theta is the
    corner angle, which keeps every edge exactly ``distance`` from its
    original line. Near-hairpin corners are skipped. The result is rejected
    when any edge reverses direction, which is how an inward offset of a
    convex polygon reports that it has run out of room.

    Attributes:
        min_sin_half: Corners whose half-angle sine falls below this are skipped
    """

    def __init__(self, min_sin_half: float = 1e-3) -> None:
        self.min_sin_half = min_sin_half

    def offset(self, polygon: Polygon, distance: float) -> Polygon | None:
        poly = _dedupe(np.asarray(polygon, dtype=np.float64))
        n = len(poly)
        if n < 3:
            return None
        if distance == 0:
            return poly.copy()

        edges = np.roll(poly, -1, axis=0) - poly
        lengths = np.linalg.norm(edges, axis=1)
        # Right-hand normal of edge i (from vertex i to i + 1)
        normals = np.stack([edges[:, 1], -edges[:, 0]], axis=1) / lengths[:, np.newaxis]

        prev_normals = np.roll(normals, 1, axis=0)
        dots = np.clip(np.einsum("ij,ij->i", prev_normals, normals), -1.0, 1.0)
        sin_half = np.sqrt((1.0 + dots) / 2.0)

        keep = sin_half >= self.min_sin_half
        if keep.sum() < 3:
            return None

        bisectors = prev_normals + normals
        norms = np.linalg.norm(bisectors, axis=1)
        norms[~keep] = 1.0
        bisectors /= norms[:, np.newaxis]
        moved = poly + (distance / np.where(keep, sin_half, 1.0))[:, np.newaxis] * bisectors

        kept_idx = np.flatnonzero(keep)
        result = moved[kept_idx]
        original = poly[kept_idx]

        new_edges = np.roll(result, -1, axis=0) - result
        old_edges = np.roll(original, -1, axis=0) - original
        if np.any(np.einsum("ij,ij->i", new_edges, old_edges) <= 0):
            return None

        area = signed_area(result)
        if abs(area) < MIN_OFFSET_AREA or np.sign(area) != np.sign(signed_area(poly)):
            return None
        return result


class ShapelyOffsetter:
    """Buffer-based offset using shapely with mitred joins.

    Handles concave and self-touching outlines the bisector method cannot.
    When the buffer splits the polygon, the largest piece is kept.
    """

    def __init__(self, mitre_limit: float = 5.0) -> None:
        self.mitre_limit = mitre_limit

    def offset(self, polygon: Polygon, distance: float) -> Polygon | None:
        poly = _dedupe(np.asarray(polygon, dtype=np.float64))
        if len(poly) < 3:
            return None
        area = signed_area(poly)
        if abs(area) < MIN_OFFSET_AREA:
            return None
        ccw = area > 0

        shape = ShapelyPolygon(poly)
        if not shape.is_valid:
            shape = make_valid(shape)
        # A hole's own area shrinks when the material around it grows
        buffered = shape.buffer(
            distance if ccw else -distance,
            join_style="mitre",
            mitre_limit=self.mitre_limit,
        )
        pieces = _polygons_of(buffered)
        if not pieces:
            return None
        largest = max(pieces, key=lambda p: p.area)
        if largest.area < MIN_OFFSET_AREA:
            return None
        ring = np.asarray(largest.exterior.coords, dtype=np.float64)[:-1]
        if len(ring) < 3:
            return None
        return orient(ring, ccw=ccw)


def _polygons_of(geom) -> list[ShapelyPolygon]:
    if geom.is_empty:
        return []
    if isinstance(geom, ShapelyPolygon):
        return [geom]
    if isinstance(geom, MultiPolygon):
        return list(geom.geoms)
    return [g for g in shapely.get_parts(geom) if isinstance(g, ShapelyPolygon)]


DEFAULT_OFFSETTER: PolygonOffsetter = BisectorOffsetter()
