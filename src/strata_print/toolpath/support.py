"""
Overhang detection and support columns.

Region booleans are done with shapely. A SliceGeometry is converted by
unioning its counter-clockwise boundaries and subtracting its clockwise
holes, largest first, which matches the winding interpretation used by the
infill clipper for properly nested input.

Support is planned for the whole print before any G-code is written, in a
top-down sweep:

1. Overhang at layer j is the part of layer j not resting on layer j - 1
   grown by ``layer_height * tan(support_overhang_angle)``.
2. Columns carried down from above are cut back wherever the model is
   present (plus a one extrusion width XY gap); the remainder is support at
   layer j.
3. Layer j's overhang joins the carried columns for the layers below.

With ``touching_buildplate`` an overhang only seeds a column where no layer
below it has any material, so every column reaches the bed.
"""

from __future__ import annotations

import logging
import math

import numpy as np
from shapely.geometry import MultiPolygon
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union
from shapely.validation import make_valid

from strata_print.geometry.polygon import SliceGeometry, is_ccw, orient, signed_area
from strata_print.toolpath.infill import infill_paths, infill_spacing, print_paths
from strata_print.toolpath.motion import MoveResult
from strata_print.toolpath.settings import InfillPattern, PrinterSettings, SupportType

logger = logging.getLogger(__name__)


def to_shapely(geometry: SliceGeometry) -> BaseGeometry:
    """Convert a SliceGeometry to a shapely region."""
    region: BaseGeometry = ShapelyPolygon()
    for polygon in sorted(geometry, key=lambda p: -abs(signed_area(p))):
        if len(polygon) < 3:
            continue
        shape = ShapelyPolygon(polygon)
        if not shape.is_valid:
            shape = make_valid(shape)
        if is_ccw(polygon):
            region = region.union(shape)
        else:
            region = region.difference(shape)
    return region


def from_shapely(region: BaseGeometry) -> SliceGeometry:
    """Convert a shapely region back to CCW boundaries and CW holes."""
    geometry: SliceGeometry = []
    for part in _polygon_parts(region):
        geometry.append(orient(np.asarray(part.exterior.coords)[:-1], ccw=True))
        for interior in part.interiors:
            geometry.append(orient(np.asarray(interior.coords)[:-1], ccw=False))
    return [p for p in geometry if len(p) >= 3]


def _polygon_parts(region: BaseGeometry) -> list[ShapelyPolygon]:
    if region.is_empty:
        return []
    if isinstance(region, ShapelyPolygon):
        return [region]
    if isinstance(region, MultiPolygon):
        return list(region.geoms)
    if hasattr(region, "geoms"):
        parts = []
        for g in region.geoms:
            parts.extend(_polygon_parts(g))
        return parts
    return []


def _drop_slivers(region: BaseGeometry, min_area: float) -> BaseGeometry:
    parts = [p for p in _polygon_parts(region) if p.area >= min_area]
    if not parts:
        return ShapelyPolygon()
    return unary_union(parts)


def overhang_region(current: BaseGeometry, previous: BaseGeometry, settings: PrinterSettings) -> BaseGeometry:
    """Part of ``current`` that extends past ``previous`` by more than the
    overhang angle allows."""
    if current.is_empty or settings.support_overhang_angle >= 90:
        return ShapelyPolygon()
    reach = settings.layer_height * math.tan(math.radians(settings.support_overhang_angle))
    supported = previous.buffer(reach) if reach > 0 else previous
    overhang = current.difference(supported)
    return _drop_slivers(overhang, settings.extrusion_width**2)


def detect_overhang(
    current: SliceGeometry,
    previous: SliceGeometry | None,
    settings: PrinterSettings,
) -> SliceGeometry:
    """Overhanging area of a layer relative to the layer below.

    The first layer (``previous`` is None) sits on the bed and never
    overhangs.
    """
    if previous is None:
        return []
    return from_shapely(overhang_region(to_shapely(current), to_shapely(previous), settings))


def plan_support(layer_geometries: list[SliceGeometry], settings: PrinterSettings) -> list[SliceGeometry]:
    """Support regions for every layer of a print.

    Args:
        layer_geometries: Model outline per layer, bottom to top
        settings: Printer settings (support type, angle and widths)

    Returns:
        Support outline per layer, same length as ``layer_geometries``
    """
    count = len(layer_geometries)
    if settings.support_type is SupportType.NONE or count == 0:
        return [[] for _ in range(count)]

    w = settings.extrusion_width
    shapes = [to_shapely(g) for g in layer_geometries]

    overhangs: list[BaseGeometry] = [ShapelyPolygon()]
    below: BaseGeometry = shapes[0]
    for j in range(1, count):
        overhang = overhang_region(shapes[j], shapes[j - 1], settings)
        if settings.support_type is SupportType.TOUCHING_BUILDPLATE and not overhang.is_empty:
            overhang = _drop_slivers(overhang.difference(below), w**2)
        overhangs.append(overhang)
        below = below.union(shapes[j])

    supports: list[BaseGeometry] = [ShapelyPolygon()] * count
    carry: BaseGeometry = ShapelyPolygon()
    for j in range(count - 1, -1, -1):
        if not carry.is_empty:
            keep_out = shapes[j].buffer(w) if not shapes[j].is_empty else shapes[j]
            supports[j] = _drop_slivers(carry.difference(keep_out), w**2)
        carry = supports[j].union(overhangs[j]) if not overhangs[j].is_empty else supports[j]

    planned = [from_shapely(s) for s in supports]
    total = sum(1 for s in planned if s)
    if total:
        logger.info("Support planned on %d of %d layers", total, count)
    return planned


def generate_support(
    region: SliceGeometry,
    z: float,
    settings: PrinterSettings,
    current_e: float,
    layer_index: int = 0,
) -> MoveResult:
    """Fill a support region with lines at ``support_density``."""
    spacing = infill_spacing(settings, settings.support_density, InfillPattern.LINES)
    if not region or spacing is None:
        return MoveResult("", current_e)
    paths = infill_paths(region, InfillPattern.LINES, spacing, layer_index)
    result = print_paths(paths, z, settings, current_e)
    if not result.gcode:
        return result
    return MoveResult("; Support\n" + result.gcode + "; End support\n", result.next_e)
