"""
Perimeter shells.

Shell ``k`` (0-based) of a polygon is the polygon offset inward by
``k * extrusion_width``; shell 0 traces the slice boundary itself. Shells are
printed outermost first. Once an offset degenerates no further shells are
attempted for that polygon.
"""

from __future__ import annotations

import logging

from strata_print.geometry.offset import DEFAULT_OFFSETTER, PolygonOffsetter
from strata_print.geometry.polygon import Polygon, SliceGeometry, fit_circle, is_ccw
from strata_print.toolpath.motion import MoveResult, arc_loop, polygon_layer
from strata_print.toolpath.settings import PrinterSettings

logger = logging.getLogger(__name__)


def shell_loops(
    polygon: Polygon,
    shell_count: int,
    extrusion_width: float,
    offsetter: PolygonOffsetter | None = None,
) -> list[Polygon]:
    """Offset loops for one polygon, outermost first.

    Stops at the first shell the offsetter rejects.
    """
    offsetter = offsetter or DEFAULT_OFFSETTER
    if len(polygon) < 3:
        return []
    loops = []
    for k in range(shell_count):
        loop = offsetter.offset(polygon, -k * extrusion_width)
        if loop is None:
            logger.debug("Shell %d degenerated, stopping after %d shells", k + 1, k)
            break
        loops.append(loop)
    return loops


def generate_perimeters(
    geometry: SliceGeometry,
    z: float,
    settings: PrinterSettings,
    current_e: float,
    *,
    offsetter: PolygonOffsetter | None = None,
    shell_count: int | None = None,
) -> MoveResult:
    """Emit ``shell_count`` closed perimeter loops for every polygon.

    Args:
        geometry: Slice polygons (CCW boundaries, CW holes)
        z: Print height for the moves
        settings: Printer settings
        current_e: Extrusion value before the first move
        offsetter: Offset implementation (bisector by default)
        shell_count: Overrides ``settings.shell_count``

    Returns:
        MoveResult with the shell G-code and the updated E
    """
    count = settings.shell_count if shell_count is None else shell_count
    w = settings.extrusion_width
    parts = []
    e = current_e

    for polygon in geometry:
        circle = fit_circle(polygon) if settings.arc_perimeters else None
        if circle is not None:
            center, radius = circle
            step = -w if is_ccw(polygon) else w
            for k in range(count):
                r = radius + k * step
                if r <= w / 2:
                    break
                result = arc_loop(center, r, z, settings, e)
                parts.append(f"; Shell {k + 1}\n" + result.gcode)
                e = result.next_e
            continue

        for k, loop in enumerate(shell_loops(polygon, count, w, offsetter)):
            result = polygon_layer(loop, z, settings, e)
            if result.gcode:
                parts.append(f"; Shell {k + 1}\n" + result.gcode)
            e = result.next_e

    return MoveResult("".join(parts), e)


def inset_geometry(
    geometry: SliceGeometry,
    distance: float,
    offsetter: PolygonOffsetter | None = None,
) -> SliceGeometry:
    """Shrink the material of every polygon by ``distance``.

    Outer boundaries move in and holes grow. Polygons that collapse are
    dropped.
    """
    offsetter = offsetter or DEFAULT_OFFSETTER
    if distance == 0:
        return [p for p in geometry if len(p) >= 3]
    region = []
    for polygon in geometry:
        inset = offsetter.offset(polygon, -distance)
        if inset is not None:
            region.append(inset)
    return region
