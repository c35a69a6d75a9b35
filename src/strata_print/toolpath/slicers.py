"""
Analytic cross-sections of solid primitives.

``slice_geometry`` answers "what does this primitive look like at height z"
with closed-form formulas per family. ``slice_element`` turns that outline
into shells and infill through the generic generators.

A primitive occupies the half-open height range (base_z, base_z + height],
matching layers that sit at the top of each layer_height band.
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import NamedTuple

import numpy as np
from numpy.typing import NDArray

from strata_print.geometry.elements import (
    Cone,
    Cube,
    Cylinder,
    Element,
    Ellipsoid,
    Line,
    Solid,
    Sphere,
    Text,
    Torus,
)
from strata_print.geometry.offset import PolygonOffsetter
from strata_print.geometry.polygon import (
    SliceGeometry,
    circle_polygon,
    ellipse_polygon,
    rectangle_polygon,
)
from strata_print.toolpath.infill import generate_infill
from strata_print.toolpath.motion import MoveResult, polyline_path
from strata_print.toolpath.perimeters import generate_perimeters, inset_geometry
from strata_print.toolpath.settings import InfillPattern, PrinterSettings

logger = logging.getLogger(__name__)


class SlicingError(Exception):
    """Raised when an element cannot be turned into toolpaths."""


class SliceResult(NamedTuple):
    """G-code, extrusion value after the last move, and the slice outline."""

    gcode: str
    next_e: float
    geometry: SliceGeometry


Z_EPSILON = 1e-9


def _in_height_range(z: float, base_z: float, height: float) -> bool:
    return base_z + Z_EPSILON < z <= base_z + height + Z_EPSILON


def _too_small(radius: float, settings: PrinterSettings) -> bool:
    return radius <= settings.extrusion_width / 2


def slice_geometry(element: Element, layer_z: float, settings: PrinterSettings) -> SliceGeometry:
    """Cross-section polygons of a primitive at ``layer_z``.

    Outer boundaries are counter-clockwise and holes clockwise. Slices that
    fall outside the primitive or are too small to print (radius at most
    half an extrusion width) return an empty list.

    Raises:
        SlicingError: For elements that have no solid cross-section
            (composites, text and unknown elements)
    """
    if isinstance(element, Line):
        return []
    if isinstance(element, Text) or not isinstance(element, Solid):
        raise SlicingError(f"{type(element).__name__} has no analytic cross-section")

    segments = settings.circle_segments
    center = (element.x, element.y)

    if isinstance(element, Cube):
        base_z = element.z - element.height / 2
        if not _in_height_range(layer_z, base_z, element.height):
            return []
        if _too_small(min(element.width, element.depth) / 2, settings):
            return []
        return [
            rectangle_polygon(center, element.width, element.depth, math.radians(element.rotation))
        ]

    if isinstance(element, Cylinder):
        base_z = element.z - element.height / 2
        if not _in_height_range(layer_z, base_z, element.height) or _too_small(element.radius, settings):
            return []
        return [circle_polygon(center, element.radius, segments)]

    if isinstance(element, Sphere):
        d = abs(layer_z - element.z)
        if d > element.radius:
            return []
        r = math.sqrt(element.radius**2 - d**2)
        if _too_small(r, settings):
            return []
        return [circle_polygon(center, r, segments)]

    if isinstance(element, Cone):
        if not _in_height_range(layer_z, element.base_z, element.height):
            return []
        progress = (layer_z - element.base_z) / element.height
        r = element.radius + (element.top_radius - element.radius) * progress
        if _too_small(r, settings):
            return []
        return [circle_polygon(center, r, segments)]

    if isinstance(element, Torus):
        d = abs(layer_z - element.z)
        if d >= element.tube_radius:
            return []
        m = math.sqrt(element.tube_radius**2 - d**2)
        outer = element.radius + m
        inner = element.radius - m
        if _too_small(outer, settings):
            return []
        polygons = [circle_polygon(center, outer, segments)]
        if inner > 0:
            polygons.append(circle_polygon(center, inner, segments, clockwise=True))
        return polygons

    if isinstance(element, Ellipsoid):
        dz = layer_z - element.z
        if abs(dz) > element.radius_z:
            return []
        s = math.sqrt(max(0.0, 1 - (dz / element.radius_z) ** 2))
        rx, ry = element.radius_x * s, element.radius_y * s
        if _too_small(min(rx, ry), settings):
            return []
        return [ellipse_polygon(center, rx, ry, segments, math.radians(element.rotation))]

    raise SlicingError(f"{type(element).__name__} has no analytic cross-section")


# === Line strokes ===


def line_active(line: Line, layer_z: float, layer_height: float) -> bool:
    """True when the stroke's height falls in the band (layer_z - lh, layer_z]."""
    return layer_z - layer_height + Z_EPSILON < line.z <= layer_z + Z_EPSILON


def line_stroke(line: Line) -> NDArray[np.float64]:
    return np.array([line.start, line.end], dtype=np.float64)


def slice_line(
    line: Line,
    settings: PrinterSettings,
    z: float,
    current_e: float,
) -> MoveResult:
    """Print a line as a direct two-point extrusion at ``z``."""
    if line.length <= 0:
        return MoveResult("", current_e)
    stroke_settings = replace(settings, extrusion_width=line.stroke_width)
    result = polyline_path(line_stroke(line), z, stroke_settings, current_e)
    if not result.gcode:
        return result
    return MoveResult("; Line\n" + result.gcode, result.next_e)


# === Shells and infill ===


def slice_element(
    element: Element,
    settings: PrinterSettings,
    layer_z: float,
    current_e: float,
    *,
    print_z: float | None = None,
    layer_index: int = 0,
    offsetter: PolygonOffsetter | None = None,
) -> SliceResult:
    """Slice one primitive and print its shells and infill for one layer.

    Args:
        element: Primitive to slice
        settings: Printer settings
        layer_z: Model height at which to take the cross-section
        current_e: Extrusion value before the first move
        print_z: Nozzle height for the moves (defaults to ``layer_z``)
        layer_index: 0-based layer number for pattern alternation
        offsetter: Offset implementation for shells and the infill region

    Returns:
        SliceResult; empty G-code with ``current_e`` unchanged when the
        slice is empty
    """
    z = layer_z if print_z is None else print_z

    if isinstance(element, Line):
        if not line_active(element, layer_z, settings.layer_height):
            return SliceResult("", current_e, [])
        result = slice_line(element, settings, z, current_e)
        return SliceResult(result.gcode, result.next_e, [])

    geometry = slice_geometry(element, layer_z, settings)
    if not geometry:
        logger.debug("%s: empty slice at Z=%.3f", element.kind, layer_z)
        return SliceResult("", current_e, [])

    perimeters = generate_perimeters(geometry, z, settings, current_e, offsetter=offsetter)
    gcode = perimeters.gcode
    e = perimeters.next_e

    if settings.infill_density > 0 or settings.infill_pattern is InfillPattern.SOLID:
        region = inset_geometry(geometry, settings.shell_count * settings.extrusion_width, offsetter)
        infill = generate_infill(region, z, settings, e, layer_index=layer_index)
        gcode += infill.gcode
        e = infill.next_e

    if gcode:
        label = f"{element.kind} {element.id}" if element.id else element.kind
        gcode = f"; {label}\n" + gcode
    return SliceResult(gcode, e, geometry)
