"""
Infill patterns.

All patterns are generated over the whole region extent and clipped to the
region, so any SliceGeometry can be filled regardless of which primitive
produced it. Line spacing comes from density as
``extrusion_width / (density / 100)``.

Patterns:
    lines: Parallel scanlines, horizontal on even layers and vertical on odd
    grid: Horizontal and vertical scanlines on every layer
    triangular: Two diagonal families, shifted half a spacing on odd layers
    honeycomb: Pointy-top hexagon tessellation
    solid: Full-density diagonal raster alternating direction per layer
    circular: Concentric rings around a round cross-section's center
    spiral: One Archimedean spiral around a round cross-section's center
"""

from __future__ import annotations

import logging
import math

import numpy as np
from numpy.typing import NDArray

from strata_print.geometry.clipping import clip_polyline, scanline_segments
from strata_print.geometry.paths import ConcentricRings, SpiralPath
from strata_print.geometry.polygon import SliceGeometry, fit_circle, geometry_extent, is_ccw
from strata_print.toolpath.motion import MoveResult, polygon_layer, polyline_path
from strata_print.toolpath.settings import InfillPattern, PrinterSettings

logger = logging.getLogger(__name__)

MIN_LINE_SPACING = 0.1

CENTERED_PATTERNS = (InfillPattern.CIRCULAR, InfillPattern.SPIRAL)


class UnsupportedPatternError(Exception):
    """The pattern cannot be applied to this region."""


def infill_spacing(settings: PrinterSettings, density: float, pattern: InfillPattern) -> float | None:
    """Line spacing for a density, or None when nothing should be printed."""
    w = settings.extrusion_width
    if pattern is InfillPattern.SOLID:
        return max(w, MIN_LINE_SPACING)
    if density <= 0:
        return None
    return max(w / (density / 100), MIN_LINE_SPACING)


# === Pattern geometry ===


def raster_paths(
    region: SliceGeometry,
    angle: float,
    spacing: float,
    phase: float = 0.0,
) -> list[NDArray[np.float64]]:
    """Boustrophedon scanline segments: every other scanline runs backwards."""
    paths = []
    for i, row in enumerate(scanline_segments(region, angle, spacing, phase)):
        if i % 2:
            row = [seg[::-1] for seg in reversed(row)]
        paths.extend(row)
    return paths


def honeycomb_paths(
    region: SliceGeometry,
    spacing: float,
    layer_index: int = 0,
) -> list[NDArray[np.float64]]:
    """Hexagonal tessellation clipped to the region.

    Hexagons are pointy-top with circumradius ``spacing``. The tessellation
    is drawn as one zigzag per row boundary plus the vertical edges inside
    each row. Odd rows are offset by half a hexagon width and odd layers
    shift the whole pattern by half a width, so layers interlock.
    """
    extent = geometry_extent(region)
    if extent is None:
        return []
    min_x, min_y, max_x, max_y = extent
    radius = spacing
    width = math.sqrt(3) * radius
    row_step = 1.5 * radius
    layer_shift = (layer_index % 2) * width / 2

    j0 = math.floor(min_y / row_step) - 1
    j1 = math.ceil(max_y / row_step) + 1

    paths = []
    for j in range(j0, j1 + 1):
        cy = j * row_step
        offset = (j % 2) * width / 2 + layer_shift
        i0 = math.floor((min_x - offset) / width) - 1
        i1 = math.ceil((max_x - offset) / width) + 1
        left_edges = offset + np.arange(i0, i1 + 1) * width - width / 2

        # Zigzag along the top of this row, shared with the bottom of the next
        xs = left_edges[0] + np.arange(2 * len(left_edges) + 1) * (width / 2)
        ys = np.where(np.arange(len(xs)) % 2 == 0, cy + radius / 2, cy + radius)
        zigzag = np.stack([xs, ys], axis=1)
        if j % 2:
            zigzag = zigzag[::-1]
        paths.extend(clip_polyline(region, zigzag))

        verticals = left_edges if j % 2 == 0 else left_edges[::-1]
        for k, x in enumerate(verticals):
            edge = np.array([[x, cy - radius / 2], [x, cy + radius / 2]])
            if k % 2:
                edge = edge[::-1]
            paths.extend(clip_polyline(region, edge))
    return paths


def natural_center(region: SliceGeometry, tol: float = 1e-3) -> tuple[tuple[float, float], float, float] | None:
    """Common center of a region made only of concentric circles.

    Returns:
        ((cx, cy), outer_radius, inner_radius) or None. ``inner_radius`` is
        the largest hole radius, 0 when there is no hole.
    """
    center = None
    outer, inner = 0.0, 0.0
    for polygon in region:
        circle = fit_circle(polygon)
        if circle is None:
            return None
        c, r = circle
        if center is None:
            center = c
        elif math.hypot(c.x - center.x, c.y - center.y) > tol * max(r, 1.0):
            return None
        if is_ccw(polygon):
            outer = max(outer, r)
        else:
            inner = max(inner, r)
    if center is None or outer <= inner:
        return None
    return (center.x, center.y), outer, inner


def centered_paths(
    region: SliceGeometry,
    pattern: InfillPattern,
    spacing: float,
    segments: int = 36,
) -> list[NDArray[np.float64]]:
    """Rings or a spiral about the region's natural center.

    Rings are returned as closed loops (first point repeated).

    Raises:
        UnsupportedPatternError: If the region has no natural center
    """
    found = natural_center(region)
    if found is None:
        raise UnsupportedPatternError(
            f"{pattern.value} infill needs a round cross-section"
        )
    center, outer, inner = found
    if pattern is InfillPattern.CIRCULAR:
        rings = ConcentricRings(center, outer, spacing, min_radius=inner)
        return [np.vstack([ring, ring[:1]]) for ring in rings.rings(segments)]
    spiral = SpiralPath(center, inner_radius=inner, outer_radius=outer, pitch=spacing)
    return clip_polyline(region, spiral.sample_points(max_chord=max(spacing / 2, 0.2)))


def infill_paths(
    region: SliceGeometry,
    pattern: InfillPattern,
    spacing: float,
    layer_index: int = 0,
    segments: int = 36,
) -> list[NDArray[np.float64]]:
    """Polylines covering the region with the given pattern, in print order."""
    if pattern is InfillPattern.LINES:
        angle = 0.0 if layer_index % 2 == 0 else math.pi / 2
        return raster_paths(region, angle, spacing)
    if pattern is InfillPattern.GRID:
        return raster_paths(region, 0.0, spacing) + raster_paths(region, math.pi / 2, spacing)
    if pattern is InfillPattern.TRIANGULAR:
        phase = (layer_index % 2) * spacing / 2
        return raster_paths(region, math.pi / 4, spacing, phase) + raster_paths(
            region, -math.pi / 4, spacing, phase
        )
    if pattern is InfillPattern.HONEYCOMB:
        return honeycomb_paths(region, spacing, layer_index)
    if pattern is InfillPattern.SOLID:
        angle = math.pi / 4 if layer_index % 2 == 0 else -math.pi / 4
        return raster_paths(region, angle, spacing)
    if pattern in CENTERED_PATTERNS:
        return centered_paths(region, pattern, spacing, segments)
    raise UnsupportedPatternError(f"Unknown infill pattern {pattern!r}")


# === G-code ===


def print_paths(
    paths: list[NDArray[np.float64]],
    z: float,
    settings: PrinterSettings,
    current_e: float,
    *,
    speed: float | None = None,
    layer_height: float | None = None,
) -> MoveResult:
    """Travel to and extrude along each path in order."""
    parts = []
    e = current_e
    for path in paths:
        if len(path) > 3 and np.allclose(path[0], path[-1]):
            result = polygon_layer(path[:-1], z, settings, e, speed=speed, layer_height=layer_height)
        else:
            result = polyline_path(path, z, settings, e, speed=speed, layer_height=layer_height)
        parts.append(result.gcode)
        e = result.next_e
    return MoveResult("".join(parts), e)


def generate_infill(
    region: SliceGeometry,
    z: float,
    settings: PrinterSettings,
    current_e: float,
    *,
    layer_index: int = 0,
    pattern: InfillPattern | str | None = None,
    density: float | None = None,
) -> MoveResult:
    """Fill a region (already inset by the shells) with an infill pattern.

    A pattern that cannot be applied to the region produces a ``; WARNING:``
    comment and no infill rather than an error.

    Args:
        region: Area to fill
        z: Print height for the moves
        settings: Printer settings
        current_e: Extrusion value before the first move
        layer_index: 0-based layer number, used to alternate directions
        pattern: Overrides ``settings.infill_pattern``
        density: Overrides ``settings.infill_density`` (percent)

    Returns:
        MoveResult with the infill G-code and the updated E
    """
    pattern = InfillPattern(pattern) if pattern is not None else settings.infill_pattern
    density = settings.infill_density if density is None else density
    region = [p for p in region if len(p) >= 3]
    if not region:
        return MoveResult("", current_e)

    spacing = infill_spacing(settings, density, pattern)
    if spacing is None:
        return MoveResult("", current_e)

    try:
        paths = infill_paths(region, pattern, spacing, layer_index, settings.circle_segments)
    except UnsupportedPatternError as err:
        logger.warning("Skipping infill at Z=%.3f: %s", z, err)
        return MoveResult(f"; WARNING: {err}, infill skipped\n", current_e)

    result = print_paths(paths, z, settings, current_e)
    if not result.gcode:
        return result
    return MoveResult(f"; Infill ({pattern.value})\n" + result.gcode, result.next_e)
