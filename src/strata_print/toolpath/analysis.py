"""
G-code statistics and quick print estimates.

The parser understands the subset of G-code this package writes (G0-G3,
G90/G91, G92, M82/M83 and ``; LAYER`` comments); anything else is ignored.
The element estimates are rough, size-based heuristics meant for quoting a
job before slicing it.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import NamedTuple

from strata_print.geometry.bounds import element_bounds
from strata_print.geometry.elements import (
    Composite,
    Cone,
    Cube,
    Cylinder,
    Element,
    Ellipsoid,
    Line,
    Sphere,
    Text,
    Torus,
)
from strata_print.toolpath.settings import PrinterSettings, SupportType

_WORD = re.compile(r"([A-Z])(-?\d+(?:\.\d*)?)")

# g/cm^3
MATERIAL_DENSITY = {
    "pla": 1.24,
    "plastic": 1.24,
    "abs": 1.04,
    "petg": 1.27,
    "tpu": 1.21,
    "aluminum": 2.7,
    "wood": 0.8,
}


def _parse(line: str) -> tuple[str, dict[str, float], str]:
    """Split a G-code line into (command, words, comment)."""
    code, _, comment = line.partition(";")
    tokens = code.strip().upper()
    if not tokens:
        return "", {}, comment.strip()
    head, _, rest = tokens.partition(" ")
    words = {letter: float(value) for letter, value in _WORD.findall(rest)}
    return head, words, comment.strip()


def extrusion_values(gcode: str) -> list[list[float]]:
    """Absolute E values of extruding moves, in program order.

    A new run starts at every ``G92 E`` reset. Moves made in relative mode
    (G91 or M83) are left out, since their E values are deltas.
    """
    runs: list[list[float]] = [[]]
    relative_axes = False
    relative_e = False
    for line in gcode.splitlines():
        command, words, _ = _parse(line)
        if command == "G90":
            relative_axes = False
        elif command == "G91":
            relative_axes = True
        elif command == "M82":
            relative_e = False
        elif command == "M83":
            relative_e = True
        elif command == "G92" and "E" in words:
            if runs[-1]:
                runs.append([])
        elif command in ("G0", "G1", "G2", "G3") and "E" in words:
            if not (relative_axes or relative_e):
                runs[-1].append(words["E"])
    return [run for run in runs if run]


@dataclass
class GCodeStats:
    """Summary of a G-code program.

    Attributes:
        layer_count: Number of ``; LAYER`` markers
        extrusion_moves: Moves that feed filament
        travel_moves: Moves that do not
        filament_length: Total filament fed (mm), excluding priming and retraction
        extrude_distance: XY distance covered while extruding (mm)
        travel_distance: XY distance covered without extruding (mm)
        estimated_time: Motion time from feed rates (s)
    """

    layer_count: int = 0
    extrusion_moves: int = 0
    travel_moves: int = 0
    filament_length: float = 0.0
    extrude_distance: float = 0.0
    travel_distance: float = 0.0
    estimated_time: float = 0.0


def _arc_length(x0, y0, x1, y1, i, j, clockwise: bool) -> float:
    cx, cy = x0 + i, y0 + j
    r = math.hypot(i, j)
    a0 = math.atan2(y0 - cy, x0 - cx)
    a1 = math.atan2(y1 - cy, x1 - cx)
    sweep = (a0 - a1) if clockwise else (a1 - a0)
    sweep %= 2 * math.pi
    if sweep < 1e-9:
        sweep = 2 * math.pi
    return r * sweep


def gcode_stats(gcode: str) -> GCodeStats:
    """Count layers and moves and measure distances, filament and time."""
    stats = GCodeStats()
    x = y = 0.0
    e = 0.0
    feed = 0.0
    relative_axes = False
    in_body = False

    for line in gcode.splitlines():
        command, words, comment = _parse(line)
        if comment.startswith("LAYER "):
            stats.layer_count += 1
            in_body = True
        if command == "G90":
            relative_axes = False
        elif command == "G91":
            relative_axes = True
        elif command == "G92":
            e = words.get("E", e)
        elif command in ("G0", "G1", "G2", "G3"):
            feed = words.get("F", feed)
            if relative_axes:
                continue
            nx, ny = words.get("X", x), words.get("Y", y)
            if command in ("G2", "G3"):
                dist = _arc_length(x, y, nx, ny, words.get("I", 0.0), words.get("J", 0.0), command == "G2")
            else:
                dist = math.hypot(nx - x, ny - y)
            extruding = "E" in words and words["E"] > e
            if extruding and in_body:
                stats.extrusion_moves += 1
                stats.filament_length += words["E"] - e
                stats.extrude_distance += dist
            elif dist > 0:
                stats.travel_moves += 1
                stats.travel_distance += dist
            if feed > 0:
                stats.estimated_time += dist / (feed / 60)
            if "E" in words:
                e = words["E"]
            x, y = nx, ny
    return stats


# === Element estimates ===


class ElementDimensions(NamedTuple):
    """Overall size (mm) and solid volume (mm^3) of an element."""

    width: float
    depth: float
    height: float
    volume: float


def _volume(element: Element) -> float:
    if isinstance(element, Composite):
        return sum(_volume(child) for child in element.children)
    if isinstance(element, Cube):
        return element.width * element.depth * element.height
    if isinstance(element, Cylinder):
        return math.pi * element.radius**2 * element.height
    if isinstance(element, Sphere):
        return 4 / 3 * math.pi * element.radius**3
    if isinstance(element, Cone):
        r0, r1 = element.radius, element.top_radius
        return math.pi * element.height / 3 * (r0**2 + r0 * r1 + r1**2)
    if isinstance(element, Torus):
        return 2 * math.pi**2 * element.radius * element.tube_radius**2
    if isinstance(element, Ellipsoid):
        return 4 / 3 * math.pi * element.radius_x * element.radius_y * element.radius_z
    if isinstance(element, Text):
        width, depth = element.footprint
        return width * depth * element.thickness
    if isinstance(element, Line):
        return element.length * element.stroke_width**2
    return 0.0


def element_dimensions(element: Element) -> ElementDimensions:
    """Bounding-box size and closed-form volume; zeros if unbounded.

    Composite volume is the sum of the children, so overlaps count twice.
    """
    bounds = element_bounds(element)
    if bounds is None:
        return ElementDimensions(0.0, 0.0, 0.0, 0.0)
    width, depth, height = (float(v) for v in bounds.size)
    return ElementDimensions(width, depth, height, _volume(element))


def _support_factor(support_type: SupportType, touching: float, everywhere: float) -> float:
    if support_type is SupportType.TOUCHING_BUILDPLATE:
        return touching
    if support_type is SupportType.EVERYWHERE:
        return everywhere
    return 0.0


def estimate_print_time(element: Element, settings: PrinterSettings) -> float:
    """Rough print time in minutes (never less than 10).

    Perimeters run at print speed, infill at 1.5x and support at 2x, with
    20% added for travel.
    """
    dims = element_dimensions(element)
    layers = math.ceil(dims.height / settings.layer_height)
    layer_area = dims.width * dims.depth
    speed = settings.print_speed * 60

    perimeter_time = 2 * (dims.width + dims.depth) * settings.shell_count * layers / speed
    infill_time = layer_area * layers * (settings.infill_density / 100) / (speed * 1.5)
    support_factor = _support_factor(settings.support_type, 0.2, 0.4)
    support_time = layer_area * layers * support_factor / (speed * 2)

    total = round((perimeter_time + infill_time + support_time) * 1.2)
    return float(max(10, total))


def estimate_material_usage(element: Element, settings: PrinterSettings) -> float:
    """Rough filament mass in grams (never less than 1).

    Unrecognized materials are treated as PLA.
    """
    dims = element_dimensions(element)
    density = MATERIAL_DENSITY.get(settings.material.lower(), MATERIAL_DENSITY["pla"])

    w, d, h = dims.width, dims.depth, dims.height
    shell_volume = 2 * (w * d + w * h + d * h) * settings.shell_count * settings.extrusion_width
    shell_volume = min(shell_volume, dims.volume)
    infill_volume = (dims.volume - shell_volume) * (settings.infill_density / 100)
    support_volume = dims.volume * _support_factor(settings.support_type, 0.15, 0.3)

    grams = (shell_volume + infill_volume + support_volume) / 1000 * density
    return max(1.0, round(grams, 1))
