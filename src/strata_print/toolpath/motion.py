"""
Motion and extrusion primitives.

Every function that emits extruding moves takes the current extrusion value
E and returns a :class:`MoveResult` carrying the G-code text and the E value
after the last move. E is absolute (M82) and never decreases.

Functions:
    calculate_extrusion: Filament length needed for a printed segment
    move_to: One G1 extrusion move
    travel_to: One G0 non-extruding move
    polygon_layer: Closed loop around a polygon
    polyline_path: Open path through a sequence of points
    arc_loop: Full circle as a single G3 arc
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, NamedTuple

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from strata_print.toolpath.settings import PrinterSettings

# Extrusion moves shorter than this would print nothing and round to a
# repeated coordinate once formatted.
MIN_EXTRUDE_LENGTH = 1e-3


class MoveResult(NamedTuple):
    """G-code text plus the extrusion value after the last move."""

    gcode: str
    next_e: float


def calculate_extrusion(
    length: float,
    layer_height: float,
    extrusion_width: float,
    filament_diameter: float,
) -> float:
    """Filament length consumed by a printed segment.

    The deposited bead is modeled as a ``extrusion_width x layer_height``
    rectangle; the result is the length of filament with the same volume.
    Any non-positive input yields 0.

    Args:
        length: Segment length (mm)
        layer_height: Bead height (mm)
        extrusion_width: Bead width (mm)
        filament_diameter: Feedstock diameter (mm)

    Returns:
        Filament length (mm)
    """
    if length <= 0 or layer_height <= 0 or extrusion_width <= 0 or filament_diameter <= 0:
        return 0.0
    filament_area = math.pi * (filament_diameter / 2) ** 2
    return (extrusion_width * layer_height) / filament_area * length


def _words(x=None, y=None, z=None) -> list[str]:
    words = []
    if x is not None:
        words.append(f"X{x:.3f}")
    if y is not None:
        words.append(f"Y{y:.3f}")
    if z is not None:
        words.append(f"Z{z:.3f}")
    return words


def _finish(words: list[str], feed: float | None, comment: str | None) -> str:
    if feed is not None:
        words.append(f"F{feed:.0f}")
    line = " ".join(words)
    if comment:
        line += f" ; {comment}"
    return line + "\n"


def move_to(
    x: float | None,
    y: float | None,
    z: float | None,
    e: float | None = None,
    speed: float | None = None,
    comment: str | None = None,
) -> str:
    """Format a G1 move; ``speed`` is in mm/s and written as F in mm/min."""
    words = ["G1", *_words(x, y, z)]
    if e is not None:
        words.append(f"E{e:.5f}")
    return _finish(words, speed * 60 if speed is not None else None, comment)


def travel_to(
    x: float | None,
    y: float | None,
    z: float | None = None,
    speed: float | None = None,
    comment: str | None = None,
) -> str:
    """Format a G0 rapid move with no extrusion."""
    words = ["G0", *_words(x, y, z)]
    return _finish(words, speed * 60 if speed is not None else None, comment)


def _extrude_through(
    points: NDArray[np.float64],
    z: float,
    settings: PrinterSettings,
    current_e: float,
    speed: float,
    layer_height: float,
) -> MoveResult:
    """Extrude from points[0] through the rest, skipping zero-length moves."""
    lines = []
    e = current_e
    last = points[0]
    for point in points[1:]:
        length = float(np.hypot(point[0] - last[0], point[1] - last[1]))
        if length < MIN_EXTRUDE_LENGTH:
            continue
        e += calculate_extrusion(
            length, layer_height, settings.extrusion_width, settings.filament_diameter
        )
        lines.append(move_to(point[0], point[1], z, e, speed))
        last = point
    return MoveResult("".join(lines), e)


def polygon_layer(
    polygon: NDArray[np.float64],
    z: float,
    settings: PrinterSettings,
    current_e: float,
    *,
    speed: float | None = None,
    layer_height: float | None = None,
    comment: str | None = None,
) -> MoveResult:
    """Print a closed loop: travel to the first vertex, extrude around, close.

    Polygons with fewer than 3 vertices produce no output.
    """
    pts = np.asarray(polygon, dtype=np.float64)
    if len(pts) < 3:
        return MoveResult("", current_e)
    head = travel_to(pts[0, 0], pts[0, 1], z, settings.travel_speed, comment)
    loop = np.vstack([pts, pts[:1]])
    body = _extrude_through(
        loop,
        z,
        settings,
        current_e,
        speed or settings.print_speed,
        layer_height or settings.layer_height,
    )
    if not body.gcode:
        return MoveResult("", current_e)
    return MoveResult(head + body.gcode, body.next_e)


def polyline_path(
    points: NDArray[np.float64],
    z: float,
    settings: PrinterSettings,
    current_e: float,
    *,
    speed: float | None = None,
    layer_height: float | None = None,
    travel: bool = True,
) -> MoveResult:
    """Print an open path. With ``travel=False`` the nozzle is assumed to
    already be at the first point."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 2:
        return MoveResult("", current_e)
    body = _extrude_through(
        pts,
        z,
        settings,
        current_e,
        speed or settings.print_speed,
        layer_height or settings.layer_height,
    )
    if not body.gcode:
        return MoveResult("", current_e)
    head = travel_to(pts[0, 0], pts[0, 1], z, settings.travel_speed) if travel else ""
    return MoveResult(head + body.gcode, body.next_e)


def arc_loop(
    center: tuple[float, float],
    radius: float,
    z: float,
    settings: PrinterSettings,
    current_e: float,
    *,
    layer_height: float | None = None,
) -> MoveResult:
    """Print a full counter-clockwise circle as one G3 arc.

    The nozzle travels to the rightmost point and the arc returns to it, with
    I/J giving the center offset.
    """
    if radius <= 0:
        return MoveResult("", current_e)
    cx, cy = center
    start_x = cx + radius
    length = 2 * math.pi * radius
    e = current_e + calculate_extrusion(
        length,
        layer_height or settings.layer_height,
        settings.extrusion_width,
        settings.filament_diameter,
    )
    gcode = travel_to(start_x, cy, z, settings.travel_speed)
    gcode += (
        f"G3 X{start_x:.3f} Y{cy:.3f} I{-radius:.3f} J0.000 E{e:.5f} "
        f"F{settings.print_feed:.0f}\n"
    )
    return MoveResult(gcode, e)
