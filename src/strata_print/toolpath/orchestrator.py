"""
End-to-end G-code generation.

Two entry points:

    generate_element_gcode: One primitive, with text and unknown types
        replaced by a bounding-box placeholder
    generate_composite_gcode: A whole element tree

Both share one layer loop, which runs in two passes. The first collects
every layer's outline (each layer is independent) and plans support for the
whole print. The second walks the layers in order, emitting G-code and
threading the extrusion value E from one stage to the next. E is reset only
by the start code, so it never decreases across the program body.

Example:
    >>> from strata_print import Cube, PrinterSettings, generate_composite_gcode
    >>> job = generate_composite_gcode(
    ...     Cube(center=(0, 0, 5), width=10, depth=10, height=10),
    ...     PrinterSettings(),
    ... )
    >>> job.layer_count
    50
"""

from __future__ import annotations

import logging
import math
import warnings
from collections.abc import Callable
from typing import NamedTuple

from strata_print.geometry.bounds import Bounds, element_bounds
from strata_print.geometry.elements import Composite, Element, Line, Text, UnknownElement
from strata_print.geometry.offset import PolygonOffsetter
from strata_print.geometry.polygon import SliceGeometry
from strata_print.toolpath.adhesion import brim_loops, raft_outline
from strata_print.toolpath.collector import (
    Diagnostic,
    get_primitives_at_layer,
    get_strokes_at_layer,
)
from strata_print.toolpath.infill import generate_infill
from strata_print.toolpath.lifecycle import print_end_gcode, print_start_gcode
from strata_print.toolpath.motion import MoveResult, polygon_layer
from strata_print.toolpath.perimeters import generate_perimeters, inset_geometry
from strata_print.toolpath.settings import InfillPattern, PrinterSettings
from strata_print.toolpath.slicers import SlicingError, slice_line
from strata_print.toolpath.support import generate_support, plan_support

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class UnboundedElementError(SlicingError):
    """The root element has no resolvable extent, so layers cannot be sized."""


class PrintJob(NamedTuple):
    """Generated program and summary values.

    Attributes:
        gcode: Complete G-code text including start and end code
        final_e: Extrusion value after the last layer
        layer_count: Number of model layers (raft layers excluded)
        last_z: Nozzle height of the last printed layer
    """

    gcode: str
    final_e: float
    layer_count: int
    last_z: float


def layer_heights(bounds: Bounds, settings: PrinterSettings) -> list[float]:
    """Model heights of every layer: ``min_z + (k + 1) * layer_height``.

    At least one layer is produced, even for zero-height bounds.
    """
    lh = settings.layer_height
    count = max(1, math.ceil(bounds.height / lh - 1e-9))
    return [round(bounds.min_z + (k + 1) * lh, 9) for k in range(count)]


def layer_header(index: int, count: int, z: float) -> str:
    return f"; LAYER {index} / {count} at Z={z:.3f}\n"


def _run_stages(
    stages: list[tuple[str, Callable[[float], MoveResult]]],
    current_e: float,
    layer_number: int,
) -> tuple[list[str], float]:
    """Run layer stages in order, threading E.

    A stage that raises is logged and annotated; output from the stages
    before it is kept and the rest of the layer is skipped.
    """
    parts = []
    e = current_e
    for name, stage in stages:
        try:
            result = stage(e)
        except Exception as err:
            logger.exception("Layer %d: %s failed", layer_number, name)
            parts.append(f"; ERROR: {name} failed on layer {layer_number}: {err}\n")
            break
        parts.append(result.gcode)
        e = result.next_e
    return parts, e


# === Single element ===


def placeholder_element(element: Element, settings: PrinterSettings) -> tuple[Element, str]:
    """Printable stand-in for a text or unknown root, plus the comments announcing it.

    Any other element is returned unchanged with no comments.
    """
    if isinstance(element, Text):
        notes = (
            "; ERROR: Text elements cannot be printed directly\n"
            "; ERROR: Convert text to outlines before slicing; printing a bounding-box placeholder\n"
        )
        return element.placeholder(settings.layer_height), notes
    if isinstance(element, UnknownElement):
        notes = (
            f"; WARNING: Unsupported element type '{element.type_name}', "
            "printing bounding-box cube placeholder\n"
        )
        return element.placeholder(), notes
    return element, ""


def generate_element_gcode(
    element: Element,
    settings: PrinterSettings,
    *,
    offsetter: PolygonOffsetter | None = None,
    progress: ProgressCallback | None = None,
) -> PrintJob:
    """Complete program for a single primitive.

    Text is replaced by a bounding-box cube with ``; ERROR:`` comments and
    unknown element types by a bounding-box cube with a ``; WARNING:``
    comment. Composites are handed to :func:`generate_composite_gcode`.
    Other primitives go through the same layer loop as a tree, so raft,
    brim and support settings apply.

    Args:
        element: Primitive to print
        settings: Printer settings
        offsetter: Offset implementation for shells and infill regions
        progress: Called with (layers_done, layer_count) after each layer

    Returns:
        PrintJob
    """
    if isinstance(element, Composite):
        warnings.warn(
            "generate_element_gcode received a composite; using generate_composite_gcode",
            UserWarning,
            stacklevel=2,
        )
        return generate_composite_gcode(element, settings, offsetter=offsetter, progress=progress)

    if isinstance(element, Text):
        logger.error("Text element cannot be printed directly; printing a placeholder block")
    elif isinstance(element, UnknownElement):
        logger.warning("Unsupported element type '%s'; printing a bounding box", element.type_name)
    element, notes = placeholder_element(element, settings)

    if isinstance(element, Line):
        parts = [print_start_gcode(settings), layer_header(1, 1, element.z)]
        result = slice_line(element, settings, element.z, 0.0)
        parts.append(result.gcode)
        parts.append(print_end_gcode(settings, element.z))
        if progress is not None:
            progress(1, 1)
        return PrintJob("".join(parts), result.next_e, 1, element.z)

    return _print_layers(element, settings, offsetter=offsetter, progress=progress, notes=notes)


# === Element tree ===


def _collect_layers(
    element: Element,
    zs: list[float],
    settings: PrinterSettings,
    diagnostics: set[Diagnostic],
) -> tuple[list[SliceGeometry], dict[int, str]]:
    """Pass 1: outline of every layer. Failures leave that layer empty."""
    geometries: list[SliceGeometry] = []
    errors: dict[int, str] = {}
    for k, z in enumerate(zs):
        try:
            geometries.append(get_primitives_at_layer(element, z, settings, diagnostics))
        except Exception as err:
            logger.exception("Layer %d: collecting geometry failed", k + 1)
            errors[k] = f"; ERROR: geometry failed on layer {k + 1}: {err}\n"
            geometries.append([])
    return geometries, errors


def _raft_gcode(
    outline: SliceGeometry,
    settings: PrinterSettings,
    current_e: float,
    offsetter: PolygonOffsetter | None,
) -> MoveResult:
    parts = []
    e = current_e
    lh = settings.layer_height
    for i in range(settings.raft_layers):
        z = (i + 1) * lh
        parts.append(f"; RAFT LAYER {i + 1} / {settings.raft_layers} at Z={z:.3f}\n")
        stages = [
            (
                "raft perimeter",
                lambda e0, z=z: generate_perimeters(
                    outline, z, settings, e0, offsetter=offsetter, shell_count=1
                ),
            ),
            (
                "raft fill",
                lambda e0, z=z, i=i: generate_infill(
                    inset_geometry(outline, settings.extrusion_width, offsetter),
                    z,
                    settings,
                    e0,
                    layer_index=i,
                    pattern=InfillPattern.SOLID,
                ),
            ),
        ]
        layer_parts, e = _run_stages(stages, e, i + 1)
        parts.extend(layer_parts)
    return MoveResult("".join(parts), e)


def _brim_gcode(geometry: SliceGeometry, z: float, settings: PrinterSettings, current_e: float) -> MoveResult:
    parts = []
    e = current_e
    for loop in brim_loops(geometry, settings):
        result = polygon_layer(loop, z, settings, e)
        parts.append(result.gcode)
        e = result.next_e
    if not parts:
        return MoveResult("", current_e)
    return MoveResult("; Brim\n" + "".join(parts), e)


def _strokes_gcode(
    element: Element, layer_z: float, z: float, settings: PrinterSettings, current_e: float
) -> MoveResult:
    parts = []
    e = current_e
    for line in get_strokes_at_layer(element, layer_z, settings):
        result = slice_line(line, settings, z, e)
        parts.append(result.gcode)
        e = result.next_e
    return MoveResult("".join(parts), e)


def generate_composite_gcode(
    element: Element,
    settings: PrinterSettings,
    *,
    offsetter: PolygonOffsetter | None = None,
    progress: ProgressCallback | None = None,
) -> PrintJob:
    """Complete program for an element tree.

    Each layer prints, in order: the brim (first layer only), perimeter
    shells of the combined outline, line strokes, infill, and support.
    Raft layers, when configured, are printed first and lift the model by
    ``raft_layers * layer_height``.

    Args:
        element: Root of the tree (a single primitive also works)
        settings: Printer settings
        offsetter: Offset implementation for shells and infill regions
        progress: Called with (layers_done, layer_count) after each layer

    Returns:
        PrintJob

    Raises:
        UnboundedElementError: If the root's extent cannot be resolved
    """
    return _print_layers(element, settings, offsetter=offsetter, progress=progress)


def _print_layers(
    element: Element,
    settings: PrinterSettings,
    *,
    offsetter: PolygonOffsetter | None,
    progress: ProgressCallback | None,
    notes: str = "",
) -> PrintJob:
    """Shared layer loop; ``notes`` are written right after the start code."""
    bounds = element_bounds(element)
    if bounds is None:
        raise UnboundedElementError(
            f"Cannot determine the extent of {element.kind}; nothing to slice"
        )

    zs = layer_heights(bounds, settings)
    count = len(zs)
    logger.info("Slicing %d layers from Z=%.3f to Z=%.3f", count, bounds.min_z, bounds.max_z)

    diagnostics: set[Diagnostic] = set()
    geometries, geometry_errors = _collect_layers(element, zs, settings, diagnostics)
    supports = plan_support(geometries, settings)

    parts = [print_start_gcode(settings), notes]
    parts.extend(d.comment() for d in sorted(diagnostics))

    e = 0.0
    z_offset = settings.raft_layers * settings.layer_height
    if settings.raft_layers:
        raft = _raft_gcode(raft_outline(geometries), settings, e, offsetter)
        parts.append(raft.gcode)
        e = raft.next_e

    w = settings.extrusion_width
    for k, layer_z in enumerate(zs):
        z = round(layer_z + z_offset, 9)
        geometry = geometries[k]
        parts.append(layer_header(k + 1, count, z))
        if k in geometry_errors:
            parts.append(geometry_errors[k])

        stages: list[tuple[str, Callable[[float], MoveResult]]] = []
        if k == 0 and settings.brim_width > 0:
            stages.append(("brim", lambda e0, g=geometry, z=z: _brim_gcode(g, z, settings, e0)))
        stages.append(
            (
                "perimeters",
                lambda e0, g=geometry, z=z: generate_perimeters(g, z, settings, e0, offsetter=offsetter),
            )
        )
        stages.append(
            ("strokes", lambda e0, lz=layer_z, z=z: _strokes_gcode(element, lz, z, settings, e0))
        )
        if settings.infill_density > 0 or settings.infill_pattern is InfillPattern.SOLID:
            stages.append(
                (
                    "infill",
                    lambda e0, g=geometry, z=z, k=k: generate_infill(
                        inset_geometry(g, settings.shell_count * w, offsetter),
                        z,
                        settings,
                        e0,
                        layer_index=k,
                    ),
                )
            )
        if supports[k]:
            stages.append(
                (
                    "support",
                    lambda e0, s=supports[k], z=z, k=k: generate_support(s, z, settings, e0, k),
                )
            )

        layer_parts, e = _run_stages(stages, e, k + 1)
        parts.extend(layer_parts)
        if progress is not None:
            progress(k + 1, count)

    last_z = round(zs[-1] + z_offset, 9)
    parts.append(print_end_gcode(settings, last_z))
    return PrintJob("".join(parts), e, count, last_z)
