"""
Aggregate cross-sections over an element tree.

The collector only gathers geometry; shells and infill for a composite are
generated once for the combined outline by the orchestrator.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from strata_print.geometry.bounds import element_bounds
from strata_print.geometry.elements import Composite, Element, Line, Text, UnknownElement
from strata_print.geometry.polygon import SliceGeometry
from strata_print.toolpath.settings import PrinterSettings
from strata_print.toolpath.slicers import line_active, slice_geometry

logger = logging.getLogger(__name__)


class Diagnostic(NamedTuple):
    """A problem found while collecting, written to the G-code as a comment."""

    level: str
    message: str

    def comment(self) -> str:
        return f"; {self.level}: {self.message}\n"


def _diagnose(diagnostics: set[Diagnostic] | None, diagnostic: Diagnostic) -> None:
    """Record a diagnostic once per print."""
    if diagnostics is None:
        logger.debug(diagnostic.message)
    elif diagnostic not in diagnostics:
        diagnostics.add(diagnostic)
        logger.log(logging.getLevelName(diagnostic.level), diagnostic.message)


def text_diagnostic(element: Text) -> Diagnostic:
    label = f" '{element.id}'" if element.id else ""
    return Diagnostic(
        "ERROR", f"Text element{label} cannot be printed directly; convert text to outlines first"
    )


def unknown_diagnostic(element: UnknownElement) -> Diagnostic:
    return Diagnostic("WARNING", f"Unsupported element type '{element.type_name}' skipped")


def get_primitives_at_layer(
    element: Element,
    layer_z: float,
    settings: PrinterSettings,
    diagnostics: set[Diagnostic] | None = None,
) -> SliceGeometry:
    """All primitive cross-sections of a subtree at ``layer_z``.

    Subtrees whose bounds miss ``layer_z`` by more than one layer height are
    skipped without visiting their children. Text and unknown leaves add a
    diagnostic instead of geometry.

    Args:
        element: Root of the subtree
        layer_z: Model height of the layer
        settings: Printer settings
        diagnostics: Set collecting human-readable problems (optional)

    Returns:
        Combined polygons in tree order
    """
    if isinstance(element, Composite):
        bounds = element_bounds(element)
        if bounds is not None and not bounds.contains_z(layer_z, tolerance=settings.layer_height):
            return []
        geometry: SliceGeometry = []
        for child in element.children:
            geometry.extend(get_primitives_at_layer(child, layer_z, settings, diagnostics))
        return geometry

    if isinstance(element, Text):
        _diagnose(diagnostics, text_diagnostic(element))
        return []
    if isinstance(element, UnknownElement):
        _diagnose(diagnostics, unknown_diagnostic(element))
        return []
    if isinstance(element, Line):
        return []
    return slice_geometry(element, layer_z, settings)


def get_strokes_at_layer(element: Element, layer_z: float, settings: PrinterSettings) -> list[Line]:
    """Line elements in the subtree that print on this layer."""
    if isinstance(element, Composite):
        strokes = []
        for child in element.children:
            strokes.extend(get_strokes_at_layer(child, layer_z, settings))
        return strokes
    if isinstance(element, Line) and line_active(element, layer_z, settings.layer_height):
        return [element]
    return []
