"""Toolpath generation: slicing, shells, infill, support and G-code output."""

from strata_print.toolpath.analysis import (
    ElementDimensions,
    GCodeStats,
    element_dimensions,
    estimate_material_usage,
    estimate_print_time,
    extrusion_values,
    gcode_stats,
)
from strata_print.toolpath.collector import (
    Diagnostic,
    get_primitives_at_layer,
    get_strokes_at_layer,
)
from strata_print.toolpath.infill import MIN_LINE_SPACING, generate_infill
from strata_print.toolpath.lifecycle import print_end_gcode, print_start_gcode
from strata_print.toolpath.motion import (
    MoveResult,
    arc_loop,
    calculate_extrusion,
    move_to,
    polygon_layer,
    polyline_path,
    travel_to,
)
from strata_print.toolpath.orchestrator import (
    PrintJob,
    UnboundedElementError,
    generate_composite_gcode,
    generate_element_gcode,
    placeholder_element,
    layer_heights,
)
from strata_print.toolpath.perimeters import generate_perimeters, inset_geometry
from strata_print.toolpath.settings import (
    InfillPattern,
    PrinterSettings,
    SupportType,
    load_settings,
    recommended_settings,
)
from strata_print.toolpath.slicers import SliceResult, SlicingError, slice_element, slice_geometry
from strata_print.toolpath.support import detect_overhang, generate_support, plan_support

__all__ = [
    # Settings
    "PrinterSettings",
    "InfillPattern",
    "SupportType",
    "load_settings",
    "recommended_settings",
    # Motion
    "MoveResult",
    "calculate_extrusion",
    "move_to",
    "travel_to",
    "polygon_layer",
    "polyline_path",
    "arc_loop",
    # Slicing
    "SliceResult",
    "SlicingError",
    "slice_geometry",
    "slice_element",
    "get_primitives_at_layer",
    "get_strokes_at_layer",
    "Diagnostic",
    # Shells, infill, support
    "generate_perimeters",
    "inset_geometry",
    "generate_infill",
    "MIN_LINE_SPACING",
    "detect_overhang",
    "plan_support",
    "generate_support",
    # Program
    "print_start_gcode",
    "print_end_gcode",
    "layer_heights",
    "PrintJob",
    "UnboundedElementError",
    "generate_element_gcode",
    "placeholder_element",
    "generate_composite_gcode",
    # Analysis
    "extrusion_values",
    "GCodeStats",
    "gcode_stats",
    "ElementDimensions",
    "element_dimensions",
    "estimate_print_time",
    "estimate_material_usage",
]
