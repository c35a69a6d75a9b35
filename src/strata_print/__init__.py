"""
Strata Print - layer-based toolpath and G-code generation for FDM printers.

Main exports:
- Element types (Cube, Cylinder, Sphere, Cone, Torus, Ellipsoid, Line, Text,
  Composite) and element_from_dict for JSON models
- PrinterSettings: Machine, material and slicing configuration
- generate_composite_gcode: Slice a whole element tree to G-code
- generate_element_gcode: Slice a single primitive
- BisectorOffsetter, ShapelyOffsetter: Interchangeable shell offset backends
"""

from strata_print.geometry import (
    BisectorOffsetter,
    Bounds,
    Composite,
    Cone,
    Cube,
    Cylinder,
    Element,
    Ellipsoid,
    Line,
    PolygonOffsetter,
    ShapelyOffsetter,
    Sphere,
    Text,
    Torus,
    UnknownElement,
    element_bounds,
    element_from_dict,
    element_to_dict,
)
from strata_print.toolpath import (
    InfillPattern,
    PrintJob,
    PrinterSettings,
    SlicingError,
    SupportType,
    UnboundedElementError,
    gcode_stats,
    generate_composite_gcode,
    generate_element_gcode,
    load_settings,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Elements
    "Element",
    "Cube",
    "Cylinder",
    "Sphere",
    "Cone",
    "Torus",
    "Ellipsoid",
    "Line",
    "Text",
    "Composite",
    "UnknownElement",
    "element_from_dict",
    "element_to_dict",
    "Bounds",
    "element_bounds",
    # Settings
    "PrinterSettings",
    "InfillPattern",
    "SupportType",
    "load_settings",
    # Generation
    "PolygonOffsetter",
    "BisectorOffsetter",
    "ShapelyOffsetter",
    "PrintJob",
    "generate_composite_gcode",
    "generate_element_gcode",
    "gcode_stats",
    # Errors
    "SlicingError",
    "UnboundedElementError",
]
