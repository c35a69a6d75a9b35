"""Model elements and planar geometry for slicing."""

from strata_print.geometry.bounds import Bounds, element_bounds
from strata_print.geometry.clipping import clip_polyline, scanline_segments
from strata_print.geometry.elements import (
    Composite,
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
    UnknownElement,
    element_from_dict,
    element_to_dict,
)
from strata_print.geometry.offset import (
    BisectorOffsetter,
    PolygonOffsetter,
    ShapelyOffsetter,
)
from strata_print.geometry.paths import ConcentricRings, SpiralPath
from strata_print.geometry.polygon import (
    Point2D,
    Point3D,
    Polygon,
    SliceGeometry,
    circle_polygon,
    contains_points,
    ellipse_polygon,
    perimeter_length,
    rectangle_polygon,
    signed_area,
)

__all__ = [
    # Elements
    "Element",
    "Solid",
    "Cube",
    "Cylinder",
    "Sphere",
    "Cone",
    "Torus",
    "Ellipsoid",
    "Text",
    "Line",
    "Composite",
    "UnknownElement",
    "element_from_dict",
    "element_to_dict",
    # Bounds
    "Bounds",
    "element_bounds",
    # Polygons
    "Point2D",
    "Point3D",
    "Polygon",
    "SliceGeometry",
    "circle_polygon",
    "ellipse_polygon",
    "rectangle_polygon",
    "signed_area",
    "perimeter_length",
    "contains_points",
    # Offsetting and clipping
    "PolygonOffsetter",
    "BisectorOffsetter",
    "ShapelyOffsetter",
    "scanline_segments",
    "clip_polyline",
    # Paths
    "SpiralPath",
    "ConcentricRings",
]
