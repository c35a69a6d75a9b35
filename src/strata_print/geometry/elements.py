"""
Parametric solid elements that make up a printable model tree.

The element tree is a closed set of dataclasses:

Classes:
    Element: Base class for every node (carries an optional id)
    Solid: Base class for primitives placed by a center point
    Cube, Cylinder, Sphere, Cone, Torus, Ellipsoid: Sliceable solids
    Text: Text block (not directly printable)
    Line: Zero-area stroke extruded at a single height
    Composite: Structural node owning an ordered list of children
    UnknownElement: Unrecognized input captured at the dict boundary

Heights are measured along Z and every solid is centered on ``center``
(a cone's base sits at ``center.z - height / 2``). ``rotation`` is in degrees
about the Z axis and only changes the cross-section of cubes and ellipsoids.

Example:
    >>> from strata_print.geometry import Composite, Cube, Sphere
    >>> model = Composite(children=[
    ...     Cube(center=(0, 0, 5), width=20, depth=20, height=10),
    ...     Sphere(center=(0, 0, 15), radius=5),
    ... ])
    >>> element_to_dict(model)["type"]
    'composite'
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Literal

import numpy as np
from numpy.typing import NDArray

BoxCorners = tuple[NDArray[np.floating], NDArray[np.floating]]

COMPOSITE_KINDS = ("composite", "component", "group")


@dataclass(kw_only=True)
class Element(ABC):
    """Base class for all model tree nodes."""

    kind: ClassVar[str] = "element"

    id: str | None = None


@dataclass(kw_only=True)
class Solid(Element):
    """Base class for primitives positioned by their center point.

    All solids must implement ``bounding_box`` returning the closed-form
    axis-aligned (min_corner, max_corner) pair.
    """

    center: tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: float = 0.0

    def __post_init__(self) -> None:
        center = tuple(float(c) for c in self.center)
        if len(center) != 3:
            raise ValueError(f"center must be a 3D point, got {self.center!r}")
        self.center = center
        self.rotation = float(self.rotation)
        self._validate()

    def _validate(self) -> None:
        pass

    @property
    def x(self) -> float:
        return self.center[0]

    @property
    def y(self) -> float:
        return self.center[1]

    @property
    def z(self) -> float:
        return self.center[2]

    @property
    @abstractmethod
    def bounding_box(self) -> BoxCorners:
        """Return (min_corner, max_corner) axis-aligned bounding box."""

    def _box(self, half_x: float, half_y: float, half_z: float) -> BoxCorners:
        c = np.array(self.center, dtype=np.float64)
        h = np.array([half_x, half_y, half_z], dtype=np.float64)
        return c - h, c + h


def _require_positive(owner: str, **values: float) -> None:
    for name, value in values.items():
        if not value > 0:
            raise ValueError(f"{owner} {name} must be positive, got {value}")


@dataclass(kw_only=True)
class Cube(Solid):
    """Rectangular block: width along X, depth along Y, height along Z."""

    kind: ClassVar[str] = "cube"

    width: float
    depth: float
    height: float

    def _validate(self) -> None:
        _require_positive("Cube", width=self.width, depth=self.depth, height=self.height)

    @property
    def bounding_box(self) -> BoxCorners:
        theta = math.radians(self.rotation)
        c, s = abs(math.cos(theta)), abs(math.sin(theta))
        half_x = c * self.width / 2 + s * self.depth / 2
        half_y = s * self.width / 2 + c * self.depth / 2
        return self._box(half_x, half_y, self.height / 2)


@dataclass(kw_only=True)
class Cylinder(Solid):
    """Vertical cylinder."""

    kind: ClassVar[str] = "cylinder"

    radius: float
    height: float

    def _validate(self) -> None:
        _require_positive("Cylinder", radius=self.radius, height=self.height)

    @property
    def bounding_box(self) -> BoxCorners:
        return self._box(self.radius, self.radius, self.height / 2)


@dataclass(kw_only=True)
class Sphere(Solid):
    kind: ClassVar[str] = "sphere"

    radius: float

    def _validate(self) -> None:
        _require_positive("Sphere", radius=self.radius)

    @property
    def bounding_box(self) -> BoxCorners:
        return self._box(self.radius, self.radius, self.radius)


@dataclass(kw_only=True)
class Cone(Solid):
    """Vertical cone or frustum with its base at the bottom.

    Attributes:
        radius: Base radius at ``center.z - height / 2``
        height: Distance from base to top
        top_radius: Radius at the top (0 for a pointed cone)
    """

    kind: ClassVar[str] = "cone"

    radius: float
    height: float
    top_radius: float = 0.0

    def _validate(self) -> None:
        _require_positive("Cone", radius=self.radius, height=self.height)
        if self.top_radius < 0:
            raise ValueError(f"Cone top_radius must be non-negative, got {self.top_radius}")

    @property
    def base_z(self) -> float:
        return self.z - self.height / 2

    @property
    def bounding_box(self) -> BoxCorners:
        r = max(self.radius, self.top_radius)
        return self._box(r, r, self.height / 2)


@dataclass(kw_only=True)
class Torus(Solid):
    """Ring torus lying flat in the XY plane.

    Attributes:
        radius: Major radius (center of tube to center of torus)
        tube_radius: Minor radius of the tube
    """

    kind: ClassVar[str] = "torus"

    radius: float
    tube_radius: float

    def _validate(self) -> None:
        _require_positive("Torus", radius=self.radius, tube_radius=self.tube_radius)

    @property
    def bounding_box(self) -> BoxCorners:
        outer = self.radius + self.tube_radius
        return self._box(outer, outer, self.tube_radius)


@dataclass(kw_only=True)
class Ellipsoid(Solid):
    kind: ClassVar[str] = "ellipsoid"

    radius_x: float
    radius_y: float
    radius_z: float

    def _validate(self) -> None:
        _require_positive(
            "Ellipsoid",
            radius_x=self.radius_x,
            radius_y=self.radius_y,
            radius_z=self.radius_z,
        )

    @property
    def bounding_box(self) -> BoxCorners:
        theta = math.radians(self.rotation)
        c, s = math.cos(theta), math.sin(theta)
        half_x = math.hypot(self.radius_x * c, self.radius_y * s)
        half_y = math.hypot(self.radius_x * s, self.radius_y * c)
        return self._box(half_x, half_y, self.radius_z)


@dataclass(kw_only=True)
class Text(Solid):
    """Text block. Must be converted to outlines before printing."""

    kind: ClassVar[str] = "text"

    text: str = ""
    size: float = 10.0
    depth: float | None = None

    @property
    def footprint(self) -> tuple[float, float]:
        """Rough (width, depth) estimate of the rendered text."""
        return max(len(self.text), 1) * self.size * 0.6, self.size

    @property
    def thickness(self) -> float:
        return self.depth if self.depth else self.size

    @property
    def bounding_box(self) -> BoxCorners:
        width, depth = self.footprint
        return self._box(width / 2, depth / 2, self.thickness / 2)

    def placeholder(self, layer_height: float) -> Cube:
        """Bounding-box cube printed in place of the text."""
        width, depth = self.footprint
        height = self.depth if self.depth else layer_height * 5
        return Cube(id=self.id, center=self.center, width=width, depth=depth, height=height)


@dataclass(kw_only=True)
class Line(Element):
    """Straight stroke extruded at a single height ``z``."""

    kind: ClassVar[str] = "line"

    start: tuple[float, float]
    end: tuple[float, float]
    z: float = 0.0
    stroke_width: float = 0.2

    def __post_init__(self) -> None:
        self.start = (float(self.start[0]), float(self.start[1]))
        self.end = (float(self.end[0]), float(self.end[1]))
        self.z = float(self.z)
        _require_positive("Line", stroke_width=self.stroke_width)

    @property
    def length(self) -> float:
        return math.hypot(self.end[0] - self.start[0], self.end[1] - self.start[1])

    @property
    def bounding_box(self) -> BoxCorners:
        half = self.stroke_width / 2
        min_corner = np.array(
            [min(self.start[0], self.end[0]) - half, min(self.start[1], self.end[1]) - half, self.z - half]
        )
        max_corner = np.array(
            [max(self.start[0], self.end[0]) + half, max(self.start[1], self.end[1]) + half, self.z + half]
        )
        return min_corner, max_corner


@dataclass(kw_only=True)
class Composite(Element):
    """Structural node that exclusively owns an ordered list of children."""

    kind: ClassVar[str] = "composite"

    children: list[Element] = field(default_factory=list)
    group_kind: Literal["composite", "component", "group"] = "composite"

    def __post_init__(self) -> None:
        if self.group_kind not in COMPOSITE_KINDS:
            raise ValueError(
                f"group_kind must be one of {COMPOSITE_KINDS}, got '{self.group_kind}'"
            )
        self.children = list(self.children)

    def walk(self):
        """Yield every descendant leaf in depth-first order."""
        for child in self.children:
            if isinstance(child, Composite):
                yield from child.walk()
            else:
                yield child


@dataclass(kw_only=True)
class UnknownElement(Element):
    """Element whose ``type`` was not recognized when parsing input."""

    kind: ClassVar[str] = "unknown"

    type_name: str
    params: dict[str, Any] = field(default_factory=dict)

    def placeholder(self) -> Cube:
        """Bounding-box cube estimated from whatever size fields are present."""
        p = self.params
        radius = p.get("radius")
        diameter = 2 * radius if radius else None
        width = p.get("width") or diameter or 10.0
        depth = p.get("depth") or diameter or 10.0
        height = p.get("height") or diameter or 10.0
        center = (float(p.get("x", 0.0)), float(p.get("y", 0.0)), float(p.get("z", 0.0)))
        return Cube(id=self.id, center=center, width=width, depth=depth, height=height)


# === Dict (JSON) boundary ===

_CAMEL_TO_SNAKE = {
    "tubeRadius": "tube_radius",
    "topRadius": "top_radius",
    "radiusX": "radius_x",
    "radiusY": "radius_y",
    "radiusZ": "radius_z",
    "strokeWidth": "stroke_width",
}

_MISSING = object()


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    return {_CAMEL_TO_SNAKE.get(key, key): value for key, value in data.items()}


def _number(data: dict[str, Any], key: str, type_name: str, default: Any = _MISSING) -> float:
    value = data.get(key)
    if value is None:
        if default is _MISSING:
            raise ValueError(f"{type_name} element is missing required field '{key}'")
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as err:
        raise ValueError(f"{type_name} field '{key}' must be numeric, got {value!r}") from err


def element_from_dict(data: dict[str, Any]) -> Element:
    """Build an element tree from its JSON-style dict form.

    Unrecognized ``type`` values become :class:`UnknownElement` so callers can
    decide how to degrade; malformed known elements raise ``ValueError``.

    Args:
        data: Dict with a ``type`` key plus that type's fields. Both the
            camelCase keys written by the modeling app and snake_case keys
            are accepted.

    Returns:
        The root element
    """
    if not isinstance(data, dict):
        raise ValueError(f"Element must be a mapping, got {type(data).__name__}")

    d = _normalize_keys(data)
    type_name = str(d.get("type", "")).lower()
    ident = d.get("id")

    if type_name in COMPOSITE_KINDS:
        raw_children = d.get("elements", d.get("children")) or []
        return Composite(
            id=ident,
            group_kind=type_name,
            children=[element_from_dict(child) for child in raw_children],
        )

    if type_name == "line":
        x = _number(d, "x", type_name, 0.0)
        y = _number(d, "y", type_name, 0.0)
        x1 = _number(d, "x1", type_name, x)
        y1 = _number(d, "y1", type_name, y)
        x2 = _number(d, "x2", type_name, x + _number(d, "length", type_name, 10.0))
        y2 = _number(d, "y2", type_name, y)
        return Line(
            id=ident,
            start=(x1, y1),
            end=(x2, y2),
            z=_number(d, "z", type_name, 0.0),
            stroke_width=_number(d, "stroke_width", type_name, 0.2),
        )

    center = (
        _number(d, "x", type_name, 0.0),
        _number(d, "y", type_name, 0.0),
        _number(d, "z", type_name, 0.0),
    )
    common = {"id": ident, "center": center, "rotation": _number(d, "rotation", type_name, 0.0)}

    if type_name == "cube":
        return Cube(
            **common,
            width=_number(d, "width", type_name),
            depth=_number(d, "depth", type_name),
            height=_number(d, "height", type_name),
        )
    if type_name == "cylinder":
        return Cylinder(
            **common, radius=_number(d, "radius", type_name), height=_number(d, "height", type_name)
        )
    if type_name == "sphere":
        return Sphere(**common, radius=_number(d, "radius", type_name))
    if type_name == "cone":
        return Cone(
            **common,
            radius=_number(d, "radius", type_name),
            height=_number(d, "height", type_name),
            top_radius=_number(d, "top_radius", type_name, 0.0),
        )
    if type_name == "torus":
        return Torus(
            **common,
            radius=_number(d, "radius", type_name),
            tube_radius=_number(d, "tube_radius", type_name),
        )
    if type_name == "ellipsoid":
        return Ellipsoid(
            **common,
            radius_x=_number(d, "radius_x", type_name),
            radius_y=_number(d, "radius_y", type_name),
            radius_z=_number(d, "radius_z", type_name),
        )
    if type_name in ("text", "text3d"):
        depth = d.get("depth")
        return Text(
            **common,
            text=str(d.get("text", "")),
            size=_number(d, "size", type_name, 10.0),
            depth=float(depth) if depth else None,
        )

    return UnknownElement(id=ident, type_name=type_name or "<missing>", params=dict(data))


def element_to_dict(element: Element) -> dict[str, Any]:
    """Serialize an element tree back to its camelCase dict form."""
    out: dict[str, Any] = {"type": element.kind}
    if element.id is not None:
        out["id"] = element.id

    if isinstance(element, Composite):
        out["type"] = element.group_kind
        out["elements"] = [element_to_dict(child) for child in element.children]
        return out
    if isinstance(element, UnknownElement):
        return dict(element.params)
    if isinstance(element, Line):
        out.update(
            x1=element.start[0],
            y1=element.start[1],
            x2=element.end[0],
            y2=element.end[1],
            z=element.z,
            strokeWidth=element.stroke_width,
        )
        return out

    assert isinstance(element, Solid)
    out.update(x=element.x, y=element.y, z=element.z)
    if element.rotation:
        out["rotation"] = element.rotation
    if isinstance(element, Cube):
        out.update(width=element.width, depth=element.depth, height=element.height)
    elif isinstance(element, Cylinder):
        out.update(radius=element.radius, height=element.height)
    elif isinstance(element, Sphere):
        out.update(radius=element.radius)
    elif isinstance(element, Cone):
        out.update(radius=element.radius, height=element.height)
        if element.top_radius:
            out["topRadius"] = element.top_radius
    elif isinstance(element, Torus):
        out.update(radius=element.radius, tubeRadius=element.tube_radius)
    elif isinstance(element, Ellipsoid):
        out.update(radiusX=element.radius_x, radiusY=element.radius_y, radiusZ=element.radius_z)
    elif isinstance(element, Text):
        out.update(text=element.text, size=element.size)
        if element.depth:
            out["depth"] = element.depth
    return out
