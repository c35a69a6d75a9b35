"""
Unit tests for model elements and their dict (JSON) boundary.

Tests verify:
- Element construction and parameter validation
- Parsing camelCase and snake_case dicts
- Unknown types are captured rather than rejected
- Serialization back to dicts
"""

import pytest

from strata_print.geometry.elements import (
    Composite,
    Cone,
    Cube,
    Cylinder,
    Ellipsoid,
    Line,
    Sphere,
    Text,
    Torus,
    UnknownElement,
    element_from_dict,
    element_to_dict,
)

# =============================================================================
# Construction
# =============================================================================


class TestConstruction:
    def test_cube_defaults(self):
        cube = Cube(width=10, depth=20, height=30)
        assert cube.center == (0.0, 0.0, 0.0)
        assert cube.rotation == 0.0
        assert cube.kind == "cube"

    def test_center_normalized_to_floats(self):
        sphere = Sphere(center=(1, 2, 3), radius=4)
        assert sphere.center == (1.0, 2.0, 3.0)
        assert (sphere.x, sphere.y, sphere.z) == (1.0, 2.0, 3.0)

    def test_validates_positive_sizes(self):
        with pytest.raises(ValueError, match="Cube width must be positive"):
            Cube(width=0, depth=1, height=1)
        with pytest.raises(ValueError, match="Sphere radius must be positive"):
            Sphere(radius=-1)
        with pytest.raises(ValueError, match="Torus tube_radius must be positive"):
            Torus(radius=10, tube_radius=0)

    def test_cone_top_radius(self):
        assert Cone(radius=5, height=10).top_radius == 0.0
        with pytest.raises(ValueError, match="top_radius must be non-negative"):
            Cone(radius=5, height=10, top_radius=-1)

    def test_center_must_be_3d(self):
        with pytest.raises(ValueError, match="center must be a 3D point"):
            Cylinder(center=(0, 0), radius=1, height=1)

    def test_composite_walk(self):
        inner = Composite(children=[Sphere(radius=1), Cube(width=1, depth=1, height=1)])
        outer = Composite(children=[inner, Cylinder(radius=1, height=1)])
        kinds = [leaf.kind for leaf in outer.walk()]
        assert kinds == ["sphere", "cube", "cylinder"]

    def test_composite_kind_validated(self):
        with pytest.raises(ValueError, match="group_kind must be one of"):
            Composite(group_kind="assembly")

    def test_text_placeholder(self):
        text = Text(center=(0, 0, 1), text="abc", size=10)
        cube = text.placeholder(layer_height=0.2)
        assert cube.width == pytest.approx(18.0)
        assert cube.depth == pytest.approx(10.0)
        assert cube.height == pytest.approx(1.0)

    def test_unknown_placeholder_uses_radius(self):
        unknown = UnknownElement(type_name="blob", params={"radius": 3, "x": 1})
        cube = unknown.placeholder()
        assert (cube.width, cube.depth, cube.height) == (6, 6, 6)
        assert cube.center == (1.0, 0.0, 0.0)

    def test_unknown_placeholder_default_size(self):
        cube = UnknownElement(type_name="mystery").placeholder()
        assert (cube.width, cube.depth, cube.height) == (10.0, 10.0, 10.0)


# =============================================================================
# Dict boundary
# =============================================================================


class TestElementFromDict:
    def test_cube(self):
        cube = element_from_dict(
            {"type": "cube", "id": "c1", "x": 1, "y": 2, "z": 3, "width": 4, "depth": 5, "height": 6}
        )
        assert isinstance(cube, Cube)
        assert cube.id == "c1"
        assert cube.center == (1.0, 2.0, 3.0)
        assert (cube.width, cube.depth, cube.height) == (4.0, 5.0, 6.0)

    def test_camel_case_keys(self):
        torus = element_from_dict({"type": "torus", "radius": 10, "tubeRadius": 3})
        assert isinstance(torus, Torus)
        assert torus.tube_radius == 3.0

        ellipsoid = element_from_dict({"type": "ellipsoid", "radiusX": 1, "radiusY": 2, "radiusZ": 3})
        assert isinstance(ellipsoid, Ellipsoid)
        assert (ellipsoid.radius_x, ellipsoid.radius_y, ellipsoid.radius_z) == (1.0, 2.0, 3.0)

    def test_snake_case_keys(self):
        cone = element_from_dict({"type": "cone", "radius": 5, "height": 10, "top_radius": 2})
        assert cone.top_radius == 2.0

    def test_type_is_case_insensitive(self):
        assert isinstance(element_from_dict({"type": "Sphere", "radius": 1}), Sphere)

    def test_nested_composite(self):
        data = {
            "type": "group",
            "elements": [
                {"type": "sphere", "radius": 1},
                {"type": "component", "children": [{"type": "cylinder", "radius": 1, "height": 2}]},
            ],
        }
        root = element_from_dict(data)
        assert isinstance(root, Composite)
        assert root.group_kind == "group"
        assert isinstance(root.children[1], Composite)
        assert isinstance(root.children[1].children[0], Cylinder)

    def test_line_endpoints(self):
        line = element_from_dict({"type": "line", "x1": 0, "y1": 0, "x2": 10, "y2": 0, "z": 0.2})
        assert isinstance(line, Line)
        assert line.length == pytest.approx(10.0)
        assert line.stroke_width == pytest.approx(0.2)

    def test_line_from_length(self):
        line = element_from_dict({"type": "line", "x": 5, "y": 1, "length": 4, "strokeWidth": 0.5})
        assert line.start == (5.0, 1.0)
        assert line.end == (9.0, 1.0)
        assert line.stroke_width == 0.5

    def test_text(self):
        text = element_from_dict({"type": "text", "text": "Hi", "size": 5})
        assert isinstance(text, Text)
        assert text.depth is None

    def test_unknown_type_captured(self):
        element = element_from_dict({"type": "mystery", "width": 12})
        assert isinstance(element, UnknownElement)
        assert element.type_name == "mystery"
        assert element.params["width"] == 12

    def test_missing_required_field(self):
        with pytest.raises(ValueError, match="cube element is missing required field 'height'"):
            element_from_dict({"type": "cube", "width": 1, "depth": 1})

    def test_non_numeric_field(self):
        with pytest.raises(ValueError, match="must be numeric"):
            element_from_dict({"type": "sphere", "radius": "big"})

    def test_not_a_mapping(self):
        with pytest.raises(ValueError, match="must be a mapping"):
            element_from_dict(["cube"])


class TestElementToDict:
    def test_round_trip_composite(self):
        data = {
            "type": "composite",
            "elements": [
                {"type": "cube", "x": 0.0, "y": 0.0, "z": 5.0, "width": 10.0, "depth": 10.0, "height": 10.0},
                {"type": "torus", "x": 0.0, "y": 0.0, "z": 12.0, "radius": 8.0, "tubeRadius": 2.0},
            ],
        }
        assert element_to_dict(element_from_dict(data)) == data

    def test_unknown_returns_original(self):
        data = {"type": "mystery", "width": 3}
        assert element_to_dict(element_from_dict(data)) == data
