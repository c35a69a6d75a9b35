"""
Unit tests for analytic primitive cross-sections.

Tests verify:
- Slice outline per primitive family
- Half-open height ranges and degenerate slices
- Elements without a cross-section are rejected
- Per-element shells, infill and line strokes
"""

import math

import numpy as np
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
)
from strata_print.geometry.polygon import geometry_extent, is_ccw
from strata_print.toolpath.motion import calculate_extrusion
from strata_print.toolpath.slicers import SliceResult, SlicingError, slice_element, slice_geometry


def _radii(polygon, center=(0.0, 0.0)):
    return np.linalg.norm(polygon - np.asarray(center), axis=1)


# =============================================================================
# Cross-sections
# =============================================================================


class TestSliceGeometry:
    def test_cube_range_is_half_open(self, settings):
        cube = Cube(center=(0, 0, 5), width=10, depth=10, height=10)

        assert slice_geometry(cube, 0.0, settings) == []
        assert len(slice_geometry(cube, 0.2, settings)) == 1
        assert len(slice_geometry(cube, 10.0, settings)) == 1
        assert slice_geometry(cube, 10.2, settings) == []

    def test_cube_outline(self, settings):
        cube = Cube(center=(2, 3, 5), width=10, depth=4, height=10)
        (outline,) = slice_geometry(cube, 5.0, settings)
        assert geometry_extent([outline]) == pytest.approx((-3, 1, 7, 5))
        assert is_ccw(outline)

    def test_rotated_cube(self, settings):
        cube = Cube(center=(0, 0, 5), width=10, depth=10, height=10, rotation=45)
        (outline,) = slice_geometry(cube, 5.0, settings)
        half = 5 * math.sqrt(2)
        assert geometry_extent([outline]) == pytest.approx((-half, -half, half, half))

    def test_cylinder(self, settings):
        cylinder = Cylinder(center=(1, 1, 5), radius=4, height=10)
        (circle,) = slice_geometry(cylinder, 3.0, settings)
        assert circle.shape == (settings.circle_segments, 2)
        np.testing.assert_allclose(_radii(circle, (1, 1)), 4.0)

    def test_sphere_radius_follows_height(self, settings):
        sphere = Sphere(center=(0, 0, 5), radius=5)

        (equator,) = slice_geometry(sphere, 5.0, settings)
        np.testing.assert_allclose(_radii(equator), 5.0)

        (upper,) = slice_geometry(sphere, 8.0, settings)
        np.testing.assert_allclose(_radii(upper), 4.0)

    def test_sphere_poles(self, settings):
        """The top pole slice is empty; the first layer above the bed is not."""
        sphere = Sphere(center=(0, 0, 5), radius=5)

        assert slice_geometry(sphere, 10.0, settings) == []
        (first,) = slice_geometry(sphere, 0.2, settings)
        np.testing.assert_allclose(_radii(first), math.sqrt(25 - 4.8**2))

    def test_cone_midheight(self, settings):
        cone = Cone(center=(0, 0, 10), radius=10, height=20)
        (circle,) = slice_geometry(cone, 10.0, settings)
        np.testing.assert_allclose(_radii(circle), 5.0)

    def test_frustum(self, settings):
        cone = Cone(center=(0, 0, 5), radius=2, top_radius=6, height=10)
        (circle,) = slice_geometry(cone, 5.0, settings)
        np.testing.assert_allclose(_radii(circle), 4.0)

    def test_torus_equator(self, settings):
        torus = Torus(center=(0, 0, 0), radius=10, tube_radius=3)
        outer, inner = slice_geometry(torus, 0.0, settings)

        np.testing.assert_allclose(_radii(outer), 13.0)
        np.testing.assert_allclose(_radii(inner), 7.0)
        assert is_ccw(outer)
        assert not is_ccw(inner)

    def test_torus_outside_tube(self, settings):
        torus = Torus(center=(0, 0, 0), radius=10, tube_radius=3)
        assert slice_geometry(torus, 3.0, settings) == []

    def test_fat_torus_has_no_hole(self, settings):
        torus = Torus(center=(0, 0, 0), radius=2, tube_radius=3)
        assert len(slice_geometry(torus, 0.0, settings)) == 1

    def test_ellipsoid(self, settings):
        ellipsoid = Ellipsoid(center=(0, 0, 4), radius_x=6, radius_y=3, radius_z=4)
        (outline,) = slice_geometry(ellipsoid, 4.0, settings)
        min_x, min_y, max_x, max_y = geometry_extent([outline])
        assert max_x == pytest.approx(6.0)
        assert max_y == pytest.approx(3.0)

    def test_rotated_ellipsoid(self, settings):
        ellipsoid = Ellipsoid(center=(0, 0, 4), radius_x=6, radius_y=3, radius_z=4, rotation=90)
        (outline,) = slice_geometry(ellipsoid, 4.0, settings)
        min_x, min_y, max_x, max_y = geometry_extent([outline])
        assert max_x == pytest.approx(3.0)
        assert max_y == pytest.approx(6.0)

    def test_too_small_slices_are_empty(self, settings):
        """Radii at or below half an extrusion width produce nothing."""
        assert slice_geometry(Cylinder(center=(0, 0, 5), radius=0.2, height=10), 1.0, settings) == []
        assert slice_geometry(Sphere(center=(0, 0, 5), radius=5), 9.999, settings) == []
        assert slice_geometry(Cube(center=(0, 0, 5), width=0.3, depth=10, height=10), 1.0, settings) == []

    def test_line_has_no_area(self, settings):
        assert slice_geometry(Line(start=(0, 0), end=(1, 0)), 0.0, settings) == []

    @pytest.mark.parametrize(
        "element",
        [
            Text(text="hi"),
            Composite(children=[Sphere(radius=1)]),
            UnknownElement(type_name="mystery"),
        ],
    )
    def test_no_cross_section(self, element, settings):
        with pytest.raises(SlicingError, match="no analytic cross-section"):
            slice_geometry(element, 0.0, settings)


# =============================================================================
# Per-element toolpaths
# =============================================================================


class TestSliceElement:
    def test_cube_layer(self, settings):
        cube = Cube(center=(0, 0, 5), width=10, depth=10, height=10)
        result = slice_element(cube, settings, 0.2, 1.0)

        assert isinstance(result, SliceResult)
        assert result.gcode.startswith("; cube\n")
        assert "; Shell 1\n" in result.gcode
        assert "; Shell 2\n" in result.gcode
        assert "; Infill (lines)\n" in result.gcode
        assert result.next_e > 1.0
        assert len(result.geometry) == 1

    def test_label_includes_id(self, settings):
        cube = Cube(id="base", center=(0, 0, 5), width=10, depth=10, height=10)
        assert slice_element(cube, settings, 0.2, 0.0).gcode.startswith("; cube base\n")

    def test_empty_slice_keeps_e(self, settings):
        cube = Cube(center=(0, 0, 5), width=10, depth=10, height=10)
        assert slice_element(cube, settings, 20.0, 3.0) == SliceResult("", 3.0, [])

    def test_print_z_overrides_move_height(self, settings):
        cube = Cube(center=(0, 0, 5), width=10, depth=10, height=10)
        result = slice_element(cube, settings, 0.2, 0.0, print_z=0.8)
        assert "Z0.800" in result.gcode
        assert "Z0.200" not in result.gcode

    def test_no_infill_at_zero_density(self, settings):
        cube = Cube(center=(0, 0, 5), width=10, depth=10, height=10)
        result = slice_element(cube, settings.with_overrides(infill_density=0), 0.2, 0.0)
        assert "; Infill" not in result.gcode

    def test_line_stroke(self, settings):
        line = Line(start=(0, 0), end=(10, 0), z=0.2, stroke_width=0.5)
        result = slice_element(line, settings, 0.2, 0.0)

        assert result.gcode.startswith("; Line\n")
        assert result.next_e == pytest.approx(calculate_extrusion(10.0, 0.2, 0.5, 1.75))
        assert result.geometry == []

    def test_line_outside_layer(self, settings):
        line = Line(start=(0, 0), end=(10, 0), z=0.2)
        assert slice_element(line, settings, 0.4, 2.0) == SliceResult("", 2.0, [])
