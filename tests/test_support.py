"""
Unit tests for overhang detection, support planning and adhesion aids.

Tests verify:
- Region conversion to and from shapely
- Overhang detection against the layer below
- Top-down support planning for both support policies
- Brim loops and raft outline
"""

import numpy as np
import pytest

from strata_print.geometry.polygon import (
    circle_polygon,
    contains_points,
    geometry_extent,
    is_ccw,
    rectangle_polygon,
    signed_area,
)
from strata_print.toolpath.adhesion import brim_loops, raft_outline
from strata_print.toolpath.infill import MIN_LINE_SPACING
from strata_print.toolpath.settings import PrinterSettings, SupportType
from strata_print.toolpath.support import (
    detect_overhang,
    from_shapely,
    generate_support,
    plan_support,
    to_shapely,
)


def _disc(radius):
    return [circle_polygon((0.0, 0.0), radius)]


@pytest.fixture
def mushroom():
    """Thin stem (5 layers) under a wide cap (3 layers)."""
    return [_disc(2.0)] * 5 + [_disc(8.0)] * 3


@pytest.fixture
def shelf():
    """Wide base, thin pillar, then a wide slab resting on the pillar."""
    return [_disc(8.0)] * 2 + [_disc(2.0)] * 3 + [_disc(8.0)] * 2


# =============================================================================
# Region conversion
# =============================================================================


class TestShapelyConversion:
    def test_hole_is_subtracted(self, square_with_hole):
        assert to_shapely(square_with_hole).area == pytest.approx(400.0 - 36.0)

    def test_overlapping_outlines_union(self):
        a = rectangle_polygon((0.0, 0.0), 10.0, 10.0)
        b = rectangle_polygon((5.0, 0.0), 10.0, 10.0)
        assert to_shapely([a, b]).area == pytest.approx(150.0)

    def test_back_to_slice_geometry(self, square_with_hole):
        outer, hole = from_shapely(to_shapely(square_with_hole))
        assert is_ccw(outer)
        assert not is_ccw(hole)
        assert signed_area(outer) + signed_area(hole) == pytest.approx(364.0)


# =============================================================================
# Overhangs
# =============================================================================


class TestDetectOverhang:
    def test_first_layer_never_overhangs(self, settings):
        assert detect_overhang(_disc(8.0), None, settings) == []

    def test_wider_layer_overhangs(self, settings):
        overhang = detect_overhang(_disc(8.0), _disc(2.0), settings)

        assert overhang
        inside = contains_points(overhang, np.array([[5.0, 0.0], [0.0, 0.0], [2.1, 0.0]]))
        np.testing.assert_array_equal(inside, [True, False, False])

    def test_narrower_layer_is_supported(self, settings):
        assert detect_overhang(_disc(2.0), _disc(8.0), settings) == []

    def test_gentle_slope_within_angle(self, settings):
        """Growing by less than layer_height * tan(angle) is not an overhang."""
        assert detect_overhang(_disc(5.15), _disc(5.0), settings) == []


# =============================================================================
# Support planning
# =============================================================================


class TestPlanSupport:
    def test_none_plans_nothing(self, settings, mushroom):
        assert plan_support(mushroom, settings) == [[]] * len(mushroom)

    def test_mushroom_everywhere(self, settings, mushroom):
        supports = plan_support(mushroom, settings.with_overrides(support_type="everywhere"))

        assert len(supports) == len(mushroom)
        assert all(supports[j] for j in range(5))
        assert not any(supports[j] for j in range(5, 8))

        inside = contains_points(supports[0], np.array([[5.0, 0.0], [0.0, 0.0], [2.2, 0.0]]))
        np.testing.assert_array_equal(inside, [True, False, False])

    def test_mushroom_reaches_buildplate(self, settings, mushroom):
        supports = plan_support(
            mushroom, settings.with_overrides(support_type=SupportType.TOUCHING_BUILDPLATE)
        )
        assert supports[0]

    def test_shelf_everywhere_lands_on_model(self, settings, shelf):
        supports = plan_support(shelf, settings.with_overrides(support_type="everywhere"))

        assert [bool(s) for s in supports] == [False, False, True, True, True, False, False]

    def test_shelf_touching_buildplate(self, settings, shelf):
        supports = plan_support(shelf, settings.with_overrides(support_type="touching_buildplate"))
        assert not any(supports)

    def test_empty_print(self, settings):
        assert plan_support([], settings.with_overrides(support_type="everywhere")) == []


class TestGenerateSupport:
    def test_wrapped_in_markers(self, settings):
        ring = [circle_polygon((0.0, 0.0), 8.0), circle_polygon((0.0, 0.0), 3.0, clockwise=True)]
        result = generate_support(ring, 0.2, settings, 1.0)

        assert result.gcode.startswith("; Support\n")
        assert result.gcode.endswith("; End support\n")
        assert result.next_e > 1.0

    def test_empty_region(self, settings):
        assert generate_support([], 0.2, settings, 1.0).gcode == ""

    def test_zero_density(self, settings, square):
        result = generate_support([square], 0.2, settings.with_overrides(support_density=0), 1.0)
        assert result.gcode == ""

    def test_line_spacing_has_a_floor(self):
        """A hair-thin extrusion width still yields a bounded number of lines."""
        settings = PrinterSettings(extrusion_width=1e-4, support_density=100)
        square = rectangle_polygon((0.0, 0.0), 50.0, 50.0)

        result = generate_support([square], 0.2, settings, 0.0)

        extrusions = [line for line in result.gcode.splitlines() if line.startswith("G1 ")]
        assert 0 < len(extrusions) <= 50.0 / MIN_LINE_SPACING + 2


# =============================================================================
# Adhesion
# =============================================================================


class TestBrim:
    def test_loop_count_and_growth(self, square, settings):
        loops = brim_loops([square], settings.with_overrides(brim_width=1.2))

        assert len(loops) == 3
        for i, loop in enumerate(loops, start=1):
            assert is_ccw(loop)
            assert signed_area(loop) == pytest.approx((10.0 + 2 * 0.4 * i) ** 2)

    def test_holes_are_not_brimmed(self, square_with_hole, settings):
        loops = brim_loops(square_with_hole, settings.with_overrides(brim_width=0.8))
        assert len(loops) == 2
        assert all(is_ccw(loop) for loop in loops)

    def test_no_brim(self, square, settings):
        assert brim_loops([square], settings) == []


class TestRaft:
    def test_outline_covers_all_layers(self, square):
        wide = rectangle_polygon((10.0, 0.0), 4.0, 30.0)
        (outline,) = raft_outline([[square], [wide]], margin=3.0)
        assert geometry_extent([outline]) == pytest.approx((-8.0, -18.0, 15.0, 18.0))

    def test_empty_layers(self):
        assert raft_outline([[], []]) == []
