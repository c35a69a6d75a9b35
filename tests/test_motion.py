"""
Unit tests for motion and extrusion primitives.

Tests verify:
- Extrusion formula properties
- G-code move formatting
- Closed loops, open paths and arcs thread E correctly
"""

import math

import numpy as np
import pytest
from conftest import xy_moves

from strata_print.toolpath.motion import (
    MoveResult,
    arc_loop,
    calculate_extrusion,
    move_to,
    polygon_layer,
    polyline_path,
    travel_to,
)

# =============================================================================
# Extrusion formula
# =============================================================================


class TestCalculateExtrusion:
    def test_matches_volume_formula(self):
        """Bead volume equals filament volume."""
        e = calculate_extrusion(10.0, 0.2, 0.4, 1.75)
        expected = (0.4 * 0.2) / (math.pi * (1.75 / 2) ** 2) * 10.0
        assert e == pytest.approx(expected)

    def test_linear_in_length(self):
        """Doubling the length doubles the extrusion."""
        single = calculate_extrusion(7.5, 0.2, 0.4, 1.75)
        double = calculate_extrusion(15.0, 0.2, 0.4, 1.75)
        assert double == pytest.approx(2 * single)

    def test_zero_length_is_zero(self):
        assert calculate_extrusion(0.0, 0.2, 0.4, 1.75) == 0.0

    @pytest.mark.parametrize(
        "args",
        [
            (-1.0, 0.2, 0.4, 1.75),
            (10.0, 0.0, 0.4, 1.75),
            (10.0, 0.2, -0.4, 1.75),
            (10.0, 0.2, 0.4, 0.0),
        ],
    )
    def test_non_positive_inputs_yield_zero(self, args):
        assert calculate_extrusion(*args) == 0.0


# =============================================================================
# Move formatting
# =============================================================================


class TestMoveFormatting:
    def test_move_to_precision(self):
        """Coordinates use 3 decimals, E uses 5 and F is mm/min."""
        line = move_to(1, 2.5, 0.2, 0.123456, 50)
        assert line == "G1 X1.000 Y2.500 Z0.200 E0.12346 F3000\n"

    def test_move_to_omits_missing_words(self):
        assert move_to(None, None, 5.0, speed=10) == "G1 Z5.000 F600\n"

    def test_travel_is_g0_without_e(self):
        line = travel_to(3, 4, 0.4, 150)
        assert line.startswith("G0 X3.000 Y4.000 Z0.400")
        assert "E" not in line
        assert "F9000" in line

    def test_comment_appended(self):
        assert move_to(0, 0, 0, comment="prime").endswith(" ; prime\n")


# =============================================================================
# Paths
# =============================================================================


class TestPolygonLayer:
    def test_square_loop(self, square, settings):
        """A closed loop travels to the first vertex and extrudes four edges."""
        result = polygon_layer(square, 0.2, settings, 1.0)

        assert isinstance(result, MoveResult)
        lines = result.gcode.splitlines()
        assert lines[0].startswith("G0 X-5.000 Y-5.000")
        assert len(xy_moves(result.gcode, "G1")) == 4
        np.testing.assert_allclose(xy_moves(result.gcode, "G1")[-1], [-5.0, -5.0])

        expected = calculate_extrusion(40.0, 0.2, 0.4, 1.75)
        assert result.next_e == pytest.approx(1.0 + expected)

    def test_skips_zero_length_edges(self, square, settings):
        doubled = np.vstack([square[:2], square[1:2], square[2:]])
        result = polygon_layer(doubled, 0.2, settings, 0.0)
        assert len(xy_moves(result.gcode, "G1")) == 4

    def test_too_few_vertices(self, settings):
        result = polygon_layer(np.array([[0.0, 0.0], [1.0, 0.0]]), 0.2, settings, 3.0)
        assert result == MoveResult("", 3.0)

    def test_e_values_increase(self, square, settings):
        result = polygon_layer(square, 0.2, settings, 0.0)
        e_values = [float(w[1:]) for line in result.gcode.splitlines() for w in line.split() if w.startswith("E")]
        assert e_values == sorted(e_values)
        assert all(b > a for a, b in zip(e_values, e_values[1:]))


class TestPolylinePath:
    def test_open_path(self, settings):
        pts = np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 5.0]])
        result = polyline_path(pts, 0.2, settings, 0.0)
        assert result.gcode.startswith("G0 X0.000 Y0.000")
        assert len(xy_moves(result.gcode, "G1")) == 2
        assert result.next_e == pytest.approx(calculate_extrusion(15.0, 0.2, 0.4, 1.75))

    def test_without_travel(self, settings):
        pts = np.array([[0.0, 0.0], [1.0, 0.0]])
        result = polyline_path(pts, 0.2, settings, 0.0, travel=False)
        assert result.gcode.startswith("G1")

    def test_degenerate_path(self, settings):
        pts = np.array([[1.0, 1.0], [1.0, 1.0]])
        assert polyline_path(pts, 0.2, settings, 2.0) == MoveResult("", 2.0)


class TestArcLoop:
    def test_full_circle(self, settings):
        result = arc_loop((1.0, 2.0), 5.0, 0.2, settings, 0.0)
        lines = result.gcode.splitlines()
        assert lines[0].startswith("G0 X6.000 Y2.000")
        assert lines[1].startswith("G3 X6.000 Y2.000 I-5.000 J0.000")
        expected = calculate_extrusion(2 * math.pi * 5.0, 0.2, 0.4, 1.75)
        assert result.next_e == pytest.approx(expected)

    def test_zero_radius(self, settings):
        assert arc_loop((0.0, 0.0), 0.0, 0.2, settings, 1.0) == MoveResult("", 1.0)
