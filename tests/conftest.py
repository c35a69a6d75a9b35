"""Shared fixtures for the strata-print test suite."""

import re

import numpy as np
import pytest

from strata_print.geometry.polygon import circle_polygon, rectangle_polygon
from strata_print.toolpath.settings import PrinterSettings

_XY = re.compile(r"X(-?\d+\.\d+) Y(-?\d+\.\d+)")


@pytest.fixture
def settings():
    """Default printer settings."""
    return PrinterSettings()


@pytest.fixture
def square():
    """10 mm counter-clockwise square centered on the origin."""
    return rectangle_polygon((0.0, 0.0), 10.0, 10.0)


@pytest.fixture
def square_with_hole():
    """20 mm square with a 6 mm clockwise square hole."""
    outer = rectangle_polygon((0.0, 0.0), 20.0, 20.0)
    hole = rectangle_polygon((0.0, 0.0), 6.0, 6.0)[::-1].copy()
    return [outer, hole]


@pytest.fixture
def torus_section():
    """Equatorial slice of a torus with major radius 10 and tube radius 3."""
    return [
        circle_polygon((0.0, 0.0), 13.0, 36),
        circle_polygon((0.0, 0.0), 7.0, 36, clockwise=True),
    ]


def xy_moves(gcode: str, command: str = "G1") -> np.ndarray:
    """(N, 2) XY targets of every move with the given command."""
    points = []
    for line in gcode.splitlines():
        if line.startswith(command + " "):
            match = _XY.search(line)
            if match:
                points.append((float(match.group(1)), float(match.group(2))))
    return np.array(points).reshape(-1, 2)


def layer_blocks(gcode: str) -> list[str]:
    """Split a program into the text of each ``; LAYER`` block."""
    blocks = re.split(r"^; LAYER ", gcode, flags=re.MULTILINE)[1:]
    return ["; LAYER " + block for block in blocks]


def shell_block(gcode: str, shell: int = 1) -> str:
    """Text of the first ``; Shell n`` block up to the next comment line."""
    lines = gcode.splitlines()
    start = lines.index(f"; Shell {shell}")
    block = []
    for line in lines[start + 1 :]:
        if line.startswith(";"):
            break
        block.append(line)
    return "\n".join(block)


def path_length(block: str) -> float:
    """Length of the path traced by the moves in a block (travel start included)."""
    pts = []
    for line in block.splitlines():
        match = _XY.search(line)
        if match:
            pts.append((float(match.group(1)), float(match.group(2))))
    pts = np.array(pts)
    return float(np.sum(np.linalg.norm(np.diff(pts, axis=0), axis=1)))
