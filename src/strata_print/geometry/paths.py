"""
Center-based fill paths for round cross-sections.

Classes:
    SpiralPath: Archimedean spiral with constant spacing between turns
    ConcentricRings: Nested circles stepped inward by a fixed spacing
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from strata_print.geometry.polygon import circle_polygon


@dataclass
class SpiralPath:
    """Archimedean spiral ``r = inner_radius + pitch * theta / 2pi``.

    Consecutive turns are exactly ``pitch`` apart, so the spiral covers a disc
    with uniform line spacing in a single continuous pass from the center
    outward.

    Attributes:
        center: (x, y) center point of spiral
        inner_radius: Starting radius (0 starts at the center)
        outer_radius: Ending radius
        pitch: Radial distance between consecutive turns

    Example:
        >>> spiral = SpiralPath(center=(0, 0), inner_radius=0, outer_radius=10, pitch=2)
        >>> spiral.turns
        5.0
        >>> points = spiral.sample_points(max_chord=0.5)
    """

    center: NDArray[np.floating] | tuple[float, float]
    inner_radius: float
    outer_radius: float
    pitch: float

    def __post_init__(self) -> None:
        """Validate and normalize parameters."""
        self.center = np.asarray(self.center, dtype=np.float64)
        if self.center.shape != (2,):
            raise ValueError(f"center must be 2D point, got shape {self.center.shape}")

        if self.inner_radius < 0:
            raise ValueError(f"inner_radius must be non-negative, got {self.inner_radius}")
        if self.outer_radius <= self.inner_radius:
            raise ValueError(
                f"outer_radius ({self.outer_radius}) must be > inner_radius ({self.inner_radius})"
            )
        if self.pitch <= 0:
            raise ValueError(f"pitch must be positive, got {self.pitch}")

    @property
    def turns(self) -> float:
        return (self.outer_radius - self.inner_radius) / self.pitch

    def sample_points(self, max_chord: float = 0.5) -> NDArray[np.floating]:
        """Generate (n, 2) points along the spiral.

        The angular step shrinks with radius so no chord exceeds
        ``max_chord`` (the step is capped at 10 degrees near the center).

        Args:
            max_chord: Longest allowed distance between consecutive points

        Returns:
            (n, 2) array of (x, y) coordinates, center first
        """
        if max_chord <= 0:
            raise ValueError(f"max_chord must be positive, got {max_chord}")

        theta_max = 2 * np.pi * self.turns
        k = self.pitch / (2 * np.pi)
        thetas = [0.0]
        theta = 0.0
        while theta < theta_max:
            r = self.inner_radius + k * theta
            theta += min(np.radians(10.0), max_chord / max(r, max_chord))
            thetas.append(min(theta, theta_max))
        theta_arr = np.asarray(thetas)
        r = self.inner_radius + k * theta_arr

        x = self.center[0] + r * np.cos(theta_arr)
        y = self.center[1] + r * np.sin(theta_arr)
        return np.stack([x, y], axis=1)

    @property
    def total_length(self) -> float:
        """Approximate path length via dense sampling."""
        points = self.sample_points(max_chord=0.05)
        return float(np.sum(np.linalg.norm(np.diff(points, axis=0), axis=1)))


@dataclass
class ConcentricRings:
    """Circles stepped inward from ``outer_radius`` by ``spacing``.

    Attributes:
        center: (x, y) common center
        outer_radius: Radius of the first (outermost) ring
        spacing: Radial distance between rings
        min_radius: Rings at or below this radius are omitted
    """

    center: NDArray[np.floating] | tuple[float, float]
    outer_radius: float
    spacing: float
    min_radius: float = 0.0

    def __post_init__(self) -> None:
        self.center = np.asarray(self.center, dtype=np.float64)
        if self.center.shape != (2,):
            raise ValueError(f"center must be 2D point, got shape {self.center.shape}")
        if self.spacing <= 0:
            raise ValueError(f"spacing must be positive, got {self.spacing}")

    @property
    def radii(self) -> NDArray[np.floating]:
        if self.outer_radius <= self.min_radius:
            return np.zeros(0)
        count = int(np.floor((self.outer_radius - self.min_radius) / self.spacing - 1e-9)) + 1
        radii = self.outer_radius - self.spacing * np.arange(count)
        return radii[radii > self.min_radius]

    def rings(self, segments: int = 36) -> list[NDArray[np.floating]]:
        """Counter-clockwise ring polygons, outermost first."""
        return [circle_polygon(tuple(self.center), float(r), segments) for r in self.radii]
