"""
Axis-aligned bounds for elements and element trees.

The layer loop is sized from these bounds, so an element that cannot be
bounded resolves to ``None`` rather than a guessed box.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from strata_print.geometry.elements import Composite, Element, Line, Solid, Text, UnknownElement

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Bounds:
    """Axis-aligned bounding box in millimeters.

    Attributes:
        min_corner: (x, y, z) minimum corner
        max_corner: (x, y, z) maximum corner
    """

    min_corner: NDArray[np.floating]
    max_corner: NDArray[np.floating]

    def __post_init__(self) -> None:
        lo = np.asarray(self.min_corner, dtype=np.float64)
        hi = np.asarray(self.max_corner, dtype=np.float64)
        if lo.shape != (3,) or hi.shape != (3,):
            raise ValueError("Bounds corners must be 3D points")
        if np.any(hi < lo):
            raise ValueError(f"max_corner {hi} is below min_corner {lo}")
        object.__setattr__(self, "min_corner", lo)
        object.__setattr__(self, "max_corner", hi)

    @property
    def min_x(self) -> float:
        return float(self.min_corner[0])

    @property
    def min_y(self) -> float:
        return float(self.min_corner[1])

    @property
    def min_z(self) -> float:
        return float(self.min_corner[2])

    @property
    def max_x(self) -> float:
        return float(self.max_corner[0])

    @property
    def max_y(self) -> float:
        return float(self.max_corner[1])

    @property
    def max_z(self) -> float:
        return float(self.max_corner[2])

    @property
    def size(self) -> NDArray[np.floating]:
        return self.max_corner - self.min_corner

    @property
    def height(self) -> float:
        return self.max_z - self.min_z

    def contains_z(self, z: float, tolerance: float = 0.0) -> bool:
        """True when ``z`` lies within [min_z, max_z] widened by ``tolerance``."""
        return self.min_z - tolerance <= z <= self.max_z + tolerance

    def union(self, other: Bounds) -> Bounds:
        return Bounds(
            np.minimum(self.min_corner, other.min_corner),
            np.maximum(self.max_corner, other.max_corner),
        )


def element_bounds(element: Element) -> Bounds | None:
    """Resolve the bounds of one element or a whole subtree.

    Composite bounds are the union over children that can be bounded. Text
    children are left out because a tree never prints them. An empty
    composite, a composite with no boundable child, or an unknown element
    yields ``None``.

    Args:
        element: Root of the (sub)tree

    Returns:
        Bounds, or None when no extent can be determined
    """
    if isinstance(element, Composite):
        result: Bounds | None = None
        for child in element.children:
            if isinstance(child, Text):
                continue
            child_bounds = element_bounds(child)
            if child_bounds is None:
                continue
            result = child_bounds if result is None else result.union(child_bounds)
        return result

    if isinstance(element, UnknownElement):
        logger.warning("Cannot resolve bounds for unknown element type '%s'", element.type_name)
        return None

    if isinstance(element, (Solid, Line)):
        return Bounds(*element.bounding_box)

    logger.warning("Cannot resolve bounds for %s", type(element).__name__)
    return None
