"""
Printer configuration.

PrinterSettings is immutable; use ``dataclasses.replace`` (or
:meth:`PrinterSettings.with_overrides`) to derive variants. Speeds are in
mm/s and converted to mm/min feed rates only when G-code is written.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any

from strata_print.geometry.bounds import element_bounds
from strata_print.geometry.elements import Element


class InfillPattern(Enum):
    """Periodic pattern used to fill the area inside the shells."""

    LINES = "lines"
    GRID = "grid"
    TRIANGULAR = "triangular"
    HONEYCOMB = "honeycomb"
    SOLID = "solid"
    CIRCULAR = "circular"
    SPIRAL = "spiral"


class SupportType(Enum):
    """Where support columns may be generated.

    NONE: No support.
    TOUCHING_BUILDPLATE: Only under overhangs with nothing but air down to the bed.
    EVERYWHERE: Under any overhang, landing on the model if necessary.
    """

    NONE = "none"
    TOUCHING_BUILDPLATE = "touching_buildplate"
    EVERYWHERE = "everywhere"


@dataclass(frozen=True)
class PrinterSettings:
    """Machine, material and slicing parameters.

    Args:
        layer_height: Z step between layers (mm)
        print_speed: Extrusion move speed (mm/s)
        travel_speed: Non-extruding move speed (mm/s)
        print_temperature: Hotend temperature (C)
        bed_temperature: Bed temperature (C)
        extrusion_width: Width of one extruded line (mm)
        filament_diameter: Feedstock diameter (mm)
        retraction_distance: Filament pulled back at the end of the print (mm)
        retraction_speed: Retraction speed (mm/s)
        infill_density: Infill density in percent, 0 disables infill
        infill_pattern: Pattern used inside the shells
        shell_count: Number of perimeter loops per polygon
        support_type: Support placement policy
        support_overhang_angle: Steepest unsupported wall, degrees from vertical
        support_density: Support fill density in percent
        raft_layers: Solid layers printed under the model
        brim_width: Width of the first-layer brim around the model (mm)
        nozzle_diameter: Nozzle bore (mm)
        material: Material name used for mass estimates
        circle_segments: Vertices used to approximate round cross-sections
        arc_perimeters: Emit circular shells as single G3 arcs
        park_y: Y coordinate of the end-of-print park move (mm)
    """

    layer_height: float = 0.2
    print_speed: float = 50.0
    travel_speed: float = 150.0
    print_temperature: float = 200.0
    bed_temperature: float = 60.0
    extrusion_width: float = 0.4
    filament_diameter: float = 1.75
    retraction_distance: float = 2.0
    retraction_speed: float = 60.0
    infill_density: float = 20.0
    infill_pattern: InfillPattern = InfillPattern.LINES
    shell_count: int = 2
    support_type: SupportType = SupportType.NONE
    support_overhang_angle: float = 45.0
    support_density: float = 15.0
    raft_layers: int = 0
    brim_width: float = 0.0
    nozzle_diameter: float = 0.4
    material: str = "PLA"
    circle_segments: int = 36
    arc_perimeters: bool = False
    park_y: float = 200.0

    def __post_init__(self) -> None:
        # Accept plain strings for the enum fields
        object.__setattr__(self, "infill_pattern", InfillPattern(self.infill_pattern))
        object.__setattr__(self, "support_type", SupportType(self.support_type))

        for name in (
            "layer_height",
            "print_speed",
            "travel_speed",
            "extrusion_width",
            "filament_diameter",
            "retraction_speed",
            "nozzle_diameter",
        ):
            value = getattr(self, name)
            if not value > 0:
                raise ValueError(f"{name} must be positive, got {value}")

        for name in ("print_temperature", "bed_temperature", "retraction_distance", "brim_width"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

        for name in ("infill_density", "support_density"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be in [0, 100], got {value}")

        if not 0 <= self.support_overhang_angle <= 90:
            raise ValueError(
                f"support_overhang_angle must be in [0, 90], got {self.support_overhang_angle}"
            )
        if self.shell_count < 0:
            raise ValueError(f"shell_count must be non-negative, got {self.shell_count}")
        if self.raft_layers < 0:
            raise ValueError(f"raft_layers must be non-negative, got {self.raft_layers}")
        if self.circle_segments < 8:
            raise ValueError(f"circle_segments must be >= 8, got {self.circle_segments}")

    @property
    def print_feed(self) -> float:
        """Print speed as a G-code feed rate (mm/min)."""
        return self.print_speed * 60

    @property
    def travel_feed(self) -> float:
        return self.travel_speed * 60

    @property
    def retraction_feed(self) -> float:
        return self.retraction_speed * 60

    def with_overrides(self, **overrides: Any) -> PrinterSettings:
        """Copy with the given fields replaced; None values are ignored."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PrinterSettings:
        """Build settings from a dict with snake_case or camelCase keys.

        Unknown keys raise ValueError so typos do not silently fall back to
        defaults.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _snake_case(key)
            if name not in known:
                raise ValueError(f"Unknown printer setting '{key}'")
            kwargs[name] = value
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["infill_pattern"] = self.infill_pattern.value
        data["support_type"] = self.support_type.value
        return data


def _snake_case(key: str) -> str:
    out = []
    for ch in key:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out)


def load_settings(path: str | Path) -> PrinterSettings:
    """Load printer settings from a JSON file."""
    path = Path(path)
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: settings file must contain a JSON object")
    return PrinterSettings.from_dict(data)


def recommended_settings(element: Element, base: PrinterSettings | None = None) -> PrinterSettings:
    """Suggest layer height, infill and shells from the model size.

    Small parts (largest dimension under 30 mm) get fine 0.1 mm layers and
    denser infill; large parts (over 150 mm) get 0.3 mm layers and sparser
    infill. Everything gets three shells at 60 mm/s.
    """
    base = base or PrinterSettings()
    layer_height, infill = 0.2, 20.0
    bounds = element_bounds(element)
    if bounds is not None:
        max_dim = float(bounds.size.max())
        if max_dim < 30:
            layer_height, infill = 0.1, 30.0
        elif max_dim > 150:
            layer_height, infill = 0.3, 15.0
    return replace(
        base,
        layer_height=layer_height,
        infill_density=infill,
        shell_count=3,
        print_speed=60.0,
    )
