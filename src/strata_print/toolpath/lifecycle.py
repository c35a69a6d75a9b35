"""Start and end G-code that bracket the layer loop."""

from __future__ import annotations

from strata_print.toolpath.settings import PrinterSettings

PRIME_LENGTH = 5.0
SAFE_Z_LIFT = 5.0


def print_start_gcode(settings: PrinterSettings) -> str:
    """Machine setup, heating, homing and nozzle priming.

    Ends with the extruder reset to E0, which is the only reset of the
    extrusion axis in a generated program.
    """
    hotend = f"{settings.print_temperature:.0f}"
    bed = f"{settings.bed_temperature:.0f}"
    lines = [
        "; strata-print G-code",
        f"; Layer height: {settings.layer_height:.3f} mm",
        f"; Extrusion width: {settings.extrusion_width:.3f} mm",
        f"; Infill: {settings.infill_density:g}% {settings.infill_pattern.value}",
        f"; Material: {settings.material}",
        "M82 ; absolute extrusion mode",
        "G21 ; millimeter units",
        "G90 ; absolute positioning",
        f"M104 S{hotend} ; set hotend temperature",
        f"M140 S{bed} ; set bed temperature",
        "G28 ; home all axes",
        f"M109 S{hotend} ; wait for hotend temperature",
        f"M190 S{bed} ; wait for bed temperature",
        f"G1 Z{SAFE_Z_LIFT:.1f} F5000 ; lift nozzle",
        "G1 X0 Y0 Z0.2 F3000 ; move to prime position",
        "G92 E0 ; reset extruder",
        f"G1 E{PRIME_LENGTH:.1f} F1800 ; prime nozzle",
        "G92 E0 ; reset extruder",
        "G1 Z0.3 F3000 ; lift before first layer",
    ]
    return "\n".join(lines) + "\n"


def print_end_gcode(settings: PrinterSettings, last_z: float) -> str:
    """Retract, lift clear of the part, park and power down.

    Retraction and lift run in relative mode so the absolute E values written
    by the layer loop stay non-decreasing.
    """
    lines = [
        f"; End of print, last layer at Z={last_z:.3f}",
        "G91 ; relative positioning",
        f"G1 E-{settings.retraction_distance:.5f} F{settings.retraction_feed:.0f} ; retract filament",
        f"G1 Z{SAFE_Z_LIFT:.1f} F3000 ; lift nozzle",
        "G90 ; absolute positioning",
        f"G1 X0 Y{settings.park_y:.1f} F3000 ; present print",
        "M104 S0 ; hotend off",
        "M140 S0 ; bed off",
        "M84 ; disable motors",
    ]
    return "\n".join(lines) + "\n"
