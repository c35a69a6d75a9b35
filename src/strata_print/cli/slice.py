"""Command-line tool for slicing element models to G-code.

The strata-slice CLI reads a JSON element tree, applies printer settings from
a JSON file and/or command-line overrides, and writes G-code with layer
progress tracking and a print summary.
"""

import json
import logging
import sys
import time
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from strata_print.geometry.bounds import element_bounds
from strata_print.geometry.elements import Composite, Line, Text, UnknownElement, element_from_dict
from strata_print.geometry.offset import BisectorOffsetter, ShapelyOffsetter
from strata_print.toolpath.analysis import gcode_stats
from strata_print.toolpath.orchestrator import (
    generate_composite_gcode,
    generate_element_gcode,
    layer_heights,
    placeholder_element,
)
from strata_print.toolpath.settings import (
    InfillPattern,
    PrinterSettings,
    SupportType,
    load_settings,
)
from strata_print.toolpath.slicers import SlicingError

from .progress import SliceProgress, format_time, print_job_info, print_summary

console = Console()
logger = logging.getLogger("strata_print")


def load_model(path: Path):
    """Read a model file: one element dict, or a list of them."""
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, list):
        return Composite(children=[element_from_dict(item) for item in data])
    return element_from_dict(data)


def configure_logging(verbose: bool) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=verbose, rich_tracebacks=True)],
    )


@click.command()
@click.argument("model", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--settings",
    "-s",
    "settings_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Printer settings JSON (snake_case or camelCase keys)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output file path (default: MODEL with a .gcode suffix)",
)
@click.option("--layer-height", type=float, help="Layer height in mm")
@click.option("--infill", type=click.FloatRange(0, 100), help="Infill density in percent")
@click.option(
    "--pattern",
    type=click.Choice([p.value for p in InfillPattern]),
    help="Infill pattern",
)
@click.option("--shells", type=click.IntRange(min=0), help="Number of perimeter shells")
@click.option(
    "--support",
    type=click.Choice([s.value for s in SupportType]),
    help="Support placement",
)
@click.option(
    "--offsetter",
    type=click.Choice(["bisector", "shapely"]),
    default="bisector",
    help="Shell offset method (default: bisector)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output with debug info")
@click.option("--dry-run", is_flag=True, help="Validate the model and settings without slicing")
@click.version_option(version="0.1.0", prog_name="strata-slice")
def main(
    model: Path,
    settings_path: Path | None,
    output: Path | None,
    layer_height: float | None,
    infill: float | None,
    pattern: str | None,
    shells: int | None,
    support: str | None,
    offsetter: str,
    verbose: bool,
    dry_run: bool,
):
    """Slice a JSON element model to G-code.

    MODEL is a JSON file holding one element (usually a composite) or a list
    of elements. Example:

    \b
        {"type": "composite", "elements": [
            {"type": "cube", "x": 0, "y": 0, "z": 5,
             "width": 20, "depth": 20, "height": 10},
            {"type": "sphere", "x": 0, "y": 0, "z": 15, "radius": 5}
        ]}
    """
    configure_logging(verbose)

    try:
        console.print(f"\n[bold]Slicing:[/bold] {model.name}", style="blue")
        console.print("─" * 60)

        settings = load_settings(settings_path) if settings_path else PrinterSettings()
        settings = settings.with_overrides(
            layer_height=layer_height,
            infill_density=infill,
            infill_pattern=pattern,
            shell_count=shells,
            support_type=support,
        )

        element = load_model(model)
        printable, _ = placeholder_element(element, settings)
        bounds = element_bounds(printable)
        if bounds is None:
            console.print("\n[bold red]Error:[/bold red] model has no printable extent")
            sys.exit(1)

        if output is None:
            output = model.with_suffix(".gcode")

        print_job_info(console, element, bounds, settings, output)

        if dry_run:
            layers = len(layer_heights(bounds, settings))
            console.print(f"[yellow]Dry run - {layers} layers, no G-code written[/yellow]")
            return

        backend = ShapelyOffsetter() if offsetter == "shapely" else BisectorOffsetter()
        if isinstance(element, (Text, UnknownElement, Line)):
            generate = generate_element_gcode
        else:
            generate = generate_composite_gcode

        start_time = time.time()
        with SliceProgress(console, len(layer_heights(bounds, settings))) as progress:
            job = generate(element, settings, offsetter=backend, progress=progress.update)
        runtime = time.time() - start_time

        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(job.gcode)

        stats = gcode_stats(job.gcode)
        print_summary(console, stats, runtime, progress.peak_memory)
        console.print(f"  Output: {output} ({len(job.gcode) / 1024:.1f} KB)")

        warnings = job.gcode.count("; WARNING:") + job.gcode.count("; ERROR:")
        if warnings:
            console.print(
                f"  [yellow]{warnings} diagnostic comment(s) in output, see the G-code[/yellow]"
            )
        if verbose:
            console.print(f"\n[dim]Final E: {job.final_e:.5f}, last Z: {job.last_z:.3f} "
                          f"({format_time(runtime)})[/dim]")

    except (ValueError, SlicingError, OSError) as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
