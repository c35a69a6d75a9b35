"""Progress display for slicing jobs.

Provides rich terminal UI for layer-by-layer progress tracking including:
- Progress bar with percentage
- Elapsed time and ETA
- Memory usage
"""

import time
from typing import TYPE_CHECKING

import psutil
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

if TYPE_CHECKING:
    from strata_print.geometry.bounds import Bounds
    from strata_print.geometry.elements import Element
    from strata_print.toolpath.analysis import GCodeStats
    from strata_print.toolpath.settings import PrinterSettings


def format_time(seconds: float) -> str:
    """Format time duration for display.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string like "1m 23s" or "2h 15m"
    """
    if seconds < 60:
        return f"{seconds:.0f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs:02d}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes:02d}m"


class SliceProgress:
    """Layer progress bar for a slicing run.

    ``update`` matches the orchestrators' progress callback signature.

    Example:
        >>> with SliceProgress(console, layer_count) as progress:
        ...     job = generate_composite_gcode(model, settings, progress=progress.update)
    """

    def __init__(self, console: Console, layer_count: int, update_interval: float = 0.1):
        """Initialize progress display.

        Args:
            console: Rich console instance
            layer_count: Total number of layers
            update_interval: Minimum time between stats updates (seconds)
        """
        self.console = console
        self.layer_count = layer_count
        self.update_interval = update_interval

        self.start_time = time.time()
        self.last_update = 0.0
        self.peak_memory = 0.0

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("•"),
            TimeRemainingColumn(),
            console=console,
        )
        self.task = self.progress.add_task("Slicing", total=layer_count)
        self.progress.start()

    def update(self, done: int, total: int) -> None:
        """Record that ``done`` of ``total`` layers have been generated."""
        self.progress.update(self.task, completed=done, total=total)

        current_time = time.time()
        if current_time - self.last_update < self.update_interval and done < total:
            return

        memory = psutil.Process().memory_info().rss / (1024**2)  # MB
        self.peak_memory = max(self.peak_memory, memory)
        self.last_update = current_time

    def finish(self) -> None:
        """Stop the progress bar."""
        self.progress.stop()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finish()


def print_job_info(
    console: Console,
    element: "Element",
    bounds: "Bounds",
    settings: "PrinterSettings",
    output_path,
) -> None:
    """Print model and settings tables before slicing."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="white")

    size = bounds.size
    table.add_row("Model", f"{element.kind} ({size[0]:.1f} × {size[1]:.1f} × {size[2]:.1f} mm)")
    table.add_row("Z range", f"{bounds.min_z:.3f} – {bounds.max_z:.3f} mm")
    table.add_row("Layer height", f"{settings.layer_height:.3f} mm")
    table.add_row("Shells", str(settings.shell_count))
    table.add_row("Infill", f"{settings.infill_density:g}% {settings.infill_pattern.value}")
    table.add_row("Support", settings.support_type.value)
    if settings.raft_layers:
        table.add_row("Raft", f"{settings.raft_layers} layers")
    if settings.brim_width:
        table.add_row("Brim", f"{settings.brim_width:g} mm")
    table.add_row(
        "Temperatures",
        f"{settings.print_temperature:.0f}°C hotend / {settings.bed_temperature:.0f}°C bed",
    )
    table.add_row("Material", settings.material)
    table.add_row("Output", str(output_path))

    console.print(table)
    console.print()


def print_summary(console: Console, stats: "GCodeStats", runtime: float, peak_memory: float) -> None:
    """Print the post-slice summary."""
    console.print("─" * 60)
    console.print("✓ [bold green]Slicing complete![/bold green]")
    console.print(f"  Layers: {stats.layer_count}")
    console.print(f"  Filament: {stats.filament_length / 1000:.2f} m")
    console.print(f"  Estimated print time: {format_time(stats.estimated_time)}")
    console.print(f"  Slicing time: {format_time(runtime)}")
    if peak_memory:
        console.print(f"  Peak memory: {peak_memory:.0f} MB", style="dim")
