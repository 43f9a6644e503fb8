#!/usr/bin/env python3
"""tletrack command-line interface.

Usage::

    tletrack show --file data/iss.tle
    tletrack locate --catalog-number 25544 --at 2024-06-01T12:00:00
    tletrack track --file data/iss.tle --minutes 95 --step 30 --plot track.png
"""
from __future__ import annotations

import sys
import logging
from datetime import datetime, timedelta, timezone

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from .tle_parser import OrbitalElementSet
from .propagator import Propagator, PropagatorSettings, PropagationResult
from .celestrak import CelesTrakClient, load_tle_file
from .errors import TletrackError

console = Console()

DATETIME_FORMATS = ["%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M", "%Y-%m-%d"]


def source_options(func):
    """Attach the shared --file / --catalog-number options."""
    func = click.option("--catalog-number", "-n", type=int, help="NORAD catalog number (fetched from CelesTrak)")(func)
    func = click.option("--file", "-f", "filepath", type=click.Path(exists=True), help="TLE file path")(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """tletrack — Two-Line Element decoding and Keplerian sub-point tracking."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s — %(message)s")


@main.command()
@source_options
def show(filepath: str | None, catalog_number: int | None):
    """Decode an element set and display its fields."""
    elements = _load(filepath, catalog_number)
    _display_elements(elements)


@main.command()
@source_options
@click.option("--at", "at", type=click.DateTime(formats=DATETIME_FORMATS),
              help="Evaluation instant in UTC (default: now)")
@click.option("--strict", is_flag=True, help="Solve Kepler's equation to machine precision")
def locate(filepath: str | None, catalog_number: int | None, at: datetime | None, strict: bool):
    """Locate the satellite at a single instant."""
    elements = _load(filepath, catalog_number)
    at = at or datetime.now(timezone.utc)
    result = _run(lambda: _propagator(strict).propagate(elements, at))
    _display_result(elements, result)


@main.command()
@source_options
@click.option("--start", type=click.DateTime(formats=DATETIME_FORMATS),
              help="First instant in UTC (default: now)")
@click.option("--minutes", "-m", default=95.0, help="Length of the track in minutes")
@click.option("--step", "-s", default=60.0, help="Seconds between samples")
@click.option("--strict", is_flag=True, help="Solve Kepler's equation to machine precision")
@click.option("--output", "-o", type=click.Path(), help="Save the track to CSV")
@click.option("--plot", "plot_path", type=click.Path(), help="Save a ground-track plot (PNG)")
def track(
    filepath: str | None,
    catalog_number: int | None,
    start: datetime | None,
    minutes: float,
    step: float,
    strict: bool,
    output: str | None,
    plot_path: str | None,
):
    """Sample the ground track over a time window."""
    elements = _load(filepath, catalog_number)
    start = start or datetime.now(timezone.utc)
    end = start + timedelta(minutes=minutes)

    df = _run(lambda: _propagator(strict).ground_track(
        elements, start, end, step=timedelta(seconds=step),
    ))
    console.print(f"Propagated {len(df)} samples for {elements.name or elements.catalog_number}")
    _display_track(df)

    if output:
        df.to_csv(output, index=False)
        console.print(f"\nTrack saved to {output}")

    if plot_path:
        from .viz import plot_ground_track
        plot_ground_track(
            df,
            title=f"{elements.name or 'NORAD ' + str(elements.catalog_number)} — Ground Track",
            save_path=plot_path,
        )
        console.print(f"Plot saved to {plot_path}")


def _load(filepath: str | None, catalog_number: int | None) -> OrbitalElementSet:
    if filepath:
        return _run(lambda: load_tle_file(filepath))
    if catalog_number:
        console.print(f"Fetching element set for NORAD {catalog_number}...")
        elements = _run(lambda: CelesTrakClient().get_element_set(catalog_number))
        if elements is None:
            console.print(f"[yellow]No element set found for NORAD {catalog_number}.[/yellow]")
            sys.exit(1)
        return elements
    console.print("[red]Error: provide --file or --catalog-number[/red]")
    sys.exit(1)


def _run(action):
    """Run ``action``, turning tletrack errors into a clean exit."""
    try:
        return action()
    except (TletrackError, ValueError) as exc:
        console.print(f"[red]Error ({type(exc).__name__}): {exc}[/red]")
        sys.exit(1)


def _propagator(strict: bool) -> Propagator:
    return Propagator(PropagatorSettings.strict() if strict else PropagatorSettings())


def _display_elements(elements: OrbitalElementSet):
    """Display decoded fields with rich formatting."""
    designator = str(elements.intl_designator) if elements.intl_designator else "—"
    console.print(
        Panel(
            f"[bold]{elements.name or 'UNKNOWN'}[/bold] (NORAD {elements.catalog_number})\n"
            f"Classification: {elements.classification.name.title()}\n"
            f"Designator: {designator}\n"
            f"Epoch: {elements.epoch:%Y-%m-%d %H:%M:%S} UTC\n"
            f"Orbit: [bold green]{elements.orbit_direction.name.title()}[/bold green]",
            title="Element Set",
            box=box.ROUNDED,
        )
    )

    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("Element", style="cyan")
    table.add_column("Value", justify="right")

    rows = [
        ("Inclination (°)", f"{elements.inclination:.4f}"),
        ("RAAN (°)", f"{elements.raan:.4f}"),
        ("Eccentricity", f"{elements.eccentricity:.7f}"),
        ("Arg. of perigee (°)", f"{elements.arg_perigee:.4f}"),
        ("Mean anomaly (°)", f"{elements.mean_anomaly:.4f}"),
        ("Mean motion (rev/day)", f"{elements.mean_motion:.8f}"),
        ("Mean motion (rad/s)", f"{elements.mean_motion_rad:.6e}"),
        ("Period (s)", f"{elements.period:.1f}"),
        ("Semi-major axis (km)", f"{elements.semi_major_axis:.1f}"),
        ("Semi-minor axis (km)", f"{elements.semi_minor_axis:.1f}"),
        ("B*", f"{elements.bstar:.4e}"),
        ("Rev number", str(elements.rev_number)),
        ("Element number", str(elements.element_number)),
    ]
    for label, value in rows:
        table.add_row(label, value)

    console.print(table)


def _display_result(elements: OrbitalElementSet, result: PropagationResult):
    """Display a single propagated state."""
    x, y, z = result.geocentric
    console.print(
        Panel(
            f"[bold]{elements.name or 'UNKNOWN'}[/bold] (NORAD {elements.catalog_number})\n"
            f"Instant: {result.at:%Y-%m-%d %H:%M:%S} UTC "
            f"({result.elapsed_seconds / 3600.0:+.2f} h from epoch)\n"
            f"Latitude: [bold green]{result.latitude:+.4f}°[/bold green]\n"
            f"Longitude: [bold green]{result.longitude:+.4f}°[/bold green]\n"
            f"Radius: {result.radius:.1f} km\n"
            f"Earth-fixed: ({x:.1f}, {y:.1f}, {z:.1f}) km\n"
            f"Eccentric anomaly: {result.eccentric_anomaly:.6f} rad "
            f"({result.iterations} iterations)",
            title="Propagated State",
            box=box.ROUNDED,
        )
    )


def _display_track(df):
    """Display a ground-track DataFrame as a rich table."""
    table = Table(box=box.SIMPLE_HEAVY, show_lines=False)
    table.add_column("Time (UTC)", style="cyan")
    table.add_column("Lat (°)", justify="right")
    table.add_column("Lon (°)", justify="right")
    table.add_column("Radius (km)", justify="right")

    for _, row in df.head(50).iterrows():
        table.add_row(
            f"{row['at']:%Y-%m-%d %H:%M:%S}",
            f"{row['latitude_deg']:+.3f}",
            f"{row['longitude_deg']:+.3f}",
            f"{row['radius_km']:.1f}",
        )

    if len(df) > 50:
        console.print(f"(showing 50 of {len(df)} samples)")
    console.print(table)


if __name__ == "__main__":
    main()
