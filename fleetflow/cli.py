"""Command-line interface for the fleet dashboard data."""

import asyncio
import json
import logging
from pathlib import Path

import click

from fleetflow.config.constants import TIME_RANGE_WINDOWS_MS
from fleetflow.config.schema import Settings
from fleetflow.dashboard.session import FleetDashboard
from fleetflow.insights.insight_service import InsightService
from fleetflow.storage.backends import JsonFileBackend
from fleetflow.storage.local_store import LocalStore
from fleetflow.storage.parquet_writer import ParquetWriter


def _open_dashboard(ctx: click.Context) -> FleetDashboard:
    settings: Settings = ctx.obj["settings"]
    store = LocalStore(JsonFileBackend(settings.data_dir), namespace=settings.namespace)
    insights = InsightService(api_key=settings.api_key, model=settings.model)
    dashboard = FleetDashboard(store, insight_service=insights)
    dashboard.load()
    return dashboard


def _report_warnings(dashboard: FleetDashboard) -> None:
    for warning in dashboard.warnings:
        click.secho(warning, fg="yellow", err=True)


@click.group()
@click.option("--data-dir", default=None, help="Directory holding the collection files.")
@click.option("--namespace", default=None, help="Key namespace inside the data directory.")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
@click.pass_context
def main(ctx, data_dir, namespace, verbose):
    """Fleet dashboard: trucks, drivers, trips and reports stored locally."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = Settings.from_env()
    if data_dir is not None or namespace is not None:
        settings = Settings(
            data_dir=Path(data_dir) if data_dir is not None else settings.data_dir,
            namespace=namespace if namespace is not None else settings.namespace,
            api_key=settings.api_key,
            model=settings.model,
        )
    ctx.obj = {"settings": settings}


@main.command()
@click.pass_context
def seed(ctx):
    """Populate empty collections with the demo fleet."""
    dashboard = _open_dashboard(ctx)
    _report_warnings(dashboard)
    click.echo(f"{len(dashboard.trucks)} trucks, {len(dashboard.drivers)} drivers, "
               f"{len(dashboard.reports)} reports")


@main.command()
@click.pass_context
def trucks(ctx):
    """List trucks."""
    dashboard = _open_dashboard(ctx)
    for t in dashboard.trucks:
        click.echo(f"{t.id:<10} {t.plate:<10} {t.model:<24} {t.status.value:<13} "
                   f"health={t.health_score:g} mileage={t.mileage:g}")


@main.command("add-trip")
@click.option("--truck-id", required=True)
@click.option("--driver-id", required=True)
@click.option("--origin", required=True)
@click.option("--destination", required=True)
@click.option("--distance", type=float, required=True, help="Trip distance (km).")
@click.option("--revenue", type=float, required=True)
@click.pass_context
def add_trip(ctx, truck_id, driver_id, origin, destination, distance, revenue):
    """Record a completed trip."""
    dashboard = _open_dashboard(ctx)
    trip = dashboard.add_trip(truck_id, driver_id, origin, destination, distance, revenue)
    _report_warnings(dashboard)
    if trip is None:
        raise SystemExit(1)
    click.echo(f"Added trip {trip.id}")


@main.command("remove-report")
@click.argument("report_id")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_context
def remove_report(ctx, report_id, yes):
    """Remove a report by id."""
    dashboard = _open_dashboard(ctx)
    removed = dashboard.remove_report(report_id, confirm=lambda msg: yes or click.confirm(msg))
    _report_warnings(dashboard)
    click.echo("Removed." if removed else "Cancelled.")


@main.command()
@click.option("--range", "time_range", type=click.Choice(list(TIME_RANGE_WINDOWS_MS)),
              default="30d", help="Time window for trip metrics.")
@click.pass_context
def metrics(ctx, time_range):
    """Show revenue, fuel cost per km and trip count for a time window."""
    dashboard = _open_dashboard(ctx)
    dashboard.set_time_range(time_range)
    click.echo(json.dumps(dashboard.overview(), indent=2))


@main.command()
@click.option("--range", "time_range", type=click.Choice(list(TIME_RANGE_WINDOWS_MS)),
              default="30d")
@click.pass_context
def insights(ctx, time_range):
    """Ask the AI model for fleet insights."""
    dashboard = _open_dashboard(ctx)
    dashboard.set_time_range(time_range)
    result = asyncio.run(dashboard.refresh_insights())
    click.echo(json.dumps(result, indent=2))


@main.command("export-trips")
@click.option("--output-dir", default="output/", help="Output directory.")
@click.pass_context
def export_trips(ctx, output_dir):
    """Write all trips to a Parquet file."""
    dashboard = _open_dashboard(ctx)
    path = ParquetWriter(Path(output_dir)).write_trips(dashboard.trips)
    click.echo(str(path))


if __name__ == "__main__":
    main()
